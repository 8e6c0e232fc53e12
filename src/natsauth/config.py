""" Runtime settings for the demonstrations. Each broker configuration the
    demos exercise is described by a :class:`Scenario`; the connection URLs
    used throughout the demos are assembled here so that the broker host can
    be redirected in one place.
"""

import os


host = os.environ.get('NATSAUTH_HOST', 'localhost')
timeout = float(os.environ.get('NATSAUTH_TIMEOUT', '2'))
connect_timeout = float(os.environ.get('NATSAUTH_CONNECT_TIMEOUT', '5'))

# Fixed delay used wherever a demo waits for asynchronous traffic to settle.

settle = float(os.environ.get('NATSAUTH_SETTLE', '0.2'))


class Scenario:
    """ A single broker configuration: the *name* used to refer to it, the
        *port* the broker listens on, and the *filename* of the broker
        configuration in the :func:`directory`.
    """

    def __init__(self, name, port, filename, title):

        self.name = name
        self.port = int(port)
        self.filename = filename
        self.title = title


    def __repr__(self):
        return 'Scenario(%s, port=%d, %s)' % (repr(self.name), self.port, self.filename)


_scenarios = dict()

def _add(*args):
    scenario = Scenario(*args)
    _scenarios[scenario.name] = scenario

_add('basic', 4222, 'basic-auth.conf', 'Basic Authorization')
_add('allow_deny', 4223, 'allow-deny.conf', 'Allow/Deny Rules')
_add('allow_responses', 4224, 'allow-responses.conf', 'Allow Responses')
_add('queue', 4225, 'queue-permissions.conf', 'Queue Permissions')
_add('accounts', 4226, 'accounts.conf', 'Account')
_add('nkeys', 4227, 'nkeys.conf', 'NKeys Authentication')



def scenario(name):
    """ Return the :class:`Scenario` for *name*. A :class:`Scenario` instance
        is passed through unchanged.
    """

    if isinstance(name, Scenario):
        return name

    try:
        return _scenarios[name]
    except KeyError:
        raise KeyError('unknown scenario: ' + repr(name))



def scenarios():
    """ Return all known scenarios, ordered by port number.
    """

    return sorted(_scenarios.values(), key=lambda scenario: scenario.port)



def directory():
    """ Return the directory containing the broker configuration files. The
        NATSAUTH_CONFIG_DIR environment variable takes precedence; otherwise
        the files are expected in a config/ directory relative to the current
        working directory, which is where the repository keeps them.
    """

    try:
        return os.environ['NATSAUTH_CONFIG_DIR']
    except KeyError:
        return 'config'



def path(name):
    """ Return the path to the broker configuration file for the scenario.
    """

    name = scenario(name)
    return os.path.join(directory(), name.filename)



def server_command(name, filename=None):
    """ Return the command that starts the broker for the scenario, with
        *filename* standing in for its usual configuration if specified.
    """

    if filename is None:
        filename = path(name)

    return 'nats-server -c ' + filename



def url(name, user=None, password=None):
    """ Build the connection URL for the scenario. If no *user* is specified
        the URL carries no credentials at all, which is how the demos exercise
        the broker's unauthenticated default user.
    """

    name = scenario(name)

    if user is None:
        credentials = ''
    elif password is None:
        credentials = user + '@'
    else:
        credentials = '%s:%s@' % (user, password)

    return 'nats://%s%s:%d' % (credentials, host, name.port)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
