""" The demo routines, and the registry the menu and the command line use to
    find them. Each :class:`Demo` knows which broker configuration it needs;
    demos with no scenario run without a broker.
"""

from .. import config
from . import accounts
from . import allow_deny
from . import allow_responses
from . import basic_auth
from . import nkeys_auth
from . import nkeys_generation
from . import queue_permissions


class Demo:

    def __init__(self, number, name, title, scenario, function, bullets=(), configuration=None):

        self.number = number
        self.name = name
        self.title = title
        self.scenario = scenario
        self.function = function
        self.bullets = tuple(bullets)
        self.configuration = configuration


    def run(self, *args, **kwargs):
        return self.function(*args, **kwargs)


    def config_path(self):
        """ Return the broker configuration file this demo expects, or None
            if it needs no broker.
        """

        if self.scenario is None:
            return None

        if self.configuration is not None:
            return self.configuration()

        return config.path(self.scenario)


    def server_command(self):
        return config.server_command(self.scenario, self.config_path())


    def __repr__(self):
        return 'Demo(%d, %s)' % (self.number, repr(self.name))



registry = list()

def _add(*args, **kwargs):
    registry.append(Demo(*args, **kwargs))


_add(1, 'basic', 'Basic Authorization', 'basic', basic_auth.run,
        ('Admin, Client, Service, and Default permissions',))

_add(2, 'allow_deny', 'Allow/Deny Rules', 'allow_deny', allow_deny.run,
        ('Explicit allow and deny lists', 'Read-only user example'))

_add(3, 'allow_responses', 'Allow Responses', 'allow_responses', allow_responses.run,
        ('Service responders with reply permissions', 'Single vs streaming responses'))

_add(4, 'queue', 'Queue Permissions', 'queue', queue_permissions.run,
        ('Queue-specific authorization', 'Load balancing across queue members'))

_add(5, 'accounts', 'Account Isolation', 'accounts', accounts.run_isolation,
        ('Multi-tenancy with accounts', 'Isolated communication contexts'))

_add(6, 'exports', 'Account Exports/Imports', 'accounts', accounts.run_exports,
        ('Public and private streams', 'Public and private services', 'Subject remapping'))

_add(7, 'no_auth', 'No Auth User', 'accounts', accounts.run_no_auth,
        ('Connecting without credentials', 'Default account assignment'))

_add(9, 'nkeys', 'NKeys Authentication', 'nkeys', nkeys_auth.run,
        ('Ed25519 challenge/response login', 'Request/response between NKey users'),
        configuration=nkeys_auth.server_config)

_add(10, 'keypairs', 'NKey Generation', None, nkeys_generation.run_keypairs,
        ('Fresh key pairs', 'Signing and verifying a challenge'))

_add(11, 'keygen', 'NKey Files', None, nkeys_generation.run_files,
        ('Keys for every role', 'Matching server configuration'))



def get(key):
    """ Return the :class:`Demo` registered under *key*, which may be either
        its menu number or its name.
    """

    for demo in registry:
        if demo.name == key or str(demo.number) == str(key):
            return demo

    raise KeyError('no such demo: ' + repr(key))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
