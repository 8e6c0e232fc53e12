""" Generate NKey pairs for the demo roles, and write them out together with
    a broker configuration that authorizes them. The key dump is meant to be
    read by humans; :func:`load_keys` reads it back so the NKeys demo can run
    against freshly generated keys.
"""

import os

from . import config
from . import keys


ROLES = ('Admin', 'Client', 'Service', 'Other')

# Named permission sets in the generated configuration. Roles not listed here
# fall back to the default permissions.

permissions = dict()
permissions['Admin'] = '$ADMIN'
permissions['Client'] = '$REQUESTOR'
permissions['Service'] = '$RESPONDER'

directory = 'generated'
keys_filename = os.path.join(directory, 'nkeys.txt')
config_filename = os.path.join(directory, 'nkeys-server.conf')


class GeneratedKey:

    def __init__(self, role, seed, public_key):

        self.role = role
        self.seed = seed
        self.public_key = public_key


    def __repr__(self):
        return 'GeneratedKey(%s, %s)' % (repr(self.role), self.public_key)



def generate(roles=ROLES):
    """ Create a new user key pair for each of the *roles*.
    """

    generated = list()

    for role in roles:
        pair = keys.create_user()
        generated.append(GeneratedKey(role, pair.seed, pair.public_key))

    return generated



def _open(filename):

    parent = os.path.dirname(filename)
    if parent:
        os.makedirs(parent, mode=0o755, exist_ok=True)

    return open(filename, 'w')



def save_keys(generated, filename=keys_filename):

    with _open(filename) as file:
        file.write('# Generated NKeys for NATS Authentication\n')
        file.write('# Keep the seeds (private keys) secret!\n')
        file.write('# Only share the public keys with the NATS server\n')
        file.write('\n')

        for key in generated:
            file.write('# %s User\n' % (key.role))
            file.write('Seed (Private Key):  %s\n' % (key.seed))
            file.write('Public Key:          %s\n' % (key.public_key))
            file.write('\n')



def load_keys(filename=keys_filename):
    """ Read back a key dump written by :func:`save_keys`. Each role block
        must carry both a seed and a public key; a ValueError is raised for
        a block that does not.
    """

    loaded = list()
    role = None
    seed = None
    public_key = None

    with open(filename, 'r') as file:
        lines = file.readlines()

    for line in lines:
        line = line.strip()

        if line.startswith('#') and line.endswith(' User'):
            if role is not None:
                raise ValueError("incomplete key block for role '%s' in %s" % (role, filename))

            role = line[1:-len(' User')].strip()
            seed = None
            public_key = None
            continue

        if role is None or ':' not in line:
            continue

        label, value = line.split(':', 1)
        label = label.strip()
        value = value.strip()

        if label == 'Seed (Private Key)':
            seed = value
        elif label == 'Public Key':
            public_key = value

        if seed is not None and public_key is not None:
            loaded.append(GeneratedKey(role, seed, public_key))
            role = None

    if role is not None:
        raise ValueError("incomplete key block for role '%s' in %s" % (role, filename))

    return loaded



def server_config(generated):
    """ Return the text of a broker configuration authorizing the *generated*
        keys, one user entry per key.
    """

    port = config.scenario('nkeys').port

    lines = list()
    lines.append('# Generated NKeys Authentication Configuration')
    lines.append('# Auto-generated - modify as needed')
    lines.append('')
    lines.append('port: %d' % (port))
    lines.append('')
    lines.append('authorization {')
    lines.append('  default_permissions = {')
    lines.append('    publish = "SANDBOX.*"')
    lines.append('    subscribe = ["PUBLIC.>", "_INBOX.>"]')
    lines.append('  }')
    lines.append('')
    lines.append('  ADMIN = {')
    lines.append('    publish = ">"')
    lines.append('    subscribe = ">"')
    lines.append('  }')
    lines.append('')
    lines.append('  REQUESTOR = {')
    lines.append('    publish = ["req.a", "req.b"]')
    lines.append('    subscribe = "_INBOX.>"')
    lines.append('  }')
    lines.append('')
    lines.append('  RESPONDER = {')
    lines.append('    subscribe = ["req.a", "req.b"]')
    lines.append('    publish = "_INBOX.>"')
    lines.append('  }')
    lines.append('')
    lines.append('  users = [')

    last = len(generated) - 1

    for index, key in enumerate(generated):
        lines.append('    # %s User' % (key.role))

        try:
            permission = permissions[key.role]
        except KeyError:
            entry = '    {nkey: "%s"}' % (key.public_key)
        else:
            entry = '    {nkey: "%s", permissions: %s}' % (key.public_key, permission)

        if index < last:
            entry += ','

        lines.append(entry)

    lines.append('  ]')
    lines.append('}')
    lines.append('')

    return '\n'.join(lines)



def save_server_config(generated, filename=config_filename):

    with _open(filename) as file:
        file.write(server_config(generated))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
