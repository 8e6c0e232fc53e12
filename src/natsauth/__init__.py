""" Interactive demonstrations of NATS authorization: per-user permissions,
    allow/deny rules, response permissions, queue-group permissions, account
    isolation with exports and imports, and NKey authentication. The broker
    enforces every rule; this package connects with the various credentials
    and narrates what the broker allows and refuses.
"""

# Utility components.

from . import config
from . import report

# Broker access and key material.

from . import transport
from . import keys
from . import keygen

# Primary public-facing interfaces.

from . import demos
from . import menu

connect = transport.connect

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
