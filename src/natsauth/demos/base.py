""" Helpers shared by the demo routines.
"""

import logging
import time

from .. import config
from .. import transport


log = logging.getLogger('natsauth.demos')


def connect(stack, label, url, **kwargs):
    """ Open a connection for the user described by *label*, registering its
        closure with the :class:`contextlib.ExitStack` *stack*. None is
        returned if the connection could not be established; the failure is
        logged, and it is up to the caller to bail out.
    """

    try:
        connection = transport.connect(url, **kwargs)
    except transport.TransportError as error:
        log.error('%s connection failed: %s', label, error)
        return None

    stack.enter_context(connection)
    return connection



def settle(multiple=1):
    """ Give asynchronous traffic a moment to arrive.
    """

    time.sleep(config.settle * multiple)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
