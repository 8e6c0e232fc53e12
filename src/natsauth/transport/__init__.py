"""Transport layer: blocking access to the NATS broker."""

from .base import (
    NoResponders,
    PermissionViolation,
    TransportConnectionError,
    TransportError,
    TransportTimeout,
)
from .connection import (
    Connection,
    Message,
    Subscription,
    close_all,
    connect,
)
