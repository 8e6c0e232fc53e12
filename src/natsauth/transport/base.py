"""Transport exceptions.

The broker reports authorization failures asynchronously, as protocol errors
that arrive some time after the offending publish or subscribe. The
:class:`PermissionViolation` raised by the connection is reconstructed from
that error text.
"""

from __future__ import annotations

import re
from typing import Optional


class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """A request or a synchronous subscription did not receive a timely response."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class NoResponders(TransportError):
    """A request was published to a subject nobody is listening on."""


_VIOLATION = re.compile(
    r'permissions violation for (?P<operation>publish|subscription) to '
    r'"(?P<subject>[^"]*)"(?: using queue "(?P<queue>[^"]*)")?',
    re.IGNORECASE,
)


class PermissionViolation(TransportError):
    """The broker refused a publish or a subscription."""

    def __init__(self, operation: str, subject: str, queue: Optional[str] = None):
        self.operation = operation.lower()
        self.subject = subject
        self.queue = queue or None

        text = f'permissions violation for {self.operation} to "{subject}"'
        if self.queue:
            text += f' using queue "{self.queue}"'
        super().__init__(text)

    @classmethod
    def parse(cls, text: str) -> Optional["PermissionViolation"]:
        """Return a violation described by a broker error, or None."""
        match = _VIOLATION.search(text)
        if match is None:
            return None
        return cls(match.group('operation'), match.group('subject'), match.group('queue'))

    def matches(self, operation: str, subject: str, queue: Optional[str] = None) -> bool:
        if self.operation != operation or self.subject != subject:
            return False
        if operation == 'subscription' and self.queue is not None:
            return self.queue == queue
        return True
