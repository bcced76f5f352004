"""
=============================================================================
DIAL ERRORS
=============================================================================

Everything that can go wrong while turning (host, service) into an open
connection falls into one of two buckets:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   ResolutionError        The name never became an address.           │
    │   ────────────────       getaddrinfo() failed or returned nothing.   │
    │                          Nothing was attempted. Not retried.         │
    │                                                                      │
    │   ConnectionFailedError  We had addresses, none of them answered.    │
    │   ─────────────────────  Raised after the LAST candidate failed.     │
    │                          └── DialTimeoutError: ran out of time       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Per-address failures (socket() refused, connection refused, host
unreachable) are NOT errors at this level. They only advance the loop to
the next candidate. They surface in ConnectionFailedError.attempts.

Note the name: ConnectionFailedError, not ConnectionError. The builtin
ConnectionError (a subclass of OSError) must stay visible to callers doing
`from netdial.errors import *`.

=============================================================================
"""

from typing import List, Optional


class DialError(Exception):
    """Base class for every error raised by netdial."""

    def __init__(self, message: str, host: str = "", service: str = ""):
        super().__init__(message)
        self.message = message
        self.host = host
        self.service = service


class ResolutionError(DialError):
    """
    The host/service pair could not be resolved to any candidate.

    The message is the resolver's own diagnostic, e.g.
    "[Errno -2] Name or service not known".
    """


class ConnectionFailedError(DialError):
    """
    Every resolved candidate failed to produce a connection.

    Attributes:
        attempts: AttemptFailure records, in the order they were tried.
        reason: FailureReason of the last attempt (None if none was made).
        detail: Human-readable detail of the last attempt.
    """

    def __init__(
        self,
        message: str,
        host: str = "",
        service: str = "",
        attempts: Optional[List] = None,
    ):
        super().__init__(message, host=host, service=service)
        self.attempts = list(attempts or [])

    @property
    def last_attempt(self):
        """The final AttemptFailure, or None if nothing was attempted."""
        return self.attempts[-1] if self.attempts else None

    @property
    def reason(self):
        last = self.last_attempt
        return last.reason if last else None

    @property
    def detail(self) -> str:
        last = self.last_attempt
        return last.detail if last else ""


class DialTimeoutError(ConnectionFailedError):
    """The overall deadline ran out before a connection was established."""
