"""
=============================================================================
NAME RESOLUTION
=============================================================================

Before we can connect() we need an ADDRESS, but people give us NAMES:

    "example.com", "http"   ──►   [(AF_INET6, ..., ('2606:2800::1', 80, 0, 0)),
                                   (AF_INET,  ..., ('93.184.215.14', 80))]

socket.getaddrinfo() does this translation. It is the modern,
protocol-independent replacement for gethostbyname():

    getaddrinfo(host, service, family, type)
                 │      │        │       │
                 │      │        │       └── SOCK_STREAM: we want TCP-like
                 │      │        └── AF_UNSPEC: "IPv4 or IPv6, I don't care"
                 │      └── "80" or "http" (looked up in /etc/services)
                 └── "example.com", "127.0.0.1", "::1"

=============================================================================
WHY AN INTERFACE?
=============================================================================

The connector only needs "give me candidates, in order". Putting that
behind a small abstract class means:

1. Tests hand the connector a fixed list (no DNS, no network)
2. Callers that already hold addresses skip DNS entirely
3. A caching or async-backed resolver can be dropped in later

=============================================================================
"""

import socket
import time
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

from ..errors import ResolutionError, DialTimeoutError
from .endpoint import CandidateEndpoint


logger = logging.getLogger(__name__)


Candidates = Tuple[CandidateEndpoint, ...]


class Resolver(ABC):
    """Turns (host, service) into an ordered, immutable candidate tuple."""

    @abstractmethod
    def resolve(
        self,
        host: str,
        service: str,
        family: int = socket.AF_UNSPEC,
        timeout: Optional[float] = None,
    ) -> Candidates:
        """
        Resolve host and service into candidate endpoints.

        Args:
            host: Hostname or literal IP address.
            service: Port number as a string, or a service name ("http").
            family: Address family hint. AF_UNSPEC means any family.
            timeout: Time budget for the lookup. None means no limit.

        Returns:
            Non-empty tuple of candidates, in preference order.

        Raises:
            ResolutionError: The name could not be resolved.
        """


class SystemResolver(Resolver):
    """
    Resolver backed by the operating system's getaddrinfo().

    Note: getaddrinfo() is a blocking C call that cannot be interrupted
    from Python. The timeout is therefore checked AFTER the lookup
    returns: a lookup that overran its budget raises DialTimeoutError
    instead of handing back addresses there is no time left to try.
    """

    def __init__(self, getaddrinfo=socket.getaddrinfo, clock=time.monotonic):
        # Injectable for tests; defaults are the real system calls
        self._getaddrinfo = getaddrinfo
        self._clock = clock

    def resolve(
        self,
        host: str,
        service: str,
        family: int = socket.AF_UNSPEC,
        timeout: Optional[float] = None,
    ) -> Candidates:
        if not host:
            raise ValueError("host must be a non-empty string")
        if not service:
            raise ValueError("service must be a non-empty string")

        started = self._clock()
        try:
            # ─────────────────────────────────────────────────────────────
            # THE HINTS
            # ─────────────────────────────────────────────────────────────
            # family=AF_UNSPEC  → return both A and AAAA results
            # type=SOCK_STREAM  → one row per address (not one per
            #                     socket type), with a TCP protocol
            results = self._getaddrinfo(host, service, family, socket.SOCK_STREAM)
        except socket.gaierror as e:
            # gaierror: the resolver's own diagnostic, e.g.
            # "[Errno -2] Name or service not known"
            logger.debug(f"Resolution of {host}:{service} failed: {e}")
            raise ResolutionError(str(e), host=host, service=service) from e
        except UnicodeError as e:
            # IDNA encoding rejects labels like "a..b" or > 63 chars
            raise ResolutionError(
                f"Invalid hostname {host!r}: {e}", host=host, service=service
            ) from e
        except OSError as e:
            raise ResolutionError(str(e), host=host, service=service) from e

        if timeout is not None and self._clock() - started > timeout:
            raise DialTimeoutError(
                f"Resolving {host}:{service} took longer than {timeout}s",
                host=host,
                service=service,
            )

        candidates = _to_candidates(results)
        if not candidates:
            raise ResolutionError(
                f"No addresses found for {host}:{service}",
                host=host,
                service=service,
            )

        logger.debug(
            f"Resolved {host}:{service} to {len(candidates)} candidate(s): "
            + ", ".join(str(c) for c in candidates)
        )
        return candidates


class StaticResolver(Resolver):
    """
    Resolver that always answers with the same candidates.

    Useful when the addresses are already known, and as a test double.
    """

    def __init__(self, candidates: Iterable[CandidateEndpoint]):
        self._candidates: Candidates = tuple(candidates)

    def resolve(
        self,
        host: str,
        service: str,
        family: int = socket.AF_UNSPEC,
        timeout: Optional[float] = None,
    ) -> Candidates:
        candidates = self._candidates
        if family != socket.AF_UNSPEC:
            candidates = tuple(c for c in candidates if c.family == family)
        if not candidates:
            raise ResolutionError(
                f"No addresses found for {host}:{service}",
                host=host,
                service=service,
            )
        return candidates


def _to_candidates(results: Iterable[tuple]) -> Candidates:
    """Convert getaddrinfo() rows to candidates, keeping order and duplicates."""
    return tuple(CandidateEndpoint.from_addrinfo(entry) for entry in results)
