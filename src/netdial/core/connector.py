"""
=============================================================================
RESOLVE AND CONNECT: FIRST REACHABLE ADDRESS WINS
=============================================================================

This module turns a (host, service) pair into ONE open connection.

=============================================================================
SOCKET LIFECYCLE (Client Side)
=============================================================================

    1. getaddrinfo()  Translate name → ordered list of candidates
                      └─ May return IPv6 AND IPv4 addresses

    2. socket()       Create a socket matching ONE candidate
                      └─ family/type/proto come from the candidate
                      └─ Can fail! (e.g. IPv6 disabled on this host)

    3. connect()      TCP 3-way handshake with the candidate
                      └─ BLOCKS until SYN-ACK arrives or it fails
                      └─ Refused, unreachable, timed out...

    4. On failure     close() that socket, go back to step 2 with the
                      NEXT candidate

    5. On success     STOP. Hand the socket to the caller.

=============================================================================
THE LOOP
=============================================================================

    candidates = [A, B, C]

        ┌──────────────┐
        │  resolving   │── ResolutionError ──► raise (0 attempts)
        └──────┬───────┘
               ▼
        ┌──────────────┐   socket() fails     record CANNOT_CREATE_SOCKET
        │ attempting A │─────────────────────► next
        └──────┬───────┘   connect() fails    record CANNOT_CONNECT,
               │           ──────────────────► close(A), next
               ▼
        ┌──────────────┐
        │ attempting B │── connect() ok ──► connected: return B
        └──────────────┘                    (C is NEVER tried)

    ...list exhausted ──► failed: raise ConnectionFailedError
                          (reason/detail from the LAST attempt)

This is FIRST-success, not best-of-N: the resolver already sorted the
candidates by preference, so the first one that answers is good enough.
Attempts are strictly sequential. A parallel "Happy Eyeballs" race
(RFC 8305) would be faster for dual-stack hosts with a broken IPv6 path,
but it is not what this component does.

=============================================================================
NO LEAKS ON ANY EXIT PATH
=============================================================================

Every socket we create is either:
    - returned to the caller (exactly one, on success), or
    - closed BEFORE the next attempt begins.

The close happens in a `finally:` block, so it also runs when something
other than an OSError escapes connect() (Ctrl+C, a bug in a test double).

=============================================================================
"""

import socket
import time
import logging
from typing import Callable, List, Optional

from ..config import DialConfig
from ..errors import ConnectionFailedError, DialTimeoutError, ResolutionError
from .connection import Connection
from .deadline import Deadline
from .endpoint import AttemptFailure, CandidateEndpoint, FailureReason
from .resolver import Candidates, Resolver, SystemResolver


logger = logging.getLogger(__name__)


SocketFactory = Callable[[CandidateEndpoint], socket.socket]


def create_socket(endpoint: CandidateEndpoint) -> socket.socket:
    """Create an unconnected socket matching the candidate's family/type/proto."""
    return socket.socket(endpoint.family, endpoint.socket_type, endpoint.protocol)


class Connector:
    """
    Resolves a name and connects to the first candidate that answers.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Connector Internals                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    connect(host, service)                                            │
    │        │                                                             │
    │        ├──► Deadline(config.deadline)     Start the overall clock    │
    │        │                                                             │
    │        ├──► resolver.resolve()            Ordered candidate tuple    │
    │        │                                                             │
    │        └──► for each candidate:                                      │
    │                 _attempt(candidate)                                  │
    │                     ├── socket_factory()  Create socket              │
    │                     ├── settimeout()      min(per-attempt, left)     │
    │                     └── connect()         Handshake                  │
    │                 success → Connection(sock)                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        connector = Connector(DialConfig(connect_timeout=5.0))
        with connector.connect("example.test", "http") as conn:
            conn.send(b"GET / HTTP/1.1\\r\\nHost: example.test\\r\\n\\r\\n")
            print(conn.read_all())

    Both collaborators can be replaced:
        resolver: anything implementing Resolver (default: getaddrinfo)
        socket_factory: CandidateEndpoint -> socket (default: socket.socket)
    """

    def __init__(
        self,
        config: Optional[DialConfig] = None,
        resolver: Optional[Resolver] = None,
        socket_factory: Optional[SocketFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or DialConfig()
        self.config.validate()
        self.resolver = resolver or SystemResolver()
        self.socket_factory = socket_factory or create_socket
        self._clock = clock

    def resolve(self, host: str, service: str, deadline: Optional[Deadline] = None) -> Candidates:
        """Resolve host/service into candidates without connecting."""
        if not host:
            raise ValueError("host must be a non-empty string")
        if not service:
            raise ValueError("service must be a non-empty string")

        deadline = deadline or Deadline(self.config.deadline, clock=self._clock)
        candidates = tuple(self.resolver.resolve(
            host,
            service,
            family=self.config.address_family,
            timeout=deadline.remaining(),
        ))

        # No addresses means no attempt is possible
        if not candidates:
            raise ResolutionError(
                f"No addresses found for {host}:{service}",
                host=host,
                service=service,
            )
        return candidates

    def connect(self, host: str, service: str) -> Connection:
        """
        Connect to the first reachable address of host:service.

        Args:
            host: Hostname or literal IP address.
            service: Port number as a string, or a service name ("http").

        Returns:
            An open Connection. The caller owns it and must close it.

        Raises:
            ValueError: host or service is empty.
            ResolutionError: The name could not be resolved (no attempts made).
            ConnectionFailedError: Every candidate failed. reason and detail
                describe the last attempt; attempts lists all of them.
            DialTimeoutError: The overall deadline ran out.
        """
        # Accept 80 as well as "80"
        service = "" if service is None else str(service)
        deadline = Deadline(self.config.deadline, clock=self._clock)

        # ResolutionError propagates untouched: fatal to this call, no retry
        candidates = self.resolve(host, service, deadline)

        failures: List[AttemptFailure] = []

        for index, endpoint in enumerate(candidates, start=1):
            # One clock read per attempt: a zero timeout would make
            # settimeout() switch the socket to non-blocking mode
            attempt_timeout = deadline.clamp(self.config.connect_timeout)
            if attempt_timeout is not None and attempt_timeout <= 0:
                raise DialTimeoutError(
                    f"Deadline of {self.config.deadline}s exceeded after "
                    f"{len(failures)} attempt(s) to {host}:{service}",
                    host=host,
                    service=service,
                    attempts=failures,
                )

            logger.debug(f"Attempt {index}/{len(candidates)}: {endpoint}")
            sock = self._attempt(endpoint, attempt_timeout, failures)

            if sock is not None:
                logger.info(f"Connected to {host}:{service} via {endpoint}")
                return Connection(
                    socket=sock,
                    endpoint=endpoint,
                    buffer_size=self.config.buffer_size,
                )

        # ─────────────────────────────────────────────────────────────────
        # EXHAUSTED
        # ─────────────────────────────────────────────────────────────────
        # Report the last failure in the message; keep all of them on the
        # exception for callers that want the full picture.

        last = failures[-1]
        error_class = DialTimeoutError if deadline.expired else ConnectionFailedError
        raise error_class(
            f"Could not connect to {host}:{service} "
            f"({len(failures)} candidate(s) tried; last: {last})",
            host=host,
            service=service,
            attempts=failures,
        )

    def _attempt(
        self,
        endpoint: CandidateEndpoint,
        timeout: Optional[float],
        failures: List[AttemptFailure],
    ) -> Optional[socket.socket]:
        """
        Try one candidate with a connect timeout (None = block).

        Returns the connected socket, or None after recording the failure.
        A socket that is not returned is always closed.
        """
        try:
            sock = self.socket_factory(endpoint)
        except OSError as e:
            # Nothing was opened, nothing to clean up
            logger.debug(f"Cannot create socket for {endpoint}: {e}")
            failures.append(
                AttemptFailure.from_error(endpoint, FailureReason.CANNOT_CREATE_SOCKET, e)
            )
            return None

        connected = False
        try:
            sock.settimeout(timeout)
            sock.connect(endpoint.address)

            # The connect timeout must not leak into the caller's I/O
            sock.settimeout(self.config.io_timeout)
            connected = True
            return sock

        except OSError as e:
            # ConnectionRefusedError, TimeoutError, OSError(EHOSTUNREACH)...
            logger.debug(f"Cannot connect to {endpoint}: {str(e) or type(e).__name__}")
            failures.append(
                AttemptFailure.from_error(endpoint, FailureReason.CANNOT_CONNECT, e)
            )
            return None

        finally:
            if not connected:
                sock.close()


def connect(
    host: str,
    service,
    *,
    timeout: Optional[float] = None,
    deadline: Optional[float] = None,
    io_timeout: Optional[float] = None,
    family: str = "any",
    resolver: Optional[Resolver] = None,
    socket_factory: Optional[SocketFactory] = None,
) -> Connection:
    """
    Connect to the first reachable address of host:service.

    Shortcut for Connector(DialConfig(...)).connect(host, service).

        conn = connect("example.test", "http", timeout=5)
    """
    config = DialConfig(
        connect_timeout=timeout,
        deadline=deadline,
        io_timeout=io_timeout,
        family=family,
    )
    connector = Connector(config, resolver=resolver, socket_factory=socket_factory)
    return connector.connect(host, service)
