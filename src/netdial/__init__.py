"""
=============================================================================
NETDIAL - Connect to the First Reachable Address
=============================================================================

A hostname is not an address. "example.com" may resolve to several IPv6
and IPv4 addresses, and any of them may be down, filtered, or unroutable
from where you are. netdial resolves the name, tries each address in
order, and hands back the FIRST connection that succeeds:

    from netdial import connect

    with connect("example.com", "http", timeout=5) as conn:
        conn.send(b"GET / HTTP/1.1\\r\\nHost: example.com\\r\\n"
                  b"Connection: close\\r\\n\\r\\n")
        for chunk in conn.iter_chunks():
            print(chunk.decode(errors="replace"), end="")

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    netdial/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m netdial)
    ├── config.py            # DialConfig dataclass
    ├── errors.py            # ResolutionError, ConnectionFailedError, ...
    └── core/
        ├── endpoint.py      # CandidateEndpoint, AttemptFailure
        ├── deadline.py      # Overall time budget
        ├── resolver.py      # getaddrinfo() wrapper
        ├── connector.py     # The first-success connect loop
        └── connection.py    # Byte stream returned to the caller

=============================================================================
WHAT THIS IS NOT
=============================================================================

Not an HTTP client: nothing here builds requests or parses responses.
Not TLS: wrap the returned socket with ssl yourself if you need it.

=============================================================================
"""

__version__ = "1.0.0"

from .config import DialConfig
from .errors import DialError, ResolutionError, ConnectionFailedError, DialTimeoutError
from .core import (
    AttemptFailure,
    CandidateEndpoint,
    Connection,
    ConnectionState,
    Connector,
    Deadline,
    FailureReason,
    Resolver,
    StaticResolver,
    SystemResolver,
    connect,
)

__all__ = [
    "connect",
    "Connector",
    "Connection",
    "ConnectionState",
    "DialConfig",
    "CandidateEndpoint",
    "AttemptFailure",
    "FailureReason",
    "Deadline",
    "Resolver",
    "SystemResolver",
    "StaticResolver",
    "DialError",
    "ResolutionError",
    "ConnectionFailedError",
    "DialTimeoutError",
    "__version__",
]
