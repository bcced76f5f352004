"""
=============================================================================
CORE DIAL COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           RESOLVER                                   │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • (host, service) → ordered tuple of CandidateEndpoint             │
    │  • SystemResolver wraps getaddrinfo(AF_UNSPEC, SOCK_STREAM)         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Candidates, in preference order
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                           CONNECTOR                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Tries each candidate in turn: socket() then connect()            │
    │  • First success wins, failed sockets are closed at once            │
    │  • Deadline caps the whole dial                                     │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Exactly one connected socket
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                           CONNECTION                                 │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Byte stream owned by the caller: send(), recv(), iter_chunks()   │
    │  • No framing, no protocol                                          │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .endpoint import CandidateEndpoint, FailureReason, AttemptFailure
from .deadline import Deadline
from .resolver import Resolver, SystemResolver, StaticResolver
from .connection import Connection, ConnectionState
from .connector import Connector, connect, create_socket

__all__ = [
    "CandidateEndpoint",  # One resolved address
    "FailureReason",      # cannot_create_socket | cannot_connect
    "AttemptFailure",     # Why one candidate failed
    "Deadline",           # Overall time budget
    "Resolver",           # Name resolution interface
    "SystemResolver",     # getaddrinfo()-backed resolver
    "StaticResolver",     # Fixed candidate list
    "Connection",         # The byte stream returned on success
    "ConnectionState",    # Connection lifecycle states
    "Connector",          # Resolve + first-success connect loop
    "connect",            # One-call shortcut
    "create_socket",      # Default socket factory
]
