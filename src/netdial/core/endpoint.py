"""
=============================================================================
CANDIDATE ENDPOINTS
=============================================================================

getaddrinfo() answers "where is example.com:http?" with a LIST of
addresses, because one name can live in many places:

    getaddrinfo("example.com", "http", AF_UNSPEC, SOCK_STREAM)

    ┌────────────┬─────────────┬──────────────┬───────────┬──────────────────────────────┐
    │ family     │ type        │ proto        │ canonname │ sockaddr                     │
    ├────────────┼─────────────┼──────────────┼───────────┼──────────────────────────────┤
    │ AF_INET6   │ SOCK_STREAM │ IPPROTO_TCP  │ ''        │ ('2606:2800::1', 80, 0, 0)   │
    │ AF_INET    │ SOCK_STREAM │ IPPROTO_TCP  │ ''        │ ('93.184.215.14', 80)        │
    └────────────┴─────────────┴──────────────┴───────────┴──────────────────────────────┘

Each row is everything socket() and connect() need, so we keep it as one
immutable value: a CandidateEndpoint.

The ORDER matters. The system resolver already sorts rows by preference
(RFC 6724), so we never reorder and never deduplicate.

=============================================================================
"""

import socket
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union


# (ip, port) for IPv4, (ip, port, flowinfo, scope_id) for IPv6
SockAddr = Union[Tuple[str, int], Tuple[str, int, int, int]]


@dataclass(frozen=True)
class CandidateEndpoint:
    """
    One resolved address a connection may be attempted against.

    Attributes:
        family: Address family (AF_INET, AF_INET6, ...).
        socket_type: Transport semantics, SOCK_STREAM for us.
        protocol: Protocol number (IPPROTO_TCP, or 0 for "the default").
        address: sockaddr tuple, passed to connect() untouched.
        canonical_name: Canonical host name if the resolver reported one.
    """
    family: socket.AddressFamily
    socket_type: socket.SocketKind
    protocol: int
    address: SockAddr
    canonical_name: str = field(default="", compare=False)

    @classmethod
    def from_addrinfo(cls, entry: tuple) -> "CandidateEndpoint":
        """Build a candidate from one getaddrinfo() 5-tuple."""
        family, socket_type, protocol, canonical_name, address = entry
        return cls(
            family=family,
            socket_type=socket_type,
            protocol=protocol,
            address=tuple(address),
            canonical_name=canonical_name or "",
        )

    @property
    def host(self) -> str:
        return self.address[0]

    @property
    def port(self) -> int:
        return self.address[1]

    @property
    def is_ipv6(self) -> bool:
        return self.family == socket.AF_INET6

    def __str__(self) -> str:
        if self.is_ipv6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


class FailureReason(Enum):
    """Why a single candidate did not produce a connection."""
    CANNOT_CREATE_SOCKET = "cannot_create_socket"  # socket() failed
    CANNOT_CONNECT = "cannot_connect"              # connect() failed


@dataclass(frozen=True)
class AttemptFailure:
    """
    Failure outcome of trying one candidate.

    The success outcome has no record of its own: it is the Connection
    handed back to the caller.
    """
    endpoint: CandidateEndpoint
    reason: FailureReason
    detail: str
    error: Optional[OSError] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_error(
        cls,
        endpoint: CandidateEndpoint,
        reason: FailureReason,
        error: OSError,
    ) -> "AttemptFailure":
        # socket.timeout has an empty strerror, so fall back to a readable text
        detail = str(error) or type(error).__name__
        return cls(endpoint=endpoint, reason=reason, detail=detail, error=error)

    def __str__(self) -> str:
        return f"{self.endpoint}: {self.reason.value}: {self.detail}"
