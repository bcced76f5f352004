"""
=============================================================================
DIAL CONFIGURATION
=============================================================================

Centralized configuration for resolve-and-connect.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m netdial example.com http --timeout 3            │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── NETDIAL_CONNECT_TIMEOUT=3 python -m netdial ...           │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TIMEOUTS: THREE DIFFERENT CLOCKS
=============================================================================

    connect_timeout   One connect() call. A black-holed address (SYN
                      never answered) can otherwise block for minutes
                      while the kernel retransmits.

    deadline          The WHOLE dial: resolution plus every attempt.
                      Each attempt gets min(connect_timeout, time left).

    io_timeout        Applied to the connection we hand back, for the
                      caller's reads and writes.

All three default to None (no limit): plain blocking sockets.

=============================================================================
"""

import os
import socket
from dataclasses import dataclass
from typing import Optional


FAMILIES = {
    "any": socket.AF_UNSPEC,
    "ipv4": socket.AF_INET,
    "ipv6": socket.AF_INET6,
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class DialConfig:
    """
    Configuration for a Connector.

    Development:
        DialConfig(connect_timeout=2.0, log_level="DEBUG")

    Long-running client talking to flaky hosts:
        DialConfig(connect_timeout=5.0, deadline=15.0, io_timeout=30.0)
    """

    # ─────────────────────────────────────────────────────────────────────
    # TIMEOUTS
    # ─────────────────────────────────────────────────────────────────────

    connect_timeout: Optional[float] = None
    """Per-attempt connect() timeout in seconds. None = block."""

    deadline: Optional[float] = None
    """Overall budget for resolution plus all attempts. None = no limit."""

    io_timeout: Optional[float] = None
    """Timeout set on the returned connection. None = blocking."""

    # ─────────────────────────────────────────────────────────────────────
    # RESOLUTION
    # ─────────────────────────────────────────────────────────────────────

    family: str = "any"
    """
    Address family hint passed to getaddrinfo().
    - "any"  - IPv4 and IPv6 (AF_UNSPEC)
    - "ipv4" - AF_INET only
    - "ipv6" - AF_INET6 only
    """

    # ─────────────────────────────────────────────────────────────────────
    # I/O
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 4096
    """Default read size for Connection.recv() and iter_chunks()."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """Logging level used by the CLI (DEBUG, INFO, WARNING, ERROR)."""

    @property
    def address_family(self) -> int:
        """The socket module constant for family."""
        return FAMILIES[self.family]

    @classmethod
    def from_env(cls) -> "DialConfig":
        """
        Create configuration from environment variables.

        NETDIAL_CONNECT_TIMEOUT   Per-attempt timeout (default: none)
        NETDIAL_DEADLINE          Overall timeout (default: none)
        NETDIAL_IO_TIMEOUT        Connection timeout (default: none)
        NETDIAL_FAMILY            any, ipv4 or ipv6 (default: any)
        NETDIAL_BUFFER_SIZE       Read size in bytes (default: 4096)
        NETDIAL_LOG_LEVEL         Logging level (default: WARNING)
        """
        return cls(
            connect_timeout=_optional_float(os.getenv("NETDIAL_CONNECT_TIMEOUT")),
            deadline=_optional_float(os.getenv("NETDIAL_DEADLINE")),
            io_timeout=_optional_float(os.getenv("NETDIAL_IO_TIMEOUT")),
            family=os.getenv("NETDIAL_FAMILY", "any").lower(),
            buffer_size=int(os.getenv("NETDIAL_BUFFER_SIZE", "4096")),
            log_level=os.getenv("NETDIAL_LOG_LEVEL", "WARNING"),
        )

    def validate(self) -> None:
        """Fail fast on bad values instead of on the first dial."""
        for name in ("connect_timeout", "deadline", "io_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")

        if self.family not in FAMILIES:
            raise ValueError(
                f"Invalid family: {self.family!r}. "
                f"Must be one of: {', '.join(FAMILIES)}."
            )

        if self.buffer_size < 1:
            raise ValueError(f"buffer_size must be >= 1, got {self.buffer_size}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level!r}. "
                f"Must be one of: {', '.join(LOG_LEVELS)}."
            )


def _optional_float(value: Optional[str]) -> Optional[float]:
    # Unset or empty means "no limit"
    if value is None or value.strip() == "":
        return None
    return float(value)
