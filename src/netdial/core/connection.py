"""
=============================================================================
CONNECTION: THE BYTE STREAM HANDED TO THE CALLER
=============================================================================

Once connect() succeeds, the caller owns ONE open socket. This module wraps
it with a small API for writing and reading bytes.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    We send:
        send(b"GET / HTTP/1.1\r\nHost: example.test\r\n\r\n")

    The server's reply may arrive in ANY split:
        recv() → b"HTTP/1.1 200 OK\r\nCont"
        recv() → b"ent-Length: 5\r\n\r\nhel"
        recv() → b"lo"
        recv() → b""            ← peer closed: end of stream

TCP only guarantees bytes arrive IN ORDER and INTACT. Where one message
ends and the next begins is the job of the protocol ON TOP (HTTP,
Redis, ...). This class deliberately imposes no framing at all: it moves
bytes, and the caller decides what they mean.

=============================================================================
THE READ LOOP
=============================================================================

The classic client loop reads fixed-size chunks until recv() returns an
empty bytes object, which is how the OS reports "peer closed":

    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break          # EOF
        out.write(chunk)

iter_chunks() is that loop as a generator.

=============================================================================
HALF-CLOSE
=============================================================================

For request/response exchanges where the server reads until EOF, we can
close only OUR direction:

    Client                               Server
       │   request bytes ──────────────►   │
       │   FIN  ───────────────────────►   │  shutdown(SHUT_WR)
       │                                   │  server sees EOF, replies
       │   ◄──────────────── reply bytes   │
       │   ◄─────────────────────── FIN    │
    close()                              close()

=============================================================================
"""

import socket
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Iterator, Optional
import uuid

from .endpoint import CandidateEndpoint


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    OPEN = "open"                # Both directions usable
    HALF_CLOSED = "half_closed"  # We sent FIN, can still read
    CLOSED = "closed"            # Socket released


@dataclass
class Connection:
    """
    An established byte-stream connection owned by the caller.

    Usage:
        with connect("example.test", "http") as conn:
            conn.send(b"GET / HTTP/1.1\\r\\nHost: example.test\\r\\n\\r\\n")
            for chunk in conn.iter_chunks():
                sys.stdout.buffer.write(chunk)

    Attributes:
        socket: The connected socket.
        endpoint: The candidate this connection was made to.
        id: Short unique identifier (for logging).
        state: Current connection state.
        buffer_size: Default read size for recv() and iter_chunks().
        bytes_sent: Total bytes written.
        bytes_received: Total bytes read.
    """

    # Required parameters
    socket: socket.socket
    endpoint: CandidateEndpoint

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.OPEN
    buffer_size: int = 4096
    bytes_sent: int = 0
    bytes_received: int = 0

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def peer_address(self):
        """The remote sockaddr we connected to."""
        return self.endpoint.address

    @property
    def local_address(self):
        """The local sockaddr the OS picked for us (ephemeral port)."""
        return self.socket.getsockname()

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    def fileno(self) -> int:
        """File descriptor of the socket, for select()/selectors."""
        return self.socket.fileno()

    def settimeout(self, timeout: Optional[float]) -> None:
        """Change the read/write timeout. None = block forever."""
        self.socket.settimeout(timeout)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> int:
        """
        Write all of data to the peer.

        Uses sendall(), which loops over send() until every byte has been
        handed to the kernel. A plain send() may write only part of it.

        Returns:
            Number of bytes written.

        Raises:
            ValueError: The connection is closed or half-closed.
            OSError: The peer went away (reset, broken pipe, timeout).
        """
        if self.state != ConnectionState.OPEN:
            raise ValueError(f"Cannot send on a {self.state.value} connection")

        self.socket.sendall(data)
        self.bytes_sent += len(data)
        return len(data)

    def shutdown_write(self) -> None:
        """Send FIN: tell the peer we are done writing. Reads still work."""
        if self.state != ConnectionState.OPEN:
            return
        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError as e:
            # Peer already gone; the next recv() will report it
            logger.debug(f"[{self.id}] shutdown(SHUT_WR) failed: {e}")
        self.state = ConnectionState.HALF_CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def recv(self, size: Optional[int] = None) -> bytes:
        """
        Read up to size bytes. b"" means the peer closed the stream.

        Raises:
            ValueError: The connection is closed.
            OSError: Read error or timeout.
        """
        if self.closed:
            raise ValueError("Cannot read from a closed connection")

        data = self.socket.recv(self.buffer_size if size is None else size)
        self.bytes_received += len(data)
        return data

    def iter_chunks(self, size: Optional[int] = None) -> Iterator[bytes]:
        """Yield chunks of at most size bytes until the peer closes."""
        while True:
            chunk = self.recv(size)
            if not chunk:
                return
            yield chunk

    def read_all(self, size: Optional[int] = None) -> bytes:
        """Read until end of stream and return everything."""
        return b"".join(self.iter_chunks(size))

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """Release the socket. Safe to call more than once."""
        if self.closed:
            return
        try:
            self.socket.close()
        except OSError:
            pass
        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection to {self.endpoint} closed "
            f"(sent={self.bytes_sent}, received={self.bytes_received})"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
