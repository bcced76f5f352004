"""
Unit tests for the byte-stream Connection, over a real socketpair.
"""

import dataclasses
import socket

import pytest

from netdial.core import Connection, ConnectionState

from conftest import make_candidate


@pytest.fixture
def pair():
    """A connected socket pair: (ours, peer)."""
    ours, peer = socket.socketpair()
    peer.settimeout(5.0)
    ours.settimeout(5.0)
    yield ours, peer
    ours.close()
    peer.close()


@pytest.fixture
def conn(pair):
    ours, _ = pair
    return Connection(socket=ours, endpoint=make_candidate(), buffer_size=4)


class TestSending:
    """Tests for writing to the peer."""

    def test_send_all_bytes(self, conn, pair):
        """Test that every byte reaches the peer and is counted."""
        _, peer = pair

        assert conn.send(b"hello world") == 11

        assert peer.recv(64) == b"hello world"
        assert conn.bytes_sent == 11

    def test_send_after_close_rejected(self, conn):
        """Test that a closed connection refuses writes."""
        conn.close()

        with pytest.raises(ValueError):
            conn.send(b"x")

    def test_shutdown_write_sends_eof(self, conn, pair):
        """Test that half-close gives the peer EOF while reads still work."""
        _, peer = pair

        conn.shutdown_write()

        assert conn.state == ConnectionState.HALF_CLOSED
        assert peer.recv(64) == b""
        peer.sendall(b"reply")
        assert conn.recv() == b"repl"

    def test_send_after_shutdown_rejected(self, conn):
        """Test that a half-closed connection refuses writes."""
        conn.shutdown_write()

        with pytest.raises(ValueError):
            conn.send(b"x")


class TestReading:
    """Tests for reading from the peer."""

    def test_recv_uses_buffer_size(self, conn, pair):
        """Test that recv() reads at most buffer_size bytes by default."""
        _, peer = pair
        peer.sendall(b"abcdefgh")

        assert conn.recv() == b"abcd"
        assert conn.bytes_received == 4

    def test_iter_chunks_until_eof(self, conn, pair):
        """Test the fixed-size read loop stops when the peer closes."""
        _, peer = pair
        peer.sendall(b"0123456789")
        peer.shutdown(socket.SHUT_WR)

        chunks = list(conn.iter_chunks())

        assert b"".join(chunks) == b"0123456789"
        assert all(len(chunk) <= 4 for chunk in chunks)

    def test_read_all(self, conn, pair):
        """Test reading everything until EOF."""
        _, peer = pair
        peer.sendall(b"HTTP/1.0 200 OK\r\n\r\nbody")
        peer.close()

        assert conn.read_all(size=1024) == b"HTTP/1.0 200 OK\r\n\r\nbody"

    def test_recv_zero_reads_nothing(self, conn, pair):
        """Test that an explicit size of 0 is honoured, not replaced by buffer_size."""
        _, peer = pair
        peer.sendall(b"abcdefgh")

        assert conn.recv(0) == b""
        assert conn.bytes_received == 0
        assert conn.recv(8) == b"abcdefgh"

    def test_recv_after_close_rejected(self, conn):
        """Test that a closed connection refuses reads."""
        conn.close()

        with pytest.raises(ValueError):
            conn.recv()


class TestLifecycle:
    """Tests for closing and metadata."""

    def test_close_is_idempotent(self, conn):
        """Test that closing twice is harmless."""
        conn.close()
        conn.close()

        assert conn.closed
        assert conn.state == ConnectionState.CLOSED

    def test_context_manager_closes(self, pair):
        """Test that leaving the with-block closes the socket."""
        ours, _ = pair

        with Connection(socket=ours, endpoint=make_candidate()) as conn:
            assert conn.state == ConnectionState.OPEN

        assert conn.closed
        assert ours.fileno() == -1

    def test_fields(self):
        """Test that the connection only carries client-side bookkeeping."""
        names = [f.name for f in dataclasses.fields(Connection)]

        assert names == [
            "socket", "endpoint", "id", "state", "buffer_size", "bytes_sent", "bytes_received",
        ]

    def test_addresses(self, conn):
        """Test peer address comes from the endpoint."""
        assert conn.peer_address == ("203.0.113.5", 80)
        assert conn.fileno() >= 0
        assert len(conn.id) == 8
