"""
pytest configuration and fixtures.
"""

import socket
import struct
import threading
from typing import Dict, Generator, List, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from netdial import CandidateEndpoint
from netdial.core import Resolver


def make_candidate(
    ip: str = "203.0.113.5",
    port: int = 80,
    family: socket.AddressFamily = socket.AF_INET,
) -> CandidateEndpoint:
    """Build a TCP candidate without touching DNS."""
    address = (ip, port, 0, 0) if family == socket.AF_INET6 else (ip, port)
    return CandidateEndpoint(
        family=family,
        socket_type=socket.SOCK_STREAM,
        protocol=socket.IPPROTO_TCP,
        address=address,
    )


class FakeClock:
    """Manually advanced replacement for time.monotonic()."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TickingClock(FakeClock):
    """Clock that moves forward by step on every read."""

    def __init__(self, step: float, start: float = 1000.0):
        super().__init__(start)
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class StubResolver(Resolver):
    """Resolver that returns fixed candidates (or raises) and records calls."""

    def __init__(self, candidates=(), error: Optional[Exception] = None):
        self.candidates = tuple(candidates)
        self.error = error
        self.calls: List[dict] = []

    def resolve(self, host, service, family=socket.AF_UNSPEC, timeout=None):
        self.calls.append(
            {"host": host, "service": service, "family": family, "timeout": timeout}
        )
        if self.error is not None:
            raise self.error
        return self.candidates


class FakeSocket:
    """Socket double scripted by FakeNetwork."""

    def __init__(self, network: "FakeNetwork", endpoint: CandidateEndpoint):
        self.network = network
        self.endpoint = endpoint
        self.timeouts: List[Optional[float]] = []
        self.connected_to = None
        self.closed = False
        self.sent = bytearray()
        self.inbox: List[bytes] = []
        self.shutdown_how = None

    def settimeout(self, timeout):
        self.timeouts.append(timeout)

    def connect(self, address):
        self.network.events.append(("connect", self.endpoint))
        delay, error = self.network.connect_behaviour.get(self.endpoint, (0.0, None))
        if self.network.clock is not None and delay:
            self.network.clock.advance(delay)
        if error is not None:
            raise error
        self.connected_to = address

    def close(self):
        if not self.closed:
            self.network.events.append(("close", self.endpoint))
        self.closed = True

    def sendall(self, data):
        self.sent.extend(data)

    def recv(self, size):
        if not self.inbox:
            return b""
        chunk = self.inbox.pop(0)
        if len(chunk) > size:
            self.inbox.insert(0, chunk[size:])
            chunk = chunk[:size]
        return chunk

    def shutdown(self, how):
        self.shutdown_how = how

    def getsockname(self):
        return ("192.0.2.10", 50000)

    def fileno(self):
        return 7


class FakeNetwork:
    """
    Socket factory that scripts what happens for each candidate.

    Every socket() and close() is recorded in events, in order, so tests
    can check that attempts are sequential and nothing leaks.
    """

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock
        self.events: List[Tuple[str, CandidateEndpoint]] = []
        self.sockets: List[FakeSocket] = []
        self.create_errors: Dict[CandidateEndpoint, Exception] = {}
        self.connect_behaviour: Dict[CandidateEndpoint, Tuple[float, Optional[BaseException]]] = {}

    def unsupported(self, endpoint, error: Optional[OSError] = None):
        self.create_errors[endpoint] = error or OSError(
            97, "Address family not supported by protocol"
        )

    def refuse(self, endpoint, error: Optional[BaseException] = None, after: float = 0.0):
        self.connect_behaviour[endpoint] = (
            after,
            error if error is not None else ConnectionRefusedError(111, "Connection refused"),
        )

    def accept(self, endpoint, after: float = 0.0):
        self.connect_behaviour[endpoint] = (after, None)

    def __call__(self, endpoint: CandidateEndpoint) -> FakeSocket:
        self.events.append(("create", endpoint))
        if endpoint in self.create_errors:
            raise self.create_errors[endpoint]
        sock = FakeSocket(self, endpoint)
        self.sockets.append(sock)
        return sock

    def created_for(self, endpoint) -> List[FakeSocket]:
        return [s for s in self.sockets if s.endpoint == endpoint]

    def attempted(self) -> List[CandidateEndpoint]:
        return [endpoint for kind, endpoint in self.events if kind == "connect"]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def network(fake_clock: FakeClock) -> FakeNetwork:
    return FakeNetwork(clock=fake_clock)


@pytest.fixture
def candidates_abc() -> Tuple[CandidateEndpoint, ...]:
    """Three distinct candidates A, B, C."""
    return (
        make_candidate("2001:db8::1", 80, socket.AF_INET6),
        make_candidate("203.0.113.5", 80),
        make_candidate("203.0.113.6", 80),
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class EchoServer:
    """Loopback TCP server that echoes one connection at a time, in a background thread."""

    def __init__(self, host: str = "127.0.0.1"):
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind((host, 0))
        self._listener.listen(8)
        self._listener.settimeout(0.2)
        self.host = host
        self.port = self._listener.getsockname()[1]
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self.accepted = 0

    def start(self):
        """Start server in background thread."""
        self._running = True
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while self._running:
            try:
                client, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            self.accepted += 1
            with client:
                self._handle(client)

    def _handle(self, client: socket.socket):
        client.settimeout(5.0)
        try:
            # Echo until the client half-closes, then close our side
            while True:
                data = client.recv(4096)
                if not data:
                    break
                client.sendall(data)
        except OSError:
            pass

    def stop(self):
        """Stop the server."""
        self._running = False
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._listener.close()


@pytest.fixture
def echo_server() -> Generator[EchoServer, None, None]:
    """Create a running loopback echo server."""
    server = EchoServer()
    server.start()

    yield server

    server.stop()


class ResettingServer(EchoServer):
    """Accepts, then aborts every connection with an RST instead of a FIN."""

    def _handle(self, client: socket.socket):
        # Linger on with a zero timeout: close() discards buffers and sends RST
        client.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))


@pytest.fixture
def resetting_server() -> Generator[ResettingServer, None, None]:
    """Create a running loopback server that resets every connection."""
    server = ResettingServer()
    server.start()

    yield server

    server.stop()
