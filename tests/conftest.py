"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional, Tuple

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserve import ServerConfig, StaticServer
from staticserve.core import Connection


INDEX_BODY = b"hello world\n"
PAGE_404_BODY = b"<html><body>custom not found</body></html>\n"


# =============================================================================
# RAW RESPONSE PARSING
# =============================================================================

ParsedResponse = Tuple[str, Dict[str, str], bytes]


def split_responses(raw: bytes) -> List[ParsedResponse]:
    """
    Split raw bytes into (status_line, headers, body) tuples.

    Uses Content-Length to find where each body ends, so back-to-back
    responses on one connection come out separately.
    """
    responses = []
    while raw:
        head, sep, rest = raw.partition(b"\r\n\r\n")
        assert sep, f"Unterminated response head: {raw[:80]!r}"

        lines = head.decode("latin-1").split("\r\n")
        headers = {}
        for line in lines[1:]:
            name, _, value = line.partition(": ")
            headers[name] = value

        length = int(headers["Content-Length"])
        responses.append((lines[0], headers, rest[:length]))
        raw = rest[length:]
    return responses


def split_response(raw: bytes) -> ParsedResponse:
    """Parse exactly one response."""
    responses = split_responses(raw)
    assert len(responses) == 1, f"Expected one response, got {len(responses)}"
    return responses[0]


# =============================================================================
# FAKE SOCKET
# =============================================================================

class FakeSocket:
    """
    Stands in for an accepted client socket.

    Records everything written and every close() so tests can check the
    exact bytes and that the connection was closed exactly once.
    """

    def __init__(self, incoming: bytes = b"", fail_after_sends: Optional[int] = None,
                 recv_error: Optional[Exception] = None):
        self.incoming = incoming
        self.sent = bytearray()
        self.send_calls = 0
        self.recv_calls = 0
        self.close_calls = 0
        self.timeout = "unset"
        self.fail_after_sends = fail_after_sends
        self.recv_error = recv_error

    def settimeout(self, timeout):
        self.timeout = timeout

    def recv(self, size: int) -> bytes:
        self.recv_calls += 1
        if self.recv_error is not None:
            raise self.recv_error
        data, self.incoming = self.incoming[:size], self.incoming[size:]
        return data

    def sendall(self, data: bytes):
        if self.fail_after_sends is not None and self.send_calls >= self.fail_after_sends:
            raise BrokenPipeError("peer closed")
        self.send_calls += 1
        self.sent += data

    def shutdown(self, how):
        pass

    def close(self):
        self.close_calls += 1


@pytest.fixture
def make_connection() -> Callable[..., Connection]:
    """Factory: Connection over a FakeSocket preloaded with request bytes."""
    def factory(incoming: bytes = b"", **kwargs) -> Connection:
        return Connection(
            socket=FakeSocket(incoming, **kwargs),
            address=("127.0.0.1", 54321),
            buffer_size=8192,
        )
    return factory


# =============================================================================
# FILESYSTEM
# =============================================================================

@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    """
    A small site:

        www/
        ├── index.html      "hello world\\n" (12 bytes)
        ├── style.css       empty
        ├── app.JS          upper-case extension
        ├── README          no extension
        ├── big.bin         3 chunks and a bit
        └── docs/
            └── guide.txt
    """
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_BODY)
    (root / "style.css").write_bytes(b"")
    (root / "app.JS").write_bytes(b"console.log(1);\n")
    (root / "README").write_bytes(b"plain readme\n")
    (root / "big.bin").write_bytes(bytes(range(256)) * 100)  # 25600 bytes
    (root / "docs").mkdir()
    (root / "docs" / "guide.txt").write_bytes(b"guide\n")
    return root


@pytest.fixture
def page_404(tmp_path: Path) -> Path:
    """Custom 404 page, outside the web root."""
    status_dir = tmp_path / "status"
    status_dir.mkdir()
    page = status_dir / "404.html"
    page.write_bytes(PAGE_404_BODY)
    return page


@pytest.fixture
def config(web_root: Path, page_404: Path) -> ServerConfig:
    """Test configuration: loopback, OS-picked port, no pacing."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        web_root=str(web_root),
        page_404=str(page_404),
        chunk_size=8192,
        accept_delay=0,
        timeout=5.0,
    )


# =============================================================================
# LIVE SERVER
# =============================================================================

class TestServer:
    """Runs a StaticServer on a background thread."""

    __test__ = False  # Not a test class, despite the name

    def __init__(self, server: StaticServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()
        if not self.server.wait_until_ready(5.0):
            raise RuntimeError("Server failed to start")

    @property
    def port(self) -> int:
        return self.server.address[1]

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes, half_close: bool = False) -> bytes:
        """Send raw bytes, read until the server closes, return everything."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as s:
            if raw:
                s.sendall(raw)
            if half_close:
                s.shutdown(socket.SHUT_WR)
            chunks = []
            while True:
                chunk = s.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def live_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running server over the web_root fixture."""
    test_srv = TestServer(StaticServer(config))
    test_srv.start()

    yield test_srv

    test_srv.stop()
