"""
pytest configuration and fixtures.
"""

import io
import logging
import socket
import threading
from typing import Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinyserve.access_log import ACCESS_LOGGER_NAME, RequestLog
from tinyserve.config import ServeConfig
from tinyserve.content import ContentSpec
from tinyserve.server import ContentServer


@pytest.fixture(autouse=True)
def reset_access_logger():
    """Undo configure_access_logger() between tests."""
    yield
    access = logging.getLogger(ACCESS_LOGGER_NAME)
    for handler in list(access.handlers):
        access.removeHandler(handler)
    access.propagate = True
    access.setLevel(logging.NOTSET)


@pytest.fixture
def site(tmp_path: Path, monkeypatch) -> Path:
    """A working directory with a few pages, made the cwd."""
    (tmp_path / "index.html").write_text("<h1>Home</h1>")
    (tmp_path / "a.html").write_text("<p>A</p>")
    (tmp_path / "chapter1.html").write_text("<h2>Chapter 1</h2>")
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "guide.txt").write_text("read me")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample GET request with a query string and encoded path."""
    return (
        b"GET /docs/my%20guide.html?v=2&lang=en HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


class CapturedLog:
    """RequestLog wired to an in-memory stream."""

    def __init__(self, name: str = "tinyserve.tests.access"):
        self.stream = io.StringIO()
        self.logger = logging.getLogger(name)
        self.logger.handlers.clear()
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.logger.addHandler(handler)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        self.request_log = RequestLog(self.logger)

    @property
    def lines(self) -> list[str]:
        return self.stream.getvalue().splitlines()


@pytest.fixture
def captured_log() -> CapturedLog:
    return CapturedLog()


class RawHTTPResponse:
    """Minimal parse of a response read off the socket."""

    def __init__(self, data: bytes):
        head, _, self.body = data.partition(b"\r\n\r\n")
        lines = head.decode("utf-8").split("\r\n")
        self.status_line = lines[0]
        self.status = int(lines[0].split(" ")[1])
        self.headers = {}
        for line in lines[1:]:
            name, _, value = line.partition(":")
            self.headers[name.strip()] = value.strip()


class TestServer:
    """Runs a ContentServer in a background thread."""

    __test__ = False  # Not a test class

    def __init__(self, server: ContentServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def _run(self):
        try:
            self.server.run()
        except BaseException as e:
            self.error = e

    def start(self):
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError(f"Server failed to start: {self.error}")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def send(self, raw: bytes) -> RawHTTPResponse:
        """Send raw request bytes and read the response until close."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as s:
            s.sendall(raw)
            chunks = []
            while True:
                chunk = s.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return RawHTTPResponse(b"".join(chunks))

    def request(self, method: str, path: str) -> RawHTTPResponse:
        return self.send(
            f"{method} {path} HTTP/1.1\r\n"
            f"Host: 127.0.0.1:{self.port}\r\n"
            f"User-Agent: pytest\r\n"
            f"\r\n".encode()
        )


@pytest.fixture
def serve(captured_log):
    """
    Factory fixture: serve(spec) starts a server on an OS-picked port.
    """
    servers = []

    def start(content: ContentSpec) -> TestServer:
        config = ServeConfig(content=content, port=0, host="127.0.0.1", timeout=2.0)
        test_srv = TestServer(ContentServer(config, request_log=captured_log.request_log))
        test_srv.start()
        servers.append(test_srv)
        return test_srv

    yield start

    for test_srv in servers:
        test_srv.stop()
