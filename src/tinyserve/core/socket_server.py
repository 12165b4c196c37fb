"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Listens on host:port, accepts connections and hands each one to a
callback. Everything HTTP-specific lives above this layer.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create the listening socket
    2. bind()      Reserve host:port          ← fails if the port is taken
    3. listen()    Start queueing connections
    4. accept()    Wait for a client, get a NEW socket for it
    5. close()     Release the listening socket on shutdown

The accept loop is single-threaded: the callback finishes with one
connection before the next accept().

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR: restart immediately instead of waiting out TIME_WAIT.
TCP_NODELAY:  small responses go out at once (no Nagle batching).
timeout 1.0:  accept() wakes up every second to notice shutdown().

=============================================================================
SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) call shutdown(), so the
current request finishes and the socket is closed cleanly. Python only
allows installing handlers from the main thread; elsewhere (e.g. a test
running the server in a background thread) they are skipped.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServeConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class BindError(OSError):
    """bind() or listen() failed; nothing was served."""


class SocketServer:
    """
    Low-level TCP socket server.

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()

    Socket creation is deferred to start(), so constructing a
    SocketServer never touches the network.
    """

    def __init__(self, config: ServeConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port), or the configured one before binding."""
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen, and accept connections until shutdown().

        Args:
            connection_handler: Called with each accepted Connection. An
                exception raised here stops the server and propagates.

        Raises:
            BindError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            self._socket.close()
            self._socket = None
            raise BindError(*e.args) from e

        self._running = True
        self._setup_signals()
        self._ready.set()

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Check _running again
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Stop accepting. Safe to call from a signal handler or another thread."""
        self._running = False

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready.wait(timeout)

    def _cleanup(self):
        self._running = False
        self._ready.clear()
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        logger.info("Socket server stopped")
