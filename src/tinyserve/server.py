"""
=============================================================================
CONTENT SERVER
=============================================================================

Drives one request at a time through the content pipeline.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer.accept()                                              │
    │        │                                                             │
    │        ▼                                                             │
    │   Connection.read_request()      raw head bytes                      │
    │        │                                                             │
    │        ▼                                                             │
    │   RequestParser.parse()          method + path   (400/413/505 here)  │
    │        │                                                             │
    │        ▼                                                             │
    │   Router.match(path)             RawMatch / FileMatch / NoMatch ...  │
    │        │                                                             │
    │        ▼                                                             │
    │   build_response(match)          status + type + body                │
    │        │                                                             │
    │        ▼                                                             │
    │   RequestLog.record()            "200: GET /index.html"              │
    │        │                                                             │
    │        ▼                                                             │
    │   Connection.send_response()     Connection: close                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The content spec is resolved before the server starts and never changes,
so nothing here needs a lock.

=============================================================================
FAILURE POLICY
=============================================================================

    File cannot be read       → 404, logged, server keeps running
    Malformed request         → parser's status code, server keeps running
    Client silent / gone      → connection dropped, server keeps running
    Port cannot be bound      → BindFailure, run() ends
    Response cannot be sent   → RespondFailure, run() ends

Nothing is retried.

=============================================================================
"""

import logging
from typing import Optional

from .access_log import RequestLog, configure_access_logger
from .config import ServeConfig
from .core import BindError, SocketServer, Connection, ConnectionState, RequestTooLarge
from .http import (
    HTTPParseError,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    ResponseBuilder,
    Router,
    build_response,
    HTML_CONTENT_TYPE,
)


logger = logging.getLogger(__name__)


class ServerError(Exception):
    """Fatal error that stops the server."""


class BindFailure(ServerError):
    """The listening socket could not be bound."""


class RespondFailure(ServerError):
    """A response could not be written to the client."""


class ContentServer:
    """
    Serves one ContentSpec over HTTP.

    Usage:
        config = ServeConfig.build(["-p", "8000", "hello"])
        ContentServer(config).run()    # blocks until Ctrl+C
    """

    def __init__(self, config: ServeConfig, request_log: Optional[RequestLog] = None):
        self.config = config
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = Router(self.config.content)
        self._request_log = request_log or RequestLog()

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> tuple[str, int]:
        return self._socket_server.address

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, method: str, path: str) -> HTTPResponse:
        """
        Route and build the response for one request, and record it.

        The method never influences routing.
        """
        response = build_response(self._router.match(path))
        self._request_log.record(method, path, response.status)
        return response

    def _handle_connection(self, conn: Connection):
        """
        Answer the single request carried by ``conn``.

        Raises:
            RespondFailure: If the response could not be sent.
        """
        with conn:
            try:
                raw_request = conn.read_request()
            except TimeoutError:
                logger.debug(f"[{conn.id}] Client sent nothing, dropping connection")
                return
            except OSError as e:
                logger.warning(f"[{conn.id}] Read failed: {e}")
                return
            except RequestTooLarge as e:
                logger.warning(f"[{conn.id}] {e}")
                self._reject(conn, HTTPStatus.PAYLOAD_TOO_LARGE)
                return

            if raw_request is None:
                return

            try:
                request = self._parser.parse(raw_request, conn.address)
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                self._reject(conn, e.status_code)
                return

            conn.state = ConnectionState.PROCESSING
            logger.debug(f"[{conn.id}] {request.method} {request.path} ({request.user_agent or '-'})")

            response = self.handle(request.method, request.path)
            response.headers["Connection"] = "close"
            self._send(conn, response)

    def _send(self, conn: Connection, response: HTTPResponse):
        if not conn.send_response(response.to_bytes(self.config.server_name)):
            raise RespondFailure(f"Failed to respond to request from {conn.client_ip}")

    def _reject(self, conn: Connection, status: int):
        """Answer a request that never reached routing; method and path are unknown."""
        response = (ResponseBuilder()
            .status(status)
            .content_type(HTML_CONTENT_TYPE)
            .close_connection()
            .build())
        self._request_log.record("-", "-", response.status)
        self._send(conn, response)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Bind and serve until shutdown() or SIGINT/SIGTERM.

        Raises:
            BindFailure: The port could not be bound.
            RespondFailure: A response could not be sent.
        """
        logger.info(f"Serving on {self.config.listening_addr}")
        for line in self._router.describe():
            logger.info(f"  {line}")

        try:
            self._socket_server.start(self._handle_connection)
        except BindError as e:
            raise BindFailure(f"Failed to bind to {self.config.listening_addr}: {e}") from e

        logger.info("Server stopped")

    def shutdown(self):
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)


def setup_logging(level: str = "INFO"):
    """
    Configure diagnostics on stderr and the access log on stdout.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("tinyserve").setLevel(numeric_level)

    configure_access_logger()
