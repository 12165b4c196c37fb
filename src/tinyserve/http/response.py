"""
=============================================================================
HTTP RESPONSES
=============================================================================

Turns a routing decision into the bytes that go back on the wire.

=============================================================================
FROM MATCH TO RESPONSE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  build_response(match) DECISIONS                    │
    ├──────────────────┬────────┬──────────────────┬──────────────────────┤
    │  Match           │ Status │ Content-Type     │ Body                 │
    ├──────────────────┼────────┼──────────────────┼──────────────────────┤
    │  RawMatch        │  200   │ (none)           │ text                 │
    │  HtmlMatch       │  200   │ text/html        │ markup               │
    │  FileMatch ok    │  200   │ text/html        │ file bytes           │
    │  FileMatch fail  │  404   │ text/html        │ empty                │
    │  ExplicitRaw     │ route  │ route (or none)  │ content              │
    │                  │ or 200 │                  │                      │
    │  NoMatch         │  404   │ text/html        │ empty                │
    └──────────────────┴────────┴──────────────────┴──────────────────────┘

File responses are always text/html, whatever the file extension or the
type declared on the route.

A response with no Content-Type is sent as text/plain when serialized.
A raw route declaring 1xx, 204 or 304 is sent with headers only.

=============================================================================
BUILDER PATTERN
=============================================================================

    ResponseBuilder()
        .status(HTTPStatus.NOT_FOUND)
        .content_type(HTML_CONTENT_TYPE)
        .build()

Each method returns self, build() returns the HTTPResponse.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Union

from .router import (
    ExplicitRaw,
    FileMatch,
    HtmlMatch,
    MatchResult,
    NoMatch,
    RawMatch,
)
from .status_codes import HTTPStatus, reason_phrase


logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html"
DEFAULT_CONTENT_TYPE = "text/plain; charset=utf-8"
DEFAULT_SERVER_NAME = "tiny-serve"


class FileReadFailure(Exception):
    """
    Raised when a matched file cannot be read.

    Always recovered into a 404 by build_response(); it never reaches the
    server loop.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot read {path!r}: {reason}")
        self.path = path
        self.reason = reason


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    ``status`` is a plain int because raw routes may declare codes that
    HTTPStatus does not list.
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Status line, e.g. "HTTP/1.1 404 Not Found"."""
        return f"{self.version} {int(self.status)} {reason_phrase(self.status)}"

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    @property
    def allows_body(self) -> bool:
        status = int(self.status)
        return status >= 200 and status not in (204, 304)

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the response for socket.sendall().

            HTTP/1.1 200 OK\\r\\n             ← Status line
            Content-Type: text/html\\r\\n
            Content-Length: 27\\r\\n          ← Auto-calculated
            Date: Mon, 19 Oct 2026 ...\\r\\n  ← Auto-added
            Server: tiny-serve\\r\\n          ← Auto-added
            \\r\\n                            ← Separator
            <h1>Hello</h1>                 ← Body bytes

        Headers already present are left untouched; the instance is not
        modified.

        1xx, 204 and 304 responses never carry a body (RFC 7230 §3.3), so
        for those the body, Content-Type and Content-Length are left out.
        """
        response_headers = dict(self.headers)
        body = self.body

        if self.allows_body:
            # Untyped responses go out as plain text
            response_headers.setdefault("Content-Type", DEFAULT_CONTENT_TYPE)
            response_headers.setdefault("Content-Length", str(len(body)))
        else:
            body = b""
            response_headers.pop("Content-Type", None)
            response_headers.pop("Content-Length", None)

        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .html("<h1>Welcome</h1>")
            .build())
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: Optional[str]) -> "ResponseBuilder":
        """Set Content-Type; None leaves the response untyped."""
        if content_type is not None:
            self._headers["Content-Type"] = content_type
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the body, encoding strings as UTF-8."""
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def html(self, markup: Union[str, bytes]) -> "ResponseBuilder":
        return self.content_type(HTML_CONTENT_TYPE).body(markup)

    def close_connection(self) -> "ResponseBuilder":
        return self.header("Connection", "close")

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# FILE READING
# =============================================================================

def read_file(path: Union[str, Path]) -> bytes:
    """
    Read a whole file into memory.

    Raises:
        FileReadFailure: The file is missing, a directory, unreadable, or
            the path is not valid on this platform.
    """
    try:
        return Path(path).read_bytes()
    except (OSError, ValueError) as e:
        # ValueError covers paths with embedded NUL bytes
        reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
        raise FileReadFailure(str(path), reason) from e


# =============================================================================
# DISPATCH
# =============================================================================

def not_found() -> HTTPResponse:
    """404 with a text/html type and an empty body."""
    return (ResponseBuilder()
        .status(HTTPStatus.NOT_FOUND)
        .content_type(HTML_CONTENT_TYPE)
        .build())


def build_response(match: MatchResult) -> HTTPResponse:
    """
    Convert a routing decision into a response.

    The only I/O performed is the single read behind a FileMatch. A file
    that cannot be read becomes a 404; nothing here raises for it.

    Args:
        match: Result from the router.

    Returns:
        The response to send.
    """
    if isinstance(match, RawMatch):
        return ResponseBuilder().body(match.text).build()

    if isinstance(match, HtmlMatch):
        return ResponseBuilder().html(match.markup).build()

    if isinstance(match, FileMatch):
        try:
            content = read_file(match.path)
        except FileReadFailure as e:
            logger.warning(str(e))
            return not_found()
        return ResponseBuilder().html(content).build()

    if isinstance(match, ExplicitRaw):
        return (ResponseBuilder()
            .status(match.status if match.status is not None else HTTPStatus.OK)
            .content_type(match.content_type)
            .body(match.content)
            .build())

    if isinstance(match, NoMatch):
        return not_found()

    raise TypeError(f"Unknown match result: {match!r}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Always GMT, never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )
