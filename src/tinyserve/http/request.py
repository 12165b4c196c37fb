"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read from a connection into an HTTPRequest.

The content server only needs two things from a request: the method (for
the access log) and the path (for routing). Headers are parsed as well so
they show up in debug logs, but request bodies are never used.

=============================================================================
REQUEST ANATOMY
=============================================================================

    GET /docs/index.html?v=2 HTTP/1.1\\r\\n     ← Request line
    Host: localhost:3000\\r\\n                   ← Headers
    User-Agent: curl/8.5.0\\r\\n
    \\r\\n                                       ← Separator

    method  = "GET"
    path    = "/docs/index.html"     (decoded, query string removed)
    query   = "v=2"

Any method token is accepted: every method is served identically.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict
from urllib.parse import unquote, urlsplit
import re


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the status code to answer with:
        400 Bad Request                - Malformed request line
        413 Payload Too Large          - Request exceeds size limit
        505 HTTP Version Not Supported - Not HTTP/1.0 or HTTP/1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Header names are stored lowercase (HTTP headers are case-insensitive).
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    query: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    client_address: tuple[str, int] = ("", 0)

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    def get_header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

        Raw bytes
            │
            ├──► size check                → 413 if too large
            ├──► split at \\r\\n\\r\\n        → 400 if missing
            ├──► parse request line        → 400 / 505
            ├──► parse headers             (lenient, lowercase names)
            ▼
        HTTPRequest

    REQUEST_LINE_PATTERN: ^(TOKEN) (URI) (HTTP/X.Y)$

    The method is any RFC 7230 token, not a fixed list, because the server
    answers all methods the same way.
    """

    REQUEST_LINE_PATTERN = re.compile(r"^([!#$%&'*+.^_`|~0-9A-Za-z-]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 64 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw request bytes.

        Args:
            data: Bytes up to and including the blank line after headers.
            client_address: Client's (ip, port), kept for logging.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        lines = header_section.split("\r\n")

        method, path, query, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            query=query,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str, str]:
        """
        Split "METHOD URI VERSION" and decode the path.

        Returns:
            Tuple of (method, path, query, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        # Origin-form ("/a?b") is split by hand: urlsplit would read
        # "//etc/passwd" as a network location.
        if uri.startswith("/"):
            raw_path, _, query = uri.partition("?")
        else:
            parts = urlsplit(uri)
            raw_path, query = parts.path or "/", parts.query

        return method, unquote(raw_path), query, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" lines into a dict with lowercase names.

        Malformed lines are skipped and repeated headers are joined with
        ", " per RFC 7230.
        """
        headers: Dict[str, str] = {}

        for line in lines:
            if not line:
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers
