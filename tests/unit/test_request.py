"""
Unit tests for HTTP request parsing.
"""

import pytest

from tinyserve.http.request import HTTPParseError, HTTPRequest, RequestParser


def parse(data: bytes) -> HTTPRequest:
    return RequestParser().parse(data)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/docs/my guide.html"
        assert request.query == "v=2&lang=en"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that headers are parsed with lowercase names."""
        request = parse(sample_get_request)

        assert request.host == "localhost:3000"
        assert request.user_agent == "pytest"
        assert request.headers["accept"] == "text/html"
        assert request.get_header("ACCEPT") == "text/html"
        assert request.get_header("missing", "none") == "none"

    @pytest.mark.parametrize("method", ["GET", "POST", "DELETE", "BREW", "M-SEARCH"])
    def test_any_method_token(self, method):
        """Test that every method token is accepted."""
        request = parse(f"{method} / HTTP/1.1\r\n\r\n".encode())

        assert request.method == method
        assert request.path == "/"

    def test_http_10(self):
        assert parse(b"GET /a.html HTTP/1.0\r\n\r\n").version == "HTTP/1.0"

    def test_absolute_form(self):
        request = parse(b"GET http://localhost:3000/a.html?x=1 HTTP/1.1\r\n\r\n")

        assert request.path == "/a.html"
        assert request.query == "x=1"

    def test_absolute_form_without_path(self):
        assert parse(b"GET http://localhost:3000 HTTP/1.1\r\n\r\n").path == "/"

    def test_double_slash_stays_a_path(self):
        assert parse(b"GET //etc/passwd HTTP/1.1\r\n\r\n").path == "//etc/passwd"

    @pytest.mark.parametrize("target,path", [
        (b"/a/../b", "/a/../b"),
        (b"/%2e%2e/secret.txt", "/../secret.txt"),
        (b"/a%00.html", "/a\x00.html"),
        (b"/a..b/c.html", "/a..b/c.html"),
    ])
    def test_path_passed_through_decoded(self, target, path):
        """Test that the parser leaves path safety to the router."""
        assert parse(b"GET " + target + b" HTTP/1.1\r\n\r\n").path == path

    def test_duplicate_headers_joined(self):
        request = parse(b"GET / HTTP/1.1\r\nX-A: one\r\nx-a: two\r\n\r\n")

        assert request.headers["x-a"] == "one, two"

    def test_malformed_header_lines_skipped(self):
        request = parse(b"GET / HTTP/1.1\r\nnot a header\r\nHost: h\r\n\r\n")

        assert request.headers == {"host": "h"}

    def test_body_is_ignored(self):
        request = parse(b"POST /submit HTTP/1.1\r\nContent-Length: 3\r\n\r\nabc")

        assert request.method == "POST"
        assert request.path == "/submit"


class TestRequestParserErrors:

    def test_missing_terminator(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET / HTTP/1.1\r\nHost: h\r\n")
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("line", [
        b"GET",
        b"GET /",
        b"GET / HTTP/1.1 extra",
        b"G(T / HTTP/1.1",
        b"GET / HTTP/x",
        b"",
    ])
    def test_invalid_request_line(self, line):
        with pytest.raises(HTTPParseError) as exc_info:
            parse(line + b"\r\n\r\n")
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("version", [b"HTTP/2.0", b"HTTP/0.9"])
    def test_unsupported_version(self, version):
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET / " + version + b"\r\n\r\n")
        assert exc_info.value.status_code == 505

    def test_request_too_large(self):
        parser = RequestParser(max_request_size=64)
        data = b"GET / HTTP/1.1\r\nX-Pad: " + b"a" * 100 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(data)
        assert exc_info.value.status_code == 413
