"""
=============================================================================
HTTP STATUS CODES
=============================================================================

Status codes the server produces on its own, plus reason phrases for any
code a raw route may declare in its configuration.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  Code  │  Produced when                                            │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  200   │  Content served (raw, html, file, raw route default)      │
    │  400   │  Request line could not be parsed                         │
    │  404   │  No route matched, or the matched file could not be read  │
    │  413   │  Request larger than max_request_size                     │
    │  505   │  HTTP version other than 1.0 / 1.1                        │
    └────────┴───────────────────────────────────────────────────────────┘

Raw routes may declare any status in 100..599, so response status is
stored as a plain int and phrases are looked up with reason_phrase().

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes used by the server itself.

    IntEnum, so members compare equal to ints:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    INTERNAL_SERVER_ERROR = 500
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        return reason_phrase(self)

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        return self >= 400


def reason_phrase(code: int) -> str:
    """
    Get the reason phrase for a status code.

        HTTP/1.1 404 Not Found
                 ─── ─────────
                  │      │
                  │      └── reason_phrase(404)
                  └───────── status code

    Per RFC 7230 the phrase is informational only, so unknown codes get
    "Unknown" rather than an error.
    """
    return _REASON_PHRASES.get(int(code), "Unknown")


# =============================================================================
# REASON PHRASES (RFC 7231 and friends)
# =============================================================================

_REASON_PHRASES = {
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",
    103: "Early Hints",

    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",

    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    307: "Temporary Redirect",
    308: "Permanent Redirect",

    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a teapot",
    422: "Unprocessable Entity",
    426: "Upgrade Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    451: "Unavailable For Legal Reasons",

    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
}
