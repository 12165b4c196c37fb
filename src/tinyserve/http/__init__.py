"""
=============================================================================
HTTP LAYER
=============================================================================

    request.py       Raw bytes → HTTPRequest (method, path)
    router.py        ContentSpec + path → MatchResult
    response.py      MatchResult → HTTPResponse → bytes
    status_codes.py  HTTPStatus enum and reason phrases

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .router import (
    Router,
    match,
    MatchResult,
    RawMatch,
    HtmlMatch,
    FileMatch,
    ExplicitRaw,
    NoMatch,
    NO_MATCH,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    FileReadFailure,
    build_response,
    not_found,
    read_file,
    HTML_CONTENT_TYPE,
)
from .status_codes import HTTPStatus, reason_phrase

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "Router",
    "match",
    "MatchResult",
    "RawMatch",
    "HtmlMatch",
    "FileMatch",
    "ExplicitRaw",
    "NoMatch",
    "NO_MATCH",
    "HTTPResponse",
    "ResponseBuilder",
    "FileReadFailure",
    "build_response",
    "not_found",
    "read_file",
    "HTML_CONTENT_TYPE",
    "HTTPStatus",
    "reason_phrase",
]
