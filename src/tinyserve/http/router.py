"""
=============================================================================
CONTENT ROUTER
=============================================================================

Maps a request path to the piece of content that should answer it.

=============================================================================
ROUTING FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Incoming Request                                                   │
    │   GET /about.html                                                    │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  ROUTER                                                      │   │
    │   │                                                              │   │
    │   │  Routed entries (declaration order):                         │   │
    │   │  ┌────────────────────────────────────────────────────────┐ │   │
    │   │  │ /index.html  → file index.html                         │ │   │
    │   │  │ /about.html  → file about.html     ← MATCH!            │ │   │
    │   │  │ .            → file <requested path>                   │ │   │
    │   │  └────────────────────────────────────────────────────────┘ │   │
    │   │                                                              │   │
    │   │  Result: FileMatch("about.html")                             │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ROUTE PATTERNS
=============================================================================

1. EXACT PATHS: string equality, no normalization

   Route:   /about.html
   Matches: /about.html
   Doesn't match: /about.html/, /About.html

2. WILDCARD (.): matches anything not matched by an EARLIER entry

   Route:   .
   Matches: /any/path.css → FileMatch("any/path.css")

   A wildcard placed before a specific route shadows it. Order is the
   only tie-breaker: first-registered, first-matched.

   Every leading "/" is stripped, so "//etc/passwd" reads "etc/passwd".
   A path with a ".." segment or a NUL byte never leaves the working
   directory: the wildcard answers it with NO_MATCH (404).

Raw and Html specs are not path-sensitive, every path matches.

Route tables are expected to be small (tens of entries), so a linear
scan is used instead of an index.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..content import ContentSpec, FileRoute, Html, Raw, RawRoute, Routed


# =============================================================================
# MATCH RESULTS
# =============================================================================

@dataclass(frozen=True)
class RawMatch:
    """Plain text for any path."""
    text: str


@dataclass(frozen=True)
class HtmlMatch:
    """HTML markup for any path."""
    markup: str


@dataclass(frozen=True)
class FileMatch:
    """A file on disk to read and send."""
    path: str


@dataclass(frozen=True)
class ExplicitRaw:
    """A literal body from a raw route, with optional type and status."""
    content: str
    content_type: Optional[str] = None
    status: Optional[int] = None


@dataclass(frozen=True)
class NoMatch:
    """No entry claimed the path."""


NO_MATCH = NoMatch()

MatchResult = Union[RawMatch, HtmlMatch, FileMatch, ExplicitRaw, NoMatch]


# =============================================================================
# MATCHING
# =============================================================================

def is_safe_relative_path(path: str) -> bool:
    """
    True if ``path`` stays inside the working directory.

        "docs/guide.txt"     True
        "docs/../../etc"     False   (parent segment)
        "a\\x00.html"         False   (NUL byte)
    """
    return ".." not in path.replace("\\", "/").split("/") and "\x00" not in path


def match(spec: ContentSpec, request_path: str) -> MatchResult:
    """
    Find what should answer ``request_path`` under ``spec``.

    Args:
        spec: The resolved content specification.
        request_path: Decoded URL path without query string (e.g. "/a.html").

    Returns:
        One of RawMatch, HtmlMatch, FileMatch, ExplicitRaw or NO_MATCH.
    """
    if isinstance(spec, Raw):
        return RawMatch(spec.text)

    if isinstance(spec, Html):
        return HtmlMatch(spec.markup)

    if isinstance(spec, Routed):
        for entry in spec.entries:
            if not (entry.is_wildcard or entry.route == request_path):
                continue

            if isinstance(entry, FileRoute):
                if entry.is_wildcard:
                    # The requested path names the file, relative to cwd
                    file_path = request_path.lstrip("/")
                    if not is_safe_relative_path(file_path):
                        return NO_MATCH
                    return FileMatch(file_path)
                return FileMatch(entry.path)

            if isinstance(entry, RawRoute):
                return ExplicitRaw(
                    content=entry.content,
                    content_type=entry.content_type,
                    status=entry.status,
                )

        return NO_MATCH

    raise TypeError(f"Unknown content spec: {spec!r}")


class Router:
    """
    Router bound to one content specification.

    The spec is resolved once at startup and never changes, so a Router
    can be shared freely between requests.

    Usage:
        router = Router(Routed((FileRoute("/", "index.html"),)))
        router.match("/")        # FileMatch("index.html")
        router.match("/nope")    # NO_MATCH
    """

    def __init__(self, spec: ContentSpec):
        self._spec = spec

    @property
    def spec(self) -> ContentSpec:
        return self._spec

    def match(self, request_path: str) -> MatchResult:
        return match(self._spec, request_path)

    def describe(self) -> list[str]:
        """Human-readable lines describing what is served, for the startup log."""
        spec = self._spec
        if isinstance(spec, Raw):
            return ["* -> raw text"]
        if isinstance(spec, Html):
            return ["* -> html"]

        lines = []
        for entry in spec.entries:
            route = "*" if entry.is_wildcard else entry.route
            if isinstance(entry, FileRoute):
                target = "<requested path>" if entry.is_wildcard else entry.path
                lines.append(f"{route} -> file {target}")
            else:
                lines.append(f"{route} -> raw ({entry.status or 200})")
        return lines
