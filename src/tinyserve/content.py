"""
=============================================================================
CONTENT SPECIFICATION
=============================================================================

The resolved description of what the server answers with. It is built
once at startup by the config resolver and then shared, read-only, by
every request.

=============================================================================
THE THREE SERVING STRATEGIES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        CONTENT VARIANTS                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Raw("hello")          Same text for every path, 200, no type      │
    │                                                                      │
    │   Html("<h1>hi</h1>")   Same markup for every path, 200, text/html  │
    │                                                                      │
    │   Routed((...))         Ordered route entries, first match wins     │
    │       ├── FileRoute("/a", "a.html")      serve a file              │
    │       ├── RawRoute("/b", "text", ...)    serve a literal           │
    │       └── FileRoute(".", ".")            wildcard: path is file     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every class here is a frozen dataclass and Routed holds a tuple, so a
spec cannot be mutated after it has been resolved.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union


WILDCARD = "."
"""Route value that matches any request path not matched earlier."""


@dataclass(frozen=True)
class FileRoute:
    """
    Serve the bytes of the file at ``path`` when the request path is ``route``.

    When ``route`` is the wildcard marker, the requested path itself names
    the file and ``path`` is ignored.

    ``content_type`` is accepted from configuration documents but file
    responses are always sent as text/html.
    """

    route: str
    path: str
    content_type: Optional[str] = None

    @property
    def is_wildcard(self) -> bool:
        return self.route == WILDCARD


@dataclass(frozen=True)
class RawRoute:
    """Serve literal ``content`` when the request path is ``route``."""

    route: str
    content: str
    content_type: Optional[str] = None
    status: Optional[int] = None

    @property
    def is_wildcard(self) -> bool:
        return self.route == WILDCARD


RouteEntry = Union[FileRoute, RawRoute]


@dataclass(frozen=True)
class Raw:
    """Plain text served for every request."""

    text: str


@dataclass(frozen=True)
class Html:
    """HTML markup served for every request."""

    markup: str


@dataclass(frozen=True)
class Routed:
    """Route entries tested in declaration order."""

    entries: Tuple[RouteEntry, ...] = ()

    def __post_init__(self):
        # Accept any iterable but always store a tuple
        object.__setattr__(self, "entries", tuple(self.entries))

    def __len__(self) -> int:
        return len(self.entries)


ContentSpec = Union[Raw, Html, Routed]


def file_routes(filenames) -> Routed:
    """
    Build a Routed spec with one exact-match file route per filename.

    ``chapter1.html`` is served at ``/chapter1.html``. The filename ``.``
    becomes the wildcard entry.
    """
    entries = []
    for name in filenames:
        if name == WILDCARD:
            entries.append(FileRoute(route=WILDCARD, path=WILDCARD))
        else:
            entries.append(FileRoute(route="/" + name, path=name))
    return Routed(tuple(entries))
