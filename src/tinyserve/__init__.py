"""
=============================================================================
TINYSERVE - Minimal HTTP Content Server
=============================================================================

Give it some text, some HTML, a list of files, or a YAML route table, and
it answers every HTTP request on a port with that content.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    tinyserve/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (tiny-serve, python -m tinyserve)
    ├── config.py            # CLI / YAML resolution, ServeConfig
    ├── content.py           # ContentSpec: Raw, Html, Routed + route entries
    ├── access_log.py        # "<status>: <method> <path>" lines on stdout
    ├── server.py            # ContentServer: the per-request pipeline
    ├── core/                # Transport
    │   ├── socket_server.py # Bind, listen, accept loop, signals
    │   └── connection.py    # Read one request head, send, close
    └── http/
        ├── request.py       # Request line + header parsing
        ├── router.py        # Path → MatchResult
        ├── response.py      # MatchResult → HTTPResponse → bytes
        └── status_codes.py  # HTTPStatus and reason phrases

=============================================================================
QUICK START
=============================================================================

    from tinyserve import ContentServer, ServeConfig

    config = ServeConfig.build(["-p", "8000", "-f", "index.html"])
    ContentServer(config).run()

    # Or use the pieces directly
    from tinyserve.content import Routed, FileRoute
    from tinyserve.http import match, build_response

    spec = Routed((FileRoute("/", "index.html"),))
    response = build_response(match(spec, "/"))

=============================================================================
"""

__version__ = "0.1.0"

from .config import ServeConfig, resolve, ConfigError
from .content import Raw, Html, Routed, FileRoute, RawRoute, WILDCARD
from .server import ContentServer

__all__ = [
    "ServeConfig",
    "resolve",
    "ConfigError",
    "Raw",
    "Html",
    "Routed",
    "FileRoute",
    "RawRoute",
    "WILDCARD",
    "ContentServer",
    "__version__",
]
