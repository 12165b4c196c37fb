"""
=============================================================================
TINY-SERVE CLI ENTRY POINT
=============================================================================

    # Serve a line of text on port 3000
    tiny-serve "Hello, world"

    # Serve on another port
    tiny-serve -p 8000 "Hello, world"

    # Serve markup as text/html
    tiny-serve -H "<h1>Hello</h1>"

    # Serve two files at /index.html and /about.html
    tiny-serve -f index.html about.html

    # Serve any file under the working directory
    tiny-serve -f .

    # Serve routes from a YAML document (all other arguments ignored)
    tiny-serve -c site.yml

    # Same thing, as a module
    python -m tinyserve -c site.yml

=============================================================================
EXIT CODES
=============================================================================

    0   Stopped with Ctrl+C / SIGTERM
    1   Bad arguments or config document (one line on stderr)
    1   Port could not be bound, or a response could not be sent

=============================================================================
"""

import sys

from .config import ConfigError, ServeConfig
from .server import ContentServer, ServerError, setup_logging


def main(argv=None) -> int:
    """
    Resolve configuration, run the server, and return the exit code.

    Args:
        argv: Arguments without the program name. Defaults to sys.argv[1:].
    """
    tokens = sys.argv[1:] if argv is None else argv

    try:
        config = ServeConfig.build(tokens)
        config.validate()
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 1

    setup_logging(config.log_level)

    try:
        ContentServer(config).run()
    except ServerError as e:
        print(f"Application error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
