"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Turns command-line tokens (and, with -c, a YAML document) into the content
specification and port the server runs with.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION PRECEDENCE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. -c <file>      YAML document; everything else on the command   │
    │                     line is dropped, before AND after the flag      │
    │                                                                      │
    │   2. -f             Positional tokens are filenames, each served    │
    │                     at "/<filename>" ("." serves any path)          │
    │                                                                      │
    │   3. -H             Positional tokens joined by newlines, as HTML   │
    │                                                                      │
    │   4. (default)      Positional tokens joined by newlines, as text   │
    │                                                                      │
    │   Port: -p <port> or the document's "port", else 3000               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Process-level settings that are not part of the content (bind host, log
level, read timeout) come from environment variables, see
ServeConfig.from_env().

=============================================================================
CONFIG DOCUMENT
=============================================================================

    port: 4500
    files:
      - route: /
        file: index.html
      - route: "."              # any other path is read from disk
        file: "."
    raw:
      - route: /health
        content: ok
        type: text/plain        # optional
        status: 200             # optional

File routes come first, then raw routes, each in document order.
Unknown keys are ignored.

=============================================================================
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml

from .content import ContentSpec, FileRoute, Html, Raw, RawRoute, Routed, file_routes


logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"

USAGE = "Usage: tiny-serve [-p <PORT>] [-f] [-H] [-c <CONFIG>] <content|filename>..."

_PORT_PATTERN = re.compile(r"\+?[0-9]+")


# =============================================================================
# ERRORS
# =============================================================================

class ConfigError(Exception):
    """Base class for configuration errors. Raised before the server binds."""


class InvalidPort(ConfigError):
    """Port is not an integer in 0..65535."""


class MissingPortValue(ConfigError):
    """-p was the last token."""


class MissingConfigPath(ConfigError):
    """-c was the last token."""


class NoContentProvided(ConfigError):
    """Nothing to serve."""


class ConfigFileNotFound(ConfigError):
    """-c names a path that is not a readable file."""


class ConfigParseError(ConfigError):
    """The config document is not valid YAML or has the wrong shape."""


# =============================================================================
# TOKEN RESOLUTION
# =============================================================================

def parse_port(value: Any) -> int:
    """
    Validate a port from the command line (str) or a document (int).

    Raises:
        InvalidPort: Not a 16-bit unsigned integer.
    """
    if isinstance(value, str):
        if not _PORT_PATTERN.fullmatch(value):
            raise InvalidPort(f"Given port is invalid: {value!r}")
        port = int(value)
    elif isinstance(value, int) and not isinstance(value, bool):
        port = value
    else:
        raise InvalidPort(f"Given port is invalid: {value!r}")

    if not 0 <= port <= 65535:
        raise InvalidPort(f"Given port is invalid: {value!r} (must be 0-65535)")
    return port


def resolve(tokens: Iterable[str]) -> Tuple[ContentSpec, int]:
    """
    Resolve command-line tokens into a content spec and port.

    Tokens are scanned left to right. A successful -c returns at once with
    the document's spec, discarding every other token.

    Args:
        tokens: Arguments without the program name, e.g. sys.argv[1:].

    Returns:
        Tuple of (content spec, port).

    Raises:
        ConfigError: One of its subclasses, describing the problem.
    """
    tokens = iter(tokens)
    contents: list[str] = []
    port = DEFAULT_PORT
    serve_files = False
    serve_html = False

    for token in tokens:
        if token == "-p":
            value = next(tokens, None)
            if value is None:
                raise MissingPortValue("No port specified.")
            port = parse_port(value)
        elif token == "-f":
            serve_files = True
        elif token == "-H":
            serve_html = True
        elif token == "-c":
            path = next(tokens, None)
            if path is None:
                raise MissingConfigPath("No config file specified.")
            if contents:
                logger.debug(f"Ignoring {len(contents)} content argument(s) in favour of {path}")
            return load_config_file(path)
        else:
            contents.append(token)

    if not contents:
        raise NoContentProvided(USAGE)

    if serve_files:
        return file_routes(contents), port
    if serve_html:
        return Html("\n".join(contents)), port
    return Raw("\n".join(contents)), port


# =============================================================================
# CONFIG DOCUMENT
# =============================================================================

def load_config_file(path: str) -> Tuple[ContentSpec, int]:
    """
    Read a YAML config document from disk and resolve it.

    Raises:
        ConfigFileNotFound: path is missing or not a regular file.
        ConfigParseError: the document is malformed.
        InvalidPort: the document's port is out of range.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigFileNotFound(f"Config file not found: {path}")

    try:
        text = config_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigParseError(f"Config file {path} is not UTF-8 text: {e}") from e
    except OSError as e:
        raise ConfigFileNotFound(f"Config file cannot be read: {path} ({e.strerror})") from e

    return parse_config(text, source=path)


def parse_config(text: str, source: str = "<config>") -> Tuple[ContentSpec, int]:
    """
    Parse YAML config text into a Routed spec and port.

    Args:
        text: YAML document.
        source: Name used in error messages.
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Could not parse {source}: {e}") from e

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigParseError(f"{source}: top level must be a mapping")

    port = DEFAULT_PORT
    if document.get("port") is not None:
        port = parse_port(document["port"])

    entries = []
    for index, item in enumerate(_entry_list(document, "files", source)):
        where = f"{source}: files[{index}]"
        entries.append(FileRoute(
            route=_required_str(item, "route", where),
            path=_required_str(item, "file", where),
            content_type=_optional_str(item, "type", where),
        ))

    for index, item in enumerate(_entry_list(document, "raw", source)):
        where = f"{source}: raw[{index}]"
        entries.append(RawRoute(
            route=_required_str(item, "route", where),
            content=_required_str(item, "content", where),
            content_type=_optional_str(item, "type", where),
            status=_optional_status(item, where),
        ))

    logger.debug(f"Loaded {len(entries)} route(s) from {source}")
    return Routed(tuple(entries)), port


def _entry_list(document: dict, key: str, source: str) -> list:
    items = document.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ConfigParseError(f"{source}: '{key}' must be a list")
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ConfigParseError(f"{source}: {key}[{index}] must be a mapping")
    return items


def _required_str(item: dict, key: str, where: str) -> str:
    value = item.get(key)
    if value is None:
        raise ConfigParseError(f"{where}: missing '{key}'")
    if not isinstance(value, str):
        raise ConfigParseError(f"{where}: '{key}' must be a string")
    return value


def _optional_str(item: dict, key: str, where: str) -> Optional[str]:
    value = item.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigParseError(f"{where}: '{key}' must be a string")
    return value


def _optional_status(item: dict, where: str) -> Optional[int]:
    value = item.get("status")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 100 <= value <= 599:
        raise ConfigParseError(f"{where}: 'status' must be an integer between 100 and 599")
    return value


# =============================================================================
# SERVER CONFIG
# =============================================================================

@dataclass
class ServeConfig:
    """
    Everything the server needs to run.

    content and port come from resolve(); the rest are process settings
    with defaults suitable for a foreground development server.

    Usage:
        config = ServeConfig.build(sys.argv[1:])
        ContentServer(config).run()
    """

    content: ContentSpec
    port: int = DEFAULT_PORT

    host: str = DEFAULT_HOST
    """Bind address. 0.0.0.0 listens on all interfaces."""

    backlog: int = 128
    buffer_size: int = 8192

    timeout: Optional[float] = 30.0
    """Seconds to wait for a client to send its request."""

    max_request_size: int = 64 * 1024
    """Request head size limit in bytes. Bodies are never read."""

    log_level: str = "INFO"
    server_name: str = "tiny-serve"

    @property
    def listening_addr(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def build(cls, tokens: Iterable[str]) -> "ServeConfig":
        """
        Resolve command-line tokens and apply environment overrides.

        Raises:
            ConfigError: If the tokens or config document are invalid.
        """
        content, port = resolve(tokens)
        return cls.from_env(content, port)

    @classmethod
    def from_env(cls, content: ContentSpec, port: int = DEFAULT_PORT) -> "ServeConfig":
        """
        Create a config, reading process settings from the environment.

        TINY_SERVE_HOST       Bind address (default: 0.0.0.0)
        TINY_SERVE_LOG_LEVEL  Logging level (default: INFO)
        TINY_SERVE_TIMEOUT    Request read timeout in seconds (default: 30)
        """
        timeout = os.getenv("TINY_SERVE_TIMEOUT", "30")
        try:
            timeout_value = float(timeout)
        except ValueError:
            raise ConfigError(f"TINY_SERVE_TIMEOUT must be a number, got {timeout!r}") from None

        return cls(
            content=content,
            port=port,
            host=os.getenv("TINY_SERVE_HOST", DEFAULT_HOST),
            timeout=timeout_value,
            log_level=os.getenv("TINY_SERVE_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """Fail fast on settings that would only break once serving."""
        parse_port(self.port)

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("timeout must be > 0")

        if self.buffer_size < 1024:
            raise ConfigError("buffer_size must be >= 1024")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Unknown log level: {self.log_level}")
