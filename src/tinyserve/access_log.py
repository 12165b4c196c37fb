"""
=============================================================================
ACCESS LOG
=============================================================================

One line per handled request on standard output:

    200: GET /index.html
    404: GET /missing.html
    400: BREW /..

The access log only observes. Whatever happens while writing a line, the
response has already been decided and is sent unchanged.

=============================================================================
LOGGER CONFIGURATION
=============================================================================

Lines go through the namespaced "tinyserve.access" logger, so they can be
redirected like any other log:

    logging.getLogger("tinyserve.access").addHandler(file_handler)

configure_access_logger() attaches a bare "%(message)s" handler on stdout
and stops propagation, keeping access lines out of the diagnostic log on
stderr. Handlers hold a lock while emitting, so concurrent callers never
interleave lines.

=============================================================================
"""

import logging
import sys
from dataclasses import dataclass
from typing import Optional, TextIO


ACCESS_LOGGER_NAME = "tinyserve.access"

logger = logging.getLogger(ACCESS_LOGGER_NAME)


@dataclass(frozen=True)
class RequestLogEntry:
    """A single access log record."""

    method: str
    path: str
    status: int

    def to_text(self) -> str:
        return f"{int(self.status)}: {self.method} {self.path}"


class RequestLog:
    """
    Records each handled request.

    Usage:
        log = RequestLog()
        log.record("GET", "/", 200)
    """

    def __init__(self, access_logger: Optional[logging.Logger] = None):
        self._logger = access_logger or logger

    def record(self, method: str, path: str, status: int) -> None:
        """Emit one access line. Never raises."""
        try:
            entry = RequestLogEntry(method=method, path=path, status=status)
            self._logger.info(entry.to_text())
        except Exception:
            # Logging must not take request handling down with it
            pass


def configure_access_logger(stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Send access lines to ``stream`` (stdout by default), one per line.

    Safe to call more than once: the previous handler is replaced.
    """
    for handler in list(logger.handlers):
        if getattr(handler, "_tinyserve_access", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler._tinyserve_access = True

    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger
