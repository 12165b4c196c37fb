"""
Transport layer: a single-threaded TCP accept loop and the per-client
connection wrapper.
"""

from .socket_server import SocketServer, BindError
from .connection import Connection, ConnectionState, RequestTooLarge

__all__ = ["SocketServer", "BindError", "Connection", "ConnectionState", "RequestTooLarge"]
