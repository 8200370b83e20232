"""Network module for vadmin."""

from .connection import Connection, ConnectionState, open_connection

__all__ = [
    "Connection",
    "ConnectionState",
    "open_connection",
]
