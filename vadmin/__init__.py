"""
vadmin: Cache Server Admin CLI Client

An asyncio client for the line-oriented administrative protocol that a
cache server exposes over TCP, with S/PSK authentication and an
optional keepalive ping.
"""

from .config.settings import Settings, load_secret, settings
from .exceptions import (
    AdminError,
    AuthenticationError,
    AuthExpectationError,
    ConnectError,
    ConnectionClosedError,
    FramingError,
    TransportError,
)
from .network.connection import Connection, ConnectionState, open_connection
from .protocol.auth import compute_auth_response
from .protocol.codec import ProtocolCodec
from .protocol.responses import Response, Status

__version__ = "1.0.0"

__all__ = [
    "AdminError",
    "AuthenticationError",
    "AuthExpectationError",
    "ConnectError",
    "ConnectionClosedError",
    "FramingError",
    "TransportError",
    "Connection",
    "ConnectionState",
    "open_connection",
    "compute_auth_response",
    "ProtocolCodec",
    "Response",
    "Status",
    "Settings",
    "load_secret",
    "settings",
]
