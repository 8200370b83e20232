"""Protocol module for vadmin."""

from .auth import compute_auth_response
from .codec import ProtocolCodec
from .responses import Response, Status

__all__ = [
    "compute_auth_response",
    "ProtocolCodec",
    "Response",
    "Status",
]
