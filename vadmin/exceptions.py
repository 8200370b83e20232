"""Exception classes raised by vadmin."""


class AdminError(Exception):
    """Base exception class for all admin client errors."""
    pass


class ConnectError(AdminError):
    """Raised when the TCP connection cannot be established in time."""
    pass


class TransportError(AdminError):
    """Raised when writing to or reading from the socket fails."""
    pass


class ConnectionClosedError(TransportError):
    """Raised when the peer closed the socket or the connection is not open."""
    pass


class FramingError(AdminError):
    """Raised when a response violates the header/body framing."""
    pass


class AuthExpectationError(AdminError):
    """
    Raised when the greeting status does not match the authentication mode.

    A secret was given but the server did not ask for authentication, or no
    secret was given and the server requires one.
    """

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class AuthenticationError(AdminError):
    """Raised when the server rejects the challenge response."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status
