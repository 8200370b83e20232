"""
Admin Connection Module

This module implements the asyncio client connection to a cache
server's administrative CLI.

Key asyncio concepts used:
- asyncio.open_connection(): Dial the admin port
- asyncio.Lock: Serialize write/read round trips on the single socket
- asyncio.create_task(): Run the keepalive ping in the background
- StreamWriter.close() / wait_closed(): Release the socket
"""

import asyncio
import logging
from enum import Enum, auto
from typing import Optional

from ..config.settings import load_secret, settings
from ..exceptions import (
    AdminError,
    AuthenticationError,
    AuthExpectationError,
    ConnectError,
    ConnectionClosedError,
    TransportError,
)
from ..protocol.auth import compute_auth_response
from ..protocol.codec import ProtocolCodec
from ..protocol.responses import Response, Status

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle states of a Connection."""
    UNAUTHENTICATED = auto()
    READY = auto()
    KEEPALIVE_ACTIVE = auto()
    CLOSED = auto()


class Connection:
    """
    One TCP session with the admin interface of a cache server.

    Commands are serialized: whichever caller acquires the lock first
    gets its write and its read served before the next caller is
    admitted, so responses can never be attributed to the wrong command.
    The keepalive task takes the same lock as any other caller.

    Usage:
        conn = Connection('127.0.0.1', 6082, secret=secret)
        try:
            await conn.open()
            response = await conn.cmd("vcl.list")
        finally:
            await conn.close()

    or, equivalently:

        async with Connection('127.0.0.1', 6082, secret=secret) as conn:
            response = await conn.cmd("vcl.list")

    Attributes:
        host: Admin interface address
        port: Admin interface port
        secret: Shared secret for challenge/response authentication, or
            None when the server does not require authentication
        connect_timeout: Seconds allowed for the TCP connect
        debug: Log every request and response at DEBUG level
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            secret: Optional[str] = None,
            connect_timeout: float = None,
            log: Optional[logging.Logger] = None,
            debug: bool = None,
    ):
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.secret = secret
        self.connect_timeout = (
            connect_timeout if connect_timeout is not None else settings.CONNECT_TIMEOUT
        )
        self.debug = debug if debug is not None else settings.DEBUG
        self.logger = log if log is not None else logger
        self.codec = ProtocolCodec()

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._lock = asyncio.Lock()
        self._keepalive_task: Optional[asyncio.Task] = None
        self._state = ConnectionState.UNAUTHENTICATED

    @property
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        return self._state

    @property
    def remote(self) -> str:
        return f"{self.host}:{self.port}"

    async def open(self) -> "Connection":
        """
        Connect and perform the handshake.

        On failure the connection stays UNAUTHENTICATED (or has no socket
        at all); the caller is still expected to call close().

        Raises:
            ConnectError: if the TCP connect fails or times out
            AuthExpectationError: if the greeting does not match the
                presence or absence of a secret
            AuthenticationError: if the server rejects the secret
            TransportError, FramingError: on I/O or protocol errors
        """
        if self._state is ConnectionState.CLOSED:
            raise ConnectionClosedError(f"connection to {self.remote} is closed")
        if self._writer is not None:
            raise AdminError(f"connection to {self.remote} is already open")

        await self._connect()
        await self._handshake()

        self._state = ConnectionState.READY
        self.logger.info(f"Connected to {self.remote}")
        return self

    async def _connect(self) -> None:
        self.logger.debug(f"Connecting to {self.remote}")
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(
                    self.host,
                    self.port,
                    limit=settings.READ_BUFFER_SIZE,
                ),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ConnectError(
                f"timed out connecting to {self.remote} after {self.connect_timeout}s"
            ) from exc
        except OSError as exc:
            raise ConnectError(f"cannot connect to {self.remote}: {exc}") from exc

    async def _handshake(self) -> None:
        """
        Read the greeting and answer the S/PSK challenge if a secret is set.

        see https://varnish-cache.org/docs/trunk/reference/varnish-cli.html
        """
        async with self._lock:
            greeting = await self._read(self._reader)

        if self.secret is None:
            if not greeting.is_success:
                raise AuthExpectationError(
                    f"secret was not passed, but status {int(greeting.status)} "
                    f"was returned (expected {int(Status.OK)})",
                    int(greeting.status),
                )
            return

        if greeting.status != Status.AUTH:
            raise AuthExpectationError(
                f"secret was passed, but status {int(greeting.status)} "
                f"was returned (expected {int(Status.AUTH)})",
                int(greeting.status),
            )

        challenge = greeting.first_line
        response = await self.cmd("auth", compute_auth_response(challenge, self.secret))

        if not response.is_success:
            raise AuthenticationError(
                f"authentication failed with {int(response.status)}",
                int(response.status),
            )
        self.logger.debug(f"Authenticated to {self.remote}")

    async def cmd(self, command: str, *args: str) -> Response:
        """
        Send a command and read its response.

        Safe to call from concurrent tasks. The response status is
        returned as-is; callers check ``response.is_success``.

        Args:
            command: Command name, e.g. "ping" or "vcl.load"
            *args: Arguments, joined with single spaces and not escaped

        Raises:
            ConnectionClosedError: if the connection is not open
            TransportError, FramingError: on I/O or protocol errors
        """
        async with self._lock:
            if self._writer is None or self._state is ConnectionState.CLOSED:
                raise ConnectionClosedError(f"connection to {self.remote} is not open")

            # close() may drop the stream attributes while this round trip waits
            reader, writer = self._reader, self._writer
            await self._write(writer, command, *args)
            return await self._read(reader)

    async def _write(self, writer: asyncio.StreamWriter, command: str, *args: str) -> None:
        data = self.codec.encode_request(command, *args)

        if self.debug:
            self.logger.debug(f"write {data!r}")

        try:
            writer.write(data)
            await writer.drain()
        except OSError as exc:
            raise TransportError(f"error writing to {self.remote}: {exc}") from exc

    async def _read(self, reader: asyncio.StreamReader) -> Response:
        response = await self.codec.read_response(reader)

        if self.debug:
            self.logger.debug(f" read {response}")

        return response

    def start_keepalive(self, interval: float = None) -> bool:
        """
        Ping the server every ``interval`` seconds in a background task.

        Ping failures are logged and ignored. Only a READY connection
        starts a keepalive; in any other state this is a no-op.

        Returns:
            True if a keepalive task was started
        """
        interval = interval if interval is not None else settings.KEEPALIVE_INTERVAL

        if self._state is not ConnectionState.READY:
            self.logger.debug(f"Not starting keepalive in state {self._state.name}")
            return False

        self._keepalive_task = asyncio.create_task(self._keepalive(interval))
        self._state = ConnectionState.KEEPALIVE_ACTIVE
        self.logger.debug(f"Keepalive started with interval {interval}s")
        return True

    async def _keepalive(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.cmd("ping")
            except AdminError as exc:
                self.logger.debug(f"Keepalive ping to {self.remote} failed: {exc}")

    async def stop_keepalive(self) -> bool:
        """
        Stop the keepalive task and wait for it to finish.

        Returns:
            True if a running keepalive was stopped
        """
        if self._state is not ConnectionState.KEEPALIVE_ACTIVE:
            return False

        self._state = ConnectionState.READY
        await self._cancel_keepalive()
        self.logger.debug("Keepalive stopped")
        return True

    async def _cancel_keepalive(self) -> None:
        task, self._keepalive_task = self._keepalive_task, None
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def close(self) -> None:
        """
        Stop the keepalive and close the socket.

        Safe to call in any state and more than once.

        Raises:
            TransportError: if closing the socket itself fails
        """
        if self._state is ConnectionState.CLOSED:
            return

        self._state = ConnectionState.CLOSED
        try:
            await self._cancel_keepalive()
        finally:
            await self._close_stream()

    async def _close_stream(self) -> None:
        writer, self._writer, self._reader = self._writer, None, None
        if writer is None:
            return

        writer.close()
        try:
            await writer.wait_closed()
        except ConnectionError as exc:
            # Peer reset or hung up earlier; the socket is already gone
            self.logger.debug(f"Connection to {self.remote} was already lost: {exc}")
        except OSError as exc:
            raise TransportError(f"error closing connection to {self.remote}: {exc}") from exc
        finally:
            self.logger.info(f"Connection to {self.remote} closed")

    async def __aenter__(self) -> "Connection":
        try:
            return await self.open()
        except BaseException:
            await self.close()
            raise

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


async def open_connection(
        host: str = None,
        port: int = None,
        secret: Optional[str] = None,
        **kwargs,
) -> Connection:
    """
    Convenience function to create, connect and authenticate a Connection.

    When no secret is given and ``settings.SECRET_FILE`` is set, the
    secret is read from that file. If the handshake fails the socket is
    closed before the error is raised.

    Args:
        host: Admin interface address (default from settings)
        port: Admin interface port (default from settings)
        secret: Shared secret, or None for an unauthenticated endpoint
        **kwargs: Passed through to Connection

    Usage:
        conn = await open_connection('127.0.0.1', 6082)
    """
    if secret is None and settings.SECRET_FILE:
        secret = load_secret(settings.SECRET_FILE)

    conn = Connection(host=host, port=port, secret=secret, **kwargs)
    try:
        await conn.open()
    except BaseException:
        await conn.close()
        raise
    return conn
