"""
Protocol Codec Module

This module handles framing of outgoing command lines and parsing of
length-prefixed responses read from the admin socket.
"""

import asyncio
import re
from typing import Tuple

from ..exceptions import ConnectionClosedError, FramingError, TransportError
from .responses import Response, Status

STATUS_RE = re.compile(r"\d{3}")
LENGTH_RE = re.compile(r"\d{1,8}")


class ProtocolCodec:
    """
    Codec for the admin CLI text protocol.

    Protocol Format:
        Request:  <command> [<arg> ...]\\n
        Response: <status> <length>\\n<body><\\n>

    The response header carries a 3-digit status and an 8-digit body
    length. Servers write it either zero-padded ("200 00000019\\n") or
    left-justified and space-padded ("200 19      \\n"); both are accepted.
    The body is followed by one newline that is not counted in the length.

    Arguments are not escaped or quoted. A multi-line payload is passed
    as a single heredoc token, e.g. "<< EOF\\n...\\nEOF".
    """

    def encode_request(self, command: str, *args: str) -> bytes:
        """
        Frame a command line.

        Examples:
            >>> ProtocolCodec().encode_request("vcl.use", "boot")
            b'vcl.use boot\\n'
        """
        return (" ".join((command,) + args) + "\n").encode("utf-8")

    def parse_header(self, line: bytes) -> Tuple[int, int]:
        """
        Parse a response header line into (status, body length).

        Raises:
            FramingError: if the line does not hold exactly a 3-digit
                status and a length of at most 8 digits
        """
        try:
            fields = line.decode("ascii").split()
        except UnicodeDecodeError as exc:
            raise FramingError(f"non-ascii response header {line!r}") from exc

        if len(fields) != 2:
            raise FramingError(f"read {len(fields)} header fields, expected 2: {line!r}")

        status, length = fields
        if not STATUS_RE.fullmatch(status) or not LENGTH_RE.fullmatch(length):
            raise FramingError(f"malformed response header {line!r}")

        return int(status), int(length)

    async def read_response(self, reader: asyncio.StreamReader) -> Response:
        """
        Read exactly one framed response.

        The body read waits until all declared bytes plus the trailing
        newline have arrived, however the transport splits them.

        Raises:
            ConnectionClosedError: if the peer closed before a header arrived
            FramingError: on a malformed header or a truncated body
            TransportError: on any other socket error
        """
        try:
            line = await reader.readline()
        except ValueError as exc:
            # StreamReader limit exceeded before a newline was seen
            raise FramingError("response header too long") from exc
        except OSError as exc:
            raise TransportError(f"error reading response header: {exc}") from exc

        if not line:
            raise ConnectionClosedError("connection closed by server")
        if not line.endswith(b"\n"):
            raise FramingError(f"truncated response header {line!r}")

        status, length = self.parse_header(line)

        try:
            data = await reader.readexactly(length + 1)
        except asyncio.IncompleteReadError as exc:
            raise FramingError(
                f"read {len(exc.partial)} body bytes, expected {length + 1}"
            ) from exc
        except OSError as exc:
            raise TransportError(f"error reading response body: {exc}") from exc

        body = data[:-1].decode("utf-8", errors="replace")
        return Response(status=Status.lookup(status), body=body)

    def encode_response(self, status: int, body: str = "") -> bytes:
        """
        Frame a response the way the server writes it.

        Examples:
            >>> ProtocolCodec().encode_response(200, "PONG")
            b'200 00000004\\nPONG\\n'
        """
        payload = body.encode("utf-8")
        if len(payload) > 99999999:
            raise FramingError(f"body of {len(payload)} bytes does not fit the header")
        return b"%03d %08d\n" % (int(status), len(payload)) + payload + b"\n"
