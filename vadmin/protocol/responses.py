"""
Protocol Status and Response Definitions

This module defines the status codes of the admin CLI and the
immutable Response value returned for every command.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Union


class Status(IntEnum):
    """Status codes sent in every response header."""
    SYNTAX = 100
    UNKNOWN = 101
    UNIMPL = 102
    TOOFEW = 104
    TOOMANY = 105
    PARAM = 106
    AUTH = 107
    OK = 200
    TRUNCATED = 201
    CANT = 300
    COMMS = 400
    CLOSE = 500

    @classmethod
    def lookup(cls, code: int) -> Union["Status", int]:
        """Return the matching member, or the bare code if it is not known."""
        try:
            return cls(code)
        except ValueError:
            return code


@dataclass(frozen=True)
class Response:
    """
    Represents one framed response.

    Attributes:
        status: Status member, or a plain int for codes outside the known set
        body: Response text without the trailing protocol newline
    """
    status: Union[Status, int]
    body: str = ""

    @property
    def is_success(self) -> bool:
        """Check whether the command succeeded."""
        return self.status == Status.OK

    @property
    def first_line(self) -> str:
        """First line of the body (the challenge, for an auth greeting)."""
        return self.body.split("\n", 1)[0]

    def __str__(self) -> str:
        return f"{int(self.status)} {self.body!r}"
