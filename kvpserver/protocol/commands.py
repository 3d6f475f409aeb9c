"""
Protocol Command and Response Definitions

This module defines the data structures for protocol commands and responses.
"""

from dataclasses import dataclass
from enum import Enum, auto

from ..config.settings import settings
from .grammar import VALUE_ENCODING, VALUE_ERRORS, ParseErrorKind


class CommandType(Enum):
    """Enumeration of supported command types, keyed by their 3-byte prefix."""
    GET = b"get"
    PUT = b"put"
    BYE = b"bye"
    UNKNOWN = b""

    @classmethod
    def from_prefix(cls, prefix: bytes) -> "CommandType":
        """Look up a command by its lower-cased prefix."""
        for command_type in (cls.GET, cls.PUT, cls.BYE):
            if command_type.value == prefix:
                return command_type
        return cls.UNKNOWN


class ResponseStatus(Enum):
    """Enumeration of response statuses."""
    OK = auto()
    ERROR = auto()
    UNKNOWN = auto()
    CLOSE = auto()


@dataclass
class Response:
    """
    Represents a protocol response.

    Attributes:
        status: OK, ERROR, UNKNOWN (unrecognised command) or CLOSE
            (connection should be dropped, nothing is sent)
        message: The line sent to the client, without the newline
    """
    status: ResponseStatus
    message: str = ""

    @property
    def closes_connection(self) -> bool:
        return self.status == ResponseStatus.CLOSE

    @classmethod
    def value_response(cls, key: str, value: str) -> "Response":
        """Create a GET response with a value."""
        return cls(status=ResponseStatus.OK, message=f"[{key}] => [{value}]")

    @classmethod
    def stored(cls, key: str, value: str) -> "Response":
        """Create a response for a successful PUT."""
        return cls(status=ResponseStatus.OK, message=f"[{key}] <= [{value}]")

    @classmethod
    def error(cls, message: str) -> "Response":
        """Create an error response."""
        return cls(status=ResponseStatus.ERROR, message=message)

    @classmethod
    def key_not_found(cls, key: str) -> "Response":
        """Create a 'key not found' error response."""
        return cls.error(f"key [{key}] not found")

    @classmethod
    def key_exists(cls, key: str) -> "Response":
        """Create the error for a PUT rejected in strict mode."""
        return cls.error(f"key [{key}] already exists, update rejected")

    @classmethod
    def parse_error(cls, kind: ParseErrorKind, offset: int) -> "Response":
        """Create an error response describing a parser failure."""
        if kind == ParseErrorKind.EMPTY:
            return cls.error("key missing")
        if kind == ParseErrorKind.INVALID:
            return cls.error(f"key contains a non-alphanumeric character at position {offset}")
        if kind == ParseErrorKind.KEY_TOO_LONG:
            return cls.error(
                f"key exceeds maximum length of {settings.MAX_KEY_LENGTH} at position {offset}"
            )
        if kind == ParseErrorKind.VALUE_TOO_LONG:
            return cls.error(
                f"value exceeds maximum length of {settings.MAX_VALUE_LENGTH} at position {offset}"
            )
        raise ValueError(f"Unknown parse error kind: {kind}")

    @classmethod
    def unknown(cls) -> "Response":
        """Create the reply for an unrecognised command."""
        return cls(status=ResponseStatus.UNKNOWN, message="???")

    @classmethod
    def close(cls) -> "Response":
        """Create the silent response that ends a connection."""
        return cls(status=ResponseStatus.CLOSE)


def format_response(response: Response) -> bytes:
    """
    Format a Response object into the bytes written to the client.

    Returns:
        The message followed by a newline, or b"" for CLOSE.

    Examples:
        >>> format_response(Response.stored("japan", "Tokyo"))
        b'[japan] <= [Tokyo]\\n'
        >>> format_response(Response.unknown())
        b'???\\n'
    """
    if response.closes_connection:
        return b""
    return f"{response.message}\n".encode(VALUE_ENCODING, VALUE_ERRORS)
