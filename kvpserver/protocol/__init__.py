"""Protocol module for the KVP server."""

from .commands import CommandType, Response, ResponseStatus, format_response
from .dispatcher import CommandDispatcher
from .grammar import KeyValueParser, ParseErrorKind, ParseResult

__all__ = [
    "CommandDispatcher",
    "CommandType",
    "KeyValueParser",
    "ParseErrorKind",
    "ParseResult",
    "Response",
    "ResponseStatus",
    "format_response",
]
