"""
Registry error types.

Loading the registry is all-or-nothing for the server: any of these
errors means the server must not start.
"""

from ..protocol.grammar import ParseErrorKind

_PARSE_ERROR_DESCRIPTIONS = {
    ParseErrorKind.EMPTY: "Missing key",
    ParseErrorKind.INVALID: "Invalid character found",
    ParseErrorKind.KEY_TOO_LONG: "Long key found",
    ParseErrorKind.VALUE_TOO_LONG: "Long value found",
}


class RegistryError(Exception):
    """Base class for registry loading errors."""


class RegistryFileError(RegistryError):
    """The registry file could not be opened or read."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Can't open {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class RegistryParseError(RegistryError):
    """
    A registry line did not match the key/value grammar.

    Attributes:
        path: Registry file being loaded
        line: 1-based line number in the file
        kind: ParseErrorKind reported by the parser
        offset: 1-based column where the parser stopped
    """

    def __init__(self, path: str, line: int, kind: ParseErrorKind, offset: int):
        self.path = path
        self.line = line
        self.kind = kind
        self.offset = offset
        super().__init__(f"{_PARSE_ERROR_DESCRIPTIONS[kind]} at [{line},{offset}]")
