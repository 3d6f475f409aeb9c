"""
Key/Value Grammar Module

Parses a single line of the form ``<key>[ <value>]`` into a key-value pair,
or reports why and where the line is malformed.

Grammar (length limits aside):

    key only    : ^ *([A-Za-z0-9]+) ?\\r?\\n?$
    key + value : ^ *([A-Za-z0-9]+) (.*)\\r?\\n?$

The same grammar is used for registry file lines and for the argument part
of GET/PUT commands. Parsing is byte oriented: limits count bytes and error
offsets are 1-based byte positions in the line exactly as it was received,
leading spaces included.
"""

import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from ..config.settings import settings

SPACE = 0x20
CR = 0x0D
LF = 0x0A

KEY_CHARS = frozenset((string.ascii_letters + string.digits).encode("ascii"))

# Values may carry any bytes; this keeps them intact through str and back.
VALUE_ENCODING = "utf-8"
VALUE_ERRORS = "surrogateescape"


class ParseErrorKind(Enum):
    """Reasons a line can be rejected by the parser."""
    EMPTY = auto()
    INVALID = auto()
    KEY_TOO_LONG = auto()
    VALUE_TOO_LONG = auto()


@dataclass(frozen=True)
class ParseResult:
    """
    Outcome of parsing one line.

    Either ``error`` is None and ``key``/``value`` hold the parsed pair,
    or ``error`` names the failure and ``offset`` is the 1-based position
    in the untrimmed line where it was detected.
    """
    key: str = ""
    value: str = ""
    error: Optional[ParseErrorKind] = None
    offset: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, key: str, value: str = "") -> "ParseResult":
        return cls(key=key, value=value)

    @classmethod
    def failure(cls, kind: ParseErrorKind, offset: int) -> "ParseResult":
        return cls(error=kind, offset=offset)


def encode_line(line: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """Return the raw bytes of a line, encoding text the way values are encoded."""
    if isinstance(line, str):
        return line.encode(VALUE_ENCODING, VALUE_ERRORS)
    return bytes(line)


class KeyValueParser:
    """
    Strict parser for the ``<key>[ <value>]`` grammar.

    Rules:
        - Leading spaces are skipped.
        - At most one trailing CR and one trailing LF are removed,
          in either order.
        - The key is 1..max_key_length ASCII letters or digits and ends
          at the first space or at the end of the line.
        - Everything after that first space is the value, verbatim
          (further spaces included), up to max_value_length bytes.

    Attributes:
        max_key_length: Longest accepted key
        max_value_length: Longest accepted value in bytes
    """

    def __init__(self, max_key_length: int = None, max_value_length: int = None):
        self.max_key_length = (
            max_key_length if max_key_length is not None else settings.MAX_KEY_LENGTH
        )
        self.max_value_length = (
            max_value_length if max_value_length is not None else settings.MAX_VALUE_LENGTH
        )

    def parse(self, line: Union[bytes, str]) -> ParseResult:
        """
        Parse one line into a key-value pair.

        Args:
            line: Raw line, bytes or text, possibly with trailing CR/LF

        Returns:
            ParseResult with the key and value, or the error kind and
            the 1-based offset of the offending position.

        Examples:
            >>> parser = KeyValueParser()
            >>> parser.parse(b"hungary Budapest\\n")
            ParseResult(key='hungary', value='Budapest', error=None, offset=0)
            >>> parser.parse(b"  ab-c").error, parser.parse(b"  ab-c").offset
            (<ParseErrorKind.INVALID: 2>, 5)
        """
        data = encode_line(line)

        start = 0
        while start < len(data) and data[start] == SPACE:
            start += 1

        end = self._strip_line_terminators(data, start)

        pos = start
        while pos < end:
            byte = data[pos]
            if byte == SPACE:
                break
            if byte not in KEY_CHARS:
                return ParseResult.failure(ParseErrorKind.INVALID, pos + 1)
            if pos - start + 1 > self.max_key_length:
                return ParseResult.failure(ParseErrorKind.KEY_TOO_LONG, pos + 1)
            pos += 1

        key = data[start:pos].decode("ascii")

        if pos == end:
            if not key:
                return ParseResult.failure(ParseErrorKind.EMPTY, pos + 1)
            return ParseResult.success(key)

        # Only the first space separates; the rest belongs to the value.
        value_start = pos + 1
        value = data[value_start:end]
        if len(value) > self.max_value_length:
            return ParseResult.failure(
                ParseErrorKind.VALUE_TOO_LONG,
                value_start + self.max_value_length + 1,
            )

        return ParseResult.success(key, value.decode(VALUE_ENCODING, VALUE_ERRORS))

    @staticmethod
    def _strip_line_terminators(data: bytes, start: int) -> int:
        """Return the end index of ``data`` without its trailing CR and/or LF."""
        end = len(data)
        seen = set()
        for _ in range(2):
            if end > start and data[end - 1] in (CR, LF) and data[end - 1] not in seen:
                seen.add(data[end - 1])
                end -= 1
        return end
