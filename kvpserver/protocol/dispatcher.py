"""
Command Dispatcher Module

Interprets one client message and produces the response for it.

Message format:
    <cmd><args>

    The first 3 bytes select the command, compared case-insensitively.
    Whatever follows is handed to the key/value parser unchanged, so
    the usual separating space is simply skipped as a leading space.

Commands:
    GET <key>          -> [key] => [value] | key [key] not found
    PUT <key> <value>  -> [key] <= [value] | key [key] already exists, ...
    BYE                -> (connection closed, no reply)
    anything else      -> ???

A command ends at its LF. One read may carry several commands; use
split_commands() to cut it up before dispatching.
"""

import logging
from typing import List

from ..registry.store import RegistryStore
from .commands import CommandType, Response
from .grammar import LF, KeyValueParser

logger = logging.getLogger(__name__)

COMMAND_LENGTH = 3
LINE_END = bytes([LF])


def split_commands(data: bytes) -> List[bytes]:
    """
    Split the bytes of one read into commands.

    Every command keeps its LF. Bytes after the last LF form one more
    command without a terminator, so a single unterminated command is
    returned as is.

    Examples:
        >>> split_commands(b"PUT x 1\\nPUT y 2\\n")
        [b'PUT x 1\\n', b'PUT y 2\\n']
        >>> split_commands(b"GET x")
        [b'GET x']
    """
    lines = bytes(data).split(LINE_END)
    commands = [line + LINE_END for line in lines[:-1]]
    if lines[-1]:
        commands.append(lines[-1])
    return commands


class CommandDispatcher:
    """
    Executes protocol commands against a RegistryStore.

    Dispatching is fully synchronous: a command is parsed, applied to
    the store and answered before control returns to the caller.

    Attributes:
        store: The RegistryStore commands operate on
        parser: The KeyValueParser used for command arguments
    """

    def __init__(self, store: RegistryStore, parser: KeyValueParser = None):
        self.store = store
        self.parser = parser if parser is not None else KeyValueParser()

    def dispatch(self, message: bytes) -> Response:
        """
        Process one message received from a client.

        Only the first line of ``message`` is looked at, so a value can
        never take in a line terminator.

        Args:
            message: The raw bytes of one command

        Returns:
            The Response to send back. A CLOSE response means the
            connection must be dropped without replying.
        """
        line_end = message.find(LINE_END)
        if line_end != -1:
            message = message[:line_end + 1]

        if len(message) < COMMAND_LENGTH:
            return Response.unknown()

        command_type = CommandType.from_prefix(bytes(message[:COMMAND_LENGTH]).lower())
        arguments = message[COMMAND_LENGTH:]

        if command_type == CommandType.GET:
            return self._get(arguments)
        if command_type == CommandType.PUT:
            return self._put(arguments)
        if command_type == CommandType.BYE:
            return Response.close()
        return Response.unknown()

    def _get(self, arguments: bytes) -> Response:
        result = self.parser.parse(arguments)
        if not result.ok:
            return Response.parse_error(result.error, result.offset)

        value = self.store.lookup(result.key)
        if value is None:
            return Response.key_not_found(result.key)

        logger.debug(f"GET [{result.key}] => [{value}]")
        return Response.value_response(result.key, value)

    def _put(self, arguments: bytes) -> Response:
        result = self.parser.parse(arguments)
        if not result.ok:
            return Response.parse_error(result.error, result.offset)

        if not self.store.insert(result.key, result.value):
            return Response.key_exists(result.key)

        logger.debug(f"PUT [{result.key}] <= [{result.value}]")
        return Response.stored(result.key, result.value)
