"""
Registry Loader Module

Bulk-loads the registry from a flat file at startup. Each non-blank line
holds one pair in the ``<key>[ <value>]`` grammar. Loading stops at the
first malformed line; pairs read before it stay in the store.
"""

import logging

from ..protocol.grammar import KeyValueParser
from .errors import RegistryFileError, RegistryParseError
from .store import RegistryStore

logger = logging.getLogger(__name__)


def _is_blank(line: bytes) -> bool:
    """A line made only of CR/LF characters carries no pair."""
    return not line.strip(b"\r\n")


def load_registry(path: str, store: RegistryStore, parser: KeyValueParser = None) -> int:
    """
    Load key-value pairs from a registry file into a store.

    Args:
        path: Path of the registry file
        store: RegistryStore to fill
        parser: KeyValueParser to use (default limits from settings)

    Returns:
        Number of lines stored

    Raises:
        RegistryFileError: The file cannot be opened or read
        RegistryParseError: A line is malformed; carries the 1-based line
            number and the parser's error kind and offset
    """
    parser = parser if parser is not None else KeyValueParser()
    loaded = 0

    try:
        registry_file = open(path, "rb")
    except OSError as exc:
        raise RegistryFileError(path, exc.strerror or str(exc)) from exc

    with registry_file:
        try:
            for line_number, line in enumerate(registry_file, start=1):
                if _is_blank(line):
                    continue

                result = parser.parse(line)
                if not result.ok:
                    raise RegistryParseError(path, line_number, result.error, result.offset)

                if not store.insert(result.key, result.value):
                    logger.warning(
                        f"Duplicate key [{result.key}] at line {line_number} of {path} ignored"
                    )
                    continue

                logger.debug(f"Loaded [{result.key}] => [{result.value}]")
                loaded += 1
        except OSError as exc:
            raise RegistryFileError(path, exc.strerror or str(exc)) from exc

    logger.info(f"Loaded {loaded} keys from {path}")
    return loaded
