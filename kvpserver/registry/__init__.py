"""Registry module for the KVP server."""

from .errors import RegistryError, RegistryFileError, RegistryParseError
from .loader import load_registry
from .store import RegistryStore, UpdatePolicy

__all__ = [
    "RegistryError",
    "RegistryFileError",
    "RegistryParseError",
    "RegistryStore",
    "UpdatePolicy",
    "load_registry",
]
