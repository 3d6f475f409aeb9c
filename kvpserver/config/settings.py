"""
KVP Server Configuration Settings

This module contains all configuration constants for the KVP server.
Values that make sense to change per deployment can be overridden
through environment variables; command line flags override both.
"""

import os
from dataclasses import dataclass

DEFAULT_PORT = 5555
MIN_PORT = 1024
MAX_PORT = 65535
DEFAULT_REGISTRY_FILE = "capitals.txt"


def resolve_port(value) -> int:
    """
    Turn a requested port into a usable listening port.

    Anything that is not an integer in the range 1024..65535 falls
    back to DEFAULT_PORT instead of being rejected.

    Args:
        value: Port as int or string (e.g. from the environment)

    Returns:
        A port number in the allowed range
    """
    try:
        port = int(value, 0) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        return DEFAULT_PORT

    if port < MIN_PORT or port > MAX_PORT:
        return DEFAULT_PORT
    return port


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("KVP_SERVER_HOST", "0.0.0.0")
    PORT: int = resolve_port(os.environ.get("KVP_SERVER_PORT", str(DEFAULT_PORT)))

    # Registry settings
    REGISTRY_FILE: str = os.environ.get("KVP_SERVER_REGISTRY", DEFAULT_REGISTRY_FILE)
    STRICT: bool = os.environ.get("KVP_SERVER_STRICT", "false").lower() == "true"
    MAX_KEY_LENGTH: int = 16
    MAX_VALUE_LENGTH: int = 32

    # Connection settings
    READ_BUFFER_SIZE: int = 256

    # Logging settings
    DEBUG: bool = os.environ.get("KVP_SERVER_DEBUG", "false").lower() == "true"


# Global settings instance
settings = Settings()
