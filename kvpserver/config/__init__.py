"""Configuration module for the KVP server."""

from .settings import DEFAULT_PORT, Settings, resolve_port, settings

__all__ = ["DEFAULT_PORT", "Settings", "resolve_port", "settings"]
