"""Network module for the KVP server."""

from .tcp_server import KVPServer

__all__ = ["KVPServer"]
