"""
KVP Server: Key-Value Registry over TCP

A small key-value server built with Python asyncio. The registry is
loaded from a flat file at startup and answers GET/PUT/BYE commands
sent over raw TCP sockets.
"""

__version__ = "1.0.0"
