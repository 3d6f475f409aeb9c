"""
Async TCP Server Module

This module implements the connection multiplexer of the KVP server.

All connections are served by one asyncio event loop on one thread.
Each client gets a coroutine that waits for its socket to become
readable, performs one bounded read and dispatches the LF-terminated
commands it holds in order. Dispatching never awaits, so the registry
is only ever touched by one command at a time.

Framing:
    Each read (at most READ_BUFFER_SIZE bytes) is cut at every LF, so
    several commands sent in one write are answered one by one. Bytes
    after the last LF are dispatched as a command of their own; a
    command split over several reads is not reassembled.
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter
from typing import Dict, List, Optional, Tuple

from ..config.settings import settings
from ..protocol.commands import format_response
from ..protocol.dispatcher import CommandDispatcher, split_commands
from ..registry.store import RegistryStore

logger = logging.getLogger(__name__)

Peer = Tuple[str, int]


def format_peer(peer) -> str:
    """Render a peer address as host:port, or [host]:port for IPv6."""
    if isinstance(peer, tuple) and len(peer) >= 2:
        host, port = peer[0], peer[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(peer)


class KVPServer:
    """
    Asynchronous TCP server for the KVP registry.

    The server owns everything a connection needs: the registry store,
    the dispatcher working on it, and the set of active connections.
    Nothing is shared through module globals.

    Usage:
        server = KVPServer(host='0.0.0.0', port=5555, store=store)
        await server.start()  # Runs forever

    Attributes:
        host: Server bind address (e.g., '0.0.0.0')
        port: Server port number (e.g., 5555)
        store: The RegistryStore shared by all connections
        dispatcher: The CommandDispatcher that executes commands
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            store: RegistryStore = None,
            read_buffer_size: int = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings, 0 picks a free port)
            store: RegistryStore instance (creates an empty one if not provided)
            read_buffer_size: Largest command accepted in one read
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.store = store if store is not None else RegistryStore()
        self.dispatcher = CommandDispatcher(self.store)
        self.read_buffer_size = (
            read_buffer_size if read_buffer_size is not None else settings.READ_BUFFER_SIZE
        )

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._running = False
        self._connections: Dict[Peer, StreamWriter] = {}
        self._connection_count = 0
        self._total_requests = 0

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Serve a single client connection until it goes away.

        Each iteration reads at most read_buffer_size bytes:
            - 0 bytes: the peer closed the connection
            - N bytes: one or more commands, answered before the next read
        A BYE command ends the connection the same way a peer close does.

        Args:
            reader: StreamReader for reading from the client
            writer: StreamWriter for writing to the client
        """
        peer = writer.get_extra_info('peername')
        self._add_connection(peer, writer)

        try:
            while True:
                data = await reader.read(self.read_buffer_size)
                if not data:
                    break

                if not await self._serve_commands(data, writer):
                    logger.debug(f"Client {format_peer(peer)} said bye")
                    break

        except OSError as exc:
            # Only this connection is lost; everyone else keeps being served.
            logger.error(f"I/O error on connection {format_peer(peer)}: {exc}")
        finally:
            await self._remove_connection(peer, writer)

    async def _serve_commands(self, data: bytes, writer: StreamWriter) -> bool:
        """
        Answer every command in one read, in order.

        Returns:
            False if a BYE was met; commands after it are dropped.
        """
        for command in split_commands(data):
            self._total_requests += 1
            response = self.dispatcher.dispatch(command)
            if response.closes_connection:
                return False
            writer.write(format_response(response))
        await writer.drain()
        return True

    def _add_connection(self, peer, writer: StreamWriter) -> None:
        self._connections[peer] = writer
        self._connection_count += 1
        logger.info(f"Client connected from host {format_peer(peer)}")

    async def _remove_connection(self, peer, writer: StreamWriter) -> None:
        if self._connections.get(peer) is writer:
            del self._connections[peer]
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        logger.info(f"Client disconnected from host {format_peer(peer)}")

    async def start(self) -> None:
        """
        Start the server and serve connections until cancelled or stopped.

        Raises:
            OSError: The listening socket could not be bound
        """
        if self._running:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
        )
        self._running = True

        sockets = self._server.sockets or []
        if sockets:
            self.port = sockets[0].getsockname()[1]
        addrs = ', '.join(format_peer(sock.getsockname()) for sock in sockets)
        logger.info(f"Server is started and listening on {addrs}")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """
        Stop the server gracefully.

        Stops accepting, closes every active connection and waits for the
        listener to shut down.
        """
        if self._server is None:
            return

        self._server.close()
        for writer in list(self._connections.values()):
            writer.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None
            self._running = False

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def active_connections(self) -> List[str]:
        """Peers currently connected, as host:port strings."""
        return [format_peer(peer) for peer in self._connections]

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with server stats including connection counts,
            request counts, and registry statistics.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "active_connections": len(self._connections),
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "registry_stats": self.store.get_stats(),
        }
