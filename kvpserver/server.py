#!/usr/bin/env python3
"""
KVP Server Entry Point

This is the main entry point for starting the KVP server.

Usage:
    python -m kvpserver.server                      # Defaults (port 5555, capitals.txt)
    python -m kvpserver.server -p 8080              # Custom port
    python -m kvpserver.server -f registry.txt      # Custom registry file
    python -m kvpserver.server --strict             # Reject updates of existing keys
    python -m kvpserver.server --debug              # Enable debug logging

Ports outside 1024..65535 fall back to the default port.

Environment Variables:
    KVP_SERVER_HOST       - Server bind address
    KVP_SERVER_PORT       - Server port
    KVP_SERVER_REGISTRY   - Registry file path
    KVP_SERVER_STRICT     - Reject updates of existing keys (true/false)
    KVP_SERVER_DEBUG      - Enable debug mode (true/false)
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from .config.settings import resolve_port, settings
from .network.tcp_server import KVPServer
from .registry.errors import RegistryError
from .registry.loader import load_registry
from .registry.store import RegistryStore, UpdatePolicy


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="KVP Server: key-value registry served over TCP",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "-p", "--port",
        type=resolve_port,
        default=settings.PORT,
        help="Port number to listen on (1024-65535)",
    )

    parser.add_argument(
        "-f", "--file",
        dest="registry_file",
        type=str,
        default=settings.REGISTRY_FILE,
        help="Registry file to load at startup",
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        default=settings.STRICT,
        help="Reject PUT for keys that already exist",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def build_store(registry_file: str, strict: bool) -> RegistryStore:
    """
    Create the registry and fill it from the registry file.

    Raises:
        RegistryError: The file is missing, unreadable or malformed
    """
    store = RegistryStore(policy=UpdatePolicy.from_strict(strict))
    load_registry(registry_file, store)
    return store


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    try:
        store = build_store(args.registry_file, args.strict)
    except RegistryError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.info("KVP Registry has been loaded")

    server = KVPServer(host=args.host, port=args.port, store=store)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    async def shutdown(sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        await server.stop()

    # Register signal handlers (Unix only)
    if sys.platform != 'win32':
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(
                sig,
                lambda s=sig: asyncio.create_task(shutdown(s))
            )

    logger.info("Starting KVP server")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Registry: {args.registry_file} ({store.size()} keys)")
    logger.info(f"  Update policy: {store.policy.value}")

    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    except OSError as e:
        logger.error(f"Cannot listen on {args.host}:{args.port}: {e}")
        sys.exit(1)
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
