#!/usr/bin/env python3
"""
RESP-KV Server Entry Point

This is the main entry point for starting the RESP-KV server.

Usage:
    python -m respkv.server                          # Default settings (127.0.0.1:6379)
    python -m respkv.server --port 8080              # Custom port
    python -m respkv.server --host 0.0.0.0           # Custom host
    python -m respkv.server --snapshot data.snapshot # Custom SAVE/LOAD file
    python -m respkv.server --debug                  # Enable debug logging

Environment Variables:
    RESPKV_HOST           - Server bind address
    RESPKV_PORT           - Server port
    RESPKV_SNAPSHOT_PATH  - File used by SAVE and LOAD
    RESPKV_DEBUG          - Enable debug mode (true/false)
    RESPKV_LOG_LEVEL      - Log level when debug mode is off
"""

import argparse
import asyncio
import logging
import signal
import sys

from .cache.store import KVStore
from .config.settings import settings
from .network.tcp_server import KVServer
from .persistence.snapshot import Snapshot


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="RESP-KV: In-Memory Key-Value Server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--snapshot",
        type=str,
        default=settings.SNAPSHOT_PATH,
        help="File written by SAVE and read by LOAD",
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
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def main(argv=None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)

    # Setup logging
    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    server = KVServer(
        host=args.host,
        port=args.port,
        store=KVStore(),
        snapshot=Snapshot(args.snapshot),
    )

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

    # Log startup info
    logger.info("Starting RESP-KV server")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Snapshot: {args.snapshot}")
    logger.info(f"  Debug: {args.debug}")

    # Run the server
    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    except OSError as e:
        # Failing to listen is fatal
        logger.error(f"Server error: {e}")
        sys.exit(1)
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
