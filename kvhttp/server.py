#!/usr/bin/env python3
"""
KV-HTTP Server Entry Point

This is the main entry point for starting the KV-HTTP server.

Usage:
    python -m kvhttp.server                    # Default settings (0.0.0.0:8080)
    python -m kvhttp.server --port 9090        # Custom port
    python -m kvhttp.server --host 127.0.0.1   # Custom host
    python -m kvhttp.server --workers 8        # Handler thread pool size
    python -m kvhttp.server --debug            # Enable debug logging

Environment Variables:
    KV_HTTP_HOST           - Server bind address
    KV_HTTP_PORT           - Server port
    KV_HTTP_WORKERS        - Handler thread pool size
    KV_HTTP_MAX_BODY_SIZE  - Largest accepted request body in bytes
    KV_HTTP_DEBUG          - Enable debug mode (true/false)
    KV_HTTP_LOG_LEVEL      - Log level when debug mode is off
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from .cache.store import KVStore
from .config.settings import settings
from .network.http_server import KVHTTPServer


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="KV-HTTP: In-Memory Key-Value Store over HTTP",
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
        "--workers",
        type=int,
        default=settings.MAX_WORKERS,
        help="Number of threads running request handlers",
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


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    # One store for the lifetime of the process, discarded on exit
    store = KVStore()

    server = KVHTTPServer(
        host=args.host,
        port=args.port,
        store=store,
        max_workers=args.workers,
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

    logger.info("Starting KV-HTTP server")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Workers: {args.workers}")
    logger.info(f"  Debug: {args.debug}")

    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        loop.run_until_complete(server.stop())
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info(f"Server shutdown complete ({store.size()} keys discarded)")


if __name__ == "__main__":
    main()
