#!/usr/bin/env python3
"""
Chat Server

Entry point for the relay chat server. Configuration comes from the
environment:

    CHAT_HOST   Host address to bind to (default 0.0.0.0)
    CHAT_PORT   Port to listen on (default 8080)
    LOG_LEVEL   Logging level name (default INFO)
"""

import asyncio
import logging
import os
import sys

from .chat_server import ChatServer, DEFAULT_HOST, DEFAULT_PORT

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


async def run_server(host: str, port: int):
    """
    Run the chat server until cancelled.

    Args:
        host: Host address to bind to
        port: Port to listen on
    """
    server = ChatServer(host, port)
    await server.start()
    logger.info(f"Chat server is ready on ws://{host}:{server.port}")

    # Keep server running
    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await server.stop()


def main():
    """Main entry point for the chat server."""
    logger.info("Starting chat server...")

    host = os.environ.get("CHAT_HOST", DEFAULT_HOST)
    try:
        port = int(os.environ.get("CHAT_PORT", str(DEFAULT_PORT)))
    except ValueError:
        logger.error("CHAT_PORT must be an integer")
        sys.exit(2)

    try:
        asyncio.run(run_server(host, port))
    except KeyboardInterrupt:
        logger.info("Shutting down chat server...")
        sys.exit(0)


if __name__ == "__main__":
    main()
