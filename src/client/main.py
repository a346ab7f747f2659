#!/usr/bin/env python3
"""
Chat Client Application

Terminal client for the relay chat server, built on the Textual framework.

Environment:
    CHAT_SERVER_ADDRESS   Pre-filled server address (default localhost:8080)
    CHAT_USERNAME         Pre-filled display name
    CHAT_CLIENT_LOG       Log file (default chat_client.log)
    LOG_LEVEL             Log level for the log file (default WARNING)
"""

import logging
import os
import sys

# The terminal belongs to the UI, so logs go to a file
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(
            os.environ.get("CHAT_CLIENT_LOG", "chat_client.log"), mode="a"
        )
    ],
)

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the chat client."""
    server_address = os.environ.get("CHAT_SERVER_ADDRESS", "localhost:8080")
    username = os.environ.get("CHAT_USERNAME", "")
    logger.info("Starting chat client for %s", server_address)

    try:
        from .ui import ChatApp
    except ImportError as e:
        print(f"Error: Could not import UI components: {e}")
        print("Make sure textual is installed: pip install textual")
        sys.exit(1)

    try:
        ChatApp(server_address=server_address, username=username).run()
    except KeyboardInterrupt:
        print("\nExiting...")


if __name__ == "__main__":
    main()
