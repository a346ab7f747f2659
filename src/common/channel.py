"""
Session Channel

A bidirectional, ordered, message-framed connection between one client and
the server. Wraps a WebSocket connection (client or server side) and speaks
in message objects instead of raw frames.

Architecture:
    - One frame per message, so framing is handled by the WebSocket layer
    - Writes are serialized with an asyncio.Lock so frames never interleave
    - Exactly one reader task drains receive()
"""

import asyncio
import logging
from typing import Optional

import websockets
from websockets.asyncio.client import connect

from .codec import decode_message, encode_message
from .errors import ConnectionFailed
from .schemas import BaseMessage

logger = logging.getLogger(__name__)


class Channel:
    """
    Message channel over a single WebSocket connection.

    Attributes:
        websocket: The wrapped WebSocket connection
        peer: Printable address of the remote end, used in log messages
    """

    def __init__(self, websocket, peer: Optional[str] = None):
        """
        Initialize the channel.

        Args:
            websocket: Connection object exposing async send/recv/close
            peer: Optional printable address of the remote end
        """
        self.websocket = websocket
        self.peer = peer or str(id(websocket))
        self._send_lock = asyncio.Lock()
        self._receiving = False
        self._closed = False

    @classmethod
    async def connect(cls, url: str) -> "Channel":
        """
        Open a client channel to a chat server.

        Args:
            url: WebSocket URL of the server (e.g., ws://localhost:8080)

        Raises:
            ConnectionFailed: If the connection cannot be established
        """
        try:
            websocket = await connect(url)
        except (OSError, asyncio.TimeoutError) as e:
            raise ConnectionFailed(f"Could not connect to {url}: {e}") from e
        except websockets.exceptions.WebSocketException as e:
            raise ConnectionFailed(f"Could not connect to {url}: {e}") from e

        logger.info(f"Connected to {url}")
        return cls(websocket, peer=url)

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, message: BaseMessage) -> None:
        """
        Serialize and write one message.

        Raises:
            ConnectionFailed: If the connection is closed or the write fails
        """
        payload = encode_message(message)
        async with self._send_lock:
            if self._closed:
                raise ConnectionFailed(f"Channel to {self.peer} is closed")
            try:
                await self.websocket.send(payload)
            except websockets.exceptions.ConnectionClosed as e:
                raise ConnectionFailed(
                    f"Connection to {self.peer} closed: {e}"
                ) from e
            except OSError as e:
                raise ConnectionFailed(
                    f"Write to {self.peer} failed: {e}"
                ) from e

    async def receive(self) -> BaseMessage:
        """
        Wait for the next message from the peer.

        Returns:
            The decoded message

        Raises:
            ConnectionFailed: If the connection fails or is closed
            ProtocolViolation: If the frame cannot be decoded (the frame is
                consumed and the channel remains usable)
            RuntimeError: If another task is already receiving
        """
        if self._receiving:
            raise RuntimeError("Another task is already receiving")
        self._receiving = True
        try:
            frame = await self.websocket.recv()
        except websockets.exceptions.ConnectionClosed as e:
            raise ConnectionFailed(
                f"Connection to {self.peer} closed: {e}"
            ) from e
        except OSError as e:
            raise ConnectionFailed(f"Read from {self.peer} failed: {e}") from e
        finally:
            self._receiving = False

        return decode_message(frame)

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            await self.websocket.close()
        except OSError as e:
            logger.debug(f"Error while closing channel to {self.peer}: {e}")
        logger.debug(f"Channel to {self.peer} closed")
