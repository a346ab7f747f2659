"""
Shared test helpers: a recording listener, fake connections and a loopback
chat server fixture.
"""

import asyncio

import pytest_asyncio
import websockets

from common.errors import ConnectionFailed
from common.listener import ChatListener
from server import ChatServer

CLOSED = object()


class RecordingListener(ChatListener):
    """Listener that records every callback."""

    def __init__(self):
        self.statuses = []
        self.sent = []
        self.received = []

    def stat(self, text, is_error):
        super().stat(text, is_error)
        self.statuses.append((text, is_error))

    def message_sent(self, message):
        super().message_sent(message)
        self.sent.append(message)

    def message_received(self, message):
        super().message_received(message)
        self.received.append(message)

    def received_of(self, message_class):
        return [m for m in self.received if isinstance(m, message_class)]

    def sent_of(self, message_class):
        return [m for m in self.sent if isinstance(m, message_class)]

    @property
    def errors(self):
        return [text for text, is_error in self.statuses if is_error]

    def status_count(self, text):
        return sum(1 for status, _ in self.statuses if status == text)


class FakeWebSocket:
    """In-memory stand-in for a websockets connection."""

    def __init__(self):
        self.incoming = asyncio.Queue()
        self.sent_messages = []
        self.closed = False

    async def send(self, message):
        if self.closed:
            raise websockets.exceptions.ConnectionClosedOK(None, None)
        self.sent_messages.append(message)

    async def recv(self):
        item = await self.incoming.get()
        if item is CLOSED:
            raise websockets.exceptions.ConnectionClosedOK(None, None)
        return item

    async def close(self):
        if not self.closed:
            self.closed = True
            self.incoming.put_nowait(CLOSED)


class FakeChannel:
    """In-memory stand-in for a Channel that speaks in message objects."""

    def __init__(self, peer="fake"):
        self.peer = peer
        self.incoming = asyncio.Queue()
        self.sent = []
        self.closed = False
        self.dropped = False

    def feed(self, item):
        """Queue a message (or an exception to raise) for receive()."""
        self.incoming.put_nowait(item)

    def drop(self):
        """Simulate the remote end going away; later writes fail."""
        self.dropped = True
        self.incoming.put_nowait(CLOSED)

    async def send(self, message):
        if self.closed:
            raise ConnectionFailed(f"Channel to {self.peer} is closed")
        if self.dropped:
            raise ConnectionFailed(f"Connection to {self.peer} lost")
        self.sent.append(message)

    async def receive(self):
        item = await self.incoming.get()
        if item is CLOSED:
            raise ConnectionFailed(f"Connection to {self.peer} closed")
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self):
        if not self.closed:
            self.closed = True
            self.incoming.put_nowait(CLOSED)


async def wait_until(predicate, timeout=5.0):
    """Poll until predicate() is true or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Timed out waiting for condition")
        await asyncio.sleep(0.01)


@pytest_asyncio.fixture
async def chat_server():
    server = ChatServer("127.0.0.1", 0)
    await server.start()
    yield server
    await server.stop()
