"""
Chat Client Session

This module provides the ChatClient class that manages one client's session
with the chat server: connecting, negotiating a display name, draining
incoming messages and logging out.

Architecture:
    - run() is the single reader; it owns the connection for its lifetime
    - Outbound operations may be awaited from any task on the same loop
    - update_name() may be called from any thread at any time
    - Supports dependency injection for the channel (for testability)

Usage:
    client = ChatClient(listener, "localhost:8080")
    client.update_name("alice")
    task = asyncio.create_task(client.run())
    ...
    await client.message_all("hello")
    await client.stop()
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple

from common.channel import Channel
from common.errors import ConnectionFailed, ProtocolViolation
from common.listener import ChatListener
from common.schemas import (
    BaseMessage,
    ChatMessage,
    ErrorMessage,
    LoginMessage,
    LoginRequestMessage,
    LoginResponseMessage,
    NameRequestMessage,
)
from server import DEFAULT_PORT
from server.utils.validation import is_valid_name

logger = logging.getLogger(__name__)


class ClientState(Enum):
    """Lifecycle states of a client session."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    NEGOTIATING_NAME = "NEGOTIATING_NAME"
    LOGGED_IN = "LOGGED_IN"
    STOPPING = "STOPPING"


def build_server_url(address: str) -> str:
    """
    Turn a user-supplied server address into a WebSocket URL.

    Accepts "host", "host:port" or a full "ws://" / "wss://" URL. A missing
    port defaults to the server's DEFAULT_PORT.
    """
    address = address.strip()
    if "://" in address:
        return address
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        return f"ws://{address}:{DEFAULT_PORT}"
    return f"ws://{host}:{port}"


def _resolve_waiter(waiter: asyncio.Future):
    if not waiter.done():
        waiter.set_result(None)


def _fail_waiter(waiter: asyncio.Future, error: Exception):
    if not waiter.done():
        waiter.set_exception(error)


class ChatClient:
    """
    One client's session with the chat server.

    Attributes:
        listener: Receives status lines and every sent/received message
        server_address: Address of the chat server ("host:port")
        state: Current ClientState
        channel: Active channel (None when disconnected)
    """

    def __init__(
        self,
        listener: ChatListener,
        server_address: str,
        channel_factory: Optional[Callable[[str], Awaitable[Channel]]] = None,
    ):
        """
        Initialize the chat client.

        Args:
            listener: Observer for status and message callbacks
            server_address: Address of the chat server
            channel_factory: Optional coroutine function returning a
                connected Channel for a URL (for dependency injection/testing)
        """
        self.listener = listener
        self.server_address = server_address
        self.channel: Optional[Channel] = None
        self.state = ClientState.DISCONNECTED
        self._channel_factory = channel_factory or Channel.connect

        # Guarded by _name_lock; update_name() may run on any thread
        self._name = ""
        self._name_version = 0
        self._name_waiter: Optional[asyncio.Future] = None
        self._name_lock = threading.Lock()

        self._running = False
        self._logged_in = False
        # True once "Client stopped" was reported for the current session
        self._stopped = False
        self._run_lock = asyncio.Lock()
        self._stop_lock = asyncio.Lock()

        logger.info("ChatClient initialized for server: %s", server_address)

    @property
    def name(self) -> str:
        with self._name_lock:
            return self._name

    @property
    def server_url(self) -> str:
        return build_server_url(self.server_address)

    def update_server_address(self, server_address: str) -> None:
        """
        Set the server address used by the next run().

        Args:
            server_address: "host", "host:port" or a ws:// URL
        """
        self.server_address = server_address
        logger.info("Server address set to: %s", server_address)

    def update_name(self, name: str) -> None:
        """
        Store a new display name and wake a negotiation waiting for one.

        Safe to call from any thread at any time. Before connecting the name
        is just remembered; while negotiating it triggers a new login
        attempt. Once logged in the name is frozen and updates are refused.

        Args:
            name: The new display name
        """
        with self._name_lock:
            if self.state in (ClientState.LOGGED_IN, ClientState.STOPPING):
                frozen = True
            else:
                frozen = False
                self._name = name
                self._name_version += 1
                waiter = self._name_waiter
                self._name_waiter = None

        if frozen:
            self.listener.stat("Cannot change name while logged in", True)
            return

        logger.info("Name set to: %s", name)
        if waiter is not None:
            waiter.get_loop().call_soon_threadsafe(_resolve_waiter, waiter)

    def is_valid_name(self, name: str) -> bool:
        """
        Check a name against the server's name rule.

        This does not check whether the name is already taken.
        """
        return is_valid_name(name)

    def is_running(self) -> bool:
        """Check if the client is connected and running."""
        return self._running

    @property
    def is_logged_in(self) -> bool:
        return self._logged_in

    async def run(self) -> None:
        """
        Connect, log in and receive messages until stopped.

        Run this in its own task. Failures are reported through the
        listener; this coroutine never raises them.
        """
        if self._run_lock.locked():
            self.listener.stat("Client is already running!", True)
            return

        async with self._run_lock:
            self._stopped = False
            self.listener.stat("Client starting ...", False)
            self.state = ClientState.CONNECTING
            url = self.server_url

            try:
                self.channel = await self._channel_factory(url)
            except ConnectionFailed as e:
                self.state = ClientState.DISCONNECTED
                self.listener.stat(f"Could not connect: {e}", True)
                return

            if self.state is not ClientState.CONNECTING:
                # stop() ran while the connection was being opened
                await self.channel.close()
                self.channel = None
                return

            self._running = True
            self.listener.stat("Client started", False)

            try:
                await self._negotiate_name()
                await self._receive_messages()
            except ConnectionFailed as e:
                # The channel is gone, so there is nothing to log out of
                self._logged_in = False
                # A failure caused by stop() is not a lost connection
                if self.state in (
                    ClientState.NEGOTIATING_NAME,
                    ClientState.LOGGED_IN,
                ):
                    self.listener.stat(f"Connection lost: {e}", True)
            finally:
                await self.stop()

    async def _negotiate_name(self) -> None:
        """
        Log in, proposing new names as long as the server asks for them.

        Raises:
            ConnectionFailed: If the connection fails or the client is
                stopped while waiting for a name
        """
        self.state = ClientState.NEGOTIATING_NAME

        with self._name_lock:
            name, version = self._name, self._name_version
        name, version = await self._propose_name(
            name, version, wait=not name.strip()
        )

        while not self._logged_in:
            message = await self._receive()
            if message is None:
                continue

            if isinstance(message, LoginResponseMessage):
                if message.accepted:
                    self._enter_logged_in(name)
                else:
                    self.listener.stat(
                        f"Login rejected: {message.reason or 'no reason'}",
                        True,
                    )
            elif isinstance(message, LoginRequestMessage):
                name, version = await self._propose_name(
                    name, version, wait=True
                )
            elif isinstance(message, ErrorMessage):
                self.listener.stat(message.error, True)
            else:
                logger.debug(
                    "Ignoring %s while negotiating", message.MESSAGE_TYPE
                )

    async def _propose_name(
        self, name: str, version: int, wait: bool
    ) -> Tuple[str, int]:
        """
        Send a login for the next valid name.

        Args:
            name: The current name
            version: Version of the current name
            wait: True to wait for a newer name before sending

        Returns:
            (name, version) that was sent
        """
        if wait:
            name, version = await self._wait_for_name(version)
        while not self.is_valid_name(name):
            self.listener.stat(f"Name '{name}' is not valid", True)
            name, version = await self._wait_for_name(version)

        await self._send(LoginMessage(name=name, joining=True))
        return name, version

    def _enter_logged_in(self, name: str) -> None:
        """Freeze the accepted name and switch to LOGGED_IN."""
        with self._name_lock:
            self._name = name
            self._logged_in = True
            self.state = ClientState.LOGGED_IN
        self.listener.stat(f"Logged in as '{name}'", False)

    async def _wait_for_name(self, seen_version: int) -> Tuple[str, int]:
        """
        Suspend until update_name() stores a non-blank name newer than
        seen_version.

        Returns:
            (name, version) of the new name

        Raises:
            ConnectionFailed: If the client is stopped while waiting
        """
        loop = asyncio.get_running_loop()
        self.listener.stat("Waiting for a name ...", False)

        while True:
            with self._name_lock:
                if self._name_version > seen_version:
                    if self._name.strip():
                        return self._name, self._name_version
                    seen_version = self._name_version
                waiter = loop.create_future()
                self._name_waiter = waiter

            try:
                await waiter
            finally:
                with self._name_lock:
                    if self._name_waiter is waiter:
                        self._name_waiter = None

    async def _receive_messages(self) -> None:
        """Drain messages until stopped or the connection fails."""
        while self._running:
            message = await self._receive()
            if isinstance(message, ErrorMessage):
                self.listener.stat(message.error, True)

    async def _receive(self) -> Optional[BaseMessage]:
        """
        Receive one server message and pass it to the listener.

        Returns:
            The message, or None if the frame was dropped

        Raises:
            ConnectionFailed: If the connection fails
        """
        try:
            message = await self.channel.receive()
        except ProtocolViolation as e:
            self.listener.stat(f"Malformed message dropped: {e}", True)
            return None

        if not message.FROM_SERVER:
            self.listener.stat(
                "A non-server message was received. Message dropped.", True
            )
            return None

        self.listener.message_received(message)
        return message

    async def stop(self) -> None:
        """
        Log out and close the connection.

        Safe to call from any state and more than once; only the first
        call while connected performs the teardown. "Client stopped" is
        reported once per session, including for a client that never ran.
        """
        async with self._stop_lock:
            if self.state is ClientState.DISCONNECTED:
                if not self._stopped:
                    self._stopped = True
                    self.listener.stat("Client stopped", False)
                return

            self.listener.stat("Stopping ...", False)
            with self._name_lock:
                self.state = ClientState.STOPPING
                waiter = self._name_waiter
                self._name_waiter = None

            if waiter is not None:
                waiter.get_loop().call_soon_threadsafe(
                    _fail_waiter,
                    waiter,
                    ConnectionFailed("Client stopped while waiting for a name"),
                )

            if self._logged_in:
                await self._send(LoginMessage(name=self.name, joining=False))
                self._logged_in = False

            self._running = False
            if self.channel is not None:
                await self.channel.close()
                self.channel = None

            self.state = ClientState.DISCONNECTED
            self._stopped = True
            self.listener.stat("Client stopped", False)

    async def message_all(self, text: str) -> bool:
        """
        Send a message to all the other users.

        Args:
            text: The message text

        Returns:
            True if the message was sent
        """
        return await self._send_user_message(
            ChatMessage(sender=self.name, recipient=None, body=text)
        )

    async def message_one(self, destination: str, text: str) -> bool:
        """
        Send a private message to one user.

        Args:
            destination: Name of the recipient
            text: The message text

        Returns:
            True if the message was sent
        """
        return await self._send_user_message(
            ChatMessage(sender=self.name, recipient=destination, body=text)
        )

    async def list_names(self) -> bool:
        """
        Ask the server for the list of logged-in users.

        The answer arrives through listener.message_received() as a
        NameResponseMessage.
        """
        return await self._send_user_message(
            NameRequestMessage(sender=self.name)
        )

    async def _send_user_message(self, message: BaseMessage) -> bool:
        if self._running and not self._logged_in:
            self.listener.stat("Client is not logged in!", True)
            return False
        return await self._send(message)

    async def _send(self, message: BaseMessage) -> bool:
        """
        Write one message and report it.

        Returns:
            True if the message was written, False otherwise
        """
        if not self._running or self.channel is None:
            self.listener.stat("Client is not running!", True)
            return False

        try:
            await self.channel.send(message)
        except ConnectionFailed as e:
            self.listener.stat(f"Could not send message: {e}", True)
            return False

        self.listener.message_sent(message)
        return True
