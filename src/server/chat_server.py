"""
Chat Server

Accepts WebSocket connections from chat clients, negotiates a unique display
name for each one and relays their chat messages to one or all logged-in
peers.
"""

import logging
from dataclasses import replace
from typing import Optional, Set

from websockets.asyncio.server import serve

from common.channel import Channel
from common.errors import (
    ConnectionFailed,
    NameRejected,
    ProtocolViolation,
    RoutingFailure,
)
from common.schemas import (
    ChatMessage,
    ErrorMessage,
    LoginMessage,
    LoginRequestMessage,
    LoginResponseMessage,
    NameRequestMessage,
    NameResponseMessage,
)

from .roster import Roster
from .utils import broadcast_message, is_valid_name, validate_message_content

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080


class ChatServer:
    """
    WebSocket chat server.

    Every connection gets its own handler task. A handler first negotiates
    a name, then routes each incoming message until the client logs out or
    the connection fails. Broadcasts are not echoed back to their sender.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        roster: Optional[Roster] = None,
    ):
        """
        Initialize the chat server.

        Args:
            host: Host address to bind to
            port: Port to listen on (0 picks a free port)
            roster: Optional roster instance, mainly for tests
        """
        self.host = host
        self.port = port
        self.roster = roster or Roster()
        self.connections: Set[Channel] = set()
        self.server = None

    async def start(self):
        """Start listening for connections."""
        self.server = await serve(self.handle_client, self.host, self.port)
        sockets = list(self.server.sockets)
        if sockets:
            self.port = sockets[0].getsockname()[1]
        logger.info(f"Chat server started on ws://{self.host}:{self.port}")

    async def stop(self):
        """Stop the server and close every connection."""
        open_channels = list(self.connections)
        for channel in open_channels:
            await channel.close()
        if open_channels:
            logger.info(f"Closed {len(open_channels)} open connections")

        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None
            logger.info("Chat server stopped")

    async def handle_client(self, websocket):
        """
        Handle one WebSocket connection.

        Args:
            websocket: The accepted WebSocket connection
        """
        remote = getattr(websocket, "remote_address", None)
        if remote:
            peer = f"{remote[0]}:{remote[1]}"
        else:
            peer = str(id(websocket))
        await self.serve_channel(Channel(websocket, peer=peer))

    async def serve_channel(self, channel: Channel):
        """
        Run the login handshake and then the routing loop for a channel.

        The roster entry is always released when this returns, whatever the
        reason the connection ended.

        Args:
            channel: Channel of the connected client
        """
        self.connections.add(channel)
        logger.info(f"Client {channel.peer} connected")
        name = None

        try:
            name = await self.negotiate_name(channel)
            if name is None:
                return
            await channel.send(LoginResponseMessage(accepted=True))
            logger.info(f"Client {channel.peer} logged in as '{name}'")
            await self.route_messages(channel, name)
        except ConnectionFailed as e:
            logger.info(f"Client {channel.peer} disconnected: {e}")
        except ProtocolViolation as e:
            logger.warning(f"Dropping {channel.peer}: {e}")
            await self._send_error(channel, str(e), e.error_code)
        finally:
            if name is not None:
                await self.roster.unregister(name, channel)
            self.connections.discard(channel)
            await channel.close()

    async def negotiate_name(self, channel: Channel) -> Optional[str]:
        """
        Wait for a login with an acceptable name.

        Rejected attempts are answered with a negative LoginResponseMessage
        followed by a LoginRequestMessage, and the client may try again any
        number of times.

        Args:
            channel: Channel of the connected client

        Returns:
            The registered name, or None if the client left before
            logging in

        Raises:
            ProtocolViolation: If anything other than a login arrives
            ConnectionFailed: If the connection fails
        """
        while True:
            message = await channel.receive()

            if not isinstance(message, LoginMessage):
                raise ProtocolViolation(
                    f"Expected login, got '{message.MESSAGE_TYPE}'"
                )
            if not message.joining:
                logger.info(f"Client {channel.peer} left before logging in")
                return None

            try:
                await self._claim_name(message.name, channel)
                return message.name
            except NameRejected as e:
                logger.info(f"Rejected login from {channel.peer}: {e}")
                await channel.send(
                    LoginResponseMessage(accepted=False, reason=str(e))
                )
                await channel.send(LoginRequestMessage())

    async def _claim_name(self, name: str, channel: Channel):
        """
        Validate a name and register it for the channel.

        Raises:
            NameRejected: If the name is invalid or already taken
        """
        if not is_valid_name(name):
            raise NameRejected(f"Name '{name}' is not valid")
        if not await self.roster.register(name, channel):
            raise NameRejected(f"Name '{name}' is already taken")

    async def route_messages(self, channel: Channel, name: str):
        """
        Route messages from a logged-in client until it logs out.

        Args:
            channel: Channel of the logged-in client
            name: The client's registered name

        Raises:
            ProtocolViolation: If an unexpected message arrives
            ConnectionFailed: If the connection fails
        """
        while True:
            message = await channel.receive()

            if isinstance(message, ChatMessage):
                await self.handle_chat_message(channel, name, message)
            elif isinstance(message, NameRequestMessage):
                await self.handle_name_request(channel)
            elif isinstance(message, LoginMessage):
                if message.joining:
                    raise ProtocolViolation(f"'{name}' is already logged in")
                logger.info(f"'{name}' logged out")
                return
            else:
                raise ProtocolViolation(
                    f"Unexpected message type: {message.MESSAGE_TYPE}"
                )

    async def handle_chat_message(
        self, channel: Channel, name: str, message: ChatMessage
    ):
        """
        Relay a chat message to its recipient(s).

        The sender field is always set to the sender's registered name.

        Args:
            channel: Channel of the sending client
            name: The sender's registered name
            message: The message to relay
        """
        is_valid, error = validate_message_content(message.body)
        if not is_valid:
            await channel.send(
                ErrorMessage(error=error, error_code="INVALID_CONTENT")
            )
            return

        relayed = replace(message, sender=name)

        if relayed.is_broadcast:
            recipients = await self.roster.entries()
            delivered = await broadcast_message(
                recipients, relayed, exclude_name=name
            )
            logger.info(f"Broadcast from '{name}' delivered to {delivered}")
            return

        try:
            await self._unicast(relayed)
        except RoutingFailure as e:
            logger.warning(f"Routing failure for '{name}': {e}")
            await channel.send(ErrorMessage(error=str(e), error_code=e.error_code))

    async def _unicast(self, message: ChatMessage):
        """
        Deliver a private message.

        Raises:
            RoutingFailure: If the recipient is not logged in or the
                delivery fails
        """
        target = await self.roster.lookup(message.recipient)
        if target is None:
            raise RoutingFailure(
                f"User '{message.recipient}' is not logged in"
            )

        try:
            await target.send(message)
        except ConnectionFailed as e:
            raise RoutingFailure(
                f"Could not deliver message to '{message.recipient}'"
            ) from e

        logger.info(
            f"Private message from '{message.sender}' "
            f"delivered to '{message.recipient}'"
        )

    async def handle_name_request(self, channel: Channel):
        """
        Reply with the current roster.

        Args:
            channel: Channel of the requesting client
        """
        names = await self.roster.names()
        await channel.send(NameResponseMessage(names=tuple(names)))
        logger.info(f"Sent name list with {len(names)} names")

    async def _send_error(self, channel: Channel, error: str, error_code: str):
        """Best-effort error report; the channel may already be broken."""
        try:
            await channel.send(ErrorMessage(error=error, error_code=error_code))
        except ConnectionFailed as e:
            logger.debug(f"Could not report error to {channel.peer}: {e}")
