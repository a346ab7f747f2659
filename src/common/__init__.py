"""
Common Package

Code shared by the chat client and the chat server: the wire message
schemas and codec, the session channel, the listener interface and the
error taxonomy.
"""

from .channel import Channel
from .codec import MESSAGE_TYPES, decode_message, encode_message
from .errors import (
    ChatError,
    ConnectionFailed,
    ProtocolViolation,
    NameRejected,
    RoutingFailure,
)
from .listener import ChatListener
from .schemas import (
    BaseMessage,
    LoginMessage,
    LoginRequestMessage,
    LoginResponseMessage,
    ChatMessage,
    NameRequestMessage,
    NameResponseMessage,
    ErrorMessage,
)

__all__ = [
    # Transport
    "Channel",
    "MESSAGE_TYPES",
    "decode_message",
    "encode_message",
    # Errors
    "ChatError",
    "ConnectionFailed",
    "ProtocolViolation",
    "NameRejected",
    "RoutingFailure",
    # Listener
    "ChatListener",
    # Schemas
    "BaseMessage",
    "LoginMessage",
    "LoginRequestMessage",
    "LoginResponseMessage",
    "ChatMessage",
    "NameRequestMessage",
    "NameResponseMessage",
    "ErrorMessage",
]
