"""
Client Package

This package provides the client-side functionality for the relay chat
system: the ChatClient session that logs in and exchanges messages with the
server, and the terminal user interface built on top of it.

The wire schemas and the listener interface live in the `common` package
and are re-exported here for convenience.
"""

from common.listener import ChatListener
from common.schemas import (
    BaseMessage,
    LoginMessage,
    LoginRequestMessage,
    LoginResponseMessage,
    ChatMessage,
    NameRequestMessage,
    NameResponseMessage,
    ErrorMessage,
)

from .chat_client import ChatClient, ClientState, build_server_url

__all__ = [
    # Session classes
    "ChatClient",
    "ClientState",
    "ChatListener",
    "build_server_url",
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
