"""
Schemas Package

This package contains the wire message schemas exchanged between the chat
client and the chat server. Schemas are organized by category: login
negotiation and chat traffic.

Every schema derives from BaseMessage, which provides the serialization and
deserialization methods.
"""

from .base import BaseMessage
from .login import (
    LoginMessage,
    LoginRequestMessage,
    LoginResponseMessage,
)
from .chat import (
    ChatMessage,
    NameRequestMessage,
    NameResponseMessage,
    ErrorMessage,
)

__all__ = [
    # Base class
    "BaseMessage",
    # Login schemas
    "LoginMessage",
    "LoginRequestMessage",
    "LoginResponseMessage",
    # Chat schemas
    "ChatMessage",
    "NameRequestMessage",
    "NameResponseMessage",
    "ErrorMessage",
]
