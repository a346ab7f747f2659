"""
Chat Schema Definitions

This module defines the chat message itself, the roster request/response
pair, and the error report the server sends when it cannot act on a
client message.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..errors import ProtocolViolation
from .base import BaseMessage


@dataclass(frozen=True)
class ChatMessage(BaseMessage):
    """
    A text message, relayed through the server.

    Attributes:
        sender: Display name of the author
        recipient: Display name of the single recipient, or None to
            broadcast to everyone logged in
        body: The message text
    """

    MESSAGE_TYPE = "chat"
    FROM_CLIENT = True
    FROM_SERVER = True

    sender: str
    recipient: Optional[str]
    body: str

    @property
    def is_broadcast(self) -> bool:
        return self.recipient is None

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "ChatMessage":
        """Create from message data dictionary."""
        return cls(
            sender=cls._field(data, "sender", str),
            recipient=cls._field(data, "recipient", str, optional=True),
            body=cls._field(data, "body", str),
        )


@dataclass(frozen=True)
class NameRequestMessage(BaseMessage):
    """
    Request for the list of logged-in names.

    Attributes:
        sender: Display name of the requesting client
    """

    MESSAGE_TYPE = "name_request"
    FROM_CLIENT = True

    sender: str

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "NameRequestMessage":
        """Create from message data dictionary."""
        return cls(sender=cls._field(data, "sender", str))


@dataclass(frozen=True)
class NameResponseMessage(BaseMessage):
    """
    Snapshot of the roster, in login order.

    Attributes:
        names: Logged-in display names
    """

    MESSAGE_TYPE = "name_response"
    FROM_SERVER = True

    names: Tuple[str, ...]

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "NameResponseMessage":
        """Create from message data dictionary."""
        names = cls._field(data, "names", list)
        if not all(isinstance(name, str) for name in names):
            raise ProtocolViolation("'name_response' names must be strings")
        return cls(names=tuple(names))


@dataclass(frozen=True)
class ErrorMessage(BaseMessage):
    """
    Error report sent by the server.

    Attributes:
        error: Human readable error message
        error_code: Error code (e.g., ROUTING_FAILURE, INVALID_CONTENT)
    """

    MESSAGE_TYPE = "error"
    FROM_SERVER = True

    error: str
    error_code: str

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "ErrorMessage":
        """Create from message data dictionary."""
        return cls(
            error=cls._field(data, "error", str),
            error_code=cls._field(data, "error_code", str),
        )
