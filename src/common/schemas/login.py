"""
Login Schema Definitions

This module defines the messages exchanged while a client negotiates its
display name with the server, and the logout notice.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .base import BaseMessage


@dataclass(frozen=True)
class LoginMessage(BaseMessage):
    """
    Request to join (joining=True) or leave (joining=False) the chat.

    Attributes:
        name: Display name the client wants to use
        joining: True to log in, False to log out
    """

    MESSAGE_TYPE = "login"
    FROM_CLIENT = True

    name: str
    joining: bool

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "LoginMessage":
        """Create from message data dictionary."""
        return cls(
            name=cls._field(data, "name", str),
            joining=cls._field(data, "joining", bool),
        )


@dataclass(frozen=True)
class LoginRequestMessage(BaseMessage):
    """
    Server prompt asking the client to propose a different name.

    Sent when the requested name is taken or invalid.
    """

    MESSAGE_TYPE = "login_request"
    FROM_SERVER = True


@dataclass(frozen=True)
class LoginResponseMessage(BaseMessage):
    """
    Outcome of a login attempt.

    Attributes:
        accepted: True if the client is now logged in
        reason: Optional explanation, set when the attempt was rejected
    """

    MESSAGE_TYPE = "login_response"
    FROM_SERVER = True

    accepted: bool
    reason: Optional[str] = None

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "LoginResponseMessage":
        """Create from message data dictionary."""
        return cls(
            accepted=cls._field(data, "accepted", bool),
            reason=cls._field(data, "reason", str, optional=True),
        )
