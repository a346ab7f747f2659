"""
Chat Server Package

This package provides the chat server: the roster of logged-in names, the
per-connection login handshake and the message router.
"""

from .chat_server import ChatServer, DEFAULT_HOST, DEFAULT_PORT
from .roster import Roster
from .utils import NAME_PATTERN, is_valid_name

__all__ = [
    "ChatServer",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "Roster",
    "NAME_PATTERN",
    "is_valid_name",
]
