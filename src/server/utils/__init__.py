"""
Utilities for the Chat Server

This module contains utility functions for broadcasting and validation.
"""

from .broadcast import broadcast_message
from .validation import (
    NAME_PATTERN,
    MAX_MESSAGE_LENGTH,
    is_valid_name,
    validate_message_content,
)

__all__ = [
    "broadcast_message",
    "NAME_PATTERN",
    "MAX_MESSAGE_LENGTH",
    "is_valid_name",
    "validate_message_content",
]
