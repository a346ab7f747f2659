"""
Validation Utilities

Contains the display-name rule and message content checks. The server owns
these rules; the client imports them to pre-validate before sending.
"""

import re
from typing import Tuple, Optional

# Display names: letters, digits, underscore and hyphen
NAME_PATTERN = r"[A-Za-z0-9_-]{1,24}"
_NAME_RE = re.compile(NAME_PATTERN)

# Message validation constants
MAX_MESSAGE_LENGTH = 5000


def is_valid_name(name: str) -> bool:
    """
    Check a display name against NAME_PATTERN.

    This does not check whether the name is already taken.
    """
    if not isinstance(name, str):
        return False
    return _NAME_RE.fullmatch(name) is not None


def validate_message_content(content: str) -> Tuple[bool, Optional[str]]:
    """
    Validate message content.

    Args:
        content: The message content to validate

    Returns:
        tuple: (is_valid, error_message)
            - is_valid: True if content is valid, False otherwise
            - error_message: Error message if invalid, None if valid
    """
    if not content or not content.strip():
        return False, "Message content cannot be empty"

    if len(content) > MAX_MESSAGE_LENGTH:
        return (
            False,
            f"Message content too long (max {MAX_MESSAGE_LENGTH} characters)",
        )

    return True, None
