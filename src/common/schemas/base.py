"""
Base Message Class

This module provides the base class shared by every wire message with
common serialization and deserialization methods.

Message Format:
    All messages are JSON objects with the following structure:
    {
        "type": "message_type",
        "data": { ... message-specific data ... }
    }
    Messages without fields omit the "data" key.
"""

import json
from dataclasses import asdict, fields
from typing import Any, ClassVar, Dict, TypeVar

from ..errors import ProtocolViolation

T = TypeVar("T", bound="BaseMessage")


class BaseMessage:
    """
    Base class for message schemas.

    Subclasses are frozen dataclasses. Each declares its wire tag and the
    direction(s) it is allowed to travel in.

    Attributes:
        MESSAGE_TYPE: Wire tag stored under the "type" key
        FROM_CLIENT: True if a client may send this message
        FROM_SERVER: True if the server may send this message
    """

    MESSAGE_TYPE: ClassVar[str] = ""
    FROM_CLIENT: ClassVar[bool] = False
    FROM_SERVER: ClassVar[bool] = False

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with 'type' key and optional 'data' key.
            If the message has no fields, only 'type' is included.
        """
        if fields(self):
            return {"type": self.MESSAGE_TYPE, "data": asdict(self)}
        return {"type": self.MESSAGE_TYPE}

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from dictionary.

        Args:
            data: Dictionary containing the full message

        Returns:
            Instance of the message class.

        Raises:
            ProtocolViolation: If the payload does not match the schema
        """
        message_data = data.get("data", {})
        if not isinstance(message_data, dict):
            raise ProtocolViolation(
                f"'{cls.MESSAGE_TYPE}' data must be an object"
            )
        return cls._from_data(message_data)

    @classmethod
    def from_json(cls: type[T], json_str: str) -> T:
        """Create instance from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def _from_data(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from message data dictionary.

        Should be overridden by subclasses that carry fields.
        """
        return cls()

    @classmethod
    def _field(
        cls,
        data: Dict[str, Any],
        key: str,
        expected_type: type,
        optional: bool = False,
    ) -> Any:
        """
        Read one typed field out of a message payload.

        Raises:
            ProtocolViolation: If the field is missing or has the wrong type
        """
        value = data.get(key)
        if value is None and optional:
            return None
        if not isinstance(value, expected_type):
            raise ProtocolViolation(
                f"'{cls.MESSAGE_TYPE}' field '{key}' must be "
                f"{expected_type.__name__}"
            )
        return value
