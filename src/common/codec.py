"""
Wire Codec

Encodes messages into the JSON text carried by one WebSocket frame and
decodes frames back into message objects.
"""

import json
import logging
from typing import Dict, Type, Union

from .errors import ProtocolViolation
from .schemas import (
    BaseMessage,
    ChatMessage,
    ErrorMessage,
    LoginMessage,
    LoginRequestMessage,
    LoginResponseMessage,
    NameRequestMessage,
    NameResponseMessage,
)

logger = logging.getLogger(__name__)

MESSAGE_TYPES: Dict[str, Type[BaseMessage]] = {
    message_class.MESSAGE_TYPE: message_class
    for message_class in (
        LoginMessage,
        LoginRequestMessage,
        LoginResponseMessage,
        ChatMessage,
        NameRequestMessage,
        NameResponseMessage,
        ErrorMessage,
    )
}


def encode_message(message: BaseMessage) -> str:
    """Serialize a message into one frame payload."""
    return message.to_json()


def decode_message(frame: Union[str, bytes]) -> BaseMessage:
    """
    Parse one frame payload into a message.

    Args:
        frame: Text (or UTF-8 bytes) received from the connection

    Returns:
        The decoded message

    Raises:
        ProtocolViolation: If the frame is not a well-formed message
    """
    if isinstance(frame, bytes):
        try:
            frame = frame.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolViolation(f"Frame is not valid UTF-8: {e}") from e

    try:
        data = json.loads(frame)
    except json.JSONDecodeError as e:
        raise ProtocolViolation(f"Invalid JSON format: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolViolation("Message must be a JSON object")

    message_type = data.get("type")
    if not isinstance(message_type, str) or message_type not in MESSAGE_TYPES:
        raise ProtocolViolation(f"Unknown message type: {message_type}")

    message = MESSAGE_TYPES[message_type].from_dict(data)
    logger.debug(f"Decoded {message_type} message")
    return message
