"""
Broadcast Utilities

Contains the fan-out helper used to relay one message to many channels.
"""

import logging
from typing import Iterable, Optional, Tuple

from common.channel import Channel
from common.errors import ConnectionFailed
from common.schemas import BaseMessage

logger = logging.getLogger(__name__)


async def broadcast_message(
    recipients: Iterable[Tuple[str, Channel]],
    message: BaseMessage,
    exclude_name: Optional[str] = None,
) -> int:
    """
    Deliver a message to every recipient channel.

    A failed delivery is logged and skipped; the failing connection's own
    handler notices the broken channel and removes it from the roster.

    Args:
        recipients: (name, channel) pairs, usually a roster snapshot
        message: The message to deliver
        exclude_name: Optional name to skip (the sender)

    Returns:
        int: Number of channels the message was written to
    """
    delivered = 0
    for name, channel in recipients:
        if name == exclude_name:
            continue

        try:
            await channel.send(message)
            delivered += 1
            logger.debug(f"Broadcasted {message.MESSAGE_TYPE} to {name}")
        except ConnectionFailed as e:
            logger.error(f"Failed to broadcast to {name}: {e}")

    return delivered
