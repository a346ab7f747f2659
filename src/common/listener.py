"""
Chat Listener

The boundary between the chat client and whatever presents it to a user.
The client reports status lines, sent messages and received messages
through these three callbacks.
"""

import logging

from .schemas import BaseMessage

logger = logging.getLogger(__name__)


class ChatListener:
    """
    Observer for a ChatClient.

    The default implementation only logs. Presentation layers subclass it
    and override the callbacks they care about. Callbacks run on the
    client's event loop and should return quickly.
    """

    def stat(self, text: str, is_error: bool) -> None:
        """
        Report a status or diagnostic line.

        Args:
            text: The status text
            is_error: True if the status describes a failure
        """
        if is_error:
            logger.warning(text)
        else:
            logger.info(text)

    def message_sent(self, message: BaseMessage) -> None:
        """Called after every message that was written successfully."""
        logger.debug(f"Sent {message.MESSAGE_TYPE}: {message}")

    def message_received(self, message: BaseMessage) -> None:
        """Called for every server message, before the client acts on it."""
        logger.debug(f"Received {message.MESSAGE_TYPE}: {message}")
