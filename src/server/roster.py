"""
Roster

Manages the mapping from logged-in display names to their channels. The
roster is the only state shared between connection handlers.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from common.channel import Channel

logger = logging.getLogger(__name__)


class Roster:
    """
    Registry of logged-in clients.

    Every read and write goes through one asyncio.Lock, so a name check and
    the insert that follows it are atomic with respect to other handlers.
    Entries keep insertion order, which is the login order.
    """

    def __init__(self):
        """Initialize an empty roster."""
        self._entries: Dict[str, Channel] = {}  # name -> channel
        self._lock = asyncio.Lock()

    async def register(self, name: str, channel: Channel) -> bool:
        """
        Register a name for a channel.

        Args:
            name: The display name to claim
            channel: The channel of the connection claiming it

        Returns:
            True if the name was free and is now registered, False if taken
        """
        async with self._lock:
            if name in self._entries:
                return False
            self._entries[name] = channel
        logger.info(f"Registered '{name}' ({len(self._entries)} logged in)")
        return True

    async def unregister(
        self, name: str, channel: Optional[Channel] = None
    ) -> bool:
        """
        Remove a name from the roster.

        Args:
            name: The display name to release
            channel: If given, only remove the entry when it belongs to
                this channel

        Returns:
            True if an entry was removed
        """
        async with self._lock:
            current = self._entries.get(name)
            if current is None:
                return False
            if channel is not None and current is not channel:
                return False
            del self._entries[name]
        logger.info(f"Unregistered '{name}' ({len(self._entries)} logged in)")
        return True

    async def lookup(self, name: str) -> Optional[Channel]:
        """
        Get the channel registered for a name.

        Returns:
            The channel if the name is logged in, None otherwise
        """
        async with self._lock:
            return self._entries.get(name)

    async def names(self) -> List[str]:
        """Snapshot of logged-in names in login order."""
        async with self._lock:
            return list(self._entries)

    async def entries(self) -> List[Tuple[str, Channel]]:
        """Snapshot of (name, channel) pairs in login order."""
        async with self._lock:
            return list(self._entries.items())

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
