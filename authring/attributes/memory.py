"""
In-memory attribute store, for tests and single process deployments.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..errors import AttributeNotFoundError
from .store import AttributeStore

logger = logging.getLogger(__name__)


class MemoryAttributeStore(AttributeStore):
    """Dictionary backed attribute store.

    ``writes`` records every ``(owner_id, slot)`` written, in order, so callers
    can check which persistence calls happened.
    """

    def __init__(self, initial: Optional[Dict[Tuple[str, str], bytes]] = None):
        self._data: Dict[Tuple[str, str], bytes] = dict(initial or {})
        self.writes: List[Tuple[str, str]] = []

    async def get_attribute(self, owner_id: str, slot: str) -> bytes:
        try:
            return self._data[(owner_id, slot)]
        except KeyError:
            raise AttributeNotFoundError(owner_id, slot) from None

    async def set_attribute(self, owner_id: str, slot: str, value: bytes) -> None:
        self._data[(owner_id, slot)] = bytes(value)
        self.writes.append((owner_id, slot))
        logger.debug("Stored attribute %s for %s (%d bytes)", slot, owner_id, len(value))

    def peek(self, owner_id: str, slot: str) -> Optional[bytes]:
        """Synchronous read without raising, for inspection."""
        return self._data.get((owner_id, slot))


def create_memory_store() -> MemoryAttributeStore:
    return MemoryAttributeStore()


__all__ = ["MemoryAttributeStore", "create_memory_store"]
