"""Storage port for the webhook deduplication window."""

from abc import ABC, abstractmethod


class ProcessedEventStorePort(ABC):
    """Remembers the ids of the most recently handled processor events."""

    @abstractmethod
    async def is_processed(self, event_id: str) -> bool:
        pass

    @abstractmethod
    async def mark_processed(self, event_id: str, event_type: str = "") -> None:
        """Record ``event_id``, evicting the oldest ids beyond the window."""
        pass
