import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Set

from app.core.logger import get_logger

logger = get_logger(__name__)

CONTAINER_UPDATED = "container.updated"
CONTAINER_REMOVED = "container.removed"


class InMemoryEventBus:
    """Fans events out to subscriber queues. publish() never blocks the caller."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: Set[asyncio.Queue] = set()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: str, payload: Dict[str, Any]) -> None:
        message = {
            "event": event,
            "payload": payload,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.warning(f"Dropping {event} for a slow subscriber")
