"""In-process fan-out to connected WebSocket subscribers."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from leaderboard_node.publishers.base import LeaderboardPublisher

logger = logging.getLogger(__name__)


class BroadcastHub(LeaderboardPublisher):
    """Each subscriber owns a bounded queue; a full queue drops the message.

    Must be used from the event loop thread.
    """

    def __init__(self, max_queue_size: int = 32):
        self.max_queue_size = max_queue_size
        self._subscribers: set[asyncio.Queue[dict[str, Any]]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        self._subscribers.discard(queue)

    def publish(self, event: str, payload: Any) -> None:
        message = {"event": event, "data": payload}
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.debug("subscriber queue full; dropping %s", event)
