import json
import logging
from typing import Any

from redis import Redis, RedisError

from leaderboard_node.publishers.base import LeaderboardPublisher

logger = logging.getLogger(__name__)


class RedisStreamPublisher(LeaderboardPublisher):

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        stream: str = "leaderboard_stream",
        client: Redis | None = None,
    ):
        self._redis = client if client is not None else Redis.from_url(url, decode_responses=True)
        self._stream = stream

    def publish(self, event: str, payload: Any) -> None:
        """
        Append the event to the Redis stream. Delivery failures are logged only.
        """
        try:
            self._redis.xadd(
                self._stream,
                {"event": event, "data": json.dumps(payload)},
            )
        except RedisError as exc:
            logger.warning("redis publish of %s failed: %s", event, exc)
