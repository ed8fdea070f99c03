from .base import (
    ANNOUNCEMENT_UPDATE,
    COUNTDOWN_UPDATE,
    HERO_UPDATE,
    LEADERBOARD_UPDATE,
    PRIZES_UPDATE,
    LeaderboardPublisher,
)
from .redis_stream import RedisStreamPublisher
from .websocket_hub import BroadcastHub

__all__ = [
    "LeaderboardPublisher",
    "BroadcastHub",
    "RedisStreamPublisher",
    "LEADERBOARD_UPDATE",
    "COUNTDOWN_UPDATE",
    "PRIZES_UPDATE",
    "ANNOUNCEMENT_UPDATE",
    "HERO_UPDATE",
]
