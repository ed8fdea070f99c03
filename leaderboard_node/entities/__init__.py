from .leaderboard import (
    ContestSettings,
    ContestWindow,
    DEFAULT_PRIZES,
    HeroSettings,
    LiveLeaderboard,
    PlayerRecord,
    Snapshot,
)

__all__ = [
    "PlayerRecord",
    "Snapshot",
    "LiveLeaderboard",
    "ContestWindow",
    "ContestSettings",
    "HeroSettings",
    "DEFAULT_PRIZES",
]
