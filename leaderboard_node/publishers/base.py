from abc import ABC, abstractmethod
from typing import Any

LEADERBOARD_UPDATE = "leaderboard:update"
COUNTDOWN_UPDATE = "countdown:update"
PRIZES_UPDATE = "prizes:update"
ANNOUNCEMENT_UPDATE = "announcement:update"
HERO_UPDATE = "hero:update"


class LeaderboardPublisher(ABC):

    @abstractmethod
    def publish(self, event: str, payload: Any) -> None:
        pass
