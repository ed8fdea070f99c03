from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_PRIZES: tuple[int, ...] = (175, 100, 70, 50, 35, 25, 15, 10, 10, 10)


@dataclass(frozen=True)
class PlayerRecord:
    """One ranked player. `points` is a cumulative total or a window gain."""

    id: str
    name: str
    points: float = 0.0
    avatar: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "avatar": self.avatar,
            "points": self.points,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PlayerRecord":
        try:
            points = float(payload.get("points") or 0)
        except (TypeError, ValueError):
            points = 0.0
        avatar = payload.get("avatar")
        return cls(
            id=str(payload.get("id")),
            name=str(payload.get("name") or "Player"),
            points=points,
            avatar=str(avatar) if avatar else None,
        )


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time capture of every player's cumulative total."""

    timestamp: int  # epoch-ms
    totals: dict[str, float] = field(default_factory=dict)

    def to_row(self) -> dict[str, Any]:
        return {"ts": self.timestamp, "p": dict(self.totals)}


@dataclass(frozen=True)
class LiveLeaderboard:
    updated_at: str | None = None  # ISO-8601
    entries: tuple[PlayerRecord, ...] = ()

    @property
    def count(self) -> int:
        return len(self.entries)

    def to_list(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]


@dataclass(frozen=True)
class ContestWindow:
    start: int | None = None  # epoch-ms
    end: int | None = None  # epoch-ms

    @property
    def is_active(self) -> bool:
        return self.start is not None and self.end is not None and self.end >= self.start


_HERO_WIRE_NAMES = {
    "headline": "headline",
    "sub1": "sub1",
    "sub2": "sub2",
    "link_text": "linkText",
    "link_url": "linkUrl",
    "headline_color": "headlineColor",
    "sub1_color": "sub1Color",
    "sub2_color": "sub2Color",
    "headline_glow": "headlineGlow",
    "image_url": "imageUrl",
    "image_glow": "imageGlow",
    "coin_image_url": "coinImageUrl",
}


@dataclass(frozen=True)
class HeroSettings:
    """Text and styling of the banner shown above the leaderboard."""

    headline: str = "$ 500 CSGOWIN WAGER LEADERBOARD"
    sub1: str = "Top 10 players with the highest wagers past 2 weeks win a share of $500"
    sub2: str = "The leaderboard updates every 30 minutes."
    link_text: str = ""
    link_url: str = ""
    headline_color: str = "#ffffff"
    sub1_color: str = "#cbd5e1"
    sub2_color: str = "#cbd5e1"
    headline_glow: str = "0 0 12px rgba(255,255,255,0.8)"
    image_url: str = ""
    image_glow: str = "drop-shadow(0 0 16px rgba(251, 255, 0, 0.65))"
    coin_image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {wire: getattr(self, name) for name, wire in _HERO_WIRE_NAMES.items()}

    def merged(self, payload: dict[str, Any]) -> "HeroSettings":
        """Apply every known camelCase key that carries a string; others keep their value."""
        changes = {
            name: payload[wire]
            for name, wire in _HERO_WIRE_NAMES.items()
            if isinstance(payload.get(wire), str)
        }
        return replace(self, **changes)


@dataclass(frozen=True)
class ContestSettings:
    """Admin-controlled settings persisted next to the leaderboard cache."""

    countdown_end: int | None = None  # epoch-ms
    contest: ContestWindow = field(default_factory=ContestWindow)
    announcement: str = ""
    prizes: tuple[int, ...] = DEFAULT_PRIZES
    hero: HeroSettings = field(default_factory=HeroSettings)

    def with_changes(self, **changes: Any) -> "ContestSettings":
        return replace(self, **changes)

    def is_frozen(self, now_ms: int) -> bool:
        return self.countdown_end is not None and now_ms > self.countdown_end
