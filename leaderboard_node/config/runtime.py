from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path

from leaderboard_node.entities import HeroSettings
from leaderboard_node.utils.timestamps import parse_timestamp

_DEFAULT_AFFILIATE_API = "https://api.csgowin.com/api/affiliate/external"


@dataclass(frozen=True)
class AffiliateSettings:
    base_url: str = _DEFAULT_AFFILIATE_API
    code: str = ""
    api_key: str = ""
    by: str = "wager"
    sort: str = "desc"
    take: str = "100"
    skip: str = "0"
    gt: str = "1672531200000"
    cache_ttl_ms: int = 60_000
    timeout_seconds: float = 15.0
    max_attempts: int = 5
    backoff_base_ms: int = 600
    backoff_cap_ms: int = 15_000
    jitter_ms: int = 250

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.code)

    @classmethod
    def from_env(cls) -> "AffiliateSettings":
        return cls(
            base_url=os.getenv("AFFILIATE_API", _DEFAULT_AFFILIATE_API),
            code=os.getenv("AFFILIATE_CODE", ""),
            api_key=os.getenv("AFFILIATE_API_KEY", ""),
            by=os.getenv("AFFILIATE_BY", "wager"),
            sort=os.getenv("AFFILIATE_SORT", "desc"),
            take=os.getenv("AFFILIATE_TAKE", "100"),
            skip=os.getenv("AFFILIATE_SKIP", "0"),
            gt=os.getenv("AFFILIATE_GT", "1672531200000"),
            cache_ttl_ms=int(os.getenv("AFFILIATE_CACHE_MS", "60000")),
            timeout_seconds=float(os.getenv("AFFILIATE_TIMEOUT_SECONDS", "15")),
            max_attempts=int(os.getenv("AFFILIATE_MAX_ATTEMPTS", "5")),
        )


@dataclass(frozen=True)
class RuntimeSettings:
    affiliate: AffiliateSettings = field(default_factory=AffiliateSettings)
    data_dir: Path = Path("uploads")
    refresh_interval_seconds: float = 1800.0
    refresh_warmup_seconds: float = 1.5
    countdown_end: int | None = None
    announcement: str = ""
    hero: HeroSettings = field(default_factory=HeroSettings)
    admin_token: str = ""
    frontend_origin: str = "*"
    redis_url: str | None = None
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def cache_path(self) -> Path:
        return self.data_dir / "leaderboard.json"

    @property
    def history_path(self) -> Path:
        return self.data_dir / "leaderboard-history.ndjson"

    @property
    def settings_path(self) -> Path:
        return self.data_dir / "settings.json"

    @classmethod
    def from_env(cls) -> "RuntimeSettings":
        return cls(
            affiliate=AffiliateSettings.from_env(),
            data_dir=Path(os.getenv("DATA_DIR", "uploads")),
            refresh_interval_seconds=float(os.getenv("REFRESH_INTERVAL_SECONDS", "1800")),
            refresh_warmup_seconds=float(os.getenv("REFRESH_WARMUP_SECONDS", "1.5")),
            countdown_end=parse_timestamp(os.getenv("COUNTDOWN_END")),
            announcement=os.getenv("ANNOUNCEMENT", ""),
            hero=HeroSettings(
                link_text=os.getenv("HERO_LINK_TEXT", ""),
                link_url=os.getenv("HERO_LINK_URL", ""),
                image_url=os.getenv("HERO_IMAGE_URL", ""),
            ),
            admin_token=os.getenv("ADMIN_TOKEN", "").strip(),
            frontend_origin=os.getenv("FRONTEND_ORIGIN", "*"),
            redis_url=os.getenv("REDIS_URL") or None,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
        )
