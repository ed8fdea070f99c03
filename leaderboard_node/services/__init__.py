from .live_state import LiveStateCache, is_sane, sort_players
from .refresh import RefreshOutcome, RefreshService, RefreshState
from .settings_store import SettingsStore
from .snapshot_store import SnapshotStore
from .windowed_gain import WindowedGainCalculator, compute_windowed

__all__ = [
    "LiveStateCache",
    "RefreshOutcome",
    "RefreshService",
    "RefreshState",
    "SettingsStore",
    "SnapshotStore",
    "WindowedGainCalculator",
    "compute_windowed",
    "is_sane",
    "sort_players",
]
