from leaderboard_node.feeds.affiliate import AffiliateClient, extract_records, to_players
from leaderboard_node.feeds.contracts import FetchErrorKind, FetchResult, OutputShape
from leaderboard_node.feeds.ttl_cache import CoalescingTTLCache

__all__ = [
    "AffiliateClient",
    "FetchErrorKind",
    "FetchResult",
    "OutputShape",
    "CoalescingTTLCache",
    "extract_records",
    "to_players",
]
