from .admin import AnnouncementBody, ContestWindowBody, CountdownBody, HeroBody, PrizesBody

__all__ = [
    "AnnouncementBody",
    "ContestWindowBody",
    "CountdownBody",
    "HeroBody",
    "PrizesBody",
]
