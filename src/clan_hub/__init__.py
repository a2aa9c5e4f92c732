"""
Clan Hub

Backend for a clan website: roster with PUBG stats, a news feed fed by
admin posts and tracked YouTube channels, and small YouTube / Twitch / PUBG
metadata proxies.

Usage:
    from clan_hub import get_settings, get_repositories
    from clan_hub.services import FeedSyncJob

    repos = get_repositories(get_settings())
    result = await FeedSyncJob(repos, youtube).run()
"""

from .aggregators import PubgStatsAggregator
from .core.config import Settings, get_settings
from .repositories import get_repositories
from .schema import init_database, run_migrations

__version__ = "1.0.0"

__all__ = [
    "PubgStatsAggregator",
    "Settings",
    "get_settings",
    "get_repositories",
    "init_database",
    "run_migrations",
]
