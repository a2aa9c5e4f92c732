"""
Core types and constants for Clan Hub.

This module provides:
- Platform, NewsSource and StatScope enums
- Table name constants shared by the repositories and the schema
- Display defaults used when admins leave fields blank
"""

from enum import Enum


class Platform(str, Enum):
    """PUBG shards a player account can live on."""

    steam = "steam"
    kakao = "kakao"
    psn = "psn"
    xbox = "xbox"
    console = "console"
    stadia = "stadia"


class NewsSource(str, Enum):
    """Where a news item came from."""

    youtube = "youtube"
    twitch = "twitch"
    discord = "discord"
    manual = "manual"


class StatScope(str, Enum):
    """Which stat set a roster card shows."""

    overall = "overall"
    season = "season"


# =============================================================================
# Table names
# =============================================================================

MEMBERS_TABLE = "members"
NEWS_TABLE = "news_items"
CHANNELS_TABLE = "tracked_channels"
META_TABLE = "meta"


# =============================================================================
# Display defaults
# =============================================================================

DEFAULT_RANK = "-"
DEFAULT_AVATAR = "https://i.pravatar.cc/128"
DEFAULT_THUMBNAIL = "https://picsum.photos/800/450"
DEFAULT_DESCRIPTION = "New update"

DEFAULT_TITLES = {
    NewsSource.youtube: "YouTube Post",
    NewsSource.twitch: "Twitch Post",
}
FALLBACK_TITLE = "Clan Update"
