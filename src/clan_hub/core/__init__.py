"""
Core module for Clan Hub.

This module provides the foundational components:
- Configuration management (config.py)
- Data models (models.py)
- Enums, table names and display defaults (types.py)
- Shared HTTP client infrastructure (http.py)

Usage:
    from clan_hub.core import Settings, get_settings
    from clan_hub.core import Member, NewsItem, StatSummary
    from clan_hub.core.http import BaseApiClient, ExternalAPIError
"""

# Configuration
from .config import Settings, get_settings

# Types
from .types import (
    NewsSource,
    Platform,
    StatScope,
    MEMBERS_TABLE,
    NEWS_TABLE,
    CHANNELS_TABLE,
    META_TABLE,
)

# Models
from .models import (
    ChannelCreate,
    Member,
    MemberCreate,
    MemberUpdate,
    NewsItem,
    NewsItemCreate,
    NewsItemUpdate,
    StatSummary,
    TrackedChannel,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Types
    "NewsSource",
    "Platform",
    "StatScope",
    "MEMBERS_TABLE",
    "NEWS_TABLE",
    "CHANNELS_TABLE",
    "META_TABLE",
    # Models
    "ChannelCreate",
    "Member",
    "MemberCreate",
    "MemberUpdate",
    "NewsItem",
    "NewsItemCreate",
    "NewsItemUpdate",
    "StatSummary",
    "TrackedChannel",
]
