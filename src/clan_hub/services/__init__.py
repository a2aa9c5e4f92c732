"""
Services module for Clan Hub.

This module provides business logic services:
- feed_sync: YouTube channel feeds into the news store, de-duplicated by url
- members: PUBG stats refresh for roster entries
- news: News posts with oEmbed autofill
- channels: Tracked channel registration

Usage:
    from clan_hub.services import FeedSyncJob, MemberStatsService

    result = await FeedSyncJob(repos, youtube).run()
    summary = await MemberStatsService(repos, pubg).refresh(member_id)
"""

from .channels import ChannelNotResolvedError, ChannelService
from .feed_sync import FeedSyncJob, SyncResult, entry_to_news_item
from .members import MemberNotFoundError, MemberStatsService, MissingPubgReferenceError, RefreshResult
from .news import NewsNotFoundError, NewsService

__all__ = [
    # Channels
    "ChannelNotResolvedError",
    "ChannelService",
    # Feed sync
    "FeedSyncJob",
    "SyncResult",
    "entry_to_news_item",
    # Members
    "MemberNotFoundError",
    "MemberStatsService",
    "MissingPubgReferenceError",
    "RefreshResult",
    # News
    "NewsNotFoundError",
    "NewsService",
]
