"""
YouTube feed sync.

Scans every tracked channel, fetches its newest uploads and inserts the ones
whose url is not yet in the news store. Storage calls run in worker threads.
Safe to run concurrently with itself and with admin writes: the final insert
goes through ``insert_if_absent``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from ..core.http import ExternalAPIError
from ..core.models import NewsItem, TrackedChannel
from ..core.types import DEFAULT_DESCRIPTION, DEFAULT_THUMBNAIL, DEFAULT_TITLES, NewsSource
from ..external.youtube import FeedEntry, YouTubeClient
from ..repositories import RepositorySet

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one sync run."""

    added: int = 0
    channels_total: int = 0
    channels_synced: int = 0
    channels_skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def items_processed(self) -> int:
        return self.added

    @property
    def metadata(self) -> dict:
        return {
            "channels_total": self.channels_total,
            "channels_synced": self.channels_synced,
            "channels_skipped": self.channels_skipped,
        }

    def to_dict(self) -> dict:
        return {"added": self.added, **self.metadata, "errors": list(self.errors)}


def entry_to_news_item(entry: FeedEntry) -> NewsItem:
    """Map a feed entry onto a news item, filling display defaults."""
    fields = {
        "title": entry.title or DEFAULT_TITLES[NewsSource.youtube],
        "description": entry.description or DEFAULT_DESCRIPTION,
        "thumbnail_url": entry.thumbnail_url or DEFAULT_THUMBNAIL,
        "source": NewsSource.youtube,
        "url": entry.canonical_url,
    }
    if entry.published_at is not None:
        fields["created_at"] = entry.published_at
    return NewsItem(**fields)


class FeedSyncJob:
    """
    Imports new uploads from tracked YouTube channels into the news feed.

    Each run reads the channel list fresh, resolves each channel's canonical
    id, fetches its newest entries and inserts unseen urls. A channel that
    cannot be resolved or fetched is skipped and logged; other channels are
    unaffected.
    """

    def __init__(
        self,
        repos: RepositorySet,
        youtube: YouTubeClient,
        *,
        items_per_channel: int = 6,
        respect_auto_publish: bool = False,
    ):
        """
        Args:
            repos: Storage collaborators
            youtube: Channel resolver and feed fetcher
            items_per_channel: Newest entries considered per channel
            respect_auto_publish: Only sync channels flagged auto_publish
        """
        self.repos = repos
        self.youtube = youtube
        self.items_per_channel = items_per_channel
        self.respect_auto_publish = respect_auto_publish

    def _eligible(self, channels: list[TrackedChannel]) -> list[TrackedChannel]:
        if not self.respect_auto_publish:
            return channels
        return [channel for channel in channels if channel.auto_publish]

    async def run(self) -> SyncResult:
        """
        Run one sync pass.

        Returns:
            SyncResult whose ``added`` counts items actually inserted
        """
        channels = self._eligible(await asyncio.to_thread(self.repos.channels.list))
        result = SyncResult(channels_total=len(channels))
        if not channels:
            logger.info("YouTube sync: no tracked channels")
            return result

        seen = await asyncio.to_thread(self.repos.news.existing_urls)

        for channel in channels:
            try:
                added = await self._sync_channel(channel, seen)
            except ExternalAPIError as e:
                result.channels_skipped += 1
                result.errors.append(f"{channel.id}: {e.message}")
                logger.warning(f"YouTube sync: skipping channel {channel.id}: {e.message}")
                continue
            except Exception as e:
                result.channels_skipped += 1
                result.errors.append(f"{channel.id}: {type(e).__name__}: {e}")
                logger.error(f"YouTube sync: unexpected error on channel {channel.id}, skipped", exc_info=True)
                continue

            if added is None:
                result.channels_skipped += 1
                result.errors.append(f"{channel.id}: could not resolve channel id")
                logger.warning(f"YouTube sync: could not resolve channel '{channel.id}', skipped")
                continue

            result.channels_synced += 1
            result.added += added

        logger.info(
            f"YouTube sync: {result.added} new items from "
            f"{result.channels_synced}/{result.channels_total} channels"
        )
        return result

    async def _sync_channel(self, channel: TrackedChannel, seen: set[str]) -> int | None:
        """Sync one channel; None when its id cannot be resolved."""
        channel_id = await self.youtube.resolve_channel_id(channel.id or channel.source_url)
        if not channel_id:
            return None

        entries = await self.youtube.latest_videos(channel_id, limit=self.items_per_channel)

        added = 0
        for entry in entries:
            url = entry.canonical_url
            if not url or url in seen:
                continue
            seen.add(url)
            if await asyncio.to_thread(self.repos.news.insert_if_absent, entry_to_news_item(entry)):
                added += 1
            else:
                logger.debug(f"YouTube sync: {url} inserted concurrently, skipped")

        if added:
            logger.info(f"YouTube sync: {added} new items from channel {channel_id}")
        return added
