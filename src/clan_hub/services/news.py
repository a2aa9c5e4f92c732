"""
News post management with metadata autofill.

Admins may post just a link: for YouTube and Twitch links the title and
thumbnail are filled from oEmbed metadata, and anything still blank falls
back to display defaults.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..core.http import ExternalAPIError
from ..core.models import NewsItem, NewsItemCreate, NewsItemUpdate
from ..core.types import (
    DEFAULT_DESCRIPTION,
    DEFAULT_THUMBNAIL,
    DEFAULT_TITLES,
    FALLBACK_TITLE,
    NewsSource,
)
from ..external.twitch import TwitchClient
from ..external.youtube import YouTubeClient
from ..repositories import RepositorySet

logger = logging.getLogger(__name__)


class NewsNotFoundError(LookupError):
    """No news item with the given id."""

    def __init__(self, item_id: str):
        super().__init__(f"News item {item_id} not found")
        self.item_id = item_id


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class NewsService:
    """Creates, edits and removes news posts."""

    def __init__(
        self,
        repos: RepositorySet,
        youtube: Optional[YouTubeClient] = None,
        twitch: Optional[TwitchClient] = None,
    ):
        self.repos = repos
        self.youtube = youtube
        self.twitch = twitch

    async def _metadata(self, source: NewsSource, url: str) -> dict[str, Any]:
        """oEmbed metadata for a link; empty when unavailable."""
        try:
            if source == NewsSource.youtube and self.youtube is not None:
                return await self.youtube.oembed(url)
            if source == NewsSource.twitch and self.twitch is not None and self.twitch.is_configured():
                return await self.twitch.oembed(url)
        except (ExternalAPIError, ValueError) as e:
            logger.warning(f"Metadata lookup failed for {url}: {e}")
        return {}

    async def build_post(self, payload: NewsItemCreate) -> NewsItem:
        """Apply autofill and defaults to an admin payload."""
        title = _clean(payload.title)
        description = _clean(payload.description)
        thumbnail = _clean(payload.thumbnail_url)
        url = _clean(payload.url)

        if url and (not title or not thumbnail):
            meta = await self._metadata(payload.source, url)
            title = title or _clean(meta.get("title"))
            thumbnail = thumbnail or _clean(meta.get("thumbnail_url"))
            description = description or _clean(meta.get("description"))

        return NewsItem(
            title=title or DEFAULT_TITLES.get(payload.source, FALLBACK_TITLE),
            description=description or DEFAULT_DESCRIPTION,
            thumbnail_url=thumbnail or DEFAULT_THUMBNAIL,
            source=payload.source,
            url=url,
        )

    async def create_post(self, payload: NewsItemCreate) -> NewsItem:
        """
        Create a post.

        Raises:
            DuplicateUrlError: A post with the same link already exists
        """
        item = self.repos.news.insert(await self.build_post(payload))
        logger.info(f"Created {item.source.value} news item {item.id}")
        return item

    def update_post(self, item_id: str, payload: NewsItemUpdate) -> NewsItem:
        """
        Edit a post.

        Raises:
            NewsNotFoundError: Unknown id
            DuplicateUrlError: The new link belongs to another post
        """
        current = self.repos.news.get(item_id)
        if current is None:
            raise NewsNotFoundError(item_id)
        updated = self.repos.news.update(payload.apply(current))
        if updated is None:
            raise NewsNotFoundError(item_id)
        return updated

    def delete_post(self, item_id: str) -> None:
        if not self.repos.news.delete(item_id):
            raise NewsNotFoundError(item_id)
