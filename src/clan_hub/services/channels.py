"""Tracked YouTube channel registration."""

from __future__ import annotations

import logging

from ..core.http import ExternalAPIError
from ..core.models import ChannelCreate, TrackedChannel
from ..external.youtube import CHANNEL_URL, YouTubeClient
from ..repositories import RepositorySet

logger = logging.getLogger(__name__)


class ChannelNotResolvedError(ValueError):
    """Admin input could not be resolved to a YouTube channel id."""

    def __init__(self, raw: str):
        super().__init__(f"Could not resolve a YouTube channel from '{raw}'")
        self.raw = raw


class ChannelService:
    """Registers and removes channels followed by the feed sync."""

    def __init__(self, repos: RepositorySet, youtube: YouTubeClient):
        self.repos = repos
        self.youtube = youtube

    async def register(self, payload: ChannelCreate) -> TrackedChannel:
        """
        Resolve the admin's input to a canonical id and track it.

        The title defaults to the channel's feed title; an unreachable feed
        does not block registration.

        Raises:
            ChannelNotResolvedError: Nothing matched the input
        """
        raw = payload.input.strip()
        channel_id = await self.youtube.resolve_channel_id(raw)
        if not channel_id:
            raise ChannelNotResolvedError(raw)

        title = (payload.title or "").strip()
        if not title:
            try:
                title = (await self.youtube.fetch_feed(channel_id)).title
            except ExternalAPIError as e:
                logger.warning(f"Could not read feed title for {channel_id}: {e.message}")

        channel = self.repos.channels.upsert(
            TrackedChannel(
                id=channel_id,
                title=title or channel_id,
                source_url=raw if raw != channel_id else CHANNEL_URL.format(channel_id=channel_id),
                auto_publish=payload.auto_publish,
            )
        )
        logger.info(f"Tracking YouTube channel {channel.id} ({channel.title})")
        return channel

    def remove(self, channel_id: str) -> bool:
        return self.repos.channels.delete(channel_id)
