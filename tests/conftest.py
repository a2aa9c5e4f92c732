"""
Pytest configuration for clan-hub tests.

Provides an in-memory repository set and fake upstream collaborators so
services and the API can be exercised without network or database.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from dotenv import load_dotenv

from clan_hub.core.http import ExternalAPIError
from clan_hub.external.pubg import PlayerNotFoundError, is_account_id
from clan_hub.external.youtube import ChannelFeed, FeedEntry, WATCH_URL, match_channel_id
from clan_hub.repositories import memory_repositories

# Load .env without overriding variables already set (DATABASE_URL for the postgres tests)
load_dotenv(Path(__file__).resolve().parent.parent / ".env", override=False)


def channel_id(n: int) -> str:
    """A syntactically canonical channel id."""
    return f"UC{n:022d}"


def make_entry(video_id: str, minutes_ago: int = 0, title: str | None = None) -> FeedEntry:
    return FeedEntry(
        external_id=video_id,
        title=title or f"Video {video_id}",
        canonical_url=WATCH_URL.format(video_id=video_id),
        thumbnail_url=f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
        description="",
        published_at=datetime(2026, 1, 1, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago),
    )


class FakeYouTube:
    """Stands in for YouTubeClient in service and API tests."""

    def __init__(self, feeds=None, aliases=None, failing=None):
        self.feeds: dict[str, list[FeedEntry]] = feeds or {}
        self.aliases: dict[str, str] = aliases or {}
        self.failing: set[str] = set(failing or ())
        self.feed_calls: list[str] = []

    async def resolve_channel_id(self, raw: str) -> str | None:
        if raw in self.aliases:
            return self.aliases[raw]
        return match_channel_id(raw)

    async def latest_videos(self, channel_id: str, limit: int = 6) -> list[FeedEntry]:
        self.feed_calls.append(channel_id)
        # Yield so concurrent runs interleave
        await asyncio.sleep(0)
        if channel_id in self.failing:
            raise ExternalAPIError(f"YouTube feed for {channel_id} timed out", code="UPSTREAM_TIMEOUT")
        return self.feeds.get(channel_id, [])[:limit]

    async def fetch_feed(self, channel_id: str) -> ChannelFeed:
        if channel_id in self.failing:
            raise ExternalAPIError(f"YouTube feed for {channel_id} unavailable")
        return ChannelFeed(channel_id=channel_id, title=f"Channel {channel_id[-3:]}")

    async def oembed(self, url: str) -> dict:
        return {"title": "Clutch squad wipe", "thumbnail_url": "https://i.ytimg.com/vi/abc/hqdefault.jpg"}


class FakePubg:
    """Stands in for PubgClient: names map to account ids, ids to gameModeStats."""

    def __init__(self, players=None, lifetime=None, season=None):
        self.players: dict[str, str] = players or {}
        self.lifetime: dict[str, dict] = lifetime or {}
        self.season: dict[str, dict] = season or {}
        self.resolve_calls: list[str] = []
        self.unavailable = False

    async def resolve_account_id(self, ref: str, platform="steam") -> str:
        if is_account_id(ref):
            return ref
        self.resolve_calls.append(ref)
        if ref not in self.players:
            raise PlayerNotFoundError(ref, "steam")
        return self.players[ref]

    async def find_player(self, name: str, platform="steam"):
        from clan_hub.external.pubg import PubgPlayer

        account_id = await self.resolve_account_id(name, platform)
        return PubgPlayer(id=account_id, name=name, platform="steam")

    async def current_season_id(self, platform="steam") -> str:
        return "division.bro.official.pc-2018-30"

    async def lifetime_stats(self, account_id: str, platform="steam") -> dict:
        return self._lookup(self.lifetime, account_id)

    async def season_stats(self, account_id: str, platform="steam", season_id=None) -> dict:
        return self._lookup(self.season, account_id)

    def _lookup(self, table: dict, account_id: str) -> dict:
        if self.unavailable:
            raise ExternalAPIError("PUBG HTTP 503: maintenance")
        if account_id not in table:
            raise PlayerNotFoundError(account_id, "steam")
        return table[account_id]


@pytest.fixture
def repos():
    return memory_repositories()


@pytest.fixture
def youtube():
    return FakeYouTube()


@pytest.fixture
def pubg():
    return FakePubg()
