"""
Tests for the YouTube, Twitch and PUBG clients against mocked transports.
"""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from clan_hub.core.http import (
    ExternalAPIError,
    NotConfiguredError,
    RateLimitError,
    UpstreamNotFoundError,
    parse_retry_after,
)
from clan_hub.external import (
    PlayerNotFoundError,
    PubgClient,
    TwitchClient,
    YouTubeClient,
    match_channel_id,
    parse_channel_feed,
    parse_twitch_url,
)

CHANNEL = "UCabcdefghijklmnopqrstuv"

FEED_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015"
      xmlns:media="http://search.yahoo.com/mrss/"
      xmlns="http://www.w3.org/2005/Atom">
  <title>Clan Hub Clips</title>
  <entry>
    <yt:videoId>older</yt:videoId>
    <yt:channelId>{CHANNEL}</yt:channelId>
    <title>Older upload</title>
    <published>2026-03-01T10:00:00+00:00</published>
    <media:group>
      <media:thumbnail url="https://i1.ytimg.com/vi/older/hqdefault.jpg" width="480" height="360"/>
      <media:description>Chicken dinner on Erangel</media:description>
    </media:group>
  </entry>
  <entry>
    <yt:videoId>newer</yt:videoId>
    <yt:channelId>{CHANNEL}</yt:channelId>
    <title>Newer upload</title>
    <published>2026-03-05T18:30:00+00:00</published>
  </entry>
  <entry>
    <title>No video id, dropped</title>
  </entry>
</feed>
"""


def youtube_client(handler, api_key="test-key") -> YouTubeClient:
    return YouTubeClient(
        api_key,
        requests_per_minute=60000,
        transport=httpx.MockTransport(handler),
    )


class TestFeedParsing:
    def test_entries_newest_first(self):
        feed = parse_channel_feed(CHANNEL, FEED_XML)
        assert feed.title == "Clan Hub Clips"
        assert [e.external_id for e in feed.entries] == ["newer", "older"]

    def test_entry_fields(self):
        older = parse_channel_feed(CHANNEL, FEED_XML).entries[1]
        assert older.canonical_url == "https://www.youtube.com/watch?v=older"
        assert older.thumbnail_url == "https://i1.ytimg.com/vi/older/hqdefault.jpg"
        assert older.description == "Chicken dinner on Erangel"
        assert older.published_at.isoformat() == "2026-03-01T10:00:00+00:00"

    def test_missing_thumbnail_falls_back(self):
        newer = parse_channel_feed(CHANNEL, FEED_XML).entries[0]
        assert newer.thumbnail_url == "https://i.ytimg.com/vi/newer/hqdefault.jpg"

    def test_invalid_xml(self):
        with pytest.raises(ExternalAPIError):
            parse_channel_feed(CHANNEL, "<feed><entry>")


class TestChannelIdMatching:
    @pytest.mark.parametrize(
        "raw",
        [CHANNEL, f"https://www.youtube.com/channel/{CHANNEL}", f"  youtube.com/channel/{CHANNEL}/videos "],
    )
    def test_canonical_forms(self, raw):
        assert match_channel_id(raw) == CHANNEL

    @pytest.mark.parametrize("raw", ["@clanhub", "https://www.youtube.com/@clanhub", "UCshort"])
    def test_needs_lookup(self, raw):
        assert match_channel_id(raw) is None


class TestYouTubeClient:
    async def test_latest_videos(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/feeds/videos.xml"
            assert request.url.params["channel_id"] == CHANNEL
            return httpx.Response(200, text=FEED_XML)

        client = youtube_client(handler)
        entries = await client.latest_videos(CHANNEL, limit=1)
        await client.close()

        assert [e.external_id for e in entries] == ["newer"]

    async def test_canonical_id_needs_no_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = youtube_client(handler)
        assert await client.resolve_channel_id(f"https://youtube.com/channel/{CHANNEL}") == CHANNEL

    async def test_resolves_handle(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(dict(request.url.params))
            return httpx.Response(200, json={"items": [{"id": CHANNEL}]})

        client = youtube_client(handler)
        assert await client.resolve_channel_id("https://www.youtube.com/@ClanHub") == CHANNEL
        assert seen[0]["forHandle"] == "@ClanHub"
        assert len(seen) == 1

    async def test_falls_through_to_search(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            if request.url.path.endswith("/channels"):
                if "forHandle" in request.url.params:
                    return httpx.Response(400, json={"error": "bad handle"})
                return httpx.Response(200, json={"items": []})
            return httpx.Response(200, json={"items": [{"id": {"channelId": CHANNEL}}]})

        client = youtube_client(handler)
        assert await client.resolve_channel_id("clan hub") == CHANNEL
        assert calls == ["/youtube/v3/channels", "/youtube/v3/channels", "/youtube/v3/search"]

    async def test_all_lookups_fail(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"items": []})

        client = youtube_client(handler)
        assert await client.resolve_channel_id("@nobody") is None

    async def test_without_api_key_only_canonical_ids_resolve(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = youtube_client(handler, api_key=None)
        assert await client.resolve_channel_id("@clanhub") is None
        assert await client.resolve_channel_id(CHANNEL) == CHANNEL

    async def test_call_timeout(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, text=FEED_XML)

        client = YouTubeClient(transport=httpx.MockTransport(handler), timeout=0.05)
        with pytest.raises(ExternalAPIError) as exc_info:
            await client.latest_videos(CHANNEL)
        assert exc_info.value.code == "UPSTREAM_TIMEOUT"


class TestUpstreamResponses:
    """Malformed or throttled upstream answers surface as ExternalAPIError."""

    NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "header, expected",
        [
            ("120", 120),
            ("Sun, 18 Oct 2026 12:01:30 GMT", 90),
            ("Wed, 21 Oct 2015 07:28:00 GMT", 0),
            ("soon", 60),
            ("", 60),
            (None, 60),
        ],
    )
    def test_parse_retry_after(self, header, expected):
        assert parse_retry_after(header, now=self.NOW) == expected

    async def test_rate_limit_with_http_date(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(429, headers={"retry-after": "Wed, 21 Oct 2015 07:28:00 GMT"})

        client = youtube_client(handler)
        with pytest.raises(RateLimitError) as exc_info:
            await client.latest_videos(CHANNEL)
        assert exc_info.value.retry_after == 0
        assert len(calls) == 2

    async def test_non_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>quota page</html>", headers={"content-type": "text/html"})

        client = youtube_client(handler)
        with pytest.raises(ExternalAPIError) as exc_info:
            await client._get("/channels", params={"forHandle": "@someone"})
        assert exc_info.value.code == "UPSTREAM_BAD_RESPONSE"
        assert "text/html" in exc_info.value.message

    async def test_non_object_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["not", "an", "object"])

        client = youtube_client(handler)
        with pytest.raises(ExternalAPIError, match="list"):
            await client._get("/channels")

    async def test_html_quota_page_leaves_handle_unresolved(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>quota page</html>")

        client = youtube_client(handler)
        assert await client.resolve_channel_id("@someone") is None


class TestTwitchUrls:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://clips.twitch.tv/FunnyClipSlug-abc", ("clip", "FunnyClipSlug-abc")),
            ("https://www.twitch.tv/streamer/clip/OtherClip", ("clip", "OtherClip")),
            ("https://www.twitch.tv/videos/123456", ("video", "123456")),
            ("https://www.twitch.tv/Streamer_01", ("channel", "Streamer_01")),
        ],
    )
    def test_classifies(self, url, expected):
        assert parse_twitch_url(url) == expected

    def test_rejects_other_links(self):
        with pytest.raises(ValueError):
            parse_twitch_url("https://example.com/video")


class TestTwitchClient:
    async def test_not_configured(self):
        client = TwitchClient()
        with pytest.raises(NotConfiguredError):
            await client.oembed("https://www.twitch.tv/videos/1")

    async def test_video_metadata(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "id.twitch.tv":
                return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
            assert request.headers["Authorization"] == "Bearer tok"
            assert request.headers["Client-Id"] == "cid"
            return httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "title": "Ranked grind",
                            "user_name": "Streamer",
                            "thumbnail_url": "https://static/thumb-%{width}x%{height}.jpg",
                            "url": "https://www.twitch.tv/videos/42",
                        }
                    ]
                },
            )

        client = TwitchClient("cid", "secret", transport=httpx.MockTransport(handler))
        meta = await client.oembed("https://www.twitch.tv/videos/42")

        assert meta["title"] == "Ranked grind"
        assert meta["thumbnail_url"] == "https://static/thumb-640x360.jpg"

    async def test_missing_clip(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "id.twitch.tv":
                return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
            return httpx.Response(200, json={"data": []})

        client = TwitchClient("cid", "secret", transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamNotFoundError):
            await client.oembed("https://clips.twitch.tv/Gone")


def pubg_client(handler) -> PubgClient:
    return PubgClient("pubg-key", requests_per_minute=60000, transport=httpx.MockTransport(handler))


class TestPubgClient:
    async def test_find_player(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/shards/steam/players"
            assert request.url.params["filter[playerNames]"] == "Shroud"
            assert request.headers["Authorization"] == "Bearer pubg-key"
            return httpx.Response(
                200, json={"data": [{"id": "account.abc", "attributes": {"name": "Shroud"}}]}
            )

        player = await pubg_client(handler).find_player("Shroud")
        assert (player.id, player.name) == ("account.abc", "Shroud")

    async def test_unknown_player(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"errors": [{"title": "Not Found"}]})

        with pytest.raises(PlayerNotFoundError) as exc_info:
            await pubg_client(handler).find_player("Nobody")
        assert exc_info.value.code == "PLAYER_NOT_FOUND"

    async def test_season_stats_use_current_season(self):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            if request.url.path.endswith("/seasons"):
                return httpx.Response(
                    200,
                    json={
                        "data": [
                            {"id": "season-old", "attributes": {"isCurrentSeason": False}},
                            {"id": "season-now", "attributes": {"isCurrentSeason": True}},
                        ]
                    },
                )
            return httpx.Response(
                200,
                json={"data": {"attributes": {"gameModeStats": {"solo": {"roundsPlayed": 3}}}}},
            )

        client = pubg_client(handler)
        stats = await client.season_stats("account.abc")
        await client.season_stats("account.abc")

        assert stats == {"solo": {"roundsPlayed": 3}}
        # Current season is looked up once per shard
        assert requested.count("/shards/steam/seasons") == 1
        assert "/shards/steam/players/account.abc/seasons/season-now" in requested

    async def test_lifetime_stats_for_other_shard(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/shards/xbox/players/account.abc/seasons/lifetime"
            return httpx.Response(200, json={"data": {"attributes": {"gameModeStats": {}}}})

        assert await pubg_client(handler).lifetime_stats("account.abc", "xbox") == {}

    async def test_requires_api_key(self):
        with pytest.raises(NotConfiguredError):
            await PubgClient().find_player("Shroud")
