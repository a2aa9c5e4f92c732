"""
Tests for the YouTube feed sync job.
"""

import asyncio

import httpx

from clan_hub.core.models import NewsItem, TrackedChannel
from clan_hub.core.types import NewsSource
from clan_hub.external import YouTubeClient
from clan_hub.services import FeedSyncJob

from conftest import FakeYouTube, channel_id, make_entry


def track(repos, *channels, auto_publish=True):
    for raw in channels:
        repos.channels.upsert(TrackedChannel(id=raw, source_url=raw, auto_publish=auto_publish))


def urls(repos):
    return [item.url for item in repos.news.list()]


class TestFeedSyncJob:
    async def test_inserts_new_items(self, repos):
        ch = channel_id(1)
        youtube = FakeYouTube(feeds={ch: [make_entry("a1", 0), make_entry("a2", 10)]})
        track(repos, ch)

        result = await FeedSyncJob(repos, youtube).run()

        assert result.added == 2
        assert result.channels_synced == 1
        items = repos.news.list()
        assert [i.url for i in items] == [
            "https://www.youtube.com/watch?v=a1",
            "https://www.youtube.com/watch?v=a2",
        ]
        assert all(i.source == NewsSource.youtube for i in items)

    async def test_second_run_adds_nothing(self, repos):
        ch = channel_id(1)
        youtube = FakeYouTube(feeds={ch: [make_entry("a1"), make_entry("a2", 5)]})
        track(repos, ch)
        job = FeedSyncJob(repos, youtube)

        first = await job.run()
        second = await job.run()

        assert first.added == 2
        assert second.added == 0
        assert len(urls(repos)) == len(set(urls(repos))) == 2

    async def test_concurrent_runs_store_each_url_once(self, repos):
        ch1, ch2 = channel_id(1), channel_id(2)
        shared = make_entry("shared", 1)
        youtube = FakeYouTube(
            feeds={
                ch1: [make_entry("x1"), shared],
                ch2: [shared, make_entry("y1", 2)],
            }
        )
        track(repos, ch1, ch2)

        results = await asyncio.gather(*(FeedSyncJob(repos, youtube).run() for _ in range(3)))

        stored = urls(repos)
        assert sorted(stored) == sorted(
            "https://www.youtube.com/watch?v=" + v for v in ("x1", "shared", "y1")
        )
        assert sum(r.added for r in results) == 3

    async def test_duplicate_url_within_one_run_inserted_once(self, repos):
        ch1, ch2 = channel_id(1), channel_id(2)
        youtube = FakeYouTube(feeds={ch1: [make_entry("dup")], ch2: [make_entry("dup")]})
        track(repos, ch1, ch2)

        result = await FeedSyncJob(repos, youtube).run()

        assert result.added == 1
        assert urls(repos) == ["https://www.youtube.com/watch?v=dup"]

    async def test_unresolvable_channel_is_skipped(self, repos):
        good = channel_id(2)
        youtube = FakeYouTube(feeds={good: [make_entry("g1")]})
        track(repos, "some channel nobody can find", good)

        result = await FeedSyncJob(repos, youtube).run()

        assert result.added == 1
        assert result.channels_skipped == 1
        assert result.channels_synced == 1
        assert len(result.errors) == 1

    async def test_failing_feed_does_not_abort_run(self, repos):
        bad, good = channel_id(1), channel_id(2)
        youtube = FakeYouTube(feeds={good: [make_entry("g1")]}, failing={bad})
        track(repos, bad, good)

        result = await FeedSyncJob(repos, youtube).run()

        assert result.added == 1
        assert result.channels_skipped == 1
        assert "timed out" in result.errors[0]

    async def test_resolves_handles_through_resolver(self, repos):
        ch = channel_id(7)
        youtube = FakeYouTube(feeds={ch: [make_entry("h1")]}, aliases={"@clanhub": ch})
        track(repos, "@clanhub")

        result = await FeedSyncJob(repos, youtube).run()

        assert result.added == 1
        assert youtube.feed_calls == [ch]

    async def test_respects_items_per_channel(self, repos):
        ch = channel_id(1)
        youtube = FakeYouTube(feeds={ch: [make_entry(f"v{i}", i) for i in range(10)]})
        track(repos, ch)

        result = await FeedSyncJob(repos, youtube, items_per_channel=6).run()

        assert result.added == 6

    async def test_auto_publish_ignored_by_default(self, repos):
        ch = channel_id(1)
        youtube = FakeYouTube(feeds={ch: [make_entry("a1")]})
        track(repos, ch, auto_publish=False)

        assert (await FeedSyncJob(repos, youtube).run()).added == 1

    async def test_auto_publish_respected_when_enabled(self, repos):
        ch = channel_id(1)
        youtube = FakeYouTube(feeds={ch: [make_entry("a1")]})
        track(repos, ch, auto_publish=False)

        result = await FeedSyncJob(repos, youtube, respect_auto_publish=True).run()

        assert result.added == 0
        assert result.channels_total == 0

    async def test_existing_admin_post_is_not_duplicated(self, repos):
        ch = channel_id(1)
        repos.news.insert(
            NewsItem(title="Posted by hand", source=NewsSource.youtube, url="https://www.youtube.com/watch?v=a1")
        )
        youtube = FakeYouTube(feeds={ch: [make_entry("a1"), make_entry("a2", 3)]})
        track(repos, ch)

        result = await FeedSyncJob(repos, youtube).run()

        assert result.added == 1
        assert len(repos.news.list()) == 2

    async def test_no_channels(self, repos):
        result = await FeedSyncJob(repos, FakeYouTube()).run()
        assert result.added == 0
        assert result.channels_total == 0


class TestEmptyUrls:
    def test_empty_url_items_are_never_deduplicated(self, repos):
        assert repos.news.insert_if_absent(NewsItem(title="Scrim tonight"))
        assert repos.news.insert_if_absent(NewsItem(title="Scrim tomorrow"))
        repos.news.insert(NewsItem(title="Roster change"))

        assert len(repos.news.list()) == 3
        assert repos.news.existing_urls() == set()


def feed_xml(channel: str, *video_ids: str) -> str:
    entries = "".join(
        f"""
  <entry>
    <yt:videoId>{video_id}</yt:videoId>
    <yt:channelId>{channel}</yt:channelId>
    <title>Upload {video_id}</title>
    <published>2026-03-0{n + 1}T10:00:00+00:00</published>
  </entry>"""
        for n, video_id in enumerate(video_ids)
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns="http://www.w3.org/2005/Atom">
  <title>Channel {channel[-3:]}</title>{entries}
</feed>
"""


class TestMisbehavingUpstream:
    """One channel's bad upstream answer skips that channel only."""

    async def test_bad_answers_skip_only_their_channel(self, repos):
        healthy, throttled = channel_id(1), channel_id(2)

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/feeds/videos.xml":
                if request.url.params["channel_id"] == throttled:
                    return httpx.Response(429, headers={"retry-after": "Wed, 21 Oct 2015 07:28:00 GMT"})
                return httpx.Response(200, text=feed_xml(healthy, "h1", "h2"))
            # Data API lookups for @someone answer with a quota page
            return httpx.Response(200, text="<html>quota page</html>", headers={"content-type": "text/html"})

        youtube = YouTubeClient("test-key", requests_per_minute=60000, transport=httpx.MockTransport(handler))
        track(repos, throttled, "@someone", healthy)

        result = await FeedSyncJob(repos, youtube).run()
        await youtube.close()

        assert result.added == 2
        assert result.channels_synced == 1
        assert result.channels_skipped == 2
        assert sorted(urls(repos)) == [
            "https://www.youtube.com/watch?v=h1",
            "https://www.youtube.com/watch?v=h2",
        ]

    async def test_unexpected_error_skips_channel(self, repos):
        broken, good = channel_id(1), channel_id(2)

        class BrokenYouTube(FakeYouTube):
            async def latest_videos(self, channel_id, limit=6):
                if channel_id == broken:
                    raise KeyError("videoId")
                return await super().latest_videos(channel_id, limit)

        track(repos, broken, good)

        result = await FeedSyncJob(repos, BrokenYouTube(feeds={good: [make_entry("g1")]})).run()

        assert result.added == 1
        assert result.channels_skipped == 1
        assert result.errors[0].startswith(f"{broken}: KeyError")
