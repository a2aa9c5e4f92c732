"""YouTube client for channel feeds, channel id resolution and oEmbed.

Latest uploads come from the public channel RSS feed, which is free and
needs no API key. Resolving a human-entered handle, legacy username or free
text to a canonical channel id needs the YouTube Data API v3 key.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx

from ..core.http import BaseApiClient, ExternalAPIError

logger = logging.getLogger(__name__)


FEED_URL = "https://www.youtube.com/feeds/videos.xml"
OEMBED_URL = "https://www.youtube.com/oembed"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
CHANNEL_URL = "https://www.youtube.com/channel/{channel_id}"

# Atom feed namespaces
ATOM = "{http://www.w3.org/2005/Atom}"
YT = "{http://www.youtube.com/xml/schemas/2015}"
MEDIA = "{http://search.yahoo.com/mrss/}"

CHANNEL_ID_RE = re.compile(r"^UC[\w-]{22}$")
CHANNEL_PATH_RE = re.compile(r"/channel/(UC[\w-]{22})")
HANDLE_PATH_RE = re.compile(r"youtube\.com/@([\w.\-]+)")
USER_PATH_RE = re.compile(r"youtube\.com/(?:user|c)/([\w.\-]+)")
YOUTUBE_URL_RE = re.compile(r"youtube\.com|youtu\.be")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class FeedEntry:
    """One upload from a channel feed."""

    external_id: str
    title: str
    canonical_url: str
    thumbnail_url: str = ""
    description: str = ""
    published_at: datetime | None = None


@dataclass
class ChannelFeed:
    """Parsed channel feed, newest entry first."""

    channel_id: str
    title: str = ""
    entries: list[FeedEntry] = field(default_factory=list)


def _parse_published(value: str | None) -> datetime | None:
    """Parse an Atom timestamp such as 2024-05-01T17:00:07+00:00."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_channel_feed(channel_id: str, xml_text: str) -> ChannelFeed:
    """
    Parse a channel's Atom feed.

    Entries without a video id are dropped; the rest are sorted newest first.

    Raises:
        ExternalAPIError: If the document is not valid XML
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ExternalAPIError(f"YouTube feed parse error for {channel_id}: {e}")

    feed = ChannelFeed(channel_id=channel_id, title=(root.findtext(f"{ATOM}title") or "").strip())

    for entry in root.findall(f"{ATOM}entry"):
        video_id = (entry.findtext(f"{YT}videoId") or "").strip()
        if not video_id:
            continue

        group = entry.find(f"{MEDIA}group")
        thumbnail = ""
        description = ""
        if group is not None:
            description = (group.findtext(f"{MEDIA}description") or "").strip()
            thumb_el = group.find(f"{MEDIA}thumbnail")
            if thumb_el is not None:
                thumbnail = thumb_el.get("url", "")

        feed.entries.append(
            FeedEntry(
                external_id=video_id,
                title=(entry.findtext(f"{ATOM}title") or "").strip(),
                canonical_url=WATCH_URL.format(video_id=video_id),
                thumbnail_url=thumbnail or f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
                description=description[:300] + "..." if len(description) > 300 else description,
                published_at=_parse_published(entry.findtext(f"{ATOM}published")),
            )
        )

    feed.entries.sort(key=lambda e: e.published_at or _EPOCH, reverse=True)
    return feed


def match_channel_id(raw: str) -> str | None:
    """Return the canonical id if ``raw`` is one or embeds one in a URL path."""
    raw = raw.strip()
    if CHANNEL_ID_RE.match(raw):
        return raw
    match = CHANNEL_PATH_RE.search(raw)
    return match.group(1) if match else None


class YouTubeClient(BaseApiClient):
    """
    YouTube Data API v3 + public feed client.

    Data API calls cost quota (search costs 100 units), so resolution tries
    the cheap channel lookups first.
    """

    BASE_URL = "https://www.googleapis.com/youtube/v3"
    SERVICE_NAME = "YouTube"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        requests_per_minute: int = 120,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize YouTube client.

        Args:
            api_key: Data API key; feeds and oEmbed work without it
            requests_per_minute: Client-side request budget
            timeout: Upper bound for each call in seconds
            transport: Optional httpx transport (tests)
        """
        super().__init__(
            headers={
                "User-Agent": "Mozilla/5.0 (compatible; ClanHubBot/1.0)",
            },
            requests_per_minute=requests_per_minute,
            timeout=timeout,
            call_timeout=timeout,
            max_retries=2,
            transport=transport,
        )
        self.api_key = api_key or ""

    def is_configured(self) -> bool:
        """Whether Data API lookups are possible."""
        return bool(self.api_key)

    # =========================================================================
    # Feed
    # =========================================================================

    async def fetch_feed(self, channel_id: str) -> ChannelFeed:
        """Fetch and parse the public uploads feed of a channel."""
        xml_text = await self._get_text(
            FEED_URL,
            params={"channel_id": channel_id},
            headers={"Accept": "application/atom+xml, application/xml, text/xml"},
        )
        return parse_channel_feed(channel_id, xml_text)

    async def latest_videos(self, channel_id: str, limit: int = 6) -> list[FeedEntry]:
        """Most recent uploads of a channel, newest first."""
        feed = await self.fetch_feed(channel_id)
        return feed.entries[:limit]

    # =========================================================================
    # Channel resolution
    # =========================================================================

    async def _lookup_channel(self, **params: Any) -> str | None:
        data = await self._get("/channels", params={"part": "id", "key": self.api_key, **params})
        items = data.get("items") or []
        return items[0].get("id") if items else None

    async def _search_channel(self, query: str) -> str | None:
        data = await self._get(
            "/search",
            params={
                "part": "snippet",
                "type": "channel",
                "maxResults": 1,
                "q": query,
                "key": self.api_key,
            },
        )
        items = data.get("items") or []
        if not items:
            return None
        item = items[0]
        return (item.get("id") or {}).get("channelId") or (item.get("snippet") or {}).get("channelId")

    async def resolve_channel_id(self, raw: str) -> str | None:
        """
        Resolve a channel id, channel URL, @handle, username or search text.

        Order: canonical id, id embedded in a URL, then Data API lookups by
        handle, by username and finally free-text search. The first lookup
        that yields an id wins.

        Returns:
            Canonical channel id, or None if nothing resolved
        """
        raw = (raw or "").strip()
        if not raw:
            return None

        direct = match_channel_id(raw)
        if direct:
            return direct

        if not self.is_configured():
            logger.warning(f"Cannot resolve YouTube channel '{raw}': YOUTUBE_API_KEY not set")
            return None

        handle_match = HANDLE_PATH_RE.search(raw)
        user_match = USER_PATH_RE.search(raw)
        bare = raw.lstrip("@") if not YOUTUBE_URL_RE.search(raw) else ""

        handle = handle_match.group(1) if handle_match else bare
        username = user_match.group(1) if user_match else bare
        query = handle or username or raw

        attempts = []
        if handle:
            attempts.append(("handle", lambda: self._lookup_channel(forHandle=f"@{handle}")))
        if username:
            attempts.append(("username", lambda: self._lookup_channel(forUsername=username)))
        attempts.append(("search", lambda: self._search_channel(query)))

        for label, attempt in attempts:
            try:
                channel_id = await attempt()
            except ExternalAPIError as e:
                logger.warning(f"YouTube {label} lookup failed for '{raw}': {e.message}")
                continue
            if channel_id:
                logger.debug(f"Resolved YouTube channel '{raw}' -> {channel_id} via {label}")
                return channel_id

        return None

    # =========================================================================
    # oEmbed
    # =========================================================================

    async def oembed(self, url: str) -> dict[str, Any]:
        """oEmbed metadata (title, author_name, thumbnail_url) for a video URL."""
        return await self._get(OEMBED_URL, params={"url": url, "format": "json"})
