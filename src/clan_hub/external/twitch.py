"""Twitch Helix client producing oEmbed-shaped metadata for clips, videos and channels."""

import logging
import re
import time
from typing import Any

import httpx

from ..core.http import BaseApiClient, UpstreamNotFoundError

logger = logging.getLogger(__name__)


TOKEN_URL = "https://id.twitch.tv/oauth2/token"

CLIP_RE = re.compile(r"(?:clips\.twitch\.tv/|twitch\.tv/[\w]+/clip/)([\w-]+)")
VIDEO_RE = re.compile(r"twitch\.tv/videos/(\d+)")
CHANNEL_RE = re.compile(r"twitch\.tv/([A-Za-z0-9_]{3,25})/?(?:[?#]|$)")

THUMBNAIL_SIZE = {"width": "640", "height": "360"}


def parse_twitch_url(url: str) -> tuple[str, str]:
    """
    Classify a Twitch URL.

    Returns:
        Tuple of (kind, key) where kind is clip, video or channel

    Raises:
        ValueError: If the URL is not a recognised Twitch link
    """
    url = (url or "").strip()
    for kind, pattern in (("clip", CLIP_RE), ("video", VIDEO_RE), ("channel", CHANNEL_RE)):
        match = pattern.search(url)
        if match:
            return kind, match.group(1)
    raise ValueError(f"Unrecognized Twitch URL: {url}")


def _sized(thumbnail_url: str) -> str:
    """Helix video thumbnails carry %{width}x%{height} placeholders."""
    return (
        thumbnail_url.replace("%{width}", THUMBNAIL_SIZE["width"])
        .replace("%{height}", THUMBNAIL_SIZE["height"])
        .replace("{width}", THUMBNAIL_SIZE["width"])
        .replace("{height}", THUMBNAIL_SIZE["height"])
    )


class TwitchClient(BaseApiClient):
    """
    Twitch Helix API client using an app access token.

    The token is fetched with the client-credentials grant and reused until
    shortly before it expires.
    """

    BASE_URL = "https://api.twitch.tv/helix"
    SERVICE_NAME = "Twitch"

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            requests_per_minute=600,
            timeout=timeout,
            call_timeout=timeout,
            max_retries=2,
            transport=transport,
        )
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""
        self._token: str | None = None
        self._token_expires_at = 0.0

    def is_configured(self) -> bool:
        """Check if app credentials are configured."""
        return bool(self.client_id and self.client_secret)

    async def _app_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        data = await self._post(
            TOKEN_URL,
            params={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            },
        )
        self._token = data["access_token"]
        # Refresh a minute early
        self._token_expires_at = time.monotonic() + max(int(data.get("expires_in", 0)) - 60, 0)
        return self._token

    async def _helix(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET a Helix collection and return its first element."""
        self._require_configured()
        token = await self._app_token()
        data = await self._get(
            path,
            params=params,
            headers={"Client-Id": self.client_id, "Authorization": f"Bearer {token}"},
        )
        items = data.get("data") or []
        if not items:
            raise UpstreamNotFoundError(f"Twitch {path.strip('/')} {params} not found")
        return items[0]

    async def oembed(self, url: str) -> dict[str, Any]:
        """
        Metadata for a Twitch clip, video or channel URL in oEmbed field names.

        Raises:
            ValueError: If the URL is not a Twitch link
            NotConfiguredError: If app credentials are missing
            UpstreamNotFoundError: If Twitch has no such clip/video/channel
        """
        kind, key = parse_twitch_url(url)

        if kind == "clip":
            clip = await self._helix("/clips", {"id": key})
            return {
                "type": "video",
                "provider_name": "Twitch",
                "title": clip.get("title", ""),
                "author_name": clip.get("broadcaster_name", ""),
                "thumbnail_url": clip.get("thumbnail_url", ""),
                "url": clip.get("url") or url,
            }

        if kind == "video":
            video = await self._helix("/videos", {"id": key})
            return {
                "type": "video",
                "provider_name": "Twitch",
                "title": video.get("title", ""),
                "author_name": video.get("user_name", ""),
                "description": video.get("description", ""),
                "thumbnail_url": _sized(video.get("thumbnail_url", "")),
                "url": video.get("url") or url,
            }

        user = await self._helix("/users", {"login": key.lower()})
        return {
            "type": "rich",
            "provider_name": "Twitch",
            "title": user.get("display_name") or key,
            "author_name": user.get("display_name") or key,
            "description": user.get("description", ""),
            "thumbnail_url": user.get("offline_image_url") or user.get("profile_image_url", ""),
            "url": f"https://www.twitch.tv/{user.get('login', key)}",
        }
