"""External API clients for YouTube, Twitch and PUBG."""

from ..core.http import ExternalAPIError, NotConfiguredError, RateLimitError, UpstreamNotFoundError
from .pubg import PlayerNotFoundError, PubgClient, PubgPlayer, is_account_id
from .twitch import TwitchClient, parse_twitch_url
from .youtube import ChannelFeed, FeedEntry, YouTubeClient, match_channel_id, parse_channel_feed

__all__ = [
    "ExternalAPIError",
    "NotConfiguredError",
    "RateLimitError",
    "UpstreamNotFoundError",
    "PlayerNotFoundError",
    "PubgClient",
    "PubgPlayer",
    "is_account_id",
    "TwitchClient",
    "parse_twitch_url",
    "ChannelFeed",
    "FeedEntry",
    "YouTubeClient",
    "match_channel_id",
    "parse_channel_feed",
]
