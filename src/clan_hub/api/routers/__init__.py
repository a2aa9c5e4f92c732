"""API routers."""

from . import auth, channels, members, news, pubg, twitch

__all__ = ["auth", "channels", "members", "news", "pubg", "twitch"]
