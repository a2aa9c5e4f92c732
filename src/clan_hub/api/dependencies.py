"""
Dependency injection for API endpoints.

Repositories and upstream clients are process-wide singletons created on
first use and closed at shutdown. Services are cheap and built per request
from those singletons, so tests can swap any collaborator through
``app.dependency_overrides``.
"""

import hmac
from typing import Annotated

from fastapi import Depends, Header

from ..core.config import Settings, get_settings
from ..external import PubgClient, TwitchClient, YouTubeClient
from ..repositories import RepositorySet, get_repositories
from ..services import ChannelService, FeedSyncJob, MemberStatsService, NewsService
from .errors import UnauthorizedError

# =============================================================================
# Storage
# =============================================================================

_repos: RepositorySet | None = None


def get_repos() -> RepositorySet:
    """Dependency that provides the configured repository set."""
    global _repos
    if _repos is None:
        _repos = get_repositories(get_settings())
    return _repos


def close_repos() -> None:
    """Close the global repository set. Called at app shutdown."""
    global _repos
    if _repos is not None:
        _repos.close()
        _repos = None


# =============================================================================
# Upstream clients
# =============================================================================

_youtube: YouTubeClient | None = None
_twitch: TwitchClient | None = None
_pubg: PubgClient | None = None


def get_youtube_client() -> YouTubeClient:
    global _youtube
    if _youtube is None:
        settings = get_settings()
        _youtube = YouTubeClient(settings.youtube_api_key, timeout=settings.external_call_timeout)
    return _youtube


def get_twitch_client() -> TwitchClient:
    global _twitch
    if _twitch is None:
        settings = get_settings()
        _twitch = TwitchClient(
            settings.twitch_client_id,
            settings.twitch_client_secret,
            timeout=settings.external_call_timeout,
        )
    return _twitch


def get_pubg_client() -> PubgClient:
    global _pubg
    if _pubg is None:
        settings = get_settings()
        _pubg = PubgClient(
            settings.pubg_api_key,
            requests_per_minute=settings.pubg_requests_per_minute,
            timeout=settings.external_call_timeout,
        )
    return _pubg


async def close_clients() -> None:
    """Close upstream HTTP clients. Called at app shutdown."""
    global _youtube, _twitch, _pubg
    for client in (_youtube, _twitch, _pubg):
        if client is not None:
            await client.close()
    _youtube = _twitch = _pubg = None


# =============================================================================
# Services
# =============================================================================


def build_feed_sync_job(repos: RepositorySet, youtube: YouTubeClient, settings: Settings) -> FeedSyncJob:
    return FeedSyncJob(
        repos,
        youtube,
        items_per_channel=settings.sync_items_per_channel,
        respect_auto_publish=settings.sync_respect_auto_publish,
    )


def get_feed_sync_job(
    repos: Annotated[RepositorySet, Depends(get_repos)],
    youtube: Annotated[YouTubeClient, Depends(get_youtube_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> FeedSyncJob:
    return build_feed_sync_job(repos, youtube, settings)


def get_member_stats_service(
    repos: Annotated[RepositorySet, Depends(get_repos)],
    pubg: Annotated[PubgClient, Depends(get_pubg_client)],
) -> MemberStatsService:
    return MemberStatsService(repos, pubg)


def get_news_service(
    repos: Annotated[RepositorySet, Depends(get_repos)],
    youtube: Annotated[YouTubeClient, Depends(get_youtube_client)],
    twitch: Annotated[TwitchClient, Depends(get_twitch_client)],
) -> NewsService:
    return NewsService(repos, youtube, twitch)


def get_channel_service(
    repos: Annotated[RepositorySet, Depends(get_repos)],
    youtube: Annotated[YouTubeClient, Depends(get_youtube_client)],
) -> ChannelService:
    return ChannelService(repos, youtube)


# =============================================================================
# Admin authentication
# =============================================================================


def _matches(supplied: str | None, expected: str) -> bool:
    return supplied is not None and hmac.compare_digest(supplied.encode(), expected.encode())


def require_admin(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
    x_server_token: Annotated[str | None, Header()] = None,
) -> None:
    """
    Guard for admin endpoints.

    Requires ``Authorization: Bearer <ADMIN_TOKEN>`` and, when SERVER_TOKEN
    is set, a matching ``x-server-token`` header. Admin routes are closed
    while ADMIN_TOKEN is unset.
    """
    if not settings.admin_token:
        raise UnauthorizedError("Admin access is not configured")

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not _matches(token.strip(), settings.admin_token):
        raise UnauthorizedError()

    if settings.server_token and not _matches(x_server_token, settings.server_token):
        raise UnauthorizedError()


# Type aliases for dependency injection
ReposDependency = Annotated[RepositorySet, Depends(get_repos)]
YouTubeDependency = Annotated[YouTubeClient, Depends(get_youtube_client)]
TwitchDependency = Annotated[TwitchClient, Depends(get_twitch_client)]
PubgDependency = Annotated[PubgClient, Depends(get_pubg_client)]
FeedSyncDependency = Annotated[FeedSyncJob, Depends(get_feed_sync_job)]
MemberStatsDependency = Annotated[MemberStatsService, Depends(get_member_stats_service)]
NewsServiceDependency = Annotated[NewsService, Depends(get_news_service)]
ChannelServiceDependency = Annotated[ChannelService, Depends(get_channel_service)]
AdminDependency = Depends(require_admin)
