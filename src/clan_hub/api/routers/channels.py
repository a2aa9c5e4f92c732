"""
YouTube router.

Endpoints:
- GET /youtube/channels - Tracked channels (admin)
- POST /youtube/channels - Track a channel by id, URL, @handle or name (admin)
- DELETE /youtube/channels/{channel_id} - Stop tracking a channel (admin)
- POST /youtube/sync - Import new uploads now (admin)
- GET /youtube/oembed - oEmbed proxy for a video URL
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Path, Query, Response

from ...core.http import ExternalAPIError
from ...core.models import ChannelCreate, TrackedChannel
from ...services import ChannelNotResolvedError
from ..dependencies import (
    AdminDependency,
    ChannelServiceDependency,
    FeedSyncDependency,
    ReposDependency,
    YouTubeDependency,
)
from ..errors import NotFoundError, ValidationError, upstream_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/channels", dependencies=[AdminDependency])
async def list_channels(repos: ReposDependency) -> list[TrackedChannel]:
    return repos.channels.list()


@router.post("/channels", status_code=201, dependencies=[AdminDependency])
async def add_channel(payload: ChannelCreate, service: ChannelServiceDependency) -> TrackedChannel:
    try:
        return await service.register(payload)
    except ChannelNotResolvedError as e:
        raise ValidationError(str(e), detail="Use a channel URL, UC... id or @handle")


@router.delete("/channels/{channel_id}", status_code=204, dependencies=[AdminDependency])
async def remove_channel(
    channel_id: Annotated[str, Path(min_length=1, max_length=64)],
    service: ChannelServiceDependency,
) -> Response:
    if not service.remove(channel_id):
        raise NotFoundError("Channel", channel_id)
    return Response(status_code=204)


@router.post("/sync", dependencies=[AdminDependency])
async def sync_now(job: FeedSyncDependency) -> dict:
    """
    Run the feed sync immediately.

    Returns the number of items added plus per-channel diagnostics.
    """
    result = await job.run()
    return result.to_dict()


@router.get("/oembed")
async def youtube_oembed(
    youtube: YouTubeDependency,
    url: Annotated[str, Query(min_length=1, max_length=500, description="YouTube video URL")],
) -> dict:
    try:
        return await youtube.oembed(url)
    except ExternalAPIError as e:
        raise upstream_error("YouTube", e)
