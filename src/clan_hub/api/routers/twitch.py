"""Twitch metadata router (oEmbed-shaped, backed by Helix)."""

from typing import Annotated

from fastapi import APIRouter, Query

from ...core.http import ExternalAPIError
from ..dependencies import TwitchDependency
from ..errors import ValidationError, upstream_error

router = APIRouter()


@router.get("/oembed")
async def twitch_oembed(
    twitch: TwitchDependency,
    url: Annotated[str, Query(min_length=1, max_length=500, description="Twitch clip, video or channel URL")],
) -> dict:
    try:
        return await twitch.oembed(url)
    except ValueError as e:
        raise ValidationError(str(e))
    except ExternalAPIError as e:
        raise upstream_error("Twitch", e)
