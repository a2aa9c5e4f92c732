"""
PUBG proxy router.

Endpoints:
- GET /pubg/player/{name} - Resolve a player name to its account id
- GET /pubg/stats/{account_id} - Aggregated and per-mode stats
"""

from typing import Annotated

from fastapi import APIRouter, Path, Query

from ...aggregators import PubgStatsAggregator
from ...core.http import ExternalAPIError
from ...core.types import Platform
from ..dependencies import PubgDependency
from ..errors import upstream_error

router = APIRouter()

PlatformQuery = Annotated[Platform, Query(description="PUBG shard")]


@router.get("/player/{name}")
async def find_player(
    name: Annotated[str, Path(min_length=1, max_length=64)],
    pubg: PubgDependency,
    platform: PlatformQuery = Platform.steam,
) -> dict:
    try:
        player = await pubg.find_player(name, platform)
    except ExternalAPIError as e:
        raise upstream_error("PUBG", e)
    return {"id": player.id, "name": player.name}


@router.get("/stats/{account_id}")
async def player_stats(
    account_id: Annotated[str, Path(min_length=1, max_length=100)],
    pubg: PubgDependency,
    platform: PlatformQuery = Platform.steam,
    season: Annotated[str, Query(description="'current', 'lifetime' or a season id")] = "current",
) -> dict:
    """
    Stats for an account.

    ``overall`` sums every game mode; ``modes`` breaks them down, leaving
    out modes with no rounds played.
    """
    try:
        if season == "lifetime":
            raw = await pubg.lifetime_stats(account_id, platform)
        else:
            season_id = await pubg.current_season_id(platform) if season == "current" else season
            raw = await pubg.season_stats(account_id, platform, season_id)
            season = season_id
    except ExternalAPIError as e:
        raise upstream_error("PUBG", e)

    return {
        "season": season,
        "overall": PubgStatsAggregator.aggregate(raw).model_dump(),
        "modes": PubgStatsAggregator.mode_breakdown(raw),
    }
