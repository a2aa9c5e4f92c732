"""
PUBG developer API client.

Provides player lookup by name, the current season per shard, and
lifetime / season stats in their raw per-game-mode shape.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..core.http import BaseApiClient, ExternalAPIError, UpstreamNotFoundError
from ..core.types import Platform

logger = logging.getLogger(__name__)


ACCOUNT_PREFIX = "account."


class PlayerNotFoundError(UpstreamNotFoundError):
    """No PUBG account matches the given name on the given shard."""

    def __init__(self, name: str, platform: str):
        super().__init__(f"PUBG player '{name}' not found on {platform}")
        self.code = "PLAYER_NOT_FOUND"
        self.name = name
        self.platform = platform


@dataclass
class PubgPlayer:
    """Resolved PUBG account."""

    id: str
    name: str
    platform: str


def is_account_id(ref: str | None) -> bool:
    """Whether ``ref`` is already a resolved account reference."""
    return bool(ref) and ref.startswith(ACCOUNT_PREFIX)


def _shard(platform: Platform | str) -> str:
    return platform.value if isinstance(platform, Platform) else str(platform)


class PubgClient(BaseApiClient):
    """PUBG API client (https://api.pubg.com)."""

    BASE_URL = "https://api.pubg.com/shards"
    SERVICE_NAME = "PUBG"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        requests_per_minute: int = 10,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            headers={
                "Authorization": f"Bearer {api_key or ''}",
                "Accept": "application/vnd.api+json",
            },
            requests_per_minute=requests_per_minute,
            timeout=timeout,
            call_timeout=timeout,
            transport=transport,
        )
        self.api_key = api_key or ""
        self._current_seasons: dict[str, str] = {}

    def is_configured(self) -> bool:
        """Check if API key is configured."""
        return bool(self.api_key)

    # =========================================================================
    # Players
    # =========================================================================

    async def find_player(self, name: str, platform: Platform | str = Platform.steam) -> PubgPlayer:
        """
        Look up an account by exact (case-sensitive) player name.

        Raises:
            PlayerNotFoundError: If no such player exists on the shard
        """
        self._require_configured()
        shard = _shard(platform)
        try:
            response = await self._get(f"/{shard}/players", params={"filter[playerNames]": name})
        except UpstreamNotFoundError:
            raise PlayerNotFoundError(name, shard)

        players = response.get("data") or []
        if not players:
            raise PlayerNotFoundError(name, shard)

        player = players[0]
        return PubgPlayer(
            id=player["id"],
            name=(player.get("attributes") or {}).get("name", name),
            platform=shard,
        )

    async def resolve_account_id(self, ref: str, platform: Platform | str = Platform.steam) -> str:
        """Return ``ref`` if it is an account id, otherwise look the name up."""
        if is_account_id(ref):
            return ref
        player = await self.find_player(ref, platform)
        return player.id

    # =========================================================================
    # Seasons
    # =========================================================================

    async def current_season_id(self, platform: Platform | str = Platform.steam) -> str:
        """Current season id for a shard (cached for the client's lifetime)."""
        self._require_configured()
        shard = _shard(platform)
        if shard in self._current_seasons:
            return self._current_seasons[shard]

        response = await self._get(f"/{shard}/seasons")
        for season in response.get("data") or []:
            if (season.get("attributes") or {}).get("isCurrentSeason"):
                self._current_seasons[shard] = season["id"]
                return season["id"]

        raise ExternalAPIError(f"PUBG returned no current season for {shard}")

    # =========================================================================
    # Stats
    # =========================================================================

    async def _game_mode_stats(self, path: str, account_id: str) -> dict[str, Any]:
        try:
            response = await self._get(path)
        except UpstreamNotFoundError:
            raise PlayerNotFoundError(account_id, path.split("/")[1])
        attributes = (response.get("data") or {}).get("attributes") or {}
        return attributes.get("gameModeStats") or {}

    async def lifetime_stats(self, account_id: str, platform: Platform | str = Platform.steam) -> dict[str, Any]:
        """Raw lifetime ``gameModeStats`` mapping for an account."""
        self._require_configured()
        return await self._game_mode_stats(
            f"/{_shard(platform)}/players/{account_id}/seasons/lifetime", account_id
        )

    async def season_stats(
        self,
        account_id: str,
        platform: Platform | str = Platform.steam,
        season_id: str | None = None,
    ) -> dict[str, Any]:
        """Raw ``gameModeStats`` for a season (the current one by default)."""
        self._require_configured()
        season_id = season_id or await self.current_season_id(platform)
        return await self._game_mode_stats(
            f"/{_shard(platform)}/players/{account_id}/seasons/{season_id}", account_id
        )
