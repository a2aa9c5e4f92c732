"""
Member stats refresh.

Resolves a member's PUBG account, fetches the stat set their scope selects
(lifetime for ``overall``, current season for ``season``), aggregates it and
writes the summary back. The stored summary is replaced wholesale; the
admin-assigned rank label is carried over.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..aggregators import PubgStatsAggregator
from ..core.http import ExternalAPIError
from ..core.models import Member, StatSummary, utcnow
from ..core.types import StatScope
from ..external.pubg import PlayerNotFoundError, PubgClient, is_account_id
from ..repositories import RepositorySet

logger = logging.getLogger(__name__)


class MemberNotFoundError(LookupError):
    """No roster entry with the given id."""

    def __init__(self, member_id: str):
        super().__init__(f"Member {member_id} not found")
        self.member_id = member_id


class MissingPubgReferenceError(ValueError):
    """The member has no PUBG name or account id to refresh from."""

    def __init__(self, member_id: str):
        super().__init__(f"Member {member_id} has no PUBG id")
        self.member_id = member_id


@dataclass
class RefreshResult:
    """Outcome of a batch refresh."""

    refreshed: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def items_processed(self) -> int:
        return self.refreshed

    @property
    def metadata(self) -> dict:
        return {"skipped": self.skipped, "failed": self.failed}


class MemberStatsService:
    """Refreshes roster stats from the PUBG API."""

    def __init__(self, repos: RepositorySet, pubg: PubgClient):
        self.repos = repos
        self.pubg = pubg

    async def _fetch(self, member: Member, account_id: str) -> dict:
        if member.scope == StatScope.season:
            return await self.pubg.season_stats(account_id, member.pubg_platform)
        return await self.pubg.lifetime_stats(account_id, member.pubg_platform)

    async def refresh(self, member_id: str) -> StatSummary:
        """
        Refresh one member's stats.

        Returns:
            The new StatSummary, as stored

        Raises:
            MemberNotFoundError: Unknown member id (or deleted mid-refresh)
            MissingPubgReferenceError: Member has no PUBG reference
            PlayerNotFoundError: PUBG knows no such player
            ExternalAPIError: PUBG unavailable, timed out or not configured
        """
        member = self.repos.members.get(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        if not member.has_pubg_reference:
            raise MissingPubgReferenceError(member_id)

        cached = member.pubg_account_id
        account_id = cached or await self.pubg.resolve_account_id(member.pubg_id, member.pubg_platform)

        try:
            raw = await self._fetch(member, account_id)
        except PlayerNotFoundError:
            # A stale cached id is retried once through the player name
            if not cached or not member.pubg_id or is_account_id(member.pubg_id):
                raise
            logger.info(f"Cached PUBG account for member {member_id} not found, re-resolving")
            account_id = await self.pubg.resolve_account_id(member.pubg_id, member.pubg_platform)
            raw = await self._fetch(member, account_id)

        summary = PubgStatsAggregator.aggregate(raw, rank=member.stats.rank)

        updated = member.model_copy(
            update={"stats": summary, "pubg_account_id": account_id, "updated_at": utcnow()}
        )
        if self.repos.members.update(updated) is None:
            raise MemberNotFoundError(member_id)

        logger.info(
            f"Refreshed PUBG stats for {member.nickname} ({member.scope.value}): "
            f"{summary.matches} matches, kd {summary.kd}"
        )
        return summary

    async def refresh_all(self) -> RefreshResult:
        """Refresh every member with a PUBG reference; failures are per member."""
        result = RefreshResult()
        for member in self.repos.members.list():
            if not member.has_pubg_reference:
                result.skipped += 1
                continue
            try:
                await self.refresh(member.id)
            except MemberNotFoundError:
                result.skipped += 1
            except ExternalAPIError as e:
                result.failed += 1
                result.errors.append(f"{member.nickname}: {e.message}")
                logger.warning(f"Stats refresh failed for {member.nickname}: {e.message}")
            except Exception as e:
                result.failed += 1
                result.errors.append(f"{member.nickname}: {type(e).__name__}: {e}")
                logger.error(f"Stats refresh for {member.nickname} raised unexpectedly", exc_info=True)
            else:
                result.refreshed += 1

        logger.info(
            f"Member refresh: {result.refreshed} refreshed, "
            f"{result.failed} failed, {result.skipped} skipped"
        )
        return result
