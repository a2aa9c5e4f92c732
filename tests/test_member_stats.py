"""
Tests for the member stats refresh.
"""

import pytest

from clan_hub.core.http import ExternalAPIError
from clan_hub.core.models import Member, MemberUpdate, StatSummary
from clan_hub.core.types import Platform, StatScope
from clan_hub.external.pubg import PlayerNotFoundError
from clan_hub.services import MemberNotFoundError, MemberStatsService, MissingPubgReferenceError

from conftest import FakePubg

ACCOUNT = "account.0123456789abcdef"
BROKEN_ACCOUNT = "account.fedcba9876543210"

LIFETIME = {
    "solo": {"roundsPlayed": 10, "wins": 2, "kills": 8, "losses": 8, "damageDealt": 1000},
    "duo": {"roundsPlayed": 5, "wins": 1, "kills": 4, "losses": 4, "damageDealt": 400},
}
SEASON = {"squad-fpp": {"roundsPlayed": 4, "wins": 1, "kills": 6, "damageDealt": 512.5}}


@pytest.fixture
def pubg():
    return FakePubg(players={"Shroud": ACCOUNT}, lifetime={ACCOUNT: LIFETIME}, season={ACCOUNT: SEASON})


def add_member(repos, **fields) -> Member:
    fields.setdefault("nickname", "Shroud")
    return repos.members.insert(Member(**fields))


class TestRefresh:
    async def test_overall_scope_uses_lifetime_stats(self, repos, pubg):
        member = add_member(repos, pubg_id="Shroud")

        summary = await MemberStatsService(repos, pubg).refresh(member.id)

        assert summary.matches == 15
        assert summary.wins == 3
        assert summary.kd == 1.0
        assert summary.damage == 1400
        assert repos.members.get(member.id).stats == summary

    async def test_season_scope_uses_current_season(self, repos, pubg):
        member = add_member(repos, pubg_id="Shroud", scope=StatScope.season)

        summary = await MemberStatsService(repos, pubg).refresh(member.id)

        assert summary.matches == 4
        assert summary.kd == 2.0
        assert summary.damage == 513

    async def test_caches_resolved_account(self, repos, pubg):
        member = add_member(repos, pubg_id="Shroud")
        service = MemberStatsService(repos, pubg)

        await service.refresh(member.id)
        await service.refresh(member.id)

        assert pubg.resolve_calls == ["Shroud"]
        assert repos.members.get(member.id).pubg_account_id == ACCOUNT

    async def test_account_reference_needs_no_lookup(self, repos, pubg):
        member = add_member(repos, pubg_id=ACCOUNT)

        await MemberStatsService(repos, pubg).refresh(member.id)

        assert pubg.resolve_calls == []

    async def test_preserves_rank_and_overwrites_stats(self, repos, pubg):
        member = add_member(
            repos,
            pubg_id="Shroud",
            stats=StatSummary(matches=999, wins=500, kd=9.9, rank="Leader", damage=1),
        )

        summary = await MemberStatsService(repos, pubg).refresh(member.id)

        assert summary.rank == "Leader"
        assert summary.matches == 15

    async def test_unknown_member(self, repos, pubg):
        with pytest.raises(MemberNotFoundError):
            await MemberStatsService(repos, pubg).refresh("missing")

    async def test_member_without_pubg_id(self, repos, pubg):
        member = add_member(repos)
        with pytest.raises(MissingPubgReferenceError):
            await MemberStatsService(repos, pubg).refresh(member.id)

    async def test_unknown_player_is_not_found(self, repos, pubg):
        member = add_member(repos, pubg_id="NoSuchPlayer")
        with pytest.raises(PlayerNotFoundError):
            await MemberStatsService(repos, pubg).refresh(member.id)
        assert repos.members.get(member.id).stats == StatSummary()

    async def test_upstream_failure_leaves_stats_untouched(self, repos, pubg):
        member = add_member(repos, pubg_id="Shroud", stats=StatSummary(matches=3, wins=1, kd=0.5))
        pubg.unavailable = True

        with pytest.raises(ExternalAPIError) as exc_info:
            await MemberStatsService(repos, pubg).refresh(member.id)

        assert not isinstance(exc_info.value, PlayerNotFoundError)
        assert repos.members.get(member.id).stats.matches == 3

    async def test_stale_cached_account_is_re_resolved(self, repos, pubg):
        member = add_member(repos, pubg_id="Shroud", pubg_account_id="account.gone")

        summary = await MemberStatsService(repos, pubg).refresh(member.id)

        assert summary.matches == 15
        assert repos.members.get(member.id).pubg_account_id == ACCOUNT


class TestRefreshAll:
    async def test_failures_are_scoped_to_one_member(self, repos, pubg):
        add_member(repos, nickname="Shroud", pubg_id="Shroud")
        add_member(repos, nickname="Ghost", pubg_id="Ghost")
        add_member(repos, nickname="Casual")

        result = await MemberStatsService(repos, pubg).refresh_all()

        assert result.refreshed == 1
        assert result.failed == 1
        assert result.skipped == 1
        assert "Ghost" in result.errors[0]

    async def test_unexpected_error_is_scoped_to_one_member(self, repos, pubg):
        add_member(repos, nickname="Broken", pubg_id=BROKEN_ACCOUNT)
        add_member(repos, nickname="Shroud", pubg_id="Shroud")

        async def lifetime_stats(account_id, platform="steam"):
            if account_id == BROKEN_ACCOUNT:
                raise TypeError("unsupported operand type(s)")
            return LIFETIME

        pubg.lifetime_stats = lifetime_stats
        result = await MemberStatsService(repos, pubg).refresh_all()

        assert result.refreshed == 1
        assert result.failed == 1
        assert result.errors == ["Broken: TypeError: unsupported operand type(s)"]


class TestMemberUpdate:
    def test_changing_pubg_name_drops_cached_account(self):
        member = Member(nickname="Shroud", pubg_id="Shroud", pubg_account_id=ACCOUNT)
        updated = MemberUpdate(pubg_id="Shroud2").apply(member)
        assert updated.pubg_id == "Shroud2"
        assert updated.pubg_account_id is None

    def test_changing_platform_drops_cached_account(self):
        member = Member(nickname="Shroud", pubg_id="Shroud", pubg_account_id=ACCOUNT)
        updated = MemberUpdate(pubg_platform=Platform.xbox).apply(member)
        assert updated.pubg_account_id is None

    def test_blank_fields_keep_current_values(self):
        member = Member(nickname="Shroud", pubg_id="Shroud", pubg_account_id=ACCOUNT)
        updated = MemberUpdate(nickname="  ", pubg_id="").apply(member)
        assert updated.nickname == "Shroud"
        assert updated.pubg_account_id == ACCOUNT
