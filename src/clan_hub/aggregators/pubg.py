"""
PUBG statistics aggregator.

Handles aggregation of per-game-mode stats into one overall summary.
The PUBG API returns lifetime and season stats in the same shape: a
``gameModeStats`` mapping from mode name (solo, duo-fpp, squad, ...) to a
record of counters. This module sums every bucket into a StatSummary.

Design: Self-contained with no I/O; safe to call from request handlers,
jobs and tests alike.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..core.models import StatSummary
from ..core.types import DEFAULT_RANK


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a scoreboard does (0.5 goes up), not banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _as_number(value: Any) -> float:
    """Coerce an upstream counter to a finite non-negative number; junk becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


@dataclass(frozen=True)
class ModeStats:
    """One game-mode bucket, normalized.

    Attributes:
        rounds_played: ``roundsPlayed`` upstream
        wins: ``wins`` upstream, clamped to ``rounds_played``
        kills: ``kills`` upstream
        losses: ``losses`` upstream; ``None`` when the field was absent
        damage_dealt: ``damageDealt`` upstream
    """

    rounds_played: int = 0
    wins: int = 0
    kills: int = 0
    losses: Optional[int] = None
    damage_dealt: float = 0.0

    @classmethod
    def from_raw(cls, raw: Any) -> "ModeStats":
        """Build from an upstream bucket. Non-mapping buckets count as empty."""
        if not isinstance(raw, Mapping):
            return cls()

        rounds = int(_as_number(raw.get("roundsPlayed")))
        wins = min(int(_as_number(raw.get("wins"))), rounds)
        losses_raw = raw.get("losses")

        return cls(
            rounds_played=rounds,
            wins=wins,
            kills=int(_as_number(raw.get("kills"))),
            losses=None if losses_raw is None else int(_as_number(losses_raw)),
            damage_dealt=_as_number(raw.get("damageDealt")),
        )

    @property
    def deaths(self) -> int:
        """Reported losses, or rounds not won when the API omits them."""
        if self.losses is not None:
            return self.losses
        return self.rounds_played - self.wins


class PubgStatsAggregator:
    """Aggregate PUBG per-mode statistics into a StatSummary."""

    @staticmethod
    def parse_modes(game_mode_stats: Optional[Mapping[str, Any]]) -> Dict[str, ModeStats]:
        """Normalize every bucket of a ``gameModeStats`` mapping.

        Args:
            game_mode_stats: Mapping of mode name to raw counters (may be None)

        Returns:
            Mapping of mode name to ModeStats
        """
        if not isinstance(game_mode_stats, Mapping):
            return {}
        return {str(mode): ModeStats.from_raw(raw) for mode, raw in game_mode_stats.items()}

    @staticmethod
    def aggregate(
        game_mode_stats: Optional[Mapping[str, Any]],
        rank: Optional[str] = None,
    ) -> StatSummary:
        """Sum every mode bucket into one summary.

        Order of buckets is irrelevant. Missing or malformed buckets contribute
        zero, so this never raises.

        Args:
            game_mode_stats: Mapping of mode name to raw counters
            rank: Label to carry over; defaults to the placeholder

        Returns:
            StatSummary with matches, wins, kd, damage and rank
        """
        matches = 0
        wins = 0
        kills = 0
        deaths = 0
        damage = 0.0

        for mode in PubgStatsAggregator.parse_modes(game_mode_stats).values():
            matches += mode.rounds_played
            wins += mode.wins
            kills += mode.kills
            deaths += mode.deaths
            damage += mode.damage_dealt

        kd = round_half_up(kills / deaths, 2) if deaths > 0 else float(kills)

        return StatSummary(
            matches=matches,
            wins=wins,
            kd=kd,
            rank=rank or DEFAULT_RANK,
            damage=int(round_half_up(damage)),
        )

    @staticmethod
    def mode_breakdown(game_mode_stats: Optional[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
        """Per-mode summaries for the stats proxy endpoint.

        Modes without any rounds played are left out.
        """
        breakdown: Dict[str, Dict[str, Any]] = {}
        if not isinstance(game_mode_stats, Mapping):
            return breakdown
        for name, raw in game_mode_stats.items():
            summary = PubgStatsAggregator.aggregate({name: raw})
            if summary.matches:
                breakdown[name] = summary.model_dump(exclude={"rank"})
        return breakdown
