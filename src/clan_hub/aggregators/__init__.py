"""
Game statistics aggregators.

These aggregators handle the conversion from raw API responses to the
normalized summary stored on each roster member. For example, the PUBG API
returns stats split per game mode that need to be summed into one record.
"""

from .pubg import ModeStats, PubgStatsAggregator, round_half_up

__all__ = ["ModeStats", "PubgStatsAggregator", "round_half_up"]
