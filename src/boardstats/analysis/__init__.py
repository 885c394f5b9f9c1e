"""
boardstats Analysis - Aggregations over contest history.

This module contains:
- stats: Whole-history and query-scoped summary statistics, streaks
- lookups: Game, venue and opponent indexes with head-to-head counters
- query: Filter pipeline and per-game, per-opponent and trend aggregations
"""

from boardstats.analysis.lookups import LookupIndex, build_lookups, compute_opponent_stats
from boardstats.analysis.query import filter_contests, matches_query, run_query
from boardstats.analysis.stats import (
    StreakMode,
    compute_core_stats,
    compute_recent_streak,
    compute_scoped_stats,
    compute_streaks,
)

__all__: list[str] = [
    "LookupIndex",
    "build_lookups",
    "compute_opponent_stats",
    "filter_contests",
    "matches_query",
    "run_query",
    "StreakMode",
    "compute_core_stats",
    "compute_recent_streak",
    "compute_scoped_stats",
    "compute_streaks",
]
