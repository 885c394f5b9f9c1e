"""
boardstats - Board Game Contest Analytics

An in-memory analytics engine over a player's contest history: summary
statistics, per-game and per-opponent breakdowns and monthly trends under
arbitrary filter combinations.

Usage:
    from boardstats import AnalyticsSnapshot, AnalyticsQuery

    snapshot = AnalyticsSnapshot.build("player/me", contests)
    print(snapshot.core_stats.win_rate)

    result = snapshot.query(AnalyticsQuery(min_players=3))
    for perf in result.game_performance:
        print(f"{perf.game.name}: {perf.win_rate:.1f}%")
"""

__version__ = "0.1.0"
__author__ = "boardstats Contributors"


def __getattr__(name):
    """Lazy import of the public API."""
    if name == "AnalyticsSnapshot":
        from boardstats.infra.cache import AnalyticsSnapshot
        return AnalyticsSnapshot
    elif name == "SnapshotManager":
        from boardstats.infra.cache import SnapshotManager
        return SnapshotManager
    elif name == "AnalyticsQuery":
        from boardstats.core.models import AnalyticsQuery
        return AnalyticsQuery
    elif name == "ContestRecord":
        from boardstats.core.models import ContestRecord
        return ContestRecord
    elif name == "compute_core_stats":
        from boardstats.analysis.stats import compute_core_stats
        return compute_core_stats
    elif name == "build_lookups":
        from boardstats.analysis.lookups import build_lookups
        return build_lookups
    elif name == "run_query":
        from boardstats.analysis.query import run_query
        return run_query
    raise AttributeError(f"module 'boardstats' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    # Snapshot
    "AnalyticsSnapshot",
    "SnapshotManager",
    # Models
    "AnalyticsQuery",
    "ContestRecord",
    # Engine
    "compute_core_stats",
    "build_lookups",
    "run_query",
]
