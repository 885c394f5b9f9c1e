"""
boardstats Core - Foundation modules for contest analytics.

This module contains the fundamental components:
- constants: Engine defaults and size estimates
- config: Application configuration management
- models: Data contracts for records, aggregates and query results
- payload: Decoding of contest history payloads
- utils: General utility functions
"""

from boardstats.core.models import (
    AnalyticsQuery,
    ClientGame,
    ClientParticipant,
    ClientResult,
    ClientVenue,
    ComputedAnalytics,
    ContestRecord,
    ContestResult,
    CoreStats,
    DateRange,
    GamePerformance,
    HeadToHeadStats,
    Opponent,
    OpponentPerformance,
    PerformanceTrend,
    PlacementRange,
)

__all__: list[str] = [
    "AnalyticsQuery",
    "ClientGame",
    "ClientParticipant",
    "ClientResult",
    "ClientVenue",
    "ComputedAnalytics",
    "ContestRecord",
    "ContestResult",
    "CoreStats",
    "DateRange",
    "GamePerformance",
    "HeadToHeadStats",
    "Opponent",
    "OpponentPerformance",
    "PerformanceTrend",
    "PlacementRange",
]
