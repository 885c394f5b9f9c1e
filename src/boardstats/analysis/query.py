"""
Query engine for contest analytics.

Applies an AnalyticsQuery to the full record list and recomputes every
output from the filtered records:
- Scoped summary statistics
- Per-game performance
- Per-opponent head-to-head performance
- Monthly trends

Whole-history aggregates are never reused here, with one exception:
opponent identity is resolved through the whole-history opponent lookup.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime

from boardstats.analysis.lookups import LookupIndex
from boardstats.analysis.stats import compute_scoped_stats
from boardstats.core.models import (
    DEFAULT_SKILL_RATING,
    AnalyticsQuery,
    ClientVenue,
    ComputedAnalytics,
    ContestRecord,
    ContestResult,
    GamePerformance,
    HeadToHeadStats,
    Opponent,
    OpponentPerformance,
    PerformanceTrend,
)
from boardstats.core.utils import percentage, safe_divide, utc_now, whole_days_between

logger = logging.getLogger(__name__)

Predicate = Callable[[ContestRecord], bool]

TREND_PERIOD_FORMAT = "%Y-%m"


# =============================================================================
# Filtering
# =============================================================================


def build_predicates(query: AnalyticsQuery) -> list[Predicate]:
    """Return one predicate per active query field, in pipeline order."""
    predicates: list[Predicate] = []

    if query.date_range is not None:
        date_range = query.date_range
        predicates.append(lambda r: date_range.contains(r.start))

    if query.games is not None:
        games = set(query.games)
        predicates.append(lambda r: r.game.id in games)

    if query.venues is not None:
        venues = set(query.venues)
        predicates.append(lambda r: r.venue.id in venues)

    if query.opponents is not None:
        opponents = set(query.opponents)
        predicates.append(lambda r: any(p.player_id in opponents for p in r.participants))

    if query.min_players is not None:
        min_players = query.min_players
        predicates.append(lambda r: r.player_count >= min_players)

    if query.max_players is not None:
        max_players = query.max_players
        predicates.append(lambda r: r.player_count <= max_players)

    if query.result_filter is not None:
        results = set(query.result_filter)
        predicates.append(lambda r: r.my_result.result in results)

    if query.placement_range is not None:
        placement_range = query.placement_range
        predicates.append(lambda r: placement_range.contains(r.my_result.place))

    return predicates


def matches_query(record: ContestRecord, query: AnalyticsQuery) -> bool:
    """Check a single record against every active predicate."""
    return all(predicate(record) for predicate in build_predicates(query))


def filter_contests(
    contests: Iterable[ContestRecord], query: AnalyticsQuery
) -> list[ContestRecord]:
    """Return the records that satisfy the query, preserving input order."""
    predicates = build_predicates(query)
    return [c for c in contests if all(predicate(c) for predicate in predicates)]


# =============================================================================
# Aggregations
# =============================================================================


def compute_game_performance(
    contests: Sequence[ContestRecord],
    venue_lookup: Mapping[str, ClientVenue],
    now: datetime,
) -> list[GamePerformance]:
    """
    Group contests by game and compute per-game performance.

    Sorted by total plays (desc), then win rate (desc), then the order in
    which games were first encountered.
    """
    groups: dict[str, list[ContestRecord]] = {}
    for contest in contests:
        groups.setdefault(contest.game.id, []).append(contest)

    performances: list[GamePerformance] = []
    for group in groups.values():
        places = [c.my_result.place for c in group]
        wins = sum(1 for c in group if c.my_result.result is ContestResult.WON)
        losses = sum(1 for c in group if c.my_result.result is ContestResult.LOST)
        last_played = max(c.start for c in group)

        # most_common keeps first-encountered order among equal counts
        favorite_venue_id, _ = Counter(c.venue.id for c in group).most_common(1)[0]

        performances.append(
            GamePerformance(
                game=group[0].game,
                last_played=last_played,
                total_plays=len(group),
                wins=wins,
                losses=losses,
                win_rate=percentage(wins, len(group)),
                average_placement=safe_divide(sum(places), len(group)),
                best_placement=min(places),
                worst_placement=max(places),
                days_since_last_play=whole_days_between(last_played, now),
                favorite_venue=venue_lookup.get(favorite_venue_id),
            )
        )

    performances.sort(key=lambda p: (-p.total_plays, -p.win_rate))
    return performances


def compute_opponent_performance(
    contests: Sequence[ContestRecord],
    owner_id: str,
    opponent_lookup: Mapping[str, Opponent],
) -> list[OpponentPerformance]:
    """
    Group contests by every non-owner participant.

    A contest counts once per opponent. Opponents missing from the
    whole-history lookup are dropped. Sorted by total contests (desc),
    then first-encountered order.
    """
    head_to_head: dict[str, HeadToHeadStats] = {}
    for contest in contests:
        seen: set[str] = set()
        for participant in contest.participants:
            player_id = participant.player_id
            if player_id == owner_id or player_id in seen:
                continue
            seen.add(player_id)

            stats = head_to_head.setdefault(player_id, HeadToHeadStats())
            stats.total_contests += 1
            stats.contest_history.append(contest)
            if contest.my_result.result is ContestResult.WON:
                stats.my_wins += 1
            elif contest.my_result.result is ContestResult.LOST:
                stats.opponent_wins += 1

    performances: list[OpponentPerformance] = []
    for player_id, stats in head_to_head.items():
        opponent = opponent_lookup.get(player_id)
        if opponent is None:
            logger.debug(f"Opponent {player_id} not in lookup, dropping from results")
            continue
        stats.my_win_rate = percentage(stats.my_wins, stats.total_contests)
        performances.append(OpponentPerformance(opponent=opponent, head_to_head=stats))

    performances.sort(key=lambda p: -p.head_to_head.total_contests)
    return performances


def compute_trends(
    contests: Sequence[ContestRecord],
    skill_rating: float = DEFAULT_SKILL_RATING,
) -> list[PerformanceTrend]:
    """Monthly aggregates keyed "YYYY-MM", most recent month first."""
    monthly: dict[str, list[ContestRecord]] = {}
    for contest in contests:
        monthly.setdefault(contest.start.strftime(TREND_PERIOD_FORMAT), []).append(contest)

    trends = []
    for period, group in monthly.items():
        wins = sum(1 for c in group if c.my_result.result is ContestResult.WON)
        trends.append(
            PerformanceTrend(
                period=period,
                contests_played=len(group),
                wins=wins,
                win_rate=percentage(wins, len(group)),
                average_placement=safe_divide(sum(c.my_result.place for c in group), len(group)),
                skill_rating=skill_rating,
            )
        )

    trends.sort(key=lambda t: t.period, reverse=True)
    return trends


# =============================================================================
# Entry point
# =============================================================================


def run_query(
    contests: Sequence[ContestRecord],
    query: AnalyticsQuery,
    *,
    owner_id: str,
    lookups: LookupIndex,
    now: datetime | None = None,
    skill_rating: float = DEFAULT_SKILL_RATING,
) -> ComputedAnalytics:
    """
    Execute an analytics query over a contest history.

    Args:
        contests: Full record list of the snapshot
        query: Filter to apply
        owner_id: Player id of the snapshot owner
        lookups: Whole-history lookups (venue and opponent resolution)
        now: Reference time for days_since_last_play and computed_at
        skill_rating: Placeholder rating to report

    Returns:
        ComputedAnalytics over the filtered records
    """
    now = now or utc_now()
    filtered = filter_contests(contests, query)
    logger.debug(f"Query for {owner_id} kept {len(filtered)} of {len(contests)} contests")

    return ComputedAnalytics(
        query=query,
        contests=filtered,
        stats=compute_scoped_stats(filtered, skill_rating=skill_rating),
        game_performance=compute_game_performance(filtered, lookups.venues, now),
        opponent_performance=compute_opponent_performance(filtered, owner_id, lookups.opponents),
        trends=compute_trends(filtered, skill_rating=skill_rating),
        computed_at=now,
    )
