"""
Core statistics over a player's contest history.

Reduces a list of contest records to a single CoreStats summary:
win/loss totals, win rate, placement figures and streaks.

Streaks are only defined over the full, unfiltered history. Query-scoped
summaries use compute_scoped_stats, which leaves streak fields at zero.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from boardstats.core.models import (
    DEFAULT_SKILL_RATING,
    ContestRecord,
    ContestResult,
    CoreStats,
)
from boardstats.core.utils import percentage, safe_divide, timed

logger = logging.getLogger(__name__)


class StreakMode(Enum):
    """How current_streak is derived from newest-first history."""

    # Run state after scanning every record, newest to oldest. Matches the
    # historical numbers, which reflect the run at the oldest contest.
    FULL_SCAN = "full_scan"
    # Run of identical results starting at the newest contest.
    RECENT = "recent"

    @classmethod
    def parse(cls, value: str | StreakMode) -> StreakMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown streak mode: {value}") from None


@dataclass
class _Totals:
    contests: int = 0
    wins: int = 0
    losses: int = 0
    placement_sum: int = 0
    best: int | None = None
    worst: int = 0

    def add(self, record: ContestRecord) -> None:
        self.contests += 1
        if record.my_result.result is ContestResult.WON:
            self.wins += 1
        elif record.my_result.result is ContestResult.LOST:
            self.losses += 1

        place = record.my_result.place
        self.placement_sum += place
        self.best = place if self.best is None else min(self.best, place)
        self.worst = max(self.worst, place)


def _accumulate(records: Iterable[ContestRecord]) -> _Totals:
    totals = _Totals()
    for record in records:
        totals.add(record)
    return totals


def _stats_from_totals(
    totals: _Totals,
    current_streak: int = 0,
    longest_streak: int = 0,
    skill_rating: float = DEFAULT_SKILL_RATING,
) -> CoreStats:
    return CoreStats(
        total_contests=totals.contests,
        total_wins=totals.wins,
        total_losses=totals.losses,
        win_rate=percentage(totals.wins, totals.contests),
        average_placement=safe_divide(totals.placement_sum, totals.contests),
        best_placement=totals.best if totals.best is not None else 0,
        worst_placement=totals.worst,
        current_streak=current_streak,
        longest_streak=longest_streak,
        skill_rating=skill_rating,
        total_points=0,
    )


def sort_newest_first(records: Iterable[ContestRecord]) -> list[ContestRecord]:
    """Return a copy of records sorted by start time, most recent first."""
    return sorted(records, key=lambda r: r.start, reverse=True)


def compute_streaks(records_newest_first: Sequence[ContestRecord]) -> tuple[int, int]:
    """
    Scan newest-first records and return (final_run, longest_streak).

    The signed run grows on consecutive wins (positive) or losses
    (negative) and resets to 0 on a tie or unknown result. The scan never
    stops early, so final_run is the run state at the oldest record.
    """
    run = 0
    longest = 0
    for record in records_newest_first:
        result = record.my_result.result
        if result is ContestResult.WON:
            run = max(run, 0) + 1
        elif result is ContestResult.LOST:
            run = min(run, 0) - 1
        else:
            run = 0
        longest = max(longest, abs(run))
    return run, longest


def compute_recent_streak(records_newest_first: Sequence[ContestRecord]) -> int:
    """
    Signed length of the run of identical results ending at the newest record.

    Stops at the first record whose result differs from the newest one.
    Returns 0 if the newest record is a tie or has an unknown result.
    """
    if not records_newest_first:
        return 0

    head = records_newest_first[0].my_result.result
    if head not in (ContestResult.WON, ContestResult.LOST):
        return 0

    length = 0
    for record in records_newest_first:
        if record.my_result.result is not head:
            break
        length += 1
    return length if head is ContestResult.WON else -length


@timed
def compute_core_stats(
    records: Iterable[ContestRecord],
    *,
    streak_mode: StreakMode | str = StreakMode.FULL_SCAN,
    skill_rating: float = DEFAULT_SKILL_RATING,
) -> CoreStats:
    """
    Compute whole-history statistics from contest records.

    Args:
        records: Contest records in any order
        streak_mode: How to derive current_streak (see StreakMode)
        skill_rating: Placeholder rating to report

    Returns:
        CoreStats; the all-zero default when records is empty
    """
    ordered = sort_newest_first(records)
    if not ordered:
        return CoreStats(skill_rating=skill_rating)

    mode = StreakMode.parse(streak_mode)
    totals = _accumulate(ordered)
    final_run, longest = compute_streaks(ordered)
    current = final_run if mode is StreakMode.FULL_SCAN else compute_recent_streak(ordered)

    logger.debug(
        f"Computed core stats over {totals.contests} contests "
        f"(streak_mode={mode.value}, current={current}, longest={longest})"
    )
    return _stats_from_totals(totals, current, longest, skill_rating)


def compute_scoped_stats(
    records: Iterable[ContestRecord],
    skill_rating: float = DEFAULT_SKILL_RATING,
) -> CoreStats:
    """Summary statistics for a filtered subset. Streak fields stay at 0."""
    return _stats_from_totals(_accumulate(records), skill_rating=skill_rating)
