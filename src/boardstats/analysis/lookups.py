"""
Lookup indexes over a contest history.

Builds id-keyed maps of the games, venues and opponents that appear in a
player's contests, then computes whole-history head-to-head counters for
each opponent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

from boardstats.core.models import (
    ClientGame,
    ClientVenue,
    ContestRecord,
    ContestResult,
    Opponent,
)
from boardstats.core.utils import percentage, timed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupIndex:
    """Id-keyed maps derived from one snapshot's records."""

    games: dict[str, ClientGame] = field(default_factory=dict)
    venues: dict[str, ClientVenue] = field(default_factory=dict)
    opponents: dict[str, Opponent] = field(default_factory=dict)

    @property
    def entry_count(self) -> int:
        return len(self.games) + len(self.venues) + len(self.opponents)


def compute_opponent_stats(
    opponents: dict[str, Opponent],
    records: Sequence[ContestRecord],
) -> dict[str, Opponent]:
    """
    Recompute head-to-head counters for every indexed opponent.

    A contest counts for an opponent when they appear among its
    participants. Wins and losses are the owner's overall result in that
    contest, so in multiplayer contests every opponent present receives
    the same credit.

    Returns:
        New map with updated Opponent values (input is left untouched)
    """
    updated: dict[str, Opponent] = {}
    for player_id, opponent in opponents.items():
        shared = [r for r in records if r.has_participant(player_id)]
        wins = sum(1 for r in shared if r.my_result.result is ContestResult.WON)
        losses = sum(1 for r in shared if r.my_result.result is ContestResult.LOST)
        last_played = max((r.start for r in shared), default=opponent.last_played)

        updated[player_id] = replace(
            opponent,
            contests_against=len(shared),
            wins_against=wins,
            losses_against=losses,
            win_rate_against=percentage(wins, len(shared)),
            last_played=last_played,
        )
    return updated


@timed
def build_lookups(records: Iterable[ContestRecord], owner_id: str) -> LookupIndex:
    """
    Build game, venue and opponent lookups from scratch.

    The first value seen for an id is kept; later duplicates are ignored.
    Every participant other than the owner becomes an opponent.
    """
    records = list(records)
    games: dict[str, ClientGame] = {}
    venues: dict[str, ClientVenue] = {}
    opponents: dict[str, Opponent] = {}

    for record in records:
        games.setdefault(record.game.id, record.game)
        venues.setdefault(record.venue.id, record.venue)

        for participant in record.participants:
            if participant.player_id == owner_id or participant.player_id in opponents:
                continue
            opponents[participant.player_id] = Opponent(
                player_id=participant.player_id,
                handle=participant.handle,
                name=participant.display_name,
                last_played=record.start,
            )

    opponents = compute_opponent_stats(opponents, records)
    logger.debug(
        f"Built lookups for {owner_id}: {len(games)} games, "
        f"{len(venues)} venues, {len(opponents)} opponents"
    )
    return LookupIndex(games=games, venues=venues, opponents=opponents)
