"""
Data Models for Contest Analytics

Every structure that crosses a module boundary is defined here:
- Contest records as delivered by the sync layer (game, venue, participants)
- Whole-history aggregates (CoreStats, Opponent)
- Query parameters and the computed analytics result

Record-level types are frozen so a snapshot can be shared between readers
while a replacement is being built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Placeholder rating reported until a rating system feeds real values
DEFAULT_SKILL_RATING = 1000.0


# =============================================================================
# Helpers
# =============================================================================


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (or datetime) into a timezone-aware datetime.

    Naive values are assumed to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_list(value: Any) -> list[str] | None:
    if value is None:
        return None
    return [str(v) for v in value]


# =============================================================================
# Contest records
# =============================================================================


class ContestResult(Enum):
    """Outcome of a contest for one participant."""

    WON = "won"
    LOST = "lost"
    TIED = "tied"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> ContestResult:
        """Map a raw result string onto the enum, falling back to UNKNOWN."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        logger.debug(f"Unrecognized contest result {value!r}, treating as unknown")
        return cls.UNKNOWN


@dataclass(frozen=True)
class ClientGame:
    """Game played in a contest."""

    id: str
    name: str
    year_published: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "year_published": self.year_published}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientGame:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            year_published=_optional_int(data.get("year_published")),
        )


@dataclass(frozen=True)
class ClientVenue:
    """Venue where a contest took place."""

    id: str
    name: str
    display_name: str | None = None
    city: str | None = None
    state: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "city": self.city,
            "state": self.state,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientVenue:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            display_name=_optional_str(data.get("display_name")),
            city=_optional_str(data.get("city")),
            state=_optional_str(data.get("state")),
        )


@dataclass(frozen=True)
class ClientParticipant:
    """One ranked participant of a contest."""

    player_id: str
    handle: str
    place: int
    result: ContestResult
    firstname: str | None = None
    lastname: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.firstname or ''} {self.lastname or ''}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "handle": self.handle,
            "firstname": self.firstname,
            "lastname": self.lastname,
            "place": self.place,
            "result": self.result.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientParticipant:
        return cls(
            player_id=str(data["player_id"]),
            handle=str(data.get("handle") or ""),
            place=int(data.get("place") or 0),
            result=ContestResult.parse(data.get("result")),
            firstname=_optional_str(data.get("firstname")),
            lastname=_optional_str(data.get("lastname")),
        )


@dataclass(frozen=True)
class ClientResult:
    """The owner's own outcome in a contest.

    Authoritative for every "my" aggregate, even when a matching entry
    exists in the participant list.
    """

    place: int
    result: ContestResult
    points: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"place": self.place, "result": self.result.value, "points": self.points}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientResult:
        return cls(
            place=int(data.get("place") or 0),
            result=ContestResult.parse(data.get("result")),
            points=_optional_int(data.get("points")),
        )


@dataclass(frozen=True)
class ContestRecord:
    """One completed contest as seen by the snapshot owner."""

    id: str
    name: str
    start: datetime
    end: datetime
    game: ClientGame
    venue: ClientVenue
    participants: tuple[ClientParticipant, ...]
    my_result: ClientResult

    @property
    def player_count(self) -> int:
        return len(self.participants)

    def has_participant(self, player_id: str) -> bool:
        return any(p.player_id == player_id for p in self.participants)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "game": self.game.to_dict(),
            "venue": self.venue.to_dict(),
            "participants": [p.to_dict() for p in self.participants],
            "my_result": self.my_result.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContestRecord:
        start = parse_timestamp(data["start"])
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            start=start,
            end=parse_timestamp(data["end"]) if data.get("end") else start,
            game=ClientGame.from_dict(data["game"]),
            venue=ClientVenue.from_dict(data["venue"]),
            participants=tuple(
                ClientParticipant.from_dict(p) for p in data.get("participants") or []
            ),
            my_result=ClientResult.from_dict(data.get("my_result") or {}),
        )


# =============================================================================
# Aggregates
# =============================================================================


@dataclass
class CoreStats:
    """Summary statistics over a set of contests.

    current_streak is signed: positive for consecutive wins, negative for
    consecutive losses. skill_rating and total_points are placeholders.
    """

    total_contests: int = 0
    total_wins: int = 0
    total_losses: int = 0
    win_rate: float = 0.0  # percentage, 0-100
    average_placement: float = 0.0
    best_placement: int = 0
    worst_placement: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    skill_rating: float = DEFAULT_SKILL_RATING
    total_points: int = 0

    @property
    def total_other(self) -> int:
        """Contests that were neither won nor lost (ties, unknown results)."""
        return self.total_contests - self.total_wins - self.total_losses

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_contests": self.total_contests,
            "total_wins": self.total_wins,
            "total_losses": self.total_losses,
            "win_rate": self.win_rate,
            "average_placement": self.average_placement,
            "best_placement": self.best_placement,
            "worst_placement": self.worst_placement,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "skill_rating": self.skill_rating,
            "total_points": self.total_points,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoreStats:
        defaults = cls()
        return cls(**{k: data.get(k, getattr(defaults, k)) for k in defaults.to_dict()})


@dataclass
class Opponent:
    """Whole-history record of a player the owner has shared contests with.

    wins_against / losses_against count the owner's overall result in
    contests the opponent attended, not a pairwise result between the two.
    """

    player_id: str
    handle: str
    name: str
    last_played: datetime
    contests_against: int = 0
    wins_against: int = 0
    losses_against: int = 0
    win_rate_against: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "handle": self.handle,
            "name": self.name,
            "contests_against": self.contests_against,
            "wins_against": self.wins_against,
            "losses_against": self.losses_against,
            "win_rate_against": self.win_rate_against,
            "last_played": self.last_played.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Opponent:
        return cls(
            player_id=str(data["player_id"]),
            handle=str(data.get("handle") or ""),
            name=str(data.get("name") or ""),
            last_played=parse_timestamp(data["last_played"]),
            contests_against=int(data.get("contests_against", 0)),
            wins_against=int(data.get("wins_against", 0)),
            losses_against=int(data.get("losses_against", 0)),
            win_rate_against=float(data.get("win_rate_against", 0.0)),
        )


# =============================================================================
# Query
# =============================================================================


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range applied to contest start times."""

    start: datetime
    end: datetime

    def __post_init__(self):
        # Naive bounds are taken as UTC, matching record timestamps
        object.__setattr__(self, "start", parse_timestamp(self.start))
        object.__setattr__(self, "end", parse_timestamp(self.end))

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DateRange:
        return cls(start=parse_timestamp(data["start"]), end=parse_timestamp(data["end"]))


@dataclass(frozen=True)
class PlacementRange:
    """Inclusive bounds on the owner's placement."""

    min_place: int
    max_place: int

    def contains(self, place: int) -> bool:
        return self.min_place <= place <= self.max_place

    def to_dict(self) -> dict[str, Any]:
        return {"min_place": self.min_place, "max_place": self.max_place}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlacementRange:
        return cls(min_place=int(data["min_place"]), max_place=int(data["max_place"]))


@dataclass(frozen=True)
class AnalyticsQuery:
    """Conjunctive filter over contest records.

    A field left as None imposes no constraint. An empty allow-list
    matches nothing.
    """

    date_range: DateRange | None = None
    games: tuple[str, ...] | None = None
    venues: tuple[str, ...] | None = None
    opponents: tuple[str, ...] | None = None
    min_players: int | None = None
    max_players: int | None = None
    result_filter: tuple[ContestResult, ...] | None = None
    placement_range: PlacementRange | None = None

    @property
    def is_empty(self) -> bool:
        return self == AnalyticsQuery()

    def to_dict(self) -> dict[str, Any]:
        return {
            "date_range": self.date_range.to_dict() if self.date_range else None,
            "games": list(self.games) if self.games is not None else None,
            "venues": list(self.venues) if self.venues is not None else None,
            "opponents": list(self.opponents) if self.opponents is not None else None,
            "min_players": self.min_players,
            "max_players": self.max_players,
            "result_filter": (
                [r.value for r in self.result_filter] if self.result_filter is not None else None
            ),
            "placement_range": self.placement_range.to_dict() if self.placement_range else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalyticsQuery:
        games = _optional_list(data.get("games"))
        venues = _optional_list(data.get("venues"))
        opponents = _optional_list(data.get("opponents"))
        results = data.get("result_filter")
        return cls(
            date_range=DateRange.from_dict(data["date_range"]) if data.get("date_range") else None,
            games=tuple(games) if games is not None else None,
            venues=tuple(venues) if venues is not None else None,
            opponents=tuple(opponents) if opponents is not None else None,
            min_players=_optional_int(data.get("min_players")),
            max_players=_optional_int(data.get("max_players")),
            result_filter=(
                tuple(ContestResult.parse(r) for r in results) if results is not None else None
            ),
            placement_range=(
                PlacementRange.from_dict(data["placement_range"])
                if data.get("placement_range")
                else None
            ),
        )


# =============================================================================
# Query results
# =============================================================================


@dataclass
class GamePerformance:
    """Owner's performance in one game within a query window."""

    game: ClientGame
    last_played: datetime
    total_plays: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    average_placement: float = 0.0
    best_placement: int = 0
    worst_placement: int = 0
    days_since_last_play: int = 0
    favorite_venue: ClientVenue | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "game": self.game.to_dict(),
            "total_plays": self.total_plays,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": self.win_rate,
            "average_placement": self.average_placement,
            "best_placement": self.best_placement,
            "worst_placement": self.worst_placement,
            "last_played": self.last_played.isoformat(),
            "days_since_last_play": self.days_since_last_play,
            "favorite_venue": self.favorite_venue.to_dict() if self.favorite_venue else None,
        }


@dataclass
class HeadToHeadStats:
    """Owner's record in contests shared with one opponent.

    my_wins / opponent_wins come from the owner's overall result, so two
    opponents in the same multiplayer contest get identical credit for it.
    """

    total_contests: int = 0
    my_wins: int = 0
    opponent_wins: int = 0
    my_win_rate: float = 0.0
    contest_history: list[ContestRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_contests": self.total_contests,
            "my_wins": self.my_wins,
            "opponent_wins": self.opponent_wins,
            "my_win_rate": self.my_win_rate,
            "contest_history": [c.to_dict() for c in self.contest_history],
        }


@dataclass
class OpponentPerformance:
    """Opponent identity paired with the head-to-head numbers for a query."""

    opponent: Opponent
    head_to_head: HeadToHeadStats

    def to_dict(self) -> dict[str, Any]:
        return {"opponent": self.opponent.to_dict(), "head_to_head": self.head_to_head.to_dict()}


@dataclass
class PerformanceTrend:
    """Aggregates for one calendar month ("YYYY-MM")."""

    period: str
    contests_played: int = 0
    wins: int = 0
    win_rate: float = 0.0
    average_placement: float = 0.0
    skill_rating: float = DEFAULT_SKILL_RATING

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "contests_played": self.contests_played,
            "wins": self.wins,
            "win_rate": self.win_rate,
            "average_placement": self.average_placement,
            "skill_rating": self.skill_rating,
        }


@dataclass
class ComputedAnalytics:
    """Output of a single analytics query."""

    query: AnalyticsQuery
    contests: list[ContestRecord]
    stats: CoreStats
    game_performance: list[GamePerformance]
    opponent_performance: list[OpponentPerformance]
    trends: list[PerformanceTrend]
    computed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query.to_dict(),
            "contests": [c.to_dict() for c in self.contests],
            "stats": self.stats.to_dict(),
            "game_performance": [g.to_dict() for g in self.game_performance],
            "opponent_performance": [o.to_dict() for o in self.opponent_performance],
            "trends": [t.to_dict() for t in self.trends],
            "computed_at": self.computed_at.isoformat(),
        }
