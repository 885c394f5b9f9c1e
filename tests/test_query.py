"""Tests for the analytics query engine."""

from __future__ import annotations

import dataclasses
import datetime
import itertools

import pytest
from conftest import BASE_TIME, OWNER_ID, make_contest, participant

from boardstats.analysis.lookups import LookupIndex, build_lookups
from boardstats.analysis.query import (
    compute_game_performance,
    compute_opponent_performance,
    compute_trends,
    filter_contests,
    matches_query,
    run_query,
)
from boardstats.core.models import (
    AnalyticsQuery,
    ContestResult,
    DateRange,
    PlacementRange,
)


def _ids(contests) -> list[str]:
    return [c.id for c in contests]


def _query(history, query, now):
    return run_query(
        history, query, owner_id=OWNER_ID, lookups=build_lookups(history, OWNER_ID), now=now
    )


# =============================================================================
# Filtering
# =============================================================================


class TestFilterPipeline:
    """Each predicate in isolation."""

    def test_empty_query_keeps_everything(self, history):
        assert filter_contests(history, AnalyticsQuery()) == history

    def test_date_range_inclusive(self, history):
        query = AnalyticsQuery(date_range=DateRange(start=history[1].start, end=history[3].start))
        assert _ids(filter_contests(history, query)) == ["contest/1", "contest/2", "contest/3"]

    def test_games(self, history):
        query = AnalyticsQuery(games=("game/azul", "game/wingspan"))
        assert _ids(filter_contests(history, query)) == ["contest/2", "contest/35", "contest/36"]

    def test_venues(self, history):
        query = AnalyticsQuery(venues=("venue/club",))
        assert _ids(filter_contests(history, query)) == ["contest/35", "contest/40"]

    def test_opponents_any_participant(self, history):
        query = AnalyticsQuery(opponents=("player/carol",))
        assert _ids(filter_contests(history, query)) == [
            "contest/2",
            "contest/35",
            "contest/37",
            "contest/40",
        ]

    def test_min_players(self):
        contests = [
            make_contest(0, opponents=("player/a",)),
            make_contest(1, opponents=("player/a", "player/b")),
            make_contest(2, opponents=("player/a", "player/b", "player/c")),
        ]
        assert [c.player_count for c in contests] == [2, 3, 4]
        result = filter_contests(contests, AnalyticsQuery(min_players=3))
        assert _ids(result) == ["contest/1", "contest/2"]

    def test_max_players(self, history):
        result = filter_contests(history, AnalyticsQuery(max_players=2))
        assert all(c.player_count <= 2 for c in result)
        assert _ids(result) == ["contest/2", "contest/3", "contest/36", "contest/37"]

    def test_result_filter(self, history):
        query = AnalyticsQuery(result_filter=(ContestResult.LOST, ContestResult.TIED))
        assert _ids(filter_contests(history, query)) == ["contest/1", "contest/3", "contest/36"]

    def test_placement_range(self, history):
        query = AnalyticsQuery(placement_range=PlacementRange(min_place=2, max_place=3))
        assert _ids(filter_contests(history, query)) == ["contest/1", "contest/3", "contest/36"]

    def test_empty_allow_list_matches_nothing(self, history):
        assert filter_contests(history, AnalyticsQuery(games=())) == []

    def test_does_not_mutate_input(self, history):
        before = list(history)
        filter_contests(history, AnalyticsQuery(games=("game/azul",)))
        assert history == before


class TestConjunction:
    """Predicates are ANDed."""

    QUERIES = [
        AnalyticsQuery(games=("game/catan",), result_filter=(ContestResult.WON,)),
        AnalyticsQuery(venues=("venue/home", "venue/club"), opponents=("player/alice",)),
        AnalyticsQuery(min_players=2, max_players=2, placement_range=PlacementRange(1, 1)),
        AnalyticsQuery(
            date_range=DateRange(
                start=BASE_TIME + datetime.timedelta(days=30),
                end=BASE_TIME + datetime.timedelta(days=60),
            ),
            games=("game/catan", "game/azul"),
        ),
    ]

    @pytest.mark.parametrize("query", QUERIES)
    def test_output_satisfies_every_predicate(self, history, query):
        kept = filter_contests(history, query)
        assert all(matches_query(c, query) for c in kept)
        dropped = [c for c in history if c not in kept]
        assert not any(matches_query(c, query) for c in dropped)

    def test_combined_narrowing(self, history):
        query = AnalyticsQuery(games=("game/catan",), result_filter=(ContestResult.WON,))
        assert _ids(filter_contests(history, query)) == ["contest/0", "contest/37", "contest/40"]

    def test_adding_predicates_never_grows_result(self, history):
        fields = {
            "games": ("game/catan",),
            "venues": ("venue/home",),
            "opponents": ("player/alice",),
            "result_filter": (ContestResult.WON,),
        }
        for size in range(1, len(fields) + 1):
            for combo in itertools.combinations(fields, size):
                query = AnalyticsQuery(**{k: fields[k] for k in combo})
                kept = filter_contests(history, query)
                for name in combo:
                    single = filter_contests(history, AnalyticsQuery(**{name: fields[name]}))
                    assert set(_ids(kept)) <= set(_ids(single))


# =============================================================================
# Aggregations
# =============================================================================


class TestGamePerformance:
    """Per-game grouping."""

    def test_history_breakdown(self, history, now):
        lookups = build_lookups(history, OWNER_ID)
        games = compute_game_performance(history, lookups.venues, now)
        assert [g.game.id for g in games] == ["game/catan", "game/azul", "game/wingspan"]

        catan = games[0]
        assert catan.total_plays == 5
        assert catan.wins == 3
        assert catan.losses == 1
        assert catan.win_rate == pytest.approx(60.0)
        assert catan.average_placement == pytest.approx(1.6)
        assert catan.best_placement == 1
        assert catan.worst_placement == 3
        assert catan.last_played == history[-1].start
        assert catan.days_since_last_play == 60
        assert catan.favorite_venue.id == "venue/home"

    def test_plays_sum_to_filtered_count(self, history, now):
        games = compute_game_performance(history, {}, now)
        assert sum(g.total_plays for g in games) == len(history)

    def test_ties_broken_by_win_rate(self, now):
        contests = [
            make_contest(0, "won", game="game/azul"),
            make_contest(1, "lost", game="game/azul"),
            make_contest(2, "won", game="game/wingspan"),
            make_contest(3, "won", game="game/wingspan"),
        ]
        games = compute_game_performance(contests, {}, now)
        assert [g.game.id for g in games] == ["game/wingspan", "game/azul"]

    def test_favorite_venue_tie_keeps_first_seen(self, history, now):
        contests = [
            make_contest(0, venue="venue/cafe"),
            make_contest(1, venue="venue/home"),
        ]
        lookups = build_lookups(history, OWNER_ID)
        games = compute_game_performance(contests, lookups.venues, now)
        assert games[0].favorite_venue.id == "venue/cafe"

    def test_favorite_venue_missing_from_lookup(self, history, now):
        games = compute_game_performance(history, {}, now)
        assert all(g.favorite_venue is None for g in games)

    def test_days_since_truncates(self):
        contest = make_contest(0)
        later = contest.start + datetime.timedelta(days=2, hours=23)
        games = compute_game_performance([contest], {}, later)
        assert games[0].days_since_last_play == 2


class TestOpponentPerformance:
    """Per-opponent grouping over the filtered window."""

    def test_history_order(self, history):
        lookups = build_lookups(history, OWNER_ID)
        rows = compute_opponent_performance(history, OWNER_ID, lookups.opponents)
        assert [r.opponent.player_id for r in rows] == [
            "player/alice",
            "player/carol",
            "player/bob",
        ]
        assert [r.head_to_head.total_contests for r in rows] == [5, 4, 3]

    def test_two_of_five_scenario(self):
        contests = [
            make_contest(0, "won", opponents=("player/alice", "player/dave")),
            make_contest(1, "lost", opponents=("player/alice", "player/dave")),
            make_contest(2, "won", opponents=("player/alice",)),
            make_contest(3, "won", opponents=("player/alice",)),
            make_contest(4, "tied", opponents=("player/alice",)),
        ]
        lookups = build_lookups(contests, OWNER_ID)
        rows = compute_opponent_performance(contests, OWNER_ID, lookups.opponents)
        dave = next(r for r in rows if r.opponent.player_id == "player/dave")
        assert dave.head_to_head.total_contests == 2
        assert dave.head_to_head.my_wins == 1
        assert dave.head_to_head.opponent_wins == 1
        assert dave.head_to_head.my_win_rate == pytest.approx(50.0)
        assert _ids(dave.head_to_head.contest_history) == ["contest/0", "contest/1"]

    def test_identity_comes_from_whole_history(self, history):
        lookups = build_lookups(history, OWNER_ID)
        window = [c for c in history if c.game.id == "game/azul"]
        rows = compute_opponent_performance(window, OWNER_ID, lookups.opponents)
        carol = next(r for r in rows if r.opponent.player_id == "player/carol")
        # window-scoped head-to-head, whole-history identity
        assert carol.head_to_head.total_contests == 1
        assert carol.opponent.contests_against == 4

    def test_unknown_opponent_dropped(self, history):
        lookups = build_lookups(history, OWNER_ID)
        stranger = make_contest(50, opponents=("player/stranger",))
        rows = compute_opponent_performance([stranger], OWNER_ID, lookups.opponents)
        assert rows == []

    def test_duplicate_participant_counted_once(self):
        contest = dataclasses.replace(
            make_contest(0, opponents=()),
            participants=(
                participant(OWNER_ID, place=1, result="won"),
                participant("player/alice", place=2),
                participant("player/alice", place=3),
            ),
        )
        lookups = build_lookups([contest], OWNER_ID)
        rows = compute_opponent_performance([contest], OWNER_ID, lookups.opponents)
        assert rows[0].head_to_head.total_contests == 1


class TestTrends:
    """Monthly buckets."""

    def test_history_months(self, history):
        trends = compute_trends(history)
        assert [t.period for t in trends] == ["2024-02", "2024-01"]

        february, january = trends
        assert february.contests_played == 4
        assert february.wins == 3
        assert february.win_rate == pytest.approx(75.0)
        assert february.average_placement == pytest.approx(1.25)
        assert january.contests_played == 4
        assert january.wins == 2
        assert january.average_placement == pytest.approx(1.75)
        assert january.skill_rating == 1000.0

    def test_counts_sum_to_filtered_count(self, history):
        assert sum(t.contests_played for t in compute_trends(history)) == len(history)

    def test_month_uses_record_offset(self):
        offset = datetime.timezone(datetime.timedelta(hours=-5))
        late_night = datetime.datetime(2024, 1, 31, 23, 30, tzinfo=offset)
        trends = compute_trends([make_contest(0, start=late_night)])
        assert trends[0].period == "2024-01"

    def test_sorted_across_years(self):
        contests = [
            make_contest(0, start=datetime.datetime(2023, 12, 5, tzinfo=datetime.UTC)),
            make_contest(1, start=datetime.datetime(2024, 2, 5, tzinfo=datetime.UTC)),
            make_contest(2, start=datetime.datetime(2023, 3, 5, tzinfo=datetime.UTC)),
        ]
        assert [t.period for t in compute_trends(contests)] == ["2024-02", "2023-12", "2023-03"]


# =============================================================================
# Entry point
# =============================================================================


class TestRunQuery:
    """End-to-end query execution."""

    def test_result_shape(self, history, now):
        query = AnalyticsQuery(games=("game/catan",))
        result = _query(history, query, now)
        assert result.query == query
        assert result.computed_at == now
        assert len(result.contests) == 5
        assert result.stats.total_contests == 5
        assert result.stats.current_streak == 0
        assert result.stats.longest_streak == 0
        assert [g.game.id for g in result.game_performance] == ["game/catan"]
        assert sum(t.contests_played for t in result.trends) == 5

    def test_fully_filtered_out(self, history, now):
        result = _query(history, AnalyticsQuery(min_players=10), now)
        assert result.contests == []
        assert result.stats.total_contests == 0
        assert result.stats.win_rate == 0.0
        assert result.game_performance == []
        assert result.opponent_performance == []
        assert result.trends == []

    def test_empty_history(self, now):
        result = run_query([], AnalyticsQuery(), owner_id=OWNER_ID, lookups=LookupIndex(), now=now)
        assert result.contests == []
        assert result.stats.total_contests == 0

    def test_deterministic(self, history, now):
        query = AnalyticsQuery(opponents=("player/alice",))
        assert _query(history, query, now) == _query(history, query, now)

    def test_computed_at_defaults_to_now(self, history):
        result = run_query(
            history, AnalyticsQuery(), owner_id=OWNER_ID, lookups=LookupIndex()
        )
        assert result.computed_at.tzinfo is not None
