"""Shared builders for contest analytics tests."""

from __future__ import annotations

import datetime

import pytest

from boardstats.core.models import (
    ClientGame,
    ClientParticipant,
    ClientResult,
    ClientVenue,
    ContestRecord,
    ContestResult,
)

OWNER_ID = "player/me"
BASE_TIME = datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.UTC)

GAMES = {
    "game/catan": ClientGame(id="game/catan", name="Catan", year_published=1995),
    "game/azul": ClientGame(id="game/azul", name="Azul", year_published=2017),
    "game/wingspan": ClientGame(id="game/wingspan", name="Wingspan", year_published=2019),
}

VENUES = {
    "venue/home": ClientVenue(id="venue/home", name="Home", city="Austin", state="TX"),
    "venue/cafe": ClientVenue(
        id="venue/cafe", name="Meeple Cafe", display_name="The Meeple Cafe", city="Austin"
    ),
    "venue/club": ClientVenue(id="venue/club", name="Game Club"),
}


def participant(
    player_id: str,
    place: int = 2,
    result: str = "lost",
    handle: str | None = None,
    firstname: str | None = None,
    lastname: str | None = None,
) -> ClientParticipant:
    return ClientParticipant(
        player_id=player_id,
        handle=handle or player_id.split("/")[-1],
        place=place,
        result=ContestResult.parse(result),
        firstname=firstname,
        lastname=lastname,
    )


def make_contest(
    idx: int,
    result: str = "won",
    place: int = 1,
    game: str = "game/catan",
    venue: str = "venue/home",
    opponents: tuple[str, ...] = ("player/alice",),
    start: datetime.datetime | None = None,
    include_owner: bool = True,
) -> ContestRecord:
    """Build a contest; higher idx means a later start (one day apart)."""
    start = start or BASE_TIME + datetime.timedelta(days=idx)
    people = []
    if include_owner:
        people.append(participant(OWNER_ID, place=place, result=result, handle="me"))
    for offset, opponent_id in enumerate(opponents):
        people.append(participant(opponent_id, place=place + offset + 1))
    return ContestRecord(
        id=f"contest/{idx}",
        name=f"Contest {idx}",
        start=start,
        end=start + datetime.timedelta(hours=2),
        game=GAMES[game],
        venue=VENUES[venue],
        participants=tuple(people),
        my_result=ClientResult(place=place, result=ContestResult.parse(result)),
    )


@pytest.fixture
def owner_id() -> str:
    return OWNER_ID


@pytest.fixture
def now() -> datetime.datetime:
    return BASE_TIME + datetime.timedelta(days=100)


@pytest.fixture
def history() -> list[ContestRecord]:
    """Eight contests over three games, three venues and three opponents."""
    return [
        make_contest(0, "won", 1, "game/catan", "venue/home", ("player/alice", "player/bob")),
        make_contest(1, "lost", 3, "game/catan", "venue/cafe", ("player/alice", "player/bob")),
        make_contest(2, "won", 1, "game/azul", "venue/cafe", ("player/carol",)),
        make_contest(3, "tied", 2, "game/catan", "venue/home", ("player/alice",)),
        make_contest(35, "won", 1, "game/wingspan", "venue/club", ("player/bob", "player/carol")),
        make_contest(36, "lost", 2, "game/azul", "venue/cafe", ("player/alice",)),
        make_contest(37, "won", 1, "game/catan", "venue/home", ("player/carol",)),
        make_contest(40, "won", 1, "game/catan", "venue/club", ("player/alice", "player/carol")),
    ]
