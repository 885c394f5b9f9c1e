"""
Decoding of contest history payloads into records.

Two shapes are accepted:
- Nested records, as produced by ContestRecord.to_dict (load_contests)
- The flattened server sync response, where each contest carries
  game_id/game_name/venue_id/venue_name and side tables of games and
  venues hold the remaining details (records_from_sync_payload)
"""

from __future__ import annotations

import logging
from typing import Any

from boardstats.core.models import (
    ClientGame,
    ClientParticipant,
    ClientResult,
    ClientVenue,
    ContestRecord,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


def _contest_label(raw: Any, index: int) -> str:
    if isinstance(raw, dict) and raw.get("id"):
        return str(raw["id"])
    return f"#{index}"


def load_contests(data: Any) -> list[ContestRecord]:
    """
    Load nested contest records.

    Args:
        data: A list of contest dicts, or a dict with a "contests" list

    Returns:
        List of ContestRecord in input order

    Raises:
        ValueError: If a contest is missing a required field
    """
    if isinstance(data, dict):
        data = data.get("contests", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of contests, got {type(data).__name__}")

    records = []
    for index, raw in enumerate(data):
        try:
            records.append(ContestRecord.from_dict(raw))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed contest {_contest_label(raw, index)}: {e}") from e
    logger.debug(f"Loaded {len(records)} contests")
    return records


def _index_by_id(rows: Any) -> dict[str, dict[str, Any]]:
    if not rows:
        return {}
    return {str(row["id"]): row for row in rows if isinstance(row, dict) and "id" in row}


def _game_from_flat(raw: dict[str, Any], games: dict[str, dict[str, Any]]) -> ClientGame:
    game_id = str(raw["game_id"])
    details = games.get(game_id, {})
    return ClientGame.from_dict(
        {
            "id": game_id,
            "name": raw.get("game_name") or details.get("name"),
            "year_published": details.get("year_published"),
        }
    )


def _venue_from_flat(raw: dict[str, Any], venues: dict[str, dict[str, Any]]) -> ClientVenue:
    venue_id = str(raw["venue_id"])
    details = venues.get(venue_id, {})
    return ClientVenue.from_dict(
        {
            "id": venue_id,
            "name": raw.get("venue_name") or details.get("name"),
            "display_name": raw.get("venue_display_name") or details.get("display_name"),
            "city": details.get("city"),
            "state": details.get("state"),
        }
    )


def _record_from_flat(
    raw: dict[str, Any],
    games: dict[str, dict[str, Any]],
    venues: dict[str, dict[str, Any]],
) -> ContestRecord:
    start = parse_timestamp(raw["start"])
    return ContestRecord(
        id=str(raw["id"]),
        name=str(raw.get("name") or ""),
        start=start,
        end=parse_timestamp(raw["end"]) if raw.get("end") else start,
        game=_game_from_flat(raw, games),
        venue=_venue_from_flat(raw, venues),
        participants=tuple(
            ClientParticipant.from_dict(p) for p in raw.get("participants") or []
        ),
        my_result=ClientResult.from_dict(raw.get("my_result") or {}),
    )


def records_from_sync_payload(payload: dict[str, Any]) -> list[ContestRecord]:
    """
    Convert a flattened sync response into contest records.

    Raises:
        ValueError: If a contest is missing a required field
    """
    games = _index_by_id(payload.get("games"))
    venues = _index_by_id(payload.get("venues"))

    records = []
    for index, raw in enumerate(payload.get("contests") or []):
        try:
            records.append(_record_from_flat(raw, games, venues))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed contest {_contest_label(raw, index)}: {e}") from e

    metadata = payload.get("sync_metadata") or {}
    total = metadata.get("total_contests")
    if total is not None and total != len(records):
        logger.info(f"Sync payload holds {len(records)} of {total} contests")
    return records


def snapshot_from_sync_payload(payload: dict[str, Any], **build_options: Any):
    """Build an AnalyticsSnapshot from a flattened sync response."""
    from boardstats.infra.cache import AnalyticsSnapshot

    timestamp = payload.get("sync_timestamp")
    return AnalyticsSnapshot.build(
        str(payload["player_id"]),
        records_from_sync_payload(payload),
        last_updated=parse_timestamp(timestamp) if timestamp else None,
        **build_options,
    )
