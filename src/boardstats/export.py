"""
Export Functionality for boardstats

Provides export formats for computed analytics:
- JSON (default): complete result, programmatic access
- CSV: one flat table per section (contests, games, opponents, trends)

Tables are built with pandas so rendering collaborators can consume the
same frames directly.
"""

import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd

from boardstats.core.config import ExportConfig
from boardstats.core.models import ComputedAnalytics

logger = logging.getLogger(__name__)

CSV_TABLES = ("contests", "games", "opponents", "trends")


# ============================================================================
# Data Conversion Utilities
# ============================================================================


def dataclass_to_dict(obj: Any) -> Any:
    """Convert a dataclass (or nested dataclasses) to JSON-ready values."""
    if hasattr(obj, "to_dict") and is_dataclass(obj) and not isinstance(obj, type):
        return obj.to_dict()
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: dataclass_to_dict(v) for k, v in asdict(obj).items()}
    elif isinstance(obj, dict):
        return {k: dataclass_to_dict(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [dataclass_to_dict(item) for item in obj]
    elif isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, Path):
        return str(obj)
    else:
        return obj


# ============================================================================
# JSON Export
# ============================================================================


def export_to_json(
    data: Any,
    output_path: Path | None = None,
    indent: int = 2,
    include_metadata: bool = True,
) -> str:
    """
    Export analytics data to JSON format.

    Args:
        data: Result object or dictionary
        output_path: Optional path to write the file
        indent: JSON indentation level
        include_metadata: Whether to include export metadata

    Returns:
        JSON string
    """
    export_data = dataclass_to_dict(data)

    if include_metadata:
        export_data = {
            "_metadata": {
                "exported_at": datetime.now().isoformat(),
                "format": "boardstats_json",
                "version": "1.0",
            },
            **export_data,
        }

    json_str = json.dumps(export_data, indent=indent, default=str)

    if output_path:
        output_path.write_text(json_str)
        logger.info(f"Exported JSON to: {output_path}")

    return json_str


# ============================================================================
# Tabular Export
# ============================================================================


def analytics_to_frames(analytics: ComputedAnalytics) -> dict[str, pd.DataFrame]:
    """
    Flatten a query result into one DataFrame per section.

    Returns:
        Dict with "contests", "games", "opponents" and "trends" frames
    """
    contests = pd.DataFrame(
        [
            {
                "id": c.id,
                "name": c.name,
                "start": c.start.isoformat(),
                "game_id": c.game.id,
                "game": c.game.name,
                "venue_id": c.venue.id,
                "venue": c.venue.display_name or c.venue.name,
                "players": c.player_count,
                "place": c.my_result.place,
                "result": c.my_result.result.value,
            }
            for c in analytics.contests
        ],
        columns=[
            "id", "name", "start", "game_id", "game", "venue_id",
            "venue", "players", "place", "result",
        ],
    )

    games = pd.DataFrame(
        [
            {
                "game_id": g.game.id,
                "game": g.game.name,
                "total_plays": g.total_plays,
                "wins": g.wins,
                "losses": g.losses,
                "win_rate": round(g.win_rate, 2),
                "average_placement": round(g.average_placement, 2),
                "best_placement": g.best_placement,
                "worst_placement": g.worst_placement,
                "last_played": g.last_played.isoformat(),
                "days_since_last_play": g.days_since_last_play,
                "favorite_venue": g.favorite_venue.name if g.favorite_venue else None,
            }
            for g in analytics.game_performance
        ],
        columns=[
            "game_id", "game", "total_plays", "wins", "losses", "win_rate",
            "average_placement", "best_placement", "worst_placement",
            "last_played", "days_since_last_play", "favorite_venue",
        ],
    )

    opponents = pd.DataFrame(
        [
            {
                "player_id": o.opponent.player_id,
                "handle": o.opponent.handle,
                "name": o.opponent.name,
                "total_contests": o.head_to_head.total_contests,
                "my_wins": o.head_to_head.my_wins,
                "opponent_wins": o.head_to_head.opponent_wins,
                "my_win_rate": round(o.head_to_head.my_win_rate, 2),
            }
            for o in analytics.opponent_performance
        ],
        columns=[
            "player_id", "handle", "name", "total_contests",
            "my_wins", "opponent_wins", "my_win_rate",
        ],
    )

    trends = pd.DataFrame(
        [t.to_dict() for t in analytics.trends],
        columns=[
            "period", "contests_played", "wins", "win_rate",
            "average_placement", "skill_rating",
        ],
    )

    return {"contests": contests, "games": games, "opponents": opponents, "trends": trends}


def export_to_csv(
    analytics: ComputedAnalytics,
    output_path: Path,
    delimiter: str = ",",
) -> list[Path]:
    """
    Write one CSV file per table, named <stem>_<table>.csv.

    Returns:
        Paths of the written files
    """
    frames = analytics_to_frames(analytics)
    written = []
    for name in CSV_TABLES:
        path = output_path.with_name(f"{output_path.stem}_{name}.csv")
        frames[name].to_csv(path, index=False, sep=delimiter)
        written.append(path)
    logger.info(f"Exported {len(written)} CSV tables next to: {output_path}")
    return written


# ============================================================================
# Unified Export Function
# ============================================================================


def export_analytics(
    analytics: ComputedAnalytics,
    output_path: Path,
    format: str | None = None,
    config: ExportConfig | None = None,
) -> None:
    """
    Export a query result to the specified format.

    Format is detected from file extension if not specified, falling back
    to config.default_format when the path has no extension.

    Args:
        analytics: Computed analytics to export
        output_path: Path to write the export
        format: Optional format override (json, csv)
        config: Export settings (indent, delimiter, default format)
    """
    config = config or ExportConfig()
    if format is None:
        format = output_path.suffix.lstrip(".").lower() or config.default_format

    if format == "json":
        export_to_json(analytics, output_path, indent=config.json_indent)

    elif format == "csv":
        export_to_csv(analytics, output_path, delimiter=config.csv_delimiter)

    else:
        raise ValueError(f"Unsupported export format: {format}")
