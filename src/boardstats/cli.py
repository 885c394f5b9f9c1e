"""
boardstats CLI - Command Line Interface for contest analytics

Provides commands for:
- Whole-history summaries of a player's contests
- Filtered analytics queries with optional export
- Head-to-head opponent tables
"""

import json
import logging
import sys
from datetime import datetime, time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from boardstats import __version__
from boardstats.core.config import get_config, load_config, set_config, setup_logging
from boardstats.core.models import (
    AnalyticsQuery,
    ContestRecord,
    ContestResult,
    CoreStats,
    DateRange,
    PlacementRange,
    parse_timestamp,
)
from boardstats.core.payload import load_contests, records_from_sync_payload
from boardstats.core.utils import format_percentage, format_streak
from boardstats.export import export_analytics
from boardstats.infra.cache import AnalyticsSnapshot

app = typer.Typer(
    name="boardstats",
    help="Board game contest analytics - summaries, head-to-head records and trends",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]boardstats[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a boardstats config file", dir_okay=False
    ),
) -> None:
    """boardstats - Board Game Contest Analytics"""
    config = load_config(config_file)
    if verbose:
        config.logging.level = "DEBUG"
    set_config(config)
    setup_logging(config.logging)


# ============================================================================
# Helpers
# ============================================================================


def _is_sync_payload(data: object) -> bool:
    if not isinstance(data, dict):
        return False
    contests = data.get("contests") or []
    return any(isinstance(c, dict) and "game_id" in c for c in contests)


def load_history(path: Path, player: str | None) -> tuple[str, list[ContestRecord]]:
    """Read a history file and resolve the owning player id."""
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}:[/red] {e}")
        raise typer.Exit(1)

    try:
        records = records_from_sync_payload(data) if _is_sync_payload(data) else load_contests(data)
    except ValueError as e:
        console.print(f"[red]Error loading contests:[/red] {e}")
        raise typer.Exit(1)

    owner = player or (data.get("player_id") if isinstance(data, dict) else None)
    if not owner:
        console.print("[red]No player id given and none found in the history file[/red]")
        raise typer.Exit(1)
    return str(owner), records


def build_snapshot(path: Path, player: str | None) -> AnalyticsSnapshot:
    owner, records = load_history(path, player)
    analytics = get_config().analytics
    try:
        return AnalyticsSnapshot.build(
            owner,
            records,
            streak_mode=analytics.streak_mode,
            skill_rating=analytics.default_skill_rating,
        )
    except ValueError as e:
        console.print(f"[red]Invalid analytics configuration:[/red] {e}")
        raise typer.Exit(1)


def _parse_bound(value: str, end_of_day: bool) -> datetime:
    moment = parse_timestamp(value)
    if end_of_day and len(value.strip()) == 10:
        moment = datetime.combine(moment.date(), time.max, tzinfo=moment.tzinfo)
    return moment


def stats_table(title: str, stats: CoreStats, show_streaks: bool = True) -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Contests", str(stats.total_contests))
    table.add_row("Wins", str(stats.total_wins))
    table.add_row("Losses", str(stats.total_losses))
    table.add_row("Win Rate", format_percentage(stats.win_rate))
    table.add_row("Average Placement", f"{stats.average_placement:.2f}")
    table.add_row("Best / Worst", f"{stats.best_placement} / {stats.worst_placement}")
    if show_streaks:
        table.add_row("Current Streak", format_streak(stats.current_streak))
        table.add_row("Longest Streak", str(stats.longest_streak))
    return table


# ============================================================================
# Commands
# ============================================================================


@app.command()
def summary(
    history: Path = typer.Argument(
        ..., help="JSON file with the contest history", exists=True, dir_okay=False
    ),
    player: Optional[str] = typer.Option(None, "--player", "-p", help="Owner player id"),
) -> None:
    """Show whole-history statistics for a player."""
    snapshot = build_snapshot(history, player)
    console.print(stats_table(f"Summary for {snapshot.player_id}", snapshot.core_stats))

    info = Table(show_header=False)
    info.add_column("Property", style="cyan")
    info.add_column("Value")
    info.add_row("Games", str(len(snapshot.lookups.games)))
    info.add_row("Venues", str(len(snapshot.lookups.venues)))
    info.add_row("Opponents", str(len(snapshot.lookups.opponents)))
    info.add_row("Estimated Size", f"{snapshot.estimate_size()} bytes")
    info.add_row("Fingerprint", snapshot.fingerprint()[:16])
    console.print(info)


@app.command()
def query(
    history: Path = typer.Argument(
        ..., help="JSON file with the contest history", exists=True, dir_okay=False
    ),
    player: Optional[str] = typer.Option(None, "--player", "-p", help="Owner player id"),
    game: Optional[list[str]] = typer.Option(None, "--game", "-g", help="Game id (repeatable)"),
    venue: Optional[list[str]] = typer.Option(None, "--venue", help="Venue id (repeatable)"),
    opponent: Optional[list[str]] = typer.Option(
        None, "--opponent", help="Opponent player id (repeatable)"
    ),
    since: Optional[str] = typer.Option(None, "--since", help="Earliest start (ISO date/time)"),
    until: Optional[str] = typer.Option(None, "--until", help="Latest start (ISO date/time)"),
    min_players: Optional[int] = typer.Option(None, "--min-players"),
    max_players: Optional[int] = typer.Option(None, "--max-players"),
    result: Optional[list[str]] = typer.Option(
        None, "--result", "-r", help="Result filter: won, lost, tied (repeatable)"
    ),
    min_place: Optional[int] = typer.Option(None, "--min-place"),
    max_place: Optional[int] = typer.Option(None, "--max-place"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Export results (.json or .csv)"
    ),
) -> None:
    """Run a filtered analytics query."""
    snapshot = build_snapshot(history, player)

    date_range = None
    if since or until:
        try:
            start = _parse_bound(since, False) if since else datetime.min.replace(
                tzinfo=snapshot.last_updated.tzinfo
            )
            end = _parse_bound(until, True) if until else datetime.max.replace(
                tzinfo=snapshot.last_updated.tzinfo
            )
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        date_range = DateRange(start=start, end=end)

    placement_range = None
    if min_place is not None or max_place is not None:
        placement_range = PlacementRange(
            min_place=min_place if min_place is not None else 1,
            max_place=max_place if max_place is not None else sys.maxsize,
        )

    analytics_query = AnalyticsQuery(
        date_range=date_range,
        games=tuple(game) if game else None,
        venues=tuple(venue) if venue else None,
        opponents=tuple(opponent) if opponent else None,
        min_players=min_players,
        max_players=max_players,
        result_filter=tuple(ContestResult.parse(r) for r in result) if result else None,
        placement_range=placement_range,
    )
    analytics = snapshot.query(analytics_query)

    console.print(stats_table("Filtered Statistics", analytics.stats, show_streaks=False))

    if analytics.game_performance:
        games = Table(title="Games")
        for column in ("Game", "Plays", "W", "L", "Win %", "Avg Place", "Last Played", "Venue"):
            games.add_column(column)
        for perf in analytics.game_performance:
            games.add_row(
                perf.game.name,
                str(perf.total_plays),
                str(perf.wins),
                str(perf.losses),
                format_percentage(perf.win_rate),
                f"{perf.average_placement:.2f}",
                f"{perf.days_since_last_play}d ago",
                perf.favorite_venue.name if perf.favorite_venue else "-",
            )
        console.print(games)

    if analytics.trends:
        trends = Table(title="Monthly Trends")
        for column in ("Period", "Contests", "Wins", "Win %", "Avg Place"):
            trends.add_column(column)
        for trend in analytics.trends:
            trends.add_row(
                trend.period,
                str(trend.contests_played),
                str(trend.wins),
                format_percentage(trend.win_rate),
                f"{trend.average_placement:.2f}",
            )
        console.print(trends)

    if output:
        try:
            export_analytics(analytics, output, config=get_config().export)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]Exported results to {output}[/green]")


@app.command()
def opponents(
    history: Path = typer.Argument(
        ..., help="JSON file with the contest history", exists=True, dir_okay=False
    ),
    player: Optional[str] = typer.Option(None, "--player", "-p", help="Owner player id"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of opponents to show"),
) -> None:
    """Show whole-history head-to-head records."""
    snapshot = build_snapshot(history, player)
    ranked = sorted(snapshot.opponents, key=lambda o: -o.contests_against)[:limit]

    table = Table(title=f"Opponents of {snapshot.player_id}")
    for column in ("Handle", "Name", "Contests", "My W", "My L", "My Win %", "Last Played"):
        table.add_column(column)
    for opp in ranked:
        table.add_row(
            opp.handle,
            opp.name or "-",
            str(opp.contests_against),
            str(opp.wins_against),
            str(opp.losses_against),
            format_percentage(opp.win_rate_against),
            opp.last_played.date().isoformat(),
        )
    console.print(table)


if __name__ == "__main__":
    app()
