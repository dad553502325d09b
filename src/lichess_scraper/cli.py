"""Lichess scraper CLI using Typer."""

import asyncio
import uuid
from pathlib import Path
from typing import Awaitable, Optional

import typer
from typing_extensions import Annotated

from .errors import LichessScraperError, describe_error, exit_code_for

app = typer.Typer(help="Fetch Lichess classical ratings and export a daily rating grid")


@app.callback()
def _configure() -> None:
    """Configure logging before any command runs."""
    from .lichess_logging import configure_logging
    configure_logging()


@app.command()
def top(
    count: Annotated[Optional[int], typer.Option(help="Number of ranked players (1-200)")] = None,
):
    """List the top classical players."""
    _run(_top(count))


@app.command()
def history(
    username: Annotated[str, typer.Argument(help="Lichess username")],
    days: Annotated[Optional[int], typer.Option(help="Days of history to show")] = None,
):
    """Show a player's recent classical rating history."""
    _run(_history(username, days))


@app.command()
def export(
    count: Annotated[Optional[int], typer.Option(help="Number of ranked players (1-200)")] = None,
    days: Annotated[Optional[int], typer.Option(help="Length of the daily window")] = None,
    output_dir: Annotated[Optional[Path], typer.Option("--output-dir", help="Directory for the CSV file")] = None,
):
    """Export the daily rating grid of the top players to CSV."""
    _run(_export(count, days, output_dir))


@app.command()
def run(
    count: Annotated[Optional[int], typer.Option(help="Number of ranked players (1-200)")] = None,
    days: Annotated[Optional[int], typer.Option(help="Length of the daily window")] = None,
    output_dir: Annotated[Optional[Path], typer.Option("--output-dir", help="Directory for the CSV file")] = None,
):
    """List top players, show the leader's history, then export the CSV."""
    _run(_full_run(count, days, output_dir))


def _run(coro: Awaitable[None]) -> None:
    """Run a command coroutine and translate failures into exit codes."""
    from .http import close_client
    from .lichess_logging import clear_trace_id, get_logger, set_trace_id

    logger = get_logger(__name__)
    set_trace_id(uuid.uuid4().hex[:8])

    async def _main() -> None:
        try:
            await coro
        finally:
            await close_client()

    try:
        asyncio.run(_main())
    except LichessScraperError as e:
        logger.error("Command failed", **e.to_dict())
        typer.echo(f"❌ {describe_error(e)}", err=True)
        raise typer.Exit(exit_code_for(e))
    except typer.Exit:
        raise
    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        typer.echo(f"❌ Unexpected error: {e}", err=True)
        raise typer.Exit(exit_code_for(e))
    finally:
        clear_trace_id()


async def _top(count: Optional[int]) -> None:
    from .io_clients import LichessClient
    from .output import print_top_players

    players = await LichessClient().get_top_classical_players(count)
    if not players:
        typer.echo("No players found")
        return
    print_top_players(players)


async def _history(username: str, days: Optional[int]) -> None:
    from .output import print_rating_history
    from .pipelines.ratings import RatingsPipeline

    pipeline = RatingsPipeline(days=days)
    typer.echo(f"Fetching rating history for {username}...")
    ratings_by_date = await pipeline.history_for_player(username)
    print_rating_history(username, ratings_by_date, pipeline.days)


async def _export(count: Optional[int], days: Optional[int], output_dir: Optional[Path], players=None) -> None:
    from .config import get_settings
    from .lichess_logging import get_logger, metrics
    from .output import write_csv_or_echo
    from .pipelines.ratings import RatingsPipeline

    pipeline = RatingsPipeline(days=days)
    typer.echo("\n📊 Generating CSV for all players...")
    result = await pipeline.run(players=players, count=count)

    path = write_csv_or_echo(result.rows, output_dir or get_settings().OUTPUT_DIR, echo=typer.echo)
    if path is not None:
        typer.echo(f"\n✅ CSV written to: {path}")
    typer.echo(f"Processed {result.players_processed} players successfully")

    if result.errors:
        typer.echo(f"\n⚠️  {len(result.errors)} players failed:")
        for error in result.errors[:5]:
            typer.echo(f"   - {error['username']}: {error['message']}")
        if len(result.errors) > 5:
            typer.echo(f"   ... and {len(result.errors) - 5} more errors")

    get_logger(__name__).info("Export metrics", **metrics.get_metrics())


async def _full_run(count: Optional[int], days: Optional[int], output_dir: Optional[Path]) -> None:
    from .io_clients import LichessClient
    from .output import print_top_players

    players = await LichessClient().get_top_classical_players(count)
    if not players:
        typer.echo("No players found")
        return
    print_top_players(players)

    await _history(players[0].username, days)
    await _export(count, days, output_dir, players=players)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    app()
