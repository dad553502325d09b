"""Console rendering of leaderboards and rating histories."""

from typing import Dict, Optional, Sequence

from rich.console import Console
from rich.table import Table

from ..models import LichessPlayer

console = Console()


def print_top_players(players: Sequence[LichessPlayer], out: Optional[Console] = None) -> None:
    """Print the leaderboard as a ranked table."""
    out = out or console
    table = Table(title=f"Top {len(players)} Classical Players", show_header=True, header_style="bold blue")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Player", style="white")
    table.add_column("Rating", justify="right", style="green")

    for rank, player in enumerate(players, start=1):
        name = f"{player.title} {player.username}" if player.title else player.username
        table.add_row(str(rank), name, str(player.classical_rating))

    out.print(table)


def print_rating_history(
    username: str,
    ratings_by_date: Optional[Dict[str, int]],
    days: int,
    out: Optional[Console] = None,
) -> None:
    """Print observed classical ratings of one player, oldest first."""
    out = out or console
    if ratings_by_date is None:
        out.print("No classical rating history found")
        return

    out.print(f"\nRating history for [bold]{username}[/bold] (last {days} days):")
    if not ratings_by_date:
        out.print("  no rated games in this window")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Date", style="cyan")
    table.add_column("Rating", justify="right", style="green")
    for day, rating in ratings_by_date.items():
        table.add_row(day, str(rating))
    out.print(table)
