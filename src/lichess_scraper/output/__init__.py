"""Output sinks: console tables and CSV files."""

from .console import print_rating_history, print_top_players
from .csv_writer import build_csv_path, render_csv, write_csv, write_csv_or_echo

__all__ = [
    "build_csv_path",
    "print_rating_history",
    "print_top_players",
    "render_csv",
    "write_csv",
    "write_csv_or_echo",
]
