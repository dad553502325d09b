"""Lichess classical rating scraper.

Fetches the classical leaderboard and each player's rating history from the
Lichess API under a concurrency- and pace-limited scheduler, then aligns the
sparse histories onto a daily grid for CSV export.
"""

from .version import __version__, __author__
from .config import AppSettings, get_settings

__all__ = [
    "__version__",
    "__author__",
    "AppSettings",
    "get_settings",
    # Key subpackages
    "models",
    "io_clients",
    "pipelines",
    "output",
    "utils",
]
