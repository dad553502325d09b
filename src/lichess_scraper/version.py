"""Version information for lichess-scraper."""

__version__ = "0.1.0"
__author__ = "lichess-scraper contributors"
