"""IO clients for remote rating sources."""

from .lichess import LichessClient

__all__ = ["LichessClient"]
