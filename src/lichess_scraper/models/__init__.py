"""Pydantic data models for the Lichess scraper."""

from .lichess import (
    CLASSICAL_SERIES,
    LichessPlayer,
    PerfRating,
    PlayerPerfs,
    RatingHistoryEntry,
    RatingHistoryResponse,
    RatingPoint,
    TopPlayersResponse,
)

__all__ = [
    "CLASSICAL_SERIES",
    "LichessPlayer",
    "PerfRating",
    "PlayerPerfs",
    "RatingHistoryEntry",
    "RatingHistoryResponse",
    "RatingPoint",
    "TopPlayersResponse",
]
