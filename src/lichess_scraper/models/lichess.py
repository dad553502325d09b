"""Pydantic models for the Lichess API payloads the scraper consumes."""

from datetime import date
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.dates import Rating, point_date

CLASSICAL_SERIES = "Classical"


class RatingPoint(NamedTuple):
    """One observed rating on one calendar day.

    Lichess encodes points as ``[year, month, day, rating]`` with a
    zero-based month (0 = January).
    """

    year: int
    month: int
    day: int
    rating: Rating

    def to_date(self) -> date:
        """Calendar date of the point; day overflow rolls into the next month."""
        return point_date(self)


class PerfRating(BaseModel):
    """Current rating for one game-pace category."""

    model_config = ConfigDict(frozen=True)

    rating: Rating = Field(..., description="Current rating")
    progress: int = Field(default=0, description="Rating change over the last games")


class PlayerPerfs(BaseModel):
    model_config = ConfigDict(frozen=True)

    classical: PerfRating


class LichessPlayer(BaseModel):
    """Ranked player entry from the leaderboard endpoint."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Lichess user id (lowercase username)")
    username: str = Field(..., description="Display name")
    title: Optional[str] = Field(default=None, description="FIDE/Lichess title, e.g. GM")
    perfs: PlayerPerfs

    @property
    def classical_rating(self) -> Rating:
        return self.perfs.classical.rating

    def fallback_rating(self, default: Rating) -> Rating:
        """Rating used for days without history; zero or missing means ``default``."""
        return self.classical_rating or default


class TopPlayersResponse(BaseModel):
    """Response of ``/player/top/{n}/{perf}``."""

    model_config = ConfigDict(frozen=True)

    users: List[LichessPlayer]


class RatingHistoryEntry(BaseModel):
    """One named series of ``/user/{username}/rating-history``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Category name, e.g. 'Classical'")
    points: List[RatingPoint] = Field(default_factory=list)

    @field_validator("points")
    @classmethod
    def validate_point_months(cls, v: List[RatingPoint]) -> List[RatingPoint]:
        """Reject points whose zero-based month is out of range."""
        for point in v:
            if not 0 <= point.month <= 11:
                raise ValueError(f"Month must be 0-11 (zero-based), got {point.month} in {tuple(point)}")
            if point.day < 1:
                raise ValueError(f"Day must be positive, got {point.day} in {tuple(point)}")
        return v


RatingHistoryResponse = List[RatingHistoryEntry]
