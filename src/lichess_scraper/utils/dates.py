"""Calendar-window helpers and the daily rating gap-fill.

All dates here are plain local calendar dates. Rating points are
``(year, month, day, rating)`` sequences with a zero-based month, exactly as
Lichess returns them; no timezone conversion is ever applied.
"""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Union

from ..lichess_logging import get_logger

logger = get_logger(__name__)

DAYS_TO_FETCH = 30

Rating = Union[int, float]
PointLike = Sequence[Rating]


def point_date(point: PointLike) -> date:
    """Calendar date of a ``(year, month0, day, rating)`` point.

    Days past the end of the month roll over into the following month.
    """
    year, month, day = int(point[0]), int(point[1]), int(point[2])
    return date(year, month + 1, 1) + timedelta(days=day - 1)


def date_window(days: int = DAYS_TO_FETCH, today: Optional[date] = None) -> List[date]:
    """The ``days`` calendar days ending on ``today``, oldest first."""
    if days < 0:
        raise ValueError(f"days must be non-negative, got {days}")
    end = today or date.today()
    return [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def generate_date_range(days: int = DAYS_TO_FETCH, today: Optional[date] = None) -> List[str]:
    """ISO date strings for the window, oldest first."""
    return [day.isoformat() for day in date_window(days, today)]


def create_date_headers(days: int = DAYS_TO_FETCH, today: Optional[date] = None) -> List[str]:
    """CSV header row: ``username`` followed by one column per day."""
    return ["username", *generate_date_range(days, today)]


def date_range_cutoff(days: int = DAYS_TO_FETCH, today: Optional[date] = None) -> date:
    """First calendar day of the window."""
    end = today or date.today()
    return end - timedelta(days=max(days - 1, 0))


def filter_recent_points(
    points: Iterable[PointLike],
    days: int = DAYS_TO_FETCH,
    today: Optional[date] = None,
) -> List[PointLike]:
    """Keep points dated on or after the first day of the window."""
    cutoff = date_range_cutoff(days, today)
    return [point for point in points if point_date(point) >= cutoff]


def build_rating_index(points: Iterable[PointLike]) -> Dict[date, Rating]:
    """Map calendar date to rating; a repeated date keeps the last value seen."""
    ratings_by_date: Dict[date, Rating] = {}
    for point in points:
        ratings_by_date[point_date(point)] = point[3]
    return ratings_by_date


def format_rating(rating: Rating) -> str:
    """Decimal string form; integral floats render without a fractional part."""
    if isinstance(rating, float) and rating.is_integer():
        return str(int(rating))
    return str(rating)


def fill_ratings_for_date_range(
    points: Iterable[PointLike],
    fallback_rating: Rating,
    days: int = DAYS_TO_FETCH,
    today: Optional[date] = None,
) -> List[str]:
    """Dense per-day ratings for the window ending ``today``, oldest first.

    A day with an observed rating uses it. A day without one takes the
    nearest observed rating from a *later* day inside the window; if no
    later day has one, ``fallback_rating`` is used. Points need not be
    sorted and points outside the window only matter through the index.

    Args:
        points: ``(year, month0, day, rating)`` observations
        fallback_rating: Value for days with nothing observed on or after them
        days: Window length
        today: Last day of the window (defaults to the local date)

    Returns:
        Exactly ``days`` rating strings
    """
    ratings_by_date = build_rating_index(points)
    window = date_window(days, today)

    filled: List[Rating] = []
    next_known: Optional[Rating] = None
    # Walk newest to oldest so each gap sees the nearest later observation.
    for day in reversed(window):
        if day in ratings_by_date:
            next_known = ratings_by_date[day]
            filled.append(next_known)
        elif next_known is not None:
            filled.append(next_known)
        else:
            filled.append(fallback_rating)
    filled.reverse()

    logger.debug("Aligned rating series",
                 days=days,
                 observed=sum(1 for day in window if day in ratings_by_date))
    return [format_rating(rating) for rating in filled]
