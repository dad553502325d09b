"""Utility helpers for the Lichess scraper."""

from .dates import (
    DAYS_TO_FETCH,
    build_rating_index,
    create_date_headers,
    date_range_cutoff,
    fill_ratings_for_date_range,
    filter_recent_points,
    generate_date_range,
    point_date,
)

__all__ = [
    "DAYS_TO_FETCH",
    "build_rating_index",
    "create_date_headers",
    "date_range_cutoff",
    "fill_ratings_for_date_range",
    "filter_recent_points",
    "generate_date_range",
    "point_date",
]
