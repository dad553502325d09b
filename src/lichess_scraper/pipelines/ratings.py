"""Pipeline turning the Lichess classical leaderboard into a daily rating grid."""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from ..config import get_settings
from ..errors import LichessScraperError
from ..io_clients import LichessClient
from ..lichess_logging import get_logger, metrics
from ..models import LichessPlayer
from ..rate_limit import RateLimiter
from ..utils.dates import (
    build_rating_index,
    create_date_headers,
    fill_ratings_for_date_range,
    filter_recent_points,
)

logger = get_logger(__name__)


@dataclass
class RatingsPipelineResult:
    """Result of a ratings pipeline execution."""
    success: bool
    rows: List[List[str]] = field(default_factory=list)
    players_total: int = 0
    players_processed: int = 0
    players_skipped: int = 0
    players_failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def header(self) -> List[str]:
        return self.rows[0] if self.rows else []

    @property
    def player_rows(self) -> List[List[str]]:
        return self.rows[1:]


class RatingsPipeline:
    """Fetch top players and align each one's classical history onto a daily grid."""

    def __init__(
        self,
        client: Optional[LichessClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        days: Optional[int] = None,
        default_rating: Optional[int] = None,
    ) -> None:
        """Initialize pipeline with its collaborators.

        Args:
            client: Lichess API client
            rate_limiter: Scheduler for per-player history requests
            days: Window length, defaults to DAYS_TO_FETCH
            default_rating: Fallback when a player has no rating, defaults to DEFAULT_RATING
        """
        settings = get_settings()
        self.client = client or LichessClient()
        self.rate_limiter = rate_limiter or RateLimiter.from_settings()
        self.days = days if days is not None else settings.DAYS_TO_FETCH
        self.default_rating = default_rating if default_rating is not None else settings.DEFAULT_RATING

    async def run(
        self,
        players: Optional[Sequence[LichessPlayer]] = None,
        count: Optional[int] = None,
        today: Optional[date] = None,
    ) -> RatingsPipelineResult:
        """Build the CSV rows for every player.

        Failure to fetch the leaderboard propagates; failures for individual
        players are logged and recorded without stopping the others.

        Args:
            players: Players to process; fetched from the leaderboard if omitted
            count: Leaderboard size when fetching
            today: Last day of the window (defaults to the local date)

        Returns:
            RatingsPipelineResult whose ``rows`` start with the header
        """
        start_time = time.monotonic()
        today = today or date.today()

        if players is None:
            players = await self.client.get_top_classical_players(count)

        result = RatingsPipelineResult(
            success=False,
            rows=[create_date_headers(self.days, today)],
            players_total=len(players),
        )
        logger.info("Generating rating grid", players=len(players), days=self.days)

        futures = [
            self.rate_limiter.submit(lambda p=player: self.process_player(p, today))
            for player in players
        ]
        outcomes = await asyncio.gather(*futures, return_exceptions=True)

        for player, outcome in zip(players, outcomes):
            if isinstance(outcome, BaseException):
                result.players_failed += 1
                error = outcome.to_dict() if isinstance(outcome, LichessScraperError) else {
                    "kind": "unexpected", "message": str(outcome)
                }
                error["username"] = player.username
                result.errors.append(error)
                logger.error("Failed to process player", username=player.username, error=str(outcome))
            elif outcome is None:
                result.players_skipped += 1
            else:
                result.players_processed += 1
                result.rows.append(outcome)

        result.success = result.players_failed == 0
        result.duration_seconds = time.monotonic() - start_time
        metrics.gauge("pipeline.duration_seconds", result.duration_seconds)
        metrics.gauge("pipeline.players_failed", result.players_failed)

        logger.info("Rating grid completed",
                    players_processed=result.players_processed,
                    players_skipped=result.players_skipped,
                    players_failed=result.players_failed,
                    duration=round(result.duration_seconds, 2))
        return result

    async def process_player(self, player: LichessPlayer, today: Optional[date] = None) -> Optional[List[str]]:
        """CSV row for one player, or None when they have no classical history."""
        logger.info("Processing player", username=player.username)

        history = await self.client.get_classical_rating_history(player.username)
        if history is None:
            return None

        recent_points = filter_recent_points(history.points, self.days, today)
        ratings = fill_ratings_for_date_range(
            recent_points,
            player.fallback_rating(self.default_rating),
            self.days,
            today,
        )
        return [player.username, *ratings]

    async def history_for_player(
        self,
        username: str,
        today: Optional[date] = None,
    ) -> Optional[Dict[str, int]]:
        """Observed classical ratings within the window, keyed by ISO date.

        Returns None when the player has no classical history.
        """
        history = await self.client.get_classical_rating_history(username)
        if history is None:
            return None

        recent_points = filter_recent_points(history.points, self.days, today)
        return {day.isoformat(): rating for day, rating in sorted(build_rating_index(recent_points).items())}
