"""Lichess API client built on the retrying, schema-validating fetcher."""

from typing import List, Optional
from urllib.parse import quote

import httpx

from ..config import get_settings
from ..http import fetch_json
from ..lichess_logging import get_logger
from ..models import (
    CLASSICAL_SERIES,
    LichessPlayer,
    RatingHistoryEntry,
    RatingHistoryResponse,
    TopPlayersResponse,
)

logger = get_logger(__name__)


class LichessClient:
    """Async client for the public (unauthenticated) Lichess endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize Lichess client.

        Args:
            base_url: API root, defaults to LICHESS_API_BASE
            http_client: Client to send requests with; the shared one if omitted
        """
        self.settings = get_settings()
        self.base_url = (base_url or self.settings.LICHESS_API_BASE).rstrip('/')
        self.http_client = http_client

    async def get_top_classical_players(self, count: Optional[int] = None) -> List[LichessPlayer]:
        """Fetch the classical leaderboard.

        Args:
            count: Number of players (1-200), defaults to TOP_PLAYERS

        Returns:
            Players in rank order
        """
        count = count or self.settings.TOP_PLAYERS
        logger.info("Fetching top classical players", count=count)
        data = await fetch_json(
            f"{self.base_url}/player/top/{count}/classical",
            TopPlayersResponse,
            client=self.http_client,
        )
        return list(data.users)

    async def get_rating_history(self, username: str) -> RatingHistoryResponse:
        """Fetch every rating series of a user."""
        return await fetch_json(
            f"{self.base_url}/user/{quote(username, safe='')}/rating-history",
            RatingHistoryResponse,
            client=self.http_client,
        )

    async def get_classical_rating_history(self, username: str) -> Optional[RatingHistoryEntry]:
        """Fetch the user's Classical series, or None if they have none."""
        series = await self.get_rating_history(username)
        for entry in series:
            if entry.name == CLASSICAL_SERIES:
                return entry
        logger.debug("No classical rating history", username=username)
        return None
