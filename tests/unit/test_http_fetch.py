"""Unit tests for the retrying, schema-validating fetcher."""

import httpx
import pytest

from lichess_scraper.errors import (
    APIError,
    ErrorKind,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from lichess_scraper.http import fetch_json
from lichess_scraper.lichess_logging import metrics
from lichess_scraper.models import RatingHistoryResponse, TopPlayersResponse

from payloads import history_payload, player_payload

URL = "https://lichess.test/api/player/top/2/classical"


class CountingHandler:
    """MockTransport handler replaying a fixed script of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        index = min(self.calls, len(self.responses) - 1)
        self.calls += 1
        outcome = self.responses[index]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome.status_code, headers=outcome.headers, content=outcome.content)


def top_players_ok() -> httpx.Response:
    return httpx.Response(200, json={
        "users": [player_payload("DrNykterstein", 2850, "GM"), player_payload("alireza2003", 2790)]
    })


class TestSuccess:
    """Valid responses are returned as validated models."""

    @pytest.mark.asyncio
    async def test_returns_validated_model(self, mock_client, recorded_sleeps):
        handler = CountingHandler(top_players_ok())
        async with mock_client(handler) as client:
            data = await fetch_json(URL, TopPlayersResponse, client=client)

        assert isinstance(data, TopPlayersResponse)
        assert [u.username for u in data.users] == ["DrNykterstein", "alireza2003"]
        assert data.users[0].title == "GM"
        assert handler.calls == 1
        assert recorded_sleeps == []

    @pytest.mark.asyncio
    async def test_accepts_generic_list_schema(self, mock_client, recorded_sleeps):
        handler = CountingHandler(httpx.Response(200, json=history_payload([[2024, 2, 1, 2500]])))
        async with mock_client(handler) as client:
            data = await fetch_json(URL, RatingHistoryResponse, client=client)

        assert [entry.name for entry in data] == ["Bullet", "Blitz", "Classical"]
        assert data[2].points[0].rating == 2500


class TestApiErrors:
    """Non-429 error statuses fail fast with the original status code."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 404, 500, 503])
    async def test_error_status_raises_api_error_without_retry(self, status, mock_client, recorded_sleeps):
        handler = CountingHandler(httpx.Response(status, text="nope"))
        async with mock_client(handler) as client:
            with pytest.raises(APIError) as exc_info:
                await fetch_json(URL, TopPlayersResponse, client=client)

        assert exc_info.value.status_code == status
        assert exc_info.value.endpoint == URL
        assert exc_info.value.kind is ErrorKind.API
        assert handler.calls == 1
        assert recorded_sleeps == []


class TestValidation:
    """Schema mismatches fail fast and keep the decoded payload."""

    @pytest.mark.asyncio
    async def test_mismatch_raises_validation_error(self, mock_client, recorded_sleeps):
        payload = {"users": [{"id": "x", "username": "x"}]}
        handler = CountingHandler(httpx.Response(200, json=payload))
        async with mock_client(handler) as client:
            with pytest.raises(ValidationError) as exc_info:
                await fetch_json(URL, TopPlayersResponse, client=client)

        assert exc_info.value.payload == payload
        assert exc_info.value.issues
        assert handler.calls == 1
        assert recorded_sleeps == []


class TestRateLimiting:
    """429 responses retry on the server's cadence."""

    @pytest.mark.asyncio
    async def test_honours_retry_after_then_succeeds(self, mock_client, recorded_sleeps):
        handler = CountingHandler(
            httpx.Response(429, headers={"Retry-After": "2"}),
            top_players_ok(),
        )
        async with mock_client(handler) as client:
            data = await fetch_json(URL, TopPlayersResponse, client=client)

        assert len(data.users) == 2
        assert handler.calls == 2
        assert recorded_sleeps == [2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_raises_rate_limit_error_with_delay(self, mock_client, recorded_sleeps):
        handler = CountingHandler(httpx.Response(429, headers={"Retry-After": "7"}))
        async with mock_client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await fetch_json(URL, TopPlayersResponse, max_retries=3, client=client)

        assert exc_info.value.retry_after == 7.0
        assert handler.calls == 4
        # Rate-limit waits do not grow exponentially
        assert recorded_sleeps == [7.0, 7.0, 7.0]

    @pytest.mark.asyncio
    async def test_missing_header_uses_base_delay(self, mock_client, recorded_sleeps):
        handler = CountingHandler(httpx.Response(429))
        async with mock_client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await fetch_json(URL, TopPlayersResponse, max_retries=2, base_delay=0.5, client=client)

        assert exc_info.value.retry_after == 0.5
        assert handler.calls == 3
        assert recorded_sleeps == [0.5, 0.5]


class TestTransportFailures:
    """Transport failures back off exponentially with jitter."""

    @pytest.mark.asyncio
    async def test_retries_then_raises_network_error(self, mock_client, recorded_sleeps):
        cause = httpx.ConnectError("connection refused")
        handler = CountingHandler(cause)
        async with mock_client(handler) as client:
            with pytest.raises(NetworkError) as exc_info:
                await fetch_json(URL, TopPlayersResponse, max_retries=3, base_delay=1.0, client=client)

        assert handler.calls == 4
        assert exc_info.value.cause is cause
        assert "after 4 attempts" in exc_info.value.message

        assert len(recorded_sleeps) == 3
        first, second, third = recorded_sleeps
        assert 1.0 <= first <= 2.0
        assert 2.0 <= second <= 3.0
        assert 4.0 <= third <= 5.0
        assert first <= second <= third

    @pytest.mark.asyncio
    async def test_backoff_is_capped_at_ten_seconds(self, mock_client, recorded_sleeps):
        handler = CountingHandler(httpx.ConnectTimeout("timed out"))
        async with mock_client(handler) as client:
            with pytest.raises(NetworkError):
                await fetch_json(URL, TopPlayersResponse, max_retries=3, base_delay=4.0, client=client)

        assert 4.0 <= recorded_sleeps[0] <= 5.0
        assert 8.0 <= recorded_sleeps[1] <= 9.0
        assert recorded_sleeps[2] == 10.0
        assert all(delay <= 10.0 for delay in recorded_sleeps)

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, mock_client, recorded_sleeps):
        handler = CountingHandler(httpx.ReadTimeout("slow"), top_players_ok())
        async with mock_client(handler) as client:
            data = await fetch_json(URL, TopPlayersResponse, client=client)

        assert len(data.users) == 2
        assert handler.calls == 2
        assert len(recorded_sleeps) == 1

    @pytest.mark.asyncio
    async def test_malformed_json_is_treated_as_transient(self, mock_client, recorded_sleeps):
        handler = CountingHandler(httpx.Response(200, content=b"<html>oops</html>"))
        async with mock_client(handler) as client:
            with pytest.raises(NetworkError) as exc_info:
                await fetch_json(URL, TopPlayersResponse, max_retries=1, client=client)

        assert handler.calls == 2
        assert isinstance(exc_info.value.cause, ValueError)

    @pytest.mark.asyncio
    async def test_zero_retries_makes_a_single_attempt(self, mock_client, recorded_sleeps):
        handler = CountingHandler(httpx.ConnectError("down"))
        async with mock_client(handler) as client:
            with pytest.raises(NetworkError):
                await fetch_json(URL, TopPlayersResponse, max_retries=0, client=client)

        assert handler.calls == 1
        assert recorded_sleeps == []

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_retried_as_network_error(self, mock_client, recorded_sleeps):
        cause = OSError("socket reset")
        handler = CountingHandler(cause)
        async with mock_client(handler) as client:
            with pytest.raises(NetworkError) as exc_info:
                await fetch_json(URL, TopPlayersResponse, max_retries=3, client=client)

        assert handler.calls == 4
        assert exc_info.value.cause is cause
        assert len(recorded_sleeps) == 3


class TestMetrics:
    """Attempts and failures are counted."""

    @pytest.mark.asyncio
    async def test_counts_attempts_and_failures(self, mock_client, recorded_sleeps):
        metrics.reset()
        handler = CountingHandler(httpx.ConnectError("down"))
        async with mock_client(handler) as client:
            with pytest.raises(NetworkError):
                await fetch_json(URL, TopPlayersResponse, max_retries=2, client=client)

        assert metrics.get_counter("http.attempts") == 3
        assert metrics.get_counter("http.retries", tags={"kind": "network"}) == 2
        assert metrics.get_counter("http.failures", tags={"kind": "network"}) == 1
