"""Async HTTP client with retry logic and response-schema validation."""

import asyncio
from dataclasses import replace
from functools import lru_cache
from typing import Any, Optional, TypeVar

import httpx
import pydantic
from pydantic import TypeAdapter
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from .config import get_settings
from .errors import (
    APIError,
    LichessScraperError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from .lichess_logging import get_logger, metrics
from .resilience import RetryConfig, parse_retry_after, wait_rate_limit_or_backoff

logger = get_logger(__name__)

T = TypeVar("T")

# Global HTTP client instance
_client: Optional[httpx.AsyncClient] = None


def get_client() -> httpx.AsyncClient:
    """Get the global HTTP client instance."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.TIMEOUT_S, connect=10.0),
            headers={
                'User-Agent': settings.USER_AGENT,
                'Accept': 'application/json',
            },
            follow_redirects=True,
            limits=httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20,
            ),
        )
        logger.info("HTTP client initialized")

    return _client


async def close_client() -> None:
    """Close the global HTTP client."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("HTTP client closed")


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


@lru_cache(maxsize=None)
def _adapter_for(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def _log_before_sleep(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception()
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    metrics.increment("http.retries", tags={"kind": error.kind.value})
    if isinstance(error, RateLimitError):
        logger.warning("Rate limited, retrying",
                       url=error.endpoint,
                       attempt=retry_state.attempt_number,
                       retry_in_s=round(delay, 3))
    else:
        logger.warning("Request attempt failed, retrying",
                       attempt=retry_state.attempt_number,
                       retry_in_s=round(delay, 3),
                       error=str(error))


async def _fetch_once(
    client: httpx.AsyncClient,
    url: str,
    adapter: TypeAdapter,
    base_delay: float,
) -> Any:
    """Perform a single GET attempt and classify its outcome."""
    metrics.increment("http.attempts")
    logger.debug("Making HTTP request", url=url)

    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        raise NetworkError(f"Request to {url} failed: {e!r}", cause=e) from e
    except Exception as e:
        raise NetworkError(f"Request to {url} failed unexpectedly: {e!r}", cause=e) from e

    logger.debug("HTTP response received", url=url, status_code=response.status_code)

    if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
        retry_after = parse_retry_after(response.headers.get('Retry-After'))
        raise RateLimitError(url, retry_after if retry_after is not None else base_delay)

    if not response.is_success:
        logger.warning("HTTP error response",
                       url=url,
                       status_code=response.status_code,
                       response_text=response.text[:500])
        raise APIError(response.status_code, url, response.reason_phrase)

    try:
        payload = response.json()
    except ValueError as e:
        raise NetworkError(f"Malformed JSON from {url}", cause=e) from e

    try:
        return adapter.validate_python(payload)
    except pydantic.ValidationError as e:
        raise ValidationError(url, payload, e.errors()) from e


async def fetch_json(
    url: str,
    schema: Any,
    max_retries: Optional[int] = None,
    base_delay: Optional[float] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Any:
    """GET ``url`` and return its JSON body validated against ``schema``.

    Rate-limited responses are retried after the server's Retry-After delay
    (or ``base_delay``); transport and decoding failures are retried with
    exponential backoff plus jitter. Other HTTP errors and schema mismatches
    fail immediately.

    Args:
        url: URL to request
        schema: Anything pydantic's TypeAdapter accepts (model, List[model], ...)
        max_retries: Retries after the first attempt (defaults to RETRY_MAX)
        base_delay: Base delay in seconds (defaults to RETRY_BASE_DELAY_S)
        client: HTTP client to use instead of the global one

    Returns:
        The validated payload

    Raises:
        APIError: non-2xx, non-429 response
        RateLimitError: 429 on the final attempt
        ValidationError: payload does not match ``schema``
        NetworkError: transport or decoding failure on every attempt
    """
    config = RetryConfig.from_settings()
    if max_retries is not None:
        config = replace(config, max_retries=max_retries)
    if base_delay is not None:
        config = replace(config, base_delay=base_delay)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_rate_limit_or_backoff(config),
        retry=retry_if_exception_type((RateLimitError, NetworkError)),
        before_sleep=_log_before_sleep,
        sleep=_sleep,
        reraise=True,
    )

    try:
        return await retrying(
            _fetch_once, client or get_client(), url, _adapter_for(schema), config.base_delay
        )
    except NetworkError as e:
        metrics.increment("http.failures", tags={"kind": e.kind.value})
        logger.error("Request failed after all retry attempts",
                     url=url, attempts=config.max_attempts, error=str(e))
        raise NetworkError(
            f"Failed to fetch {url} after {config.max_attempts} attempts", cause=e.cause
        ) from e
    except LichessScraperError as e:
        metrics.increment("http.failures", tags={"kind": e.kind.value})
        logger.error("Request failed", url=url, **e.to_dict())
        raise
