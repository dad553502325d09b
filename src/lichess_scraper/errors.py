"""Error taxonomy shared by the fetcher, scheduler callers and the CLI.

Every failure the scraper surfaces is a ``LichessScraperError`` carrying an
explicit ``kind`` discriminant, so callers can dispatch on ``error.kind``
instead of chains of ``isinstance`` checks.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    """Closed set of failure causes."""
    API = "api"
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"


class LichessScraperError(Exception):
    """Base class for all typed scraper errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Serializable summary used in logs and pipeline results."""
        return {"kind": self.kind.value, "message": self.message}


class APIError(LichessScraperError):
    """Non-2xx, non-429 response. Never retried."""

    kind = ErrorKind.API

    def __init__(self, status_code: int, endpoint: str, reason: str = "") -> None:
        message = f"HTTP {status_code}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(f"{message} ({endpoint})")
        self.status_code = status_code
        self.endpoint = endpoint

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(status_code=self.status_code, endpoint=self.endpoint)
        return data


class NetworkError(LichessScraperError):
    """Transport failure, timeout or undecodable body, after retries ran out."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["cause"] = repr(self.cause) if self.cause is not None else None
        return data


class RateLimitError(LichessScraperError):
    """429 on the final permitted attempt.

    ``retry_after`` is the server's suggested wait in seconds.
    """

    kind = ErrorKind.RATE_LIMIT

    def __init__(self, endpoint: str, retry_after: float) -> None:
        super().__init__(f"Rate limit exceeded for {endpoint}")
        self.endpoint = endpoint
        self.retry_after = retry_after

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(endpoint=self.endpoint, retry_after=self.retry_after)
        return data


class ValidationError(LichessScraperError):
    """Decoded payload does not match the expected schema. Never retried."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        endpoint: str,
        payload: Any,
        issues: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        issues = issues or []
        summary = "; ".join(
            f"{'.'.join(str(p) for p in issue.get('loc', ()))}: {issue.get('msg', '')}"
            for issue in issues[:3]
        )
        message = f"Invalid response format from {endpoint}"
        if summary:
            message = f"{message}: {summary}"
        super().__init__(message)
        self.endpoint = endpoint
        self.payload = payload
        self.issues = issues

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(endpoint=self.endpoint, issue_count=len(self.issues))
        return data


# Process exit codes per error kind; 1 is reserved for unexpected failures.
EXIT_CODES: Dict[ErrorKind, int] = {
    ErrorKind.API: 2,
    ErrorKind.NETWORK: 3,
    ErrorKind.RATE_LIMIT: 4,
    ErrorKind.VALIDATION: 5,
}

UNEXPECTED_EXIT_CODE = 1


def exit_code_for(error: BaseException) -> int:
    """Map any exception to the CLI exit code for its kind."""
    if isinstance(error, LichessScraperError):
        return EXIT_CODES[error.kind]
    return UNEXPECTED_EXIT_CODE


def describe_error(error: LichessScraperError) -> str:
    """One-line human readable description, specialised per kind."""
    if error.kind is ErrorKind.API:
        return f"Lichess API error ({error.status_code}): {error.message}"
    if error.kind is ErrorKind.NETWORK:
        if error.cause is not None:
            return f"Network error: {error.message} (cause: {error.cause})"
        return f"Network error: {error.message}"
    if error.kind is ErrorKind.RATE_LIMIT:
        return f"Rate limit exceeded: {error.message}. Retry after {error.retry_after:g}s"
    if error.kind is ErrorKind.VALIDATION:
        return f"Validation error: {error.message}"
    raise ValueError(f"Unhandled error kind: {error.kind}")
