"""Test configuration and fixtures for the Lichess scraper test suite."""

import os
import sys
import pathlib

# Force test-safe defaults before any other imports
os.environ.setdefault('ENV', 'TEST')
os.environ.setdefault('LOG_LEVEL', 'WARNING')

# Ensure tests can import from src/
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from typing import List

import httpx
import pytest

from lichess_scraper import http as http_module
from lichess_scraper.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so monkeypatched env vars take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def recorded_sleeps(monkeypatch) -> List[float]:
    """Replace the fetcher's sleep with one that records requested delays."""
    sleeps: List[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    monkeypatch.setattr(http_module, "_sleep", fake_sleep)
    return sleeps


@pytest.fixture
def mock_client():
    """Factory for an AsyncClient whose responses come from ``handler``."""
    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return _make

