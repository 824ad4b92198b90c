"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports the settings module,
so the global settings reflect the test configuration.
"""

import os

import pytest

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_QUOTA_DAILY_LIMIT", "10")
os.environ.setdefault("APP_QUOTA_TIMEZONE", "UTC")


# 2024-01-15T12:00:00Z
NOON_UTC = 1_705_320_000.0
DAY_SECONDS = 86_400


class FakeClock:
    """Deterministic UNIX-time source for quota tests."""

    def __init__(self, start: float = NOON_UTC) -> None:
        self.current = start
        self.calls = 0

    def __call__(self) -> float:
        self.calls += 1
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds

    def set(self, timestamp: float) -> None:
        self.current = timestamp


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
