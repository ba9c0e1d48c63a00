"""
Pytest fixtures for Wellness Engine tests.
"""
import sys
import pytest
from datetime import date, timedelta
from pathlib import Path
from dotenv import load_dotenv

# Ensure src/ is on sys.path so tests can import wellness_engine without installing it.
ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Load environment variables
load_dotenv()

from wellness_engine.config import get_settings  # noqa: E402
from wellness_engine.models import DailyMetricRecord  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    """Rebuild settings for every test so env overrides do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_record():
    """
    Factory fixture building a DailyMetricRecord.

    Accepts a date (or ISO string) plus any snake_case metric values.
    """

    def _make(day, **metrics) -> DailyMetricRecord:
        return DailyMetricRecord(date=day, **metrics)

    return _make


@pytest.fixture
def daily_series(make_record):
    """
    Factory fixture building consecutive daily records.

    Takes a start date and a list of per-day metric dicts (None for a day
    with no metrics at all) and returns records oldest first.
    """

    def _series(start: date, days: list) -> list:
        return [
            make_record(start + timedelta(days=offset), **(metrics or {}))
            for offset, metrics in enumerate(days)
        ]

    return _series


@pytest.fixture
def optimal_sleep_night():
    """Stage data for an eight-hour night with ideal stage distribution."""
    return {
        "sleep_duration": 480,
        "deep_sleep": 90,
        "rem_sleep": 110,
        "light_sleep": 280,
        "wake_events": 0,
    }
