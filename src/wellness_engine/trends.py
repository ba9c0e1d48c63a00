"""
Trend Reconciliation.

Builds fixed-length chart series from sparse daily records and classifies
how a metric moved over a period. Series are forward-filled only: a gap is
never filled from a later value, and the days before the first known value
are left out.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .config import get_settings
from .models import DailyMetricRecord, calendar_date, metric_field_name
from .models.records import DateLike
from .selector import RecordInput, chronological

logger = logging.getLogger(__name__)


class Polarity(str, Enum):
    """Which direction of change counts as better for a metric."""

    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"
    NEUTRAL = "neutral"


class TrendDirection(str, Enum):
    """Direction label shown next to a trend."""

    IMPROVING = "improving"
    DECLINING = "declining"
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class TrendPeriod(int, Enum):
    """Summary periods, measured in daily records."""

    WEEK = 7
    MONTH = 30
    QUARTER = 90

    @classmethod
    def from_label(cls, label: str) -> "TrendPeriod":
        """Parse a "7D" / "30D" / "90D" period selector."""
        days = int(label.strip().upper().rstrip("D"))
        return cls(days)


FIELD_POLARITY: Dict[str, Polarity] = {
    "heart_rate_variability": Polarity.HIGHER_IS_BETTER,
    "muscle_mass": Polarity.HIGHER_IS_BETTER,
    "sleep_score": Polarity.HIGHER_IS_BETTER,
    "sleep_duration": Polarity.HIGHER_IS_BETTER,
    "deep_sleep": Polarity.HIGHER_IS_BETTER,
    "rem_sleep": Polarity.HIGHER_IS_BETTER,
    "recovery_score": Polarity.HIGHER_IS_BETTER,
    "readiness_score": Polarity.HIGHER_IS_BETTER,
    "vo2_max": Polarity.HIGHER_IS_BETTER,
    "steps": Polarity.HIGHER_IS_BETTER,
    "oxygen_saturation": Polarity.HIGHER_IS_BETTER,
    "body_fat_percentage": Polarity.LOWER_IS_BETTER,
    "weight": Polarity.LOWER_IS_BETTER,
    "metabolic_age": Polarity.LOWER_IS_BETTER,
    "resting_heart_rate": Polarity.LOWER_IS_BETTER,
    "visceral_fat": Polarity.LOWER_IS_BETTER,
    "subcutaneous_fat": Polarity.LOWER_IS_BETTER,
    "stress_level": Polarity.LOWER_IS_BETTER,
    "bmi": Polarity.LOWER_IS_BETTER,
    "wake_events": Polarity.LOWER_IS_BETTER,
    "strain_score": Polarity.NEUTRAL,
    "calories_burned": Polarity.NEUTRAL,
    "active_calories": Polarity.NEUTRAL,
    "distance": Polarity.NEUTRAL,
    "bmr": Polarity.NEUTRAL,
}


def polarity_for(field_name: str, polarity: Optional[Polarity] = None) -> Polarity:
    """Explicit polarity if given, else the table entry for the field."""
    if polarity is not None:
        return polarity
    name = metric_field_name(field_name)
    try:
        return FIELD_POLARITY[name]
    except KeyError:
        raise ValueError(f"No trend polarity defined for {field_name}") from None


@dataclass(frozen=True)
class TrendClassification:
    """Change between two points and its direction label."""

    change: Optional[float]
    percent_change: Optional[float]
    direction: TrendDirection
    has_data: bool


@dataclass
class TrendResult:
    """Trend of one metric over one period."""

    field: str
    period_days: int
    ordered_values: List[float] = field(default_factory=list)
    latest_value: Optional[float] = None
    latest_date: Optional[date] = None
    oldest_value: Optional[float] = None
    oldest_date: Optional[date] = None
    change: Optional[float] = None
    percent_change: Optional[float] = None
    direction: TrendDirection = TrendDirection.STABLE
    has_data: bool = False
    extended_search: bool = False  # oldest value came from beyond the window

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "field": self.field,
            "periodDays": self.period_days,
            "orderedValues": list(self.ordered_values),
            "latestValue": self.latest_value,
            "latestDate": self.latest_date.isoformat() if self.latest_date else None,
            "oldestValue": self.oldest_value,
            "oldestDate": self.oldest_date.isoformat() if self.oldest_date else None,
            "change": self.change,
            "percentChange": self.percent_change,
            "direction": self.direction.value,
            "hasData": self.has_data,
            "extendedSearch": self.extended_search,
        }


def forward_fill(values: Iterable[Optional[float]]) -> List[float]:
    """Carry the last known value over gaps, dropping the leading gap."""
    filled: List[float] = []
    last_value: Optional[float] = None
    for value in values:
        if value is not None:
            last_value = value
        if last_value is not None:
            filled.append(last_value)
    return filled


def build_trend(
    field_name: str,
    records: Iterable[RecordInput],
    window_size: int,
) -> List[float]:
    """
    Chart series for the most recent ``window_size`` records, oldest first.

    The result never has more than ``window_size`` points and every point is
    either a recorded value or a copy of an earlier one.
    """
    if window_size <= 0:
        return []
    name = metric_field_name(field_name)
    window = chronological(records)[-window_size:]
    return forward_fill(getattr(record, name) for record in window)


def classify_trend(
    values: Sequence[float],
    polarity: Polarity,
    lookback: Optional[int] = None,
    threshold_pct: Optional[float] = None,
) -> TrendClassification:
    """
    Compare the latest value with the one ``lookback`` points earlier.

    Args:
        values: Chronological series (e.g. from build_trend)
        polarity: Whether higher values are better, worse or neither
        lookback: Points to look back; defaults to the first point
        threshold_pct: Minimum absolute percent change for a direction

    Returns:
        TrendClassification; has_data is False with fewer than two points
    """
    if threshold_pct is None:
        threshold_pct = get_settings().trend_change_threshold_pct

    if len(values) < 2:
        return TrendClassification(change=None, percent_change=None, direction=TrendDirection.STABLE, has_data=False)

    latest = values[-1]
    if lookback is None:
        earlier = values[0]
    else:
        earlier = values[max(0, len(values) - 1 - lookback)]

    change = latest - earlier
    if change == 0:
        return TrendClassification(change=0.0, percent_change=0.0, direction=TrendDirection.STABLE, has_data=True)

    percent_change = abs(change / earlier * 100) if earlier != 0 else float("inf")
    direction = TrendDirection.STABLE
    if percent_change > threshold_pct:
        direction = _direction(change, polarity)

    return TrendClassification(change=change, percent_change=percent_change, direction=direction, has_data=True)


def _direction(change: float, polarity: Polarity) -> TrendDirection:
    rising = change > 0
    if polarity is Polarity.HIGHER_IS_BETTER:
        return TrendDirection.IMPROVING if rising else TrendDirection.DECLINING
    if polarity is Polarity.LOWER_IS_BETTER:
        return TrendDirection.INCREASING if rising else TrendDirection.IMPROVING
    return TrendDirection.INCREASING if rising else TrendDirection.DECREASING


def analyze_trend(
    field_name: str,
    records: Iterable[RecordInput],
    period: Union[TrendPeriod, int],
    as_of: Optional[DateLike] = None,
    polarity: Optional[Polarity] = None,
    extended_search: Optional[int] = None,
) -> TrendResult:
    """
    Trend of ``field_name`` over the ``period`` most recent records.

    The latest value is the newest valid value in the window and the oldest
    is the oldest valid value in it. When the window holds fewer than two
    valid values, the search for the oldest continues through up to
    ``extended_search`` older records so sparse series are not reported as
    having no data.
    """
    settings = get_settings()
    if extended_search is None:
        extended_search = settings.trend_extended_search

    period_days = int(period)
    name = metric_field_name(field_name)
    resolved_polarity = polarity_for(field_name, polarity)

    ordered = chronological(records)
    if as_of is not None:
        cutoff = calendar_date(as_of)
        ordered = [r for r in ordered if r.date <= cutoff]

    newest_first: List[DailyMetricRecord] = list(reversed(ordered))
    window = newest_first[:period_days]
    beyond = newest_first[period_days:period_days + extended_search]

    result = TrendResult(
        field=field_name,
        period_days=period_days,
        ordered_values=forward_fill(getattr(r, name) for r in reversed(window)),
    )

    valid = [r for r in window if getattr(r, name) is not None]
    if not valid:
        return result

    latest = valid[0]
    result.latest_value = getattr(latest, name)
    result.latest_date = latest.date

    # A lone value in the window is compared with the nearest older one
    # rather than with itself, so sparse series still report a direction.
    # ordered_values keeps only the window.
    oldest: Optional[DailyMetricRecord] = valid[-1] if len(valid) >= 2 else None
    if oldest is None:
        oldest = next((r for r in beyond if getattr(r, name) is not None), None)
        if oldest is not None:
            result.extended_search = True
            logger.debug(
                f"[TRENDS] {field_name}: oldest value for {period_days}-day window "
                f"found outside it on {oldest.date}"
            )

    if oldest is None:
        return result

    result.oldest_value = getattr(oldest, name)
    result.oldest_date = oldest.date

    classification = classify_trend([result.oldest_value, result.latest_value], resolved_polarity)
    result.change = classification.change
    result.percent_change = classification.percent_change
    result.direction = classification.direction
    result.has_data = classification.has_data
    return result
