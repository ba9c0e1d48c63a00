"""Daily biometric record models."""
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .provenance import DataSource, FieldProvenance

DateLike = Union[date, datetime, str]


def calendar_date(value: DateLike) -> date:
    """
    Normalize a date-like value to a calendar date.

    The time-of-day portion is dropped without any timezone conversion, so
    "2025-01-15T23:30:00Z" stays on the 15th.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Cannot interpret {value!r} as a calendar date")


class DailyMetricRecord(BaseModel):
    """One day of biometric data for a user. Every metric is optional."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        frozen=True,
    )

    date: date

    # Sleep
    sleep_score: Optional[float] = None
    sleep_duration: Optional[float] = None  # minutes
    deep_sleep: Optional[float] = None
    rem_sleep: Optional[float] = None
    light_sleep: Optional[float] = None
    wake_events: Optional[float] = None
    sleep_efficiency: Optional[float] = None

    # Recovery / strain
    recovery_score: Optional[float] = None
    strain_score: Optional[float] = None
    readiness_score: Optional[float] = None
    resting_heart_rate: Optional[float] = None
    heart_rate_variability: Optional[float] = None  # ms

    # Body composition
    weight: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    muscle_mass: Optional[float] = None
    visceral_fat: Optional[float] = None
    subcutaneous_fat: Optional[float] = None
    bmr: Optional[float] = None
    bmi: Optional[float] = None
    metabolic_age: Optional[float] = None

    # Activity
    steps: Optional[float] = None
    distance: Optional[float] = None
    calories_burned: Optional[float] = None
    active_calories: Optional[float] = None
    vo2_max: Optional[float] = None

    # Vitals
    blood_pressure_systolic: Optional[float] = None
    blood_pressure_diastolic: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    stress_level: Optional[float] = None

    # Import metadata: origin of an incoming record, and per-field origin of
    # a stored one (keyed by snake_case field name)
    source: Optional[DataSource] = None
    recorded_at: Optional[datetime] = None
    field_metadata: Dict[str, FieldProvenance] = Field(default_factory=dict)

    @field_validator("date", mode="before")
    @classmethod
    def _strip_time(cls, value: Any) -> date:
        return calendar_date(value)

    def metric(self, field: str) -> Optional[float]:
        """Return the value of a metric by snake_case or camelCase name."""
        return getattr(self, metric_field_name(field))


class ManualHeartRateEntry(BaseModel):
    """User-entered heart rate values for a single day."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, frozen=True)

    date: date
    resting_hr: Optional[float] = Field(default=None, alias="restingHR")
    min_hr: Optional[float] = Field(default=None, alias="minHR")
    max_hr: Optional[float] = Field(default=None, alias="maxHR")
    avg_hr_sleeping: Optional[float] = Field(default=None, alias="avgHRSleeping")
    avg_hr_awake: Optional[float] = Field(default=None, alias="avgHRAwake")
    hrv: Optional[float] = None
    calories: Optional[float] = None

    @field_validator("date", mode="before")
    @classmethod
    def _strip_time(cls, value: Any) -> date:
        return calendar_date(value)

    def override(self, field: str) -> Optional[float]:
        """Value of a manual field, or None unless it is present and positive."""
        value = getattr(self, field)
        if value is not None and value > 0:
            return value
        return None


_NON_METRIC_FIELDS = {"date", "source", "recorded_at", "field_metadata"}

METRIC_FIELDS = tuple(name for name in DailyMetricRecord.model_fields if name not in _NON_METRIC_FIELDS)

_ALIASES = {
    to_camel(name): name for name in METRIC_FIELDS
}


def metric_field_name(field: str) -> str:
    """Map a camelCase or snake_case metric name to the model attribute."""
    if field in METRIC_FIELDS:
        return field
    try:
        return _ALIASES[field]
    except KeyError:
        raise ValueError(f"Unknown metric field: {field}") from None


def coerce_record(record: Union[DailyMetricRecord, dict]) -> DailyMetricRecord:
    """Validate a JSON-shaped dict into a record, passing models through."""
    if isinstance(record, DailyMetricRecord):
        return record
    return DailyMetricRecord.model_validate(record)


def coerce_records(records: Iterable[Union[DailyMetricRecord, dict]]) -> list[DailyMetricRecord]:
    return [coerce_record(r) for r in records]
