"""Pydantic models for engine inputs."""
from .provenance import DataSource, FieldProvenance
from .records import (
    DailyMetricRecord,
    ManualHeartRateEntry,
    METRIC_FIELDS,
    calendar_date,
    coerce_record,
    coerce_records,
    metric_field_name,
)
from .profile import UserProfile
from .lock import DataLockState

__all__ = [
    "DataSource",
    "FieldProvenance",
    "DailyMetricRecord",
    "ManualHeartRateEntry",
    "METRIC_FIELDS",
    "calendar_date",
    "coerce_record",
    "coerce_records",
    "metric_field_name",
    "UserProfile",
    "DataLockState",
]
