"""
Wellness Engine.

Health metric scoring and time-series reconciliation for a personal
fitness dashboard: composite scores from daily biometric records,
per-field current values with historical fallback, forward-filled trends,
the historical data lock and source-priority import merging.
"""

from .models import (
    DailyMetricRecord,
    DataLockState,
    DataSource,
    FieldProvenance,
    ManualHeartRateEntry,
    UserProfile,
)
from .selector import FieldResolution, resolve, resolve_field, resolve_fields
from .trends import (
    FIELD_POLARITY,
    Polarity,
    TrendDirection,
    TrendPeriod,
    TrendResult,
    analyze_trend,
    build_trend,
    classify_trend,
)
from .data_lock import (
    DataLockGuard,
    DataLockRegistry,
    ImportResult,
    LockResult,
    apply_import,
)
from .priority import SourcePriority, should_allow_overwrite, source_priority
from .engine import DailyScores, compute_daily_scores, compute_sleep_debt, compute_trends

__all__ = [
    "DailyMetricRecord",
    "DataLockState",
    "DataSource",
    "FieldProvenance",
    "ManualHeartRateEntry",
    "UserProfile",
    "FieldResolution",
    "resolve",
    "resolve_field",
    "resolve_fields",
    "FIELD_POLARITY",
    "Polarity",
    "TrendDirection",
    "TrendPeriod",
    "TrendResult",
    "analyze_trend",
    "build_trend",
    "classify_trend",
    "DataLockGuard",
    "DataLockRegistry",
    "ImportResult",
    "LockResult",
    "apply_import",
    "DailyScores",
    "compute_daily_scores",
    "compute_sleep_debt",
    "SourcePriority",
    "should_allow_overwrite",
    "source_priority",
    "compute_trends",
]
