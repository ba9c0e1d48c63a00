"""
Source Priority.

Decides, field by field, whether an incoming value may replace a stored one.

Default hierarchy: manual > RENPHO / Health Connect > Google Fit (gap filler
only) > Mi Fitness. For sleep duration Google Fit ranks above the primary
sources. A stored value with no recorded source is treated as primary data.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .models import METRIC_FIELDS, DailyMetricRecord, DataSource, FieldProvenance

logger = logging.getLogger(__name__)

# Same-priority primary sources need this much newer data to overwrite
PRIMARY_OVERWRITE_HOURS = 2.0


class SourcePriority(float, Enum):
    """Lower value wins."""

    MANUAL = 1.0
    SUPER_PRIMARY = 1.5
    PRIMARY = 2.0
    SECONDARY = 3.0
    TERTIARY = 4.0


SOURCE_PRIORITY: Dict[DataSource, SourcePriority] = {
    DataSource.MANUAL: SourcePriority.MANUAL,
    DataSource.RENPHO: SourcePriority.PRIMARY,
    DataSource.HEALTH_CONNECT: SourcePriority.PRIMARY,
    DataSource.GOOGLE_FIT: SourcePriority.SECONDARY,
    DataSource.MI_FITNESS: SourcePriority.TERTIARY,
}

FIELD_PRIORITY_OVERRIDES: Dict[Tuple[str, DataSource], SourcePriority] = {
    ("sleep_duration", DataSource.GOOGLE_FIT): SourcePriority.SUPER_PRIMARY,
}


@dataclass(frozen=True)
class OverwriteDecision:
    """Whether a field write is allowed, and why."""

    allowed: bool
    reason: str
    existing_source: Optional[DataSource] = None


def source_priority(source: DataSource, field_name: Optional[str] = None) -> SourcePriority:
    """Priority of ``source``, with per-field overrides applied."""
    if field_name is not None:
        override = FIELD_PRIORITY_OVERRIDES.get((field_name, source))
        if override is not None:
            return override
    return SOURCE_PRIORITY.get(source, SourcePriority.TERTIARY)


def is_meaningful(value: Optional[float]) -> bool:
    """Null and zero readings never overwrite anything."""
    return value is not None and value != 0


def _is_newer(new_time: Optional[datetime], old_time: Optional[datetime]) -> bool:
    if new_time is None or old_time is None:
        return False
    return new_time > old_time


def should_allow_overwrite(
    field_name: str,
    existing_value: Optional[float],
    existing: Optional[FieldProvenance],
    new_source: DataSource,
    new_recorded_at: Optional[datetime] = None,
) -> OverwriteDecision:
    """
    Apply the source priority rules to one field.

    Args:
        field_name: snake_case metric name
        existing_value: Currently stored value
        existing: Provenance of the stored value, if known
        new_source: Source of the incoming value
        new_recorded_at: When the incoming value was created

    Returns:
        OverwriteDecision
    """
    if existing_value is None:
        return OverwriteDecision(True, "No existing data for this field")

    new_priority = source_priority(new_source, field_name)

    if existing is None:
        # Unknown origin is protected as if it were primary data
        if new_priority <= SourcePriority.PRIMARY:
            return OverwriteDecision(True, f"{new_source.value} may overwrite data of unknown source")
        return OverwriteDecision(False, f"{new_source.value} blocked from overwriting data of unknown source")

    old_source = existing.source
    old_priority = source_priority(old_source, field_name)

    if new_priority is SourcePriority.MANUAL and old_priority is not SourcePriority.MANUAL:
        return OverwriteDecision(True, f"Manual entry overrides {old_source.value}", old_source)

    if old_priority is SourcePriority.MANUAL and new_priority is not SourcePriority.MANUAL:
        return OverwriteDecision(False, f"Manual entry cannot be overwritten by {new_source.value}", old_source)

    if new_priority == old_priority:
        if new_source == old_source and (new_recorded_at is None or existing.recorded_at is None):
            return OverwriteDecision(True, f"Same source upsert: {new_source.value}", old_source)

        if new_priority is SourcePriority.PRIMARY:
            if new_source == old_source:
                return OverwriteDecision(True, f"Same source upsert: {new_source.value}", old_source)
            newer = _is_newer(new_recorded_at, existing.recorded_at)
            gap_hours = (
                abs((new_recorded_at - existing.recorded_at).total_seconds()) / 3600 if newer else 0.0
            )
            allowed = newer and gap_hours > PRIMARY_OVERWRITE_HOURS
            reason = (
                f"{new_source.value} data created {gap_hours:.1f}h after {old_source.value}"
                if allowed
                else f"{old_source.value} data too recent to overwrite with {new_source.value}"
            )
            return OverwriteDecision(allowed, reason, old_source)

        allowed = _is_newer(new_recorded_at, existing.recorded_at)
        reason = (
            f"Newer data from same priority source {new_source.value}"
            if allowed
            else f"Existing {old_source.value} data is newer"
        )
        return OverwriteDecision(allowed, reason, old_source)

    if new_priority < old_priority:
        return OverwriteDecision(
            True, f"{new_source.value} overrides lower priority {old_source.value}", old_source
        )

    return OverwriteDecision(
        False, f"{new_source.value} cannot overwrite higher priority {old_source.value}", old_source
    )


def merge_record(
    current: Optional[DailyMetricRecord],
    incoming: DailyMetricRecord,
    source: Optional[DataSource] = None,
    recorded_at: Optional[datetime] = None,
) -> Tuple[DailyMetricRecord, List[str]]:
    """
    Merge ``incoming`` into ``current`` one field at a time.

    Null and zero incoming values are ignored. Without a source every other
    value is written and its stored provenance dropped. With a source each
    field goes through should_allow_overwrite and written fields record the
    new provenance.

    Returns:
        (merged record, names of fields kept because of source priority)
    """
    base = current or DailyMetricRecord(date=incoming.date)
    metadata = dict(base.field_metadata)
    changes = {}
    blocked: List[str] = []

    for name in METRIC_FIELDS:
        value = getattr(incoming, name)
        if not is_meaningful(value):
            continue

        if source is None:
            changes[name] = value
            metadata.pop(name, None)
            continue

        decision = should_allow_overwrite(name, getattr(base, name), metadata.get(name), source, recorded_at)
        if decision.allowed:
            changes[name] = value
            metadata[name] = FieldProvenance(source=source, recorded_at=recorded_at)
        else:
            blocked.append(name)
            logger.debug(f"[PRIORITY] {incoming.date} {name}: {decision.reason}")

    changes["field_metadata"] = metadata
    return base.model_copy(update=changes), blocked
