"""
Record Selection.

Resolves the record and per-field values shown for a requested day.
Inputs may be unsorted, contain duplicate dates (the later entry in the
caller's ordering wins) or have gaps. Nothing here mutates its inputs.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Union

from .models import DailyMetricRecord, calendar_date, coerce_records, metric_field_name
from .models.records import DateLike

logger = logging.getLogger(__name__)

RecordInput = Union[DailyMetricRecord, dict]


@dataclass(frozen=True)
class FieldResolution:
    """Value chosen for one field and where it came from."""

    field: str
    value: Optional[float]
    is_fallback: bool = False
    fallback_date: Optional[date] = None

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "value": self.value,
            "isFallback": self.is_fallback,
            "fallbackDate": self.fallback_date.isoformat() if self.fallback_date else None,
        }


def index_by_date(records: Iterable[RecordInput]) -> Dict[date, DailyMetricRecord]:
    """Map each date to its record; later duplicates replace earlier ones."""
    by_date: Dict[date, DailyMetricRecord] = {}
    for record in coerce_records(records):
        by_date[record.date] = record
    return by_date


def chronological(records: Iterable[RecordInput]) -> List[DailyMetricRecord]:
    """De-duplicated records, oldest first."""
    by_date = index_by_date(records)
    return [by_date[day] for day in sorted(by_date)]


def resolve(target: DateLike, records: Iterable[RecordInput]) -> Optional[DailyMetricRecord]:
    """
    Find the record for ``target``.

    An exact date match wins. Otherwise the chronologically nearest record
    is returned, preferring the earlier one on a tie.

    Returns:
        The matching record, or None when there are no records
    """
    day = calendar_date(target)
    by_date = index_by_date(records)

    if day in by_date:
        return by_date[day]
    if not by_date:
        return None

    nearest = min(by_date, key=lambda d: (abs((d - day).days), d > day))
    logger.debug(f"[SELECTOR] No record for {day}, using nearest {nearest}")
    return by_date[nearest]


def _resolve_in_index(
    field: str,
    day: date,
    by_date: Dict[date, DailyMetricRecord],
    ordered_desc: List[date],
) -> FieldResolution:
    name = metric_field_name(field)

    exact = by_date.get(day)
    if exact is not None:
        value = getattr(exact, name)
        if value is not None:
            return FieldResolution(field=field, value=value)

    for candidate in ordered_desc:
        if candidate >= day:
            continue
        value = getattr(by_date[candidate], name)
        if value is not None:
            return FieldResolution(field=field, value=value, is_fallback=True, fallback_date=candidate)

    return FieldResolution(field=field, value=None)


def resolve_field(
    field: str,
    target: DateLike,
    records: Iterable[RecordInput],
) -> FieldResolution:
    """
    Resolve a single field for ``target`` with most-recent-prior fallback.

    If the record for ``target`` has a value it is returned as-is. Otherwise
    the newest earlier record holding a value supplies it, tagged with that
    record's date. Fallbacks never come from a date after ``target``.
    """
    day = calendar_date(target)
    by_date = index_by_date(records)
    return _resolve_in_index(field, day, by_date, sorted(by_date, reverse=True))


def resolve_fields(
    fields: Iterable[str],
    target: DateLike,
    records: Iterable[RecordInput],
) -> Dict[str, FieldResolution]:
    """Resolve several fields for one view; each may fall back independently."""
    day = calendar_date(target)
    by_date = index_by_date(records)
    ordered_desc = sorted(by_date, reverse=True)
    return {field: _resolve_in_index(field, day, by_date, ordered_desc) for field in fields}
