"""
Unit tests for source priority during imports.

These tests verify:
1. Manual entries outrank every device source and cannot be overwritten by them
2. Google Fit fills gaps only, except for sleep duration where it leads
3. Data without a recorded source is protected like primary data
4. Primary sources overwrite each other only with data more than two hours newer
5. Field-by-field merging ignores null and zero values and records provenance

Usage:
    pytest tests/test_priority.py -v
"""
from datetime import date, datetime, timedelta

import pytest

from wellness_engine.data_lock import DataLockGuard, apply_import
from wellness_engine.models import DailyMetricRecord, DataSource, FieldProvenance
from wellness_engine.priority import (
    SourcePriority,
    merge_record,
    should_allow_overwrite,
    source_priority,
)

DAY = date(2025, 3, 1)
MORNING = datetime(2025, 3, 1, 7, 0)


def stored(source, recorded_at=MORNING):
    return FieldProvenance(source=source, recorded_at=recorded_at)


# ============================================================================
# Priority table
# ============================================================================


class TestSourcePriority:
    """Test source ranks and per-field overrides."""

    @pytest.mark.parametrize("source,priority", [
        (DataSource.MANUAL, SourcePriority.MANUAL),
        (DataSource.RENPHO, SourcePriority.PRIMARY),
        (DataSource.HEALTH_CONNECT, SourcePriority.PRIMARY),
        (DataSource.GOOGLE_FIT, SourcePriority.SECONDARY),
        (DataSource.MI_FITNESS, SourcePriority.TERTIARY),
    ])
    def test_default_ranks(self, source, priority):
        assert source_priority(source) is priority

    def test_google_fit_leads_sleep_duration(self):
        assert source_priority(DataSource.GOOGLE_FIT, "sleep_duration") is SourcePriority.SUPER_PRIMARY
        assert source_priority(DataSource.GOOGLE_FIT, "steps") is SourcePriority.SECONDARY


# ============================================================================
# Overwrite decisions
# ============================================================================


class TestShouldAllowOverwrite:
    """Test single-field overwrite decisions."""

    def test_empty_field_accepts_anything(self):
        decision = should_allow_overwrite("steps", None, None, DataSource.MI_FITNESS)
        assert decision.allowed

    def test_manual_beats_device(self):
        decision = should_allow_overwrite(
            "weight", 80.0, stored(DataSource.HEALTH_CONNECT), DataSource.MANUAL
        )
        assert decision.allowed
        assert decision.existing_source is DataSource.HEALTH_CONNECT

    def test_device_cannot_overwrite_manual(self):
        decision = should_allow_overwrite(
            "weight", 80.0, stored(DataSource.MANUAL), DataSource.RENPHO, MORNING + timedelta(days=1)
        )
        assert not decision.allowed

    def test_google_fit_cannot_overwrite_primary(self):
        decision = should_allow_overwrite(
            "steps", 9000, stored(DataSource.HEALTH_CONNECT), DataSource.GOOGLE_FIT, MORNING + timedelta(hours=5)
        )
        assert not decision.allowed

    def test_google_fit_sleep_duration_beats_primary(self):
        decision = should_allow_overwrite(
            "sleep_duration", 420, stored(DataSource.HEALTH_CONNECT), DataSource.GOOGLE_FIT
        )
        assert decision.allowed

    def test_unknown_source_is_treated_as_primary(self):
        assert should_allow_overwrite("steps", 9000, None, DataSource.HEALTH_CONNECT).allowed
        assert should_allow_overwrite("steps", 9000, None, DataSource.MANUAL).allowed
        assert not should_allow_overwrite("steps", 9000, None, DataSource.GOOGLE_FIT).allowed
        assert not should_allow_overwrite("steps", 9000, None, DataSource.MI_FITNESS).allowed

    def test_primary_sources_need_two_hours(self):
        existing = stored(DataSource.RENPHO)
        too_soon = should_allow_overwrite(
            "weight", 80.0, existing, DataSource.HEALTH_CONNECT, MORNING + timedelta(hours=1)
        )
        later = should_allow_overwrite(
            "weight", 80.0, existing, DataSource.HEALTH_CONNECT, MORNING + timedelta(hours=3)
        )
        older = should_allow_overwrite(
            "weight", 80.0, existing, DataSource.HEALTH_CONNECT, MORNING - timedelta(hours=3)
        )
        assert not too_soon.allowed
        assert later.allowed
        assert not older.allowed

    def test_same_source_upsert(self):
        existing = stored(DataSource.RENPHO)
        assert should_allow_overwrite("weight", 80.0, existing, DataSource.RENPHO, MORNING).allowed
        assert should_allow_overwrite("weight", 80.0, stored(DataSource.MI_FITNESS, None), DataSource.MI_FITNESS).allowed

    def test_same_secondary_source_needs_newer_data(self):
        existing = stored(DataSource.GOOGLE_FIT)
        assert should_allow_overwrite(
            "steps", 9000, existing, DataSource.GOOGLE_FIT, MORNING + timedelta(minutes=5)
        ).allowed
        assert not should_allow_overwrite(
            "steps", 9000, existing, DataSource.GOOGLE_FIT, MORNING - timedelta(minutes=5)
        ).allowed


# ============================================================================
# Record merging
# ============================================================================


class TestMergeRecord:
    """Test field-by-field merging."""

    def test_zero_and_null_values_are_ignored(self):
        current = DailyMetricRecord(date=DAY, steps=8000, weight=80.0)
        incoming = DailyMetricRecord(date=DAY, steps=0, weight=None, bmi=24.0)
        merged, blocked = merge_record(current, incoming)
        assert merged.steps == 8000
        assert merged.weight == 80.0
        assert merged.bmi == 24.0
        assert blocked == []

    def test_provenance_is_recorded(self):
        incoming = DailyMetricRecord(date=DAY, weight=79.5)
        merged, _ = merge_record(None, incoming, source=DataSource.RENPHO, recorded_at=MORNING)
        assert merged.weight == 79.5
        assert merged.field_metadata == {"weight": stored(DataSource.RENPHO)}

    def test_blocked_fields_keep_stored_values(self):
        current, _ = merge_record(
            None,
            DailyMetricRecord(date=DAY, steps=8000, sleep_duration=400),
            source=DataSource.HEALTH_CONNECT,
            recorded_at=MORNING,
        )
        merged, blocked = merge_record(
            current,
            DailyMetricRecord(date=DAY, steps=9500, sleep_duration=430, distance=6.2),
            source=DataSource.GOOGLE_FIT,
            recorded_at=MORNING + timedelta(hours=4),
        )
        assert blocked == ["steps"]
        assert merged.steps == 8000
        assert merged.sleep_duration == 430
        assert merged.distance == 6.2
        assert merged.field_metadata["steps"].source is DataSource.HEALTH_CONNECT
        assert merged.field_metadata["sleep_duration"].source is DataSource.GOOGLE_FIT

    def test_unsourced_write_drops_provenance(self):
        current = DailyMetricRecord(date=DAY, weight=80.0, field_metadata={"weight": stored(DataSource.RENPHO)})
        merged, _ = merge_record(current, DailyMetricRecord(date=DAY, weight=79.0))
        assert merged.weight == 79.0
        assert "weight" not in merged.field_metadata


class TestImportWithSource:
    """Test source priority through apply_import."""

    def test_priority_blocked_fields_are_reported(self):
        existing = [DailyMetricRecord(
            date=DAY, steps=8000, field_metadata={"steps": stored(DataSource.HEALTH_CONNECT)},
        )]
        incoming = [{"date": "2025-03-01", "steps": 12000, "distance": 7.1}]
        result = apply_import(existing, incoming, source=DataSource.GOOGLE_FIT, recorded_at=MORNING)

        merged = result.records[0]
        assert merged.steps == 8000
        assert merged.distance == 7.1
        assert result.written == [DAY]
        assert result.priority_blocked == {DAY: ["steps"]}
        assert result.to_dict()["priorityBlocked"] == {"2025-03-01": ["steps"]}

    def test_record_source_wins_over_batch_source(self):
        existing = [DailyMetricRecord(date=DAY, weight=80.0)]
        incoming = [{"date": "2025-03-01", "weight": 78.0, "source": "manual"}]
        result = apply_import(existing, incoming, source=DataSource.MI_FITNESS)
        assert result.records[0].weight == 78.0
        assert result.records[0].field_metadata["weight"].source is DataSource.MANUAL

    def test_lock_applies_before_priority(self):
        guard = DataLockGuard()
        guard.set_lock(DAY)
        result = apply_import([], [{"date": "2025-03-01", "steps": 100}], guard, source=DataSource.MANUAL)
        assert result.skipped == [DAY]
        assert result.priority_blocked == {}
