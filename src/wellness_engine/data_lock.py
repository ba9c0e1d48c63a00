"""
Data Lock Guard.

Protects historical records from being overwritten by later imports.
While a lock is active, every record dated on or before the lock date is
read-only for write paths. The lock date may only move forward; unlocking
drops all protection.

The guard only answers "is this date protected?". Callers that check and
then write concurrently must serialize per user; DataLockRegistry provides
that critical section.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from .models import DailyMetricRecord, DataLockState, DataSource, calendar_date, coerce_record
from .models.records import DateLike
from .priority import merge_record
from .selector import RecordInput, index_by_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockResult:
    """Outcome of a lock or unlock request."""

    success: bool
    message: str
    protected_records_count: int = 0

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "protectedRecordsCount": self.protected_records_count,
        }


@dataclass(frozen=True)
class DataLockStatus:
    """Current lock settings plus the derived protected record count."""

    enabled: bool
    lock_date: Optional[date]
    protected_records_count: int

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "lockDate": self.lock_date.isoformat() if self.lock_date else None,
            "protectedRecordsCount": self.protected_records_count,
        }


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a single guarded write."""

    date: date
    accepted: bool
    reason: str = ""


@dataclass
class ImportResult:
    """Outcome of merging a batch of incoming records."""

    records: List[DailyMetricRecord] = field(default_factory=list)
    written: List[date] = field(default_factory=list)
    skipped: List[date] = field(default_factory=list)
    # Fields kept at their stored value because of source priority
    priority_blocked: Dict[date, List[str]] = field(default_factory=dict)

    @property
    def written_count(self) -> int:
        return len(self.written)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def message(self) -> str:
        text = f"{self.written_count} records imported"
        if self.skipped:
            text += f", {self.skipped_count} records skipped (locked)"
        return text

    def to_dict(self) -> dict:
        return {
            "written": [d.isoformat() for d in self.written],
            "skipped": [d.isoformat() for d in self.skipped],
            "writtenCount": self.written_count,
            "skippedCount": self.skipped_count,
            "priorityBlocked": {d.isoformat(): list(names) for d, names in self.priority_blocked.items()},
            "message": self.message,
        }


class DataLockGuard:
    """
    Lock state machine for one user.

    Unlocked -> Locked(date) -> Locked(later date) -> Unlocked
    """

    def __init__(self, state: Optional[DataLockState] = None):
        state = state or DataLockState()
        self._enabled = state.is_locked
        self._lock_date: Optional[date] = state.lock_date if self._enabled else None

    @property
    def state(self) -> DataLockState:
        """Snapshot of the lock settings, for persistence by the caller."""
        return DataLockState(lock_enabled=self._enabled, lock_date=self._lock_date)

    @property
    def locked(self) -> bool:
        return self._enabled

    @property
    def lock_date(self) -> Optional[date]:
        return self._lock_date

    def is_protected(self, day: DateLike) -> bool:
        """True when a write to ``day`` must be rejected."""
        if not self._enabled or self._lock_date is None:
            return False
        return calendar_date(day) <= self._lock_date

    def protected_record_count(self, records: Iterable[RecordInput]) -> int:
        """Number of distinct record dates currently protected."""
        if not self._enabled:
            return 0
        return sum(1 for day in index_by_date(records) if self.is_protected(day))

    def status(self, records: Iterable[RecordInput] = ()) -> DataLockStatus:
        return DataLockStatus(
            enabled=self._enabled,
            lock_date=self._lock_date,
            protected_records_count=self.protected_record_count(records),
        )

    def set_lock(self, lock_date: DateLike, records: Iterable[RecordInput] = ()) -> LockResult:
        """
        Activate the lock or extend it to a later date.

        While locked, a date on or before the current lock date is rejected.

        Args:
            lock_date: Last date to protect (inclusive)
            records: Persisted records, used only to count protected ones

        Returns:
            LockResult describing the outcome
        """
        new_date = calendar_date(lock_date)

        if self._enabled and self._lock_date is not None and new_date <= self._lock_date:
            logger.warning(
                f"[DATA LOCK] Rejected lock date {new_date}: "
                f"already locked through {self._lock_date}"
            )
            return LockResult(
                success=False,
                message=(
                    f"Lock date {new_date.isoformat()} must be after the current "
                    f"lock date {self._lock_date.isoformat()}."
                ),
                protected_records_count=self.protected_record_count(records),
            )

        extending = self._enabled
        self._enabled = True
        self._lock_date = new_date
        protected = self.protected_record_count(records)

        verb = "extended to" if extending else "locked up to"
        logger.info(f"[DATA LOCK] Data {verb} {new_date} ({protected} records protected)")

        return LockResult(
            success=True,
            message=(
                f"Data {verb} {new_date.isoformat()}. {protected} health records "
                "are now protected from overwrites."
            ),
            protected_records_count=protected,
        )

    def unlock(self) -> LockResult:
        """Drop all protection."""
        self._enabled = False
        self._lock_date = None
        logger.info("[DATA LOCK] All data unlocked")
        return LockResult(
            success=True,
            message="All data unlocked. Historical data can now be overwritten by imports.",
        )

    def check_write(self, day: DateLike) -> WriteResult:
        """Accept or reject a write to ``day`` without performing it."""
        target = calendar_date(day)
        if self.is_protected(target):
            return WriteResult(
                date=target,
                accepted=False,
                reason=f"{target.isoformat()} is locked (lock date {self._lock_date.isoformat()})",
            )
        return WriteResult(date=target, accepted=True)


def apply_import(
    existing: Iterable[RecordInput],
    incoming: Iterable[RecordInput],
    guard: Optional[DataLockGuard] = None,
    source: Optional[DataSource] = None,
    recorded_at: Optional[datetime] = None,
) -> ImportResult:
    """
    Merge incoming records into the existing set under the data lock.

    Incoming records for protected dates are skipped and the existing values
    are kept. Other dates are upserted field by field: null and zero
    incoming values leave the stored ones unchanged. When the batch (or an
    individual record) names a source, each field must also pass the source
    priority rules. Input sequences are not modified; the merged set is
    returned oldest first.

    Args:
        existing: Persisted records
        incoming: Records being imported
        guard: Data lock for the user (unlocked when omitted)
        source: Source of the batch; a record's own ``source`` wins
        recorded_at: Creation time of the batch; a record's own ``recorded_at`` wins
    """
    guard = guard or DataLockGuard()
    merged: Dict[date, DailyMetricRecord] = index_by_date(existing)
    result = ImportResult()

    for raw in incoming:
        record = coerce_record(raw)
        check = guard.check_write(record.date)
        if not check.accepted:
            result.skipped.append(record.date)
            logger.debug(f"[IMPORT] Skipped {check.reason}")
            continue

        merged[record.date], blocked = merge_record(
            merged.get(record.date),
            record,
            source=record.source or source,
            recorded_at=record.recorded_at or recorded_at,
        )
        result.written.append(record.date)
        if blocked:
            result.priority_blocked.setdefault(record.date, []).extend(blocked)

    result.records = [merged[day] for day in sorted(merged)]

    if result.skipped:
        logger.info(f"[IMPORT] {result.message}")
    return result


class DataLockRegistry:
    """
    Per-user lock guards with a per-user critical section.

    guarded_write runs the protection check and the write under the same
    user lock, so a concurrent lock extension cannot slip in between.
    """

    def __init__(self):
        self._guards: Dict[str, DataLockGuard] = {}
        self._user_locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def _user_lock(self, user_id: str) -> threading.RLock:
        with self._registry_lock:
            if user_id not in self._user_locks:
                self._user_locks[user_id] = threading.RLock()
                self._guards[user_id] = DataLockGuard()
            return self._user_locks[user_id]

    def load(self, user_id: str, state: DataLockState) -> None:
        """Install persisted lock settings for a user."""
        with self._user_lock(user_id):
            self._guards[user_id] = DataLockGuard(state)

    def guard(self, user_id: str) -> DataLockGuard:
        """Copy of the user's guard; changes to it do not affect the registry."""
        with self._user_lock(user_id):
            return DataLockGuard(self._guards[user_id].state)

    def status(self, user_id: str, records: Iterable[RecordInput] = ()) -> DataLockStatus:
        with self._user_lock(user_id):
            return self._guards[user_id].status(records)

    def set_lock(self, user_id: str, lock_date: DateLike, records: Iterable[RecordInput] = ()) -> LockResult:
        with self._user_lock(user_id):
            return self._guards[user_id].set_lock(lock_date, records)

    def unlock(self, user_id: str) -> LockResult:
        with self._user_lock(user_id):
            return self._guards[user_id].unlock()

    def guarded_write(self, user_id: str, day: DateLike, write: Callable[[], None]) -> WriteResult:
        """
        Run ``write`` only if ``day`` is not protected for ``user_id``.

        Args:
            user_id: Owner of the record
            day: Date of the record being written
            write: Callable performing the write

        Returns:
            WriteResult; ``write`` is not called when rejected
        """
        with self._user_lock(user_id):
            check = self._guards[user_id].check_write(day)
            if not check.accepted:
                logger.info(f"[DATA LOCK] Write rejected for user {user_id}: {check.reason}")
                return check
            write()
            return check

    def apply_import(
        self,
        user_id: str,
        existing: Iterable[RecordInput],
        incoming: Iterable[RecordInput],
        source: Optional[DataSource] = None,
        recorded_at: Optional[datetime] = None,
    ) -> ImportResult:
        with self._user_lock(user_id):
            return apply_import(existing, incoming, self._guards[user_id], source, recorded_at)
