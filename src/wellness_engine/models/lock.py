"""Data lock state model."""
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from .records import calendar_date


class DataLockState(BaseModel):
    """Persisted lock settings for one user."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        frozen=True,
    )

    lock_enabled: bool = False
    lock_date: Optional[date] = None

    @field_validator("lock_date", mode="before")
    @classmethod
    def _strip_time(cls, value: Any) -> Optional[date]:
        return calendar_date(value) if value is not None else None

    @property
    def is_locked(self) -> bool:
        return self.lock_enabled and self.lock_date is not None
