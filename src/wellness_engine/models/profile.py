"""User profile model."""
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .records import calendar_date


class UserProfile(BaseModel):
    """Per-user inputs to the scoring engine."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        frozen=True,
    )

    date_of_birth: Optional[date] = None
    target_sleep_hours: Optional[float] = Field(default=None, gt=0)
    baseline_resting_hr: Optional[float] = Field(default=None, alias="baselineRestingHR")
    baseline_hrv: Optional[float] = Field(default=None, alias="baselineHRV")
    max_heart_rate: Optional[float] = None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _strip_time(cls, value: Any) -> Optional[date]:
        return calendar_date(value) if value is not None else None

    @property
    def target_sleep_minutes(self) -> Optional[float]:
        if self.target_sleep_hours is None:
            return None
        return self.target_sleep_hours * 60

    def age_on(self, day: date, default_age: int) -> int:
        """Age in whole years on ``day``, or ``default_age`` without a birthdate."""
        if self.date_of_birth is None:
            return default_age
        dob = self.date_of_birth
        years = day.year - dob.year
        if (day.month, day.day) < (dob.month, dob.day):
            years -= 1
        return years
