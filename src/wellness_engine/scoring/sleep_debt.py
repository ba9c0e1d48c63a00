"""Accumulated sleep debt against a nightly target."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..selector import RecordInput, chronological
from .formulas import OPTIMAL_SLEEP_MINUTES

# Catch-up sleep assumed per recovery night
EXTRA_SLEEP_PER_NIGHT_HOURS = 1.0


class SleepDebtLevel(str, Enum):
    OPTIMAL = "optimal"
    MINOR = "minor"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"
    SEVERE = "severe"


# (upper bound in hours, level, description, recommendation)
DEBT_BANDS = [
    (1.0, SleepDebtLevel.OPTIMAL, "Excellent sleep consistency",
     "Keep up the great work! Your sleep patterns are optimal."),
    (3.0, SleepDebtLevel.MINOR, "Slight sleep deficit",
     "Try to get an extra 30 minutes tonight to prevent debt accumulation."),
    (6.0, SleepDebtLevel.MODERATE, "Moderate sleep debt",
     "Plan for 1-2 nights of extended sleep to recover fully."),
    (10.0, SleepDebtLevel.SIGNIFICANT, "High sleep debt",
     "Prioritize sleep recovery. Consider weekend sleep-ins or earlier bedtimes."),
    (math.inf, SleepDebtLevel.SEVERE, "Critical sleep deficit",
     "Urgent: Plan immediate sleep recovery strategy. Consider reducing commitments."),
]


@dataclass
class SleepDebt:
    """Sleep debt summary over a run of nights."""

    total_hours: float
    level: SleepDebtLevel
    description: str
    recommendation: str
    nights: int = 0
    nights_on_target: int = 0
    recovery_days: int = 0

    def to_dict(self) -> dict:
        return {
            "totalHours": round(self.total_hours, 1),
            "level": self.level.value,
            "description": self.description,
            "recommendation": self.recommendation,
            "nights": self.nights,
            "nightsOnTarget": self.nights_on_target,
            "recoveryDays": self.recovery_days,
        }


def debt_level(total_hours: float) -> tuple:
    """(level, description, recommendation) for a debt in hours."""
    for upper, level, description, recommendation in DEBT_BANDS:
        if total_hours <= upper:
            return level, description, recommendation
    raise ValueError(f"Invalid sleep debt: {total_hours}")


def sleep_debt(
    records: Iterable[RecordInput],
    target_minutes: Optional[float] = None,
) -> SleepDebt:
    """
    Sum each night's shortfall against ``target_minutes``.

    Nights without a sleep duration are skipped. Surplus sleep on one night
    does not pay back another night's deficit.
    """
    target = target_minutes or OPTIMAL_SLEEP_MINUTES
    durations = [r.sleep_duration for r in chronological(records) if r.sleep_duration is not None]

    deficit_minutes = sum(max(0.0, target - minutes) for minutes in durations)
    total_hours = deficit_minutes / 60
    level, description, recommendation = debt_level(total_hours)

    return SleepDebt(
        total_hours=total_hours,
        level=level,
        description=description,
        recommendation=recommendation,
        nights=len(durations),
        nights_on_target=sum(1 for minutes in durations if minutes >= target),
        recovery_days=math.ceil(total_hours / EXTRA_SLEEP_PER_NIGHT_HOURS),
    )
