"""
Proxy Estimators.

Fallback computations used when a primary formula's preferred input is
missing. A proxy result is never blended with a primary one: the recovery
selector picks exactly one formula and tags the result with it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .formulas import (
    DEFAULT_HRV_BASELINE,
    DEFAULT_RHR_BASELINE,
    OPTIMAL_SLEEP_MINUTES,
    activity_score,
    clamp,
    positive,
    recovery_score,
    round_half_up,
)

DEFAULT_RHR_ADJUSTMENT = 75.0
DEFAULT_STAGE_QUALITY = 70.0


class RecoveryFormula(str, Enum):
    """Which path produced a recovery score."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    DEVICE = "device"


@dataclass(frozen=True)
class RecoveryResult:
    """A recovery score together with the formula that produced it."""

    score: Optional[int]
    formula: Optional[RecoveryFormula]

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "formula": self.formula.value if self.formula else None,
        }


def rhr_adjustment(
    resting_hr: Optional[float],
    rhr_history: Optional[Iterable[Optional[float]]] = None,
) -> float:
    """
    Compare today's resting HR with the mean of recent positive readings.

    100 below the baseline, 50 at 10+ bpm above it, linear in between.
    Without a current reading or any usable history the neutral 75 is used.
    """
    if positive(resting_hr) is None:
        return DEFAULT_RHR_ADJUSTMENT

    history = [v for v in (rhr_history or []) if v is not None and v > 0]
    if not history:
        return DEFAULT_RHR_ADJUSTMENT

    baseline = sum(history) / len(history)
    if resting_hr < baseline:
        return 100.0
    if resting_hr >= baseline + 10:
        return 50.0
    return 100 - (resting_hr - baseline) / 10 * 50


def proxy_sleep_component(
    sleep_duration: float,
    deep_sleep: Optional[float] = None,
    rem_sleep: Optional[float] = None,
    target_minutes: float = OPTIMAL_SLEEP_MINUTES,
) -> float:
    """60% duration against the target plus 40% deep+REM share of sleep."""
    duration_score = min(100.0, sleep_duration / target_minutes * 100)

    restorative = (deep_sleep or 0) + (rem_sleep or 0)
    if (deep_sleep is None and rem_sleep is None) or restorative <= 0:
        quality_score = DEFAULT_STAGE_QUALITY
    else:
        quality_score = min(100.0, restorative / sleep_duration * 100)

    return duration_score * 0.6 + quality_score * 0.4


def proxy_recovery_score(
    sleep_duration: Optional[float],
    deep_sleep: Optional[float] = None,
    rem_sleep: Optional[float] = None,
    steps: Optional[float] = None,
    calories: Optional[float] = None,
    resting_hr: Optional[float] = None,
    rhr_history: Optional[Iterable[Optional[float]]] = None,
    target_minutes: float = OPTIMAL_SLEEP_MINUTES,
) -> Optional[int]:
    """
    Recovery score (0-100) without HRV.

    Sleep 50% + activity 30% + resting HR adjustment 20%.

    Args:
        sleep_duration: Minutes asleep (required, must be positive)
        deep_sleep: Deep sleep minutes
        rem_sleep: REM sleep minutes
        steps: Daily steps
        calories: Calories burned
        resting_hr: Today's resting heart rate
        rhr_history: Resting HR readings from the preceding days
        target_minutes: Sleep target for the duration component

    Returns:
        Integer score, or None without a usable sleep duration
    """
    if sleep_duration is None or sleep_duration <= 0:
        return None

    sleep_component = proxy_sleep_component(sleep_duration, deep_sleep, rem_sleep, target_minutes)
    activity_component = activity_score(steps, calories)
    rhr_component = rhr_adjustment(resting_hr, rhr_history)

    total = sleep_component * 0.5 + activity_component * 0.3 + rhr_component * 0.2
    return int(clamp(round_half_up(total)))


def activity_level_status(score: Optional[float]) -> Optional[str]:
    """Label for an activity score; lower scores mean harder days."""
    if score is None:
        return None
    if score >= 90:
        return "Light (rest day)"
    if score >= 70:
        return "Moderate"
    if score >= 50:
        return "High strain"
    return "Very intense"


def select_recovery(
    hrv: Optional[float],
    sleep_duration: Optional[float],
    *,
    resting_hr: Optional[float] = None,
    sleep: Optional[float] = None,
    previous_strain: Optional[float] = None,
    deep_sleep: Optional[float] = None,
    rem_sleep: Optional[float] = None,
    steps: Optional[float] = None,
    calories: Optional[float] = None,
    rhr_history: Optional[Iterable[Optional[float]]] = None,
    stored_score: Optional[float] = None,
    hrv_baseline: float = DEFAULT_HRV_BASELINE,
    rhr_baseline: float = DEFAULT_RHR_BASELINE,
    target_minutes: float = OPTIMAL_SLEEP_MINUTES,
) -> RecoveryResult:
    """
    Choose and run exactly one recovery formula.

    HRV present -> primary formula. No HRV but a sleep duration -> proxy.
    Otherwise the device-reported score is passed through when there is one.
    An HRV of zero or below counts as missing.
    """
    if positive(hrv) is not None:
        score = recovery_score(
            hrv,
            resting_hr=resting_hr,
            sleep=sleep,
            previous_strain=previous_strain,
            hrv_baseline=hrv_baseline,
            rhr_baseline=rhr_baseline,
        )
        return RecoveryResult(score=score, formula=RecoveryFormula.PRIMARY)

    proxy = proxy_recovery_score(
        sleep_duration,
        deep_sleep=deep_sleep,
        rem_sleep=rem_sleep,
        steps=steps,
        calories=calories,
        resting_hr=resting_hr,
        rhr_history=rhr_history,
        target_minutes=target_minutes,
    )
    if proxy is not None:
        return RecoveryResult(score=proxy, formula=RecoveryFormula.FALLBACK)

    if stored_score is not None:
        return RecoveryResult(score=round_half_up(clamp(stored_score)), formula=RecoveryFormula.DEVICE)

    return RecoveryResult(score=None, formula=None)
