"""
Composite Score Formulas.

Pure functions turning one day's biometric inputs into bounded scores.
Every function is deterministic and side-effect free. A formula returns
None when its required input is missing; optional inputs that are missing
contribute a neutral component instead of failing.
"""

import math
from enum import Enum
from typing import Optional

# Component value used in place of an absent optional input
NEUTRAL_COMPONENT = 50.0

DEFAULT_HRV_BASELINE = 35.0
DEFAULT_RHR_BASELINE = 60.0
DEFAULT_USER_MAX_HR = 190.0
OPTIMAL_SLEEP_MINUTES = 480.0


class MetabolicAgeModel(str, Enum):
    """The two metabolic age models. Their outputs must never be mixed."""

    LINEAR = "linear"
    BANDED = "banded"


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Constrain ``value`` to the closed interval [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up."""
    return int(math.floor(value + 0.5))


def positive(value: Optional[float]) -> Optional[float]:
    """A biomarker reading, or None when it is missing or not above zero."""
    if value is None or value <= 0:
        return None
    return value


# ---------------------------------------------------------------------------
# Sleep
# ---------------------------------------------------------------------------

def _stage_component(percentage: float, band_low: float, band_high: float) -> float:
    if band_low <= percentage <= band_high:
        return 50.0
    midpoint = (band_low + band_high) / 2
    return max(0.0, 50.0 - abs(percentage - midpoint) * 2)


def sleep_score(
    sleep_duration: Optional[float],
    deep_sleep: Optional[float] = None,
    rem_sleep: Optional[float] = None,
    light_sleep: Optional[float] = None,
    wake_events: Optional[float] = None,
    target_minutes: float = OPTIMAL_SLEEP_MINUTES,
) -> Optional[int]:
    """
    Sleep score (0-100).

    Duration (40%): one point lost per 5 minutes away from the target.
    Stage distribution (40%): deep 15-20% and REM 20-25% of staged sleep,
    up to 50 points each.
    Wake events (20%): 10 points lost per wake event.

    Args:
        sleep_duration: Minutes asleep (required)
        deep_sleep: Deep sleep minutes
        rem_sleep: REM sleep minutes
        light_sleep: Light sleep minutes
        wake_events: Number of awakenings
        target_minutes: Optimal sleep duration

    Returns:
        Integer score, or None without a duration
    """
    if sleep_duration is None:
        return None

    duration_score = clamp(100 - abs(sleep_duration - target_minutes) / 5)

    staged = (deep_sleep or 0) + (rem_sleep or 0) + (light_sleep or 0)
    if deep_sleep is None or rem_sleep is None or staged <= 0:
        stage_score = NEUTRAL_COMPONENT
    else:
        deep_pct = deep_sleep / staged * 100
        rem_pct = rem_sleep / staged * 100
        stage_score = min(
            100.0,
            _stage_component(deep_pct, 15, 20) + _stage_component(rem_pct, 20, 25),
        )

    wake_score = max(0.0, 100 - (wake_events or 0) * 10)
    wake_score = min(100.0, wake_score)

    total = duration_score * 0.4 + stage_score * 0.4 + wake_score * 0.2
    return round_half_up(clamp(total))


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------

def recovery_score(
    hrv: Optional[float],
    resting_hr: Optional[float] = None,
    sleep: Optional[float] = None,
    previous_strain: Optional[float] = None,
    hrv_baseline: float = DEFAULT_HRV_BASELINE,
    rhr_baseline: float = DEFAULT_RHR_BASELINE,
) -> Optional[int]:
    """
    Primary (HRV-based) recovery score (0-100).

    HRV ratio 40%, resting HR 20%, sleep score 20%, previous-day strain 10%,
    consistency 10%. Returns None without HRV; callers fall back to the
    proxy estimator in that case.
    """
    if hrv is None:
        return None

    hrv_component = clamp(hrv / hrv_baseline * 100) if hrv_baseline else NEUTRAL_COMPONENT

    if resting_hr is None:
        rhr_component = NEUTRAL_COMPONENT
    else:
        rhr_component = clamp(100 - (resting_hr - rhr_baseline) * 2)

    sleep_component = NEUTRAL_COMPONENT if sleep is None else clamp(sleep)

    if previous_strain is None:
        strain_component = NEUTRAL_COMPONENT
    else:
        strain_component = clamp(100 - (previous_strain - 10) * 5)

    consistency_bonus = 100.0

    total = (
        hrv_component * 0.4
        + rhr_component * 0.2
        + sleep_component * 0.2
        + strain_component * 0.1
        + consistency_bonus * 0.1
    )
    return round_half_up(clamp(total))


# ---------------------------------------------------------------------------
# Strain
# ---------------------------------------------------------------------------

def heart_rate_zone_points(avg_hr: float, user_max_hr: float) -> int:
    """Zone points 0-4 for an average HR against 60/70/80/90% of max."""
    if avg_hr > user_max_hr * 0.9:
        return 4
    if avg_hr > user_max_hr * 0.8:
        return 3
    if avg_hr > user_max_hr * 0.7:
        return 2
    if avg_hr > user_max_hr * 0.6:
        return 1
    return 0


def strain_score(
    active_minutes: Optional[float],
    avg_hr: Optional[float],
    max_hr: Optional[float] = None,
    user_max_hr: float = DEFAULT_USER_MAX_HR,
) -> Optional[float]:
    """
    WHOOP-style strain (0-21).

    zone points x duration factor (max 2x at 120 min) x intensity factor
    (peak HR over the user's max, max 1.5x).
    """
    if active_minutes is None or avg_hr is None or not user_max_hr:
        return None

    zone_points = heart_rate_zone_points(avg_hr, user_max_hr)
    duration_factor = min(2.0, active_minutes / 60)
    intensity_factor = 1.0 if max_hr is None else min(1.5, max_hr / user_max_hr)

    return clamp(zone_points * duration_factor * intensity_factor, 0.0, 21.0)


# ---------------------------------------------------------------------------
# Metabolic age
# ---------------------------------------------------------------------------

def metabolic_age_linear(
    age: Optional[float],
    resting_hr: Optional[float] = None,
    hrv: Optional[float] = None,
    body_fat_percentage: Optional[float] = None,
    bmr: Optional[float] = None,
    weight: Optional[float] = None,
) -> Optional[int]:
    """
    Continuous metabolic age model (18-80).

    Starts at chronological age and shifts by the distance of each biomarker
    from its age-expected value. Terms with missing inputs are skipped.
    """
    if age is None:
        return None

    metabolic_age = float(age)

    if resting_hr is not None:
        expected_rhr = 60 + (age - 25) * 0.5
        metabolic_age += (resting_hr - expected_rhr) / 5

    if hrv is not None:
        expected_hrv = 40 - (age - 25) * 0.5
        metabolic_age -= (hrv - expected_hrv) / 3

    if body_fat_percentage is not None:
        ideal_body_fat = 12 if age < 30 else 15
        metabolic_age += (body_fat_percentage - ideal_body_fat) / 2

    if bmr is not None and weight is not None:
        expected_bmr = weight * 22
        metabolic_age -= (bmr - expected_bmr) / 100

    return int(clamp(round_half_up(metabolic_age), 18, 80))


def metabolic_age_banded(
    age: Optional[float],
    hrv: Optional[float] = None,
    recovery: Optional[float] = None,
    sleep: Optional[float] = None,
    vo2_max: Optional[float] = None,
    body_fat_percentage: Optional[float] = None,
    resting_hr: Optional[float] = None,
) -> Optional[int]:
    """
    Banded ("scientific") metabolic age model (25-80).

    Each biomarker shifts the age by a fixed number of years depending on
    which band it falls in.
    """
    if age is None:
        return None

    metabolic_age = float(age)

    if hrv is not None:
        if hrv < 30:
            metabolic_age += 5
        elif hrv < 40:
            metabolic_age += 3
        elif hrv < 45:
            metabolic_age += 1
        elif hrv >= 50:
            metabolic_age -= 2

    if recovery is not None:
        if recovery < 50:
            metabolic_age += 4
        elif recovery < 65:
            metabolic_age += 2
        elif recovery >= 80:
            metabolic_age -= 2

    if sleep is not None:
        if sleep < 40:
            metabolic_age += 3.25
        elif sleep < 60:
            metabolic_age += 1.5
        elif sleep >= 80:
            metabolic_age -= 0.75

    if vo2_max is not None:
        if vo2_max < 30:
            metabolic_age += 5
        elif vo2_max < 35:
            metabolic_age += 3
        elif vo2_max < 40:
            metabolic_age += 1
        elif vo2_max >= 45:
            metabolic_age -= 3

    if body_fat_percentage is not None:
        if body_fat_percentage > 30:
            metabolic_age += 4.5
        elif body_fat_percentage > 25:
            metabolic_age += 2.25
        elif body_fat_percentage < 15:
            metabolic_age -= 1.75

    if resting_hr is not None:
        if resting_hr > 75:
            metabolic_age += 2
        elif resting_hr > 65:
            metabolic_age += 1
        elif resting_hr < 55:
            metabolic_age -= 1

    return int(clamp(round_half_up(metabolic_age), 25, 80))


# ---------------------------------------------------------------------------
# Readiness / activity / stress
# ---------------------------------------------------------------------------

def readiness_score(
    recovery: Optional[float],
    sleep: Optional[float],
    strain: Optional[float] = None,
    subjective_energy: Optional[float] = None,
) -> Optional[int]:
    """Readiness (0-100) from recovery, sleep, strain and optional 1-10 energy."""
    if recovery is None or sleep is None:
        return None

    strain_component = NEUTRAL_COMPONENT if strain is None else max(0.0, 100 - strain * 5)
    total = recovery * 0.4 + sleep * 0.3 + strain_component * 0.2
    if subjective_energy is not None:
        total += (subjective_energy / 10) * 100 * 0.1

    return round_half_up(clamp(total))


def _interpolate_band(value: Optional[float], low: float, high: float) -> float:
    # 100 below the band, 50 above it, linear in between
    if value is None:
        return NEUTRAL_COMPONENT
    if value < low:
        return 100.0
    if value > high:
        return 50.0
    return 100 - (value - low) / (high - low) * 50


def activity_score(steps: Optional[float], calories: Optional[float]) -> int:
    """
    Activity score (0-100), where higher means a lighter day.

    Steps (3000-12000) and calories (200-800 kcal) are each mapped onto
    100 -> 50 and averaged. A missing input contributes 50.
    """
    steps_component = _interpolate_band(steps, 3000, 12000)
    calories_component = _interpolate_band(calories, 200, 800)
    return round_half_up(steps_component * 0.5 + calories_component * 0.5)


def stress_score(
    resting_hr: Optional[float] = None,
    hrv: Optional[float] = None,
    sleep: Optional[float] = None,
    recovery: Optional[float] = None,
) -> Optional[int]:
    """
    Stress (0-100): banded deviations from a neutral 50.

    Zero or negative inputs count as missing.
    """
    resting_hr, hrv, sleep, recovery = (positive(v) for v in (resting_hr, hrv, sleep, recovery))
    if resting_hr is None and hrv is None and sleep is None and recovery is None:
        return None

    score = 50.0

    if resting_hr is not None:
        if resting_hr < 60:
            score -= 15
        elif resting_hr < 70:
            score -= 5
        elif resting_hr > 80:
            score += 15
        elif resting_hr > 70:
            score += 5

    if hrv is not None:
        if hrv > 50:
            score -= 20
        elif hrv > 35:
            score -= 10
        elif hrv < 25:
            score += 20
        elif hrv < 35:
            score += 10

    if sleep is not None:
        if sleep > 80:
            score -= 10
        elif sleep > 70:
            score -= 5
        elif sleep < 50:
            score += 15
        elif sleep < 60:
            score += 10

    if recovery is not None:
        if recovery > 80:
            score -= 15
        elif recovery > 70:
            score -= 5
        elif recovery < 50:
            score += 20
        elif recovery < 60:
            score += 10

    return round_half_up(clamp(score))


def stress_level_label(score: Optional[float]) -> Optional[str]:
    """Short description of a stress score."""
    if score is None:
        return None
    if score <= 39:
        return "Low stress"
    if score <= 59:
        return "Moderate stress"
    if score <= 79:
        return "Elevated stress"
    return "High stress"
