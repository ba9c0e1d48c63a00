"""
Daily Score Engine.

Ties record selection, manual heart rate overrides and the score formulas
together for one requested day. Every dashboard view computes its scores
through compute_daily_scores instead of re-deriving formulas locally.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .config import Settings, get_settings
from .models import DailyMetricRecord, ManualHeartRateEntry, UserProfile, calendar_date
from .models.records import DateLike
from .scoring import (
    MetabolicAgeModel,
    RecoveryResult,
    SleepDebt,
    activity_level_status,
    activity_score,
    clamp,
    estimate_vo2_max,
    metabolic_age_banded,
    metabolic_age_linear,
    positive,
    readiness_score,
    round_half_up,
    select_recovery,
    sleep_debt,
    sleep_score,
    strain_score,
    stress_level_label,
    stress_score,
)
from .selector import RecordInput, chronological, index_by_date, resolve
from .trends import TrendPeriod, TrendResult, analyze_trend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectiveInputs:
    """Heart rate and calorie inputs after manual overrides are applied."""

    resting_hr: Optional[float] = None
    hrv: Optional[float] = None
    calories: Optional[float] = None
    avg_hr: Optional[float] = None
    max_hr: Optional[float] = None
    manual_fields: tuple = ()


@dataclass
class DailyScores:
    """All composite scores for one day. Absent scores are None."""

    date: date
    record_date: Optional[date] = None
    sleep_score: Optional[int] = None
    recovery: RecoveryResult = field(default_factory=lambda: RecoveryResult(score=None, formula=None))
    strain_score: Optional[float] = None
    readiness_score: Optional[int] = None
    activity_score: Optional[int] = None
    activity_level: Optional[str] = None
    stress_score: Optional[int] = None
    stress_label: Optional[str] = None
    metabolic_age_linear: Optional[int] = None
    metabolic_age_banded: Optional[int] = None
    vo2_max_estimate: Optional[float] = None
    manual_overrides: List[str] = field(default_factory=list)

    @property
    def recovery_score(self) -> Optional[int]:
        return self.recovery.score

    def metabolic_age(self, model: MetabolicAgeModel) -> Optional[int]:
        """Metabolic age from one named model; the two are never combined."""
        if model is MetabolicAgeModel.LINEAR:
            return self.metabolic_age_linear
        return self.metabolic_age_banded

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "date": self.date.isoformat(),
            "recordDate": self.record_date.isoformat() if self.record_date else None,
            "sleepScore": self.sleep_score,
            "recoveryScore": self.recovery.score,
            "recoveryFormula": self.recovery.formula.value if self.recovery.formula else None,
            "strainScore": self.strain_score,
            "readinessScore": self.readiness_score,
            "activityScore": self.activity_score,
            "activityLevel": self.activity_level,
            "stressScore": self.stress_score,
            "stressLabel": self.stress_label,
            "metabolicAgeLinear": self.metabolic_age_linear,
            "metabolicAgeBanded": self.metabolic_age_banded,
            "vo2MaxEstimate": self.vo2_max_estimate,
            "manualOverrides": list(self.manual_overrides),
        }


def effective_inputs(
    record: Optional[DailyMetricRecord],
    manual: Optional[ManualHeartRateEntry],
) -> EffectiveInputs:
    """
    Overlay a manual heart rate entry on a device record.

    A manual value wins when it is present and positive. Device readings of
    zero or below count as missing.
    """
    overrides = []
    values = {}
    pairs = {
        "resting_hr": ("resting_hr", positive(record.resting_heart_rate) if record else None),
        "hrv": ("hrv", positive(record.heart_rate_variability) if record else None),
        "calories": ("calories", record.calories_burned if record else None),
        "avg_hr": ("avg_hr_awake", None),
        "max_hr": ("max_hr", None),
    }
    for name, (manual_field, device_value) in pairs.items():
        manual_value = manual.override(manual_field) if manual else None
        if manual_value is not None:
            overrides.append(name)
            values[name] = manual_value
        else:
            values[name] = device_value

    return EffectiveInputs(manual_fields=tuple(overrides), **values)


def _rhr_history(
    by_date: Dict[date, DailyMetricRecord],
    day: date,
    days: int,
) -> List[float]:
    history = []
    for offset in range(1, days + 1):
        record = by_date.get(day - timedelta(days=offset))
        if record is not None and positive(record.resting_heart_rate) is not None:
            history.append(record.resting_heart_rate)
    return history


def _stored_score(value: Optional[float]) -> Optional[int]:
    return round_half_up(clamp(value)) if value is not None else None


def compute_daily_scores(
    target_date: DateLike,
    records: Iterable[RecordInput],
    profile: Optional[UserProfile] = None,
    manual_entries: Sequence[Union[ManualHeartRateEntry, dict]] = (),
    active_minutes: Optional[float] = None,
    subjective_energy: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> DailyScores:
    """
    Compute every composite score for ``target_date``.

    Args:
        target_date: Requested day (time of day is ignored)
        records: The user's daily records, any order
        profile: User profile; defaults apply without one
        manual_entries: Manual heart rate entries; the one for the scored day wins
        active_minutes: Exercise minutes for the strain formula
        subjective_energy: Optional 1-10 energy self-report for readiness
        settings: Engine settings (defaults to environment settings)

    Returns:
        DailyScores for the day
    """
    settings = settings or get_settings()
    profile = profile or UserProfile()
    day = calendar_date(target_date)

    by_date = index_by_date(records)
    record = resolve(day, by_date.values())
    entries = [
        m if isinstance(m, ManualHeartRateEntry) else ManualHeartRateEntry.model_validate(m)
        for m in manual_entries
    ]
    # Scores describe the resolved record's day, which may not be the requested one
    data_day = record.date if record is not None else day
    manual = next((m for m in reversed(entries) if m.date == data_day), None)

    scores = DailyScores(date=day)
    if record is None and manual is None:
        logger.debug(f"[ENGINE] No data for {day}")
        return scores

    scores.record_date = record.date if record else None
    inputs = effective_inputs(record, manual)
    scores.manual_overrides = list(inputs.manual_fields)

    age = profile.age_on(day, settings.default_age)
    target_minutes = profile.target_sleep_minutes or settings.target_sleep_minutes
    hrv_baseline = profile.baseline_hrv or settings.default_hrv_baseline
    rhr_baseline = profile.baseline_resting_hr or settings.default_rhr_baseline
    user_max_hr = profile.max_heart_rate or settings.default_max_heart_rate

    def get(name: str) -> Optional[float]:
        return getattr(record, name) if record is not None else None

    # Sleep: computed from stages when a duration exists, else device value
    computed_sleep = sleep_score(
        get("sleep_duration"),
        deep_sleep=get("deep_sleep"),
        rem_sleep=get("rem_sleep"),
        light_sleep=get("light_sleep"),
        wake_events=get("wake_events"),
        target_minutes=target_minutes,
    )
    scores.sleep_score = computed_sleep if computed_sleep is not None else _stored_score(get("sleep_score"))

    previous = by_date.get(data_day - timedelta(days=1))
    scores.recovery = select_recovery(
        inputs.hrv,
        get("sleep_duration"),
        resting_hr=inputs.resting_hr,
        sleep=scores.sleep_score,
        previous_strain=previous.strain_score if previous else None,
        deep_sleep=get("deep_sleep"),
        rem_sleep=get("rem_sleep"),
        steps=get("steps"),
        calories=inputs.calories,
        rhr_history=_rhr_history(by_date, data_day, settings.rhr_baseline_days),
        stored_score=get("recovery_score"),
        hrv_baseline=hrv_baseline,
        rhr_baseline=rhr_baseline,
        target_minutes=target_minutes,
    )

    computed_strain = strain_score(active_minutes, inputs.avg_hr, inputs.max_hr, user_max_hr)
    if computed_strain is not None:
        scores.strain_score = computed_strain
    elif get("strain_score") is not None:
        scores.strain_score = clamp(get("strain_score"), 0.0, 21.0)

    scores.readiness_score = readiness_score(
        scores.recovery.score,
        scores.sleep_score,
        scores.strain_score,
        subjective_energy=subjective_energy,
    )

    if get("steps") is not None or inputs.calories is not None:
        scores.activity_score = activity_score(get("steps"), inputs.calories)
        scores.activity_level = activity_level_status(scores.activity_score)

    scores.stress_score = stress_score(
        resting_hr=inputs.resting_hr,
        hrv=inputs.hrv,
        sleep=scores.sleep_score,
        recovery=scores.recovery.score,
    )
    scores.stress_label = stress_level_label(scores.stress_score)

    scores.metabolic_age_linear = metabolic_age_linear(
        age,
        resting_hr=inputs.resting_hr,
        hrv=inputs.hrv,
        body_fat_percentage=get("body_fat_percentage"),
        bmr=get("bmr"),
        weight=get("weight"),
    )
    scores.metabolic_age_banded = metabolic_age_banded(
        age,
        hrv=inputs.hrv,
        recovery=scores.recovery.score,
        sleep=scores.sleep_score,
        vo2_max=get("vo2_max"),
        body_fat_percentage=get("body_fat_percentage"),
        resting_hr=inputs.resting_hr,
    )

    scores.vo2_max_estimate = estimate_vo2_max(inputs.resting_hr, age)
    return scores


def compute_trends(
    records: Iterable[RecordInput],
    fields: Iterable[str],
    period: Union[TrendPeriod, int] = TrendPeriod.WEEK,
    as_of: Optional[DateLike] = None,
) -> Dict[str, TrendResult]:
    """Trend of each field over the same period."""
    snapshot = list(index_by_date(records).values())
    return {name: analyze_trend(name, snapshot, period, as_of=as_of) for name in fields}


def compute_sleep_debt(
    records: Iterable[RecordInput],
    profile: Optional[UserProfile] = None,
    as_of: Optional[DateLike] = None,
    nights: int = 7,
    settings: Optional[Settings] = None,
) -> SleepDebt:
    """Sleep debt over the ``nights`` most recent records up to ``as_of``."""
    settings = settings or get_settings()
    profile = profile or UserProfile()
    ordered = chronological(records)
    if as_of is not None:
        cutoff = calendar_date(as_of)
        ordered = [r for r in ordered if r.date <= cutoff]

    target_minutes = profile.target_sleep_minutes or settings.target_sleep_minutes
    return sleep_debt(ordered[-nights:] if nights > 0 else [], target_minutes)
