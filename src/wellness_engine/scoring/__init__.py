"""Score formulas, proxy estimators and heart rate helpers."""
from .formulas import (
    MetabolicAgeModel,
    NEUTRAL_COMPONENT,
    activity_score,
    clamp,
    positive,
    metabolic_age_banded,
    metabolic_age_linear,
    readiness_score,
    recovery_score,
    round_half_up,
    sleep_score,
    strain_score,
    stress_level_label,
    stress_score,
)
from .proxy import (
    RecoveryFormula,
    RecoveryResult,
    activity_level_status,
    proxy_recovery_score,
    rhr_adjustment,
    select_recovery,
)
from .heart_rate import (
    HeartRateZone,
    estimate_vo2_max,
    heart_rate_zones,
    time_in_zones,
)
from .sleep_debt import SleepDebt, SleepDebtLevel, sleep_debt

__all__ = [
    "MetabolicAgeModel",
    "NEUTRAL_COMPONENT",
    "activity_score",
    "clamp",
    "positive",
    "metabolic_age_banded",
    "metabolic_age_linear",
    "readiness_score",
    "recovery_score",
    "round_half_up",
    "sleep_score",
    "strain_score",
    "stress_level_label",
    "stress_score",
    "RecoveryFormula",
    "RecoveryResult",
    "activity_level_status",
    "proxy_recovery_score",
    "rhr_adjustment",
    "select_recovery",
    "HeartRateZone",
    "estimate_vo2_max",
    "heart_rate_zones",
    "time_in_zones",
    "SleepDebt",
    "SleepDebtLevel",
    "sleep_debt",
]
