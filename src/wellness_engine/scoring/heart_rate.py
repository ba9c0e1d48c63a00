"""Heart rate zone helpers based on an age-predicted maximum."""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .formulas import round_half_up

ZONE_BOUNDS = [(0.5, 0.6), (0.6, 0.7), (0.7, 0.8), (0.8, 0.9), (0.9, 1.0)]


@dataclass
class HeartRateZone:
    """One training zone and the time spent in it."""

    zone: int
    name: str
    min_hr: int
    max_hr: int
    minutes: int = 0
    percentage: int = 0

    def to_dict(self) -> dict:
        return {
            "zone": self.zone,
            "name": self.name,
            "minHR": self.min_hr,
            "maxHR": self.max_hr,
            "minutes": self.minutes,
            "percentage": self.percentage,
        }


def age_predicted_max_hr(age: float) -> float:
    return 220 - age


def heart_rate_zones(age: float) -> List[HeartRateZone]:
    """Five zones at 50/60/70/80/90/100% of 220 - age."""
    max_hr = age_predicted_max_hr(age)
    return [
        HeartRateZone(
            zone=index,
            name=f"Zone {index}",
            min_hr=round_half_up(max_hr * low),
            max_hr=round_half_up(max_hr * high),
        )
        for index, (low, high) in enumerate(ZONE_BOUNDS, start=1)
    ]


def time_in_zones(samples: Iterable[float], age: float) -> List[HeartRateZone]:
    """
    Count minutes per zone, treating each sample as one minute.

    Samples below zone 1 or at/above the age-predicted max are not counted
    in any zone but still count toward the percentage denominator.
    """
    zones = heart_rate_zones(age)
    readings = list(samples)

    for hr in readings:
        for zone in zones:
            if zone.min_hr <= hr < zone.max_hr:
                zone.minutes += 1
                break

    if readings:
        for zone in zones:
            zone.percentage = round_half_up(zone.minutes / len(readings) * 100)

    return zones


def estimate_vo2_max(resting_hr: Optional[float], age: Optional[float]) -> Optional[float]:
    """Uth-Sorensen estimate: 15.3 x HRmax / RHR, one decimal."""
    if not resting_hr or resting_hr <= 0 or age is None:
        return None
    return round(15.3 * age_predicted_max_hr(age) / resting_hr, 1)
