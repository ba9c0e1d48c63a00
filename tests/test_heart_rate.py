"""
Unit tests for heart rate zones and the VO2 max estimate.

Usage:
    pytest tests/test_heart_rate.py -v
"""
import pytest

from wellness_engine.scoring.heart_rate import (
    age_predicted_max_hr,
    estimate_vo2_max,
    heart_rate_zones,
    time_in_zones,
)


class TestHeartRateZones:
    """Test zone boundaries from the age-predicted maximum."""

    def test_max_hr(self):
        assert age_predicted_max_hr(30) == 190

    def test_zone_bounds_for_30_year_old(self):
        zones = heart_rate_zones(30)
        assert [z.zone for z in zones] == [1, 2, 3, 4, 5]
        assert (zones[0].min_hr, zones[0].max_hr) == (95, 114)
        assert (zones[2].min_hr, zones[2].max_hr) == (133, 152)
        assert (zones[4].min_hr, zones[4].max_hr) == (171, 190)

    def test_zones_are_contiguous(self):
        zones = heart_rate_zones(47)
        for lower, upper in zip(zones, zones[1:]):
            assert lower.max_hr == upper.min_hr

    def test_to_dict(self):
        data = heart_rate_zones(30)[0].to_dict()
        assert data == {
            "zone": 1,
            "name": "Zone 1",
            "minHR": 95,
            "maxHR": 114,
            "minutes": 0,
            "percentage": 0,
        }


class TestTimeInZones:
    """Test minute-per-sample zone accounting."""

    def test_counts_and_percentages(self):
        zones = time_in_zones([100, 100, 120, 180, 60], age=30)
        assert [z.minutes for z in zones] == [2, 1, 0, 0, 1]
        assert [z.percentage for z in zones] == [40, 20, 0, 0, 20]

    def test_upper_bound_is_exclusive(self):
        zones = time_in_zones([114], age=30)
        assert zones[0].minutes == 0
        assert zones[1].minutes == 1

    def test_no_samples(self):
        zones = time_in_zones([], age=30)
        assert all(z.minutes == 0 and z.percentage == 0 for z in zones)


class TestVo2MaxEstimate:
    """Test the resting HR based VO2 max estimate."""

    def test_estimate(self):
        assert estimate_vo2_max(50, 40) == pytest.approx(55.1)

    def test_missing_inputs(self):
        assert estimate_vo2_max(None, 40) is None
        assert estimate_vo2_max(0, 40) is None
        assert estimate_vo2_max(55, None) is None
