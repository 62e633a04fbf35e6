"""TripSummary formatting tests."""

import pytest

from navigation.guidance.trip_summary import TripSummary


class TestDuration:
    def test_scenario_four(self):
        summary = TripSummary(duration_ms=125_000, distance_m=500)
        assert summary.formatted_duration() == "2 minutes 5 seconds"
        assert summary.formatted_distance() == "500 m"
        assert summary.average_speed_kmh() == pytest.approx(14.4)
        assert summary.formatted_average_speed() == "14.4 km/h"

    @pytest.mark.parametrize("ms,text", [
        (0, "0 seconds"),
        (999, "0 seconds"),
        (59_999, "59 seconds"),
        (60_000, "1 minutes 0 seconds"),
        (3_600_000, "1 hours 0 minutes 0 seconds"),
        (3_725_000, "1 hours 2 minutes 5 seconds"),
    ])
    def test_largest_unit_first(self, ms, text):
        assert TripSummary(ms, 0).formatted_duration() == text


class TestDistance:
    @pytest.mark.parametrize("metres,text", [
        (0, "0 m"),
        (999.4, "999 m"),
        (1000, "1.00 km"),
        (12_345.678, "12.35 km"),
    ])
    def test_units(self, metres, text):
        assert TripSummary(1000, metres).formatted_distance() == text


class TestAverageSpeed:
    def test_zero_duration(self):
        assert TripSummary(0, 5000).average_speed_kmh() == 0

    def test_short_distance_is_noise(self):
        assert TripSummary(60_000, 9.99).average_speed_kmh() == 0

    def test_ten_metres_counts(self):
        assert TripSummary(3_600_000, 10).average_speed_kmh() == pytest.approx(0.01)

    def test_one_hour_ten_km(self):
        assert TripSummary(3_600_000, 10_000).formatted_average_speed() == "10.0 km/h"


class TestValue:
    def test_immutable(self):
        summary = TripSummary(1000, 10)
        with pytest.raises(AttributeError):
            summary.distance_m = 20

    @pytest.mark.parametrize("ms,metres", [(-1, 0), (0, -0.1)])
    def test_rejects_negative(self, ms, metres):
        with pytest.raises(ValueError):
            TripSummary(ms, metres)

    def test_to_dict(self):
        data = TripSummary(125_000, 500).to_dict()
        assert data["duration"] == "2 minutes 5 seconds"
        assert data["distance"] == "500 m"
        assert data["average_speed"] == "14.4 km/h"
        assert data["trace_points"] == 0
