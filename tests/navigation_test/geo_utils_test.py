"""Great-circle distance tests."""

import pytest

from navigation.guidance.geo_utils import great_circle_distance, haversine_distance, path_length
from navigation.guidance.models import Coord, Route

from nav_fakes import north_of

PAIRS = [
    (Coord(0, 0), Coord(0, 1)),
    (Coord(39.9088, 116.3975), Coord(31.2304, 121.4737)),
    (Coord(-33.8688, 151.2093), Coord(51.5074, -0.1278)),
    (Coord(89.9, 0), Coord(-89.9, 179.9)),
    (Coord(10, -179.9), Coord(10, 179.9)),
]


class TestGreatCircleDistance:
    @pytest.mark.parametrize("a,b", PAIRS)
    def test_symmetric(self, a, b):
        assert great_circle_distance(a, b) == pytest.approx(great_circle_distance(b, a))

    @pytest.mark.parametrize("a,_", PAIRS)
    def test_zero_for_same_point(self, a, _):
        assert great_circle_distance(a, a) == 0

    def test_one_degree_of_longitude_at_equator(self):
        # 2πR / 360
        assert haversine_distance(0, 0, 0, 1) == pytest.approx(111_194.93, rel=1e-6)

    def test_beijing_to_shanghai(self):
        d = great_circle_distance(Coord(39.9042, 116.4074), Coord(31.2304, 121.4737))
        assert d == pytest.approx(1_067_000, rel=0.01)

    def test_short_meridian_offset(self):
        a = Coord(0, 0)
        assert great_circle_distance(a, north_of(a, 10)) == pytest.approx(10, abs=1e-6)

    def test_antimeridian_is_short(self):
        assert great_circle_distance(Coord(0, -179.9), Coord(0, 179.9)) < 25_000


class TestPathLength:
    def test_sums_segments(self):
        a = Coord(0, 0)
        b = north_of(a, 100)
        c = north_of(b, 50)
        assert path_length([a, b, c]) == pytest.approx(150, abs=1e-6)

    def test_single_point_is_zero(self):
        assert path_length([Coord(1, 1)]) == 0

    def test_route_length(self):
        a = Coord(0, 0)
        route = Route((a, north_of(a, 30), north_of(a, 60)))
        assert route.length_m() == pytest.approx(60, abs=1e-6)
