from __future__ import annotations

import pytest

from fuel_companion.services.geo import distance_miles, haversine_miles
from fuel_companion.services.types import Coordinate

LONDON = Coordinate(latitude=51.5074, longitude=-0.1278)
MANCHESTER = Coordinate(latitude=53.4808, longitude=-2.2426)
EDINBURGH = Coordinate(latitude=55.9533, longitude=-3.1883)


def test_distance_between_london_and_manchester() -> None:
    assert distance_miles(LONDON, MANCHESTER) == pytest.approx(162.8, abs=1.0)


def test_distance_is_symmetric() -> None:
    for a, b in [(LONDON, MANCHESTER), (MANCHESTER, EDINBURGH), (EDINBURGH, LONDON)]:
        assert distance_miles(a, b) == distance_miles(b, a)


def test_distance_to_self_is_zero() -> None:
    assert distance_miles(LONDON, LONDON) == 0.0
    assert haversine_miles(0.0, 0.0, 0.0, 0.0) == 0.0


def test_one_degree_of_latitude_uses_mean_earth_radius() -> None:
    # 3958.8 * pi / 180
    assert haversine_miles(0.0, 0.0, 1.0, 0.0) == pytest.approx(69.09, abs=0.01)
