import dataclasses

import pytest

from models import Coordinate, RouteData

SYDNEY = Coordinate(-33.8688, 151.2093, "Sydney")
MELBOURNE = Coordinate(-37.8136, 144.9631, "Melbourne")


def test_coordinate_truthiness():
    assert not Coordinate(0.0, 0.0)
    assert Coordinate(0.0, 1.0)
    assert Coordinate(-1.0, 0.0)


def test_coordinate_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        SYDNEY.lat = 1.0


def test_with_name_returns_copy():
    renamed = SYDNEY.with_name("Home")
    assert renamed == Coordinate(-33.8688, 151.2093, "Home")
    assert SYDNEY.name == "Sydney"


def test_distance_sydney_melbourne():
    assert 700_000 < SYDNEY.distance_from(MELBOURNE) < 730_000
    assert SYDNEY.distance_from(SYDNEY) == 0


def test_route_data_stores_tuple():
    points = [SYDNEY, MELBOURNE]
    route = RouteData(points, "Sydney to Melbourne")
    points.append(Coordinate(1, 1))
    assert route.waypoints == (SYDNEY, MELBOURNE)
    assert len(route) == 2
    assert list(route) == [SYDNEY, MELBOURNE]
    assert route[-1] is MELBOURNE


def test_total_distance():
    route = RouteData([SYDNEY, MELBOURNE, SYDNEY], "loop")
    assert route.total_distance() == pytest.approx(2 * SYDNEY.distance_from(MELBOURNE))
    assert RouteData([SYDNEY], "one").total_distance() == 0.0
