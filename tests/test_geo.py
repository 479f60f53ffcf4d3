import pytest

from utils.geo import (EARTH_RADIUS_M, bounding_box, distance_km, format_km, haversine, lat_lng_dict,
                       point_lat_lng, to_point)


def test_one_degree_of_longitude_at_equator():
    assert haversine(0, 0, 0, 1) == pytest.approx(111.19, abs=0.01)


def test_radius_selects_unit():
    km = haversine(12.97, 77.59, 13.08, 80.27)
    m = haversine(12.97, 77.59, 13.08, 80.27, EARTH_RADIUS_M)
    assert m == pytest.approx(km * 1000)


@pytest.mark.parametrize("a, b", [
    ((12.9716, 77.5946), (13.0827, 80.2707)),
    ((-33.86, 151.21), (51.5, -0.12)),
    ((0, 179.9), (0, -179.9)),
    ((89.9, 0), (-89.9, 180)),
])
def test_distance_is_symmetric(a, b):
    assert haversine(a[0], a[1], b[0], b[1]) == pytest.approx(haversine(b[0], b[1], a[0], a[1]))
    assert haversine(a[0], a[1], b[0], b[1], EARTH_RADIUS_M) == \
        pytest.approx(haversine(b[0], b[1], a[0], a[1], EARTH_RADIUS_M))
    assert distance_km(a, b) == pytest.approx(distance_km(b, a))


def test_same_point_is_zero():
    assert distance_km((28.6, 77.2), (28.6, 77.2)) == 0


def test_point_stores_lng_first():
    point = to_point(12.5, 77.25)
    assert point == {"type": "Point", "coordinates": [77.25, 12.5]}
    assert point_lat_lng(point) == (12.5, 77.25)
    assert lat_lng_dict(point) == {"lat": 12.5, "lng": 77.25}


def test_point_helpers_tolerate_missing_coordinates():
    assert point_lat_lng(None) is None
    assert point_lat_lng({"type": "Point", "coordinates": []}) is None
    assert lat_lng_dict(None) is None


def test_bounding_box_contains_center():
    min_lat, max_lat, min_lng, max_lng = bounding_box(12.97, 77.59, 5)
    assert min_lat < 12.97 < max_lat
    assert min_lng < 77.59 < max_lng
    assert max_lat - min_lat == pytest.approx(10 / 111)


def test_format_km():
    assert format_km(1.23456) == "1.23 km"
    assert format_km(0) == "0.00 km"
