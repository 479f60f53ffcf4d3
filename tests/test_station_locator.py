import pytest

from services.sos import find_nearest_station


def test_station_150m_away_is_found(db, make_station):
    station = make_station(12.9716, 77.5946)
    nearest = find_nearest_station(db, 12.9716 + 0.00135, 77.5946)
    assert nearest is not None
    assert nearest.station_id == station.id
    assert nearest.distance == pytest.approx(150, abs=2)


def test_nothing_beyond_50km(db, make_station):
    make_station(13.9716, 77.5946)  # ~111 km north
    assert find_nearest_station(db, 12.9716, 77.5946) is None


def test_no_stations(db):
    assert find_nearest_station(db, 12.9716, 77.5946) is None


def test_nearest_of_several_wins(db, make_station):
    make_station(12.99, 77.5946, name="Far")
    near = make_station(12.972, 77.5946, name="Near")
    make_station(13.2, 77.5946, name="Farther")
    assert find_nearest_station(db, 12.9716, 77.5946).station_id == near.id


def test_equidistant_stations_pick_first_created(db, make_station):
    first = make_station(10.0, 20.25, name="East")
    make_station(10.0, 19.75, name="West")
    assert find_nearest_station(db, 10.0, 20.0).station_id == first.id


def test_custom_radius(db, make_station):
    make_station(12.9816, 77.5946)  # ~1.1 km
    assert find_nearest_station(db, 12.9716, 77.5946, max_distance_m=1000) is None
    assert find_nearest_station(db, 12.9716, 77.5946, max_distance_m=2000) is not None
