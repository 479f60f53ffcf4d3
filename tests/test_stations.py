import re

import pytest

import models
from database import engine
from utils.geo import to_point


def test_nearby_formats_distance(client, headers, make_user, make_station):
    near = make_station(12.9816, 77.5946, name="Near")   # ~1.1 km
    make_station(13.2, 77.5946, name="Far")               # ~25 km
    res = client.get("/api/stations/nearby", params={"lat": 12.9716, "lng": 77.5946},
                     headers=headers(make_user(), "user"))

    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 1
    station = body["data"][0]
    assert station["_id"] == near.id
    assert re.fullmatch(r"\d+\.\d{2} km", station["distance"])
    assert station["distance"] == "1.11 km"
    assert station["latitude"] == 12.9816


def test_nearby_requires_coordinates(client, headers, make_user):
    res = client.get("/api/stations/nearby", headers=headers(make_user(), "user"))
    assert res.status_code == 400


def test_nearby_limit_and_order(client, headers, make_user, make_station):
    for i in range(12):
        make_station(12.9716 + 0.001 * (12 - i), 77.5946, name=f"S{i}")
    res = client.get("/api/stations/nearby", params={"lat": 12.9716, "lng": 77.5946},
                     headers=headers(make_user(), "user"))
    data = res.json()["data"]
    assert len(data) == 10
    assert data[0]["name"] == "S11"


def test_public_listing(client, make_station):
    make_station(12.9716, 77.5946)
    res = client.get("/api/stations/all")
    assert res.status_code == 200
    assert res.json()["count"] == 1


def test_admin_station_crud(client, headers, make_admin, make_police):
    admin = headers(make_admin(), "admin")
    res = client.post("/api/admin/stations", json={
        "name": "Koramangala PS", "area": "Koramangala", "city": "Bengaluru",
        "latitude": 12.93, "longitude": 77.62, "helpline": "080-100",
    }, headers=admin)
    assert res.status_code == 201
    sid = res.json()["data"]["_id"]

    res = client.put(f"/api/admin/stations/{sid}", json={"helpline": "112"}, headers=admin)
    assert res.json()["data"]["helpline"] == "112"

    listing = client.get("/api/admin/stations", params={"search": "kora"}, headers=admin).json()["data"]
    assert listing["pagination"]["total"] == 1


def test_delete_blocked_while_officers_assigned(client, db, headers, make_admin, make_station, make_police):
    admin = headers(make_admin(), "admin")
    station = make_station(12.9716, 77.5946)
    officer = make_police(station)

    res = client.delete(f"/api/admin/stations/{station.id}", headers=admin)
    assert res.status_code == 400
    assert res.json()["message"] == "Cannot delete station with assigned police officers"

    assert client.delete(f"/api/admin/police/{officer.id}", headers=admin).status_code == 200
    assert client.delete(f"/api/admin/stations/{station.id}", headers=admin).status_code == 200
    assert client.delete(f"/api/admin/stations/{station.id}", headers=admin).status_code == 404


def test_create_police_account(client, headers, make_admin, make_station):
    admin = headers(make_admin(), "admin")
    station = make_station(12.9716, 77.5946)
    body = {"name": "Inspector", "email": "Insp@Police.com", "password": "secret123", "phone": "1",
            "stationId": station.id}

    res = client.post("/api/stations/create-police", json=body, headers=admin)
    assert res.status_code == 201
    assert res.json()["data"]["email"] == "insp@police.com"
    assert res.json()["data"]["station"]["_id"] == station.id

    dup = client.post("/api/stations/create-police", json=body, headers=admin)
    assert dup.status_code == 400

    body["stationId"] = 999
    body["email"] = "other@police.com"
    assert client.post("/api/stations/create-police", json=body, headers=admin).status_code == 404


@pytest.fixture
def foreign_keys():
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
    yield
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")


def test_delete_blocked_while_complaints_exist(client, db, headers, foreign_keys, make_admin, make_user,
                                               make_station):
    admin = headers(make_admin(), "admin")
    station = make_station(12.9716, 77.5946)
    db.add(models.Complaint(user_id=make_user().id, station_id=station.id, description="Harassed at stop",
                            location=to_point(12.97, 77.59)))
    db.commit()

    res = client.delete(f"/api/admin/stations/{station.id}", headers=admin)
    assert res.status_code == 400
    assert res.json()["message"] == "Cannot delete station with existing complaints"
    db.expire_all()
    assert db.get(models.PoliceStation, station.id) is not None
