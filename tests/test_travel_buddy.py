from datetime import datetime, timedelta

import pytest


def _trip_body(hours=2, from_coords=(77.5946, 12.9716), to_coords=(77.62, 12.93)):
    return {
        "from": {"name": "MG Road", "coordinates": list(from_coords)},
        "to": {"name": "Koramangala", "coordinates": list(to_coords)},
        "departureTime": (datetime.utcnow() + timedelta(hours=hours)).isoformat(),
        "note": "Evening ride",
    }


@pytest.fixture
def trip(client, headers, make_user):
    owner = make_user()
    res = client.post("/api/travel-buddy", json=_trip_body(), headers=headers(owner, "user"))
    assert res.status_code == 201
    return owner, res.json()["data"]


def test_one_open_trip_per_user(client, headers, trip):
    owner, _ = trip
    res = client.post("/api/travel-buddy", json=_trip_body(), headers=headers(owner, "user"))
    assert res.status_code == 400


def test_find_by_area(client, headers, trip, make_user):
    searcher = headers(make_user(), "user")
    near = client.get("/api/travel-buddy/find", params={"fromLat": 12.972, "fromLng": 77.595}, headers=searcher)
    assert near.json()["count"] == 1
    far = client.get("/api/travel-buddy/find", params={"fromLat": 13.5, "fromLng": 77.595}, headers=searcher)
    assert far.json()["count"] == 0
    dest = client.get("/api/travel-buddy/find", params={"toLat": 12.93, "toLng": 77.62, "radius": 1},
                      headers=searcher)
    assert dest.json()["count"] == 1


def test_past_trips_are_not_listed(client, headers, make_user):
    owner = make_user()
    client.post("/api/travel-buddy", json=_trip_body(hours=-1), headers=headers(owner, "user"))
    res = client.get("/api/travel-buddy/find", headers=headers(make_user(), "user"))
    assert res.json()["count"] == 0


def test_request_rules(client, headers, trip, make_user):
    owner, data = trip
    joiner = headers(make_user(), "user")
    url = f"/api/travel-buddy/{data['_id']}/request"

    assert client.post(url, json={}, headers=headers(owner, "user")).status_code == 400
    assert client.post(url, json={"message": "hi"}, headers=joiner).status_code == 200
    dup = client.post(url, json={"message": "again"}, headers=joiner)
    assert dup.status_code == 400
    assert dup.json()["message"] == "You have already sent a request for this trip"
    assert client.post("/api/travel-buddy/999/request", json={}, headers=joiner).status_code == 404


def test_accept_fills_trip_and_rejects_rest(client, headers, trip, make_user):
    owner, data = trip
    trip_id = data["_id"]
    users = [make_user() for _ in range(5)]
    for u in users:
        client.post(f"/api/travel-buddy/{trip_id}/request", json={}, headers=headers(u, "user"))
    requests = client.get("/api/travel-buddy/my-trips", headers=headers(owner, "user")).json()["data"][0]["requests"]

    outsider = headers(users[0], "user")
    denied = client.put(f"/api/travel-buddy/{trip_id}/request/{requests[0]['_id']}/accept", headers=outsider)
    assert denied.status_code == 403

    for r in requests[:4]:
        res = client.put(f"/api/travel-buddy/{trip_id}/request/{r['_id']}/accept", headers=headers(owner, "user"))
        assert res.status_code == 200

    result = res.json()["data"]
    assert result["status"] == "Matched"
    assert len(result["matchedWith"]) == 4
    assert result["requests"][4]["status"] == "Rejected"

    again = client.put(f"/api/travel-buddy/{trip_id}/request/{requests[0]['_id']}/accept",
                       headers=headers(owner, "user"))
    assert again.status_code == 400
    full = client.post(f"/api/travel-buddy/{trip_id}/request", json={}, headers=headers(make_user(), "user"))
    assert full.status_code == 400


def test_my_trips_includes_requested(client, headers, trip, make_user):
    _, data = trip
    joiner = make_user()
    client.post(f"/api/travel-buddy/{data['_id']}/request", json={}, headers=headers(joiner, "user"))
    mine = client.get("/api/travel-buddy/my-trips", headers=headers(joiner, "user")).json()["data"]
    assert [t["_id"] for t in mine] == [data["_id"]]


def test_cancel_and_complete(client, headers, trip, make_user):
    owner, data = trip
    url = f"/api/travel-buddy/{data['_id']}"
    assert client.put(f"{url}/cancel", headers=headers(make_user(), "user")).status_code == 403
    assert client.put(f"{url}/cancel", headers=headers(owner, "user")).status_code == 200
    assert client.put(f"{url}/cancel", headers=headers(owner, "user")).status_code == 400
    assert client.post(f"{url}/request", json={}, headers=headers(make_user(), "user")).status_code == 400

    # a cancelled trip frees the owner to post again
    new = client.post("/api/travel-buddy", json=_trip_body(), headers=headers(owner, "user")).json()["data"]
    res = client.put(f"/api/travel-buddy/{new['_id']}/complete", headers=headers(owner, "user"))
    assert res.json()["message"] == "Trip marked as completed"


def test_trip_validation(client, headers, make_user):
    body = _trip_body()
    body["from"]["coordinates"] = [77.5]
    res = client.post("/api/travel-buddy", json=body, headers=headers(make_user(), "user"))
    assert res.status_code == 400
