from datetime import datetime, timedelta

import pytest

from services import sos


@pytest.fixture
def assigned_alert(db, make_user, make_station, make_police, make_alert):
    user = make_user()
    station = make_station(12.9716, 77.5946)
    officer = make_police(station)
    bystander = make_police(make_station(13.5, 77.5946, name="Other Station"))
    alert = make_alert(user)
    assert sos.assign_officers_to_alert(db, alert.id, station.id).success
    return user, officer, bystander, alert


def test_owner_and_assigned_officer_chat(client, headers, assigned_alert):
    user, officer, _, alert = assigned_alert
    url = f"/api/chat/{alert.id}/messages"

    res = client.post(url, json={"message": "  I am near the gate  "}, headers=headers(user, "user"))
    assert res.status_code == 201
    assert res.json()["data"]["message"] == "I am near the gate"
    assert res.json()["data"]["senderRole"] == "user"

    client.post(url, json={"message": "On our way"}, headers=headers(officer, "police"))

    res = client.get(url, headers=headers(user, "user"))
    assert res.json()["count"] == 2
    assert [m["senderModel"] for m in res.json()["data"]] == ["User", "Police"]


def test_outsiders_are_refused(client, headers, make_user, make_station, make_police, make_alert):
    owner = make_user()
    alert = make_alert(owner)
    stranger = make_user()
    officer = make_police(make_station(12.9716, 77.5946))
    url = f"/api/chat/{alert.id}/messages"

    assert client.get(url, headers=headers(stranger, "user")).status_code == 403
    assert client.post(url, json={"message": "hi"}, headers=headers(officer, "police")).status_code == 403
    assert client.get("/api/chat/999/messages", headers=headers(owner, "user")).status_code == 404


def test_admin_can_join_any_chat(client, headers, make_user, make_admin, make_alert):
    alert = make_alert(make_user())
    admin = make_admin()
    res = client.post(f"/api/chat/{alert.id}/messages", json={"message": "Dispatching"}, headers=headers(admin, "admin"))
    assert res.status_code == 201
    assert res.json()["data"]["senderRole"] == "admin"


def test_message_types(client, headers, make_user, make_alert):
    owner = make_user()
    alert = make_alert(owner)
    url = f"/api/chat/{alert.id}/messages"
    auth = headers(owner, "user")

    assert client.post(url, json={"messageType": "text", "message": "   "}, headers=auth).status_code == 400
    assert client.post(url, json={"messageType": "audio"}, headers=auth).status_code == 400
    assert client.post(url, json={"messageType": "location", "location": {"lat": 1}}, headers=auth).status_code == 400
    assert client.post(url, json={"messageType": "video", "message": "x"}, headers=auth).status_code == 400

    audio = client.post(url, json={"messageType": "audio", "audioData": "UklGR", "audioDuration": 3.5},
                        headers=auth).json()["data"]
    assert audio["message"] == "🎤 Voice message"
    assert audio["audioDuration"] == 3.5

    loc = client.post(url, json={"messageType": "location", "location": {"lat": 12.9716, "lng": 77.5946}},
                      headers=auth).json()["data"]
    assert loc["message"] == "📍 Location: 12.971600, 77.594600"


def test_since_filter(client, headers, make_user, make_alert):
    owner = make_user()
    alert = make_alert(owner)
    url = f"/api/chat/{alert.id}/messages"
    client.post(url, json={"message": "first"}, headers=headers(owner, "user"))

    future = (datetime.utcnow() + timedelta(minutes=5)).isoformat()
    res = client.get(url, params={"since": future}, headers=headers(owner, "user"))
    assert res.json()["count"] == 0


def test_chat_info(client, headers, assigned_alert):
    user, officer, _, alert = assigned_alert
    client.post(f"/api/chat/{alert.id}/messages", json={"message": "help"}, headers=headers(user, "user"))
    info = client.get(f"/api/chat/{alert.id}/info", headers=headers(officer, "police")).json()["data"]
    roles = [p["role"] for p in info["participants"]]
    assert roles[0] == "user"
    assert "police" in roles
    assert roles[-1] == "admin"
    assert info["messageCount"] == 1
    assert info["status"] == "Active"


def test_trip_chat_is_for_participants(client, headers, make_user):
    owner, buddy, stranger = make_user(), make_user(), make_user()
    trip = client.post("/api/travel-buddy", json={
        "from": {"name": "A", "coordinates": [77.59, 12.97]},
        "to": {"name": "B", "coordinates": [77.62, 12.93]},
        "departureTime": (datetime.utcnow() + timedelta(hours=1)).isoformat(),
    }, headers=headers(owner, "user")).json()["data"]
    client.post(f"/api/travel-buddy/{trip['_id']}/request", json={}, headers=headers(buddy, "user"))
    request_id = client.get("/api/travel-buddy/my-trips", headers=headers(owner, "user")).json()["data"][0][
        "requests"][0]["_id"]

    url = f"/api/travel-buddy-chat/{trip['_id']}/messages"
    assert client.post(url, json={"message": "hi"}, headers=headers(buddy, "user")).status_code == 403

    client.put(f"/api/travel-buddy/{trip['_id']}/request/{request_id}/accept", headers=headers(owner, "user"))
    assert client.post(url, json={"message": "see you"}, headers=headers(buddy, "user")).status_code == 201
    assert client.get(url, headers=headers(stranger, "user")).status_code == 403

    info = client.get(f"/api/travel-buddy-chat/{trip['_id']}/info", headers=headers(owner, "user")).json()["data"]
    assert [p["role"] for p in info["participants"]] == ["owner", "buddy"]
    assert info["messageCount"] == 1
    assert info["from"] == "A"
