from datetime import datetime, timedelta

import pytest

import models
from utils import alerts
from utils.otp import verify_email_otp


PASSWORD = "secret123"
REGISTER = {"name": "Asha", "email": "Asha@Example.com", "password": "secret123", "phone": "9876543210"}


@pytest.fixture
def outbox(monkeypatch):
    sent = []
    monkeypatch.setattr(alerts, "send_verification_email", lambda email, name, otp: sent.append((email, otp)))
    return sent


def test_register_verify_login(client, outbox):
    res = client.post("/api/auth/user/register", json=REGISTER)
    assert res.status_code == 201
    assert res.json()["data"] == {"email": "asha@example.com", "requiresVerification": True}
    assert outbox[-1][0] == "asha@example.com"

    login = {"email": "asha@example.com", "password": "secret123"}
    blocked = client.post("/api/auth/user/login", json=login)
    assert blocked.status_code == 403
    assert blocked.json()["requiresVerification"] is True
    otp = outbox[-1][1]

    wrong = client.post("/api/auth/user/verify-email", json={"email": "asha@example.com", "otp": "000000"})
    assert wrong.status_code == 400
    assert wrong.json()["message"] == "Invalid OTP. Please try again."

    ok = client.post("/api/auth/user/verify-email", json={"email": "asha@example.com", "otp": otp})
    assert ok.status_code == 200

    res = client.post("/api/auth/user/login", json=login)
    assert res.status_code == 200
    token = res.json()["data"]["token"]
    profile = client.get("/api/auth/user/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.json()["data"]["email"] == "asha@example.com"


def test_duplicate_registration(client, outbox):
    client.post("/api/auth/user/register", json=REGISTER)
    res = client.post("/api/auth/user/register", json=REGISTER)
    assert res.status_code == 400


def test_register_validation(client):
    res = client.post("/api/auth/user/register", json={"name": "A", "email": "bad", "password": "1", "phone": "1"})
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_wrong_password(client, make_user):
    user = make_user()
    res = client.post("/api/auth/user/login", json={"email": user.email, "password": "nope"})
    assert res.status_code == 401


def test_resend_otp(client, outbox, make_user):
    unverified = make_user(verified=False)
    verified = make_user()
    assert client.post("/api/auth/user/resend-otp", json={"email": unverified.email}).status_code == 200
    assert outbox[-1][0] == unverified.email
    assert client.post("/api/auth/user/resend-otp", json={"email": verified.email}).status_code == 400
    assert client.post("/api/auth/user/resend-otp", json={"email": "ghost@example.com"}).status_code == 404


def test_expired_otp():
    user = models.User(email="x@example.com", is_email_verified=False, email_otp="123456",
                       email_otp_expires=datetime.utcnow() - timedelta(seconds=1))
    ok, message = verify_email_otp(user, "123456")
    assert not ok
    assert message == "OTP has expired. Please request a new one."
    assert user.is_email_verified is False


def test_profile_update_and_photo(client, headers, make_user):
    user, other = make_user(), make_user()
    auth = headers(user, "user")

    taken = client.put("/api/auth/user/profile", json={"email": other.email}, headers=auth)
    assert taken.status_code == 400

    res = client.put("/api/auth/user/profile", json={"address": "MG Road"}, headers=auth)
    assert res.json()["data"]["address"] == "MG Road"

    bad = client.put("/api/auth/user/profile/photo", json={"profilePhoto": "http://x/y.png"}, headers=auth)
    assert bad.status_code == 400
    good = client.put("/api/auth/user/profile/photo", json={"profilePhoto": "data:image/png;base64,AAAA"},
                      headers=auth)
    assert good.json()["data"]["profilePhoto"].startswith("data:image/")


def test_police_and_admin_login(client, make_station, make_police, make_admin):
    officer = make_police(make_station(12.9716, 77.5946))
    admin = make_admin()

    res = client.post("/api/auth/police/login", json={"email": officer.email, "password": PASSWORD})
    assert res.status_code == 200
    token = res.json()["data"]["token"]
    profile = client.get("/api/auth/police/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.json()["data"]["station"]["_id"] == officer.station_id

    res = client.post("/api/auth/admin/login", json={"email": admin.email, "password": PASSWORD})
    token = res.json()["data"]["token"]
    profile = client.get("/api/auth/admin/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.json()["data"]["role"] == "admin"

    # a police token does not open admin routes
    police_token = client.post("/api/auth/police/login",
                               json={"email": officer.email, "password": PASSWORD}).json()["data"]["token"]
    res = client.get("/api/admin/dashboard", headers={"Authorization": f"Bearer {police_token}"})
    assert res.status_code == 403


def test_invalid_token(client):
    res = client.get("/api/auth/user/profile", headers={"Authorization": "Bearer garbage"})
    assert res.status_code == 401
    assert res.json()["message"] == "Not authorized, invalid token"
