import os

# must be set before config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BREVO_API_KEY"] = ""
os.environ["TWILIO_SID"] = ""
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

import models
import auth.utils_auth as auth_utils
from database import Base, SessionLocal, engine
from main import app
from utils.geo import to_point

# bcrypt is slow; every factory account shares one hash
PASSWORD = "secret123"
PASSWORD_HASH = auth_utils.hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(name=None, email=None, guardians=0, verified=True, phone="9000000000"):
        counter["n"] += 1
        user = models.User(
            name=name or f"User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password_hash=PASSWORD_HASH,
            phone=phone,
            is_email_verified=verified,
        )
        for i in range(guardians):
            user.guardians.append(models.Guardian(name=f"Guardian {i}", phone=f"800000000{i}",
                                                  email=f"guardian{i}@example.com"))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_station(db):
    def _make(lat, lng, name="Central Station"):
        station = models.PoliceStation(name=name, area="Area", city="City", location=to_point(lat, lng),
                                       helpline="100")
        db.add(station)
        db.commit()
        db.refresh(station)
        return station

    return _make


@pytest.fixture
def make_police(db):
    counter = {"n": 0}

    def _make(station, name=None):
        counter["n"] += 1
        police = models.Police(
            name=name or f"Officer {counter['n']}",
            email=f"officer{counter['n']}@police.example.com",
            password_hash=PASSWORD_HASH,
            phone="7000000000",
            station_id=station.id,
        )
        db.add(police)
        db.commit()
        db.refresh(police)
        return police

    return _make


@pytest.fixture
def make_admin(db):
    def _make():
        admin = models.Admin(name="Admin", email="admin@example.com", password_hash=PASSWORD_HASH)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin

    return _make


@pytest.fixture
def make_alert(db):
    def _make(user, lat=12.9716, lng=77.5946, status="Active"):
        alert = models.SOSAlert(user_id=user.id, location=to_point(lat, lng), status=status)
        db.add(alert)
        db.commit()
        db.refresh(alert)
        return alert

    return _make


def auth_header(account, role):
    return {"Authorization": f"Bearer {auth_utils.create_token(account.id, role)}"}


@pytest.fixture
def headers():
    return auth_header
