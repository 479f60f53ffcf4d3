from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, ForeignKey, Text, JSON, Table
from sqlalchemy.orm import relationship
from database import Base

ALERT_STATUSES = ("Active", "Resolved", "Cancelled")
ASSIGNMENT_STATUSES = ("Unassigned", "Assigned", "In Progress", "Resolved")
COMPLAINT_STATUSES = ("Pending", "In Progress", "Resolved")
COMPLAINT_PRIORITIES = ("Low", "Medium", "High", "Critical")
TRIP_STATUSES = ("Active", "Matched", "Completed", "Cancelled")
TRIP_REQUEST_STATUSES = ("Pending", "Accepted", "Rejected")
MESSAGE_TYPES = ("text", "audio", "location")


def default_location():
    return {"type": "Point", "coordinates": [0, 0]}


alert_officers = Table(
    "alert_officers",
    Base.metadata,
    Column("alert_id", Integer, ForeignKey("sos_alerts.id", ondelete="CASCADE"), primary_key=True),
    Column("police_id", Integer, ForeignKey("police.id", ondelete="CASCADE"), primary_key=True),
)

trip_buddies = Table(
    "trip_buddies",
    Base.metadata,
    Column("trip_id", Integer, ForeignKey("travel_buddies.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    address = Column(String(255), default="")
    profile_photo = Column(Text, nullable=True)
    location = Column(JSON, default=default_location)  # GeoJSON, [lng, lat]
    role = Column(String(20), default="user")
    is_email_verified = Column(Boolean, default=False)
    email_otp = Column(String(6), nullable=True)
    email_otp_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    guardians = relationship("Guardian", cascade="all, delete-orphan", order_by="Guardian.id",
                             back_populates="user")


class Guardian(Base):
    __tablename__ = "guardians"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False)
    email = Column(String(100), nullable=False)

    user = relationship("User", back_populates="guardians")


class Admin(Base):
    __tablename__ = "admins"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default="admin")
    created_at = Column(DateTime, default=datetime.utcnow)


class PoliceStation(Base):
    __tablename__ = "police_stations"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    area = Column(String(150), nullable=False)
    city = Column(String(50), nullable=False)
    location = Column(JSON, nullable=False)  # GeoJSON, [lng, lat]
    helpline = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    officers = relationship("Police", back_populates="station")


class Police(Base):
    __tablename__ = "police"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    station_id = Column(Integer, ForeignKey("police_stations.id"), nullable=False, index=True)
    profile_photo = Column(Text, nullable=True)
    role = Column(String(20), default="police")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    station = relationship("PoliceStation", back_populates="officers")
    assigned_alerts = relationship("SOSAlert", secondary=alert_officers, back_populates="assigned_officers")


class SOSAlert(Base):
    __tablename__ = "sos_alerts"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    location = Column(JSON, nullable=False)  # GeoJSON, [lng, lat]
    status = Column(String(20), default="Active", index=True)
    guardian_notified = Column(Boolean, default=False)
    guardian_count = Column(Integer, default=0)
    nearest_station_id = Column(Integer, ForeignKey("police_stations.id", ondelete="SET NULL"), nullable=True)
    distance_to_station = Column(Float, nullable=True)  # meters
    assignment_status = Column(String(20), default="Unassigned")
    assigned_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version = Column(Integer, nullable=False)

    user = relationship("User", foreign_keys=[user_id])
    nearest_station = relationship("PoliceStation", foreign_keys=[nearest_station_id])
    assigned_officers = relationship("Police", secondary=alert_officers, order_by="Police.id",
                                     back_populates="assigned_alerts")

    # concurrent writers on the same alert fail with StaleDataError
    __mapper_args__ = {"version_id_col": version}


class Complaint(Base):
    __tablename__ = "complaints"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    station_id = Column(Integer, ForeignKey("police_stations.id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    status = Column(String(20), default="Pending", index=True)
    priority = Column(String(20), default="Medium")
    assigned_to = Column(Integer, ForeignKey("police.id", ondelete="SET NULL"), nullable=True)
    location = Column(JSON, nullable=False)  # GeoJSON, [lng, lat]
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])
    station = relationship("PoliceStation", foreign_keys=[station_id])
    officer = relationship("Police", foreign_keys=[assigned_to])


class ChatMessage(Base):
    __tablename__ = "chat_messages"
    id = Column(Integer, primary_key=True, index=True)
    sos_alert_id = Column(Integer, ForeignKey("sos_alerts.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, nullable=False)
    sender_model = Column(String(10), nullable=False)  # User | Police | Admin
    sender_name = Column(String(100), nullable=False)
    sender_role = Column(String(10), nullable=False)  # user | police | admin
    message_type = Column(String(10), default="text")
    message = Column(String(1000))
    audio_data = Column(Text, nullable=True)  # base64
    audio_duration = Column(Float, nullable=True)  # seconds
    location = Column(JSON, nullable=True)  # {lat, lng, address}
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class TravelBuddy(Base):
    __tablename__ = "travel_buddies"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    from_name = Column(String(255), nullable=False)
    from_coordinates = Column(JSON, nullable=False)  # [lng, lat]
    to_name = Column(String(255), nullable=False)
    to_coordinates = Column(JSON, nullable=False)  # [lng, lat]
    departure_time = Column(DateTime, nullable=False)
    note = Column(Text, default="")
    status = Column(String(20), default="Active", index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])
    matched_with = relationship("User", secondary=trip_buddies, order_by="User.id")
    requests = relationship("TripRequest", cascade="all, delete-orphan", order_by="TripRequest.id",
                            back_populates="trip")
    messages = relationship("TravelBuddyMessage", cascade="all, delete-orphan")


class TripRequest(Base):
    __tablename__ = "trip_requests"
    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("travel_buddies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(String(500), default="")
    status = Column(String(20), default="Pending")
    created_at = Column(DateTime, default=datetime.utcnow)

    trip = relationship("TravelBuddy", back_populates="requests")
    user = relationship("User")


class TravelBuddyMessage(Base):
    __tablename__ = "travel_buddy_messages"
    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("travel_buddies.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sender_name = Column(String(100), nullable=False)
    message_type = Column(String(10), default="text")
    message = Column(String(1000))
    audio_data = Column(Text, nullable=True)
    audio_duration = Column(Float, nullable=True)
    location = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
