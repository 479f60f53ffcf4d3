from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from datetime import datetime


class Body(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)


# ---------- auth ----------

class UserRegister(Body):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = Field(..., min_length=1)


class LoginSchema(Body):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class OTPVerify(Body):
    email: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=1)


class ResendOTP(Body):
    email: str = Field(..., min_length=1)


class ProfileUpdate(Body):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[EmailStr] = None


class PhotoUpdate(Body):
    profilePhoto: str = Field(..., min_length=1)


# ---------- sos ----------

class LocationPayload(Body):
    lat: Optional[float] = None
    lng: Optional[float] = None


class AssignOfficersPayload(Body):
    stationId: Optional[int] = None


# ---------- stations / police ----------

class StationCreate(Body):
    name: str = Field(..., min_length=1)
    area: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    latitude: float
    longitude: float
    helpline: str = Field(..., min_length=1)


class StationUpdate(Body):
    name: Optional[str] = None
    area: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    helpline: Optional[str] = None


class PoliceCreate(Body):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = Field(..., min_length=1)
    stationId: int
    profilePhoto: Optional[str] = None


class PoliceUpdate(Body):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    stationId: Optional[int] = None
    profilePhoto: Optional[str] = None


class PoliceProfileUpdate(Body):
    profilePhoto: Optional[str] = None


# ---------- complaints ----------

class ComplaintCreate(Body):
    description: str = Field(..., min_length=1)
    stationId: int
    lat: float
    lng: float
    priority: Optional[str] = None


class ComplaintStatusUpdate(Body):
    status: str = Field(..., min_length=1)


class AdminComplaintUpdate(Body):
    status: Optional[str] = None
    priority: Optional[str] = None


class AssignComplaintPayload(Body):
    policeId: Optional[int] = None


# ---------- guardians ----------

class GuardianCreate(Body):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: EmailStr


class GuardianUpdate(Body):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


# ---------- chat ----------

class ChatLocation(Body):
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None


class ChatMessageCreate(Body):
    message: Optional[str] = Field(None, max_length=1000)
    messageType: str = "text"
    audioData: Optional[str] = None
    audioDuration: Optional[float] = None
    location: Optional[ChatLocation] = None


# ---------- travel buddy ----------

class TripPlace(Body):
    name: str = Field(..., min_length=1)
    coordinates: List[float] = Field(..., min_length=2, max_length=2)  # [lng, lat]


class TripCreate(Body):
    from_: TripPlace = Field(..., alias="from")
    to: TripPlace
    departureTime: datetime
    note: Optional[str] = ""


class TripRequestCreate(Body):
    message: Optional[str] = ""
