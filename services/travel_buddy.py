"""
Travel buddy trips: a user posts a trip, others ask to join, the owner
accepts up to MAX_TRIP_BUDDIES of them.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

import config
import models
import schemas
from utils.geo import bounding_box

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("Active", "Matched")
FINISHED_STATUSES = ("Completed", "Cancelled")


def naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _owned_trip(db: Session, trip_id: int, user_id: int, action: str):
    trip = db.get(models.TravelBuddy, trip_id)
    if not trip:
        return None
    if trip.user_id != user_id:
        raise PermissionError(f"Only the trip owner can {action}")
    return trip


def create_trip(db: Session, user_id: int, data: schemas.TripCreate):
    existing = (
        db.query(models.TravelBuddy)
        .filter(models.TravelBuddy.user_id == user_id, models.TravelBuddy.status.in_(OPEN_STATUSES))
        .first()
    )
    if existing:
        raise ValueError("You already have an active trip. Cancel it first to create a new one.")

    trip = models.TravelBuddy(
        user_id=user_id,
        from_name=data.from_.name,
        from_coordinates=list(data.from_.coordinates),
        to_name=data.to.name,
        to_coordinates=list(data.to.coordinates),
        departure_time=naive_utc(data.departureTime),
        note=data.note or "",
    )
    db.add(trip)
    db.commit()
    db.refresh(trip)
    logger.info(f"Trip {trip.id} created by user {user_id}")
    return trip


def _in_box(coordinates, box) -> bool:
    if not coordinates or len(coordinates) != 2:
        return False
    lng, lat = coordinates
    min_lat, max_lat, min_lng, max_lng = box
    return min_lat <= lat <= max_lat and min_lng <= lng <= max_lng


def find_trips(db: Session, from_lat=None, from_lng=None, to_lat=None, to_lng=None,
               radius_km: float = config.TRIP_SEARCH_RADIUS_KM):
    """
    Upcoming open trips, soonest first. When a from/to point is given, the
    trip's matching endpoint must fall inside a box of radius_km around it.
    """
    trips = (
        db.query(models.TravelBuddy)
        .filter(
            models.TravelBuddy.status.in_(OPEN_STATUSES),
            models.TravelBuddy.departure_time >= datetime.utcnow(),
        )
        .order_by(models.TravelBuddy.departure_time.asc(), models.TravelBuddy.id.asc())
        .all()
    )
    if from_lat is not None and from_lng is not None:
        box = bounding_box(from_lat, from_lng, radius_km)
        trips = [t for t in trips if _in_box(t.from_coordinates, box)]
    if to_lat is not None and to_lng is not None:
        box = bounding_box(to_lat, to_lng, radius_km)
        trips = [t for t in trips if _in_box(t.to_coordinates, box)]
    return trips


def my_trips(db: Session, user_id: int):
    matched = select(models.trip_buddies.c.trip_id).where(models.trip_buddies.c.user_id == user_id)
    requested = select(models.TripRequest.trip_id).where(models.TripRequest.user_id == user_id)
    return (
        db.query(models.TravelBuddy)
        .filter(or_(
            models.TravelBuddy.user_id == user_id,
            models.TravelBuddy.id.in_(matched),
            models.TravelBuddy.id.in_(requested),
        ))
        .order_by(models.TravelBuddy.created_at.desc(), models.TravelBuddy.id.desc())
        .all()
    )


def send_request(db: Session, trip_id: int, user_id: int, message: str = ""):
    trip = db.get(models.TravelBuddy, trip_id)
    if not trip:
        return None
    if trip.user_id == user_id:
        raise ValueError("You cannot request to join your own trip")
    if trip.status in FINISHED_STATUSES:
        raise ValueError("This trip is no longer available")
    if len(trip.matched_with) >= config.MAX_TRIP_BUDDIES:
        raise ValueError(f"This trip is full (max {config.MAX_TRIP_BUDDIES + 1} members)")
    if any(r.user_id == user_id and r.status == "Pending" for r in trip.requests):
        raise ValueError("You have already sent a request for this trip")

    trip.requests.append(models.TripRequest(user_id=user_id, message=message or "", status="Pending"))
    db.commit()
    db.refresh(trip)
    return trip


def _find_request(trip: models.TravelBuddy, request_id: int):
    for r in trip.requests:
        if r.id == request_id:
            return r
    raise LookupError("Request not found")


def accept_request(db: Session, trip_id: int, request_id: int, owner_id: int):
    trip = _owned_trip(db, trip_id, owner_id, "accept requests")
    if trip is None:
        return None
    request = _find_request(trip, request_id)
    if request.status != "Pending":
        raise ValueError("This request has already been processed")

    request.status = "Accepted"
    trip.matched_with.append(request.user)
    trip.status = "Matched"
    if len(trip.matched_with) >= config.MAX_TRIP_BUDDIES:
        for r in trip.requests:
            if r.id != request.id and r.status == "Pending":
                r.status = "Rejected"
    db.commit()
    db.refresh(trip)
    logger.info(f"Trip {trip_id}: request {request_id} accepted")
    return trip


def reject_request(db: Session, trip_id: int, request_id: int, owner_id: int):
    trip = _owned_trip(db, trip_id, owner_id, "reject requests")
    if trip is None:
        return None
    request = _find_request(trip, request_id)
    request.status = "Rejected"
    db.commit()
    return trip


def cancel_trip(db: Session, trip_id: int, owner_id: int):
    trip = _owned_trip(db, trip_id, owner_id, "cancel the trip")
    if trip is None:
        return None
    if trip.status in FINISHED_STATUSES:
        raise ValueError("This trip is already finished or cancelled")
    trip.status = "Cancelled"
    db.commit()
    return trip


def complete_trip(db: Session, trip_id: int, owner_id: int):
    trip = _owned_trip(db, trip_id, owner_id, "complete the trip")
    if trip is None:
        return None
    trip.status = "Completed"
    db.commit()
    return trip


def is_participant(trip: models.TravelBuddy, user_id: int) -> bool:
    if trip.user_id == user_id:
        return True
    return any(u.id == user_id for u in trip.matched_with)
