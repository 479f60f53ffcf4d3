"""
JSON shapes returned by the API.

References are expanded explicitly here; no model method loads related rows
on its own. Field names follow the public contract (`_id`, camelCase).
"""
from typing import Optional

from sqlalchemy.orm import Session, selectinload

import models
from utils.geo import lat_lng_dict, point_lat_lng


def user_brief(user: Optional[models.User]):
    if user is None:
        return None
    return {
        "_id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "profilePhoto": user.profile_photo,
    }


def guardian_view(g: models.Guardian):
    return {"_id": g.id, "name": g.name, "phone": g.phone, "email": g.email}


def user_view(user: models.User):
    return {
        "_id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role,
        "address": user.address,
        "profilePhoto": user.profile_photo,
        "guardians": [guardian_view(g) for g in user.guardians],
        "location": user.location,
        "isEmailVerified": user.is_email_verified,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def station_view(station: Optional[models.PoliceStation], with_location: bool = True):
    if station is None:
        return None
    coords = point_lat_lng(station.location)
    out = {
        "_id": station.id,
        "name": station.name,
        "area": station.area,
        "city": station.city,
        "helpline": station.helpline,
    }
    if with_location:
        out["location"] = station.location
        out["latitude"] = coords[0] if coords else None
        out["longitude"] = coords[1] if coords else None
    return out


def station_flat_view(station: models.PoliceStation):
    lat, lng = point_lat_lng(station.location)
    return {
        "_id": station.id,
        "name": station.name,
        "area": station.area,
        "city": station.city,
        "latitude": lat,
        "longitude": lng,
        "helpline": station.helpline,
        "createdAt": station.created_at,
    }


def officer_brief(officer: Optional[models.Police]):
    if officer is None:
        return None
    return {"_id": officer.id, "name": officer.name, "email": officer.email, "phone": officer.phone}


def officer_view(officer: models.Police):
    return {
        "_id": officer.id,
        "name": officer.name,
        "email": officer.email,
        "phone": officer.phone,
        "role": officer.role,
        "profilePhoto": officer.profile_photo,
        "station": station_view(officer.station, with_location=False),
        "createdAt": officer.created_at,
    }


def admin_view(admin: models.Admin):
    return {"_id": admin.id, "name": admin.name, "email": admin.email, "role": admin.role,
            "createdAt": admin.created_at}


# ---------- alerts ----------

def load_alert_with_refs(db: Session, alert_id: int) -> Optional[models.SOSAlert]:
    return (
        db.query(models.SOSAlert)
        .options(
            selectinload(models.SOSAlert.user),
            selectinload(models.SOSAlert.nearest_station),
            selectinload(models.SOSAlert.assigned_officers),
        )
        .filter(models.SOSAlert.id == alert_id)
        .first()
    )


def alert_view(alert: models.SOSAlert):
    return {
        "_id": alert.id,
        "user": user_brief(alert.user),
        "location": lat_lng_dict(alert.location),
        "status": alert.status,
        "guardianNotified": alert.guardian_notified,
        "guardianCount": alert.guardian_count,
        "nearestStation": station_view(alert.nearest_station),
        "assignedOfficers": [officer_brief(o) for o in alert.assigned_officers],
        "assignmentStatus": alert.assignment_status,
        "distanceToStation": alert.distance_to_station,
        "assignedAt": alert.assigned_at,
        "createdAt": alert.created_at,
        "updatedAt": alert.updated_at,
    }


def alert_location_view(alert: models.SOSAlert):
    """Flattened alert row used by the admin map and the police feed."""
    user = alert.user
    return {
        "_id": alert.id,
        "name": user.name if user else None,
        "email": user.email if user else None,
        "phone": user.phone if user else None,
        "location": lat_lng_dict(alert.location),
        "status": alert.status,
        "guardianNotified": alert.guardian_notified,
        "guardianCount": alert.guardian_count,
        "nearestStation": station_view(alert.nearest_station),
        "assignedOfficers": [officer_brief(o) for o in alert.assigned_officers],
        "assignmentStatus": alert.assignment_status,
        "distanceToStation": alert.distance_to_station,
        "createdAt": alert.created_at,
        "assignedAt": alert.assigned_at,
        "type": "SOS",
    }


# ---------- complaints ----------

def complaint_view(c: models.Complaint):
    return {
        "_id": c.id,
        "description": c.description,
        "status": c.status,
        "priority": c.priority,
        "location": lat_lng_dict(c.location),
        "user": user_brief(c.user),
        "station": station_view(c.station, with_location=False),
        "assignedTo": officer_brief(c.officer),
        "createdAt": c.created_at,
        "updatedAt": c.updated_at,
    }


# ---------- chat ----------

def chat_message_view(m):
    out = {
        "_id": m.id,
        "sender": m.sender_id,
        "senderName": m.sender_name,
        "messageType": m.message_type,
        "message": m.message,
        "audioData": m.audio_data,
        "audioDuration": m.audio_duration,
        "location": m.location,
        "createdAt": m.created_at,
    }
    if isinstance(m, models.ChatMessage):
        out["sosAlertId"] = m.sos_alert_id
        out["senderModel"] = m.sender_model
        out["senderRole"] = m.sender_role
    else:
        out["tripId"] = m.trip_id
    return out


# ---------- travel buddy ----------

def _member(user: Optional[models.User]):
    if user is None:
        return None
    return {"_id": user.id, "name": user.name, "phone": user.phone, "profilePhoto": user.profile_photo}


def trip_view(trip: models.TravelBuddy):
    return {
        "_id": trip.id,
        "user": _member(trip.user),
        "from": {"name": trip.from_name, "coordinates": trip.from_coordinates},
        "to": {"name": trip.to_name, "coordinates": trip.to_coordinates},
        "departureTime": trip.departure_time,
        "note": trip.note,
        "status": trip.status,
        "matchedWith": [_member(u) for u in trip.matched_with],
        "requests": [
            {
                "_id": r.id,
                "user": _member(r.user),
                "message": r.message,
                "status": r.status,
                "createdAt": r.created_at,
            }
            for r in trip.requests
        ],
        "createdAt": trip.created_at,
        "updatedAt": trip.updated_at,
    }


def paginated(key: str, items, page: int, limit: int, total: int):
    return {
        key: items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": -(-total // limit) if limit else 0,
        },
    }
