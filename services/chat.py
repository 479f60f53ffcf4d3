"""
Polling chat attached to an SOS alert or to a travel buddy trip.

SOS chats are open to the alert owner, the officers assigned to it and any
admin. Trip chats are open to the trip owner and matched buddies.
"""
from datetime import datetime

from sqlalchemy.orm import Session

import config
import models
import schemas
from auth.principals import AdminPrincipal, PolicePrincipal, Principal, UserPrincipal
from services.travel_buddy import is_participant, naive_utc

VOICE_MESSAGE_TEXT = "🎤 Voice message"


def _message_fields(data: schemas.ChatMessageCreate, strict_messages: bool = True):
    """
    Validate a chat body and return the type-specific columns to store.
    """
    kind = data.messageType or "text"
    if kind not in models.MESSAGE_TYPES:
        raise ValueError("Invalid message type. Must be: text, audio, or location")

    if kind == "text":
        if not data.message or not data.message.strip():
            raise ValueError("Message is required for text messages" if strict_messages else "Message is required")
        return {"message_type": kind, "message": data.message.strip()}

    if kind == "audio":
        if not data.audioData:
            raise ValueError("Audio data is required for audio messages" if strict_messages
                             else "Audio data is required")
        return {
            "message_type": kind,
            "audio_data": data.audioData,
            "audio_duration": data.audioDuration or 0,
            "message": VOICE_MESSAGE_TEXT,
        }

    loc = data.location
    if loc is None or loc.lat is None or loc.lng is None:
        raise ValueError("Location coordinates are required for location messages" if strict_messages
                         else "Location coordinates are required")
    label = loc.address or f"{loc.lat:.6f}, {loc.lng:.6f}"
    return {
        "message_type": kind,
        "location": {"lat": loc.lat, "lng": loc.lng, "address": loc.address},
        "message": f"📍 Location: {label}",
    }


# ---------- SOS chat ----------

def _sos_chat_alert(db: Session, alert_id: int, principal: Principal):
    alert = db.get(models.SOSAlert, alert_id)
    if not alert:
        return None
    if isinstance(principal, UserPrincipal):
        allowed = alert.user_id == principal.id
    elif isinstance(principal, PolicePrincipal):
        allowed = any(o.id == principal.id for o in alert.assigned_officers)
    else:
        allowed = isinstance(principal, AdminPrincipal)
    if not allowed:
        raise PermissionError("Not authorized to access this chat")
    return alert


def send_sos_message(db: Session, alert_id: int, principal: Principal, data: schemas.ChatMessageCreate):
    fields = _message_fields(data)
    alert = _sos_chat_alert(db, alert_id, principal)
    if alert is None:
        return None
    msg = models.ChatMessage(
        sos_alert_id=alert.id,
        sender_id=principal.id,
        sender_model=principal.model,
        sender_name=principal.name or principal.model,
        sender_role=principal.role,
        **fields,
    )
    db.add(msg)
    db.commit()
    db.refresh(msg)
    return msg


def get_sos_messages(db: Session, alert_id: int, principal: Principal, since: datetime = None):
    alert = _sos_chat_alert(db, alert_id, principal)
    if alert is None:
        return None
    q = db.query(models.ChatMessage).filter(models.ChatMessage.sos_alert_id == alert.id)
    if since is not None:
        q = q.filter(models.ChatMessage.created_at > naive_utc(since))
    return q.order_by(models.ChatMessage.created_at.asc(), models.ChatMessage.id.asc()) \
        .limit(config.CHAT_HISTORY_LIMIT).all()


def get_sos_chat_info(db: Session, alert_id: int, principal: Principal):
    alert = _sos_chat_alert(db, alert_id, principal)
    if alert is None:
        return None
    participants = []
    if alert.user:
        participants.append({"id": alert.user.id, "name": alert.user.name, "role": "user"})
    for officer in alert.assigned_officers:
        participants.append({"id": officer.id, "name": officer.name, "role": "police"})
    participants.append({"id": "admin", "name": "Admin", "role": "admin"})
    count = db.query(models.ChatMessage).filter(models.ChatMessage.sos_alert_id == alert.id).count()
    return {
        "sosAlertId": alert.id,
        "participants": participants,
        "messageCount": count,
        "status": alert.status,
    }


# ---------- trip chat ----------

def _trip_chat(db: Session, trip_id: int, user_id: int, denied: str = "Not authorized"):
    trip = db.get(models.TravelBuddy, trip_id)
    if not trip:
        return None
    if not is_participant(trip, user_id):
        raise PermissionError(denied)
    return trip


def send_trip_message(db: Session, trip_id: int, principal: UserPrincipal, data: schemas.ChatMessageCreate):
    fields = _message_fields(data, strict_messages=False)
    trip = _trip_chat(db, trip_id, principal.id, "Not authorized - you are not part of this trip")
    if trip is None:
        return None
    msg = models.TravelBuddyMessage(trip_id=trip.id, sender_id=principal.id, sender_name=principal.name, **fields)
    db.add(msg)
    db.commit()
    db.refresh(msg)
    return msg


def get_trip_messages(db: Session, trip_id: int, user_id: int, since: datetime = None):
    trip = _trip_chat(db, trip_id, user_id)
    if trip is None:
        return None
    q = db.query(models.TravelBuddyMessage).filter(models.TravelBuddyMessage.trip_id == trip.id)
    if since is not None:
        q = q.filter(models.TravelBuddyMessage.created_at > naive_utc(since))
    return q.order_by(models.TravelBuddyMessage.created_at.asc(), models.TravelBuddyMessage.id.asc()) \
        .limit(config.TRIP_CHAT_HISTORY_LIMIT).all()


def get_trip_chat_info(db: Session, trip_id: int, user_id: int):
    trip = _trip_chat(db, trip_id, user_id)
    if trip is None:
        return None
    participants = []
    if trip.user:
        participants.append({"id": trip.user.id, "name": trip.user.name,
                             "profilePhoto": trip.user.profile_photo, "role": "owner"})
    for buddy in trip.matched_with:
        participants.append({"id": buddy.id, "name": buddy.name,
                             "profilePhoto": buddy.profile_photo, "role": "buddy"})
    count = db.query(models.TravelBuddyMessage).filter(models.TravelBuddyMessage.trip_id == trip.id).count()
    return {
        "tripId": trip.id,
        "participants": participants,
        "messageCount": count,
        "status": trip.status,
        "from": trip.from_name,
        "to": trip.to_name,
    }
