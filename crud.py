from datetime import datetime, timedelta
import logging
from sqlalchemy import or_, func
from sqlalchemy.orm import Session
import models, schemas
import config
from utils.geo import to_point, point_lat_lng, distance_km
from utils import alerts
from utils.otp import issue_email_otp, verify_email_otp
import auth.utils_auth as auth_utils

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _is_image_data_url(value) -> bool:
    return isinstance(value, str) and value.startswith("data:image/")


def _paginate(query, page: int, limit: int):
    page = max(page, 1)
    limit = max(limit, 1)
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, page, limit, total


def _search(query, term: str, *columns):
    if not term:
        return query
    pattern = f"%{term}%"
    return query.filter(or_(*[c.ilike(pattern) for c in columns]))


# ---------- users ----------

def get_user(db: Session, user_id: int):
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == _normalize_email(email)).first()


def create_user(db: Session, user: schemas.UserRegister):
    email = _normalize_email(user.email)
    if get_user_by_email(db, email):
        raise ValueError("User already exists with this email")

    db_user = models.User(
        name=user.name,
        email=email,
        password_hash=auth_utils.hash_password(user.password),
        phone=user.phone,
        address="",
        is_email_verified=False,
    )
    db.add(db_user)
    try:
        issue_email_otp(db_user, alerts.send_verification_email)
    except Exception as e:
        logger.error(f"Failed to send verification email to {email}: {e}")
    db.commit()
    db.refresh(db_user)
    return db_user


def authenticate_user(db: Session, email: str, password: str):
    """
    Returns the user on a password match, None otherwise. Unverified users get a
    fresh OTP; the caller decides how to respond.
    """
    user = get_user_by_email(db, email)
    if not user or not auth_utils.verify_password(password, user.password_hash):
        return None
    if not user.is_email_verified:
        try:
            issue_email_otp(user, alerts.send_verification_email)
        except Exception as e:
            logger.error(f"Failed to resend verification email to {user.email}: {e}")
        db.commit()
    return user


def verify_user_email(db: Session, email: str, otp: str):
    user = get_user_by_email(db, email)
    if not user:
        return None
    ok, message = verify_email_otp(user, otp)
    if not ok:
        raise ValueError(message)
    db.commit()
    return message


def resend_user_otp(db: Session, email: str):
    user = get_user_by_email(db, email)
    if not user:
        return None
    if user.is_email_verified:
        raise ValueError("Email is already verified")
    issue_email_otp(user, alerts.send_verification_email)
    db.commit()
    return user


def update_user_profile(db: Session, user_id: int, data: schemas.ProfileUpdate):
    user = db.get(models.User, user_id)
    if not user:
        return None
    if data.email is not None:
        email = _normalize_email(data.email)
        existing = get_user_by_email(db, email)
        if existing and existing.id != user.id:
            raise ValueError("Another account already uses this email")
        user.email = email
    if data.name is not None:
        user.name = data.name
    if data.phone is not None:
        user.phone = data.phone
    if data.address is not None:
        user.address = data.address
    db.commit()
    db.refresh(user)
    return user


def update_user_photo(db: Session, user_id: int, photo: str):
    if not _is_image_data_url(photo):
        raise ValueError("Invalid image format")
    user = db.get(models.User, user_id)
    if not user:
        return None
    user.profile_photo = photo
    db.commit()
    db.refresh(user)
    return user


def update_user_location(db: Session, user_id: int, lat: float, lng: float):
    user = db.get(models.User, user_id)
    if not user:
        return None
    user.location = to_point(lat, lng)
    db.commit()
    return user


def list_users(db: Session, page: int = 1, limit: int = 10, search: str = ""):
    police_emails = [e for (e,) in db.query(models.Police.email).all()]
    q = db.query(models.User)
    q = _search(q, search, models.User.name, models.User.email, models.User.phone)
    if police_emails:
        q = q.filter(models.User.email.notin_(police_emails))
    q = q.order_by(models.User.created_at.desc(), models.User.id.desc())
    return _paginate(q, page, limit)


def delete_user(db: Session, user_id: int):
    user = db.get(models.User, user_id)
    if not user:
        return False
    db.query(models.Complaint).filter(models.Complaint.user_id == user.id).delete(synchronize_session=False)
    # alerts are kept as history, detached from the account
    for alert in db.query(models.SOSAlert).filter(models.SOSAlert.user_id == user.id).all():
        alert.user_id = None
    for trip in db.query(models.TravelBuddy).filter(models.TravelBuddy.user_id == user.id).all():
        db.delete(trip)
    db.query(models.TripRequest).filter(models.TripRequest.user_id == user.id).delete(synchronize_session=False)
    db.query(models.TravelBuddyMessage).filter(
        models.TravelBuddyMessage.sender_id == user.id).delete(synchronize_session=False)
    db.execute(models.trip_buddies.delete().where(models.trip_buddies.c.user_id == user.id))
    db.delete(user)
    db.commit()
    return True


# ---------- guardians ----------

def list_guardians(db: Session, user_id: int):
    user = db.get(models.User, user_id)
    return list(user.guardians) if user else None


def add_guardian(db: Session, user_id: int, data: schemas.GuardianCreate):
    user = db.get(models.User, user_id)
    if not user:
        return None
    if len(user.guardians) >= config.MAX_GUARDIANS:
        raise ValueError(f"Maximum {config.MAX_GUARDIANS} guardians allowed")
    user.guardians.append(models.Guardian(name=data.name, phone=data.phone, email=_normalize_email(data.email)))
    db.commit()
    db.refresh(user)
    return list(user.guardians)


def _owned_guardian(db: Session, user_id: int, guardian_id: int):
    return (
        db.query(models.Guardian)
        .filter(models.Guardian.id == guardian_id, models.Guardian.user_id == user_id)
        .first()
    )


def update_guardian(db: Session, user_id: int, guardian_id: int, data: schemas.GuardianUpdate):
    guardian = _owned_guardian(db, user_id, guardian_id)
    if not guardian:
        return None
    if data.name:
        guardian.name = data.name
    if data.phone:
        guardian.phone = data.phone
    if data.email:
        guardian.email = _normalize_email(data.email)
    db.commit()
    return list_guardians(db, user_id)


def delete_guardian(db: Session, user_id: int, guardian_id: int):
    guardian = _owned_guardian(db, user_id, guardian_id)
    if not guardian:
        return None
    db.delete(guardian)
    db.commit()
    return list_guardians(db, user_id)


# ---------- stations ----------

def create_station(db: Session, data: schemas.StationCreate):
    station = models.PoliceStation(
        name=data.name,
        area=data.area,
        city=data.city,
        location=to_point(data.latitude, data.longitude),
        helpline=data.helpline,
    )
    db.add(station)
    db.commit()
    db.refresh(station)
    return station


def update_station(db: Session, station_id: int, data: schemas.StationUpdate):
    station = db.get(models.PoliceStation, station_id)
    if not station:
        return None
    for field in ("name", "area", "city", "helpline"):
        value = getattr(data, field)
        if value is not None:
            setattr(station, field, value)
    if data.latitude is not None and data.longitude is not None:
        station.location = to_point(data.latitude, data.longitude)
    db.commit()
    db.refresh(station)
    return station


def delete_station(db: Session, station_id: int):
    station = db.get(models.PoliceStation, station_id)
    if not station:
        return False
    officer_count = db.query(models.Police).filter(models.Police.station_id == station.id).count()
    if officer_count > 0:
        raise ValueError("Cannot delete station with assigned police officers")
    complaint_count = db.query(models.Complaint).filter(models.Complaint.station_id == station.id).count()
    if complaint_count > 0:
        raise ValueError("Cannot delete station with existing complaints")
    db.delete(station)
    db.commit()
    return True


def list_stations(db: Session, page: int = 1, limit: int = 10, search: str = ""):
    q = _search(db.query(models.PoliceStation), search,
                models.PoliceStation.name, models.PoliceStation.area, models.PoliceStation.city)
    q = q.order_by(models.PoliceStation.created_at.desc(), models.PoliceStation.id.desc())
    return _paginate(q, page, limit)


def all_stations(db: Session):
    return db.query(models.PoliceStation).order_by(models.PoliceStation.id).all()


def get_nearby_stations(db: Session, lat: float, lng: float,
                        radius_km: float = config.NEARBY_STATIONS_RADIUS_M / 1000,
                        limit: int = config.NEARBY_STATIONS_LIMIT):
    center = (lat, lng)
    res = []
    for s in db.query(models.PoliceStation).order_by(models.PoliceStation.id).all():
        coords = point_lat_lng(s.location)
        if coords is None:
            continue
        d = distance_km(center, coords)
        if d <= radius_km:
            res.append((s, d))
    res.sort(key=lambda x: x[1])
    return res[:limit]


# ---------- police ----------

def get_police(db: Session, police_id: int):
    return db.get(models.Police, police_id)


def get_police_by_email(db: Session, email: str):
    return db.query(models.Police).filter(models.Police.email == _normalize_email(email)).first()


def create_police(db: Session, data: schemas.PoliceCreate):
    email = _normalize_email(data.email)
    if get_police_by_email(db, email):
        raise ValueError("Police officer with this email already exists")
    station = db.get(models.PoliceStation, data.stationId)
    if not station:
        raise LookupError("Police station not found. Please select a valid station.")

    police = models.Police(
        name=data.name,
        email=email,
        password_hash=auth_utils.hash_password(data.password),
        phone=data.phone,
        station_id=station.id,
    )
    if _is_image_data_url(data.profilePhoto):
        police.profile_photo = data.profilePhoto
    db.add(police)
    db.commit()
    db.refresh(police)
    return police


def update_police(db: Session, police_id: int, data: schemas.PoliceUpdate):
    police = db.get(models.Police, police_id)
    if not police:
        return None
    if data.email is not None:
        email = _normalize_email(data.email)
        if email != police.email and get_police_by_email(db, email):
            raise ValueError("Police officer with this email already exists")
        police.email = email
    if data.stationId is not None:
        if not db.get(models.PoliceStation, data.stationId):
            raise ValueError("Police station not found")
        police.station_id = data.stationId
    if data.name is not None:
        police.name = data.name
    if data.phone is not None:
        police.phone = data.phone
    if "profilePhoto" in data.model_fields_set:
        if not data.profilePhoto:
            police.profile_photo = None
        elif _is_image_data_url(data.profilePhoto):
            police.profile_photo = data.profilePhoto
    db.commit()
    db.refresh(police)
    return police


def update_police_photo(db: Session, police_id: int, photo):
    police = db.get(models.Police, police_id)
    if not police:
        return None
    police.profile_photo = photo
    db.commit()
    db.refresh(police)
    return police


def delete_police(db: Session, police_id: int):
    police = db.get(models.Police, police_id)
    if not police:
        return False
    db.query(models.Complaint).filter(models.Complaint.assigned_to == police.id).update(
        {models.Complaint.assigned_to: None}, synchronize_session=False)
    db.delete(police)
    db.commit()
    return True


def list_police(db: Session, page: int = 1, limit: int = 10, search: str = ""):
    q = _search(db.query(models.Police), search, models.Police.name, models.Police.email, models.Police.phone)
    q = q.order_by(models.Police.created_at.desc(), models.Police.id.desc())
    return _paginate(q, page, limit)


def officers_by_station(db: Session, station_id: int):
    return db.query(models.Police).filter(models.Police.station_id == station_id).order_by(models.Police.id).all()


# ---------- complaints ----------

def _check_status(status: str):
    if status not in models.COMPLAINT_STATUSES:
        raise ValueError("Invalid status. Must be: Pending, In Progress, or Resolved")


def _check_priority(priority: str):
    if priority not in models.COMPLAINT_PRIORITIES:
        raise ValueError("Invalid priority. Must be: Low, Medium, High, or Critical")


def create_complaint(db: Session, user_id: int, data: schemas.ComplaintCreate):
    station = db.get(models.PoliceStation, data.stationId)
    if not station:
        return None
    if data.priority:
        _check_priority(data.priority)
    priority = data.priority or "Medium"
    complaint = models.Complaint(
        user_id=user_id,
        station_id=station.id,
        description=data.description,
        priority=priority,
        location=to_point(data.lat, data.lng),
    )
    db.add(complaint)
    db.commit()
    db.refresh(complaint)
    return complaint


def _complaint_query(db: Session, status: str = "", priority: str = "", search: str = ""):
    q = db.query(models.Complaint)
    if status:
        q = q.filter(models.Complaint.status == status)
    if priority:
        q = q.filter(models.Complaint.priority == priority)
    if search:
        pattern = f"%{search}%"
        q = q.outerjoin(models.User, models.Complaint.user_id == models.User.id).filter(or_(
            models.Complaint.description.ilike(pattern),
            models.User.name.ilike(pattern),
            models.User.email.ilike(pattern),
            models.User.phone.ilike(pattern),
        ))
    return q.order_by(models.Complaint.created_at.desc(), models.Complaint.id.desc())


def complaints_for_user(db: Session, user_id: int):
    return _complaint_query(db).filter(models.Complaint.user_id == user_id).all()


def complaints_for_station(db: Session, station_id: int):
    return _complaint_query(db).filter(models.Complaint.station_id == station_id).all()


def all_complaints(db: Session):
    return _complaint_query(db).all()


def list_complaints(db: Session, page: int = 1, limit: int = 10, status: str = "", priority: str = "",
                    search: str = ""):
    return _paginate(_complaint_query(db, status, priority, search), page, limit)


def list_officer_complaints(db: Session, police_id: int, station_id: int, page: int = 1, limit: int = 10,
                            status: str = "", priority: str = "", search: str = ""):
    q = _complaint_query(db, status, priority, search).filter(
        models.Complaint.station_id == station_id,
        models.Complaint.assigned_to == police_id,
    )
    return _paginate(q, page, limit)


def update_complaint_status_for_station(db: Session, complaint_id: int, station_id: int, status: str):
    _check_status(status)
    complaint = db.get(models.Complaint, complaint_id)
    if not complaint:
        return None
    if complaint.station_id != station_id:
        raise PermissionError("Not authorized to update this complaint")
    complaint.status = status
    db.commit()
    db.refresh(complaint)
    return complaint


def update_complaint_status_for_officer(db: Session, complaint_id: int, police_id: int, station_id: int,
                                        status: str):
    _check_status(status)
    complaint = db.get(models.Complaint, complaint_id)
    if not complaint:
        return None
    if complaint.assigned_to != police_id:
        raise PermissionError("You are not authorized to update this complaint. It is not assigned to you.")
    if complaint.station_id != station_id:
        raise PermissionError("You are not authorized to update this complaint")
    complaint.status = status
    db.commit()
    db.refresh(complaint)
    return complaint


def admin_update_complaint(db: Session, complaint_id: int, data: schemas.AdminComplaintUpdate):
    if data.status:
        _check_status(data.status)
    if data.priority:
        _check_priority(data.priority)
    if not data.status and not data.priority:
        raise ValueError("Please provide status or priority to update")
    complaint = db.get(models.Complaint, complaint_id)
    if not complaint:
        return None
    if data.status:
        complaint.status = data.status
    if data.priority:
        complaint.priority = data.priority
    db.commit()
    db.refresh(complaint)
    return complaint


def assign_complaint(db: Session, complaint_id: int, police_id: int):
    complaint = db.get(models.Complaint, complaint_id)
    if not complaint:
        raise LookupError("Complaint not found")
    police = db.get(models.Police, police_id)
    if not police:
        raise LookupError("Police officer not found")
    if police.station_id != complaint.station_id:
        raise ValueError("Police officer must belong to the same station as the complaint")
    complaint.assigned_to = police.id
    db.commit()
    db.refresh(complaint)
    return complaint


def unassign_complaint(db: Session, complaint_id: int):
    complaint = db.get(models.Complaint, complaint_id)
    if not complaint:
        return None
    complaint.assigned_to = None
    db.commit()
    db.refresh(complaint)
    return complaint


# ---------- dashboards ----------

def admin_dashboard(db: Session):
    since = datetime.utcnow() - timedelta(days=7)
    counts = dict(
        db.query(models.Complaint.status, func.count(models.Complaint.id)).group_by(models.Complaint.status).all()
    )
    stats = {
        "totalUsers": db.query(models.User).count(),
        "totalPolice": db.query(models.Police).count(),
        "totalStations": db.query(models.PoliceStation).count(),
        "totalComplaints": db.query(models.Complaint).count(),
        "pendingComplaints": counts.get("Pending", 0),
        "inProgressComplaints": counts.get("In Progress", 0),
        "resolvedComplaints": counts.get("Resolved", 0),
    }
    recent_complaints = (
        db.query(models.Complaint).filter(models.Complaint.created_at >= since)
        .order_by(models.Complaint.created_at.desc()).limit(10).all()
    )
    recent_users = (
        db.query(models.User).filter(models.User.created_at >= since)
        .order_by(models.User.created_at.desc()).limit(10).all()
    )
    return stats, recent_complaints, recent_users


def police_dashboard(db: Session, police_id: int, station_id: int):
    base = db.query(models.Complaint).filter(
        models.Complaint.station_id == station_id,
        models.Complaint.assigned_to == police_id,
    )
    total = base.count()
    resolved = base.filter(models.Complaint.status == "Resolved").count()
    stats = {
        "totalComplaints": total,
        "pendingComplaints": base.filter(models.Complaint.status == "Pending").count(),
        "inProgressComplaints": base.filter(models.Complaint.status == "In Progress").count(),
        "resolvedComplaints": resolved,
        "criticalComplaints": base.filter(models.Complaint.priority.in_(["Critical", "High"])).count(),
        "assignedToMe": total,
        "resolutionRate": round(resolved / total * 100) if total > 0 else 0,
    }
    since = datetime.utcnow() - timedelta(days=7)
    recent = (
        base.filter(models.Complaint.created_at >= since)
        .order_by(models.Complaint.created_at.desc()).limit(10).all()
    )
    return stats, recent


# ---------- staff accounts ----------

def authenticate_police(db: Session, email: str, password: str):
    police = get_police_by_email(db, email)
    if not police or not auth_utils.verify_password(password, police.password_hash):
        return None
    return police


def get_admin_by_email(db: Session, email: str):
    return db.query(models.Admin).filter(models.Admin.email == _normalize_email(email)).first()


def authenticate_admin(db: Session, email: str, password: str):
    admin = get_admin_by_email(db, email)
    if not admin or not auth_utils.verify_password(password, admin.password_hash):
        return None
    return admin


def create_admin(db: Session, name: str, email: str, password: str):
    if get_admin_by_email(db, email):
        raise ValueError("Admin with this email already exists")
    admin = models.Admin(name=name, email=_normalize_email(email),
                         password_hash=auth_utils.hash_password(password))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin
