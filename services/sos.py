"""
SOS dispatch: nearest-station lookup, officer assignment and the alert lifecycle.

Alert status moves Active -> Resolved | Cancelled and never leaves a terminal
state. assignment_status moves Unassigned -> Assigned when officers are bound,
and to Resolved when an assigned alert is closed. Alert rows are versioned, so
a write based on a stale read raises StaleDataError instead of overwriting.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

import config
import models
import views
from auth.principals import AdminPrincipal, Principal, UserPrincipal
from utils import alerts
from utils.geo import EARTH_RADIUS_M, haversine, point_lat_lng, to_point

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "SOS Alert was updated by another request, please retry"


@dataclass
class NearestStation:
    station_id: int
    distance: float  # meters
    station: models.PoliceStation


@dataclass
class AssignmentResult:
    success: bool
    alert: Optional[models.SOSAlert] = None
    message: Optional[str] = None
    officers: List[models.Police] = field(default_factory=list)
    conflict: bool = False


def find_nearest_station(db: Session, lat: float, lng: float,
                         max_distance_m: float = config.STATION_SEARCH_RADIUS_M) -> Optional[NearestStation]:
    """
    Closest station within max_distance_m of the point, or None.
    Equidistant stations resolve to the one created first.
    """
    best = None
    best_d = float("inf")
    for station in db.query(models.PoliceStation).order_by(models.PoliceStation.id).all():
        coords = point_lat_lng(station.location)
        if coords is None:
            continue
        d = haversine(lat, lng, coords[0], coords[1], EARTH_RADIUS_M)
        if d <= max_distance_m and d < best_d:
            best_d = d
            best = station
    if best is None:
        return None
    return NearestStation(station_id=best.id, distance=best_d, station=best)


def get_available_officers(db: Session, station_id: int, limit: int = config.OFFICERS_PER_ALERT):
    return (
        db.query(models.Police)
        .filter(models.Police.station_id == station_id)
        .order_by(models.Police.id)
        .limit(limit)
        .all()
    )


def assign_officers_to_alert(db: Session, alert_id: int, station_id: int) -> AssignmentResult:
    alert = db.get(models.SOSAlert, alert_id)
    if not alert:
        return AssignmentResult(False, message="SOS Alert not found")
    if alert.status != "Active":
        return AssignmentResult(False, message=f"Cannot assign officers to a {alert.status.lower()} alert")

    officers = get_available_officers(db, station_id)
    if not officers:
        return AssignmentResult(False, message="No officers available at nearest station")

    station = db.get(models.PoliceStation, station_id)
    if not station:
        return AssignmentResult(False, message="Station not found")

    distance = None
    alert_coords = point_lat_lng(alert.location)
    station_coords = point_lat_lng(station.location)
    if alert_coords and station_coords:
        distance = haversine(alert_coords[0], alert_coords[1], station_coords[0], station_coords[1], EARTH_RADIUS_M)

    alert.assigned_officers = officers
    alert.nearest_station_id = station.id
    alert.assignment_status = "Assigned"
    alert.assigned_at = datetime.utcnow()
    alert.distance_to_station = distance
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning(f"Officer assignment for alert {alert_id} lost a concurrent update")
        return AssignmentResult(False, message=CONFLICT_MESSAGE, conflict=True)

    logger.info(f"Assigned officers {[o.id for o in officers]} from station {station.id} to alert {alert_id}")
    return AssignmentResult(True, alert=views.load_alert_with_refs(db, alert_id), officers=officers)


def _dispatch_to_station(db: Session, alert: models.SOSAlert, lat: float, lng: float):
    nearest = find_nearest_station(db, lat, lng)
    if nearest is None:
        logger.warning(f"No police station within {config.STATION_SEARCH_RADIUS_M:.0f} m of alert {alert.id}")
        return
    alert.nearest_station_id = nearest.station_id
    alert.distance_to_station = nearest.distance
    db.commit()

    result = assign_officers_to_alert(db, alert.id, nearest.station_id)
    if not result.success:
        logger.warning(f"Auto-assignment for alert {alert.id} failed: {result.message}")


def trigger_sos(db: Session, user_id: int, lat: float, lng: float):
    """
    Record an SOS alert, route it to the nearest station and notify guardians.

    Once the alert row exists the call succeeds; station lookup, officer
    assignment and guardian notification only change the returned message.
    Returns None if the user does not exist.
    """
    user = db.get(models.User, user_id)
    if user is None:
        return None

    guardians = list(user.guardians)
    has_guardians = len(guardians) > 0

    user.location = to_point(lat, lng)
    alert = models.SOSAlert(
        user_id=user.id,
        location=to_point(lat, lng),
        status="Active",
        guardian_notified=has_guardians,
        guardian_count=len(guardians),
    )
    db.add(alert)
    db.commit()
    alert_id = alert.id
    logger.info(f"SOS alert {alert_id} triggered by user {user.id} at ({lat}, {lng})")

    try:
        _dispatch_to_station(db, alert, lat, lng)
    except Exception:
        db.rollback()
        logger.exception(f"Station dispatch for alert {alert_id} failed")

    if has_guardians:
        try:
            alerts.send_sos_email(guardians, user.name, user.phone, lat, lng)
            message = "SOS alert sent to your guardians and nearby police station"
        except Exception as e:
            logger.error(f"Email sending failed for alert {alert_id}: {e}")
            message = "SOS alert created but email notification failed"
        alerts.send_sos_sms(guardians, user.name, user.phone, lat, lng)
    else:
        message = "SOS alert sent to nearby police station"

    alert = views.load_alert_with_refs(db, alert_id)
    return {
        "message": message,
        "data": {
            "alertId": alert.id,
            "location": {"lat": lat, "lng": lng},
            "guardianCount": len(guardians),
            "nearestStation": views.station_view(alert.nearest_station),
            "assignedOfficers": [views.officer_brief(o) for o in alert.assigned_officers],
            "distanceToStation": alert.distance_to_station,
            "timestamp": datetime.utcnow(),
        },
    }


def get_active_alert(db: Session, user_id: int):
    alert = (
        db.query(models.SOSAlert)
        .filter(models.SOSAlert.user_id == user_id, models.SOSAlert.status == "Active")
        .order_by(models.SOSAlert.created_at.desc(), models.SOSAlert.id.desc())
        .first()
    )
    return views.load_alert_with_refs(db, alert.id) if alert else None


def list_active_alerts(db: Session):
    return (
        db.query(models.SOSAlert)
        .filter(models.SOSAlert.status == "Active")
        .order_by(models.SOSAlert.created_at.desc(), models.SOSAlert.id.desc())
        .all()
    )


def list_officer_alerts(db: Session, officer_id: int):
    return (
        db.query(models.SOSAlert)
        .join(models.alert_officers, models.alert_officers.c.alert_id == models.SOSAlert.id)
        .filter(models.alert_officers.c.police_id == officer_id, models.SOSAlert.status == "Active")
        .order_by(models.SOSAlert.created_at.desc(), models.SOSAlert.id.desc())
        .all()
    )


def _close(alert: models.SOSAlert, status: str):
    if alert.status != "Active":
        raise ValueError(f"SOS Alert is already {alert.status.lower()}")
    alert.status = status
    if alert.assigned_officers:
        alert.assignment_status = "Resolved"


def resolve_alert(db: Session, alert_id: int):
    alert = db.get(models.SOSAlert, alert_id)
    if not alert:
        return None
    _close(alert, "Resolved")
    db.commit()
    logger.info(f"SOS alert {alert_id} resolved")
    return views.load_alert_with_refs(db, alert_id)


def cancel_alert(db: Session, alert_id: int, principal: Principal):
    alert = db.get(models.SOSAlert, alert_id)
    if not alert:
        return None
    if isinstance(principal, UserPrincipal):
        if alert.user_id != principal.id:
            raise PermissionError("Not authorized to cancel this alert")
    elif not isinstance(principal, AdminPrincipal):
        raise PermissionError("Not authorized to cancel this alert")
    _close(alert, "Cancelled")
    db.commit()
    logger.info(f"SOS alert {alert_id} cancelled by {principal.role} {principal.id}")
    return views.load_alert_with_refs(db, alert_id)
