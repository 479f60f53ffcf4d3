from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

import crud
import schemas
import views
from auth.principals import Principal, PolicePrincipal, UserPrincipal, require_admin, require_police, \
    require_roles, require_user
from database import get_db
from services import sos
from utils.geo import point_lat_lng

router = APIRouter(prefix="/api/sos", tags=["SOS"])


def _require_coords(payload: schemas.LocationPayload):
    # 0 is a valid coordinate; only a missing value is rejected
    if payload.lat is None or payload.lng is None:
        raise HTTPException(status_code=400, detail="Please provide latitude and longitude")


@router.put("/location")
def update_location(payload: schemas.LocationPayload, principal: UserPrincipal = Depends(require_user),
                    db: Session = Depends(get_db)):
    _require_coords(payload)
    if not crud.update_user_location(db, principal.id, payload.lat, payload.lng):
        raise HTTPException(status_code=404, detail="User not found")
    return {
        "success": True,
        "message": "Location updated successfully",
        "data": {"lat": payload.lat, "lng": payload.lng},
    }


@router.get("/location")
def get_location(principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    user = crud.get_user(db, principal.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    lat, lng = point_lat_lng(user.location) or (0, 0)
    return {"success": True, "data": {"lat": lat, "lng": lng}}


@router.post("/alert")
def trigger_alert(payload: schemas.LocationPayload, principal: UserPrincipal = Depends(require_user),
                  db: Session = Depends(get_db)):
    _require_coords(payload)
    result = sos.trigger_sos(db, principal.id, payload.lat, payload.lng)
    if result is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, **result}


@router.get("/alert/active")
def get_active_alert(principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    alert = sos.get_active_alert(db, principal.id)
    return {"success": True, "data": views.alert_view(alert) if alert else None}


@router.put("/alerts/{alert_id}/cancel")
def cancel_alert(alert_id: int, principal: Principal = Depends(require_roles("user", "admin")),
                 db: Session = Depends(get_db)):
    try:
        alert = sos.cancel_alert(db, alert_id, principal)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StaleDataError:
        db.rollback()
        raise HTTPException(status_code=409, detail=sos.CONFLICT_MESSAGE)
    if alert is None:
        raise HTTPException(status_code=404, detail="SOS Alert not found")
    return {"success": True, "message": "SOS Alert cancelled successfully", "data": views.alert_view(alert)}


@router.get("/alerts/police/assigned")
def police_assigned_alerts(principal: PolicePrincipal = Depends(require_police), db: Session = Depends(get_db)):
    alerts = [views.alert_location_view(a) for a in sos.list_officer_alerts(db, principal.id)]
    return {"success": True, "count": len(alerts), "data": alerts}


@router.get("/alerts", dependencies=[Depends(require_admin)])
def active_alerts(db: Session = Depends(get_db)):
    alerts = [views.alert_location_view(a) for a in sos.list_active_alerts(db)]
    return {"success": True, "count": len(alerts), "data": alerts}


@router.put("/alerts/{alert_id}/assign-officers", dependencies=[Depends(require_admin)])
def assign_officers(alert_id: int, payload: schemas.AssignOfficersPayload, db: Session = Depends(get_db)):
    if not payload.stationId:
        raise HTTPException(status_code=400, detail="Please provide station ID")
    result = sos.assign_officers_to_alert(db, alert_id, payload.stationId)
    if result.conflict:
        raise HTTPException(status_code=409, detail=result.message)
    if not result.success:
        code = 404 if result.message == "SOS Alert not found" else 400
        raise HTTPException(status_code=code, detail=result.message)
    return {
        "success": True,
        "message": "Officers assigned successfully",
        "data": views.alert_view(result.alert),
    }


@router.put("/alerts/{alert_id}/resolve", dependencies=[Depends(require_admin)])
def resolve_alert(alert_id: int, db: Session = Depends(get_db)):
    try:
        alert = sos.resolve_alert(db, alert_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StaleDataError:
        db.rollback()
        raise HTTPException(status_code=409, detail=sos.CONFLICT_MESSAGE)
    if alert is None:
        raise HTTPException(status_code=404, detail="SOS Alert not found")
    return {"success": True, "message": "SOS Alert resolved successfully", "data": views.alert_view(alert)}
