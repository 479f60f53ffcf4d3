from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import crud
import schemas
import views
from auth.principals import PolicePrincipal, UserPrincipal, require_admin, require_police, require_user
from database import get_db
from services import sos

router = APIRouter(prefix="/api/complaints", tags=["Complaints"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_complaint(payload: schemas.ComplaintCreate, principal: UserPrincipal = Depends(require_user),
                     db: Session = Depends(get_db)):
    try:
        complaint = crud.create_complaint(db, principal.id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if complaint is None:
        raise HTTPException(status_code=404, detail="Police station not found")
    return {"success": True, "data": views.complaint_view(complaint)}


@router.get("/my-complaints")
def my_complaints(principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    complaints = [views.complaint_view(c) for c in crud.complaints_for_user(db, principal.id)]
    return {"success": True, "count": len(complaints), "data": complaints}


@router.get("/station")
def station_complaints(principal: PolicePrincipal = Depends(require_police), db: Session = Depends(get_db)):
    complaints = [views.complaint_view(c) for c in crud.complaints_for_station(db, principal.station_id)]
    return {"success": True, "count": len(complaints), "data": complaints}


@router.put("/{complaint_id}/status")
def update_status(complaint_id: int, payload: schemas.ComplaintStatusUpdate,
                  principal: PolicePrincipal = Depends(require_police), db: Session = Depends(get_db)):
    try:
        complaint = crud.update_complaint_status_for_station(db, complaint_id, principal.station_id, payload.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if complaint is None:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return {"success": True, "data": views.complaint_view(complaint)}


@router.get("/all", dependencies=[Depends(require_admin)])
def all_complaints(db: Session = Depends(get_db)):
    complaints = [views.complaint_view(c) for c in crud.all_complaints(db)]
    return {"success": True, "count": len(complaints), "data": complaints}


@router.get("/emergency-locations", dependencies=[Depends(require_admin)])
def emergency_locations(db: Session = Depends(get_db)):
    locations = [views.alert_location_view(a) for a in sos.list_active_alerts(db) if a.location]
    return {"success": True, "count": len(locations), "data": locations}
