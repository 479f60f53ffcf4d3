from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
import schemas
import views
from auth.principals import PolicePrincipal, require_police
from database import get_db

router = APIRouter(prefix="/api/police", tags=["Police"])


@router.get("/dashboard")
def dashboard(principal: PolicePrincipal = Depends(require_police), db: Session = Depends(get_db)):
    stats, recent = crud.police_dashboard(db, principal.id, principal.station_id)
    return {
        "success": True,
        "data": {"stats": stats, "recentComplaints": [views.complaint_view(c) for c in recent]},
    }


@router.put("/profile")
def update_profile(payload: schemas.PoliceProfileUpdate, principal: PolicePrincipal = Depends(require_police),
                   db: Session = Depends(get_db)):
    police = crud.get_police(db, principal.id)
    if police is None:
        raise HTTPException(status_code=404, detail="Police officer not found")
    if "profilePhoto" in payload.model_fields_set:
        police = crud.update_police_photo(db, principal.id, payload.profilePhoto)
    return {
        "success": True,
        "data": {
            "_id": police.id,
            "name": police.name,
            "email": police.email,
            "phone": police.phone,
            "profilePhoto": police.profile_photo,
        },
    }


@router.get("/complaints")
def my_complaints(page: int = 1, limit: int = 10, search: str = "", status: str = "", priority: str = "",
                  principal: PolicePrincipal = Depends(require_police), db: Session = Depends(get_db)):
    items, page, limit, total = crud.list_officer_complaints(
        db, principal.id, principal.station_id, page, limit, status, priority, search)
    return {
        "success": True,
        "data": views.paginated("complaints", [views.complaint_view(c) for c in items], page, limit, total),
    }


@router.put("/complaints/{complaint_id}")
def update_complaint(complaint_id: int, payload: schemas.ComplaintStatusUpdate,
                     principal: PolicePrincipal = Depends(require_police), db: Session = Depends(get_db)):
    try:
        complaint = crud.update_complaint_status_for_officer(
            db, complaint_id, principal.id, principal.station_id, payload.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if complaint is None:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return {"success": True, "data": views.complaint_view(complaint)}
