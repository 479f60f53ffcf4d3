from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import crud
import schemas
import views
from auth.principals import require_admin
from database import get_db

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)):
    stats, recent_complaints, recent_users = crud.admin_dashboard(db)
    return {
        "success": True,
        "data": {
            "stats": stats,
            "recentComplaints": [views.complaint_view(c) for c in recent_complaints],
            "recentUsers": [
                {"_id": u.id, "name": u.name, "email": u.email, "phone": u.phone, "createdAt": u.created_at}
                for u in recent_users
            ],
        },
    }


# ---------- users ----------

@router.get("/users")
def list_users(page: int = 1, limit: int = 10, search: str = "", db: Session = Depends(get_db)):
    items, page, limit, total = crud.list_users(db, page, limit, search)
    return {"success": True, "data": views.paginated("users", [views.user_view(u) for u in items], page, limit, total)}


@router.get("/users/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = crud.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    complaints = [views.complaint_view(c) for c in crud.complaints_for_user(db, user.id)]
    return {"success": True, "data": {"user": views.user_view(user), "complaints": complaints}}


@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    if not crud.delete_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "message": "User and associated complaints deleted successfully"}


# ---------- police ----------

@router.get("/police")
def list_police(page: int = 1, limit: int = 10, search: str = "", db: Session = Depends(get_db)):
    items, page, limit, total = crud.list_police(db, page, limit, search)
    return {
        "success": True,
        "data": views.paginated("police", [views.officer_view(p) for p in items], page, limit, total),
    }


@router.post("/police", status_code=status.HTTP_201_CREATED)
def create_police(payload: schemas.PoliceCreate, db: Session = Depends(get_db)):
    try:
        police = crud.create_police(db, payload)
    except (ValueError, LookupError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "data": views.officer_view(police)}


@router.put("/police/{police_id}")
def update_police(police_id: int, payload: schemas.PoliceUpdate, db: Session = Depends(get_db)):
    try:
        police = crud.update_police(db, police_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not police:
        raise HTTPException(status_code=404, detail="Police officer not found")
    return {"success": True, "data": views.officer_view(police)}


@router.delete("/police/{police_id}")
def delete_police(police_id: int, db: Session = Depends(get_db)):
    if not crud.delete_police(db, police_id):
        raise HTTPException(status_code=404, detail="Police officer not found")
    return {"success": True, "message": "Police officer deleted successfully"}


# ---------- complaints ----------

@router.get("/complaints")
def list_complaints(page: int = 1, limit: int = 10, status: str = "", priority: str = "", search: str = "",
                    db: Session = Depends(get_db)):
    items, page, limit, total = crud.list_complaints(db, page, limit, status, priority, search)
    return {
        "success": True,
        "data": views.paginated("complaints", [views.complaint_view(c) for c in items], page, limit, total),
    }


@router.put("/complaints/{complaint_id}")
def update_complaint(complaint_id: int, payload: schemas.AdminComplaintUpdate, db: Session = Depends(get_db)):
    try:
        complaint = crud.admin_update_complaint(db, complaint_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not complaint:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return {"success": True, "data": views.complaint_view(complaint)}


@router.get("/complaints/{station_id}/officers")
def station_officers(station_id: int, db: Session = Depends(get_db)):
    officers = [views.officer_brief(o) for o in crud.officers_by_station(db, station_id)]
    return {"success": True, "data": officers}


@router.put("/complaints/{complaint_id}/assign")
def assign_complaint(complaint_id: int, payload: schemas.AssignComplaintPayload, db: Session = Depends(get_db)):
    if not payload.policeId:
        raise HTTPException(status_code=400, detail="Please provide a police officer ID")
    try:
        complaint = crud.assign_complaint(db, complaint_id, payload.policeId)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "message": "Complaint assigned to officer successfully",
        "data": views.complaint_view(complaint),
    }


@router.put("/complaints/{complaint_id}/unassign")
def unassign_complaint(complaint_id: int, db: Session = Depends(get_db)):
    complaint = crud.unassign_complaint(db, complaint_id)
    if not complaint:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return {
        "success": True,
        "message": "Complaint unassigned successfully",
        "data": views.complaint_view(complaint),
    }


# ---------- stations ----------

@router.get("/stations")
def list_stations(page: int = 1, limit: int = 10, search: str = "", db: Session = Depends(get_db)):
    items, page, limit, total = crud.list_stations(db, page, limit, search)
    return {
        "success": True,
        "data": views.paginated("stations", [views.station_flat_view(s) for s in items], page, limit, total),
    }


@router.post("/stations", status_code=status.HTTP_201_CREATED)
def create_station(payload: schemas.StationCreate, db: Session = Depends(get_db)):
    station = crud.create_station(db, payload)
    return {"success": True, "data": views.station_flat_view(station)}


@router.put("/stations/{station_id}")
def update_station(station_id: int, payload: schemas.StationUpdate, db: Session = Depends(get_db)):
    station = crud.update_station(db, station_id, payload)
    if not station:
        raise HTTPException(status_code=404, detail="Police station not found")
    return {"success": True, "data": views.station_flat_view(station)}


@router.delete("/stations/{station_id}")
def delete_station(station_id: int, db: Session = Depends(get_db)):
    try:
        deleted = crud.delete_station(db, station_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Police station not found")
    return {"success": True, "message": "Police station deleted successfully"}
