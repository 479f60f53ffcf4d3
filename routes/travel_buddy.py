from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import config
import schemas
import views
from auth.principals import UserPrincipal, require_user
from database import get_db
from services import travel_buddy

router = APIRouter(prefix="/api/travel-buddy", tags=["Travel Buddy"])


def _trip_or_404(trip):
    if trip is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


@router.post("", status_code=status.HTTP_201_CREATED)
def create_trip(payload: schemas.TripCreate, principal: UserPrincipal = Depends(require_user),
                db: Session = Depends(get_db)):
    try:
        trip = travel_buddy.create_trip(db, principal.id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "data": views.trip_view(trip)}


@router.get("/find", dependencies=[Depends(require_user)])
def find_trips(fromLat: Optional[float] = None, fromLng: Optional[float] = None, toLat: Optional[float] = None,
               toLng: Optional[float] = None, radius: float = config.TRIP_SEARCH_RADIUS_KM,
               db: Session = Depends(get_db)):
    trips = [views.trip_view(t) for t in travel_buddy.find_trips(db, fromLat, fromLng, toLat, toLng, radius)]
    return {"success": True, "count": len(trips), "data": trips}


@router.get("/my-trips")
def my_trips(principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    return {"success": True, "data": [views.trip_view(t) for t in travel_buddy.my_trips(db, principal.id)]}


@router.post("/{trip_id}/request")
def send_request(trip_id: int, payload: schemas.TripRequestCreate, principal: UserPrincipal = Depends(require_user),
                 db: Session = Depends(get_db)):
    try:
        trip = travel_buddy.send_request(db, trip_id, principal.id, payload.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _trip_or_404(trip)
    return {"success": True, "message": "Request sent successfully", "data": views.trip_view(trip)}


@router.put("/{trip_id}/request/{request_id}/accept")
def accept_request(trip_id: int, request_id: int, principal: UserPrincipal = Depends(require_user),
                   db: Session = Depends(get_db)):
    try:
        trip = travel_buddy.accept_request(db, trip_id, request_id, principal.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _trip_or_404(trip)
    return {
        "success": True,
        "message": "Request accepted! You are now travel buddies.",
        "data": views.trip_view(trip),
    }


@router.put("/{trip_id}/request/{request_id}/reject")
def reject_request(trip_id: int, request_id: int, principal: UserPrincipal = Depends(require_user),
                   db: Session = Depends(get_db)):
    try:
        trip = travel_buddy.reject_request(db, trip_id, request_id, principal.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    _trip_or_404(trip)
    return {"success": True, "message": "Request rejected"}


@router.put("/{trip_id}/cancel")
def cancel_trip(trip_id: int, principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    try:
        trip = travel_buddy.cancel_trip(db, trip_id, principal.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _trip_or_404(trip)
    return {"success": True, "message": "Trip cancelled successfully"}


@router.put("/{trip_id}/complete")
def complete_trip(trip_id: int, principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    try:
        trip = travel_buddy.complete_trip(db, trip_id, principal.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    _trip_or_404(trip)
    return {"success": True, "message": "Trip marked as completed"}
