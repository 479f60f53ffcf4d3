from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import crud
import schemas
import views
from auth.principals import require_admin, require_user
from database import get_db
from utils.geo import format_km

router = APIRouter(prefix="/api/stations", tags=["Stations"])


@router.get("/nearby", dependencies=[Depends(require_user)])
def nearby_stations(lat: Optional[float] = None, lng: Optional[float] = None, db: Session = Depends(get_db)):
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="Please provide latitude and longitude")
    out = []
    for s, d in crud.get_nearby_stations(db, lat, lng):
        item = views.station_flat_view(s)
        item.pop("createdAt")
        item["distance"] = format_km(d)
        out.append(item)
    return {"success": True, "count": len(out), "data": out}


@router.get("/all")
def all_stations_public(db: Session = Depends(get_db)):
    stations = [views.station_flat_view(s) for s in crud.all_stations(db)]
    return {"success": True, "count": len(stations), "data": stations}


@router.get("", dependencies=[Depends(require_admin)])
def all_stations(db: Session = Depends(get_db)):
    stations = [views.station_flat_view(s) for s in crud.all_stations(db)]
    return {"success": True, "count": len(stations), "data": stations}


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_station(payload: schemas.StationCreate, db: Session = Depends(get_db)):
    station = crud.create_station(db, payload)
    return {"success": True, "data": views.station_flat_view(station)}


@router.post("/create-police", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_police_account(payload: schemas.PoliceCreate, db: Session = Depends(get_db)):
    try:
        police = crud.create_police(db, payload)
    except LookupError:
        raise HTTPException(status_code=404, detail="Police station not found")
    except ValueError:
        raise HTTPException(status_code=400, detail="Police account already exists with this email")
    return {"success": True, "data": views.officer_view(police)}
