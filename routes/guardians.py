from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import crud
import schemas
import views
from auth.principals import UserPrincipal, require_user
from database import get_db

router = APIRouter(prefix="/api/guardians", tags=["Guardians"])


def _guardians_or_404(guardians, detail="Guardian not found"):
    if guardians is None:
        raise HTTPException(status_code=404, detail=detail)
    return [views.guardian_view(g) for g in guardians]


@router.get("")
def list_guardians(principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    guardians = _guardians_or_404(crud.list_guardians(db, principal.id), "User not found")
    return {"success": True, "count": len(guardians), "data": guardians}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_guardian(payload: schemas.GuardianCreate, principal: UserPrincipal = Depends(require_user),
                 db: Session = Depends(get_db)):
    try:
        guardians = crud.add_guardian(db, principal.id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "data": _guardians_or_404(guardians, "User not found")}


@router.put("/{guardian_id}")
def update_guardian(guardian_id: int, payload: schemas.GuardianUpdate,
                    principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    guardians = crud.update_guardian(db, principal.id, guardian_id, payload)
    return {"success": True, "data": _guardians_or_404(guardians)}


@router.delete("/{guardian_id}")
def delete_guardian(guardian_id: int, principal: UserPrincipal = Depends(require_user),
                    db: Session = Depends(get_db)):
    guardians = crud.delete_guardian(db, principal.id, guardian_id)
    return {"success": True, "message": "Guardian removed successfully", "data": _guardians_or_404(guardians)}
