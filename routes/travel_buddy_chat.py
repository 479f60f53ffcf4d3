from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import schemas
import views
from auth.principals import UserPrincipal, require_user
from database import get_db
from services import chat

router = APIRouter(prefix="/api/travel-buddy-chat", tags=["Travel Buddy Chat"])


@router.get("/{trip_id}/messages")
def get_messages(trip_id: int, since: Optional[datetime] = None, principal: UserPrincipal = Depends(require_user),
                 db: Session = Depends(get_db)):
    try:
        messages = chat.get_trip_messages(db, trip_id, principal.id, since)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if messages is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    data = [views.chat_message_view(m) for m in messages]
    return {"success": True, "count": len(data), "data": data}


@router.post("/{trip_id}/messages", status_code=status.HTTP_201_CREATED)
def send_message(trip_id: int, payload: schemas.ChatMessageCreate, principal: UserPrincipal = Depends(require_user),
                 db: Session = Depends(get_db)):
    try:
        msg = chat.send_trip_message(db, trip_id, principal, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if msg is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return {"success": True, "data": views.chat_message_view(msg)}


@router.get("/{trip_id}/info")
def chat_info(trip_id: int, principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    try:
        info = chat.get_trip_chat_info(db, trip_id, principal.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if info is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return {"success": True, "data": info}
