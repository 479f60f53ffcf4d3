from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import schemas
import views
from auth.principals import Principal, require_roles
from database import get_db
from services import chat

router = APIRouter(prefix="/api/chat", tags=["SOS Chat"])

chat_member = require_roles("user", "police", "admin")


@router.get("/{alert_id}/messages")
def get_messages(alert_id: int, since: Optional[datetime] = None, principal: Principal = Depends(chat_member),
                 db: Session = Depends(get_db)):
    try:
        messages = chat.get_sos_messages(db, alert_id, principal, since)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if messages is None:
        raise HTTPException(status_code=404, detail="SOS Alert not found")
    data = [views.chat_message_view(m) for m in messages]
    return {"success": True, "count": len(data), "data": data}


@router.post("/{alert_id}/messages", status_code=status.HTTP_201_CREATED)
def send_message(alert_id: int, payload: schemas.ChatMessageCreate, principal: Principal = Depends(chat_member),
                 db: Session = Depends(get_db)):
    try:
        msg = chat.send_sos_message(db, alert_id, principal, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if msg is None:
        raise HTTPException(status_code=404, detail="SOS Alert not found")
    return {"success": True, "data": views.chat_message_view(msg)}


@router.get("/{alert_id}/info")
def chat_info(alert_id: int, principal: Principal = Depends(chat_member), db: Session = Depends(get_db)):
    try:
        info = chat.get_sos_chat_info(db, alert_id, principal)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if info is None:
        raise HTTPException(status_code=404, detail="SOS Alert not found")
    return {"success": True, "data": info}
