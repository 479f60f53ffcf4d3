"""
Authenticated callers.

A request is made by exactly one of UserPrincipal, PolicePrincipal or
AdminPrincipal. Route guards and service checks match on the principal type
instead of comparing role strings.
"""
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

import auth.utils_auth as auth_utils
import models
from database import get_db


@dataclass(frozen=True)
class UserPrincipal:
    id: int
    name: str
    email: str
    role = "user"
    model = "User"


@dataclass(frozen=True)
class PolicePrincipal:
    id: int
    name: str
    email: str
    station_id: int
    role = "police"
    model = "Police"


@dataclass(frozen=True)
class AdminPrincipal:
    id: int
    name: str
    email: str
    role = "admin"
    model = "Admin"


Principal = Union[UserPrincipal, PolicePrincipal, AdminPrincipal]

ROLE_TYPES = {
    "user": UserPrincipal,
    "police": PolicePrincipal,
    "admin": AdminPrincipal,
}


def load_principal(db: Session, role: str, subject_id: int) -> Optional[Principal]:
    if role == "user":
        user = db.get(models.User, subject_id)
        return UserPrincipal(user.id, user.name, user.email) if user else None
    if role == "police":
        officer = db.get(models.Police, subject_id)
        return PolicePrincipal(officer.id, officer.name, officer.email, officer.station_id) if officer else None
    if role == "admin":
        admin = db.get(models.Admin, subject_id)
        return AdminPrincipal(admin.id, admin.name, admin.email) if admin else None
    return None


def get_current_principal(authorization: Optional[str] = Header(None), db: Session = Depends(get_db)) -> Principal:
    if not authorization or not authorization.startswith("Bearer"):
        raise HTTPException(status_code=401, detail="Not authorized, no token provided")
    token = authorization.split("Bearer ")[-1].strip()
    payload = auth_utils.decode_token(token)
    if not payload or "sub" not in payload:
        raise HTTPException(status_code=401, detail="Not authorized, invalid token")
    try:
        subject_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Not authorized, invalid token")
    principal = load_principal(db, payload.get("role"), subject_id)
    if principal is None:
        raise HTTPException(status_code=401, detail="Not authorized, user not found")
    return principal


def require_roles(*roles: str):
    """
    Use: Depends(require_roles("admin"))  OR  Depends(require_roles("user", "admin"))
    """
    allowed = tuple(ROLE_TYPES[r] for r in roles)

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not isinstance(principal, allowed):
            raise HTTPException(
                status_code=403,
                detail=f"User role '{principal.role}' is not authorized to access this route",
            )
        return principal

    return dependency


require_user = require_roles("user")
require_police = require_roles("police")
require_admin = require_roles("admin")
