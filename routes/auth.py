from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

import crud
import schemas
import views
import auth.utils_auth as auth_utils
from auth.principals import AdminPrincipal, PolicePrincipal, UserPrincipal, require_admin, require_police, \
    require_user
from database import get_db

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/user/register", status_code=status.HTTP_201_CREATED)
def register_user(user: schemas.UserRegister, db: Session = Depends(get_db)):
    try:
        u = crud.create_user(db, user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "message": "Registration successful! Please check your email for the verification OTP.",
        "data": {"email": u.email, "requiresVerification": True},
    }


@router.post("/user/login")
def login_user(payload: schemas.LoginSchema, db: Session = Depends(get_db)):
    user = crud.authenticate_user(db, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_email_verified:
        # the extra fields tell the client to switch to the OTP screen
        return JSONResponse(status_code=403, content={
            "success": False,
            "message": "Email not verified. A new verification OTP has been sent to your email.",
            "requiresVerification": True,
            "email": user.email,
        })
    data = views.user_view(user)
    data["token"] = auth_utils.create_token(user.id, "user")
    return {"success": True, "data": data}


@router.post("/user/verify-email")
def verify_email(payload: schemas.OTPVerify, db: Session = Depends(get_db)):
    try:
        message = crud.verify_user_email(db, payload.email, payload.otp)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if message is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "message": message}


@router.post("/user/resend-otp")
def resend_otp(payload: schemas.ResendOTP, db: Session = Depends(get_db)):
    try:
        user = crud.resend_user_otp(db, payload.email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError:
        raise HTTPException(status_code=500, detail="Failed to send OTP email. Please try again later.")
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "message": "A new verification OTP has been sent to your email."}


@router.get("/user/profile")
def get_user_profile(principal: UserPrincipal = Depends(require_user), db: Session = Depends(get_db)):
    user = crud.get_user(db, principal.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": views.user_view(user)}


@router.put("/user/profile")
def update_user_profile(payload: schemas.ProfileUpdate, principal: UserPrincipal = Depends(require_user),
                        db: Session = Depends(get_db)):
    try:
        user = crud.update_user_profile(db, principal.id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": views.user_view(user), "message": "Profile updated successfully"}


@router.put("/user/profile/photo")
def update_profile_photo(payload: schemas.PhotoUpdate, principal: UserPrincipal = Depends(require_user),
                         db: Session = Depends(get_db)):
    try:
        user = crud.update_user_photo(db, principal.id, payload.profilePhoto)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": views.user_view(user), "message": "Profile photo updated successfully"}


@router.post("/police/login")
def login_police(payload: schemas.LoginSchema, db: Session = Depends(get_db)):
    police = crud.authenticate_police(db, payload.email, payload.password)
    if not police:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    data = views.officer_view(police)
    data["token"] = auth_utils.create_token(police.id, "police")
    return {"success": True, "data": data}


@router.get("/police/profile")
def get_police_profile(principal: PolicePrincipal = Depends(require_police), db: Session = Depends(get_db)):
    police = crud.get_police(db, principal.id)
    if not police:
        raise HTTPException(status_code=404, detail="Police officer not found")
    return {"success": True, "data": views.officer_view(police)}


@router.post("/admin/login")
def login_admin(payload: schemas.LoginSchema, db: Session = Depends(get_db)):
    admin = crud.authenticate_admin(db, payload.email, payload.password)
    if not admin:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    data = views.admin_view(admin)
    data["token"] = auth_utils.create_token(admin.id, "admin")
    return {"success": True, "data": data}


@router.get("/admin/profile")
def get_admin_profile(principal: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    admin = crud.get_admin_by_email(db, principal.email)
    if not admin:
        raise HTTPException(status_code=404, detail="Admin not found")
    return {"success": True, "data": views.admin_view(admin)}
