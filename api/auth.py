"""Auth API router: sign-up, sign-in, current user and sign-out."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from api.deps import get_current_user, get_token
from core.config import get_settings
from core.logger import get_logger
from database import models
from database.deps import get_db_write
from schemas import SignInRequest, SignUpRequest
from services.auth import auth_service
from services.quota import ai_request_limiter

logger = get_logger("api.auth")
router = APIRouter(prefix="/api/auth", tags=["auth"])


def user_to_dict(user: models.User) -> dict:
    return {
        "user_id": user.id,
        "email": user.email,
        "name": user.name,
        "subscription_type": user.subscription_type,
        "age": user.age,
        "weight_kg": user.weight_kg,
        "height_cm": user.height_cm,
        "is_questionnaire_completed": user.is_questionnaire_completed,
        "ai_requests": ai_request_limiter.status(user),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _set_auth_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.SESSION_EXPIRES_DAYS * 24 * 60 * 60,
    )


@router.post("/signup", status_code=201)
def signup(payload: SignUpRequest, response: Response, db: Session = Depends(get_db_write)):
    """Create an account and sign it in.

    Raises:
        ConflictError: If the e-mail is already registered.
    """
    user, token = auth_service.sign_up(db, payload.email, payload.name, payload.password)
    _set_auth_cookie(response, token)
    return {"success": True, "message": "User created successfully", "data": {"user": user_to_dict(user), "token": token}}


@router.post("/signin")
def signin(payload: SignInRequest, response: Response, db: Session = Depends(get_db_write)):
    user, token = auth_service.sign_in(db, payload.email, payload.password)
    _set_auth_cookie(response, token)
    return {"success": True, "message": "Signed in successfully", "data": {"user": user_to_dict(user), "token": token}}


@router.get("/me")
def me(user: models.User = Depends(get_current_user)):
    return {"success": True, "data": user_to_dict(user)}


@router.post("/signout")
def signout(request: Request, response: Response, db: Session = Depends(get_db_write)):
    """Revoke the caller's session; succeeds even when there was none."""
    revoked = auth_service.sign_out(db, get_token(request))
    response.delete_cookie(get_settings().AUTH_COOKIE_NAME)
    logger.info("Sign-out (session revoked=%s)", revoked)
    return {"success": True, "message": "Signed out successfully"}
