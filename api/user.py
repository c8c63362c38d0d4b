"""User API router: profile updates and subscription details."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.auth import user_to_dict
from api.deps import get_current_user
from database import models
from database.deps import get_db_write
from schemas import ProfileUpdateRequest
from services.auth import auth_service
from services.quota import ai_request_limiter

router = APIRouter(prefix="/api/user", tags=["user"])

PLAN_NAMES = {"FREE": "Free Plan", "BASIC": "Basic Plan", "PREMIUM": "Premium Plan"}


@router.put("/profile")
def update_profile(payload: ProfileUpdateRequest, user: models.User = Depends(get_current_user),
                   db: Session = Depends(get_db_write)):
    """Change name, age, weight or height of the signed-in user.

    Raises:
        ValidationError: If the body has no profile field set.
    """
    user = auth_service.update_profile(db, user, payload.model_dump(exclude_none=True))
    return {"success": True, "data": user_to_dict(user)}


@router.get("/subscription-info")
def subscription_info(user: models.User = Depends(get_current_user)):
    tier = user.subscription_type if user.subscription_type in PLAN_NAMES else "FREE"
    quota = ai_request_limiter.status(user)
    return {
        "success": True,
        "data": {
            "subscription_type": tier,
            "name": PLAN_NAMES[tier],
            "daily_requests": quota["limit"],
            "current_requests": quota["used"],
            "reset_at": quota["reset_at"],
        },
    }
