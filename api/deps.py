"""Request dependencies for authenticated routes.

The session token is read from the `auth_token` cookie first and from an
`Authorization: Bearer <token>` header otherwise.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from core.config import get_settings
from database import models
from database.deps import get_db_write
from services.auth import auth_service


def get_token(request: Request) -> Optional[str]:
    token = request.cookies.get(get_settings().AUTH_COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def get_current_user(request: Request, db: Session = Depends(get_db_write)) -> models.User:
    """Resolve the caller; raises `AuthenticationError` (401) when not signed in."""
    return auth_service.verify_token(db, get_token(request))
