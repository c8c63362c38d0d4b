"""Authentication: password hashing, JWT issuing and session tracking.

A token is only valid while both its signature/expiry check passes and a
matching row exists in `sessions`; signing out deletes the row, which
revokes the token even though the JWT itself has not expired.
"""

import secrets
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from core.config import get_settings
from core.exceptions import AuthenticationError, ConflictError, ValidationError
from core.logger import get_logger
from core.repository import save
from database import models
from database.models import utcnow

logger = get_logger("services.auth")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

PROFILE_FIELDS = ("name", "age", "weight_kg", "height_cm")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # malformed or unknown hash format
        return False


class AuthService:
    """Issues and verifies session tokens."""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()

    def _issue_token(self, db: Session, user: models.User) -> str:
        now = utcnow()
        expires_at = now + timedelta(days=self.settings.SESSION_EXPIRES_DAYS)
        payload = {
            "user_id": user.id,
            "email": user.email,
            "iat": now,
            "exp": expires_at,
            # two sign-ins in the same second must still yield distinct tokens
            "jti": secrets.token_hex(8),
        }
        token = jwt.encode(payload, self.settings.JWT_SECRET, algorithm=self.settings.JWT_ALGORITHM)
        save(db, models.Session(token=token, user_id=user.id, expires_at=expires_at))
        return token

    def sign_up(self, db: Session, email: str, name: str, password: str) -> Tuple[models.User, str]:
        """Create an account on the FREE tier and open a session for it.

        Raises:
            ConflictError: If the e-mail is already registered.
        """
        email = email.strip().lower()
        if db.query(models.User).filter(models.User.email == email).first():
            raise ConflictError("User already exists with this email", field="email")

        user = models.User(
            email=email,
            name=name,
            password_hash=hash_password(password),
            subscription_type="FREE",
            ai_requests_count=0,
            ai_requests_reset_at=utcnow(),
        )
        user = save(db, user)
        logger.info("User %s signed up", user.id)
        return user, self._issue_token(db, user)

    def sign_in(self, db: Session, email: str, password: str) -> Tuple[models.User, str]:
        """Check credentials and open a new session.

        Raises:
            AuthenticationError: On unknown e-mail or wrong password.
        """
        user = db.query(models.User).filter(models.User.email == email.strip().lower()).first()
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        logger.info("User %s signed in", user.id)
        return user, self._issue_token(db, user)

    def verify_token(self, db: Session, token: Optional[str]) -> models.User:
        """Resolve a token to its user.

        Raises:
            AuthenticationError: If the token is missing, malformed, expired,
                signed out, or its user no longer exists.
        """
        if not token:
            raise AuthenticationError("Authentication required")
        try:
            jwt.decode(token, self.settings.JWT_SECRET, algorithms=[self.settings.JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        session = db.query(models.Session).filter(models.Session.token == token).first()
        if session is None:
            raise AuthenticationError("Invalid token")
        if session.expires_at < utcnow():
            db.delete(session)
            db.commit()
            raise AuthenticationError("Token expired")

        user = db.get(models.User, session.user_id)
        if user is None:
            raise AuthenticationError("Invalid token")
        return user

    def sign_out(self, db: Session, token: Optional[str]) -> bool:
        """Delete the session for `token`. Returns False if none existed."""
        if not token:
            return False
        deleted = db.query(models.Session).filter(models.Session.token == token).delete()
        db.commit()
        return bool(deleted)

    def update_profile(self, db: Session, user: models.User, changes: Dict[str, Any]) -> models.User:
        """Apply profile fields that were sent; fields left out keep their value.

        Raises:
            ValidationError: If no updatable field was sent.
        """
        changes = {k: v for k, v in changes.items() if k in PROFILE_FIELDS and v is not None}
        if not changes:
            raise ValidationError("No profile fields to update")
        for field, value in changes.items():
            setattr(user, field, value)
        user = save(db, user)
        logger.info("User %s updated profile fields %s", user.id, sorted(changes))
        return user

    def purge_expired_sessions(self, db: Session) -> int:
        deleted = db.query(models.Session).filter(models.Session.expires_at < utcnow()).delete()
        db.commit()
        if deleted:
            logger.info("Purged %s expired sessions", deleted)
        return deleted


auth_service = AuthService()
__all__ = ["AuthService", "auth_service", "hash_password", "verify_password"]
