"""Daily AI request quota per subscription tier.

Each user has a counter and the start of their current 24 hour window.
`consume` rolls a stale window over and increments in conditional UPDATE
statements, so two concurrent requests at `limit - 1` cannot both pass:
the database only bumps the counter while it is still below the limit.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.config import get_settings
from core.exceptions import QuotaExceededError
from core.logger import get_logger
from database import models
from database.models import utcnow

logger = get_logger("services.quota")

WINDOW = timedelta(hours=24)


class AIRequestLimiter:
    """Enforces per-tier daily AI request limits.

    Args:
        limits: Mapping of subscription tier to requests per window.
            Defaults to the configured FREE/BASIC/PREMIUM limits.
        clock: Callable returning the current naive-UTC time; injectable
            so tests can move time forward.
    """

    def __init__(self, limits: Optional[Dict[str, int]] = None, clock: Callable[[], datetime] = utcnow):
        self.limits = limits or get_settings().ai_daily_limits
        self.clock = clock

    def limit_for(self, subscription_type: Optional[str]) -> int:
        tier = (subscription_type or "FREE").upper()
        return self.limits.get(tier, self.limits["FREE"])

    def consume(self, db: Session, user: models.User) -> int:
        """Use one AI request for `user`, returning how many are left.

        Raises:
            QuotaExceededError: When the current window is already used up.
        """
        now = self.clock()
        limit = self.limit_for(user.subscription_type)
        users = db.query(models.User).filter(models.User.id == user.id)

        rolled = users.filter(
            or_(
                models.User.ai_requests_reset_at.is_(None),
                models.User.ai_requests_reset_at <= now - WINDOW,
            )
        ).update(
            {models.User.ai_requests_count: 0, models.User.ai_requests_reset_at: now},
            synchronize_session=False,
        )
        if rolled:
            logger.info("AI quota window reset for user %s", user.id)

        granted = users.filter(models.User.ai_requests_count < limit).update(
            {models.User.ai_requests_count: models.User.ai_requests_count + 1},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(user)

        if not granted:
            logger.warning("AI quota exhausted for user %s (%s/%s)", user.id, user.ai_requests_count, limit)
            raise QuotaExceededError(limit, user.subscription_type)

        remaining = max(0, limit - user.ai_requests_count)
        logger.info("AI request granted for user %s, %s left", user.id, remaining)
        return remaining

    def status(self, user: models.User) -> dict:
        """Read-only view of the user's quota for the current window."""
        now = self.clock()
        limit = self.limit_for(user.subscription_type)
        used = user.ai_requests_count or 0
        if user.ai_requests_reset_at is None or user.ai_requests_reset_at <= now - WINDOW:
            used = 0
        return {
            "limit": limit,
            "used": used,
            "remaining": max(0, limit - used),
            "reset_at": user.ai_requests_reset_at.isoformat() if user.ai_requests_reset_at else None,
        }

    def reset_all(self, db: Session) -> int:
        """Zero every user's counter and start a fresh window now."""
        count = db.query(models.User).update(
            {models.User.ai_requests_count: 0, models.User.ai_requests_reset_at: self.clock()},
            synchronize_session=False,
        )
        db.commit()
        logger.info("Reset AI request counters for %s users", count)
        return count


ai_request_limiter = AIRequestLimiter()
__all__ = ["AIRequestLimiter", "ai_request_limiter", "WINDOW"]
