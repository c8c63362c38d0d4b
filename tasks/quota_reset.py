"""
Daily reset of AI request counters.

Runs inside the API process: `run_quota_reset_loop` is started from the
application lifespan and wakes up at every UTC midnight. The per-user
rolling window in `services.quota` still applies between runs. Expired
login sessions are purged on the same schedule.
"""

import asyncio
from datetime import datetime, timedelta

from core.logger import get_logger
from database.database import WriteSessionLocal
from database.models import utcnow
from services.auth import auth_service
from services.quota import ai_request_limiter

logger = get_logger("tasks.quota_reset")


def reset_daily_limits() -> dict:
    """Zero every user's AI request counter and drop expired sessions."""
    db = WriteSessionLocal()
    try:
        users = ai_request_limiter.reset_all(db)
        sessions = auth_service.purge_expired_sessions(db)
        return {"users_reset": users, "sessions_purged": sessions}
    finally:
        db.close()


def seconds_until_next_midnight(now: datetime) -> float:
    midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
    return (midnight - now).total_seconds()


async def run_quota_reset_loop() -> None:
    """Reset quotas every UTC midnight until cancelled."""
    while True:
        delay = seconds_until_next_midnight(utcnow())
        logger.info("Next AI quota reset in %.0fs", delay)
        await asyncio.sleep(delay)
        try:
            result = await asyncio.to_thread(reset_daily_limits)
            logger.info("Daily AI quota reset done: %s", result)
        except Exception:
            logger.exception("Daily AI quota reset failed")
