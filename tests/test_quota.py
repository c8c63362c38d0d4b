"""Tests for the per-tier daily AI request quota."""
from datetime import timedelta

import pytest

from api.meal_plans import create_meal_plan
from core.exceptions import QuotaExceededError
from database import models
from database.models import utcnow
from schemas import MealPlanCreateRequest
from services.quota import AIRequestLimiter


class FakeClock:
    def __init__(self):
        self.now = utcnow()

    def __call__(self):
        return self.now


def test_free_tier_third_request_is_429(db, user):
    limiter = AIRequestLimiter()
    assert limiter.consume(db, user) == 1
    assert limiter.consume(db, user) == 0
    with pytest.raises(QuotaExceededError) as exc_info:
        limiter.consume(db, user)
    assert exc_info.value.status_code == 429
    assert exc_info.value.limit == 2
    assert "(2)" in exc_info.value.message
    db.refresh(user)
    assert user.ai_requests_count == 2


def test_window_rolls_over_after_24_hours(db, user):
    clock = FakeClock()
    limiter = AIRequestLimiter(clock=clock)
    user.ai_requests_reset_at = clock.now
    db.commit()
    limiter.consume(db, user)
    limiter.consume(db, user)

    clock.now += timedelta(hours=25)
    assert limiter.consume(db, user) == 1
    db.refresh(user)
    assert user.ai_requests_count == 1
    assert user.ai_requests_reset_at == clock.now


def test_limits_follow_subscription_tier(db, user):
    limiter = AIRequestLimiter()
    assert limiter.limit_for("FREE") == 2
    assert limiter.limit_for("BASIC") == 5
    assert limiter.limit_for("PREMIUM") == 20
    assert limiter.limit_for("UNKNOWN") == 2

    user.subscription_type = "PREMIUM"
    db.commit()
    assert limiter.consume(db, user) == 19


def test_status_and_reset_all(db, user):
    limiter = AIRequestLimiter()
    limiter.consume(db, user)
    assert limiter.status(user)["used"] == 1
    assert limiter.reset_all(db) == 1
    db.refresh(user)
    assert limiter.status(user) == {
        "limit": 2, "used": 0, "remaining": 2, "reset_at": user.ai_requests_reset_at.isoformat(),
    }


def test_create_route_charges_before_generating(db, user):
    payload = MealPlanCreateRequest(name="Quota Week")
    first = create_meal_plan(payload=payload, user=user, db=db)
    assert first["success"] is True
    assert first["data"]["remaining_requests"] == 1
    assert first["data"]["source"] == "fallback"
    create_meal_plan(payload=payload, user=user, db=db)

    with pytest.raises(QuotaExceededError):
        create_meal_plan(payload=payload, user=user, db=db)
    # the rejected request did not create a plan
    assert db.query(models.UserMealPlan).filter_by(user_id=user.id).count() == 2
