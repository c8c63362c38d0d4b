"""Tests for logging meals from photos and daily totals."""
from datetime import date

import pytest

from api.nutrition import analyze_meal, daily_stats
from core.exceptions import QuotaExceededError
from schemas import MealAnalysisRequest
from services.nutrition import calculate_health_score, nutrition_service


def test_health_score_bounds():
    assert calculate_health_score({"fiber": 6, "protein": 25, "sugar": 8, "sodium": 600, "calories": 450}) == 9
    assert calculate_health_score({"sugar": 40, "sodium": 2000, "calories": 1500}) == 3
    assert calculate_health_score({}) == 7


def test_analyze_meal_logs_fallback_analysis(db, user):
    result = nutrition_service.analyze_meal(db, user, "aGVsbG8=", meal_date=date(2024, 3, 10))
    meal = result["meal"]
    assert result["source"] == "fallback"
    assert result["remaining_requests"] == 1
    assert meal.name == "Mixed Meal"
    assert meal.calories == 450
    assert meal.health_score == 9
    assert meal.created_at.date() == date(2024, 3, 10)

    stats = nutrition_service.get_daily_stats(db, user.id, date(2024, 3, 10))
    assert stats["total_meals"] == 1
    assert stats["total_calories"] == 450
    assert stats["average_health_score"] == 9.0
    assert nutrition_service.get_daily_stats(db, user.id, date(2024, 3, 11))["total_meals"] == 0


def test_analyze_route_uses_quota(db, user):
    payload = MealAnalysisRequest(image_base64="aGVsbG8=", date="2024-03-10", update_text="extra cheese")
    first = analyze_meal(payload=payload, user=user, db=db)
    assert first["data"]["analysis"]["calories"] == 585
    analyze_meal(payload=payload, user=user, db=db)
    with pytest.raises(QuotaExceededError):
        analyze_meal(payload=payload, user=user, db=db)

    stats = daily_stats(day=date(2024, 3, 10), user=user, db=db)
    assert stats["data"]["total_meals"] == 2
    assert stats["data"]["meals"][0]["name"].startswith("Mixed Meal")
