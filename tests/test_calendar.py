"""Tests for the calendar month view and its statistics."""
from datetime import date, datetime

import pytest

from core.exceptions import ValidationError
from database import models
from services.calendar import (
    analyze_weeks,
    calculate_quality_score,
    calculate_streak_days,
    calendar_service,
    motivational_message,
)

GOALS = {"calories": 2000, "protein": 150, "carbs": 250, "fat": 67}


def _day(iso, calories, goal=2000):
    return {"date": iso, "calories_actual": calories, "calories_goal": goal}


def _log(db, user, when, calories, protein=30):
    db.add(models.Meal(user_id=user.id, name="Logged", calories=calories, protein_g=protein,
                       carbs_g=50, fats_g=20, created_at=when))
    db.commit()


def test_quality_score():
    assert calculate_quality_score({"calories": 0, "protein": 0}, GOALS) == 0
    assert calculate_quality_score({"calories": 2000, "protein": 150}, GOALS) == 10
    assert calculate_quality_score({"calories": 1000, "protein": 75}, GOALS) == 8
    # over-eating is capped at 150 % calories and 120 % protein
    assert calculate_quality_score({"calories": 5000, "protein": 500}, GOALS) == 9


def test_streak_counts_back_from_latest_day():
    days = [_day("2024-06-01", 2100), _day("2024-06-02", 900), _day("2024-06-03", 2000),
            _day("2024-06-04", 2500), _day("2024-06-05", 2001)]
    assert calculate_streak_days(days) == 3
    assert calculate_streak_days(days + [_day("2024-06-06", 1999)]) == 0
    assert calculate_streak_days([]) == 0


def test_analyze_weeks():
    days = [_day(f"2024-06-{d:02d}", 2000) for d in range(1, 8)]
    days += [_day(f"2024-06-{d:02d}", 1000) for d in range(8, 15)]
    weeks = analyze_weeks(days)
    assert weeks["best_week"] == "2024-06-01 to 2024-06-07 (100% avg)"
    assert weeks["challenging_week"] == "2024-06-08 to 2024-06-14 (50% avg)"
    assert analyze_weeks([]) == {"best_week": "No data available", "challenging_week": "No data available"}


def test_motivational_message_priority():
    assert motivational_message(95, 0, 0).startswith("Outstanding")
    assert motivational_message(80, 0, 0).startswith("Great job")
    assert motivational_message(60, 0, 0).startswith("Good progress")
    assert motivational_message(20, 0, 15) == "Nice improvement from last month!"
    assert motivational_message(20, 4, 0) == "4 day streak! Keep it going!"
    assert motivational_message(0, 0, 0) == "Every step counts! You've got this!"


def test_calendar_data_covers_every_day(db, user):
    _log(db, user, datetime(2024, 6, 3, 8, 0), 1200)
    _log(db, user, datetime(2024, 6, 3, 19, 30), 900)
    _log(db, user, datetime(2024, 7, 1, 9, 0), 500)

    data = calendar_service.get_calendar_data(db, user.id, 2024, 6)
    assert len(data) == 30
    assert list(data)[0] == "2024-06-01"
    june_3 = data["2024-06-03"]
    assert june_3["calories_actual"] == 2100
    assert june_3["protein_actual"] == 60
    assert june_3["meal_count"] == 2
    assert june_3["calories_goal"] == 2000
    assert data["2024-06-04"]["meal_count"] == 0
    assert data["2024-06-04"]["quality_score"] == 0


def test_calendar_uses_latest_goals(db, user):
    db.add(models.NutritionPlan(user_id=user.id, goal_calories=1800, goal_protein_g=120,
                                goal_carbs_g=None, goal_fats_g=60))
    db.commit()
    assert calendar_service.get_goals(db, user.id) == {"calories": 1800, "protein": 120, "carbs": 250, "fat": 60}


def test_statistics(db, user):
    _log(db, user, datetime(2024, 6, 2, 12, 0), 2000)
    _log(db, user, datetime(2024, 6, 3, 12, 0), 2100)

    stats = calendar_service.get_statistics(db, user.id, 2024, 6, today=date(2024, 6, 3))
    assert stats["total_goal_days"] == 2
    assert stats["monthly_progress"] == 7
    assert stats["improvement_percent"] == 7
    assert stats["streak_days"] == 2
    assert stats["average_calories"] == 137
    assert stats["best_week"] == "2024-06-01 to 2024-06-07 (29% avg)"
    assert stats["motivational_message"] == "Every step counts! You've got this!"

    # later in the month the missed days break the streak
    later = calendar_service.get_statistics(db, user.id, 2024, 6, today=date(2024, 6, 20))
    assert later["streak_days"] == 0


def test_invalid_month(db, user):
    with pytest.raises(ValidationError):
        calendar_service.get_calendar_data(db, user.id, 2024, 13)
