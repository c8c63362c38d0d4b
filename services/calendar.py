"""Monthly calendar view and goal statistics over logged meals.

Meals are rolled up per day with pandas; the scoring helpers
(`calculate_quality_score`, `calculate_streak_days`, `analyze_weeks`) are
pure functions over the resulting day records.
"""

import calendar as _calendar
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from sqlalchemy.orm import Session

from core.exceptions import ValidationError
from core.logger import get_logger
from core.numbers import round_half_up
from core.repository import UserScopedRepository
from database import models
from database.models import utcnow

logger = get_logger("services.calendar")

DEFAULT_GOALS = {"calories": 2000, "protein": 150, "carbs": 250, "fat": 67}

NUTRIENT_COLUMNS = {"calories": "calories", "protein_g": "protein", "carbs_g": "carbs", "fats_g": "fat"}


def month_range(year: int, month: int):
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12", field="month")
    last = _calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def previous_month(year: int, month: int):
    return (year - 1, 12) if month == 1 else (year, month - 1)


def daily_totals(meals: List[models.Meal], start: date, end: date) -> pd.DataFrame:
    """Per-day calories/protein/carbs/fat and meal count for every day in [start, end].

    Days without meals are present with zeros.
    """
    index = pd.date_range(start, end, freq="D")
    columns = list(NUTRIENT_COLUMNS.values()) + ["meal_count"]
    if not meals:
        return pd.DataFrame(0.0, index=index, columns=columns)

    frame = pd.DataFrame([
        {
            "day": pd.Timestamp(m.created_at.date()),
            **{out: float(getattr(m, col) or 0) for col, out in NUTRIENT_COLUMNS.items()},
        }
        for m in meals
    ])
    grouped = frame.groupby("day").agg(
        calories=("calories", "sum"),
        protein=("protein", "sum"),
        carbs=("carbs", "sum"),
        fat=("fat", "sum"),
        meal_count=("calories", "size"),
    )
    return grouped.reindex(index, fill_value=0.0)[columns]


def calculate_quality_score(totals: Dict[str, float], goals: Dict[str, float]) -> int:
    """1-10 score of how close a day came to its calorie and protein goals; 0 with no food.

    Calorie ratio is capped at 150 % and protein at 120 % before the
    distance from 100 % is penalised.
    """
    if not totals.get("calories"):
        return 0
    calories_ratio = min(totals["calories"] / goals["calories"], 1.5)
    protein_ratio = min(totals.get("protein", 0) / goals["protein"], 1.2)
    penalty = abs(1 - calories_ratio) * 2 + abs(1 - protein_ratio) * 1.5
    return round_half_up(max(1.0, 10 - penalty))


def _goal_met(day: Dict[str, Any]) -> bool:
    goal = day["calories_goal"]
    return goal > 0 and day["calories_actual"] / goal >= 1.0


def calculate_streak_days(days: List[Dict[str, Any]]) -> int:
    """Consecutive most-recent days meeting 100 % of the calorie goal."""
    streak = 0
    for day in sorted(days, key=lambda d: d["date"], reverse=True):
        if not _goal_met(day):
            break
        streak += 1
    return streak


def analyze_weeks(days: List[Dict[str, Any]]) -> Dict[str, str]:
    """Best and most challenging 7-day chunk by average percent of calorie goal.

    Days are chunked in date order (the last chunk may be shorter); each
    day's contribution is capped at 100 %.
    """
    ordered = sorted(days, key=lambda d: d["date"])
    weeks = [ordered[i:i + 7] for i in range(0, len(ordered), 7)]
    if not weeks:
        return {"best_week": "No data available", "challenging_week": "No data available"}

    scores = np.array([
        np.mean([min(d["calories_actual"] / d["calories_goal"] * 100, 100) if d["calories_goal"] else 0 for d in week])
        for week in weeks
    ])
    best, worst = int(np.argmax(scores)), int(np.argmin(scores))

    def label(i):
        return f"{weeks[i][0]['date']} to {weeks[i][-1]['date']} ({round_half_up(float(scores[i]))}% avg)"

    return {"best_week": label(best), "challenging_week": label(worst)}


def motivational_message(monthly_progress: float, streak_days: int, improvement_percent: int) -> str:
    if monthly_progress >= 90:
        return "Outstanding! You're crushing your goals!"
    if monthly_progress >= 75:
        return "Great job! You're doing really well!"
    if monthly_progress >= 50:
        return "Good progress! Keep pushing forward!"
    if improvement_percent > 10:
        return "Nice improvement from last month!"
    if streak_days >= 3:
        return f"{streak_days} day streak! Keep it going!"
    return "Every step counts! You've got this!"


class CalendarService:
    def get_goals(self, db: Session, user_id: int) -> Dict[str, float]:
        """Latest nutrition goals of the user, falling back to defaults per field."""
        plan = UserScopedRepository(models.NutritionPlan, db).latest_for_user(user_id, models.NutritionPlan.created_at)
        if plan is None:
            return dict(DEFAULT_GOALS)
        return {
            "calories": plan.goal_calories or DEFAULT_GOALS["calories"],
            "protein": plan.goal_protein_g or DEFAULT_GOALS["protein"],
            "carbs": plan.goal_carbs_g or DEFAULT_GOALS["carbs"],
            "fat": plan.goal_fats_g or DEFAULT_GOALS["fat"],
        }

    def _meals_between(self, db: Session, user_id: int, start: date, end: date) -> List[models.Meal]:
        return (
            db.query(models.Meal)
            .filter(
                models.Meal.user_id == user_id,
                models.Meal.created_at >= pd.Timestamp(start).to_pydatetime(),
                models.Meal.created_at < pd.Timestamp(end + timedelta(days=1)).to_pydatetime(),
            )
            .order_by(models.Meal.created_at)
            .all()
        )

    def get_calendar_data(self, db: Session, user_id: int, year: int, month: int,
                          goals: Optional[Dict[str, float]] = None) -> Dict[str, Dict[str, Any]]:
        """Goal vs actual for every day of the month, keyed by ISO date."""
        start, end = month_range(year, month)
        goals = goals or self.get_goals(db, user_id)
        frame = daily_totals(self._meals_between(db, user_id, start, end), start, end)

        data = {}
        for ts, row in frame.iterrows():
            totals = {"calories": row["calories"], "protein": row["protein"], "carbs": row["carbs"], "fat": row["fat"]}
            key = ts.date().isoformat()
            data[key] = {
                "date": key,
                "calories_goal": goals["calories"],
                "calories_actual": float(row["calories"]),
                "protein_goal": goals["protein"],
                "protein_actual": float(row["protein"]),
                "carbs_goal": goals["carbs"],
                "carbs_actual": float(row["carbs"]),
                "fat_goal": goals["fat"],
                "fat_actual": float(row["fat"]),
                "meal_count": int(row["meal_count"]),
                "quality_score": calculate_quality_score(totals, goals),
                "events": [],
            }
        return data

    def get_statistics(self, db: Session, user_id: int, year: int, month: int,
                       today: Optional[date] = None) -> Dict[str, Any]:
        """Monthly goal progress, streak, best/worst week and month-over-month change."""
        today = today or utcnow().date()
        goals = self.get_goals(db, user_id)
        current = list(self.get_calendar_data(db, user_id, year, month, goals).values())
        prev_year, prev_month = previous_month(year, month)
        previous = list(self.get_calendar_data(db, user_id, prev_year, prev_month, goals).values())

        goal_days = sum(1 for d in current if _goal_met(d))
        monthly_progress = goal_days / len(current) * 100 if current else 0.0
        prev_goal_days = sum(1 for d in previous if _goal_met(d))
        prev_progress = prev_goal_days / len(previous) * 100 if previous else 0.0
        improvement = round_half_up(monthly_progress - prev_progress)

        # days still ahead in the month cannot break a streak
        elapsed = [d for d in current if d["date"] <= today.isoformat()]
        streak = calculate_streak_days(elapsed)
        weeks = analyze_weeks(current)

        calories = np.array([d["calories_actual"] for d in current])
        protein = np.array([d["protein_actual"] for d in current])

        stats = {
            "monthly_progress": round_half_up(monthly_progress),
            "streak_days": streak,
            "best_week": weeks["best_week"],
            "challenging_week": weeks["challenging_week"],
            "improvement_percent": improvement,
            "total_goal_days": goal_days,
            "average_calories": round_half_up(float(calories.mean())) if calories.size else 0,
            "average_protein": round_half_up(float(protein.mean())) if protein.size else 0,
            "motivational_message": motivational_message(monthly_progress, streak, improvement),
        }
        logger.info("Calendar statistics for user %s %s-%02d: %s%% progress", user_id, year, month, stats["monthly_progress"])
        return stats


calendar_service = CalendarService()
__all__ = [
    "CalendarService",
    "calendar_service",
    "calculate_quality_score",
    "calculate_streak_days",
    "analyze_weeks",
    "daily_totals",
]
