"""Nutrition statistics: anonymised averages over all meals and per-user summaries."""

from datetime import timedelta
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import func
from sqlalchemy.orm import Session

from core.logger import get_logger
from core.numbers import round_half_up
from database import models
from database.models import utcnow
from services.openai_service import OpenAIService, openai_service

logger = get_logger("services.statistics")

TIMING_SAMPLE_SIZE = 1000
AVERAGE_MEALS_PER_DAY = 2.8

BEHAVIORAL_PATTERNS = {
    "weekday_vs_weekend": "Users tend to consume 15% more calories on weekends compared to weekdays",
    "seasonal_trends": "Protein intake increases by 12% during winter months",
    "meal_frequency": "Most users log 2-3 meals per day, with lunch being the most tracked meal",
}

RECOMMENDATIONS = {
    "nutritional_tips": [
        "Aim for 25-30g of protein per meal for optimal muscle maintenance",
        "Include fiber-rich foods to reach 25-35g daily fiber intake",
        "Balance your plate: 50% vegetables, 25% protein, 25% complex carbs",
        "Stay hydrated with 8-10 glasses of water daily",
    ],
    "meal_timing_tips": [
        "Eat your largest meal when you're most active",
        "Allow 3-4 hours between main meals",
        "Consider a protein-rich breakfast to stabilize blood sugar",
        "Stop eating 2-3 hours before bedtime for better sleep",
    ],
    "portion_control_tips": [
        "Use smaller plates to naturally reduce portion sizes",
        "Fill half your plate with vegetables first",
        "Eat slowly and mindfully to recognize fullness cues",
        "Pre-portion snacks to avoid overeating",
    ],
}


def format_hour(hour: int) -> str:
    """24h hour -> '7:00 AM' style label."""
    period = "PM" if hour >= 12 else "AM"
    display = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display}:00 {period}"


def most_common_meal_time(timestamps: List[Any]) -> str:
    hours = pd.Series([ts.hour for ts in timestamps if ts is not None], dtype="int64")
    if hours.empty:
        return "12:00 PM"
    counts = hours.value_counts(sort=False)
    # earliest hour wins a tie
    return format_hour(int(counts[counts == counts.max()].index.min()))


def protein_insight(avg_protein: float) -> str:
    if avg_protein >= 25:
        return "Excellent protein intake! Most users are meeting their protein goals effectively."
    if avg_protein >= 15:
        return "Good protein levels, but there's room for improvement. Consider adding lean proteins."
    return "Protein intake could be higher. Focus on including protein sources in every meal."


def calorie_insight(avg_calories: float) -> str:
    if 400 <= avg_calories <= 600:
        return "Well-balanced meal sizes! Most users are maintaining appropriate portion sizes."
    if avg_calories > 600:
        return "Meal sizes tend to be on the larger side. Consider portion control strategies."
    return "Meal sizes are generally smaller. Ensure you're getting adequate nutrition."


def fiber_insight(avg_fiber: float) -> str:
    if avg_fiber >= 8:
        return "Great fiber intake per meal! Users are including plenty of vegetables and whole grains."
    if avg_fiber >= 4:
        return "Moderate fiber intake. Try adding more vegetables and fruits to meals."
    return "Fiber intake could be improved. Focus on whole grains, vegetables, and legumes."


def sugar_insight(avg_sugar: float) -> str:
    if avg_sugar <= 10:
        return "Excellent sugar control! Most users are keeping added sugars to a minimum."
    if avg_sugar <= 20:
        return "Moderate sugar intake. Be mindful of hidden sugars in processed foods."
    return "Sugar intake is on the higher side. Consider reducing sugary drinks and desserts."


class StatisticsService:
    def __init__(self, ai: Optional[OpenAIService] = None):
        self.ai = ai or openai_service

    def get_global_statistics(self, db: Session) -> Dict[str, Any]:
        """Averages per meal across every user, with canned insights and tips.

        No user identifiers leave this method.
        """
        averages = db.query(
            func.avg(models.Meal.calories),
            func.avg(models.Meal.protein_g),
            func.avg(models.Meal.carbs_g),
            func.avg(models.Meal.fats_g),
            func.avg(models.Meal.fiber_g),
            func.avg(models.Meal.sugar_g),
        ).one()
        calories, protein, carbs, fats, fiber, sugar = (value or 0 for value in averages)

        timestamps = [
            row[0] for row in db.query(models.Meal.created_at).limit(TIMING_SAMPLE_SIZE).all()
        ]

        general = {
            "average_calories_per_meal": round_half_up(calories),
            "average_protein_per_meal": round_half_up(protein),
            "average_carbs_per_meal": round_half_up(carbs),
            "average_fat_per_meal": round_half_up(fats),
            "most_common_meal_time": most_common_meal_time(timestamps),
            "average_meals_per_day": AVERAGE_MEALS_PER_DAY,
        }
        logger.info("Generated global statistics")
        return {
            "general_stats": general,
            "health_insights": {
                "protein_adequacy": protein_insight(general["average_protein_per_meal"]),
                "calorie_distribution": calorie_insight(general["average_calories_per_meal"]),
                "fiber_intake": fiber_insight(fiber),
                "sugar_consumption": sugar_insight(sugar),
            },
            "behavioral_patterns": dict(BEHAVIORAL_PATTERNS),
            "recommendations": {key: list(tips) for key, tips in RECOMMENDATIONS.items()},
        }

    def get_user_statistics(self, db: Session, user_id: int, days: int = 7,
                            include_insights: bool = True) -> Dict[str, Any]:
        """Daily averages over the trailing `days` window, counting only days with logged meals."""
        since = utcnow() - timedelta(days=days)
        meals = (
            db.query(models.Meal)
            .filter(models.Meal.user_id == user_id, models.Meal.created_at >= since)
            .all()
        )

        stats: Dict[str, Any] = {
            "period_days": days,
            "total_meals": len(meals),
            "logged_days": 0,
            "average_calories_daily": 0,
            "average_protein_daily": 0,
            "average_carbs_daily": 0,
            "average_fats_daily": 0,
            "average_fiber_daily": 0,
            "average_sugar_daily": 0,
            "average_sodium_daily": 0,
            "average_health_score": 0.0,
        }
        if meals:
            frame = pd.DataFrame([
                {
                    "day": m.created_at.date(),
                    "calories": m.calories,
                    "protein": m.protein_g,
                    "carbs": m.carbs_g,
                    "fats": m.fats_g,
                    "fiber": m.fiber_g,
                    "sugar": m.sugar_g,
                    "sodium": m.sodium_mg,
                    "health_score": m.health_score,
                }
                for m in meals
            ])
            nutrients = ["calories", "protein", "carbs", "fats", "fiber", "sugar", "sodium"]
            frame[nutrients] = frame[nutrients].apply(pd.to_numeric, errors="coerce").fillna(0)
            daily = frame.groupby("day")[nutrients].sum()
            stats["logged_days"] = int(len(daily))
            for column in nutrients:
                stats[f"average_{column}_daily"] = round_half_up(float(daily[column].mean()))
            scores = pd.to_numeric(frame["health_score"], errors="coerce").dropna()
            if not scores.empty:
                stats["average_health_score"] = round_half_up(float(scores.mean()), 1)

        stats["insights"] = self.ai.generate_nutrition_insights(stats) if include_insights and meals else []
        return stats


statistics_service = StatisticsService()
__all__ = ["StatisticsService", "statistics_service", "most_common_meal_time", "format_hour"]
