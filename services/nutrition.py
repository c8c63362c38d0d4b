"""Logged meals: photo analysis, listing and per-day totals."""

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.logger import get_logger
from core.numbers import round_half_up
from core.repository import save
from database import models
from database.models import utcnow
from services.openai_service import OpenAIService, openai_service
from services.quota import AIRequestLimiter, ai_request_limiter

logger = get_logger("services.nutrition")


def calculate_health_score(analysis: Dict[str, Any]) -> int:
    """1-10 heuristic: fiber and protein help, sugar and sodium hurt."""
    score = 7
    if (analysis.get("fiber") or 0) >= 5:
        score += 1
    if (analysis.get("protein") or 0) >= 20:
        score += 1
    if (analysis.get("sugar") or 0) > 25:
        score -= 2
    if (analysis.get("sodium") or 0) > 1000:
        score -= 1
    if (analysis.get("calories") or 0) > 1000:
        score -= 1
    return max(1, min(10, score))


def day_bounds(day: date):
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class NutritionService:
    def __init__(self, ai: Optional[OpenAIService] = None, limiter: Optional[AIRequestLimiter] = None):
        self.ai = ai or openai_service
        self.limiter = limiter or ai_request_limiter

    def analyze_meal(self, db: Session, user: models.User, image_base64: str, language: str = "english",
                     update_text: Optional[str] = None, meal_date: Optional[date] = None) -> Dict[str, Any]:
        """Analyze a meal photo, store it as a logged meal and charge one AI request.

        Raises:
            QuotaExceededError: If the user has no AI requests left today.
        """
        remaining = self.limiter.consume(db, user)
        analysis = self.ai.analyze_meal_image(image_base64, language, update_text)
        result = analysis.result

        meal = models.Meal(
            user_id=user.id,
            name=result["name"],
            description=result.get("description"),
            calories=result.get("calories") or 0,
            protein_g=result.get("protein") or 0,
            carbs_g=result.get("carbs") or 0,
            fats_g=result.get("fat") or 0,
            fiber_g=result.get("fiber"),
            sugar_g=result.get("sugar"),
            sodium_mg=result.get("sodium"),
            ingredients=result.get("ingredients") or [],
            health_score=calculate_health_score(result),
            confidence=result.get("confidence"),
        )
        if meal_date is not None:
            meal.created_at = datetime.combine(meal_date, utcnow().time())
        meal = save(db, meal)
        logger.info("Meal %s logged for user %s (source=%s)", meal.id, user.id, analysis.source)
        return {"meal": meal, "analysis": result, "source": analysis.source, "remaining_requests": remaining}

    def get_user_meals(self, db: Session, user_id: int, day: Optional[date] = None) -> List[models.Meal]:
        query = db.query(models.Meal).filter(models.Meal.user_id == user_id)
        if day is not None:
            start, end = day_bounds(day)
            query = query.filter(models.Meal.created_at >= start, models.Meal.created_at < end)
        return query.order_by(models.Meal.created_at.desc()).all()

    def get_daily_stats(self, db: Session, user_id: int, day: date) -> Dict[str, Any]:
        meals = self.get_user_meals(db, user_id, day)
        stats = {
            "total_calories": 0.0,
            "total_protein": 0.0,
            "total_carbs": 0.0,
            "total_fat": 0.0,
            "total_fiber": 0.0,
            "total_sugar": 0.0,
            "total_meals": len(meals),
            "average_health_score": 0.0,
        }
        for meal in meals:
            stats["total_calories"] += meal.calories or 0
            stats["total_protein"] += meal.protein_g or 0
            stats["total_carbs"] += meal.carbs_g or 0
            stats["total_fat"] += meal.fats_g or 0
            stats["total_fiber"] += meal.fiber_g or 0
            stats["total_sugar"] += meal.sugar_g or 0
        if meals:
            scores = [m.health_score for m in meals if m.health_score is not None]
            stats["average_health_score"] = round_half_up(sum(scores) / len(scores), 1) if scores else 0.0
        return {**stats, "meals": meals}


nutrition_service = NutritionService()
__all__ = ["NutritionService", "nutrition_service", "calculate_health_score"]
