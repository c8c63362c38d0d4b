"""Nutrition API router: log meals from photos and read daily totals."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_current_user
from core.logger import get_logger
from database import models
from database.deps import get_db_write
from schemas import MealAnalysisRequest
from services.nutrition import nutrition_service

logger = get_logger("api.nutrition")
router = APIRouter(prefix="/api/nutrition", tags=["nutrition"])


def meal_to_dict(meal: models.Meal) -> dict:
    return {
        "meal_id": meal.id,
        "name": meal.name,
        "description": meal.description,
        "calories": meal.calories,
        "protein_g": meal.protein_g,
        "carbs_g": meal.carbs_g,
        "fats_g": meal.fats_g,
        "fiber_g": meal.fiber_g,
        "sugar_g": meal.sugar_g,
        "sodium_mg": meal.sodium_mg,
        "ingredients": meal.ingredients or [],
        "health_score": meal.health_score,
        "confidence": meal.confidence,
        "created_at": meal.created_at.isoformat() if meal.created_at else None,
    }


@router.post("/analyze", status_code=201)
def analyze_meal(payload: MealAnalysisRequest, user: models.User = Depends(get_current_user),
                 db: Session = Depends(get_db_write)):
    """Analyze a meal photo and log it; uses one AI request.

    Raises:
        QuotaExceededError: If the daily AI limit is reached (429).
    """
    result = nutrition_service.analyze_meal(
        db, user, payload.image_base64, payload.language, payload.update_text, payload.meal_date,
    )
    return {
        "success": True,
        "message": "Meal analyzed successfully",
        "data": {
            "meal": meal_to_dict(result["meal"]),
            "analysis": result["analysis"],
            "source": result["source"],
            "remaining_requests": result["remaining_requests"],
        },
    }


@router.get("/meals")
def list_meals(day: Optional[date] = Query(None, alias="date"), user: models.User = Depends(get_current_user),
               db: Session = Depends(get_db_write)):
    meals = nutrition_service.get_user_meals(db, user.id, day)
    return {"success": True, "data": [meal_to_dict(m) for m in meals]}


@router.get("/stats/{day}")
def daily_stats(day: date, user: models.User = Depends(get_current_user), db: Session = Depends(get_db_write)):
    stats = nutrition_service.get_daily_stats(db, user.id, day)
    stats["meals"] = [meal_to_dict(m) for m in stats["meals"]]
    return {"success": True, "data": stats}
