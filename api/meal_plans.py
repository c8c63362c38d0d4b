"""Meal plan API router.

Endpoints to generate a weekly plan with AI, read it back, swap single
meals, build a shopping list and record meal preferences. Static paths
(`/current`, `/preferences`) are declared before `/{plan_id}` routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.deps import get_current_user
from core.exceptions import ValidationError
from core.logger import get_logger
from database import models
from database.deps import get_db_write
from schemas import (
    DuplicatePlanRequest,
    MealPlanCreateRequest,
    MealPreferenceRequest,
    ReplaceMealRequest,
    ShoppingListRequest,
)
from services.meal_plans import meal_plan_service
from services.quota import ai_request_limiter

logger = get_logger("api.meal_plans")
router = APIRouter(prefix="/api/meal-plans", tags=["meal-plans"])


def shopping_list_to_dict(shopping_list: models.ShoppingList) -> dict:
    return {
        "shopping_list_id": shopping_list.id,
        "plan_id": shopping_list.plan_id,
        "name": shopping_list.name,
        "week_start_date": shopping_list.week_start_date.isoformat() if shopping_list.week_start_date else None,
        "items": shopping_list.items_json,
        "total_estimated_cost": shopping_list.total_estimated_cost,
        "is_completed": shopping_list.is_completed,
    }


def plan_summary(plan: models.UserMealPlan) -> dict:
    return {
        "plan_id": plan.id,
        "name": plan.name,
        "is_active": plan.is_active,
        "meals_per_day": plan.meals_per_day,
        "snacks_per_day": plan.snacks_per_day,
        "created_at": plan.created_at.isoformat() if plan.created_at else None,
    }


@router.post("/create", status_code=201)
def create_meal_plan(payload: MealPlanCreateRequest, user: models.User = Depends(get_current_user),
                     db: Session = Depends(get_db_write)):
    """Generate and store a new weekly plan; uses one AI request.

    The request is counted before the model is called and is not refunded
    when the fallback plan is used.

    Raises:
        QuotaExceededError: If the daily AI limit is reached (429).
        DatabaseError: If the plan could not be stored.
    """
    remaining = ai_request_limiter.consume(db, user)
    creation = meal_plan_service.create_user_meal_plan(db, user.id, payload)
    data = meal_plan_service.get_user_meal_plan(db, user.id, creation.plan.id)
    data.update({
        "source": creation.generation.source,
        "persistence": creation.report.as_dict(),
        "remaining_requests": remaining,
    })
    return {"success": True, "message": "Meal plan created successfully", "data": data}


@router.get("/current")
def get_current_meal_plan(user: models.User = Depends(get_current_user), db: Session = Depends(get_db_write)):
    """Return the active plan.

    Raises:
        NotFoundError: If the user has no active plan.
    """
    return {"success": True, "data": meal_plan_service.get_user_meal_plan(db, user.id)}


@router.post("/preferences")
def save_meal_preference(payload: MealPreferenceRequest, user: models.User = Depends(get_current_user),
                         db: Session = Depends(get_db_write)):
    pref = meal_plan_service.save_meal_preference(
        db, user.id, payload.template_id, payload.preference_type, payload.rating, payload.notes,
    )
    return {
        "success": True,
        "message": "Meal preference saved",
        "data": {
            "preference_id": pref.id,
            "template_id": pref.template_id,
            "preference_type": pref.preference_type,
            "rating": pref.rating,
            "notes": pref.notes,
        },
    }


@router.get("/{plan_id}")
def get_meal_plan(plan_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_db_write)):
    return {"success": True, "data": meal_plan_service.get_user_meal_plan(db, user.id, plan_id)}


@router.put("/{plan_id}/replace")
def replace_meal(plan_id: int, payload: ReplaceMealRequest, user: models.User = Depends(get_current_user),
                 db: Session = Depends(get_db_write)):
    """Swap the meal at (day_of_week, meal_timing, meal_order) for a new one."""
    preferences = payload.preferences.model_dump() if payload.preferences else None
    result = meal_plan_service.replace_meal_in_plan(
        db, user.id, plan_id, payload.day_of_week, payload.meal_timing, payload.meal_order, preferences,
    )
    return {"success": True, "message": "Meal replaced successfully", "data": result}


@router.post("/{plan_id}/shopping-list", status_code=201)
def create_shopping_list(plan_id: int, payload: ShoppingListRequest, user: models.User = Depends(get_current_user),
                         db: Session = Depends(get_db_write)):
    """Build and store a priced shopping list for the plan.

    Raises:
        ValidationError: If `week_start_date` is missing (400).
    """
    if payload.week_start_date is None:
        raise ValidationError("Week start date is required", field="week_start_date")
    shopping_list = meal_plan_service.generate_shopping_list(db, user.id, plan_id, payload.week_start_date)
    return {"success": True, "message": "Shopping list generated", "data": shopping_list_to_dict(shopping_list)}


@router.get("/{plan_id}/nutrition-summary")
def nutrition_summary(plan_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_db_write)):
    return {"success": True, "data": meal_plan_service.get_meal_plan_nutrition_summary(db, user.id, plan_id)}


@router.post("/{plan_id}/deactivate")
def deactivate_meal_plan(plan_id: int, user: models.User = Depends(get_current_user),
                         db: Session = Depends(get_db_write)):
    plan = meal_plan_service.deactivate_meal_plan(db, user.id, plan_id)
    return {"success": True, "message": "Meal plan deactivated", "data": plan_summary(plan)}


@router.post("/{plan_id}/duplicate", status_code=201)
def duplicate_meal_plan(plan_id: int, payload: DuplicatePlanRequest, user: models.User = Depends(get_current_user),
                        db: Session = Depends(get_db_write)):
    copy = meal_plan_service.duplicate_meal_plan(db, user.id, plan_id, payload.name)
    return {"success": True, "message": "Meal plan duplicated", "data": plan_summary(copy)}
