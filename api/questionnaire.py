"""Questionnaire API router.

Saving a questionnaire also copies body data onto the user and derives a
new set of daily nutrition goals (a `NutritionPlan` row) from it.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.deps import get_current_user
from core.exceptions import DatabaseError, NotFoundError
from core.logger import get_logger
from core.repository import UserScopedRepository
from database import models
from database.deps import get_db_write
from schemas import QuestionnaireRequest
from services.nutrition_calculator import nutrition_calculator

logger = get_logger("api.questionnaire")
router = APIRouter(prefix="/api/questionnaire", tags=["questionnaire"])


def questionnaire_to_dict(q: models.UserQuestionnaire) -> dict:
    return {
        "questionnaire_id": q.id,
        "date_completed": q.date_completed.isoformat() if q.date_completed else None,
        "age": q.age,
        "gender": q.gender,
        "weight_kg": q.weight_kg,
        "height_cm": q.height_cm,
        "target_weight_kg": q.target_weight_kg,
        "physical_activity_level": q.physical_activity_level,
        "sport_frequency": q.sport_frequency,
        "main_goal": q.main_goal,
        "allergies": q.allergies or [],
        "dietary_preferences": q.dietary_preferences or [],
        "avoided_foods": q.avoided_foods or [],
        "meal_texture_preference": q.meal_texture_preference,
    }


@router.post("", status_code=201)
def save_questionnaire(payload: QuestionnaireRequest, user: models.User = Depends(get_current_user),
                       db: Session = Depends(get_db_write)):
    """Store the answers and recompute the user's daily goals.

    Args:
        payload: `QuestionnaireRequest` with body data, activity and goals.
        user: Authenticated caller.
        db: SQLAlchemy session (write) injected by dependency.

    Returns:
        The stored questionnaire and the derived calorie/macro goals.

    Raises:
        DatabaseError: If the questionnaire could not be stored.
    """
    goals = nutrition_calculator.calculate_goals(
        payload.age, payload.height_cm, payload.weight_kg, payload.gender,
        payload.physical_activity_level, payload.sport_frequency,
        payload.main_goal, payload.dietary_preferences,
    )
    questionnaire = models.UserQuestionnaire(user_id=user.id, **payload.model_dump())
    plan = models.NutritionPlan(
        user_id=user.id,
        goal_calories=goals["calories"],
        goal_protein_g=goals["protein"],
        goal_carbs_g=goals["carbs"],
        goal_fats_g=goals["fat"],
    )
    user.age = payload.age
    user.weight_kg = payload.weight_kg
    user.height_cm = payload.height_cm
    user.is_questionnaire_completed = True

    try:
        db.add_all([questionnaire, plan])
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Saving questionnaire for user %s failed", user.id)
        raise DatabaseError("Failed to save questionnaire", operation="create")
    db.refresh(questionnaire)
    logger.info("Questionnaire %s saved for user %s, goals %s", questionnaire.id, user.id, goals)

    return {
        "success": True,
        "message": "Questionnaire saved successfully",
        "data": {"questionnaire": questionnaire_to_dict(questionnaire), "nutrition_goals": goals},
    }


@router.get("")
def get_questionnaire(user: models.User = Depends(get_current_user), db: Session = Depends(get_db_write)):
    """Return the most recent questionnaire.

    Raises:
        NotFoundError: If the user has not filled one in yet.
    """
    questionnaire = UserScopedRepository(models.UserQuestionnaire, db).latest_for_user(
        user.id, models.UserQuestionnaire.date_completed)
    if questionnaire is None:
        raise NotFoundError("Questionnaire", message="Questionnaire not found")
    return {"success": True, "data": questionnaire_to_dict(questionnaire)}
