"""Tests for the onboarding questionnaire and derived goals."""
import pytest

from api.questionnaire import get_questionnaire, save_questionnaire
from core.exceptions import NotFoundError
from schemas import MealPlanCreateRequest, QuestionnaireRequest
from services.calendar import calendar_service
from services.meal_plans import meal_plan_service


def _payload(**overrides):
    data = dict(age=30, gender="male", weight_kg=80, height_cm=180, physical_activity_level="MODERATE",
                sport_frequency="NONE", main_goal="WEIGHT_LOSS", allergies=["peanuts"])
    data.update(overrides)
    return QuestionnaireRequest(**data)


def test_missing_questionnaire_is_404(db, user):
    with pytest.raises(NotFoundError):
        get_questionnaire(user=user, db=db)


def test_save_updates_user_and_goals(db, user):
    response = save_questionnaire(payload=_payload(), user=user, db=db)
    assert response["data"]["nutrition_goals"] == {"calories": 2259, "protein": 169, "carbs": 226, "fat": 75}

    db.refresh(user)
    assert user.is_questionnaire_completed is True
    assert user.weight_kg == 80
    assert calendar_service.get_goals(db, user.id)["calories"] == 2259

    latest = get_questionnaire(user=user, db=db)["data"]
    assert latest["allergies"] == ["peanuts"]
    assert latest["main_goal"] == "WEIGHT_LOSS"


def test_new_plan_targets_follow_questionnaire(db, user):
    save_questionnaire(payload=_payload(), user=user, db=db)
    plan = meal_plan_service.create_user_meal_plan(db, user.id, MealPlanCreateRequest(name="Cut")).plan
    assert plan.target_calories_daily == 2259
    assert plan.target_protein_daily == 169
