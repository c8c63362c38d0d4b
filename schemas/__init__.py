"""Pydantic schema package for request and response models."""

from .auth_schema import ProfileUpdateRequest, SignInRequest, SignUpRequest
from .meal_plan_schema import (
    DuplicatePlanRequest,
    MealPlanCreateRequest,
    MealPreferenceRequest,
    ReplaceMealRequest,
    ReplacementPreferences,
    ShoppingListRequest,
)
from .nutrition_schema import MealAnalysisRequest
from .questionnaire_schema import QuestionnaireRequest

__all__ = [
    "SignUpRequest",
    "SignInRequest",
    "ProfileUpdateRequest",
    "MealPlanCreateRequest",
    "ReplaceMealRequest",
    "ReplacementPreferences",
    "ShoppingListRequest",
    "MealPreferenceRequest",
    "DuplicatePlanRequest",
    "MealAnalysisRequest",
    "QuestionnaireRequest",
]
