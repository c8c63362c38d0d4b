"""Schemas for weekly meal plans, replacements, shopping lists and preferences."""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class MealPlanCreateRequest(BaseModel):
    """Configuration for a new AI-generated weekly plan."""

    name: str = Field(..., min_length=1, examples=["My Weekly Plan"], description="Display name of the plan")
    meals_per_day: int = Field(3, ge=2, le=6, examples=[3], description="Main meals per day")
    snacks_per_day: int = Field(0, ge=0, le=3, examples=[1], description="Snacks per day")
    rotation_frequency_days: int = Field(7, ge=1, le=14, examples=[7], description="Days before meals repeat")
    include_leftovers: bool = Field(False, description="Allow planned leftovers")
    fixed_meal_times: bool = Field(False, description="Keep meals at fixed times")
    dietary_preferences: List[str] = Field(default_factory=list, examples=[["vegetarian"]])
    excluded_ingredients: List[str] = Field(default_factory=list, examples=[["peanuts"]])


class ReplacementPreferences(BaseModel):
    dietary_category: Optional[str] = Field(None, examples=["VEGETARIAN"])
    max_prep_time: Optional[int] = Field(None, ge=1, examples=[20], description="Minutes")


class ReplaceMealRequest(BaseModel):
    """Slot of the meal to swap for an AI-generated alternative."""

    day_of_week: int = Field(..., ge=0, le=6, examples=[1], description="0 = Sunday")
    meal_timing: str = Field(..., min_length=1, examples=["LUNCH"])
    meal_order: int = Field(1, ge=1, examples=[2], description="Position of the meal within its day")
    preferences: Optional[ReplacementPreferences] = None


class ShoppingListRequest(BaseModel):
    week_start_date: Optional[date] = Field(None, examples=["2024-06-02"], description="First day of the shopping week")


class MealPreferenceRequest(BaseModel):
    """Favorite, dislike or 1-5 rating of a meal template."""

    template_id: int = Field(..., examples=[12])
    preference_type: Literal["favorite", "dislike", "rating"] = Field(..., examples=["favorite"])
    rating: Optional[int] = Field(None, ge=1, le=5, examples=[4])
    notes: Optional[str] = Field(None, examples=["Kids loved it"])


class DuplicatePlanRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, examples=["Copy of My Weekly Plan"])
