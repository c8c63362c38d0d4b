"""Schemas for the onboarding questionnaire."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class QuestionnaireRequest(BaseModel):
    """Onboarding answers used to derive daily nutrition goals."""

    age: int = Field(..., ge=13, le=120, examples=[30], description="Age in years")
    gender: Optional[str] = Field(None, examples=["female"], description="male/female; anything else uses a neutral BMR")
    weight_kg: float = Field(..., gt=20, le=400, examples=[68.0], description="Weight in kilograms")
    height_cm: float = Field(..., gt=80, le=260, examples=[165.0], description="Height in centimeters")
    target_weight_kg: Optional[float] = Field(None, gt=20, le=400, examples=[62.0])
    physical_activity_level: Literal["NONE", "LIGHT", "MODERATE", "HIGH"] = Field("MODERATE", examples=["LIGHT"])
    sport_frequency: Literal["NONE", "ONCE_A_WEEK", "TWO_TO_THREE", "FOUR_TO_FIVE", "MORE_THAN_FIVE"] = Field(
        "NONE", examples=["TWO_TO_THREE"]
    )
    main_goal: str = Field("GENERAL_HEALTH", examples=["WEIGHT_LOSS"],
                           description="WEIGHT_LOSS, WEIGHT_GAIN, WEIGHT_MAINTENANCE, SPORTS_PERFORMANCE, GENERAL_HEALTH")
    allergies: List[str] = Field(default_factory=list, examples=[["peanuts"]])
    dietary_preferences: List[str] = Field(default_factory=list, examples=[["high-protein"]])
    avoided_foods: List[str] = Field(default_factory=list, examples=[["mushrooms"]])
    meal_texture_preference: Optional[str] = Field(None, examples=["VARIED"])
