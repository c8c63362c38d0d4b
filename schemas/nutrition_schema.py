"""Schemas for logging meals from photos."""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MealAnalysisRequest(BaseModel):
    """Base64 photo of a meal plus optional correction text."""

    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(..., min_length=1, description="JPEG image, base64 encoded, without data URL prefix")
    language: Literal["english", "hebrew"] = Field("english", examples=["english"], description="Language of names and descriptions")
    meal_date: Optional[date] = Field(None, alias="date", examples=["2024-06-02"], description="Day to log the meal on; defaults to today")
    update_text: Optional[str] = Field(None, examples=["It was a bigger portion"], description="User correction applied to the analysis")
