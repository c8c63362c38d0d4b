"""Schemas for sign-up, sign-in and profile updates."""

from typing import Optional

from pydantic import BaseModel, Field


class SignUpRequest(BaseModel):
    """Request payload for creating an account."""

    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", examples=["jane@example.com"])
    name: str = Field(..., min_length=1, examples=["Jane Doe"], description="Display name")
    password: str = Field(..., min_length=6, examples=["s3cret!"], description="At least 6 characters")


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=3, examples=["jane@example.com"])
    password: str = Field(..., min_length=1, examples=["s3cret!"])


class ProfileUpdateRequest(BaseModel):
    """Profile fields to change; omitted fields are left as they are."""

    name: Optional[str] = Field(None, min_length=2, max_length=50, examples=["Jane Doe"])
    age: Optional[int] = Field(None, ge=1, le=120, examples=[32])
    weight_kg: Optional[float] = Field(None, gt=0, le=500, examples=[68.5])
    height_cm: Optional[float] = Field(None, gt=0, le=300, examples=[170])
