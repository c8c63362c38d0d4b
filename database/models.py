"""SQLAlchemy ORM models for the nutrition tracking service.

Users and their login sessions, the onboarding questionnaire and the
nutrition goals derived from it, logged meals, and the weekly meal-plan
tables (plan, templates, schedule, shopping lists, preferences). Models
stay behavior-free; business rules live in `services/`.

List-valued columns (ingredients, allergies, ...) use the JSON type.
Timestamps are naive UTC.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Current time as naive UTC, matching what SQLite hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Application user with subscription tier and AI quota counters."""

    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    age = Column(Integer, nullable=True)
    weight_kg = Column(Float, nullable=True)
    height_cm = Column(Float, nullable=True)
    subscription_type = Column(String, nullable=False, default="FREE")
    ai_requests_count = Column(Integer, nullable=False, default=0)
    ai_requests_reset_at = Column(DateTime, nullable=True, default=utcnow)
    is_questionnaire_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)


class Session(Base):
    """Server-side record of an issued token; a user may hold several."""

    __tablename__ = "sessions"
    id = Column(Integer, primary_key=True, index=True)
    token = Column(String, unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User")


class UserQuestionnaire(Base):
    """Onboarding answers; the latest row per user is authoritative."""

    __tablename__ = "user_questionnaires"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date_completed = Column(DateTime, default=utcnow)
    age = Column(Integer, nullable=True)
    gender = Column(String, nullable=True)
    weight_kg = Column(Float, nullable=True)
    height_cm = Column(Float, nullable=True)
    target_weight_kg = Column(Float, nullable=True)
    physical_activity_level = Column(String, nullable=True)
    sport_frequency = Column(String, nullable=True)
    main_goal = Column(String, nullable=True)
    allergies = Column(JSON, default=list)
    dietary_preferences = Column(JSON, default=list)
    avoided_foods = Column(JSON, default=list)
    meal_texture_preference = Column(String, nullable=True)


class NutritionPlan(Base):
    """Daily nutrition goals for a user (calories and macros in grams)."""

    __tablename__ = "nutrition_plans"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    goal_calories = Column(Float, nullable=True)
    goal_protein_g = Column(Float, nullable=True)
    goal_carbs_g = Column(Float, nullable=True)
    goal_fats_g = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Meal(Base):
    """A meal the user actually logged, usually from a photo analysis."""

    __tablename__ = "meals"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    calories = Column(Float, default=0)
    protein_g = Column(Float, default=0)
    carbs_g = Column(Float, default=0)
    fats_g = Column(Float, default=0)
    fiber_g = Column(Float, nullable=True)
    sugar_g = Column(Float, nullable=True)
    sodium_mg = Column(Float, nullable=True)
    ingredients = Column(JSON, default=list)
    health_score = Column(Float, nullable=True)
    confidence = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)


class UserMealPlan(Base):
    """A weekly meal plan owned by a user."""

    __tablename__ = "user_meal_plans"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    plan_type = Column(String, nullable=False, default="WEEKLY")
    meals_per_day = Column(Integer, nullable=False, default=3)
    snacks_per_day = Column(Integer, nullable=False, default=0)
    rotation_frequency_days = Column(Integer, nullable=False, default=7)
    include_leftovers = Column(Boolean, nullable=False, default=False)
    fixed_meal_times = Column(Boolean, nullable=False, default=False)
    target_calories_daily = Column(Float, nullable=True)
    target_protein_daily = Column(Float, nullable=True)
    target_carbs_daily = Column(Float, nullable=True)
    target_fats_daily = Column(Float, nullable=True)
    dietary_preferences = Column(JSON, default=list)
    excluded_ingredients = Column(JSON, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    schedules = relationship("MealPlanSchedule", back_populates="plan", cascade="all, delete-orphan")


class MealTemplate(Base):
    """Reusable meal definition referenced from plan schedules."""

    __tablename__ = "meal_templates"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    meal_timing = Column(String, nullable=False)
    dietary_category = Column(String, nullable=False, default="BALANCED")
    prep_time_minutes = Column(Integer, nullable=True)
    difficulty_level = Column(Integer, nullable=True)
    calories = Column(Float, nullable=False)
    protein_g = Column(Float, nullable=False)
    carbs_g = Column(Float, nullable=False)
    fats_g = Column(Float, nullable=False)
    fiber_g = Column(Float, nullable=True)
    sugar_g = Column(Float, nullable=True)
    sodium_mg = Column(Float, nullable=True)
    ingredients = Column(JSON, default=list)
    instructions = Column(JSON, default=list)
    allergens = Column(JSON, default=list)
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class MealPlanSchedule(Base):
    """Places a template at (day_of_week, meal_timing, meal_order) in a plan.

    day_of_week runs 0..6 with 0 meaning Sunday.
    """

    __tablename__ = "meal_plan_schedules"
    __table_args__ = (
        UniqueConstraint("plan_id", "day_of_week", "meal_timing", "meal_order", name="uq_schedule_slot"),
    )
    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("user_meal_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("meal_templates.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    meal_timing = Column(String, nullable=False)
    meal_order = Column(Integer, nullable=False, default=1)
    portion_multiplier = Column(Float, nullable=False, default=1.0)
    is_optional = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    plan = relationship("UserMealPlan", back_populates="schedules")
    template = relationship("MealTemplate")


class ShoppingList(Base):
    """Persisted shopping list; `items_json` holds items grouped by category."""

    __tablename__ = "shopping_lists"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("user_meal_plans.id", ondelete="SET NULL"), nullable=True)
    name = Column(String, nullable=False)
    week_start_date = Column(Date, nullable=True)
    items_json = Column(JSON, default=dict)
    total_estimated_cost = Column(Float, nullable=False, default=0.0)
    is_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)


class UserMealPreference(Base):
    """Favorite / dislike / rating of a meal template by a user."""

    __tablename__ = "user_meal_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "template_id", "preference_type", name="uq_user_template_preference"),
    )
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("meal_templates.id", ondelete="CASCADE"), nullable=False)
    preference_type = Column(String, nullable=False)
    rating = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    template = relationship("MealTemplate")
