"""Weekly meal plans: creation, reshaping, meal replacement and shopping lists.

A plan is stored as templates (what a meal is) and schedule rows (where a
template sits: day of week, meal timing, order within the day, portion
multiplier). `get_user_meal_plan` re-assembles the week for clients.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from core.exceptions import DatabaseError, NotFoundError
from core.logger import get_logger
from core.numbers import round_half_up
from core.repository import UserScopedRepository
from data.fallback_meals import WEEK_DAYS
from database import models
from database.models import utcnow
from services.openai_service import MealPlanGeneration, OpenAIService, openai_service
from services.shopping import build_shopping_items

logger = get_logger("services.meal_plans")

DEFAULT_GOALS = {"calories": 2000, "protein": 150, "carbs": 250, "fats": 67}
DEFAULT_BODY = {"age": 30, "weight_kg": 70, "height_cm": 170}
DEFAULT_KITCHEN_EQUIPMENT = ["oven", "stovetop", "microwave"]

# Chronological order used when listing a day
DAY_TIMELINE = ["BREAKFAST", "MORNING_SNACK", "LUNCH", "AFTERNOON_SNACK", "DINNER", "EVENING_SNACK"]
TIMING_ORDER = {t: i for i, t in enumerate(DAY_TIMELINE)}

TEMPLATE_FIELDS = (
    "name", "description", "meal_timing", "dietary_category", "prep_time_minutes",
    "difficulty_level", "calories", "protein_g", "carbs_g", "fats_g", "fiber_g",
    "sugar_g", "sodium_mg", "ingredients", "instructions", "allergens", "image_url",
)
WHOLE_NUMBER_NUTRIENTS = ("calories", "sodium_mg")
DECIMAL_NUTRIENTS = ("protein_g", "carbs_g", "fats_g", "fiber_g", "sugar_g")


@dataclass
class PersistenceReport:
    """What `store_ai_meal_templates_and_schedule` managed to write."""

    templates_created: int = 0
    schedules_created: int = 0
    failures: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures

    def as_dict(self) -> Dict[str, Any]:
        return {
            "templates_created": self.templates_created,
            "schedules_created": self.schedules_created,
            "complete": self.complete,
            "failures": self.failures,
        }


@dataclass
class MealPlanCreation:
    plan: models.UserMealPlan
    generation: MealPlanGeneration
    report: PersistenceReport


def get_cooking_time_from_meal_count(meals_per_day: int) -> str:
    if meals_per_day <= 2:
        return "minimal"
    if meals_per_day == 3:
        return "moderate"
    return "extensive"


def build_user_profile(config, questionnaire: Optional[models.UserQuestionnaire] = None,
                       goals: Optional[models.NutritionPlan] = None, user: Optional[models.User] = None,
                       favorite_meals: Optional[List[str]] = None,
                       disliked_meals: Optional[List[str]] = None) -> Dict[str, Any]:
    """Flatten plan config, questionnaire, goals and user into one prompt profile.

    Every missing source falls back to documented defaults, so a brand-new
    user with no questionnaire still gets 2000 kcal / 150 g protein /
    250 g carbs / 67 g fat targets.
    """
    q = questionnaire

    def pick(*values, default=None):
        for v in values:
            if v is not None:
                return v
        return default

    allergies = list(q.allergies or []) if q else []
    avoided = list(q.avoided_foods or []) if q else []
    return {
        "age": pick(user.age if user else None, q.age if q else None, default=DEFAULT_BODY["age"]),
        "weight_kg": pick(user.weight_kg if user else None, q.weight_kg if q else None, default=DEFAULT_BODY["weight_kg"]),
        "height_cm": pick(user.height_cm if user else None, q.height_cm if q else None, default=DEFAULT_BODY["height_cm"]),
        "target_calories_daily": pick(goals.goal_calories if goals else None, default=DEFAULT_GOALS["calories"]),
        "target_protein_daily": pick(goals.goal_protein_g if goals else None, default=DEFAULT_GOALS["protein"]),
        "target_carbs_daily": pick(goals.goal_carbs_g if goals else None, default=DEFAULT_GOALS["carbs"]),
        "target_fats_daily": pick(goals.goal_fats_g if goals else None, default=DEFAULT_GOALS["fats"]),
        "meals_per_day": config.meals_per_day,
        "snacks_per_day": config.snacks_per_day,
        "rotation_frequency_days": config.rotation_frequency_days,
        "include_leftovers": config.include_leftovers,
        "fixed_meal_times": config.fixed_meal_times,
        "dietary_preferences": list(config.dietary_preferences) + (list(q.dietary_preferences or []) if q else []),
        "excluded_ingredients": list(config.excluded_ingredients) + avoided,
        "allergies": allergies,
        "physical_activity_level": pick(q.physical_activity_level if q else None, default="MODERATE"),
        "sport_frequency": pick(q.sport_frequency if q else None, default="TWO_TO_THREE"),
        "main_goal": pick(q.main_goal if q else None, default="GENERAL_HEALTH"),
        "meal_texture_preference": pick(q.meal_texture_preference if q else None, default="VARIED"),
        "cooking_skill_level": "intermediate",
        "available_cooking_time": get_cooking_time_from_meal_count(config.meals_per_day),
        "kitchen_equipment": list(DEFAULT_KITCHEN_EQUIPMENT),
        "favorite_meals": favorite_meals or [],
        "disliked_meals": disliked_meals or [],
    }


def template_from_meal(meal: Dict[str, Any]) -> models.MealTemplate:
    return models.MealTemplate(**{k: meal.get(k) for k in TEMPLATE_FIELDS})


def template_to_dict(template: models.MealTemplate) -> Dict[str, Any]:
    data = {k: getattr(template, k) for k in TEMPLATE_FIELDS}
    data["template_id"] = template.id
    return data


def scale_meal(template: models.MealTemplate, multiplier: float) -> Dict[str, Any]:
    """Template as a dict with nutrients scaled by the slot's portion multiplier.

    Calories and sodium are whole numbers, other nutrients keep one decimal.
    """
    data = template_to_dict(template)
    m = multiplier if multiplier is not None else 1.0
    for key in WHOLE_NUMBER_NUTRIENTS:
        data[key] = round_half_up(data[key] * m if data[key] is not None else None, 0)
    for key in DECIMAL_NUTRIENTS:
        data[key] = round_half_up(data[key] * m if data[key] is not None else None, 1)
    return data


def _sum_nutrients(meals) -> Dict[str, float]:
    totals = {k: 0 for k in WHOLE_NUMBER_NUTRIENTS + DECIMAL_NUTRIENTS}
    for meal in meals:
        for key in totals:
            totals[key] += meal.get(key) or 0
    return totals


class MealPlanService:
    """Meal plan operations; `ai` is the model gateway (fake-able in tests)."""

    def __init__(self, ai: Optional[OpenAIService] = None):
        self.ai = ai or openai_service

    # -- helpers -----------------------------------------------------------

    def _owned_plan(self, db: Session, user_id: int, plan_id: int) -> models.UserMealPlan:
        plan = UserScopedRepository(models.UserMealPlan, db).get_owned(plan_id, user_id)
        if plan is None:
            raise NotFoundError("Meal plan", plan_id, message="Meal plan not found")
        return plan

    def _latest_questionnaire(self, db: Session, user_id: int) -> Optional[models.UserQuestionnaire]:
        return UserScopedRepository(models.UserQuestionnaire, db).latest_for_user(
            user_id, models.UserQuestionnaire.date_completed)

    def _latest_goals(self, db: Session, user_id: int) -> Optional[models.NutritionPlan]:
        return UserScopedRepository(models.NutritionPlan, db).latest_for_user(
            user_id, models.NutritionPlan.created_at)

    def _preference_names(self, db: Session, user_id: int, limit: int = 10) -> Tuple[List[str], List[str]]:
        rows = (
            db.query(models.UserMealPreference)
            .options(joinedload(models.UserMealPreference.template))
            .filter(models.UserMealPreference.user_id == user_id)
            .order_by(models.UserMealPreference.updated_at.desc())
            .all()
        )
        liked, disliked = [], []
        for row in rows:
            name = row.template.name if row.template else None
            if not name:
                continue
            if row.preference_type == "favorite" or (row.preference_type == "rating" and (row.rating or 0) >= 4):
                liked.append(name)
            elif row.preference_type == "dislike" or (row.preference_type == "rating" and (row.rating or 5) <= 2):
                disliked.append(name)
        return liked[:limit], disliked[:limit]

    # -- creation ----------------------------------------------------------

    def create_user_meal_plan(self, db: Session, user_id: int, config) -> MealPlanCreation:
        """Generate a weekly plan with the model and store it as the active plan.

        Other active plans of the user are deactivated in the same
        transaction. Model failures never surface here; they are reported
        through `generation.source`.

        Raises:
            NotFoundError: If the user does not exist.
            DatabaseError: If the plan could not be stored.
        """
        user = db.get(models.User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        questionnaire = self._latest_questionnaire(db, user_id)
        goals = self._latest_goals(db, user_id)
        liked, disliked = self._preference_names(db, user_id)
        profile = build_user_profile(config, questionnaire, goals, user, liked, disliked)

        logger.info("Generating meal plan '%s' for user %s", config.name, user_id)
        generation = self.ai.generate_meal_plan(profile)

        try:
            db.query(models.UserMealPlan).filter(
                models.UserMealPlan.user_id == user_id,
                models.UserMealPlan.is_active.is_(True),
            ).update({models.UserMealPlan.is_active: False}, synchronize_session=False)

            plan = models.UserMealPlan(
                user_id=user_id,
                name=config.name,
                plan_type="WEEKLY",
                meals_per_day=config.meals_per_day,
                snacks_per_day=config.snacks_per_day,
                rotation_frequency_days=config.rotation_frequency_days,
                include_leftovers=config.include_leftovers,
                fixed_meal_times=config.fixed_meal_times,
                target_calories_daily=profile["target_calories_daily"],
                target_protein_daily=profile["target_protein_daily"],
                target_carbs_daily=profile["target_carbs_daily"],
                target_fats_daily=profile["target_fats_daily"],
                dietary_preferences=list(config.dietary_preferences),
                excluded_ingredients=list(config.excluded_ingredients),
                is_active=True,
                start_date=utcnow(),
            )
            db.add(plan)
            db.flush()
            report = self.store_ai_meal_templates_and_schedule(db, plan.id, generation.plan)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Storing meal plan for user %s failed", user_id)
            raise DatabaseError("Failed to create meal plan", operation="create")

        db.refresh(plan)
        logger.info(
            "Meal plan %s created for user %s (source=%s, %s meals scheduled)",
            plan.id, user_id, generation.source, report.schedules_created,
        )
        return MealPlanCreation(plan=plan, generation=generation, report=report)

    def store_ai_meal_templates_and_schedule(self, db: Session, plan_id: int,
                                             plan: Dict[str, Any]) -> PersistenceReport:
        """Insert one template per distinct (name, timing) and a schedule row per meal.

        Each insert runs in its own SAVEPOINT: a meal that fails is rolled
        back on its own, logged and listed in the report while the rest of
        the week is stored. The caller owns the surrounding transaction.
        """
        report = PersistenceReport()
        template_ids: Dict[Tuple[str, str], int] = {}
        failed_keys = set()

        for day_index, day in enumerate(plan["weekly_plan"]):
            for meal_index, meal in enumerate(day["meals"]):
                key = (meal.get("name"), meal.get("meal_timing"))
                if key in failed_keys:
                    report.failures.append({"day_of_week": day_index, "meal_order": meal_index + 1,
                                            "name": key[0], "reason": "template not created"})
                    continue

                if key not in template_ids:
                    try:
                        with db.begin_nested():
                            template = template_from_meal(meal)
                            db.add(template)
                            db.flush()
                        template_ids[key] = template.id
                        report.templates_created += 1
                    except SQLAlchemyError as exc:
                        logger.error("Could not create template for meal %r: %s", key[0], exc)
                        failed_keys.add(key)
                        report.failures.append({"day_of_week": day_index, "meal_order": meal_index + 1,
                                                "name": key[0], "reason": "template not created"})
                        continue

                try:
                    with db.begin_nested():
                        db.add(models.MealPlanSchedule(
                            plan_id=plan_id,
                            template_id=template_ids[key],
                            day_of_week=day_index,
                            meal_timing=meal["meal_timing"],
                            meal_order=meal_index + 1,
                            portion_multiplier=meal.get("portion_multiplier", 1.0),
                            is_optional=bool(meal.get("is_optional")),
                        ))
                        db.flush()
                    report.schedules_created += 1
                except SQLAlchemyError as exc:
                    logger.error("Could not schedule meal %r on day %s: %s", key[0], day_index, exc)
                    report.failures.append({"day_of_week": day_index, "meal_order": meal_index + 1,
                                            "name": key[0], "reason": "schedule not created"})

        if report.failures:
            logger.error("Meal plan %s stored with %s failed meals", plan_id, len(report.failures))
        return report

    # -- reads -------------------------------------------------------------

    def get_active_meal_plan(self, db: Session, user_id: int) -> Optional[models.UserMealPlan]:
        return (
            db.query(models.UserMealPlan)
            .filter(models.UserMealPlan.user_id == user_id, models.UserMealPlan.is_active.is_(True))
            .order_by(models.UserMealPlan.created_at.desc(), models.UserMealPlan.id.desc())
            .first()
        )

    def get_user_meal_plan(self, db: Session, user_id: int, plan_id: Optional[int] = None) -> Dict[str, Any]:
        """The plan's week grouped by day name, then by meal timing.

        All seven days are always present, even with no meals scheduled.

        Raises:
            NotFoundError: "No active meal plan found" without `plan_id`,
                "Meal plan not found" for an unknown or foreign `plan_id`.
        """
        if plan_id is None:
            plan = self.get_active_meal_plan(db, user_id)
            if plan is None:
                raise NotFoundError("Meal plan", message="No active meal plan found")
        else:
            plan = self._owned_plan(db, user_id, plan_id)

        schedules = (
            db.query(models.MealPlanSchedule)
            .options(joinedload(models.MealPlanSchedule.template))
            .filter(models.MealPlanSchedule.plan_id == plan.id)
            .all()
        )
        schedules.sort(key=lambda s: (s.day_of_week, TIMING_ORDER.get(s.meal_timing, len(TIMING_ORDER)), s.meal_order))

        week: Dict[str, Dict[str, List[Dict[str, Any]]]] = {day: {} for day in WEEK_DAYS}
        for schedule in schedules:
            if not 0 <= schedule.day_of_week < len(WEEK_DAYS):
                continue
            meal = scale_meal(schedule.template, schedule.portion_multiplier)
            meal.update({
                "schedule_id": schedule.id,
                "day_of_week": schedule.day_of_week,
                "meal_timing": schedule.meal_timing,
                "meal_order": schedule.meal_order,
                "portion_multiplier": schedule.portion_multiplier,
                "is_optional": schedule.is_optional,
            })
            week[WEEK_DAYS[schedule.day_of_week]].setdefault(schedule.meal_timing, []).append(meal)

        return {
            "plan_id": plan.id,
            "name": plan.name,
            "is_active": plan.is_active,
            "start_date": plan.start_date.isoformat() if plan.start_date else None,
            "meals_per_day": plan.meals_per_day,
            "snacks_per_day": plan.snacks_per_day,
            "targets": {
                "calories": plan.target_calories_daily,
                "protein_g": plan.target_protein_daily,
                "carbs_g": plan.target_carbs_daily,
                "fats_g": plan.target_fats_daily,
            },
            "weekly_plan": week,
        }

    def get_meal_plan_nutrition_summary(self, db: Session, user_id: int, plan_id: int) -> Dict[str, Any]:
        """Per-day totals, weekly totals and daily averages of a plan."""
        week = self.get_user_meal_plan(db, user_id, plan_id)["weekly_plan"]
        breakdown = {}
        weekly = {k: 0 for k in WHOLE_NUMBER_NUTRIENTS + DECIMAL_NUTRIENTS}
        for day, timings in week.items():
            day_totals = _sum_nutrients(m for meals in timings.values() for m in meals)
            breakdown[day] = {k: round_half_up(v, 0 if k in WHOLE_NUMBER_NUTRIENTS else 1) for k, v in day_totals.items()}
            for key, value in day_totals.items():
                weekly[key] += value

        days = len(week)
        averages = {
            k: round_half_up(v / days, 0 if k in WHOLE_NUMBER_NUTRIENTS else 1) for k, v in weekly.items()
        }
        return {
            "daily_averages": averages,
            "weekly_totals": {k: round_half_up(v, 0 if k in WHOLE_NUMBER_NUTRIENTS else 1) for k, v in weekly.items()},
            "daily_breakdown": breakdown,
        }

    # -- mutations ---------------------------------------------------------

    def replace_meal_in_plan(self, db: Session, user_id: int, plan_id: int, day_of_week: int,
                             meal_timing: str, meal_order: int,
                             preferences: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Swap the meal in one slot for a newly generated one.

        The schedule row keeps its coordinates; only its `template_id` is
        repointed at a fresh template. The old template stays in place.

        Raises:
            NotFoundError: If the plan or the slot does not exist.
        """
        plan = self._owned_plan(db, user_id, plan_id)
        schedule = (
            db.query(models.MealPlanSchedule)
            .options(joinedload(models.MealPlanSchedule.template))
            .filter(
                models.MealPlanSchedule.plan_id == plan.id,
                models.MealPlanSchedule.day_of_week == day_of_week,
                models.MealPlanSchedule.meal_timing == meal_timing,
                models.MealPlanSchedule.meal_order == meal_order,
            )
            .first()
        )
        if schedule is None:
            raise NotFoundError("Meal", message="Meal not found in plan")

        preferences = preferences or {}
        questionnaire = self._latest_questionnaire(db, user_id)
        current = template_to_dict(schedule.template)
        request = {
            "current_meal": current,
            "user_preferences": {
                "dietary_preferences": plan.dietary_preferences or [],
                "excluded_ingredients": plan.excluded_ingredients or [],
                "allergies": (questionnaire.allergies or []) if questionnaire else [],
                "preferred_dietary_category": preferences.get("dietary_category"),
                "max_prep_time": preferences.get("max_prep_time"),
            },
            "nutrition_targets": {
                "target_calories": current["calories"],
                "target_protein": current["protein_g"],
            },
        }
        generation = self.ai.generate_replacement_meal(request)
        new_meal = dict(generation.meal)
        new_meal["meal_timing"] = schedule.meal_timing
        if not new_meal.get("dietary_category"):
            new_meal["dietary_category"] = current["dietary_category"] or "BALANCED"

        template = template_from_meal(new_meal)
        db.add(template)
        db.flush()
        schedule.template_id = template.id
        db.commit()
        db.refresh(schedule)
        logger.info("Replaced meal in plan %s at day %s %s #%s (source=%s)",
                    plan.id, day_of_week, meal_timing, meal_order, generation.source)

        meal = scale_meal(template, schedule.portion_multiplier)
        meal.update({
            "schedule_id": schedule.id,
            "day_of_week": schedule.day_of_week,
            "meal_order": schedule.meal_order,
            "portion_multiplier": schedule.portion_multiplier,
            "replacement_reason": new_meal.get("replacement_reason"),
        })
        return {"success": True, "new_meal": meal, "source": generation.source}

    def generate_shopping_list(self, db: Session, user_id: int, plan_id: int,
                               week_start_date: date) -> models.ShoppingList:
        """Aggregate every scheduled ingredient of the plan into a priced list.

        The plan is a single repeating week, so all of its schedule rows are
        included; `week_start_date` names and dates the list.
        """
        plan = self._owned_plan(db, user_id, plan_id)
        schedules = (
            db.query(models.MealPlanSchedule)
            .options(joinedload(models.MealPlanSchedule.template))
            .filter(models.MealPlanSchedule.plan_id == plan.id)
            .order_by(models.MealPlanSchedule.day_of_week, models.MealPlanSchedule.meal_order)
            .all()
        )
        grouped, total = build_shopping_items(
            (s.template.ingredients or [], s.portion_multiplier) for s in schedules
        )
        shopping_list = models.ShoppingList(
            user_id=user_id,
            plan_id=plan.id,
            name=f"Shopping List - Week of {week_start_date.isoformat()}",
            week_start_date=week_start_date,
            items_json=grouped,
            total_estimated_cost=total,
        )
        db.add(shopping_list)
        db.commit()
        db.refresh(shopping_list)
        logger.info("Shopping list %s created for plan %s (%.2f)", shopping_list.id, plan.id, total)
        return shopping_list

    def save_meal_preference(self, db: Session, user_id: int, template_id: int, preference_type: str,
                             rating: Optional[int] = None, notes: Optional[str] = None) -> models.UserMealPreference:
        """Insert or update the (user, template, preference_type) preference."""
        if db.get(models.MealTemplate, template_id) is None:
            raise NotFoundError("Meal template", template_id)

        pref = (
            db.query(models.UserMealPreference)
            .filter(
                models.UserMealPreference.user_id == user_id,
                models.UserMealPreference.template_id == template_id,
                models.UserMealPreference.preference_type == preference_type,
            )
            .first()
        )
        if pref is None:
            pref = models.UserMealPreference(
                user_id=user_id, template_id=template_id, preference_type=preference_type,
            )
            db.add(pref)
        pref.rating = rating
        pref.notes = notes
        pref.updated_at = utcnow()
        db.commit()
        db.refresh(pref)
        return pref

    def deactivate_meal_plan(self, db: Session, user_id: int, plan_id: int) -> models.UserMealPlan:
        plan = self._owned_plan(db, user_id, plan_id)
        plan.is_active = False
        db.commit()
        db.refresh(plan)
        return plan

    def duplicate_meal_plan(self, db: Session, user_id: int, plan_id: int,
                            new_name: Optional[str] = None) -> models.UserMealPlan:
        """Copy a plan and its schedule; the copy starts inactive and shares templates."""
        source = self._owned_plan(db, user_id, plan_id)
        copy = models.UserMealPlan(
            user_id=user_id,
            name=new_name or f"{source.name} (Copy)",
            plan_type=source.plan_type,
            meals_per_day=source.meals_per_day,
            snacks_per_day=source.snacks_per_day,
            rotation_frequency_days=source.rotation_frequency_days,
            include_leftovers=source.include_leftovers,
            fixed_meal_times=source.fixed_meal_times,
            target_calories_daily=source.target_calories_daily,
            target_protein_daily=source.target_protein_daily,
            target_carbs_daily=source.target_carbs_daily,
            target_fats_daily=source.target_fats_daily,
            dietary_preferences=list(source.dietary_preferences or []),
            excluded_ingredients=list(source.excluded_ingredients or []),
            is_active=False,
        )
        copy.schedules = [
            models.MealPlanSchedule(
                template_id=s.template_id,
                day_of_week=s.day_of_week,
                meal_timing=s.meal_timing,
                meal_order=s.meal_order,
                portion_multiplier=s.portion_multiplier,
                is_optional=s.is_optional,
            )
            for s in source.schedules
        ]
        db.add(copy)
        db.commit()
        db.refresh(copy)
        logger.info("Meal plan %s duplicated as %s", source.id, copy.id)
        return copy


meal_plan_service = MealPlanService()
__all__ = [
    "MealPlanService",
    "meal_plan_service",
    "PersistenceReport",
    "MealPlanCreation",
    "build_user_profile",
    "scale_meal",
]
