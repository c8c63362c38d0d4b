"""Turning model output into complete meal-plan records.

The model is not trusted to return every field, so meals are coerced
field by field to complete records with documented defaults. Only a
response whose overall shape is wrong (no `weekly_plan` list, a day
without a `meals` list, text with no JSON in it) is rejected, via
`AIResponseFormatError`; `OpenAIService` turns that into a fallback.
"""

import copy
import json
import math
import re
from typing import Any, Dict, List, Optional, Union

from core.exceptions import AIResponseFormatError
from data.fallback_meals import FALLBACK_MEALS, MAIN_MEAL_TIMINGS, SNACK_TIMINGS, WEEK_DAYS

MEAL_DEFAULTS = {
    "description": None,
    "meal_timing": "BREAKFAST",
    "dietary_category": "BALANCED",
    "prep_time_minutes": 30,
    "difficulty_level": 2,
    "calories": 400,
    "protein_g": 20,
    "carbs_g": 40,
    "fats_g": 15,
    "fiber_g": 5,
    "sugar_g": 10,
    "sodium_mg": 500,
    "image_url": None,
    "portion_multiplier": 1.0,
    "is_optional": False,
}

NUMERIC_FIELDS = (
    "prep_time_minutes", "difficulty_level", "calories", "protein_g", "carbs_g",
    "fats_g", "fiber_g", "sugar_g", "sodium_mg", "portion_multiplier",
)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json(text: str) -> Dict[str, Any]:
    """Pull the JSON object out of a chat completion.

    Models often wrap the object in a markdown fence or add prose around it;
    the fenced block wins, otherwise the outermost `{...}` span is used.
    """
    if not text or not text.strip():
        raise AIResponseFormatError("Empty response from model")

    match = _FENCED_JSON.search(text)
    candidate = match.group(1) if match else text
    obj = _BARE_OBJECT.search(candidate)
    if not obj:
        raise AIResponseFormatError("No JSON object found in model response")
    try:
        parsed = json.loads(obj.group(0))
    except json.JSONDecodeError as exc:
        raise AIResponseFormatError(f"Malformed JSON in model response: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise AIResponseFormatError("Model response is not a JSON object")
    return parsed


def coerce_number(value: Any, default: Optional[float], minimum: Optional[float] = None) -> Optional[float]:
    """Return `value` as a finite number, or `default` if it is not one.

    Numeric strings such as "450" or "12.5" are accepted; booleans, NaN and
    infinities are not. Values below `minimum` also give `default`.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _normalize_ingredient(item: Any) -> Optional[Dict[str, Any]]:
    if isinstance(item, str):
        return {"name": item, "quantity": 1, "unit": "piece", "category": "Other"}
    if not isinstance(item, dict):
        return None
    return {
        "name": str(item.get("name") or "unknown"),
        "quantity": coerce_number(item.get("quantity"), 1, minimum=0),
        "unit": item.get("unit") or "piece",
        "category": item.get("category") or "Other",
    }


def normalize_meal(meal: Any, index: int) -> Dict[str, Any]:
    """Coerce one model-produced meal to a complete record.

    Args:
        meal: Whatever the model put in the `meals` array.
        index: Position of the meal within its day, used for the default name.
    """
    if not isinstance(meal, dict):
        meal = {}

    out: Dict[str, Any] = {"name": meal.get("name") or f"Meal {index + 1}"}
    for field, default in MEAL_DEFAULTS.items():
        value = meal.get(field)
        if field == "portion_multiplier":
            multiplier = coerce_number(value, default)
            out[field] = multiplier if multiplier > 0 else default
        elif field in NUMERIC_FIELDS:
            out[field] = coerce_number(value, default, minimum=0)
        elif field == "is_optional":
            out[field] = value if isinstance(value, bool) else default
        else:
            out[field] = value if value not in (None, "") else default

    ingredients = meal.get("ingredients")
    out["ingredients"] = (
        [i for i in (_normalize_ingredient(x) for x in ingredients) if i is not None]
        if isinstance(ingredients, list) else []
    )
    instructions = meal.get("instructions")
    out["instructions"] = instructions if isinstance(instructions, list) else []
    allergens = meal.get("allergens")
    out["allergens"] = allergens if isinstance(allergens, list) else []

    if meal.get("replacement_reason"):
        out["replacement_reason"] = meal["replacement_reason"]
    return out


def validate_and_structure_ai_response(response: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Validate the overall plan shape and complete every meal.

    Args:
        response: Raw completion text, a JSON string, or an already parsed dict.

    Returns:
        Dict with a `weekly_plan` list of `{day, day_index, meals}` and any
        extra top-level keys the model sent (tips, summary).

    Raises:
        AIResponseFormatError: When `weekly_plan` is missing or a day has no
            `meals` list. Individual meals are never rejected.
    """
    if isinstance(response, str):
        try:
            response = json.loads(response)
        except json.JSONDecodeError:
            response = extract_json(response)
    if not isinstance(response, dict):
        raise AIResponseFormatError("Model response is not a JSON object")

    weekly_plan = response.get("weekly_plan")
    if not isinstance(weekly_plan, list):
        raise AIResponseFormatError("Invalid meal plan structure: missing weekly_plan")

    days: List[Dict[str, Any]] = []
    for day_index, day in enumerate(weekly_plan):
        if not isinstance(day, dict) or not isinstance(day.get("meals"), list):
            raise AIResponseFormatError(f"Invalid day structure at position {day_index}")
        days.append({
            "day": day.get("day") or f"Day {day_index + 1}",
            "day_index": day_index,
            "meals": [normalize_meal(m, i) for i, m in enumerate(day["meals"])],
        })

    structured = {k: v for k, v in response.items() if k != "weekly_plan"}
    structured["weekly_plan"] = days
    return structured


def generate_meal_timings(meals_per_day: int, snacks_per_day: int) -> List[str]:
    """Meal timings for a day: main meals first, then snacks."""
    return MAIN_MEAL_TIMINGS[:max(0, meals_per_day)] + SNACK_TIMINGS[:max(0, snacks_per_day)]


def fallback_meal_plan(meals_per_day: int = 3) -> Dict[str, Any]:
    """Deterministic 7-day plan built from the canned breakfast/lunch/dinner meals."""
    timings = MAIN_MEAL_TIMINGS[:max(1, meals_per_day)]
    by_timing = {m["meal_timing"]: m for m in FALLBACK_MEALS}
    weekly_plan = []
    for day_index, day in enumerate(WEEK_DAYS):
        meals = []
        for timing in timings:
            base = copy.deepcopy(by_timing.get(timing, FALLBACK_MEALS[0]))
            base["name"] = f"{base['name']} - {day}"
            base["meal_timing"] = timing
            meals.append(base)
        weekly_plan.append({"day": day, "day_index": day_index, "meals": meals})
    return validate_and_structure_ai_response({"weekly_plan": weekly_plan})


def fallback_replacement_meal(current_meal: Dict[str, Any]) -> Dict[str, Any]:
    """Stand-in replacement that keeps the current meal's slot and macros."""
    name = current_meal.get("name") or "Meal"
    meal = {
        "name": f"Alternative {name}",
        "description": f"A replacement meal similar to {name}",
        "meal_timing": current_meal.get("meal_timing"),
        "dietary_category": current_meal.get("dietary_category"),
        "prep_time_minutes": 20,
        "difficulty_level": 2,
        "calories": current_meal.get("calories") or 400,
        "protein_g": current_meal.get("protein_g") or 25,
        "carbs_g": current_meal.get("carbs_g") or 35,
        "fats_g": current_meal.get("fats_g") or 15,
        "fiber_g": 8,
        "sugar_g": 5,
        "sodium_mg": 600,
        "ingredients": [
            {"name": "Alternative ingredients", "quantity": 100, "unit": "g", "category": "Mixed"},
        ],
        "instructions": [{"step": 1, "text": "Prepare according to your dietary preferences"}],
        "allergens": [],
        "replacement_reason": "Generated as a safe alternative when AI generation fails",
    }
    return normalize_meal(meal, 0)
