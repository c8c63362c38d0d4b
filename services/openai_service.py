"""OpenAI access for meal plans, replacement meals and photo analysis.

None of the public methods raise. A missing API key, a transport error,
an empty completion or output that fails validation all take an explicit
fallback branch that is logged with its reason, and the result says
whether the content came from the model (`source == "ai"`) or from the
canned fallback (`source == "fallback"`).
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import OpenAI

from core.config import get_settings
from core.exceptions import AIResponseFormatError
from core.logger import get_logger
from core.numbers import round_half_up
from data.fallback_meals import FALLBACK_MEAL_ANALYSIS, WEEK_DAYS
from services.ai_parsing import (
    coerce_number,
    extract_json,
    fallback_meal_plan,
    fallback_replacement_meal,
    generate_meal_timings,
    normalize_meal,
    validate_and_structure_ai_response,
)

logger = get_logger("services.openai_service")

SOURCE_AI = "ai"
SOURCE_FALLBACK = "fallback"


@dataclass
class MealPlanGeneration:
    """Outcome of a weekly plan request."""

    plan: Dict[str, Any]
    source: str
    failure: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK


@dataclass
class MealGeneration:
    """Outcome of a single replacement meal request."""

    meal: Dict[str, Any]
    source: str
    failure: Optional[str] = None


@dataclass
class MealAnalysis:
    """Outcome of a meal photo analysis."""

    result: Dict[str, Any]
    source: str
    failure: Optional[str] = None


def _join(values) -> str:
    items = [v.get("name", "") if isinstance(v, dict) else str(v) for v in (values or [])]
    return ", ".join(i for i in items if i) or "none"


def build_meal_plan_prompt(profile: Dict[str, Any]) -> str:
    timings = generate_meal_timings(profile["meals_per_day"], profile["snacks_per_day"])
    return f"""You are a professional nutritionist and meal planning expert. Create a personalized 7-day meal plan based on the user's profile, preferences, and goals.

CRITICAL REQUIREMENTS:
1. Create exactly 7 days of meals ({WEEK_DAYS[0]} through {WEEK_DAYS[-1]})
2. Each day should have exactly {profile['meals_per_day']} meals and {profile['snacks_per_day']} snacks
3. Use these meal timings: {", ".join(timings)}
4. All meals must meet the user's dietary restrictions and preferences
5. Avoid all excluded ingredients and allergens: {_join(profile['excluded_ingredients'])}
6. Balance nutrition across the week to meet daily targets
7. Consider cooking skill level: {profile['cooking_skill_level']}
8. Available cooking time: {profile['available_cooking_time']}

USER PROFILE:
- Age: {profile['age']}
- Weight: {profile['weight_kg']}kg
- Height: {profile['height_cm']}cm
- Target daily calories: {profile['target_calories_daily']}
- Target daily protein: {profile['target_protein_daily']}g
- Target daily carbs: {profile['target_carbs_daily']}g
- Target daily fats: {profile['target_fats_daily']}g
- Dietary preferences: {_join(profile['dietary_preferences'])}
- Allergies: {_join(profile['allergies'])}
- Activity level: {profile['physical_activity_level']}
- Main goal: {profile['main_goal']}
- Favorite meals: {_join(profile.get('favorite_meals'))}
- Disliked meals (do not repeat): {_join(profile.get('disliked_meals'))}

Respond with a single valid JSON object in this exact format:
{{
  "weekly_plan": [
    {{
      "day": "{WEEK_DAYS[0]}",
      "day_index": 0,
      "meals": [
        {{
          "name": "Meal Name",
          "description": "Brief description",
          "meal_timing": "BREAKFAST",
          "dietary_category": "BALANCED",
          "prep_time_minutes": 15,
          "difficulty_level": 1,
          "calories": 400,
          "protein_g": 20,
          "carbs_g": 45,
          "fats_g": 15,
          "fiber_g": 8,
          "sugar_g": 10,
          "sodium_mg": 600,
          "ingredients": [{{"name": "Ingredient", "quantity": 50, "unit": "g", "category": "Grains"}}],
          "instructions": [{{"step": 1, "text": "Cooking instruction"}}],
          "allergens": [],
          "portion_multiplier": 1.0,
          "is_optional": false
        }}
      ]
    }}
  ],
  "shopping_tips": ["Tip 1"],
  "meal_prep_suggestions": ["Suggestion 1"]
}}"""


def build_replacement_prompt(request: Dict[str, Any]) -> str:
    prefs = request.get("user_preferences", {})
    targets = request.get("nutrition_targets", {})
    current = request["current_meal"]
    return f"""You are a professional nutritionist. Generate a replacement meal that is similar to the current meal but meets the user's specific preferences and requirements.

CURRENT MEAL TO REPLACE:
{json.dumps(current, indent=2, default=str)}

USER PREFERENCES:
- Dietary preferences: {_join(prefs.get('dietary_preferences'))}
- Excluded ingredients: {_join(prefs.get('excluded_ingredients'))}
- Allergies: {_join(prefs.get('allergies'))}
- Preferred dietary category: {prefs.get('preferred_dietary_category') or 'Any'}
- Max prep time: {prefs.get('max_prep_time') or 'No limit'} minutes

NUTRITION TARGETS:
- Target calories: {targets.get('target_calories')}
- Target protein: {targets.get('target_protein')}g

Respond with a single valid JSON object with the fields name, description,
meal_timing (use "{current.get('meal_timing')}"), dietary_category, prep_time_minutes,
difficulty_level, calories, protein_g, carbs_g, fats_g, fiber_g, sugar_g, sodium_mg,
ingredients [{{name, quantity, unit, category}}], instructions [{{step, text}}],
allergens and replacement_reason."""


ANALYSIS_PROMPT = """You are a professional nutritionist and food analyst. Analyze the food image and provide detailed nutritional information.

1. Analyze the food items visible in the image
2. Estimate portion sizes based on visual cues
3. If multiple items, sum up the total nutrition
4. Be conservative with estimates
5. Account for added oils, sauces, and seasonings visible
{context}
Respond with a JSON object containing:
{{"name": str, "description": str, "calories": number, "protein": number, "carbs": number,
"fat": number, "fiber": number, "sugar": number, "sodium": number, "confidence": number,
"ingredients": [str], "serving_size": str, "cooking_method": str, "health_notes": str}}

Language for response: {language}"""


def calculate_nutrition_summary(weekly_plan: List[Dict[str, Any]], profile: Dict[str, Any]) -> Dict[str, Any]:
    """Average daily macros of a generated plan and adherence to the targets."""
    totals = {"calories": 0.0, "protein_g": 0.0, "carbs_g": 0.0, "fats_g": 0.0}
    for day in weekly_plan:
        for meal in day["meals"]:
            for key in totals:
                totals[key] += meal.get(key) or 0
    days = len(weekly_plan) or 1
    avg = {k: v / days for k, v in totals.items()}
    calorie_adherence = min(100.0, avg["calories"] / (profile["target_calories_daily"] or 1) * 100)
    protein_adherence = min(100.0, avg["protein_g"] / (profile["target_protein_daily"] or 1) * 100)
    return {
        "avg_daily_calories": round_half_up(avg["calories"]),
        "avg_daily_protein": round_half_up(avg["protein_g"]),
        "avg_daily_carbs": round_half_up(avg["carbs_g"]),
        "avg_daily_fats": round_half_up(avg["fats_g"]),
        "goal_adherence_percentage": round_half_up((calorie_adherence + protein_adherence) / 2),
    }


def _adjust_for_update_text(analysis: Dict[str, Any], update_text: Optional[str]) -> Dict[str, Any]:
    if not update_text:
        return analysis
    lower = update_text.lower()
    if any(word in lower for word in ("more", "bigger", "extra", "additional")):
        factor, suffix = 1.3, " (Updated)"
    elif any(word in lower for word in ("less", "smaller")):
        factor, suffix = 0.7, " (Smaller Portion)"
    else:
        analysis["name"] += " (Updated)"
        analysis["description"] += f" - Additional info: {update_text}"
        return analysis
    for key in ("calories", "protein", "carbs", "fat"):
        analysis[key] = round_half_up(analysis[key] * factor)
    analysis["name"] += suffix
    return analysis


def _clamp_analysis(parsed: Dict[str, Any]) -> Dict[str, Any]:
    def non_negative(key, default=0.0):
        value = coerce_number(parsed.get(key), None)
        return max(0.0, value) if value is not None else default

    confidence = coerce_number(parsed.get("confidence"), None) or 75
    ingredients = parsed.get("ingredients")
    return {
        "name": parsed.get("name") or "Unknown Food",
        "description": parsed.get("description") or "",
        "calories": non_negative("calories"),
        "protein": non_negative("protein"),
        "carbs": non_negative("carbs"),
        "fat": non_negative("fat"),
        "fiber": non_negative("fiber", None),
        "sugar": non_negative("sugar", None),
        "sodium": non_negative("sodium", None),
        "confidence": min(100.0, max(0.0, confidence)),
        "ingredients": ingredients if isinstance(ingredients, list) else [],
        "serving_size": parsed.get("serving_size") or parsed.get("servingSize") or "1 serving",
        "cooking_method": parsed.get("cooking_method") or parsed.get("cookingMethod") or "Unknown",
        "health_notes": parsed.get("health_notes") or parsed.get("healthNotes") or "",
    }


class OpenAIService:
    """Thin wrapper around the chat completions API.

    Args:
        client: Pre-built client (tests pass a fake). When omitted a real
            `OpenAI` client is created on first use if an API key is set.
        settings: Settings override; defaults to `get_settings()`.
    """

    def __init__(self, client: Any = None, settings=None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self):
        if self._client is None and self.settings.ai_enabled:
            self._client = OpenAI(
                api_key=self.settings.OPENAI_API_KEY,
                timeout=self.settings.OPENAI_TIMEOUT_SECONDS,
            )
        return self._client

    @property
    def available(self) -> bool:
        return self.client is not None

    def _complete(self, messages: List[Dict[str, Any]], max_tokens: int, temperature: float) -> str:
        response = self.client.chat.completions.create(
            model=self.settings.OPENAI_MODEL,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AIResponseFormatError("No response from model")
        return content

    def generate_meal_plan(self, profile: Dict[str, Any]) -> MealPlanGeneration:
        """Ask the model for a 7-day plan; fall back to the canned plan on any failure."""
        if not self.available:
            return self._fallback_plan(profile, "OpenAI API key not configured")

        messages = [
            {"role": "system", "content": build_meal_plan_prompt(profile)},
            {"role": "user", "content": "Please create my personalized 7-day meal plan. Respond with complete, valid JSON."},
        ]
        try:
            content = self._complete(messages, max_tokens=8000, temperature=0.3)
            plan = validate_and_structure_ai_response(extract_json(content))
            if len(plan["weekly_plan"]) != 7:
                raise AIResponseFormatError(f"Expected 7 days, got {len(plan['weekly_plan'])}")
            plan.setdefault("weekly_nutrition_summary", calculate_nutrition_summary(plan["weekly_plan"], profile))
        except AIResponseFormatError as exc:
            return self._fallback_plan(profile, str(exc))
        except Exception as exc:
            logger.exception("Meal plan request to OpenAI failed")
            return self._fallback_plan(profile, f"OpenAI request failed: {exc}")

        logger.info("AI meal plan generated (%s meals)", sum(len(d["meals"]) for d in plan["weekly_plan"]))
        return MealPlanGeneration(plan=plan, source=SOURCE_AI)

    def _fallback_plan(self, profile: Dict[str, Any], reason: str) -> MealPlanGeneration:
        logger.warning("Using fallback meal plan: %s", reason)
        plan = fallback_meal_plan(profile["meals_per_day"])
        plan["weekly_nutrition_summary"] = calculate_nutrition_summary(plan["weekly_plan"], profile)
        return MealPlanGeneration(plan=plan, source=SOURCE_FALLBACK, failure=reason)

    def generate_replacement_meal(self, request: Dict[str, Any]) -> MealGeneration:
        """Ask for one meal to replace `request["current_meal"]`."""
        current = request["current_meal"]
        if not self.available:
            return self._fallback_meal(current, "OpenAI API key not configured")

        messages = [
            {"role": "system", "content": build_replacement_prompt(request)},
            {"role": "user", "content": "Please generate a suitable replacement meal based on my preferences and requirements."},
        ]
        try:
            content = self._complete(messages, max_tokens=1500, temperature=0.4)
            raw = extract_json(content)
            if not raw.get("name") or not raw.get("meal_timing"):
                raise AIResponseFormatError("Missing required fields in replacement meal")
            meal = normalize_meal(raw, 0)
        except AIResponseFormatError as exc:
            return self._fallback_meal(current, str(exc))
        except Exception as exc:
            logger.exception("Replacement meal request to OpenAI failed")
            return self._fallback_meal(current, f"OpenAI request failed: {exc}")

        return MealGeneration(meal=meal, source=SOURCE_AI)

    def _fallback_meal(self, current: Dict[str, Any], reason: str) -> MealGeneration:
        logger.warning("Using fallback replacement meal: %s", reason)
        return MealGeneration(meal=fallback_replacement_meal(current), source=SOURCE_FALLBACK, failure=reason)

    def analyze_meal_image(self, image_base64: str, language: str = "english",
                           update_text: Optional[str] = None) -> MealAnalysis:
        """Estimate nutrition for a meal photo."""
        if not self.available:
            return self._mock_analysis(update_text, "OpenAI API key not configured")

        context = ""
        if update_text:
            context = (
                f"\nADDITIONAL CONTEXT: The user provided this additional information: "
                f"\"{update_text}\". Adjust the nutritional values accordingly.\n"
            )
        user_text = (
            f"Please analyze this food image. Additional context: {update_text}"
            if update_text else
            "Please analyze this food image and provide detailed nutritional information."
        )
        messages = [
            {"role": "system", "content": ANALYSIS_PROMPT.format(context=context, language=language)},
            {"role": "user", "content": [
                {"type": "text", "text": user_text},
                {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image_base64}", "detail": "high"}},
            ]},
        ]
        try:
            content = self._complete(messages, max_tokens=1000, temperature=0.1)
            result = _clamp_analysis(extract_json(content))
        except AIResponseFormatError as exc:
            return self._mock_analysis(update_text, str(exc))
        except Exception as exc:
            logger.exception("Meal analysis request to OpenAI failed")
            return self._mock_analysis(update_text, f"OpenAI request failed: {exc}")
        return MealAnalysis(result=result, source=SOURCE_AI)

    def _mock_analysis(self, update_text: Optional[str], reason: str) -> MealAnalysis:
        logger.warning("Using mock meal analysis: %s", reason)
        result = _adjust_for_update_text(dict(FALLBACK_MEAL_ANALYSIS), update_text)
        return MealAnalysis(result=result, source=SOURCE_FALLBACK, failure=reason)

    def generate_nutrition_insights(self, stats: Dict[str, Any]) -> List[str]:
        """Three to five short insights about the user's stats; `[]` when unavailable."""
        if not self.available:
            return []
        prompt = (
            "You are a professional nutritionist. Provide 3-5 personalized insights "
            "about this nutrition data as a JSON object {\"insights\": [str]}:\n"
            + json.dumps(stats, default=str)
        )
        try:
            content = self._complete(
                [{"role": "system", "content": prompt},
                 {"role": "user", "content": "Please analyze my nutrition data and provide insights."}],
                max_tokens=500,
                temperature=0.3,
            )
            insights = extract_json(content).get("insights")
        except AIResponseFormatError as exc:
            logger.warning("Discarding AI insights: %s", exc)
            return []
        except Exception:
            logger.exception("Insights request to OpenAI failed")
            return []
        return [str(i) for i in insights] if isinstance(insights, list) else []


openai_service = OpenAIService()
__all__ = [
    "OpenAIService",
    "openai_service",
    "MealPlanGeneration",
    "MealGeneration",
    "MealAnalysis",
    "SOURCE_AI",
    "SOURCE_FALLBACK",
]
