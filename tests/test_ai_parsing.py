"""Tests for turning model output into complete meal-plan records."""
import json

import pytest

from core.exceptions import AIResponseFormatError
from services.ai_parsing import (
    coerce_number,
    extract_json,
    fallback_meal_plan,
    fallback_replacement_meal,
    generate_meal_timings,
    normalize_meal,
    validate_and_structure_ai_response,
)


def test_missing_calories_defaults_to_400_without_raising():
    response = {"weekly_plan": [{"day": "Monday", "meals": [{"name": "Oatmeal", "meal_timing": "BREAKFAST"}]}]}
    plan = validate_and_structure_ai_response(response)
    meal = plan["weekly_plan"][0]["meals"][0]
    assert meal["calories"] == 400
    assert meal["protein_g"] == 20
    assert meal["carbs_g"] == 40
    assert meal["fats_g"] == 15
    assert meal["dietary_category"] == "BALANCED"
    assert meal["ingredients"] == []


def test_zero_from_model_is_kept():
    meal = normalize_meal({"name": "Water", "calories": 0, "sugar_g": 0}, 0)
    assert meal["calories"] == 0
    assert meal["sugar_g"] == 0


def test_default_name_uses_position_in_day():
    plan = validate_and_structure_ai_response({"weekly_plan": [{"meals": [{"name": "A"}, {}]}]})
    day = plan["weekly_plan"][0]
    assert day["day"] == "Day 1"
    assert day["meals"][1]["name"] == "Meal 2"


def test_missing_weekly_plan_raises():
    with pytest.raises(AIResponseFormatError):
        validate_and_structure_ai_response({"days": []})


def test_day_without_meals_list_raises():
    with pytest.raises(AIResponseFormatError):
        validate_and_structure_ai_response({"weekly_plan": [{"day": "Monday", "meals": "none"}]})


def test_accepts_json_text_and_keeps_extra_keys():
    text = json.dumps({"weekly_plan": [{"day": "Monday", "meals": []}], "meal_prep_tips": ["Batch cook"]})
    plan = validate_and_structure_ai_response(text)
    assert plan["meal_prep_tips"] == ["Batch cook"]
    assert plan["weekly_plan"][0]["day_index"] == 0


def test_extract_json_prefers_fenced_block():
    text = 'Sure! {"ignored": true}\n```json\n{"weekly_plan": []}\n```\nEnjoy.'
    assert extract_json(text) == {"weekly_plan": []}


def test_extract_json_rejects_prose():
    with pytest.raises(AIResponseFormatError):
        extract_json("I cannot help with that.")
    with pytest.raises(AIResponseFormatError):
        extract_json("")


def test_coerce_number():
    assert coerce_number("450", 0) == 450.0
    assert coerce_number(" 12.5 ", 0) == 12.5
    assert coerce_number("lots", 7) == 7
    assert coerce_number(True, 3) == 3
    assert coerce_number(None, None) is None


def test_string_ingredients_are_expanded():
    meal = normalize_meal({"name": "Toast", "ingredients": ["bread", {"name": "butter", "unit": "tbsp"}, 5]}, 0)
    assert meal["ingredients"] == [
        {"name": "bread", "quantity": 1, "unit": "piece", "category": "Other"},
        {"name": "butter", "quantity": 1, "unit": "tbsp", "category": "Other"},
    ]


def test_meal_timings_put_snacks_after_main_meals():
    assert generate_meal_timings(3, 2) == ["BREAKFAST", "LUNCH", "DINNER", "MORNING_SNACK", "AFTERNOON_SNACK"]
    assert generate_meal_timings(2, 0) == ["BREAKFAST", "LUNCH"]


def test_fallback_plan_has_seven_days_of_main_meals():
    plan = fallback_meal_plan(5)
    assert len(plan["weekly_plan"]) == 7
    for day in plan["weekly_plan"]:
        # canned plan has only breakfast, lunch and dinner
        assert [m["meal_timing"] for m in day["meals"]] == ["BREAKFAST", "LUNCH", "DINNER"]
        assert all(m["name"].endswith(f" - {day['day']}") for m in day["meals"])


def test_fallback_replacement_keeps_macros_of_current_meal():
    meal = fallback_replacement_meal({"name": "Chili", "meal_timing": "DINNER", "calories": 650, "protein_g": 40})
    assert meal["name"] == "Alternative Chili"
    assert meal["meal_timing"] == "DINNER"
    assert meal["calories"] == 650
    assert meal["protein_g"] == 40
    assert meal["carbs_g"] == 35
    assert meal["replacement_reason"]


def test_coerce_number_rejects_non_finite_values():
    assert coerce_number("Infinity", 400) == 400
    assert coerce_number("nan", 5) == 5
    assert coerce_number("1e999", 10) == 10
    assert coerce_number(float("-inf"), 0) == 0
    assert coerce_number(-3, 20, minimum=0) == 20
    assert coerce_number(0, 20, minimum=0) == 0


def test_out_of_range_meal_values_take_defaults():
    meal = normalize_meal({
        "name": "Odd",
        "calories": "nan",
        "protein_g": "-inf",
        "carbs_g": -40,
        "prep_time_minutes": -5,
        "portion_multiplier": -2,
        "ingredients": [{"name": "rice", "quantity": -100, "unit": "g"}],
    }, 0)
    assert meal["calories"] == 400
    assert meal["protein_g"] == 20
    assert meal["carbs_g"] == 40
    assert meal["prep_time_minutes"] == 30
    assert meal["portion_multiplier"] == 1.0
    assert meal["ingredients"][0]["quantity"] == 1


def test_zero_portion_multiplier_takes_default():
    assert normalize_meal({"name": "Tea", "portion_multiplier": 0}, 0)["portion_multiplier"] == 1.0
    assert normalize_meal({"name": "Tea", "portion_multiplier": "0.5"}, 0)["portion_multiplier"] == 0.5
