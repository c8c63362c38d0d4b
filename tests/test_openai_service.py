"""Tests for the OpenAI boundary: every failure ends in an explicit fallback."""
import json
from types import SimpleNamespace

from conftest import FakeOpenAIClient, make_week
from services.openai_service import SOURCE_AI, SOURCE_FALLBACK, OpenAIService, calculate_nutrition_summary

PROFILE = {
    "meals_per_day": 3,
    "snacks_per_day": 0,
    "target_calories_daily": 2000,
    "target_protein_daily": 150,
}


def _service(*responses):
    return OpenAIService(client=FakeOpenAIClient(*responses))


def test_without_api_key_uses_fallback():
    service = OpenAIService(settings=SimpleNamespace(ai_enabled=False))
    generation = service.generate_meal_plan(dict(PROFILE))
    assert generation.source == SOURCE_FALLBACK
    assert generation.used_fallback
    assert "not configured" in generation.failure
    assert len(generation.plan["weekly_plan"]) == 7


def test_valid_model_plan_is_used():
    service = _service(make_week())
    generation = service.generate_meal_plan(dict(PROFILE))
    assert generation.source == SOURCE_AI
    assert generation.failure is None
    assert len(generation.plan["weekly_plan"]) == 7
    assert generation.plan["weekly_nutrition_summary"]["avg_daily_calories"] == 1200
    call = service.client.calls[0]
    assert call["max_tokens"] == 8000
    assert call["temperature"] == 0.3


def test_six_days_falls_back():
    generation = _service(make_week(days=6)).generate_meal_plan(dict(PROFILE))
    assert generation.source == SOURCE_FALLBACK
    assert "7 days" in generation.failure


def test_unparseable_and_failing_requests_fall_back():
    assert _service("not json at all").generate_meal_plan(dict(PROFILE)).used_fallback
    assert _service(RuntimeError("timeout")).generate_meal_plan(dict(PROFILE)).used_fallback
    assert _service("").generate_meal_plan(dict(PROFILE)).used_fallback


def test_fenced_response_is_accepted():
    text = "Here you go:\n```json\n" + json.dumps(make_week()) + "\n```"
    assert _service(text).generate_meal_plan(dict(PROFILE)).source == SOURCE_AI


def test_replacement_requires_name_and_timing():
    request = {"current_meal": {"name": "Chili", "meal_timing": "DINNER", "calories": 600}}
    generation = _service({"name": "Lentil Soup"}).generate_replacement_meal(request)
    assert generation.source == SOURCE_FALLBACK
    assert generation.meal["name"] == "Alternative Chili"

    generation = _service({"name": "Lentil Soup", "meal_timing": "DINNER", "calories": 520}).generate_replacement_meal(request)
    assert generation.source == SOURCE_AI
    assert generation.meal["calories"] == 520


def test_mock_analysis_applies_portion_hints():
    service = OpenAIService(settings=SimpleNamespace(ai_enabled=False))
    bigger = service.analyze_meal_image("aGVsbG8=", update_text="I had a bigger plate").result
    assert bigger["calories"] == 585
    assert bigger["name"].endswith("(Updated)")

    smaller = service.analyze_meal_image("aGVsbG8=", update_text="less rice").result
    assert smaller["calories"] == 315
    assert smaller["name"].endswith("(Smaller Portion)")


def test_model_analysis_is_clamped():
    service = _service({"name": "Pizza", "calories": -10, "protein": "12", "confidence": 180})
    analysis = service.analyze_meal_image("aGVsbG8=")
    assert analysis.source == SOURCE_AI
    assert analysis.result["calories"] == 0
    assert analysis.result["protein"] == 12.0
    assert analysis.result["confidence"] == 100.0


def test_insights_empty_when_unavailable_or_malformed():
    assert OpenAIService(settings=SimpleNamespace(ai_enabled=False)).generate_nutrition_insights({}) == []
    assert _service("no json").generate_nutrition_insights({"x": 1}) == []
    assert _service({"insights": ["Eat more fiber"]}).generate_nutrition_insights({"x": 1}) == ["Eat more fiber"]


def test_nutrition_summary_with_zero_targets():
    summary = calculate_nutrition_summary([], {"target_calories_daily": 0, "target_protein_daily": 0})
    assert summary["avg_daily_calories"] == 0
    assert summary["goal_adherence_percentage"] == 0


def test_non_finite_numbers_from_model_take_defaults():
    week = make_week()
    week["weekly_plan"][0]["meals"][0]["calories"] = "Infinity"
    week["weekly_plan"][0]["meals"][1]["protein_g"] = float("nan")
    generation = _service(week).generate_meal_plan(dict(PROFILE))
    assert generation.source == SOURCE_AI
    meals = generation.plan["weekly_plan"][0]["meals"]
    assert meals[0]["calories"] == 400
    assert meals[1]["protein_g"] == 20
    assert generation.plan["weekly_nutrition_summary"]["avg_daily_calories"] == 1200


def test_bare_nan_in_completion_text_is_tolerated():
    text = json.dumps(make_week()).replace('"calories": 400', '"calories": NaN', 1)
    generation = _service(text).generate_meal_plan(dict(PROFILE))
    assert generation.source == SOURCE_AI
    assert generation.plan["weekly_plan"][0]["meals"][0]["calories"] == 400


def test_non_finite_analysis_values_use_defaults():
    service = _service({"name": "Cake", "calories": "Infinity", "sugar": "nan", "confidence": "inf"})
    result = service.analyze_meal_image("aGVsbG8=").result
    assert result["calories"] == 0
    assert result["sugar"] is None
    assert result["confidence"] == 75
