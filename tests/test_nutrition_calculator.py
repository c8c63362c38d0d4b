"""Tests for goal calculation from questionnaire answers."""
import pytest

from services.nutrition_calculator import nutrition_calculator


def test_bmi():
    assert nutrition_calculator.calculate_bmi(180, 81) == pytest.approx(25.0)
    assert nutrition_calculator.calculate_bmi(0, 80) == 0.0


def test_bmr_by_gender():
    assert nutrition_calculator.calculate_bmr(30, 180, 80, "male") == 1780
    assert nutrition_calculator.calculate_bmr(30, 180, 80, "female") == 1614
    assert nutrition_calculator.calculate_bmr(30, 180, 80, None) == 1697


def test_tdee_adds_sport_bonus():
    assert nutrition_calculator.calculate_tdee(1000, "LIGHT") == pytest.approx(1375)
    assert nutrition_calculator.calculate_tdee(1000, "LIGHT", "FOUR_TO_FIVE") == pytest.approx(1475)
    assert nutrition_calculator.calculate_tdee(1000, None) == pytest.approx(1550)


def test_weight_loss_never_goes_below_1200():
    assert nutrition_calculator.calculate_target_calories(1500, "WEIGHT_LOSS") == 1200
    assert nutrition_calculator.calculate_target_calories(2500, "WEIGHT_LOSS") == 2000
    assert nutrition_calculator.calculate_target_calories(2500, "WEIGHT_GAIN") == 2800
    assert nutrition_calculator.calculate_target_calories(2500, "GENERAL_HEALTH") == 2500


def test_macro_splits():
    assert nutrition_calculator.calculate_macros(2000) == {"protein": 150, "carbs": 200, "fat": 67}
    assert nutrition_calculator.calculate_macros(2000, ["keto"]) == {"protein": 150, "carbs": 50, "fat": 133}
    assert nutrition_calculator.calculate_macros(2000, ["high_protein"]) == {"protein": 200, "carbs": 150, "fat": 67}


def test_full_goal_pipeline():
    goals = nutrition_calculator.calculate_goals(30, 180, 80, "male", "MODERATE", "NONE", "WEIGHT_LOSS")
    assert goals == {"calories": 2259, "protein": 169, "carbs": 226, "fat": 75}
