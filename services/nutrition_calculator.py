"""Nutrition goal calculation from questionnaire answers.

BMR (Mifflin-St Jeor), TDEE from the questionnaire's activity level and
a calorie/macro split driven by the main goal and dietary style.
"""

from typing import Dict, Iterable, Optional
from core.logger import get_logger

logger = get_logger("services.nutrition_calculator")

ACTIVITY_MULTIPLIERS = {
    'NONE': 1.2,
    'LIGHT': 1.375,
    'MODERATE': 1.55,
    'HIGH': 1.725,
}

# Training volume on top of daily activity
SPORT_BONUS = {
    'NONE': 0.0,
    'ONCE_A_WEEK': 0.025,
    'TWO_TO_THREE': 0.05,
    'FOUR_TO_FIVE': 0.1,
    'MORE_THAN_FIVE': 0.15,
}


class NutritionCalculator:
    """Class-based nutrition calculator used across the app."""

    def calculate_bmi(self, height_cm: float, weight_kg: float) -> float:
        """Calculate BMI from height in cm and weight in kg."""
        h_m = height_cm / 100.0
        if h_m <= 0:
            return 0.0
        return weight_kg / (h_m * h_m)

    def calculate_bmr(self, age: int, height_cm: float, weight_kg: float, gender: Optional[str]) -> float:
        """Calculate BMR using Mifflin-St Jeor; unknown gender uses the midpoint."""
        base = 10 * weight_kg + 6.25 * height_cm - 5 * age
        g = (gender or '').lower()
        if g in ('male', 'm'):
            return base + 5
        if g in ('female', 'f'):
            return base - 161
        return base - 78

    def calculate_tdee(self, bmr: float, activity_level: Optional[str], sport_frequency: Optional[str] = None) -> float:
        """Estimate TDEE from BMR, activity level and sport frequency."""
        multiplier = ACTIVITY_MULTIPLIERS.get((activity_level or '').upper(), 1.55)
        multiplier += SPORT_BONUS.get((sport_frequency or '').upper(), 0.0)
        val = bmr * multiplier
        logger.debug("TDEE calculated: %s", val)
        return val

    def calculate_target_calories(self, tdee: float, main_goal: Optional[str]) -> float:
        """Derive a daily calorie target from TDEE based on the main goal."""
        goal = (main_goal or '').upper()
        if goal == 'WEIGHT_LOSS':
            val = max(1200, tdee - 500)
        elif goal in ('WEIGHT_GAIN', 'SPORTS_PERFORMANCE'):
            val = tdee + 300
        else:
            val = tdee
        logger.debug("Target calories for goal %s: %s", goal, val)
        return val

    def calculate_macros(self, target_calories: float, dietary_preferences: Iterable[str] = ()) -> Dict[str, float]:
        """Allocate macronutrient targets (grams) from a calorie target.

        Keto and high-protein styles shift the split; everything else gets
        30/40/30 protein/carbs/fat by energy.
        """
        prefs = {p.lower().replace('_', '-') for p in dietary_preferences or ()}
        if 'keto' in prefs or 'ketogenic' in prefs:
            ratios = {'protein': 0.3, 'carbs': 0.1, 'fat': 0.6}
        elif 'high-protein' in prefs:
            ratios = {'protein': 0.4, 'carbs': 0.3, 'fat': 0.3}
        elif 'low-carb' in prefs:
            ratios = {'protein': 0.35, 'carbs': 0.25, 'fat': 0.4}
        else:
            ratios = {'protein': 0.3, 'carbs': 0.4, 'fat': 0.3}
        protein_g = (target_calories * ratios['protein']) / 4
        carbs_g = (target_calories * ratios['carbs']) / 4
        fat_g = (target_calories * ratios['fat']) / 9
        macros = {'protein': round(protein_g), 'carbs': round(carbs_g), 'fat': round(fat_g)}
        logger.debug("Macros calculated: %s", macros)
        return macros

    def calculate_goals(self, age: int, height_cm: float, weight_kg: float, gender: Optional[str],
                        activity_level: Optional[str], sport_frequency: Optional[str],
                        main_goal: Optional[str], dietary_preferences: Iterable[str] = ()) -> Dict[str, float]:
        """Full pipeline from body data to daily calorie and macro goals."""
        bmr = self.calculate_bmr(age, height_cm, weight_kg, gender)
        tdee = self.calculate_tdee(bmr, activity_level, sport_frequency)
        calories = round(self.calculate_target_calories(tdee, main_goal))
        macros = self.calculate_macros(calories, dietary_preferences)
        return {'calories': calories, **macros}


# export singleton
nutrition_calculator = NutritionCalculator()
__all__ = ["NutritionCalculator", "nutrition_calculator"]
