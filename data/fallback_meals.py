WEEK_DAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

MAIN_MEAL_TIMINGS = ["BREAKFAST", "LUNCH", "DINNER"]
SNACK_TIMINGS = ["MORNING_SNACK", "AFTERNOON_SNACK", "EVENING_SNACK"]

# Canned meals served when the model is unavailable or its output is unusable.
FALLBACK_MEALS = [
    {
        "name": "Scrambled Eggs with Toast",
        "description": "Classic breakfast with protein and carbs",
        "meal_timing": "BREAKFAST",
        "dietary_category": "BALANCED",
        "prep_time_minutes": 15,
        "difficulty_level": 1,
        "calories": 350, "protein_g": 18, "carbs_g": 25, "fats_g": 18,
        "fiber_g": 3, "sugar_g": 4, "sodium_mg": 450,
        "ingredients": [
            {"name": "eggs", "quantity": 2, "unit": "piece", "category": "Protein"},
            {"name": "bread", "quantity": 2, "unit": "slice", "category": "Grains"},
            {"name": "butter", "quantity": 1, "unit": "tbsp", "category": "Fats"},
        ],
        "instructions": ["Heat butter in pan", "Scramble eggs", "Toast bread", "Serve together"],
        "allergens": ["eggs", "gluten"],
    },
    {
        "name": "Grilled Chicken Salad",
        "description": "Healthy lunch with lean protein and vegetables",
        "meal_timing": "LUNCH",
        "dietary_category": "BALANCED",
        "prep_time_minutes": 25,
        "difficulty_level": 2,
        "calories": 400, "protein_g": 35, "carbs_g": 15, "fats_g": 20,
        "fiber_g": 8, "sugar_g": 8, "sodium_mg": 600,
        "ingredients": [
            {"name": "chicken breast", "quantity": 150, "unit": "g", "category": "Protein"},
            {"name": "mixed greens", "quantity": 100, "unit": "g", "category": "Vegetables"},
            {"name": "olive oil", "quantity": 2, "unit": "tbsp", "category": "Fats"},
        ],
        "instructions": ["Grill chicken breast", "Prepare salad", "Add dressing", "Combine and serve"],
        "allergens": [],
    },
    {
        "name": "Baked Salmon with Rice",
        "description": "Nutritious dinner with omega-3 rich fish",
        "meal_timing": "DINNER",
        "dietary_category": "BALANCED",
        "prep_time_minutes": 30,
        "difficulty_level": 2,
        "calories": 500, "protein_g": 35, "carbs_g": 45, "fats_g": 18,
        "fiber_g": 2, "sugar_g": 2, "sodium_mg": 400,
        "ingredients": [
            {"name": "salmon fillet", "quantity": 150, "unit": "g", "category": "Protein"},
            {"name": "brown rice", "quantity": 80, "unit": "g", "category": "Grains"},
            {"name": "broccoli", "quantity": 100, "unit": "g", "category": "Vegetables"},
        ],
        "instructions": [
            "Bake salmon at 400°F for 15 minutes",
            "Cook rice according to package",
            "Steam broccoli",
            "Serve together",
        ],
        "allergens": ["fish"],
    },
]

# Mock result for meal photo analysis when the vision model cannot be used.
FALLBACK_MEAL_ANALYSIS = {
    "name": "Mixed Meal",
    "description": "Nutritional values estimated without image analysis",
    "calories": 450,
    "protein": 25,
    "carbs": 45,
    "fat": 18,
    "fiber": 6,
    "sugar": 8,
    "sodium": 600,
    "confidence": 50,
    "ingredients": [],
    "serving_size": "1 plate",
    "cooking_method": "Mixed",
    "health_notes": "Estimated values, please review",
}
