# Approximate price per 100 g (or 100 ml) of common ingredients.
INGREDIENT_PRICES = {
    # Proteins
    "chicken": 3.0, "beef": 5.0, "fish": 4.0, "salmon": 6.0, "eggs": 0.5,
    "tofu": 2.0, "turkey": 4.0, "pork": 3.5, "tuna": 3.0, "shrimp": 8.0,
    # Vegetables
    "tomato": 0.8, "onion": 0.5, "carrot": 0.6, "broccoli": 1.2, "spinach": 1.5,
    "avocado": 2.0, "sweet potato": 0.7, "potato": 0.4, "bell": 1.0, "pepper": 1.0,
    "cucumber": 0.7, "lettuce": 1.0, "garlic": 2.0, "mushroom": 1.5, "zucchini": 0.8,
    # Grains
    "rice": 0.3, "quinoa": 1.2, "pasta": 0.4, "bread": 0.8, "oats": 0.5,
    "flour": 0.2, "brown rice": 0.4,
    # Dairy
    "milk": 0.1, "yogurt": 0.8, "cheese": 2.5, "feta": 3.0, "butter": 1.5,
    "cream": 1.0, "greek yogurt": 1.2,
    # Fruits
    "apple": 0.6, "banana": 0.4, "orange": 0.7, "berries": 2.0, "lemon": 0.8, "lime": 0.9,
    # Nuts and seeds
    "almonds": 4.0, "walnuts": 5.0, "seeds": 3.0, "peanut butter": 2.0,
    # Oils and condiments
    "olive oil": 3.0, "oil": 2.0, "vinegar": 1.0, "salt": 0.1, "honey": 2.0, "soy sauce": 1.5,
    # Legumes
    "beans": 0.8, "lentils": 1.0, "chickpeas": 0.9,
}

DEFAULT_PRICE = 1.0

# Multiplier turning a quantity in the given unit into "100 g units".
UNIT_FACTORS = {
    "kg": 10.0,
    "g": 0.01,
    "lb": 4.54,
    "oz": 0.28,
    "l": 10.0,
    "ml": 0.01,
    "cup": 2.4,
    "tbsp": 0.15,
    "tsp": 0.05,
    "piece": 0.5,
    "pieces": 0.5,
    "item": 0.5,
    "items": 0.5,
}
