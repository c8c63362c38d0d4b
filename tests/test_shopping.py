"""Tests for shopping list aggregation and cost estimation."""
from services.shopping import aggregate_ingredients, build_shopping_items, estimate_ingredient_cost, lookup_price


def test_price_lookup():
    assert lookup_price("brown rice") == 0.4
    assert lookup_price("Chicken Breast") == 3.0
    assert lookup_price("dragon fruit") == 1.0
    assert lookup_price("") == 1.0


def test_cost_uses_unit_factor():
    assert estimate_ingredient_cost("chicken", 200, "g") == 6.0
    assert estimate_ingredient_cost("chicken", 1, "kg") == 30.0
    assert estimate_ingredient_cost("eggs", 2, "piece") == 0.5
    assert estimate_ingredient_cost("saffron", 3, "pinch") == 3.0


def test_same_name_in_different_units_stays_separate():
    entries = [
        ([{"name": "Milk", "quantity": 200, "unit": "ml", "category": "Dairy"}], 1.0),
        ([{"name": "milk", "quantity": 1, "unit": "cup", "category": "Dairy"}], 2.0),
        ([{"name": "milk", "quantity": 100, "unit": "ml"}], 1.5),
    ]
    lines = aggregate_ingredients(entries)
    assert list(lines) == [("milk", "ml"), ("milk", "cup")]
    assert lines[("milk", "ml")]["quantity"] == 350
    assert lines[("milk", "cup")]["quantity"] == 2


def test_missing_fields_get_defaults():
    lines = aggregate_ingredients([([{"name": "Basil"}], None)])
    assert lines[("basil", "piece")] == {"name": "basil", "unit": "piece", "category": "Other", "quantity": 1}


def test_total_is_sum_of_rounded_item_costs():
    entries = [([
        {"name": "mystery a", "quantity": 1.004, "unit": "bag", "category": "Other"},
        {"name": "mystery b", "quantity": 1.004, "unit": "bag", "category": "Other"},
    ], 1.0)]
    grouped, total = build_shopping_items(entries)
    assert [item["estimated_cost"] for item in grouped["Other"]] == [1.0, 1.0]
    assert grouped["Other"][0]["quantity"] == 1.01
    assert total == 2.00


def test_unit_case_and_spacing_do_not_split_lines():
    entries = [
        ([{"name": "Flour", "quantity": 200, "unit": "G", "category": "Pantry"}], 1.0),
        ([{"name": "flour", "quantity": 100, "unit": " g "}], 1.0),
    ]
    lines = aggregate_ingredients(entries)
    assert list(lines) == [("flour", "g")]
    assert lines[("flour", "g")]["quantity"] == 300
    assert lines[("flour", "g")]["unit"] == "g"
