"""Shopping list aggregation and ingredient cost estimation.

Pure functions; `MealPlanService.generate_shopping_list` feeds them the
plan's scheduled templates and persists the result.
"""

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Tuple

from core.logger import get_logger
from core.numbers import ceil_cents, round_cents, sum_cents
from data.ingredient_prices import DEFAULT_PRICE, INGREDIENT_PRICES, UNIT_FACTORS

logger = get_logger("services.shopping")


def lookup_price(name: str) -> float:
    """Price per 100 g for an ingredient name.

    Exact match first, then the first table entry that contains the name or
    is contained in it ("chicken breast" -> chicken). Unknown names get the
    default price.
    """
    normalized = (name or "").lower().strip()
    if not normalized:
        return DEFAULT_PRICE
    if normalized in INGREDIENT_PRICES:
        return INGREDIENT_PRICES[normalized]
    for key, price in INGREDIENT_PRICES.items():
        if key in normalized or normalized in key:
            return price
    return DEFAULT_PRICE


def estimate_ingredient_cost(name: str, quantity: float, unit: str) -> float:
    """Rough cost of `quantity` `unit` of an ingredient, rounded to cents."""
    factor = UNIT_FACTORS.get((unit or "").lower().strip(), 1.0)
    return float(round_cents(lookup_price(name) * quantity * factor))


def aggregate_ingredients(entries: Iterable[Tuple[List[Dict[str, Any]], float]]) -> "OrderedDict[Tuple[str, str], Dict[str, Any]]":
    """Sum ingredient quantities across scheduled meals.

    Args:
        entries: `(ingredients, portion_multiplier)` per scheduled meal.

    Returns:
        Ordered mapping of `(lower-cased name, lower-cased unit)` to
        `{name, unit, category, quantity}`. The same name in two different
        units stays two lines; no conversion between units is attempted.
    """
    totals: "OrderedDict[Tuple[str, str], Dict[str, Any]]" = OrderedDict()
    for ingredients, multiplier in entries:
        for ingredient in ingredients or []:
            if not isinstance(ingredient, dict):
                continue
            name = str(ingredient.get("name") or "unknown").lower().strip() or "unknown"
            unit = str(ingredient.get("unit") or "piece").lower().strip() or "piece"
            quantity = (ingredient.get("quantity") or 1) * (multiplier if multiplier is not None else 1.0)
            key = (name, unit)
            if key in totals:
                totals[key]["quantity"] += quantity
            else:
                totals[key] = {
                    "name": name,
                    "unit": unit,
                    "category": ingredient.get("category") or "Other",
                    "quantity": quantity,
                }
    return totals


def build_shopping_items(entries: Iterable[Tuple[List[Dict[str, Any]], float]]) -> Tuple[Dict[str, List[Dict[str, Any]]], float]:
    """Aggregate, price and group ingredients by category.

    Returns:
        `(items grouped by category, total cost)`. The total is the sum of
        the already-rounded item costs.
    """
    items = []
    for line in aggregate_ingredients(entries).values():
        items.append({
            "name": line["name"],
            "quantity": ceil_cents(line["quantity"]),
            "unit": line["unit"],
            "category": line["category"],
            "estimated_cost": estimate_ingredient_cost(line["name"], line["quantity"], line["unit"]),
            "is_purchased": False,
        })

    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for item in items:
        grouped.setdefault(item["category"], []).append(item)

    total = sum_cents(item["estimated_cost"] for item in items)
    logger.debug("Shopping list built: %s items, total %.2f", len(items), total)
    return grouped, total
