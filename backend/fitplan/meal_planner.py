"""Greedy pantry-constrained meal planner.

Splits the daily macro targets evenly across meals and fills each meal in a
fixed order: one protein source, one carb source, then a fat source only if
the meal is still short on fat. Sources are chosen first-fit in pantry order
from a per-call ``remaining`` map, so the plan is deterministic for a given
pantry and target set. This is a heuristic, not an optimiser: the day's
achieved totals are checked against tolerance bands and any miss is reported
as a warning rather than corrected.
"""

from collections.abc import Sequence

from fitplan.errors import PlanningError, require_range
from fitplan.logic import macro_kcal
from fitplan.models import (
    FoodItemRecord,
    MacroTotals,
    Meal,
    MealItem,
    MealPlanResult,
    NutritionTargets,
    PantryEntry,
)
from fitplan.units import round_half_up, round_int

# Allowed gap between achieved and target grams before a warning is raised.
TOLERANCE_G: dict[str, int] = {"protein": 5, "carbs": 10, "fat": 3}

# Stock a source must exceed (grams) to be picked for a meal.
MIN_PROTEIN_STOCK_G = 50
MIN_CARB_STOCK_G = 30
MIN_FAT_STOCK_G = 5

MAX_MEALS_PER_DAY = 6

_PER_100G_FIELD = {
    "protein": "protein_per_100g",
    "carbs": "carbs_per_100g",
    "fat": "fat_per_100g",
}


def item_macros(food: FoodItemRecord, grams: float) -> tuple[float, float, float, int]:
    """Macros for ``grams`` of a food.

    Returns:
        ``(protein, carbs, fat, kcal)``; grams rounded to 0.1, kcal to integer.
    """
    factor = grams / 100
    protein = food.protein_per_100g * factor
    carbs = food.carbs_per_100g * factor
    fat = food.fat_per_100g * factor
    return (
        round_half_up(protein, 1),
        round_half_up(carbs, 1),
        round_half_up(fat, 1),
        round_int(macro_kcal(protein, carbs, fat)),
    )


def grams_for_macro(food: FoodItemRecord, macro: str, target_g: float) -> int:
    """Grams of ``food`` needed to supply ``target_g`` of ``macro`` (0 if it has none)."""
    per_100g = getattr(food, _PER_100G_FIELD[macro])
    if per_100g == 0:
        return 0
    return round_int(target_g / per_100g * 100)


def _first_with_stock(
    entries: Sequence[PantryEntry], remaining: dict[str, float], min_grams: float
) -> PantryEntry | None:
    for entry in entries:
        if remaining.get(entry.food.name, 0) > min_grams:
            return entry
    return None


def _diff_warning(label: str, verb: str, actual: int, target: int) -> str:
    return f"{label} {verb} {actual}g (target: {target}g, diff: {actual - target:+d}g)"


def generate_meal_plan(
    pantry: Sequence[PantryEntry],
    targets: NutritionTargets,
    meals_per_day: int = 3,
    plan_date: str | None = None,
) -> MealPlanResult:
    """Allocate pantry stock into ``meals_per_day`` meals.

    Args:
        pantry: The user's pantry in insertion order. Entries with no stock
            are ignored.
        targets: Daily kcal and macro targets.
        meals_per_day: Number of meals, 1 to 6.
        plan_date: ISO date stamped on the result.

    Returns:
        MealPlanResult with status "warning" whenever any meal lacked a
        source or a daily total missed its tolerance band.

    Raises:
        ValidationError: If ``meals_per_day`` is outside 1..6.
        PlanningError: If the pantry is empty, has no stock, or lacks any
            protein or carb source.
    """
    require_range("meals_per_day", meals_per_day, 1, MAX_MEALS_PER_DAY, label="Meals per day")

    if not pantry:
        raise PlanningError("Your pantry is empty. Add some food items first.")
    stocked = [entry for entry in pantry if entry.grams_available > 0]
    if not stocked:
        raise PlanningError("No food items with available quantity in your pantry")

    lean = [e for e in stocked if e.food.group == "lean_protein"]
    fattier = [e for e in stocked if e.food.group == "fattier_protein"]
    carb_sources = [e for e in stocked if e.food.group == "starchy_carb"]
    fat_sources = [e for e in stocked if e.food.group == "fat_source"]

    if not lean and not fattier:
        raise PlanningError("No protein sources in your pantry. Add chicken, beef, eggs, etc.")
    if not carb_sources:
        raise PlanningError("No carb sources in your pantry. Add rice, oats, potatoes, etc.")

    per_meal = {
        "protein": round_int(targets.protein_g / meals_per_day),
        "carbs": round_int(targets.carbs_g / meals_per_day),
        "fat": round_int(targets.fat_g / meals_per_day),
    }
    remaining: dict[str, float] = {e.food.name: e.grams_available for e in stocked}
    foods: dict[str, FoodItemRecord] = {e.food.name: e.food for e in stocked}

    meals: list[Meal] = []
    warnings: list[str] = []

    for meal_idx in range(meals_per_day):
        items: list[MealItem] = []
        totals = {"protein": 0.0, "carbs": 0.0, "fat": 0.0}

        def allocate(entry: PantryEntry, macro: str, target_g: float) -> None:
            name = entry.food.name
            available = remaining[name]
            use_grams = min(grams_for_macro(entry.food, macro, target_g), available)
            if use_grams <= 0:
                return
            protein, carbs, fat, kcal = item_macros(entry.food, use_grams)
            items.append(
                MealItem(
                    food_name=name,
                    grams=round_int(use_grams),
                    protein=protein,
                    carbs=carbs,
                    fat=fat,
                    kcal=kcal,
                )
            )
            totals["protein"] += protein
            totals["carbs"] += carbs
            totals["fat"] += fat
            remaining[name] = available - use_grams

        protein_source = _first_with_stock(lean, remaining, MIN_PROTEIN_STOCK_G) or _first_with_stock(
            fattier, remaining, MIN_PROTEIN_STOCK_G
        )
        if protein_source:
            allocate(protein_source, "protein", per_meal["protein"])
        else:
            warnings.append(f"Meal {meal_idx + 1}: Not enough protein sources available")

        carb_source = _first_with_stock(carb_sources, remaining, MIN_CARB_STOCK_G)
        if carb_source:
            allocate(carb_source, "carbs", max(0.0, per_meal["carbs"] - totals["carbs"]))
        else:
            warnings.append(f"Meal {meal_idx + 1}: Not enough carb sources available")

        fat_gap = per_meal["fat"] - totals["fat"]
        if fat_gap > TOLERANCE_G["fat"]:
            fat_source = _first_with_stock(fat_sources, remaining, MIN_FAT_STOCK_G)
            if fat_source:
                allocate(fat_source, "fat", fat_gap)

        meals.append(Meal(meal_index=meal_idx + 1, items=items))

    # Totals are recomputed from the rounded grams, not the in-meal figures.
    protein_sum = carbs_sum = fat_sum = 0.0
    for meal in meals:
        for item in meal.items:
            protein, carbs, fat, _ = item_macros(foods[item.food_name], item.grams)
            protein_sum += protein
            carbs_sum += carbs
            fat_sum += fat
    actual = MacroTotals(
        kcal=round_int(macro_kcal(protein_sum, carbs_sum, fat_sum)),
        protein=round_int(protein_sum),
        carbs=round_int(carbs_sum),
        fat=round_int(fat_sum),
    )

    if abs(actual.protein - targets.protein_g) > TOLERANCE_G["protein"]:
        warnings.append(_diff_warning("Protein", "is", actual.protein, targets.protein_g))
    if abs(actual.carbs - targets.carbs_g) > TOLERANCE_G["carbs"]:
        warnings.append(_diff_warning("Carbs", "are", actual.carbs, targets.carbs_g))
    if abs(actual.fat - targets.fat_g) > TOLERANCE_G["fat"]:
        warnings.append(_diff_warning("Fat", "is", actual.fat, targets.fat_g))

    return MealPlanResult(
        date=plan_date,
        status="warning" if warnings else "ok",
        warnings=warnings,
        targets=MacroTotals(
            kcal=targets.kcal_target,
            protein=targets.protein_g,
            carbs=targets.carbs_g,
            fat=targets.fat_g,
        ),
        actual=actual,
        meals=meals,
    )
