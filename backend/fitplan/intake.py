"""Food-diary arithmetic and intake warnings.

Pure functions: the food log service loads entries and profiles and hands
plain models in. Entry totals are rounded once when an entry is stored
(kcal to whole numbers, macros to 0.1 g); day totals sum those rounded values.
"""

import math
from collections.abc import Iterable

from fitplan.errors import ValidationError
from fitplan.models import DayTotals, FoodLogItem, Goal, IntakeWarning
from fitplan.units import round_half_up, round_int

# Targets shown to users without a profile.
DEFAULT_TARGETS = DayTotals(calories=2000, protein=150, carbs=250, fat=70)

_ITEM_NUMBERS = ("grams", "calories", "protein", "carbs", "fat")


def validate_items(items: list[FoodLogItem]) -> None:
    """Reject empty entries, unnamed foods and negative or non-finite numbers.

    Raises:
        ValidationError: On the first offending item, with ``field="items"``.
    """
    if not items:
        raise ValidationError("Add at least one food", field="items")
    for item in items:
        if not item.name.strip():
            raise ValidationError("Every food needs a name", field="items")
        for attr in _ITEM_NUMBERS:
            value = getattr(item, attr)
            if not math.isfinite(value) or value < 0:
                raise ValidationError(
                    f"{attr.capitalize()} of {item.name.strip()} must be zero or more",
                    field="items",
                )


def entry_totals(items: Iterable[FoodLogItem]) -> DayTotals:
    """Sum an entry's items; kcal rounded to 1, macros to 0.1."""
    items = list(items)
    return DayTotals(
        calories=round_int(sum(i.calories for i in items)),
        protein=round_half_up(sum(i.protein for i in items), 1),
        carbs=round_half_up(sum(i.carbs for i in items), 1),
        fat=round_half_up(sum(i.fat for i in items), 1),
    )


def add_totals(entries: Iterable[DayTotals]) -> DayTotals:
    """Sum stored entry totals into a day total."""
    total = DayTotals()
    for entry in entries:
        total = DayTotals(
            calories=total.calories + entry.calories,
            protein=total.protein + entry.protein,
            carbs=total.carbs + entry.carbs,
            fat=total.fat + entry.fat,
        )
    # Float sums of 0.1 g steps drift.
    return DayTotals(
        calories=total.calories,
        protein=round_half_up(total.protein, 1),
        carbs=round_half_up(total.carbs, 1),
        fat=round_half_up(total.fat, 1),
    )


def intake_warnings(goal: Goal, totals: DayTotals, targets: DayTotals, hour: int) -> list[IntakeWarning]:
    """Goal-specific nudges about today's intake so far.

    ``hour`` is the local hour (0-23); the share of the day gone by scales
    how much protein and energy should already be eaten.

    Args:
        goal: The user's goal.
        totals: Intake logged today.
        targets: The user's daily targets.
        hour: Current hour of the day.

    Returns:
        Warnings in display order; empty when intake is on track.
    """
    warnings: list[IntakeWarning] = []
    day_progress = hour / 24
    calorie_percent = totals.calories / targets.calories * 100
    protein_percent = totals.protein / targets.protein * 100
    protein_behind = protein_percent < day_progress * 80

    if goal == "cut":
        if calorie_percent > 100:
            warnings.append(IntakeWarning(
                type="over",
                message=(
                    f"You're {round_int(totals.calories - targets.calories)} calories over "
                    "your cut target. Consider lighter meals for the rest of the day."
                ),
            ))
        elif calorie_percent > 90 and hour < 18:
            warnings.append(IntakeWarning(
                type="info",
                message=(
                    f"You've used {round_int(calorie_percent)}% of your calories. "
                    "Plan your remaining meals carefully."
                ),
            ))
        if protein_behind:
            warnings.append(IntakeWarning(
                type="under",
                message=(
                    f"Protein intake is low ({round_int(totals.protein)}g). "
                    "Prioritize protein in your next meal to preserve muscle."
                ),
            ))
    elif goal == "lean_bulk":
        expected_calories = targets.calories * day_progress
        if totals.calories < expected_calories * 0.7 and hour > 14:
            warnings.append(IntakeWarning(
                type="under",
                message=(
                    "You're behind on calories for a bulk. You need "
                    f"{round_int(targets.calories - totals.calories)} more calories today."
                ),
            ))
        if calorie_percent > 120:
            warnings.append(IntakeWarning(
                type="over",
                message=(
                    f"You're {round_int(calorie_percent - 100)}% over target. "
                    "Too much surplus leads to excess fat gain."
                ),
            ))
        if protein_behind:
            warnings.append(IntakeWarning(
                type="under",
                message=(
                    f"Increase protein intake ({round_int(totals.protein)}g/"
                    f"{round_int(targets.protein)}g) to maximize muscle growth."
                ),
            ))
    else:
        diff = totals.calories - targets.calories
        if abs(diff) > 300 and hour > 20:
            if diff > 0:
                warnings.append(IntakeWarning(
                    type="over", message=f"You're {round_int(diff)} calories over maintenance."
                ))
            else:
                warnings.append(IntakeWarning(
                    type="under", message=f"You're {round_int(-diff)} calories under maintenance."
                ))
    return warnings
