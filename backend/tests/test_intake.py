"""Unit tests for food-diary arithmetic and intake warnings.

Rules:
- No I/O; the hour of day is passed in.
- Targets are 2000 kcal and 150 g protein throughout.
- Every warning of every goal is hit, plus the hour cut-offs around it.
"""

import pytest

from fitplan.errors import ValidationError
from fitplan.intake import (
    DEFAULT_TARGETS,
    add_totals,
    entry_totals,
    intake_warnings,
    validate_items,
)
from fitplan.models import DayTotals, FoodLogItem

TARGETS = DayTotals(calories=2000, protein=150, carbs=250, fat=70)


def _item(name: str = "Rice", **values: float) -> FoodLogItem:
    data = {"grams": 100, "calories": 130, "protein": 2.7, "carbs": 28.2, "fat": 0.3}
    data.update(values)
    return FoodLogItem(name=name, **data)


def _eaten(calories: float, protein: float = 150) -> DayTotals:
    return DayTotals(calories=calories, protein=protein)


class TestTotals:
    def test_entry_totals_rounded(self) -> None:
        totals = entry_totals([_item(calories=130.5, protein=2.84), _item(calories=100.2, fat=0.04)])
        assert totals.calories == 231
        assert totals.protein == 5.5
        assert totals.carbs == 56.4
        assert totals.fat == 0.3

    def test_add_totals_has_no_float_drift(self) -> None:
        day = add_totals([DayTotals(calories=100, protein=0.1)] * 3)
        assert day.calories == 300
        assert day.protein == 0.3

    def test_empty_day(self) -> None:
        assert add_totals([]) == DayTotals()


class TestValidateItems:
    def test_valid(self) -> None:
        validate_items([_item(), _item("Eggs", grams=0)])

    def test_no_items(self) -> None:
        with pytest.raises(ValidationError, match="Add at least one food") as exc_info:
            validate_items([])
        assert exc_info.value.field == "items"

    def test_unnamed_item(self) -> None:
        with pytest.raises(ValidationError, match="Every food needs a name"):
            validate_items([_item("  ")])

    def test_negative_amount(self) -> None:
        with pytest.raises(ValidationError, match="Protein of Rice must be zero or more"):
            validate_items([_item(protein=-1)])

    def test_non_finite_amount(self) -> None:
        with pytest.raises(ValidationError, match="Calories of Rice"):
            validate_items([_item(calories=float("inf"))])


class TestCutWarnings:
    def test_over_target(self) -> None:
        warnings = intake_warnings("cut", _eaten(2100), TARGETS, 12)
        assert [(w.type, w.message) for w in warnings] == [(
            "over",
            "You're 100 calories over your cut target. "
            "Consider lighter meals for the rest of the day.",
        )]

    def test_nearly_used_before_evening(self) -> None:
        warnings = intake_warnings("cut", _eaten(1900), TARGETS, 17)
        assert [w.type for w in warnings] == ["info"]
        assert warnings[0].message.startswith("You've used 95% of your calories.")

    def test_exactly_on_target_is_not_over(self) -> None:
        warnings = intake_warnings("cut", _eaten(2000), TARGETS, 12)
        assert [w.type for w in warnings] == ["info"]

    def test_nearly_used_in_evening_is_fine(self) -> None:
        assert intake_warnings("cut", _eaten(1900), TARGETS, 18) == []

    def test_low_protein(self) -> None:
        # At noon, protein should be at 40% of target.
        warnings = intake_warnings("cut", _eaten(800, protein=59), TARGETS, 12)
        assert [(w.type, w.message) for w in warnings] == [(
            "under",
            "Protein intake is low (59g). Prioritize protein in your next meal to preserve muscle.",
        )]

    def test_protein_on_pace(self) -> None:
        assert intake_warnings("cut", _eaten(800, protein=60), TARGETS, 12) == []


class TestLeanBulkWarnings:
    def test_behind_in_afternoon(self) -> None:
        # Expected by 18:00 is 1500 kcal; behind means under 70% of that.
        warnings = intake_warnings("lean_bulk", _eaten(1000), TARGETS, 18)
        assert [(w.type, w.message) for w in warnings] == [(
            "under",
            "You're behind on calories for a bulk. You need 1000 more calories today.",
        )]

    def test_not_behind_before_three(self) -> None:
        assert intake_warnings("lean_bulk", _eaten(0, protein=150), TARGETS, 14) == []

    def test_far_over_target(self) -> None:
        warnings = intake_warnings("lean_bulk", _eaten(2500), TARGETS, 22)
        assert [(w.type, w.message) for w in warnings] == [(
            "over",
            "You're 25% over target. Too much surplus leads to excess fat gain.",
        )]

    def test_twenty_percent_over_is_fine(self) -> None:
        assert intake_warnings("lean_bulk", _eaten(2400), TARGETS, 22) == []

    def test_low_protein_names_target(self) -> None:
        warnings = intake_warnings("lean_bulk", _eaten(1500, protein=30), TARGETS, 12)
        assert warnings[-1].message == "Increase protein intake (30g/150g) to maximize muscle growth."


class TestMaintainWarnings:
    def test_over_at_night(self) -> None:
        warnings = intake_warnings("maintain", _eaten(2400), TARGETS, 21)
        assert [(w.type, w.message) for w in warnings] == [
            ("over", "You're 400 calories over maintenance."),
        ]

    def test_under_at_night(self) -> None:
        warnings = intake_warnings("maintain", _eaten(1600), TARGETS, 23)
        assert [(w.type, w.message) for w in warnings] == [
            ("under", "You're 400 calories under maintenance."),
        ]

    def test_quiet_until_after_eight(self) -> None:
        assert intake_warnings("maintain", _eaten(1000), TARGETS, 20) == []

    def test_three_hundred_off_is_fine(self) -> None:
        assert intake_warnings("maintain", _eaten(2300), TARGETS, 22) == []

    def test_maintain_ignores_protein(self) -> None:
        assert intake_warnings("maintain", _eaten(2000, protein=0), TARGETS, 22) == []


def test_empty_day_at_midnight_has_no_warnings() -> None:
    for goal in ("cut", "lean_bulk", "maintain"):
        assert intake_warnings(goal, DayTotals(), DEFAULT_TARGETS, 0) == []
