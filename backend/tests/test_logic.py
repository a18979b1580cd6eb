"""Unit tests for body composition and nutrition targets.

Rules:
- No I/O; inputs are metric.
- Boundary values of every validated range are tested.
- Body-fat bounds and fallbacks are covered for both sexes.
"""

import pytest

from fitplan.errors import ValidationError
from fitplan.logic import (
    adjust_for_goal,
    calculate_bmr,
    calculate_macros,
    calculate_targets,
    calculate_tdee,
    estimate_body_fat,
    macro_kcal,
)


# ── estimate_body_fat ────────────────────────────────────────────────────────

class TestEstimateBodyFat:
    def test_typical_male(self) -> None:
        assert estimate_body_fat("male", 85, 38, 180) == pytest.approx(16.1, abs=0.2)

    def test_male_result_has_one_decimal(self) -> None:
        bf = estimate_body_fat("male", 85, 38, 180)
        assert bf == round(bf, 1)

    def test_male_upper_clamp(self) -> None:
        assert estimate_body_fat("male", 200, 30, 150) == 50.0

    def test_male_lower_clamp(self) -> None:
        assert estimate_body_fat("male", 60, 55, 200) == 3.0

    def test_male_waist_not_above_neck_falls_back(self) -> None:
        assert estimate_body_fat("male", 38, 40, 180) == 15.0

    def test_female_without_hips_falls_back(self) -> None:
        assert estimate_body_fat("female", 75, 33, 165) == 25.0

    def test_female_invalid_spread_falls_back(self) -> None:
        assert estimate_body_fat("female", 10, 30, 165, hips_cm=10) == 25.0

    def test_typical_female_within_bounds(self) -> None:
        bf = estimate_body_fat("female", 75, 33, 165, hips_cm=98)
        assert 8.0 <= bf <= 55.0


# ── Energy targets ───────────────────────────────────────────────────────────

class TestEnergy:
    def test_bmr_male(self) -> None:
        assert calculate_bmr("male", 80, 180, 25) == pytest.approx(1805)

    def test_bmr_female(self) -> None:
        assert calculate_bmr("female", 60, 165, 30) == pytest.approx(1320.25)

    def test_tdee_four_days(self) -> None:
        assert calculate_tdee(1805, 4) == 2644

    def test_tdee_unknown_frequency_uses_five_day_factor(self) -> None:
        assert calculate_tdee(1000, 7) == 1550

    def test_goal_adjustments(self) -> None:
        assert adjust_for_goal(2500, "cut") == 2000
        assert adjust_for_goal(2500, "lean_bulk") == 2800
        assert adjust_for_goal(2500, "maintain") == 2500


class TestCalculateMacros:
    def test_carbs_half_rounds_up(self) -> None:
        # (2802 - 168*4 - 64*9) / 4 = 388.5
        assert calculate_macros(80, 2802) == (168, 389, 64)

    def test_carbs_floored_at_zero(self) -> None:
        protein, carbs, fat = calculate_macros(120, 1200)
        assert carbs == 0
        assert (protein, fat) == (252, 96)

    @pytest.mark.parametrize(
        ("weight_kg", "kcal_target"),
        [(52.3, 1650), (60, 1800), (80, 2644), (80, 2802), (95.5, 3101), (120, 3500)],
    )
    def test_macro_kcal_close_to_target(self, weight_kg: float, kcal_target: int) -> None:
        # Only carbs absorb rounding: at most half a gram, i.e. 2 kcal.
        protein, carbs, fat = calculate_macros(weight_kg, kcal_target)
        assert carbs > 0
        assert abs(macro_kcal(protein, carbs, fat) - kcal_target) <= 2


class TestCalculateTargets:
    def test_reference_profile(self) -> None:
        targets = calculate_targets("male", 80, 180, 25, 4, "maintain")
        assert targets.kcal_target == 2644
        assert targets.tdee == targets.kcal_target
        assert (targets.protein_g, targets.carbs_g, targets.fat_g) == (168, 349, 64)

    def test_cut_subtracts_500(self) -> None:
        targets = calculate_targets("male", 80, 180, 25, 4, "cut")
        assert targets.kcal_target == 2144

    @pytest.mark.parametrize("age", [16, 100])
    def test_age_bounds_accepted(self, age: int) -> None:
        calculate_targets("female", 60, 165, age, 3, "maintain")

    @pytest.mark.parametrize("age", [15, 101])
    def test_age_out_of_range(self, age: int) -> None:
        with pytest.raises(ValidationError, match="Age must be between 16 and 100"):
            calculate_targets("female", 60, 165, age, 3, "maintain")

    def test_training_days_out_of_range(self) -> None:
        with pytest.raises(ValidationError, match="Training days must be between 3 and 6"):
            calculate_targets("male", 80, 180, 25, 2, "maintain")

    def test_height_out_of_range(self) -> None:
        with pytest.raises(ValidationError, match="Height must be between 100 and 250 cm"):
            calculate_targets("male", 80, 99, 25, 4, "maintain")

    def test_weight_out_of_range_names_field(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            calculate_targets("male", 301, 180, 25, 4, "maintain")
        assert exc_info.value.field == "weight_kg"
        assert exc_info.value.status_code == 422
