"""Body composition and nutrition target calculation engine.

Pure functions only: Navy-method body fat, Mifflin-St Jeor BMR, TDEE,
goal adjustment and macro split. All inputs are metric. Persistence and unit
conversion happen in the service layer.
"""

import math

from fitplan.errors import require_range
from fitplan.models import NutritionTargets
from fitplan.units import round_half_up, round_int

# Activity multipliers keyed by training days per week.
# Source: Mifflin-St Jeor activity factors, interpolated for 4 and 6 days.
ACTIVITY_MULTIPLIERS: dict[int, float] = {
    3: 1.375,
    4: 1.465,
    5: 1.55,
    6: 1.635,
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.55

GOAL_ADJUSTMENTS: dict[str, int] = {
    "cut": -500,
    "lean_bulk": 300,
    "maintain": 0,
}

PROTEIN_G_PER_KG = 2.1
FAT_G_PER_KG = 0.8

KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9

# Fallbacks when the measurements cannot feed the log10 terms.
_MALE_BODY_FAT_FALLBACK = 15.0
_FEMALE_BODY_FAT_FALLBACK = 25.0


# ── Body composition ─────────────────────────────────────────────────────────

def estimate_body_fat(
    sex: str,
    waist_cm: float,
    neck_cm: float,
    height_cm: float,
    hips_cm: float | None = None,
) -> float:
    """Estimate body fat percentage with the U.S. Navy circumference method.

    Male:   495 / (1.0324 - 0.19077*log10(waist - neck) + 0.15456*log10(height)) - 450
    Female: 495 / (1.29579 - 0.35004*log10(waist + hips - neck) + 0.22100*log10(height)) - 450

    Args:
        sex: "male" or "female".
        waist_cm: Waist circumference in cm.
        neck_cm: Neck circumference in cm.
        height_cm: Height in cm.
        hips_cm: Hip circumference in cm. Required for the female formula.

    Returns:
        Body fat percent rounded to 1 decimal and clamped to [3, 50] for males
        or [8, 55] for females. Invalid measurements return 15.0 (male) or
        25.0 (female) instead of raising.
    """
    if sex == "male":
        spread = waist_cm - neck_cm
        if spread <= 0:
            return _MALE_BODY_FAT_FALLBACK
        bf = 495 / (1.0324 - 0.19077 * math.log10(spread) + 0.15456 * math.log10(height_cm)) - 450
        return max(3.0, min(50.0, round_half_up(bf, 1)))

    if not hips_cm:
        return _FEMALE_BODY_FAT_FALLBACK
    spread = waist_cm + hips_cm - neck_cm
    if spread <= 0:
        return _FEMALE_BODY_FAT_FALLBACK
    bf = 495 / (1.29579 - 0.35004 * math.log10(spread) + 0.22100 * math.log10(height_cm)) - 450
    return max(8.0, min(55.0, round_half_up(bf, 1)))


# ── Energy targets ───────────────────────────────────────────────────────────

def calculate_bmr(sex: str, weight_kg: float, height_cm: float, age: int) -> float:
    """Mifflin-St Jeor basal metabolic rate in kcal/day (unrounded)."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if sex == "male" else base - 161


def calculate_tdee(bmr: float, training_days_per_week: int) -> int:
    """Scale BMR by the activity factor for the training frequency.

    Unknown frequencies fall back to the 5-day factor (1.55).
    """
    multiplier = ACTIVITY_MULTIPLIERS.get(training_days_per_week, DEFAULT_ACTIVITY_MULTIPLIER)
    return round_int(bmr * multiplier)


def adjust_for_goal(tdee: int, goal: str) -> int:
    return tdee + GOAL_ADJUSTMENTS[goal]


def calculate_macros(weight_kg: float, kcal_target: float) -> tuple[int, int, int]:
    """Split a calorie target into protein, carbs and fat grams.

    Protein and fat are bodyweight-based; carbs fill the remaining calories
    and are floored at zero.

    Args:
        weight_kg: Current bodyweight in kg.
        kcal_target: Daily calorie target.

    Returns:
        ``(protein_g, carbs_g, fat_g)`` as integers.
    """
    protein_g = round_int(weight_kg * PROTEIN_G_PER_KG)
    fat_g = round_int(weight_kg * FAT_G_PER_KG)
    remaining = kcal_target - protein_g * KCAL_PER_G_PROTEIN - fat_g * KCAL_PER_G_FAT
    carbs_g = round_int(max(0.0, remaining / KCAL_PER_G_CARBS))
    return protein_g, carbs_g, fat_g


def macro_kcal(protein_g: float, carbs_g: float, fat_g: float) -> float:
    return protein_g * KCAL_PER_G_PROTEIN + carbs_g * KCAL_PER_G_CARBS + fat_g * KCAL_PER_G_FAT


# ── Validation & composition ─────────────────────────────────────────────────

def validate_profile_inputs(
    age: int,
    training_days_per_week: int,
    height_cm: float,
    weight_kg: float,
) -> None:
    """Check metric profile inputs against their inclusive ranges.

    Raises:
        ValidationError: On the first out-of-range field, naming the field
            and its allowed range.
    """
    require_range("age", age, 16, 100, label="Age")
    require_range("training_days_per_week", training_days_per_week, 3, 6, label="Training days")
    require_range("height_cm", height_cm, 100, 250, label="Height", unit=" cm")
    require_range("weight_kg", weight_kg, 30, 300, label="Weight", unit=" kg")


def calculate_targets(
    sex: str,
    weight_kg: float,
    height_cm: float,
    age: int,
    training_days_per_week: int,
    goal: str,
) -> NutritionTargets:
    """Derive daily calorie and macro targets for a metric profile.

    Example: male, 80 kg, 180 cm, 25 y, 4 days, maintain gives BMR 1805, kcal 2644,
    protein 168 g, fat 64 g, carbs 349 g.

    Args:
        sex: "male" or "female".
        weight_kg: Bodyweight in kg.
        height_cm: Height in cm.
        age: Age in years.
        training_days_per_week: Training frequency, 3 to 6.
        goal: "cut", "lean_bulk" or "maintain".

    Returns:
        NutritionTargets. ``tdee`` carries the goal-adjusted value and equals
        ``kcal_target``.

    Raises:
        ValidationError: If any input is outside its allowed range.
    """
    validate_profile_inputs(age, training_days_per_week, height_cm, weight_kg)
    bmr = calculate_bmr(sex, weight_kg, height_cm, age)
    kcal = adjust_for_goal(calculate_tdee(bmr, training_days_per_week), goal)
    protein_g, carbs_g, fat_g = calculate_macros(weight_kg, kcal)
    return NutritionTargets(
        tdee=kcal,
        kcal_target=kcal,
        protein_g=protein_g,
        carbs_g=carbs_g,
        fat_g=fat_g,
    )
