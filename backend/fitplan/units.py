"""Metric/imperial conversions and the shared rounding convention.

Everything is stored metric; imperial values are converted here at the
service boundary and converted back only for display.
"""

import math

LBS_TO_KG = 0.453592
CM_PER_INCH = 2.54


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round half away from zero at ``ndigits`` decimals.

    Python's built-in ``round`` uses banker's rounding (``round(388.5) == 388``);
    every engine in this package needs ``388.5 -> 389`` instead.

    Args:
        value: Number to round.
        ndigits: Decimal places to keep.

    Returns:
        The rounded value. Use ``int(...)`` on the result when ``ndigits`` is 0
        and an integer is required.
    """
    factor = 10 ** ndigits
    rounded = math.floor(abs(value) * factor + 0.5) / factor
    return math.copysign(rounded, value) if rounded else 0.0


def round_int(value: float) -> int:
    """Round half away from zero to the nearest integer."""
    return int(round_half_up(value))


def lbs_to_kg(lbs: float) -> float:
    return lbs * LBS_TO_KG


def kg_to_lbs(kg: float) -> float:
    return kg / LBS_TO_KG


def feet_inches_to_cm(feet: float, inches: float) -> float:
    return (feet * 12 + inches) * CM_PER_INCH


def cm_to_feet_inches(cm: float) -> tuple[int, int]:
    """Convert centimetres to a (feet, inches) pair.

    Inches are rounded after splitting off whole feet, so values just below a
    foot boundary can produce 12 inches (e.g. 182.8 cm -> (5, 12)).

    Args:
        cm: Height in centimetres.

    Returns:
        ``(feet, inches)`` as integers.
    """
    total_inches = cm / CM_PER_INCH
    feet = math.floor(total_inches / 12)
    inches = round_int(total_inches % 12)
    return feet, inches


def inches_to_cm(inches: float) -> float:
    return inches * CM_PER_INCH


def cm_to_inches(cm: float) -> float:
    return cm / CM_PER_INCH


def weight_to_kg(value: float, unit_system: str) -> float:
    """Convert a user-entered weight to kilograms."""
    return lbs_to_kg(value) if unit_system == "imperial" else value


def length_to_cm(value: float | None, unit_system: str) -> float | None:
    """Convert a user-entered circumference (waist, neck, hips) to centimetres."""
    if value is None:
        return None
    return inches_to_cm(value) if unit_system == "imperial" else value
