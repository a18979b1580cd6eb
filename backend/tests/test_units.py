"""Unit tests for unit conversion and rounding.

Rules:
- Pure functions only, no I/O.
- Halves always round away from zero.
"""

import pytest

from fitplan.units import (
    cm_to_feet_inches,
    feet_inches_to_cm,
    kg_to_lbs,
    lbs_to_kg,
    length_to_cm,
    round_half_up,
    round_int,
    weight_to_kg,
)


class TestRoundHalfUp:
    def test_half_rounds_up(self) -> None:
        assert round_half_up(388.5) == 389

    def test_builtin_round_would_differ(self) -> None:
        # Banker's rounding gives 388 here; the convention must not.
        assert round(388.5) == 388
        assert round_int(388.5) == 389

    def test_one_decimal(self) -> None:
        assert round_half_up(2.25, 1) == pytest.approx(2.3)

    def test_negative_half_rounds_away_from_zero(self) -> None:
        assert round_half_up(-2.5) == -3

    def test_small_value_rounds_to_zero(self) -> None:
        assert round_half_up(0.4) == 0

    def test_round_int_returns_int(self) -> None:
        assert isinstance(round_int(12.7), int)
        assert round_int(12.7) == 13


class TestWeightConversion:
    def test_lbs_to_kg(self) -> None:
        assert lbs_to_kg(100) == pytest.approx(45.3592)

    def test_round_trip(self) -> None:
        assert kg_to_lbs(lbs_to_kg(176.4)) == pytest.approx(176.4)

    def test_metric_weight_unchanged(self) -> None:
        assert weight_to_kg(80, "metric") == 80

    def test_imperial_weight_converted(self) -> None:
        assert weight_to_kg(200, "imperial") == pytest.approx(90.7184)


class TestLengthConversion:
    def test_feet_inches_to_cm(self) -> None:
        assert feet_inches_to_cm(5, 10) == pytest.approx(177.8)

    def test_cm_to_feet_inches(self) -> None:
        assert cm_to_feet_inches(177.8) == (5, 10)

    def test_inches_can_round_up_to_twelve(self) -> None:
        # Edge: 71.97 in splits into 5 ft and 11.97 in, which rounds to 12.
        assert cm_to_feet_inches(182.8) == (5, 12)

    def test_missing_length_stays_missing(self) -> None:
        assert length_to_cm(None, "imperial") is None

    def test_imperial_length_converted(self) -> None:
        assert length_to_cm(10, "imperial") == pytest.approx(25.4)

    def test_metric_length_unchanged(self) -> None:
        assert length_to_cm(85, "metric") == 85
