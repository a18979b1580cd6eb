"""Unit tests for weight trends and calorie recalibration.

Rules:
- A fixed reference day is passed in; nothing depends on the wall clock.
- Every rule of every goal is hit at least once, plus the gaps between bands.
"""

from datetime import date, timedelta

import pytest

from fitplan.models import WeightLogRecord
from fitplan.trends import (
    NO_RULE,
    NOT_ENOUGH_DATA_MESSAGE,
    body_composition_trend,
    recalibrate_targets,
    recent_logs,
    select_adjustment,
    trend_statistics,
    weight_trend,
)

TODAY = date(2026, 10, 19)


def _log(days_ago: int, weight_kg: float, body_fat: float | None = None) -> WeightLogRecord:
    return WeightLogRecord(
        date=(TODAY - timedelta(days=days_ago)).isoformat(),
        weight_kg=weight_kg,
        estimated_body_fat_percent=body_fat,
    )


def _steady_loss() -> list[WeightLogRecord]:
    """Seven daily logs, 80.0 down to 79.4 kg."""
    return [_log(6 - i, 80.0 - 0.1 * i) for i in range(7)]


# ── Window & statistics ──────────────────────────────────────────────────────

class TestRecentLogs:
    def test_excludes_logs_older_than_window(self) -> None:
        logs = _steady_loss() + [_log(20, 90.0)]
        assert len(recent_logs(logs, 7, TODAY)) == 7

    def test_cutoff_day_is_included(self) -> None:
        assert len(recent_logs([_log(7, 80.0)], 7, TODAY)) == 1

    def test_sorted_oldest_first(self) -> None:
        logs = list(reversed(_steady_loss()))
        window = recent_logs(logs, 7, TODAY)
        assert [log.date for log in window] == sorted(log.date for log in logs)


class TestWeightTrend:
    def test_not_enough_data(self) -> None:
        trend = weight_trend([_log(1, 80.0), _log(0, 79.8)], today=TODAY)
        assert trend.has_enough_data is False
        assert trend.message == NOT_ENOUGH_DATA_MESSAGE
        assert trend.entries_count == 2
        assert trend.weekly_change_percent is None

    def test_steady_loss(self) -> None:
        trend = weight_trend(_steady_loss(), today=TODAY)
        assert trend.has_enough_data is True
        assert trend.entries_count == 7
        assert trend.avg_first == pytest.approx(79.9)
        assert trend.avg_last == pytest.approx(79.5)
        assert trend.change_kg == pytest.approx(-0.4)
        assert trend.change_percent == pytest.approx(-0.5)
        assert trend.weekly_change_percent == pytest.approx(-0.58)

    def test_three_entries_share_both_averages(self) -> None:
        # Edge: with 3 entries the first-3 and last-3 windows are the same.
        stats = trend_statistics([_log(2, 80.0), _log(1, 79.0), _log(0, 81.0)])
        assert stats is not None
        assert stats.change_kg == 0
        assert stats.weekly_change_percent == 0

    def test_statistics_unrounded(self) -> None:
        stats = trend_statistics(recent_logs(_steady_loss(), 7, TODAY))
        assert stats is not None
        assert stats.weekly_change_percent == pytest.approx(-0.4 / 79.9 * 100 / 6 * 7)


class TestBodyCompositionTrend:
    def test_metric(self) -> None:
        trend = body_composition_trend(
            [_log(10, 80.0, 20.0), _log(0, 79.0, 19.2)], "metric", today=TODAY
        )
        assert trend.weight_unit == "kg"
        assert [p.weight for p in trend.data_points] == [80.0, 79.0]
        assert trend.weight_change == pytest.approx(-1.0)
        assert trend.body_fat_change == pytest.approx(-0.8)

    def test_imperial_converts_and_rounds(self) -> None:
        trend = body_composition_trend([_log(10, 80.0), _log(0, 79.0)], "imperial", today=TODAY)
        assert trend.weight_unit == "lbs"
        assert [p.weight for p in trend.data_points] == [pytest.approx(176.4), pytest.approx(174.2)]
        assert trend.weight_change == pytest.approx(-2.2)
        assert trend.body_fat_change is None

    def test_single_log_has_no_changes(self) -> None:
        trend = body_composition_trend([_log(0, 80.0, 18.0)], "metric", today=TODAY)
        assert trend.weight_change is None
        assert trend.body_fat_change is None

    def test_window_limits_history(self) -> None:
        trend = body_composition_trend(
            [_log(120, 85.0), _log(5, 80.0), _log(0, 79.5)], "metric", days=90, today=TODAY
        )
        assert len(trend.data_points) == 2


# ── Recalibration ────────────────────────────────────────────────────────────

class TestSelectAdjustment:
    @pytest.mark.parametrize(
        ("goal", "weekly", "adjustment", "tag"),
        [
            ("cut", -0.75, 0, "on-track"),
            ("cut", -1.0, 0, "on-track"),
            ("cut", -0.1, -100, "flat"),
            ("cut", 0.3, -150, "gaining"),
            ("cut", -1.5, 0, "losing-too-fast"),
            ("lean_bulk", 0.3, 0, "on-track"),
            ("lean_bulk", 0.1, 100, "flat"),
            ("lean_bulk", 1.0, -100, "gaining-too-fast"),
            ("lean_bulk", -0.5, 150, "losing"),
            ("maintain", 0.1, 0, "stable"),
            ("maintain", 0.5, -100, "gaining"),
            ("maintain", -0.5, 100, "losing"),
        ],
    )
    def test_rules(self, goal: str, weekly: float, adjustment: int, tag: str) -> None:
        result_adjustment, result_tag, _ = select_adjustment(goal, weekly)
        assert (result_adjustment, result_tag) == (adjustment, tag)

    def test_cut_gap_matches_no_rule(self) -> None:
        assert select_adjustment("cut", -0.3) == NO_RULE

    def test_lean_bulk_gap_matches_no_rule(self) -> None:
        assert select_adjustment("lean_bulk", 0.6) == NO_RULE

    def test_maintain_exactly_quarter_percent_falls_through(self) -> None:
        # Edge: +0.25 is neither stable (< 0.25) nor gaining (> 0.25).
        adjustment, tag, _ = select_adjustment("maintain", 0.25)
        assert (adjustment, tag) == (100, "losing")


class TestRecalibrateTargets:
    def test_flat_cut_reduces_and_recomputes_macros(self) -> None:
        result = recalibrate_targets("cut", 2300, 80, 0.1)
        assert result.previous_kcal == 2300
        assert result.new_kcal_target == 2200
        assert result.kcal_adjustment == -100
        assert result.reason == "Weight flat - reducing 100 kcal"
        assert (result.protein_g, result.carbs_g, result.fat_g) == (168, 238, 64)

    def test_weekly_change_reported_rounded(self) -> None:
        result = recalibrate_targets("maintain", 2600, 80, -0.58406)
        assert result.weekly_change_percent == pytest.approx(-0.58)

    def test_no_clamp_on_repeated_drift(self) -> None:
        kcal = 1300
        for _ in range(3):
            kcal = recalibrate_targets("cut", kcal, 80, 0.5).new_kcal_target
        assert kcal == 850
