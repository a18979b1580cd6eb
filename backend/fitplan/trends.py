"""Weight trend analysis and calorie-target recalibration.

``weight_trend`` smooths noisy daily weigh-ins into a weekly rate of change;
``recalibrate_targets`` maps that rate onto a calorie adjustment through an
ordered rule table per goal. Both are pure; the nutrition service loads the
logs and persists the result.
"""

from collections.abc import Callable, Sequence
from datetime import date, timedelta

from pydantic import BaseModel

from fitplan.logic import calculate_macros
from fitplan.models import (
    BodyCompositionPoint,
    BodyCompositionTrend,
    Recalibration,
    WeightLogRecord,
    WeightTrend,
)
from fitplan.units import kg_to_lbs, round_half_up

TREND_WINDOW_DAYS = 7
MIN_TREND_ENTRIES = 3
NOT_ENOUGH_DATA_MESSAGE = "Need at least 3 weight entries in the last 7 days"


class TrendStatistics(BaseModel):
    """Unrounded trend figures. Decisions use these; display rounds them."""

    entries_count: int
    avg_first: float
    avg_last: float
    change_kg: float
    change_percent: float
    weekly_change_percent: float


def recent_logs(
    logs: Sequence[WeightLogRecord],
    window_days: int = TREND_WINDOW_DAYS,
    today: date | None = None,
) -> list[WeightLogRecord]:
    """Return logs dated within the window, oldest first.

    The cutoff is inclusive and compared on ISO date strings.
    """
    cutoff = ((today or date.today()) - timedelta(days=window_days)).isoformat()
    return sorted((log for log in logs if log.date >= cutoff), key=lambda log: log.date)


def trend_statistics(window: Sequence[WeightLogRecord]) -> TrendStatistics | None:
    """Compute trend figures over an already-filtered, date-sorted window.

    The first-3 and last-3 averages may overlap when fewer than 6 entries
    exist. The weekly rate extrapolates the change over ``n - 1`` intervals
    to 7 days.

    Returns:
        ``None`` when the window holds fewer than 3 entries.
    """
    n = len(window)
    if n < MIN_TREND_ENTRIES:
        return None
    first3 = window[:3]
    last3 = window[-3:]
    avg_first = sum(log.weight_kg for log in first3) / len(first3)
    avg_last = sum(log.weight_kg for log in last3) / len(last3)
    change_kg = avg_last - avg_first
    change_percent = change_kg / avg_first * 100
    weekly = change_percent / max(1, n - 1) * 7
    return TrendStatistics(
        entries_count=n,
        avg_first=avg_first,
        avg_last=avg_last,
        change_kg=change_kg,
        change_percent=change_percent,
        weekly_change_percent=weekly,
    )


def weight_trend(
    logs: Sequence[WeightLogRecord],
    window_days: int = TREND_WINDOW_DAYS,
    today: date | None = None,
) -> WeightTrend:
    """Summarise the recent weight trend for display.

    Args:
        logs: Any of the user's weight logs, in any order.
        window_days: Look-back window in days.
        today: Reference day; defaults to ``date.today()``.

    Returns:
        WeightTrend with averages rounded to 0.1 kg and changes to 0.01, or
        ``has_enough_data=False`` with a message when under 3 entries.
    """
    window = recent_logs(logs, window_days, today)
    stats = trend_statistics(window)
    if stats is None:
        return WeightTrend(
            has_enough_data=False,
            message=NOT_ENOUGH_DATA_MESSAGE,
            entries_count=len(window),
        )
    return WeightTrend(
        has_enough_data=True,
        entries_count=stats.entries_count,
        avg_first=round_half_up(stats.avg_first, 1),
        avg_last=round_half_up(stats.avg_last, 1),
        change_kg=round_half_up(stats.change_kg, 2),
        change_percent=round_half_up(stats.change_percent, 2),
        weekly_change_percent=round_half_up(stats.weekly_change_percent, 2),
    )


def body_composition_trend(
    logs: Sequence[WeightLogRecord],
    unit_system: str,
    days: int = 90,
    today: date | None = None,
) -> BodyCompositionTrend:
    """Weight and body-fat history over ``days``, converted for display.

    Weight change needs 2 logs; body-fat change needs 2 logs carrying an
    estimate. Imperial weights are shown in lbs rounded to 0.1.
    """
    window = recent_logs(logs, days, today)
    imperial = unit_system == "imperial"

    def display(kg: float) -> float:
        return round_half_up(kg_to_lbs(kg), 1) if imperial else kg

    points = [
        BodyCompositionPoint(
            date=log.date,
            weight=display(log.weight_kg),
            body_fat_percent=log.estimated_body_fat_percent,
        )
        for log in window
    ]

    weight_change = None
    if len(window) >= 2:
        change_kg = window[-1].weight_kg - window[0].weight_kg
        weight_change = round_half_up(kg_to_lbs(change_kg) if imperial else change_kg, 1)

    with_bf = [log for log in window if log.estimated_body_fat_percent is not None]
    body_fat_change = None
    if len(with_bf) >= 2:
        body_fat_change = round_half_up(
            with_bf[-1].estimated_body_fat_percent - with_bf[0].estimated_body_fat_percent, 1
        )

    return BodyCompositionTrend(
        weight_unit="lbs" if imperial else "kg",
        data_points=points,
        weight_change=weight_change,
        body_fat_change=body_fat_change,
    )


# ── Recalibration ────────────────────────────────────────────────────────────

# (predicate on weekly % change, kcal adjustment, tag, reason), first match wins.
Rule = tuple[Callable[[float], bool], int, str, str]

RECALIBRATION_RULES: dict[str, list[Rule]] = {
    "cut": [
        (lambda w: -1 <= w <= -0.5, 0, "on-track", "On track - losing 0.5-1% per week"),
        (lambda w: abs(w) < 0.25, -100, "flat", "Weight flat - reducing 100 kcal"),
        (lambda w: w > 0, -150, "gaining", "Gaining weight - reducing 150 kcal"),
        (lambda w: w < -1, 0, "losing-too-fast",
         "Losing faster than target - consider adding calories"),
    ],
    "lean_bulk": [
        (lambda w: 0.25 <= w <= 0.5, 0, "on-track", "On track - gaining 0.25-0.5% per week"),
        (lambda w: abs(w) < 0.25, 100, "flat", "Weight flat - increasing 100 kcal"),
        (lambda w: w > 0.75, -100, "gaining-too-fast", "Gaining too fast - reducing 100 kcal"),
        (lambda w: w < 0, 150, "losing", "Losing weight - increasing 150 kcal"),
    ],
    "maintain": [
        (lambda w: abs(w) < 0.25, 0, "stable", "Weight stable - maintaining"),
        (lambda w: w > 0.25, -100, "gaining", "Gaining weight - reducing 100 kcal"),
        (lambda w: True, 100, "losing", "Losing weight - increasing 100 kcal"),
    ],
}

# Cut in (-0.5, -0.25] and lean_bulk in (0.5, 0.75] match no rule.
NO_RULE: tuple[int, str, str] = (0, "no-rule", "Between target bands - no adjustment")


def select_adjustment(goal: str, weekly_change_percent: float) -> tuple[int, str, str]:
    """Return ``(kcal_adjustment, tag, reason)`` for the first matching rule."""
    for predicate, adjustment, tag, reason in RECALIBRATION_RULES[goal]:
        if predicate(weekly_change_percent):
            return adjustment, tag, reason
    return NO_RULE


def recalibrate_targets(
    goal: str,
    kcal_target: int,
    current_weight_kg: float,
    weekly_change_percent: float,
) -> Recalibration:
    """Adjust a calorie target from the observed weekly weight change.

    The new target is not clamped; repeated recalibrations can drift without
    bound.

    Args:
        goal: "cut", "lean_bulk" or "maintain".
        kcal_target: Current daily calorie target.
        current_weight_kg: Bodyweight used to recompute protein and fat.
        weekly_change_percent: Unrounded weekly change in % bodyweight.

    Returns:
        Recalibration with new kcal target and recomputed macros.
    """
    adjustment, tag, reason = select_adjustment(goal, weekly_change_percent)
    new_kcal = kcal_target + adjustment
    protein_g, carbs_g, fat_g = calculate_macros(current_weight_kg, new_kcal)
    return Recalibration(
        previous_kcal=kcal_target,
        new_kcal_target=new_kcal,
        kcal_adjustment=adjustment,
        reason=reason,
        reason_tag=tag,
        weekly_change_percent=round_half_up(weekly_change_percent, 2),
        protein_g=protein_g,
        carbs_g=carbs_g,
        fat_g=fat_g,
    )
