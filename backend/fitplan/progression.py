"""Load progression engine.

Given the set logs of an exercise from the user's last few completed,
non-deload sessions on the same training day, recommend the weight for the
next session. Rules are checked in a fixed priority order and the first one
that fires decides: pain, stall, regression (missed reps or RPE too high),
type-specific progression, hold.
"""

import math
from collections.abc import Sequence

from fitplan.models import ProgressionRecommendation, SetLogRecord
from fitplan.units import round_half_up

HISTORY_SESSIONS = 3

WEIGHT_INCREMENTS: dict[str, float] = {
    "compound_heavy": 2.5,
    "compound_pump": 5.0,
    "isolation": 2.5,
}
MICRO_INCREMENT = 1.25
PLATE_STEP = 2.5

PAIN_FACTOR = 0.9
DELOAD_FACTOR = 0.6

STALL_REP_SPREAD = 2
MAX_AVG_RPE = 9.0
HEAVY_MAX_RPE = 7.5
PUMP_MAX_RPE = 8.0


def round_to_plate(weight: float) -> float:
    """Round a weight to the nearest 2.5 kg step."""
    return round_half_up(weight / PLATE_STEP) * PLATE_STEP


def deload_weight(weight: float | None) -> float | None:
    """Scale a recommendation for a deload session (60 %, nearest 2.5 kg)."""
    if weight is None:
        return None
    return round_to_plate(weight * DELOAD_FACTOR)


def average_rpe(sets: Sequence[SetLogRecord]) -> float | None:
    rated = [s.rpe for s in sets if s.rpe is not None]
    if not rated:
        return None
    return sum(rated) / len(rated)


def total_reps(sets: Sequence[SetLogRecord]) -> int:
    return sum(s.reps for s in sets)


def is_stalled(sessions: Sequence[Sequence[SetLogRecord]]) -> bool:
    """True when 3 sessions share one weight and total reps barely moved."""
    if len(sessions) < HISTORY_SESSIONS:
        return False
    weights = [sets[0].weight for sets in sessions]
    if any(not math.isclose(w, weights[0]) for w in weights):
        return False
    reps = [total_reps(sets) for sets in sessions]
    return max(reps) - min(reps) <= STALL_REP_SPREAD


def recommend(
    history: Sequence[Sequence[SetLogRecord]],
    exercise_type: str,
    target_reps_min: int,
    target_reps_max: int,
) -> ProgressionRecommendation:
    """Recommend the next working weight for an exercise.

    Args:
        history: Set logs per prior session, newest session first, at most the
            last 3 completed non-deload sessions on this training day. Sessions
            where the exercise was not logged may be empty and are skipped.
        exercise_type: "compound_heavy", "compound_pump" or "isolation".
        target_reps_min: Lower bound of the prescribed rep range.
        target_reps_max: Upper bound of the prescribed rep range.

    Returns:
        ProgressionRecommendation. ``recommended_weight`` is ``None`` when
        there is no usable history.
    """
    if not history:
        return ProgressionRecommendation(
            recommended_weight=None,
            action="hold",
            reason="No history - pick your starting weight",
        )

    sessions = [list(sets) for sets in history if sets]
    if not sessions:
        return ProgressionRecommendation(
            recommended_weight=None,
            action="hold",
            reason="No completed sets found - pick your starting weight",
        )

    last = sessions[0]
    last_weight = last[0].weight
    increment = WEIGHT_INCREMENTS[exercise_type]

    if any(s.pain_flag for s in last):
        return ProgressionRecommendation(
            recommended_weight=round_to_plate(last_weight * PAIN_FACTOR),
            action="decrease",
            reason="Pain reported - reducing weight by 10%",
        )

    if is_stalled(sessions[:HISTORY_SESSIONS]):
        return ProgressionRecommendation(
            recommended_weight=last_weight + MICRO_INCREMENT,
            action="micro_progress",
            reason="Stalled for 3 sessions - micro progression (+1.25kg)",
        )

    below_min = sum(1 for s in last if s.reps < target_reps_min)
    if below_min >= 2:
        return ProgressionRecommendation(
            recommended_weight=last_weight - increment,
            action="decrease",
            reason=f"Multiple sets below {target_reps_min} reps - reducing weight",
        )

    avg_rpe = average_rpe(last)
    if avg_rpe is not None and avg_rpe > MAX_AVG_RPE:
        return ProgressionRecommendation(
            recommended_weight=last_weight - increment,
            action="decrease",
            reason="Average RPE too high (>9) - reducing weight",
        )

    if exercise_type == "compound_heavy":
        in_range = all(target_reps_min <= s.reps <= target_reps_max for s in last)
        if in_range and (avg_rpe is None or avg_rpe <= HEAVY_MAX_RPE):
            return ProgressionRecommendation(
                recommended_weight=last_weight + increment,
                action="increase",
                reason="All sets in range with good RPE - increasing weight",
            )
    else:
        at_max = all(s.reps >= target_reps_max for s in last)
        if at_max and (avg_rpe is None or avg_rpe <= PUMP_MAX_RPE):
            return ProgressionRecommendation(
                recommended_weight=last_weight + increment,
                action="increase",
                reason="All sets at max reps with good RPE - increasing weight",
            )

    return ProgressionRecommendation(
        recommended_weight=last_weight,
        action="hold",
        reason="Keep current weight - not yet ready to progress",
    )
