"""Muscle-priority propagation into training templates.

Lagging-muscle labels come from the AI photo analysis and may be coarse
groups ("back") or specific muscle codes ("lats"). They are expanded through
two fixed maps into exercise names; template entries for those exercises are
flagged as priority. The functions here only compute which flags change; the
workout service writes them.
"""

from collections.abc import Iterable, Sequence

from fitplan.models import TemplateFlag

# Specific muscle code -> exercises that target it.
MUSCLE_TO_EXERCISES: dict[str, list[str]] = {
    # Chest
    "chest_mid": ["Flat Barbell Bench Press", "Dumbbell Bench Press", "Machine Chest Press"],
    "chest_upper": ["Incline Barbell Press", "Incline Dumbbell Press", "Incline DB Fly"],
    "chest_inner": ["Cable Crossover", "Pec Deck Fly"],
    # Shoulders
    "delts_front": ["DB Shoulder Press", "Barbell Overhead Press", "Machine Shoulder Press"],
    "delts_side": ["Lateral Raises", "Cable Lateral Raises"],
    "delts_rear": ["Face Pulls", "Rear Delt Fly"],
    # Back
    "lats": ["Lat Pulldown", "Pullups", "Single Arm DB Row"],
    "mid_back": ["Barbell Row", "Seated Cable Row", "T-Bar Row", "Machine Row"],
    "lower_back": ["Deadlift", "Romanian Deadlift"],
    # Arms
    "biceps": ["Barbell Curl", "Dumbbell Curl", "Cable Curl"],
    "biceps_short_head": ["Preacher Curl"],
    "brachialis": ["Hammer Curl"],
    "triceps_all": ["Weighted Dips", "Skull Crushers"],
    "triceps_lateral": ["Tricep Pushdown"],
    "triceps_long_head": ["Overhead Tricep Extension", "Dumbbell Tricep Extension"],
    # Legs
    "quads": [
        "Barbell Squat", "Leg Press", "Hack Squat", "Goblet Squat",
        "Leg Extension", "Bulgarian Split Squat", "Walking Lunges",
    ],
    "hamstrings": ["Romanian Deadlift", "Dumbbell RDL", "Leg Curl"],
    "glutes": ["Hip Thrust", "Bulgarian Split Squat"],
    "calves": ["Calf Raises"],
    "calves_soleus": ["Seated Calf Raises"],
    # Core
    "abs": ["Cable Crunch", "Ab Wheel Rollout"],
    "abs_lower": ["Hanging Leg Raise"],
}

# User-facing muscle group -> specific muscle codes.
MUSCLE_GROUP_MAPPING: dict[str, list[str]] = {
    "chest": ["chest_mid", "chest_upper", "chest_inner"],
    "shoulders": ["delts_front", "delts_side"],
    "rear_delts": ["delts_rear"],
    "back": ["lats", "mid_back", "lower_back"],
    "biceps": ["biceps", "biceps_short_head", "brachialis"],
    "triceps": ["triceps_all", "triceps_lateral", "triceps_long_head"],
    "quads": ["quads"],
    "hamstrings": ["hamstrings"],
    "glutes": ["glutes"],
    "calves": ["calves", "calves_soleus"],
    "abs": ["abs", "abs_lower"],
    # Finer labels the photo analysis may return.
    "upper_chest": ["chest_upper"],
    "front_delts": ["delts_front"],
    "side_delts": ["delts_side"],
    "upper_back": ["mid_back", "delts_rear"],
    "traps": ["mid_back"],
}


def exercises_for_muscle(muscle: str) -> list[str]:
    """Exercise names targeting a muscle group or specific muscle code.

    Unknown group labels are looked up as specific codes; unknown codes map
    to no exercises.
    """
    return prioritized_exercises([muscle])


def prioritized_exercises(lagging_muscles: Iterable[str]) -> list[str]:
    """Expand lagging-muscle labels into a de-duplicated, ordered name list."""
    names: dict[str, None] = {}
    for label in lagging_muscles:
        for muscle in MUSCLE_GROUP_MAPPING.get(label, [label]):
            for name in MUSCLE_TO_EXERCISES.get(muscle, []):
                names.setdefault(name, None)
    return list(names)


def plan_priority_updates(
    entries: Sequence[TemplateFlag], prioritized: Iterable[str]
) -> list[tuple[int, bool]]:
    """Template entries whose priority flag must change.

    Entries already in the desired state are left out, so applying the same
    lagging-muscle list twice writes nothing the second time.

    Args:
        entries: Template entries of the user's split.
        prioritized: Exercise names that should be flagged.

    Returns:
        ``(entry_id, new_flag)`` pairs in entry order.
    """
    wanted = set(prioritized)
    changes = []
    for entry in entries:
        should_be = entry.exercise_name in wanted
        if entry.is_priority != should_be:
            changes.append((entry.entry_id, should_be))
    return changes


def plan_priority_reset(entries: Sequence[TemplateFlag]) -> list[int]:
    """Ids of every flagged entry; resetting clears them all."""
    return [entry.entry_id for entry in entries if entry.is_priority]
