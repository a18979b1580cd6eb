"""Unit tests for muscle-priority propagation.

Rules:
- Group labels, specific muscle codes and unknown labels are all covered.
- Applying the same labels twice must change nothing the second time.
"""

import pytest

from fitplan.models import TemplateFlag
from fitplan.priorities import (
    exercises_for_muscle,
    plan_priority_reset,
    plan_priority_updates,
    prioritized_exercises,
)


def _entries() -> list[TemplateFlag]:
    return [
        TemplateFlag(entry_id=1, exercise_name="Flat Barbell Bench Press"),
        TemplateFlag(entry_id=2, exercise_name="Lat Pulldown"),
        TemplateFlag(entry_id=3, exercise_name="Lateral Raises", is_priority=True),
        TemplateFlag(entry_id=4, exercise_name="Barbell Squat"),
    ]


def _apply(entries: list[TemplateFlag], changes: list[tuple[int, bool]]) -> list[TemplateFlag]:
    updates = dict(changes)
    return [
        e.model_copy(update={"is_priority": updates.get(e.entry_id, e.is_priority)})
        for e in entries
    ]


class TestPrioritizedExercises:
    def test_group_expands_to_all_specific_muscles(self) -> None:
        names = prioritized_exercises(["chest"])
        assert names[0] == "Flat Barbell Bench Press"
        assert "Incline DB Fly" in names
        assert "Pec Deck Fly" in names
        assert len(names) == 8

    def test_specific_code_used_directly(self) -> None:
        assert prioritized_exercises(["lats"]) == ["Lat Pulldown", "Pullups", "Single Arm DB Row"]

    def test_shared_exercise_listed_once(self) -> None:
        names = prioritized_exercises(["quads", "glutes"])
        assert names.count("Bulgarian Split Squat") == 1

    def test_unknown_label_matches_nothing(self) -> None:
        assert prioritized_exercises(["forearms"]) == []

    @pytest.mark.parametrize(
        ("label", "first"),
        [
            ("upper_chest", "Incline Barbell Press"),
            ("front_delts", "DB Shoulder Press"),
            ("side_delts", "Lateral Raises"),
            ("upper_back", "Barbell Row"),
            ("traps", "Barbell Row"),
        ],
    )
    def test_finer_analysis_labels_map_to_exercises(self, label: str, first: str) -> None:
        assert prioritized_exercises([label])[0] == first

    def test_upper_back_includes_rear_delts(self) -> None:
        assert "Face Pulls" in prioritized_exercises(["upper_back"])

    def test_exercises_for_muscle(self) -> None:
        assert exercises_for_muscle("calves") == ["Calf Raises", "Seated Calf Raises"]


class TestPlanPriorityUpdates:
    def test_only_changed_entries_returned(self) -> None:
        changes = plan_priority_updates(_entries(), prioritized_exercises(["chest", "back"]))
        assert changes == [(1, True), (2, True), (3, False)]

    def test_idempotent(self) -> None:
        prioritized = prioritized_exercises(["chest", "back"])
        entries = _apply(_entries(), plan_priority_updates(_entries(), prioritized))
        assert plan_priority_updates(entries, prioritized) == []

    def test_empty_labels_clear_existing_flags(self) -> None:
        assert plan_priority_updates(_entries(), []) == [(3, False)]


class TestPlanPriorityReset:
    def test_clears_every_flag(self) -> None:
        entries = _apply(_entries(), [(1, True), (4, True)])
        assert plan_priority_reset(entries) == [1, 3, 4]

    def test_nothing_flagged(self) -> None:
        assert plan_priority_reset(_apply(_entries(), [(3, False)])) == []
