"""Startup seeding of reference data.

Called automatically on startup. Each table is seeded only when empty, so
the function is safe to call repeatedly.

Seeding order:
1. ``exercises``
2. ``exercise_alternatives`` (needs exercise ids)
3. ``training_template`` for the 3/4/5/6-day splits (needs exercise ids)
4. ``food_items``
"""

import json
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitplan import catalog
from fitplan.db_models import (
    Exercise,
    ExerciseAlternative,
    FoodItem,
    TrainingTemplateEntry,
)

logger = logging.getLogger(__name__)


async def _is_empty(db: AsyncSession, model: type) -> bool:
    result = await db.execute(select(func.count()).select_from(model))
    return (result.scalar() or 0) == 0


async def _exercise_ids(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(select(Exercise.id, Exercise.name))
    return {name: exercise_id for exercise_id, name in result.all()}


async def seed_reference_data(db: AsyncSession) -> dict[str, int]:
    """Insert catalog rows into every empty reference table.

    Args:
        db: Active async database session (not committed on entry).

    Returns:
        Number of rows inserted per table; tables already populated report 0.

    Raises:
        KeyError: If a template names an exercise missing from the library.
    """
    counts = {"exercises": 0, "exercise_alternatives": 0, "training_template": 0, "food_items": 0}

    # ── Exercises ─────────────────────────────────────────────────────────────

    if await _is_empty(db, Exercise):
        for name, group, primary, ex_type, equipment in catalog.EXERCISES:
            db.add(
                Exercise(
                    name=name,
                    muscle_group=group,
                    primary_muscle=primary,
                    type=ex_type,
                    equipment_required=json.dumps(equipment),
                )
            )
        counts["exercises"] = len(catalog.EXERCISES)
        await db.flush()  # Populate exercise PKs.
    else:
        logger.info("Exercises already seeded, skipping.")

    ids = await _exercise_ids(db)

    # ── Alternatives ──────────────────────────────────────────────────────────

    if await _is_empty(db, ExerciseAlternative):
        for primary, alternative, reason in catalog.EXERCISE_ALTERNATIVES:
            if primary not in ids or alternative not in ids:
                logger.warning("Skipping alternative %s -> %s: exercise not found", primary, alternative)
                continue
            db.add(
                ExerciseAlternative(
                    primary_exercise_id=ids[primary],
                    alternative_exercise_id=ids[alternative],
                    reason=reason,
                )
            )
            counts["exercise_alternatives"] += 1
    else:
        logger.info("Exercise alternatives already seeded, skipping.")

    # ── Training splits ───────────────────────────────────────────────────────

    if await _is_empty(db, TrainingTemplateEntry):
        for total_days, days in catalog.TRAINING_SPLITS.items():
            for day_index, day_name, slots in days:
                for sequence, (name, sets, reps_min, reps_max) in enumerate(slots, start=1):
                    db.add(
                        TrainingTemplateEntry(
                            day_index=day_index,
                            total_days=total_days,
                            day_name=day_name,
                            exercise_id=ids[name],
                            sequence=sequence,
                            sets_count=sets,
                            target_reps_min=reps_min,
                            target_reps_max=reps_max,
                            is_priority=False,
                        )
                    )
                    counts["training_template"] += 1
    else:
        logger.info("Training template already seeded, skipping.")

    # ── Foods ─────────────────────────────────────────────────────────────────

    if await _is_empty(db, FoodItem):
        for name, group, protein, carbs, fat in catalog.FOOD_ITEMS:
            db.add(
                FoodItem(
                    name=name,
                    group=group,
                    protein_per_100g=protein,
                    carbs_per_100g=carbs,
                    fat_per_100g=fat,
                )
            )
        counts["food_items"] = len(catalog.FOOD_ITEMS)
    else:
        logger.info("Food items already seeded, skipping.")

    await db.commit()
    logger.info(
        "Seeding complete: %d exercise(s), %d alternative(s), %d template slot(s), %d food(s).",
        counts["exercises"],
        counts["exercise_alternatives"],
        counts["training_template"],
        counts["food_items"],
    )
    return counts
