"""Nutrition persistence: weight logs, target recalibration, pantry, meal plans.

All functions are async and take the ``AsyncSession`` injected via the
``get_db`` FastAPI dependency. Calculations are delegated to ``logic``,
``trends`` and ``meal_planner``; this module only loads inputs and writes
results, committing once per operation.
"""

import json
import logging
from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fitplan.db_models import FoodItem, MealPlan, PantryItem, WeightLog
from fitplan.errors import InsufficientDataError, NotFoundError, StateError, ValidationError, require_range
from fitplan.logic import estimate_body_fat
from fitplan.meal_planner import generate_meal_plan
from fitplan.models import (
    BodyCompositionTrend,
    FoodItemRecord,
    MacroTotals,
    Meal,
    MealPlanResult,
    PantryEntry,
    Recalibration,
    WeightLogInput,
    WeightLogRecord,
    WeightTrend,
)
from fitplan.profile_service import WAIST_RANGE_CM, require_profile, targets_of
from fitplan.trends import (
    body_composition_trend,
    recalibrate_targets,
    recent_logs,
    trend_statistics,
    weight_trend,
)
from fitplan.units import length_to_cm, weight_to_kg

logger = logging.getLogger(__name__)


def _iso_day(day: date | None = None) -> str:
    return (day or date.today()).isoformat()


def _log_record(log: WeightLog) -> WeightLogRecord:
    return WeightLogRecord.model_validate(log, from_attributes=True)


# ── Weight logs ───────────────────────────────────────────────────────────────


async def log_weight(db: AsyncSession, user_id: str, data: WeightLogInput) -> WeightLogRecord:
    """Record (or overwrite) the weigh-in for a day.

    Values are converted from the profile's unit system. When a waist is
    given and the profile has a neck measurement, body fat is estimated.
    The profile's current weight, and waist/body fat when known, follow the
    newest entry.

    Args:
        db: Active async database session.
        user_id: Caller identity.
        data: Weight and optional waist in the user's units.

    Returns:
        The stored log.

    Raises:
        NotFoundError: If the user has no profile.
        ValidationError: If weight or waist is out of range.
    """
    profile = await require_profile(db, user_id)
    weight_kg = weight_to_kg(data.weight, profile.unit_system)
    waist_cm = length_to_cm(data.waist or None, profile.unit_system)

    require_range("weight_kg", weight_kg, 30, 300, label="Weight", unit=" kg")
    if waist_cm is not None:
        require_range("waist_cm", waist_cm, *WAIST_RANGE_CM, label="Waist measurement", unit=" cm")

    body_fat = None
    if waist_cm and profile.neck_cm:
        body_fat = estimate_body_fat(
            profile.sex, waist_cm, profile.neck_cm, profile.height_cm, profile.hips_cm
        )

    log_date = _iso_day(data.date)
    result = await db.execute(
        select(WeightLog).where(WeightLog.user_id == user_id, WeightLog.date == log_date)
    )
    log = result.scalar_one_or_none()
    if log is None:
        log = WeightLog(user_id=user_id, date=log_date)
        db.add(log)
    log.weight_kg = weight_kg
    log.waist_cm = waist_cm
    log.estimated_body_fat_percent = body_fat

    profile.current_weight_kg = weight_kg
    if waist_cm:
        profile.waist_cm = waist_cm
    if body_fat:
        profile.estimated_body_fat_percent = body_fat

    await db.commit()
    await db.refresh(log)
    return _log_record(log)


async def get_weight_logs(db: AsyncSession, user_id: str) -> list[WeightLogRecord]:
    """All weigh-ins of a user, oldest first."""
    result = await db.execute(
        select(WeightLog).where(WeightLog.user_id == user_id).order_by(WeightLog.date)
    )
    return [_log_record(log) for log in result.scalars().all()]


async def get_weight_trend(db: AsyncSession, user_id: str) -> WeightTrend:
    return weight_trend(await get_weight_logs(db, user_id))


async def get_body_composition(
    db: AsyncSession, user_id: str, days: int = 90
) -> BodyCompositionTrend:
    profile = await require_profile(db, user_id)
    logs = await get_weight_logs(db, user_id)
    return body_composition_trend(logs, profile.unit_system, days)


async def recalculate_targets(db: AsyncSession, user_id: str) -> Recalibration:
    """Adjust the calorie target from the last 7 days of weigh-ins.

    Raises:
        NotFoundError: If the user has no profile.
        InsufficientDataError: With fewer than 3 weigh-ins in the window.
    """
    profile = await require_profile(db, user_id)
    stats = trend_statistics(recent_logs(await get_weight_logs(db, user_id)))
    if stats is None:
        raise InsufficientDataError(
            "Need at least 3 weight entries in the last 7 days to recalculate"
        )

    outcome = recalibrate_targets(
        profile.goal, profile.kcal_target, profile.current_weight_kg, stats.weekly_change_percent
    )
    profile.kcal_target = outcome.new_kcal_target
    profile.protein_target_g = outcome.protein_g
    profile.carbs_target_g = outcome.carbs_g
    profile.fat_target_g = outcome.fat_g
    await db.commit()

    logger.info(
        "Recalibrated %s: %d -> %d kcal (%s)",
        user_id,
        outcome.previous_kcal,
        outcome.new_kcal_target,
        outcome.reason_tag,
    )
    return outcome


# ── Foods & pantry ────────────────────────────────────────────────────────────


def _food_record(food: FoodItem) -> FoodItemRecord:
    return FoodItemRecord.model_validate(food, from_attributes=True)


async def list_foods(db: AsyncSession) -> list[FoodItemRecord]:
    result = await db.execute(select(FoodItem).order_by(FoodItem.id))
    return [_food_record(food) for food in result.scalars().all()]


async def get_pantry(db: AsyncSession, user_id: str) -> list[PantryEntry]:
    """The user's pantry in insertion order, joined with food macros."""
    result = await db.execute(
        select(PantryItem, FoodItem)
        .join(FoodItem, PantryItem.food_item_id == FoodItem.id)
        .where(PantryItem.user_id == user_id)
        .order_by(PantryItem.id)
    )
    return [
        PantryEntry(food=_food_record(food), grams_available=item.grams_available)
        for item, food in result.all()
    ]


async def set_pantry_item(
    db: AsyncSession, user_id: str, food_item_id: int, grams_available: float
) -> PantryEntry:
    """Set the grams on hand for a food, adding it to the pantry if absent.

    Raises:
        ValidationError: If ``grams_available`` is negative.
        NotFoundError: If the food does not exist.
    """
    if grams_available < 0:
        raise ValidationError("Grams available cannot be negative", field="grams_available")
    food = await db.get(FoodItem, food_item_id)
    if food is None:
        raise NotFoundError(f"Food item {food_item_id} not found")

    result = await db.execute(
        select(PantryItem).where(
            PantryItem.user_id == user_id, PantryItem.food_item_id == food_item_id
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        item = PantryItem(user_id=user_id, food_item_id=food_item_id, grams_available=grams_available)
        db.add(item)
    else:
        item.grams_available = grams_available
    await db.commit()
    return PantryEntry(food=_food_record(food), grams_available=grams_available)


async def remove_pantry_item(db: AsyncSession, user_id: str, food_item_id: int) -> None:
    """Delete a food from the user's pantry.

    Raises:
        NotFoundError: If the food is not in this user's pantry.
    """
    result = await db.execute(
        select(PantryItem).where(
            PantryItem.user_id == user_id, PantryItem.food_item_id == food_item_id
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFoundError("Pantry item not found")
    await db.delete(item)
    await db.commit()


# ── Meal plans ────────────────────────────────────────────────────────────────


def _plan_result(plan: MealPlan) -> MealPlanResult:
    return MealPlanResult(
        date=plan.date,
        status=plan.status,
        warnings=plan.warning.split("; ") if plan.warning else [],
        targets=MacroTotals(
            kcal=plan.kcal_target,
            protein=plan.protein_target_g,
            carbs=plan.carbs_target_g,
            fat=plan.fat_target_g,
        ),
        actual=MacroTotals(
            kcal=plan.kcal_actual,
            protein=plan.protein_actual_g,
            carbs=plan.carbs_actual_g,
            fat=plan.fat_actual_g,
        ),
        meals=[Meal.model_validate(m) for m in json.loads(plan.meals)],
    )


async def create_meal_plan(
    db: AsyncSession,
    user_id: str,
    meals_per_day: int,
    plan_date: date | None = None,
) -> MealPlanResult:
    """Generate a meal plan from the pantry and replace the day's stored plan.

    The pantry itself is not decremented. The old plan is deleted and the new
    one inserted in the same transaction.

    Raises:
        NotFoundError: If the user has no profile.
        ValidationError: If ``meals_per_day`` is outside 1..6.
        PlanningError: If the pantry cannot support a plan.
        StateError: If a concurrent generation for the same day won the race.
    """
    profile = await require_profile(db, user_id)
    pantry = await get_pantry(db, user_id)
    plan_day = _iso_day(plan_date)
    result = generate_meal_plan(pantry, targets_of(profile), meals_per_day, plan_day)

    await db.execute(delete(MealPlan).where(MealPlan.user_id == user_id, MealPlan.date == plan_day))
    db.add(
        MealPlan(
            user_id=user_id,
            date=plan_day,
            status=result.status,
            warning="; ".join(result.warnings) if result.warnings else None,
            kcal_target=result.targets.kcal,
            protein_target_g=result.targets.protein,
            carbs_target_g=result.targets.carbs,
            fat_target_g=result.targets.fat,
            kcal_actual=result.actual.kcal,
            protein_actual_g=result.actual.protein,
            carbs_actual_g=result.actual.carbs,
            fat_actual_g=result.actual.fat,
            meals=json.dumps([meal.model_dump() for meal in result.meals]),
        )
    )
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise StateError("Meal plan is being regenerated, please retry") from exc

    logger.info(
        "Meal plan for %s on %s: %s (%d warning(s))",
        user_id,
        plan_day,
        result.status,
        len(result.warnings),
    )
    return result


async def get_meal_plan(db: AsyncSession, user_id: str, plan_date: date) -> MealPlanResult:
    """Load the stored plan for a day.

    Raises:
        NotFoundError: If no plan exists for that day.
    """
    result = await db.execute(
        select(MealPlan).where(MealPlan.user_id == user_id, MealPlan.date == plan_date.isoformat())
    )
    plan = result.scalar_one_or_none()
    if plan is None:
        raise NotFoundError(f"No meal plan for {plan_date}")
    return _plan_result(plan)
