"""Food diary and custom foods.

Entries are stored with rounded totals; ``intake`` does the arithmetic and
the goal-based warnings. Entries are addressed by id and only their owner
sees them: another user's entry reads as not found.
"""

import json
import logging
from datetime import date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitplan.db_models import CustomFood, FoodLog
from fitplan.errors import NotFoundError, PermissionDeniedError, ValidationError, require_range
from fitplan.intake import DEFAULT_TARGETS, add_totals, entry_totals, intake_warnings, validate_items
from fitplan.models import (
    CustomFoodInput,
    CustomFoodRecord,
    CustomFoodUpdate,
    DailyIntake,
    DailyIntakePoint,
    DayTotals,
    FoodLogInput,
    FoodLogItem,
    FoodLogRecord,
    FoodLogUpdate,
    PhotoFoodInput,
    QuickFoodInput,
)
from fitplan.photo_service import photo_url
from fitplan.profile_service import get_profile

logger = logging.getLogger(__name__)

FOOD_LOG_NOT_FOUND = "Food log not found"
CUSTOM_FOOD_NOT_FOUND = "Custom food not found"
WEEK_DAYS = 7


def _iso_day(day: date | None) -> str:
    return (day or date.today()).isoformat()


def _totals_of(log: FoodLog) -> DayTotals:
    return DayTotals(
        calories=log.total_calories,
        protein=log.total_protein,
        carbs=log.total_carbs,
        fat=log.total_fat,
    )


def _log_record(log: FoodLog) -> FoodLogRecord:
    return FoodLogRecord(
        id=log.id,
        date=log.date,
        meal_type=log.meal_type,
        entry_type=log.entry_type,
        items=[FoodLogItem(**item) for item in json.loads(log.items)],
        totals=_totals_of(log),
        photo_url=photo_url(log.photo_storage_id) if log.photo_storage_id else None,
        description=log.description,
        confidence=log.confidence,
        is_verified=log.is_verified,
        notes=log.notes,
        logged_at=log.logged_at,
    )


def _set_items(log: FoodLog, items: list[FoodLogItem]) -> None:
    totals = entry_totals(items)
    log.items = json.dumps([item.model_dump() for item in items])
    log.total_calories = int(totals.calories)
    log.total_protein = totals.protein
    log.total_carbs = totals.carbs
    log.total_fat = totals.fat


async def _store(db: AsyncSession, log: FoodLog, items: list[FoodLogItem]) -> FoodLogRecord:
    _set_items(log, items)
    db.add(log)
    await db.commit()
    await db.refresh(log)
    logger.info(
        "Logged %s %s for user %s: %d kcal", log.entry_type, log.meal_type, log.user_id, log.total_calories
    )
    return _log_record(log)


async def _owned_log(db: AsyncSession, user_id: str, log_id: int) -> FoodLog:
    log = await db.get(FoodLog, log_id)
    if log is None or log.user_id != user_id:
        raise NotFoundError(FOOD_LOG_NOT_FOUND)
    return log


# ── Diary entries ─────────────────────────────────────────────────────────────


async def log_food(db: AsyncSession, user_id: str, data: FoodLogInput) -> FoodLogRecord:
    """Store an itemised entry.

    Raises:
        ValidationError: If there are no items, or an item is unnamed or negative.
    """
    validate_items(data.items)
    log = FoodLog(
        user_id=user_id,
        date=_iso_day(data.date),
        meal_type=data.meal_type,
        entry_type="manual",
        is_verified=True,
        notes=data.notes,
    )
    return await _store(db, log, data.items)


async def log_quick_food(db: AsyncSession, user_id: str, data: QuickFoodInput) -> FoodLogRecord:
    """Store typed-in calories and macros as a single zero-gram item."""
    item = FoodLogItem(
        name=data.name.strip(),
        grams=0,
        calories=data.calories,
        protein=data.protein,
        carbs=data.carbs,
        fat=data.fat,
    )
    validate_items([item])
    log = FoodLog(
        user_id=user_id,
        date=_iso_day(data.date),
        meal_type=data.meal_type,
        entry_type="quick",
        is_verified=True,
    )
    return await _store(db, log, [item])


async def log_photo_food(db: AsyncSession, user_id: str, data: PhotoFoodInput) -> FoodLogRecord:
    """Store a reviewed meal-photo estimate. It stays unverified until the user confirms it."""
    validate_items(data.items)
    log = FoodLog(
        user_id=user_id,
        date=_iso_day(data.date),
        meal_type=data.meal_type,
        entry_type="photo",
        photo_storage_id=data.storage_id,
        description=data.description,
        confidence=data.confidence,
        is_verified=False,
        notes=data.notes,
    )
    return await _store(db, log, data.items)


async def _logs_on(db: AsyncSession, user_id: str, iso_day: str) -> list[FoodLog]:
    result = await db.execute(
        select(FoodLog)
        .where(FoodLog.user_id == user_id, FoodLog.date == iso_day)
        .order_by(FoodLog.logged_at, FoodLog.id)
    )
    return list(result.scalars().all())


async def get_logs_by_date(db: AsyncSession, user_id: str, day: date) -> list[FoodLogRecord]:
    return [_log_record(log) for log in await _logs_on(db, user_id, day.isoformat())]


async def get_today(db: AsyncSession, user_id: str, now: datetime | None = None) -> DailyIntake:
    """Today's entries, totals and targets, with warnings for the user's goal.

    Users without a profile get default targets and no warnings.

    Args:
        db: Database session.
        user_id: Diary owner.
        now: Local time to evaluate; defaults to the current time.
    """
    now = now or datetime.now()
    logs = await _logs_on(db, user_id, now.date().isoformat())
    totals = add_totals(_totals_of(log) for log in logs)

    profile = await get_profile(db, user_id)
    if profile is None:
        targets = DEFAULT_TARGETS
        warnings = []
    else:
        targets = DayTotals(
            calories=profile.kcal_target,
            protein=profile.protein_target_g,
            carbs=profile.carbs_target_g,
            fat=profile.fat_target_g,
        )
        warnings = intake_warnings(profile.goal, totals, targets, now.hour)

    return DailyIntake(
        date=now.date().isoformat(),
        logs=[_log_record(log) for log in logs],
        totals=totals,
        targets=targets,
        warnings=warnings,
    )


async def get_weekly_summary(
    db: AsyncSession, user_id: str, today: date | None = None
) -> list[DailyIntakePoint]:
    """Daily totals for the last seven days, oldest first, including empty days."""
    today = today or date.today()
    days = [(today - timedelta(days=offset)).isoformat() for offset in range(WEEK_DAYS - 1, -1, -1)]

    result = await db.execute(
        select(FoodLog).where(
            FoodLog.user_id == user_id,
            FoodLog.date >= days[0],
            FoodLog.date <= days[-1],
        )
    )
    by_day: dict[str, list[DayTotals]] = {day: [] for day in days}
    for log in result.scalars().all():
        by_day[log.date].append(_totals_of(log))

    profile = await get_profile(db, user_id)
    target = profile.kcal_target if profile else int(DEFAULT_TARGETS.calories)
    points = []
    for day in days:
        totals = add_totals(by_day[day])
        points.append(DailyIntakePoint(date=day, target=target, **totals.model_dump()))
    return points


async def update_food_log(
    db: AsyncSession, user_id: str, log_id: int, data: FoodLogUpdate
) -> FoodLogRecord:
    """Apply the given changes. New items replace the old ones and recompute the totals.

    Raises:
        NotFoundError: If the entry does not exist or belongs to another user.
        ValidationError: If the new items are invalid.
    """
    log = await _owned_log(db, user_id, log_id)
    if data.items is not None:
        validate_items(data.items)
        _set_items(log, data.items)
    if data.is_verified is not None:
        log.is_verified = data.is_verified
    if data.notes is not None:
        log.notes = data.notes
    await db.commit()
    await db.refresh(log)
    return _log_record(log)


async def delete_food_log(db: AsyncSession, user_id: str, log_id: int) -> None:
    log = await _owned_log(db, user_id, log_id)
    await db.delete(log)
    await db.commit()


# ── Custom foods ──────────────────────────────────────────────────────────────


def _food_record(food: CustomFood) -> CustomFoodRecord:
    return CustomFoodRecord.model_validate(food, from_attributes=True)


def _check_food_values(
    name: str | None,
    protein: float | None,
    carbs: float | None,
    fat: float | None,
    calories: float | None,
) -> None:
    if name is not None and not name.strip():
        raise ValidationError("Food name is required", field="name")
    for field, label, value in (
        ("protein_per_100g", "Protein per 100 g", protein),
        ("carbs_per_100g", "Carbs per 100 g", carbs),
        ("fat_per_100g", "Fat per 100 g", fat),
    ):
        if value is not None:
            require_range(field, value, 0, 100, label=label, unit=" g")
    if calories is not None:
        require_range("calories_per_100g", calories, 0, 900, label="Calories per 100 g", unit=" kcal")


async def _food_named(db: AsyncSession, user_id: str, name: str) -> CustomFood | None:
    result = await db.execute(
        select(CustomFood).where(
            CustomFood.user_id == user_id, func.lower(CustomFood.name) == name.lower()
        )
    )
    return result.scalars().first()


async def save_custom_food(db: AsyncSession, user_id: str, data: CustomFoodInput) -> CustomFoodRecord:
    """Create a custom food, or overwrite the one with the same name (ignoring case).

    Raises:
        ValidationError: If the name is blank or a value is out of range.
    """
    _check_food_values(
        data.name, data.protein_per_100g, data.carbs_per_100g, data.fat_per_100g, data.calories_per_100g
    )
    name = data.name.strip()
    food = await _food_named(db, user_id, name)
    if food is None:
        food = CustomFood(user_id=user_id, name=name)
        db.add(food)
    food.protein_per_100g = data.protein_per_100g
    food.carbs_per_100g = data.carbs_per_100g
    food.fat_per_100g = data.fat_per_100g
    food.calories_per_100g = data.calories_per_100g
    food.source = data.source
    await db.commit()
    await db.refresh(food)
    return _food_record(food)


async def list_custom_foods(db: AsyncSession, user_id: str) -> list[CustomFoodRecord]:
    result = await db.execute(
        select(CustomFood).where(CustomFood.user_id == user_id).order_by(func.lower(CustomFood.name))
    )
    return [_food_record(f) for f in result.scalars().all()]


async def _owned_food(db: AsyncSession, user_id: str, food_id: int, action: str) -> CustomFood:
    food = await db.get(CustomFood, food_id)
    if food is None:
        raise NotFoundError(CUSTOM_FOOD_NOT_FOUND)
    if food.user_id != user_id:
        raise PermissionDeniedError(f"You don't have permission to {action} this food")
    return food


async def update_custom_food(
    db: AsyncSession, user_id: str, food_id: int, data: CustomFoodUpdate
) -> CustomFoodRecord:
    """Change the given fields of a custom food.

    Raises:
        NotFoundError: If the food does not exist.
        PermissionDeniedError: If it belongs to another user.
        ValidationError: If a new value is out of range.
    """
    food = await _owned_food(db, user_id, food_id, "update")
    _check_food_values(
        data.name, data.protein_per_100g, data.carbs_per_100g, data.fat_per_100g, data.calories_per_100g
    )
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(food, field, value.strip() if field == "name" else value)
    await db.commit()
    await db.refresh(food)
    return _food_record(food)


async def delete_custom_food(db: AsyncSession, user_id: str, food_id: int) -> None:
    food = await _owned_food(db, user_id, food_id, "delete")
    await db.delete(food)
    await db.commit()
