"""Profile persistence: unit conversion on the way in, targets recomputed on save."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitplan.db_models import UserProfile
from fitplan.errors import NotFoundError, ValidationError, require_range
from fitplan.logic import calculate_targets, estimate_body_fat
from fitplan.models import NutritionTargets, ProfileDisplay, ProfileInput, ProfileRecord
from fitplan.units import (
    cm_to_feet_inches,
    cm_to_inches,
    feet_inches_to_cm,
    kg_to_lbs,
    length_to_cm,
    round_half_up,
    weight_to_kg,
)

logger = logging.getLogger(__name__)

PROFILE_REQUIRED_MESSAGE = "Please complete your profile setup first"

# Accepted body measurements, in cm.
WAIST_RANGE_CM = (40, 200)
NECK_RANGE_CM = (20, 60)
HIPS_RANGE_CM = (60, 200)


async def get_profile(db: AsyncSession, user_id: str) -> UserProfile | None:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def require_profile(db: AsyncSession, user_id: str) -> UserProfile:
    """Load a user's profile.

    Raises:
        NotFoundError: If the user has not set up a profile yet.
    """
    profile = await get_profile(db, user_id)
    if profile is None:
        raise NotFoundError(PROFILE_REQUIRED_MESSAGE)
    return profile


def to_record(profile: UserProfile) -> ProfileRecord:
    return ProfileRecord.model_validate(profile, from_attributes=True)


def targets_of(profile: UserProfile) -> NutritionTargets:
    return NutritionTargets(
        tdee=profile.tdee,
        kcal_target=profile.kcal_target,
        protein_g=profile.protein_target_g,
        carbs_g=profile.carbs_target_g,
        fat_g=profile.fat_target_g,
    )


def _height_cm(data: ProfileInput) -> float:
    if data.unit_system == "imperial":
        if data.height_feet is None or data.height_inches is None:
            raise ValidationError("Please provide height in feet and inches", field="height")
        return feet_inches_to_cm(data.height_feet, data.height_inches)
    if not data.height_cm:
        raise ValidationError("Please provide height in centimeters", field="height_cm")
    return data.height_cm


async def upsert_profile(db: AsyncSession, user_id: str, data: ProfileInput) -> ProfileRecord:
    """Create or replace a user's profile and recompute all targets.

    Imperial input is converted to metric before validation and storage.
    Body fat is estimated when both waist and neck are supplied.

    Args:
        db: Active async database session.
        user_id: Caller identity.
        data: Profile fields in the caller's unit system.

    Returns:
        The stored profile.

    Raises:
        ValidationError: If a field is missing or out of range.
    """
    require_range("age", data.age, 16, 100, label="Age")
    require_range("training_days_per_week", data.training_days_per_week, 3, 6, label="Training days")

    height_cm = _height_cm(data)
    weight_kg = weight_to_kg(data.weight, data.unit_system)
    waist_cm = length_to_cm(data.waist or None, data.unit_system)
    neck_cm = length_to_cm(data.neck or None, data.unit_system)
    hips_cm = length_to_cm(data.hips or None, data.unit_system)
    for field, label, value, (low, high) in (
        ("waist", "Waist measurement", waist_cm, WAIST_RANGE_CM),
        ("neck", "Neck measurement", neck_cm, NECK_RANGE_CM),
        ("hips", "Hips measurement", hips_cm, HIPS_RANGE_CM),
    ):
        if value is not None:
            require_range(field, value, low, high, label=label, unit=" cm")

    targets = calculate_targets(
        data.sex, weight_kg, height_cm, data.age, data.training_days_per_week, data.goal
    )
    body_fat = None
    if waist_cm and neck_cm:
        body_fat = estimate_body_fat(data.sex, waist_cm, neck_cm, height_cm, hips_cm)

    profile = await get_profile(db, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id)
        db.add(profile)

    profile.unit_system = data.unit_system
    profile.sex = data.sex
    profile.age = data.age
    profile.height_cm = height_cm
    profile.current_weight_kg = weight_kg
    profile.waist_cm = waist_cm
    profile.neck_cm = neck_cm
    profile.hips_cm = hips_cm
    profile.estimated_body_fat_percent = body_fat
    profile.training_days_per_week = data.training_days_per_week
    profile.goal = data.goal
    profile.tdee = targets.tdee
    profile.kcal_target = targets.kcal_target
    profile.protein_target_g = targets.protein_g
    profile.carbs_target_g = targets.carbs_g
    profile.fat_target_g = targets.fat_g

    await db.commit()
    await db.refresh(profile)
    logger.info("Saved profile for %s: %d kcal (%s)", user_id, targets.kcal_target, data.goal)
    return to_record(profile)


def display_profile(profile: UserProfile) -> ProfileDisplay:
    """Convert a stored profile to the user's display units.

    Imperial weights and circumferences are rounded to 0.1; height is split
    into feet and inches. Metric values are returned as stored.
    """
    targets = targets_of(profile)
    if profile.unit_system == "imperial":
        feet, inches = cm_to_feet_inches(profile.height_cm)

        def to_in(cm: float | None) -> float | None:
            return round_half_up(cm_to_inches(cm), 1) if cm else None

        return ProfileDisplay(
            unit_system="imperial",
            weight=round_half_up(kg_to_lbs(profile.current_weight_kg), 1),
            weight_unit="lbs",
            height_cm=profile.height_cm,
            height_feet=feet,
            height_inches=inches,
            waist=to_in(profile.waist_cm),
            neck=to_in(profile.neck_cm),
            hips=to_in(profile.hips_cm),
            length_unit="in",
            estimated_body_fat_percent=profile.estimated_body_fat_percent,
            targets=targets,
        )
    return ProfileDisplay(
        unit_system="metric",
        weight=profile.current_weight_kg,
        weight_unit="kg",
        height_cm=profile.height_cm,
        waist=profile.waist_cm,
        neck=profile.neck_cm,
        hips=profile.hips_cm,
        length_unit="cm",
        estimated_body_fat_percent=profile.estimated_body_fat_percent,
        targets=targets,
    )
