"""SQLAlchemy ORM table definitions for the nutrition and training tracker.

Tables:
- ``user_profiles``          one profile per user with current targets
- ``weight_logs``            one weigh-in per user per day
- ``food_items``             seeded food macro table
- ``pantry_items``           grams of each food a user has on hand
- ``meal_plans``             one generated plan per user per day
- ``exercises``              seeded exercise library
- ``exercise_alternatives``  equipment substitutions between exercises
- ``training_template``      seeded 3/4/5/6-day splits with priority flags
- ``workout_sessions``       started, completed or skipped sessions
- ``session_exercises``      per-session snapshot of the template day
- ``set_logs``               logged sets of a session exercise
- ``progress_photos``        uploaded photos and their AI muscle analysis

Import this module before calling ``database.create_tables()`` so all models
are registered with ``Base.metadata``.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from fitplan.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(Base):
    """Body metrics and nutrition targets of a user. All values metric."""

    __tablename__ = "user_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    unit_system: Mapped[str] = mapped_column(String(8), default="metric")
    sex: Mapped[str] = mapped_column(String(8), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    height_cm: Mapped[float] = mapped_column(Float, nullable=False)
    current_weight_kg: Mapped[float] = mapped_column(Float, nullable=False)
    waist_cm: Mapped[float | None] = mapped_column(Float, nullable=True)
    neck_cm: Mapped[float | None] = mapped_column(Float, nullable=True)
    hips_cm: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_body_fat_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    training_days_per_week: Mapped[int] = mapped_column(Integer, nullable=False)
    goal: Mapped[str] = mapped_column(String(16), nullable=False)
    tdee: Mapped[int] = mapped_column(Integer, nullable=False)
    kcal_target: Mapped[int] = mapped_column(Integer, nullable=False)
    protein_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    carbs_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    fat_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class WeightLog(Base):
    """A daily weigh-in. ``date`` is an ISO day string; one row per user per day."""

    __tablename__ = "weight_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_weight_log_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    weight_kg: Mapped[float] = mapped_column(Float, nullable=False)
    waist_cm: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_body_fat_percent: Mapped[float | None] = mapped_column(Float, nullable=True)


class FoodItem(Base):
    __tablename__ = "food_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    group: Mapped[str] = mapped_column(String(32), nullable=False)
    protein_per_100g: Mapped[float] = mapped_column(Float, nullable=False)
    carbs_per_100g: Mapped[float] = mapped_column(Float, nullable=False)
    fat_per_100g: Mapped[float] = mapped_column(Float, nullable=False)


class PantryItem(Base):
    """Stock of one food for one user.

    Primary-key order is the pantry order the meal planner scans, so the
    first food added is the first one picked.
    """

    __tablename__ = "pantry_items"
    __table_args__ = (
        UniqueConstraint("user_id", "food_item_id", name="uq_pantry_user_food"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    food_item_id: Mapped[int] = mapped_column(ForeignKey("food_items.id"), nullable=False)
    grams_available: Mapped[float] = mapped_column(Float, nullable=False)


class MealPlan(Base):
    __tablename__ = "meal_plans"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_meal_plan_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(8), nullable=False)
    warning: Mapped[str | None] = mapped_column(Text, nullable=True)  # warnings joined by "; "
    kcal_target: Mapped[int] = mapped_column(Integer, nullable=False)
    protein_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    carbs_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    fat_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    kcal_actual: Mapped[int] = mapped_column(Integer, nullable=False)
    protein_actual_g: Mapped[int] = mapped_column(Integer, nullable=False)
    carbs_actual_g: Mapped[int] = mapped_column(Integer, nullable=False)
    fat_actual_g: Mapped[int] = mapped_column(Integer, nullable=False)
    meals: Mapped[str] = mapped_column(Text, default="[]")  # JSON list[Meal]
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Exercise(Base):
    __tablename__ = "exercises"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    muscle_group: Mapped[str] = mapped_column(String(32), nullable=False)
    primary_muscle: Mapped[str] = mapped_column(String(32), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    equipment_required: Mapped[str] = mapped_column(Text, default="[]")  # JSON list[str]


class ExerciseAlternative(Base):
    __tablename__ = "exercise_alternatives"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    primary_exercise_id: Mapped[int] = mapped_column(
        ForeignKey("exercises.id"), nullable=False, index=True
    )
    alternative_exercise_id: Mapped[int] = mapped_column(ForeignKey("exercises.id"), nullable=False)
    reason: Mapped[str] = mapped_column(String(32), nullable=False)


class TrainingTemplateEntry(Base):
    """One exercise slot of a split day. Shared by every user on that split."""

    __tablename__ = "training_template"
    __table_args__ = (
        Index("ix_training_template_split_day", "total_days", "day_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    day_index: Mapped[int] = mapped_column(Integer, nullable=False)
    total_days: Mapped[int] = mapped_column(Integer, nullable=False)
    day_name: Mapped[str] = mapped_column(String(64), nullable=False)
    exercise_id: Mapped[int] = mapped_column(ForeignKey("exercises.id"), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    sets_count: Mapped[int] = mapped_column(Integer, nullable=False)
    target_reps_min: Mapped[int] = mapped_column(Integer, nullable=False)
    target_reps_max: Mapped[int] = mapped_column(Integer, nullable=False)
    is_priority: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class WorkoutSession(Base):
    """A training session.

    The partial unique index allows at most one ``in_progress`` session per
    user; a racing second start fails with an IntegrityError.
    """

    __tablename__ = "workout_sessions"
    __table_args__ = (
        Index(
            "uq_workout_session_one_active",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'in_progress'"),
            postgresql_where=text("status = 'in_progress'"),
        ),
        Index("ix_workout_session_user_day", "user_id", "day_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    day_index: Mapped[int] = mapped_column(Integer, nullable=False)
    day_name: Mapped[str] = mapped_column(String(128), nullable=False)
    is_deload: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="in_progress", nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SessionExercise(Base):
    """Snapshot of a template slot at session start; editable by swap."""

    __tablename__ = "session_exercises"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_id: Mapped[int] = mapped_column(
        ForeignKey("workout_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    exercise_id: Mapped[int] = mapped_column(ForeignKey("exercises.id"), nullable=False)
    exercise_name: Mapped[str] = mapped_column(String(128), nullable=False)
    exercise_type: Mapped[str] = mapped_column(String(16), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    sets_count: Mapped[int] = mapped_column(Integer, nullable=False)
    target_reps_min: Mapped[int] = mapped_column(Integer, nullable=False)
    target_reps_max: Mapped[int] = mapped_column(Integer, nullable=False)
    recommended_weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    action: Mapped[str] = mapped_column(String(16), default="hold", nullable=False)
    reason: Mapped[str | None] = mapped_column(String(128), nullable=True)


class SetLog(Base):
    __tablename__ = "set_logs"
    __table_args__ = (
        UniqueConstraint("session_exercise_id", "set_number", name="uq_set_log_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_exercise_id: Mapped[int] = mapped_column(
        ForeignKey("session_exercises.id", ondelete="CASCADE"), nullable=False, index=True
    )
    set_number: Mapped[int] = mapped_column(Integer, nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    rpe: Mapped[float | None] = mapped_column(Float, nullable=True)
    pain_flag: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    logged_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class ProgressPhoto(Base):
    """An uploaded progress photo.

    ``analysis_complete`` is set once the AI call finishes; when it failed,
    the analysis columns stay NULL.
    """

    __tablename__ = "progress_photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    storage_id: Mapped[str] = mapped_column(String(256), nullable=False)
    analysis_complete: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    overall_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    lagging_muscles: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON list[str]
    strong_muscles: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON list[str]
    recommendations: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON list[str]
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class FoodLog(Base):
    """One diary entry: a meal's foods and their summed macros.

    Totals are stored rounded (kcal to 1, macros to 0.1) and recomputed
    whenever ``items`` changes.
    """

    __tablename__ = "food_logs"
    __table_args__ = (Index("ix_food_logs_user_date", "user_id", "date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    meal_type: Mapped[str] = mapped_column(String(16), nullable=False)
    entry_type: Mapped[str] = mapped_column(String(16), nullable=False)
    items: Mapped[str] = mapped_column(Text, nullable=False)  # JSON list[FoodLogItem]
    total_calories: Mapped[int] = mapped_column(Integer, nullable=False)
    total_protein: Mapped[float] = mapped_column(Float, nullable=False)
    total_carbs: Mapped[float] = mapped_column(Float, nullable=False)
    total_fat: Mapped[float] = mapped_column(Float, nullable=False)
    photo_storage_id: Mapped[str | None] = mapped_column(String(256), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    confidence: Mapped[str | None] = mapped_column(String(8), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    logged_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class CustomFood(Base):
    """A user's own food with macros per 100 g. Names are unique per user, ignoring case."""

    __tablename__ = "custom_foods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    protein_per_100g: Mapped[float] = mapped_column(Float, nullable=False)
    carbs_per_100g: Mapped[float] = mapped_column(Float, nullable=False)
    fat_per_100g: Mapped[float] = mapped_column(Float, nullable=False)
    calories_per_100g: Mapped[float] = mapped_column(Float, nullable=False)
    source: Mapped[str] = mapped_column(String(16), nullable=False)
