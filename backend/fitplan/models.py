import datetime as dt
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

Sex = Literal["male", "female"]
Goal = Literal["cut", "lean_bulk", "maintain"]
UnitSystem = Literal["metric", "imperial"]
FoodGroup = Literal["lean_protein", "fattier_protein", "starchy_carb", "fat_source"]
ExerciseType = Literal["compound_heavy", "compound_pump", "isolation"]
ProgressionAction = Literal["increase", "hold", "decrease", "micro_progress"]
SessionStatus = Literal["in_progress", "completed", "skipped"]


# ── Profile & targets ────────────────────────────────────────────────────────

class ProfileInput(BaseModel):
    """Profile data as entered by the user, in their chosen unit system.

    Metric users supply ``height_cm``; imperial users supply ``height_feet``
    and ``height_inches``. ``weight``, ``waist``, ``neck`` and ``hips`` are in
    kg/cm or lbs/in according to ``unit_system``.
    """

    unit_system: UnitSystem = "metric"
    sex: Sex
    age: int
    weight: float
    height_cm: Optional[float] = None
    height_feet: Optional[int] = None
    height_inches: Optional[float] = None
    waist: Optional[float] = None
    neck: Optional[float] = None
    hips: Optional[float] = None
    training_days_per_week: int
    goal: Goal


class NutritionTargets(BaseModel):
    """Daily energy and macro targets derived from a profile."""

    tdee: int
    kcal_target: int
    protein_g: int
    carbs_g: int
    fat_g: int


class ProfileRecord(BaseModel):
    """A stored profile (metric) with its current targets."""

    user_id: str
    unit_system: UnitSystem
    sex: Sex
    age: int
    height_cm: float
    current_weight_kg: float
    waist_cm: Optional[float] = None
    neck_cm: Optional[float] = None
    hips_cm: Optional[float] = None
    estimated_body_fat_percent: Optional[float] = None
    training_days_per_week: int
    goal: Goal
    tdee: int
    kcal_target: int
    protein_target_g: int
    carbs_target_g: int
    fat_target_g: int
    updated_at: Optional[datetime] = None


class ProfileDisplay(BaseModel):
    """Profile values converted to the user's preferred unit system."""

    unit_system: UnitSystem
    weight: float
    weight_unit: Literal["kg", "lbs"]
    height_cm: float
    height_feet: Optional[int] = None
    height_inches: Optional[int] = None
    waist: Optional[float] = None
    neck: Optional[float] = None
    hips: Optional[float] = None
    length_unit: Literal["cm", "in"]
    estimated_body_fat_percent: Optional[float] = None
    targets: NutritionTargets


# ── Weight tracking ──────────────────────────────────────────────────────────

class WeightLogInput(BaseModel):
    """A weigh-in in the user's unit system. ``date`` defaults to today."""

    date: Optional[dt.date] = None
    weight: float
    waist: Optional[float] = None


class WeightLogRecord(BaseModel):
    id: Optional[int] = None
    date: str  # ISO "YYYY-MM-DD"
    weight_kg: float
    waist_cm: Optional[float] = None
    estimated_body_fat_percent: Optional[float] = None


class WeightTrend(BaseModel):
    """Rolling-window weight trend. Statistics are None without enough data."""

    has_enough_data: bool
    message: Optional[str] = None
    entries_count: int
    avg_first: Optional[float] = None
    avg_last: Optional[float] = None
    change_kg: Optional[float] = None
    change_percent: Optional[float] = None
    weekly_change_percent: Optional[float] = None


class Recalibration(BaseModel):
    """Outcome of a calorie-target recalibration."""

    previous_kcal: int
    new_kcal_target: int
    kcal_adjustment: int
    reason: str
    reason_tag: str
    weekly_change_percent: float
    protein_g: int
    carbs_g: int
    fat_g: int


class BodyCompositionPoint(BaseModel):
    date: str
    weight: float
    body_fat_percent: Optional[float] = None


class BodyCompositionTrend(BaseModel):
    """Weight and body-fat history over a window, in display units."""

    weight_unit: Literal["kg", "lbs"]
    data_points: list[BodyCompositionPoint]
    weight_change: Optional[float] = None
    body_fat_change: Optional[float] = None


# ── Food, pantry & meal plans ────────────────────────────────────────────────

class FoodItemRecord(BaseModel):
    id: Optional[int] = None
    name: str
    group: FoodGroup
    protein_per_100g: float
    carbs_per_100g: float
    fat_per_100g: float


class PantryEntry(BaseModel):
    """Grams of one food available to a user."""

    food: FoodItemRecord
    grams_available: float


class PantryUpdate(BaseModel):
    grams_available: float


class MealItem(BaseModel):
    food_name: str
    grams: int
    protein: float
    carbs: float
    fat: float
    kcal: int


class Meal(BaseModel):
    meal_index: int  # 1-based
    items: list[MealItem]


class MacroTotals(BaseModel):
    kcal: int
    protein: int
    carbs: int
    fat: int


class MealPlanRequest(BaseModel):
    date: Optional[dt.date] = None
    meals_per_day: Optional[int] = None


class MealPlanResult(BaseModel):
    """A generated day of meals, its targets and its achieved totals."""

    date: Optional[str] = None
    status: Literal["ok", "warning"]
    warnings: list[str] = []
    targets: MacroTotals
    actual: MacroTotals
    meals: list[Meal]


# ── Exercises & sessions ─────────────────────────────────────────────────────

class ExerciseRecord(BaseModel):
    id: int
    name: str
    muscle_group: str
    primary_muscle: str
    type: ExerciseType
    equipment_required: list[str] = []


class AlternativeRecord(BaseModel):
    exercise: ExerciseRecord
    reason: str


class SetLogInput(BaseModel):
    set_number: int
    weight: float
    reps: int
    rpe: Optional[float] = None
    pain_flag: bool = False


class SetLogUpdate(BaseModel):
    """Partial edit of a logged set; omitted fields are left unchanged."""

    weight: Optional[float] = None
    reps: Optional[int] = None
    rpe: Optional[float] = None
    pain_flag: Optional[bool] = None


class SetLogRecord(BaseModel):
    """One logged set. Also the unit of history fed to the progression engine."""

    id: Optional[int] = None
    set_number: int
    weight: float
    reps: int
    rpe: Optional[float] = None
    pain_flag: bool = False


class ProgressionRecommendation(BaseModel):
    recommended_weight: Optional[float] = None
    action: ProgressionAction
    reason: str


class SessionExerciseRecord(BaseModel):
    id: int
    exercise_id: int
    exercise_name: str
    exercise_type: ExerciseType
    sequence: int
    sets_count: int
    target_reps_min: int
    target_reps_max: int
    recommended_weight: Optional[float] = None
    action: ProgressionAction
    reason: Optional[str] = None
    sets: list[SetLogRecord] = []


class SessionRecord(BaseModel):
    id: int
    date: str
    day_index: int
    day_name: str
    is_deload: bool
    status: SessionStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    exercises: list[SessionExerciseRecord] = []


class StartSessionRequest(BaseModel):
    day_index: int
    is_deload: bool = False
    date: Optional[dt.date] = None


class SwapRequest(BaseModel):
    new_exercise_id: int


# ── Training plan & priorities ───────────────────────────────────────────────

class TemplateFlag(BaseModel):
    """Minimal view of a template entry used for priority propagation."""

    entry_id: int
    exercise_name: str
    is_priority: bool = False


class PlanExercise(BaseModel):
    exercise_id: int
    exercise_name: str
    muscle_group: str
    sequence: int
    sets_count: int
    target_reps_min: int
    target_reps_max: int
    is_priority: bool


class PlanDay(BaseModel):
    day_index: int
    day_name: str
    priority_count: int
    exercises: list[PlanExercise]


class MuscleAnalysis(BaseModel):
    """Structured result of an AI progress-photo analysis."""

    overall_score: float = Field(ge=1, le=10)
    lagging_muscles: list[str] = []
    strong_muscles: list[str] = []
    recommendations: list[str] = []


class WorkoutPlan(BaseModel):
    total_days: int
    days: list[PlanDay]
    total_priority_exercises: int
    latest_analysis: Optional[MuscleAnalysis] = None


class PriorityRequest(BaseModel):
    lagging_muscles: list[str]


class PriorityUpdateResult(BaseModel):
    lagging_muscles: list[str]
    exercises_prioritized: list[str]
    updated_count: int


class PriorityResetResult(BaseModel):
    reset_count: int


# ── Progress photos ──────────────────────────────────────────────────────────

class PhotoInput(BaseModel):
    storage_id: str
    date: Optional[dt.date] = None


class PhotoRecord(BaseModel):
    id: int
    date: str
    storage_id: str
    url: str
    analysis_complete: bool
    analysis: Optional[MuscleAnalysis] = None
    uploaded_at: datetime


# ── Food diary ───────────────────────────────────────────────────────────────

MealType = Literal["breakfast", "lunch", "dinner", "snack"]
EntryType = Literal["manual", "quick", "photo"]
Confidence = Literal["high", "medium", "low"]
FoodSource = Literal["ai_lookup", "manual"]


class FoodLogItem(BaseModel):
    """One eaten food with the macros of the portion, not per 100 g."""

    name: str
    grams: float
    calories: float
    protein: float
    carbs: float
    fat: float


class FoodLogInput(BaseModel):
    """An itemised entry. ``date`` defaults to today."""

    meal_type: MealType
    items: list[FoodLogItem]
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class QuickFoodInput(BaseModel):
    """Calories and macros typed in directly, without a food breakdown."""

    meal_type: MealType
    name: str
    calories: float
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    date: Optional[dt.date] = None


class PhotoFoodInput(BaseModel):
    """A meal-photo estimate the user has reviewed and wants to keep."""

    meal_type: MealType
    storage_id: str
    description: str
    items: list[FoodLogItem]
    confidence: Confidence
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class FoodLogUpdate(BaseModel):
    items: Optional[list[FoodLogItem]] = None
    is_verified: Optional[bool] = None
    notes: Optional[str] = None


class DayTotals(BaseModel):
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0


class FoodLogRecord(BaseModel):
    id: int
    date: str
    meal_type: MealType
    entry_type: EntryType
    items: list[FoodLogItem]
    totals: DayTotals
    photo_url: Optional[str] = None
    description: Optional[str] = None
    confidence: Optional[Confidence] = None
    is_verified: bool
    notes: Optional[str] = None
    logged_at: datetime


class IntakeWarning(BaseModel):
    type: Literal["under", "over", "info"]
    message: str


class DailyIntake(BaseModel):
    """A day of food logs against the user's targets."""

    date: str
    logs: list[FoodLogRecord]
    totals: DayTotals
    targets: DayTotals
    warnings: list[IntakeWarning] = []


class DailyIntakePoint(BaseModel):
    date: str
    calories: float
    protein: float
    carbs: float
    fat: float
    target: int


# ── Custom foods & AI estimates ──────────────────────────────────────────────

class CustomFoodInput(BaseModel):
    name: str
    protein_per_100g: float
    carbs_per_100g: float
    fat_per_100g: float
    calories_per_100g: float
    source: FoodSource = "manual"


class CustomFoodUpdate(BaseModel):
    name: Optional[str] = None
    protein_per_100g: Optional[float] = None
    carbs_per_100g: Optional[float] = None
    fat_per_100g: Optional[float] = None
    calories_per_100g: Optional[float] = None


class CustomFoodRecord(BaseModel):
    id: int
    name: str
    protein_per_100g: float
    carbs_per_100g: float
    fat_per_100g: float
    calories_per_100g: float
    source: FoodSource


class FoodLookupRequest(BaseModel):
    food_name: str


class FoodLookup(BaseModel):
    """AI nutrition facts for one food, per 100 g."""

    name: str
    protein_per_100g: float
    carbs_per_100g: float
    fat_per_100g: float
    calories_per_100g: int
    confidence: Confidence


class MealDescriptionRequest(BaseModel):
    description: str


class MealPhotoRequest(BaseModel):
    storage_id: str


class MealEstimate(BaseModel):
    """AI breakdown of a described or photographed meal."""

    description: str
    items: list[FoodLogItem]
    totals: DayTotals
    confidence: Confidence
    tips: Optional[str] = None
