"""FastAPI application entry point.

Defines the REST API endpoints. Handlers are thin: all business logic is
delegated to the pure engines (logic, trends, meal_planner, progression,
priorities, intake) through the *_service modules.

Every user-scoped route identifies the caller by the ``X-User-Id`` header,
which the upstream auth layer sets.

Run with:
    uvicorn fitplan.main:app --reload --port 8000
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncGenerator, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fitplan import (
    food_service,
    llm_service,
    nutrition_service,
    photo_service,
    profile_service,
    workout_service,
)
from fitplan.config import settings
from fitplan.database import AsyncSessionLocal, create_tables, get_db
from fitplan.errors import FitPlanError
from fitplan.models import (
    AlternativeRecord,
    BodyCompositionTrend,
    CustomFoodInput,
    CustomFoodRecord,
    CustomFoodUpdate,
    DailyIntake,
    DailyIntakePoint,
    ExerciseRecord,
    FoodItemRecord,
    FoodLogInput,
    FoodLogRecord,
    FoodLogUpdate,
    FoodLookup,
    FoodLookupRequest,
    MealDescriptionRequest,
    MealEstimate,
    MealPhotoRequest,
    MealPlanRequest,
    MealPlanResult,
    MuscleAnalysis,
    NutritionTargets,
    PantryEntry,
    PantryUpdate,
    PhotoFoodInput,
    PhotoInput,
    PhotoRecord,
    PriorityRequest,
    PriorityResetResult,
    PriorityUpdateResult,
    ProfileDisplay,
    ProfileInput,
    ProfileRecord,
    QuickFoodInput,
    Recalibration,
    SessionExerciseRecord,
    SessionRecord,
    SetLogInput,
    SetLogRecord,
    SetLogUpdate,
    StartSessionRequest,
    SwapRequest,
    WeightLogInput,
    WeightLogRecord,
    WeightTrend,
    WorkoutPlan,
)
from fitplan.seed import seed_reference_data

# Import ORM models so Base.metadata is populated before create_tables() runs.
import fitplan.db_models  # noqa: F401

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: create tables and seed reference data."""
    await create_tables()
    async with AsyncSessionLocal() as db:
        await seed_reference_data(db)
    yield


app = FastAPI(
    title="FitPlan API",
    description=(
        "Nutrition and training tracker. "
        "Profile → calorie/macro targets → pantry meal plans; "
        "food diary → intake warnings, with AI food estimates; "
        "workout sessions → progression recommendations; "
        "progress photos → training priorities."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FitPlanError)
async def fitplan_error_handler(request: Request, exc: FitPlanError) -> JSONResponse:
    """Render domain errors as ``{"detail", "error_code"}`` with the class status."""
    logger.warning(
        "%s %s -> %d %s: %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.error_code,
        exc.message,
    )
    body: dict[str, object] = {"detail": exc.message, "error_code": exc.error_code}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(status_code=exc.status_code, content=body)


async def get_current_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity from the ``X-User-Id`` header; 401 when absent."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Please sign in to continue.")
    return x_user_id.strip()


# ── System ────────────────────────────────────────────────────────────────────


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Confirm the API is running."""
    return {"status": "ok"}


# ── Profile ───────────────────────────────────────────────────────────────────


@app.get("/profile", response_model=ProfileRecord, tags=["profile"])
async def get_profile(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> ProfileRecord:
    profile = await profile_service.require_profile(db, user_id)
    return profile_service.to_record(profile)


@app.get("/profile/display", response_model=ProfileDisplay, tags=["profile"])
async def get_profile_display(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> ProfileDisplay:
    """Profile values converted to the user's preferred unit system."""
    profile = await profile_service.require_profile(db, user_id)
    return profile_service.display_profile(profile)


@app.put("/profile", response_model=ProfileRecord, tags=["profile"])
async def put_profile(
    data: ProfileInput,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileRecord:
    """Create or update the profile; targets are recomputed from scratch."""
    return await profile_service.upsert_profile(db, user_id, data)


# ── Nutrition ─────────────────────────────────────────────────────────────────


@app.get("/nutrition/targets", response_model=NutritionTargets, tags=["nutrition"])
async def get_targets(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> NutritionTargets:
    profile = await profile_service.require_profile(db, user_id)
    return profile_service.targets_of(profile)


@app.post("/nutrition/weight", response_model=WeightLogRecord, tags=["nutrition"])
async def log_weight(
    data: WeightLogInput,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> WeightLogRecord:
    """Record a weigh-in (in the profile's units); one entry per day."""
    return await nutrition_service.log_weight(db, user_id, data)


@app.get("/nutrition/weight", response_model=list[WeightLogRecord], tags=["nutrition"])
async def list_weight_logs(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> list[WeightLogRecord]:
    return await nutrition_service.get_weight_logs(db, user_id)


@app.get("/nutrition/trend", response_model=WeightTrend, tags=["nutrition"])
async def get_weight_trend(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> WeightTrend:
    return await nutrition_service.get_weight_trend(db, user_id)


@app.get(
    "/nutrition/body-composition",
    response_model=BodyCompositionTrend,
    tags=["nutrition"],
)
async def get_body_composition(
    days: int = 90,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BodyCompositionTrend:
    return await nutrition_service.get_body_composition(db, user_id, days)


@app.post("/nutrition/recalculate", response_model=Recalibration, tags=["nutrition"])
async def recalculate(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> Recalibration:
    """Adjust the calorie target from the last week's weight trend."""
    return await nutrition_service.recalculate_targets(db, user_id)


# ── Foods & pantry ────────────────────────────────────────────────────────────


@app.get("/foods", response_model=list[FoodItemRecord], tags=["pantry"])
async def list_foods(db: AsyncSession = Depends(get_db)) -> list[FoodItemRecord]:
    return await nutrition_service.list_foods(db)


@app.get("/pantry", response_model=list[PantryEntry], tags=["pantry"])
async def get_pantry(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> list[PantryEntry]:
    return await nutrition_service.get_pantry(db, user_id)


@app.put("/pantry/{food_item_id}", response_model=PantryEntry, tags=["pantry"])
async def set_pantry_item(
    food_item_id: int,
    data: PantryUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PantryEntry:
    return await nutrition_service.set_pantry_item(db, user_id, food_item_id, data.grams_available)


@app.delete("/pantry/{food_item_id}", tags=["pantry"])
async def remove_pantry_item(
    food_item_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    await nutrition_service.remove_pantry_item(db, user_id, food_item_id)
    return {"status": "deleted"}


# ── Meal plans ────────────────────────────────────────────────────────────────


@app.post("/meal-plans", response_model=MealPlanResult, tags=["meal-plans"])
async def create_meal_plan(
    request: MealPlanRequest,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MealPlanResult:
    """Generate the day's meal plan from the pantry, replacing any earlier one."""
    meals = (
        request.meals_per_day
        if request.meals_per_day is not None
        else settings.default_meals_per_day
    )
    return await nutrition_service.create_meal_plan(db, user_id, meals, request.date)


@app.get("/meal-plans/{plan_date}", response_model=MealPlanResult, tags=["meal-plans"])
async def get_meal_plan(
    plan_date: date,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MealPlanResult:
    return await nutrition_service.get_meal_plan(db, user_id, plan_date)


# ── Exercises ─────────────────────────────────────────────────────────────────


@app.get(
    "/exercises/{exercise_id}/alternatives",
    response_model=list[AlternativeRecord],
    tags=["exercises"],
)
async def get_alternatives(
    exercise_id: int, db: AsyncSession = Depends(get_db)
) -> list[AlternativeRecord]:
    return await workout_service.get_alternatives(db, exercise_id)


@app.get(
    "/exercises/for-muscle/{muscle}",
    response_model=list[ExerciseRecord],
    tags=["exercises"],
)
async def get_exercises_for_muscle(
    muscle: str, db: AsyncSession = Depends(get_db)
) -> list[ExerciseRecord]:
    return await workout_service.get_exercises_for_muscle(db, muscle)


# ── Workouts ──────────────────────────────────────────────────────────────────


@app.get("/workouts/plan", response_model=WorkoutPlan, tags=["workouts"])
async def get_workout_plan(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> WorkoutPlan:
    """The user's weekly split with priority flags and the latest photo analysis."""
    analysis = await photo_service.get_latest_analysis(db, user_id)
    return await workout_service.get_workout_plan(db, user_id, analysis)


@app.get("/workouts/active", response_model=Optional[SessionRecord], tags=["workouts"])
async def get_active_session(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> Optional[SessionRecord]:
    return await workout_service.get_active_session(db, user_id)


@app.get("/workouts/recent", response_model=list[SessionRecord], tags=["workouts"])
async def get_recent_sessions(
    limit: int = 10,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[SessionRecord]:
    return await workout_service.get_recent_sessions(db, user_id, limit)


@app.post("/workouts/sessions", response_model=SessionRecord, tags=["workouts"])
async def start_session(
    request: StartSessionRequest,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SessionRecord:
    """Start a template day; returns 409 while another session is in progress."""
    return await workout_service.start_session(
        db, user_id, request.day_index, request.is_deload, request.date
    )


@app.get("/workouts/sessions/{session_id}", response_model=SessionRecord, tags=["workouts"])
async def get_session(
    session_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SessionRecord:
    return await workout_service.get_session(db, user_id, session_id)


@app.post(
    "/workouts/sessions/{session_id}/finish",
    response_model=SessionRecord,
    tags=["workouts"],
)
async def finish_session(
    session_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SessionRecord:
    return await workout_service.finish_session(db, user_id, session_id)


@app.post(
    "/workouts/sessions/{session_id}/skip",
    response_model=SessionRecord,
    tags=["workouts"],
)
async def skip_session(
    session_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SessionRecord:
    return await workout_service.skip_session(db, user_id, session_id)


@app.post(
    "/workouts/session-exercises/{session_exercise_id}/swap",
    response_model=SessionExerciseRecord,
    tags=["workouts"],
)
async def swap_exercise(
    session_exercise_id: int,
    request: SwapRequest,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SessionExerciseRecord:
    return await workout_service.swap_exercise(
        db, user_id, session_exercise_id, request.new_exercise_id
    )


@app.post(
    "/workouts/session-exercises/{session_exercise_id}/sets",
    response_model=SetLogRecord,
    tags=["workouts"],
)
async def log_set(
    session_exercise_id: int,
    data: SetLogInput,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SetLogRecord:
    return await workout_service.log_set(db, user_id, session_exercise_id, data)


@app.patch("/workouts/sets/{set_id}", response_model=SetLogRecord, tags=["workouts"])
async def update_set(
    set_id: int,
    data: SetLogUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SetLogRecord:
    return await workout_service.update_set(db, user_id, set_id, data)


@app.post("/workouts/priorities", response_model=PriorityUpdateResult, tags=["workouts"])
async def apply_priorities(
    request: PriorityRequest,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PriorityUpdateResult:
    """Flag split exercises that train the given lagging muscles."""
    return await workout_service.apply_priorities(db, user_id, request.lagging_muscles)


@app.post(
    "/workouts/priorities/reset",
    response_model=PriorityResetResult,
    tags=["workouts"],
)
async def reset_priorities(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> PriorityResetResult:
    return await workout_service.reset_priorities(db, user_id)


# ── Progress photos ───────────────────────────────────────────────────────────


@app.post("/photos", response_model=PhotoRecord, tags=["photos"])
async def save_photo(
    data: PhotoInput,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PhotoRecord:
    """Store an uploaded photo and schedule its AI analysis."""
    record = await photo_service.save_photo(db, user_id, data)
    background_tasks.add_task(photo_service.run_analysis, record.id)
    return record


@app.get("/photos", response_model=list[PhotoRecord], tags=["photos"])
async def list_photos(
    limit: int = 20,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[PhotoRecord]:
    return await photo_service.list_photos(db, user_id, limit)


@app.get(
    "/photos/latest-analysis",
    response_model=Optional[MuscleAnalysis],
    tags=["photos"],
)
async def get_latest_analysis(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> Optional[MuscleAnalysis]:
    return await photo_service.get_latest_analysis(db, user_id)


@app.post("/photos/{photo_id}/retry", response_model=PhotoRecord, tags=["photos"])
async def retry_analysis(
    photo_id: int,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PhotoRecord:
    """Clear a photo's analysis and run it again."""
    record = await photo_service.reset_analysis(db, user_id, photo_id)
    background_tasks.add_task(photo_service.run_analysis, record.id)
    return record


@app.delete("/photos/{photo_id}", tags=["photos"])
async def delete_photo(
    photo_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    await photo_service.delete_photo(db, user_id, photo_id)
    return {"status": "deleted"}


# ── Food diary ────────────────────────────────────────────────────────────────


@app.post("/food-logs", response_model=FoodLogRecord, tags=["food"])
async def log_food(
    data: FoodLogInput,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> FoodLogRecord:
    return await food_service.log_food(db, user_id, data)


@app.post("/food-logs/quick", response_model=FoodLogRecord, tags=["food"])
async def log_quick_food(
    data: QuickFoodInput,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> FoodLogRecord:
    return await food_service.log_quick_food(db, user_id, data)


@app.post("/food-logs/photo", response_model=FoodLogRecord, tags=["food"])
async def log_photo_food(
    data: PhotoFoodInput,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> FoodLogRecord:
    """Keep a reviewed meal-photo estimate as an unverified entry."""
    return await food_service.log_photo_food(db, user_id, data)


@app.get("/food-logs", response_model=list[FoodLogRecord], tags=["food"])
async def get_food_logs(
    day: date = Query(alias="date"),
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[FoodLogRecord]:
    return await food_service.get_logs_by_date(db, user_id, day)


@app.get("/food-logs/today", response_model=DailyIntake, tags=["food"])
async def get_today_intake(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> DailyIntake:
    """Today's entries and totals against targets, with goal-based warnings."""
    return await food_service.get_today(db, user_id)


@app.get("/food-logs/weekly", response_model=list[DailyIntakePoint], tags=["food"])
async def get_weekly_intake(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> list[DailyIntakePoint]:
    return await food_service.get_weekly_summary(db, user_id)


@app.patch("/food-logs/{log_id}", response_model=FoodLogRecord, tags=["food"])
async def update_food_log(
    log_id: int,
    data: FoodLogUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> FoodLogRecord:
    return await food_service.update_food_log(db, user_id, log_id, data)


@app.delete("/food-logs/{log_id}", tags=["food"])
async def delete_food_log(
    log_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    await food_service.delete_food_log(db, user_id, log_id)
    return {"status": "deleted"}


@app.post("/food-logs/estimate", response_model=MealEstimate, tags=["food"])
async def estimate_meal_description(
    request: MealDescriptionRequest, user_id: str = Depends(get_current_user)
) -> MealEstimate:
    """AI breakdown of a described meal. Nothing is stored."""
    return await asyncio.to_thread(llm_service.estimate_meal_from_description, request.description)


@app.post("/food-logs/photo-estimate", response_model=MealEstimate, tags=["food"])
async def estimate_meal_photo(
    request: MealPhotoRequest, user_id: str = Depends(get_current_user)
) -> MealEstimate:
    """AI breakdown of a meal photo. Nothing is stored."""
    return await asyncio.to_thread(
        llm_service.estimate_meal_from_photo, photo_service.photo_url(request.storage_id)
    )


# ── Custom foods ──────────────────────────────────────────────────────────────


@app.post("/foods/lookup", response_model=FoodLookup, tags=["food"])
async def lookup_food(
    request: FoodLookupRequest, user_id: str = Depends(get_current_user)
) -> FoodLookup:
    """AI nutrition facts per 100 g for a named food."""
    return await asyncio.to_thread(llm_service.lookup_food, request.food_name)


@app.get("/custom-foods", response_model=list[CustomFoodRecord], tags=["food"])
async def list_custom_foods(
    user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> list[CustomFoodRecord]:
    return await food_service.list_custom_foods(db, user_id)


@app.post("/custom-foods", response_model=CustomFoodRecord, tags=["food"])
async def save_custom_food(
    data: CustomFoodInput,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CustomFoodRecord:
    """Create a custom food or overwrite the one with the same name."""
    return await food_service.save_custom_food(db, user_id, data)


@app.patch("/custom-foods/{food_id}", response_model=CustomFoodRecord, tags=["food"])
async def update_custom_food(
    food_id: int,
    data: CustomFoodUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CustomFoodRecord:
    return await food_service.update_custom_food(db, user_id, food_id, data)


@app.delete("/custom-foods/{food_id}", tags=["food"])
async def delete_custom_food(
    food_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    await food_service.delete_custom_food(db, user_id, food_id)
    return {"status": "deleted"}
