"""Workout persistence: sessions, set logging, swaps, weekly plan, priorities.

Session start snapshots the template day into ``session_exercises`` with a
progression recommendation per exercise. Ownership is checked through the
session's ``user_id`` on every mutation; the single-active-session and
unique-set-number rules are also backed by database constraints, and an
``IntegrityError`` on commit is reported as ``StateError``.
"""

import json
import logging
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fitplan.config import settings
from fitplan.db_models import (
    Exercise,
    ExerciseAlternative,
    SessionExercise,
    SetLog,
    TrainingTemplateEntry,
    WorkoutSession,
)
from fitplan.errors import (
    NotFoundError,
    PermissionDeniedError,
    StateError,
    ValidationError,
    require_range,
)
from fitplan.models import (
    AlternativeRecord,
    ExerciseRecord,
    MuscleAnalysis,
    PlanDay,
    PlanExercise,
    PriorityResetResult,
    PriorityUpdateResult,
    SessionExerciseRecord,
    SessionRecord,
    SetLogInput,
    SetLogRecord,
    SetLogUpdate,
    TemplateFlag,
    WorkoutPlan,
)
from fitplan.priorities import (
    exercises_for_muscle,
    plan_priority_reset,
    plan_priority_updates,
    prioritized_exercises,
)
from fitplan.profile_service import get_profile, require_profile
from fitplan.progression import HISTORY_SESSIONS, deload_weight, recommend

logger = logging.getLogger(__name__)

ACTIVE_SESSION_MESSAGE = "You already have a workout in progress. Please finish or skip it first."


def _format_day(day: date) -> str:
    """US short date, e.g. ``Oct 19, 2026``."""
    return f"{day:%b} {day.day}, {day.year}"


def _exercise_record(exercise: Exercise) -> ExerciseRecord:
    return ExerciseRecord(
        id=exercise.id,
        name=exercise.name,
        muscle_group=exercise.muscle_group,
        primary_muscle=exercise.primary_muscle,
        type=exercise.type,
        equipment_required=json.loads(exercise.equipment_required or "[]"),
    )


def _set_record(log: SetLog) -> SetLogRecord:
    return SetLogRecord.model_validate(log, from_attributes=True)


def _session_exercise_record(
    se: SessionExercise, sets: list[SetLogRecord] | None = None
) -> SessionExerciseRecord:
    return SessionExerciseRecord(
        id=se.id,
        exercise_id=se.exercise_id,
        exercise_name=se.exercise_name,
        exercise_type=se.exercise_type,
        sequence=se.sequence,
        sets_count=se.sets_count,
        target_reps_min=se.target_reps_min,
        target_reps_max=se.target_reps_max,
        recommended_weight=se.recommended_weight,
        action=se.action,
        reason=se.reason,
        sets=sets or [],
    )


def _session_record(
    session: WorkoutSession, exercises: list[SessionExerciseRecord] | None = None
) -> SessionRecord:
    return SessionRecord(
        id=session.id,
        date=session.date,
        day_index=session.day_index,
        day_name=session.day_name,
        is_deload=session.is_deload,
        status=session.status,
        started_at=session.started_at,
        completed_at=session.completed_at,
        exercises=exercises or [],
    )


async def _sets_for(db: AsyncSession, session_exercise_ids: list[int]) -> dict[int, list[SetLogRecord]]:
    sets: dict[int, list[SetLogRecord]] = {se_id: [] for se_id in session_exercise_ids}
    if not session_exercise_ids:
        return sets
    result = await db.execute(
        select(SetLog)
        .where(SetLog.session_exercise_id.in_(session_exercise_ids))
        .order_by(SetLog.session_exercise_id, SetLog.set_number)
    )
    for log in result.scalars().all():
        sets[log.session_exercise_id].append(_set_record(log))
    return sets


# ── Ownership helpers ─────────────────────────────────────────────────────────


async def _owned_session(db: AsyncSession, user_id: str, session_id: int) -> WorkoutSession:
    session = await db.get(WorkoutSession, session_id)
    if session is None:
        raise NotFoundError("Session not found")
    if session.user_id != user_id:
        raise PermissionDeniedError("You don't have permission to access this session")
    return session


async def _owned_session_exercise(
    db: AsyncSession, user_id: str, session_exercise_id: int
) -> tuple[SessionExercise, WorkoutSession]:
    se = await db.get(SessionExercise, session_exercise_id)
    if se is None:
        raise NotFoundError("Exercise not found in this session")
    session = await db.get(WorkoutSession, se.session_id)
    if session is None or session.user_id != user_id:
        raise PermissionDeniedError("You don't have permission to modify this session")
    return se, session


def _require_active(session: WorkoutSession) -> None:
    if session.status != "in_progress":
        raise StateError("This session is no longer active")


def _validate_rpe(rpe: float | None) -> None:
    if rpe is not None:
        require_range("rpe", rpe, 1, 10, label="RPE")


# ── Queries ───────────────────────────────────────────────────────────────────


async def get_active_session(db: AsyncSession, user_id: str) -> SessionRecord | None:
    result = await db.execute(
        select(WorkoutSession).where(
            WorkoutSession.user_id == user_id, WorkoutSession.status == "in_progress"
        )
    )
    session = result.scalars().first()
    if session is None:
        return None
    return await get_session(db, user_id, session.id)


async def get_session(db: AsyncSession, user_id: str, session_id: int) -> SessionRecord:
    """Load a session with its exercises (by sequence) and their logged sets.

    Raises:
        NotFoundError: If the session does not exist.
        PermissionDeniedError: If it belongs to another user.
    """
    session = await _owned_session(db, user_id, session_id)
    result = await db.execute(
        select(SessionExercise)
        .where(SessionExercise.session_id == session.id)
        .order_by(SessionExercise.sequence)
    )
    exercises = list(result.scalars().all())
    sets = await _sets_for(db, [se.id for se in exercises])
    return _session_record(
        session, [_session_exercise_record(se, sets[se.id]) for se in exercises]
    )


async def get_recent_sessions(db: AsyncSession, user_id: str, limit: int = 10) -> list[SessionRecord]:
    """Most recent completed sessions, newest first, without exercise detail."""
    result = await db.execute(
        select(WorkoutSession)
        .where(WorkoutSession.user_id == user_id, WorkoutSession.status == "completed")
        .order_by(WorkoutSession.started_at.desc(), WorkoutSession.id.desc())
        .limit(limit)
    )
    return [_session_record(s) for s in result.scalars().all()]


async def get_alternatives(db: AsyncSession, exercise_id: int) -> list[AlternativeRecord]:
    result = await db.execute(
        select(ExerciseAlternative, Exercise)
        .join(Exercise, ExerciseAlternative.alternative_exercise_id == Exercise.id)
        .where(ExerciseAlternative.primary_exercise_id == exercise_id)
        .order_by(ExerciseAlternative.id)
    )
    return [
        AlternativeRecord(exercise=_exercise_record(exercise), reason=alt.reason)
        for alt, exercise in result.all()
    ]


async def get_exercises_for_muscle(db: AsyncSession, muscle: str) -> list[ExerciseRecord]:
    names = exercises_for_muscle(muscle)
    if not names:
        return []
    result = await db.execute(
        select(Exercise).where(Exercise.name.in_(names)).order_by(Exercise.id)
    )
    return [_exercise_record(e) for e in result.scalars().all()]


async def exercise_history(
    db: AsyncSession, user_id: str, day_index: int, exercise_id: int
) -> list[list[SetLogRecord]]:
    """Set logs of an exercise over the last completed non-deload sessions.

    Returns:
        One list per session, newest first. Sessions where the exercise was
        not performed contribute an empty list.
    """
    result = await db.execute(
        select(WorkoutSession.id)
        .where(
            WorkoutSession.user_id == user_id,
            WorkoutSession.day_index == day_index,
            WorkoutSession.status == "completed",
            WorkoutSession.is_deload.is_(False),
        )
        .order_by(WorkoutSession.started_at.desc(), WorkoutSession.id.desc())
        .limit(HISTORY_SESSIONS)
    )
    history: list[list[SetLogRecord]] = []
    for session_id in result.scalars().all():
        se_result = await db.execute(
            select(SessionExercise.id)
            .where(
                SessionExercise.session_id == session_id,
                SessionExercise.exercise_id == exercise_id,
            )
            .order_by(SessionExercise.sequence)
            .limit(1)
        )
        se_id = se_result.scalar_one_or_none()
        if se_id is None:
            history.append([])
            continue
        history.append((await _sets_for(db, [se_id]))[se_id])
    return history


# ── Session lifecycle ─────────────────────────────────────────────────────────


async def start_session(
    db: AsyncSession,
    user_id: str,
    day_index: int,
    is_deload: bool = False,
    session_date: date | None = None,
) -> SessionRecord:
    """Start a session for a template day of the user's split.

    Each template slot is copied with a progression recommendation; deload
    sessions scale the recommended weight to 60 %.

    Args:
        db: Active async database session.
        user_id: Caller identity.
        day_index: 1-based day of the split.
        is_deload: Whether this is a deload session.
        session_date: Day of the session; defaults to today.

    Returns:
        The new session with its exercises.

    Raises:
        StateError: If the user already has a session in progress.
        NotFoundError: If the split has no such day.
    """
    active = await db.execute(
        select(WorkoutSession.id).where(
            WorkoutSession.user_id == user_id, WorkoutSession.status == "in_progress"
        )
    )
    if active.first() is not None:
        raise StateError(ACTIVE_SESSION_MESSAGE)

    profile = await get_profile(db, user_id)
    total_days = profile.training_days_per_week if profile else settings.default_split_days

    result = await db.execute(
        select(TrainingTemplateEntry, Exercise)
        .join(Exercise, TrainingTemplateEntry.exercise_id == Exercise.id)
        .where(
            TrainingTemplateEntry.day_index == day_index,
            TrainingTemplateEntry.total_days == total_days,
        )
        .order_by(TrainingTemplateEntry.sequence)
    )
    slots = result.all()
    if not slots:
        raise NotFoundError(f"No template found for day {day_index} in {total_days}-day split")

    day = session_date or date.today()
    session = WorkoutSession(
        user_id=user_id,
        date=day.isoformat(),
        day_index=day_index,
        day_name=f"Day {day_index} - {slots[0][0].day_name} - {_format_day(day)}",
        is_deload=is_deload,
        status="in_progress",
    )

    snapshot: list[SessionExercise] = []
    for entry, exercise in slots:
        history = await exercise_history(db, user_id, day_index, exercise.id)
        rec = recommend(history, exercise.type, entry.target_reps_min, entry.target_reps_max)
        weight = deload_weight(rec.recommended_weight) if is_deload else rec.recommended_weight
        snapshot.append(
            SessionExercise(
                exercise_id=exercise.id,
                exercise_name=exercise.name,
                exercise_type=exercise.type,
                sequence=entry.sequence,
                sets_count=entry.sets_count,
                target_reps_min=entry.target_reps_min,
                target_reps_max=entry.target_reps_max,
                recommended_weight=weight,
                action=rec.action,
                reason=rec.reason,
            )
        )

    try:
        db.add(session)
        await db.flush()  # Populate session.id.
        for se in snapshot:
            se.session_id = session.id
            db.add(se)
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise StateError(ACTIVE_SESSION_MESSAGE) from exc

    logger.info("Started session %d for %s: %s", session.id, user_id, session.day_name)
    return await get_session(db, user_id, session.id)


async def _close_session(db: AsyncSession, user_id: str, session_id: int, status: str) -> SessionRecord:
    session = await _owned_session(db, user_id, session_id)
    if session.status != "in_progress":
        raise StateError("This session is not in progress")
    session.status = status
    session.completed_at = datetime.now(timezone.utc)
    await db.commit()
    logger.info("Session %d for %s marked %s", session_id, user_id, status)
    return await get_session(db, user_id, session_id)


async def finish_session(db: AsyncSession, user_id: str, session_id: int) -> SessionRecord:
    return await _close_session(db, user_id, session_id, "completed")


async def skip_session(db: AsyncSession, user_id: str, session_id: int) -> SessionRecord:
    return await _close_session(db, user_id, session_id, "skipped")


async def swap_exercise(
    db: AsyncSession, user_id: str, session_exercise_id: int, new_exercise_id: int
) -> SessionExerciseRecord:
    """Replace a session exercise with one of its equipment alternatives.

    Only allowed before any set is logged. The recommendation is cleared
    because it belonged to the previous exercise.

    Raises:
        NotFoundError: If the session exercise or new exercise does not exist.
        PermissionDeniedError: If the session belongs to another user.
        StateError: If the session is closed or sets were already logged.
        ValidationError: If the new exercise is not a listed alternative.
    """
    se, session = await _owned_session_exercise(db, user_id, session_exercise_id)
    _require_active(session)

    new_exercise = await db.get(Exercise, new_exercise_id)
    if new_exercise is None:
        raise NotFoundError("New exercise not found")

    alt = await db.execute(
        select(ExerciseAlternative.id).where(
            ExerciseAlternative.primary_exercise_id == se.exercise_id,
            ExerciseAlternative.alternative_exercise_id == new_exercise_id,
        )
    )
    if alt.first() is None:
        raise ValidationError("This exercise is not a valid alternative", field="new_exercise_id")

    logged = await db.execute(select(SetLog.id).where(SetLog.session_exercise_id == se.id).limit(1))
    if logged.first() is not None:
        raise StateError(
            "Cannot swap exercise after logging sets. Delete sets first or continue with current exercise."
        )

    se.exercise_id = new_exercise.id
    se.exercise_name = new_exercise.name
    se.exercise_type = new_exercise.type
    se.recommended_weight = None
    se.action = "hold"
    se.reason = None
    await db.commit()
    return _session_exercise_record(se)


async def log_set(
    db: AsyncSession, user_id: str, session_exercise_id: int, data: SetLogInput
) -> SetLogRecord:
    """Log one set of a session exercise.

    Raises:
        NotFoundError: If the session exercise does not exist.
        PermissionDeniedError: If the session belongs to another user.
        StateError: If the session is closed or the set number is taken.
        ValidationError: If the set number or RPE is out of range.
    """
    se, session = await _owned_session_exercise(db, user_id, session_exercise_id)
    _require_active(session)

    existing = await db.execute(
        select(SetLog.id).where(
            SetLog.session_exercise_id == se.id, SetLog.set_number == data.set_number
        )
    )
    if existing.first() is not None:
        raise StateError(f"Set {data.set_number} already logged. Update it instead.")
    require_range("set_number", data.set_number, 1, se.sets_count, label="Set number")
    _validate_rpe(data.rpe)

    log = SetLog(
        session_exercise_id=se.id,
        set_number=data.set_number,
        weight=data.weight,
        reps=data.reps,
        rpe=data.rpe,
        pain_flag=data.pain_flag,
    )
    db.add(log)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise StateError(f"Set {data.set_number} already logged. Update it instead.") from exc
    await db.refresh(log)
    return _set_record(log)


async def update_set(db: AsyncSession, user_id: str, set_id: int, data: SetLogUpdate) -> SetLogRecord:
    """Edit fields of a logged set; fields left as ``None`` are unchanged.

    Raises:
        NotFoundError: If the set does not exist.
        PermissionDeniedError: If it belongs to another user's session.
        ValidationError: If the new RPE is out of range.
    """
    log = await db.get(SetLog, set_id)
    if log is None:
        raise NotFoundError("Set not found")
    await _owned_session_exercise(db, user_id, log.session_exercise_id)
    _validate_rpe(data.rpe)

    for field, value in data.model_dump(exclude_none=True).items():
        setattr(log, field, value)
    await db.commit()
    await db.refresh(log)
    return _set_record(log)


# ── Weekly plan & priorities ──────────────────────────────────────────────────


async def _split_entries(
    db: AsyncSession, total_days: int
) -> list[tuple[TrainingTemplateEntry, Exercise]]:
    result = await db.execute(
        select(TrainingTemplateEntry, Exercise)
        .join(Exercise, TrainingTemplateEntry.exercise_id == Exercise.id)
        .where(TrainingTemplateEntry.total_days == total_days)
        .order_by(TrainingTemplateEntry.day_index, TrainingTemplateEntry.sequence)
    )
    return list(result.all())


async def get_workout_plan(
    db: AsyncSession, user_id: str, latest_analysis: MuscleAnalysis | None = None
) -> WorkoutPlan:
    """The user's split, day by day, with priority flags and counts.

    Raises:
        NotFoundError: If the user has no profile.
    """
    profile = await require_profile(db, user_id)
    total_days = profile.training_days_per_week
    by_day: dict[int, list[tuple[TrainingTemplateEntry, Exercise]]] = {}
    for entry, exercise in await _split_entries(db, total_days):
        by_day.setdefault(entry.day_index, []).append((entry, exercise))

    days = []
    for day_index in range(1, total_days + 1):
        slots = by_day.get(day_index, [])
        exercises = [
            PlanExercise(
                exercise_id=exercise.id,
                exercise_name=exercise.name,
                muscle_group=exercise.muscle_group,
                sequence=entry.sequence,
                sets_count=entry.sets_count,
                target_reps_min=entry.target_reps_min,
                target_reps_max=entry.target_reps_max,
                is_priority=entry.is_priority,
            )
            for entry, exercise in slots
        ]
        days.append(
            PlanDay(
                day_index=day_index,
                day_name=slots[0][0].day_name if slots else f"Day {day_index}",
                priority_count=sum(1 for e in exercises if e.is_priority),
                exercises=exercises,
            )
        )
    return WorkoutPlan(
        total_days=total_days,
        days=days,
        total_priority_exercises=sum(d.priority_count for d in days),
        latest_analysis=latest_analysis,
    )


async def apply_priorities(
    db: AsyncSession, user_id: str, lagging_muscles: list[str]
) -> PriorityUpdateResult:
    """Flag template exercises that train the given lagging muscles.

    Only entries whose flag changes are written, so repeating the call with
    the same muscles updates nothing.

    Raises:
        NotFoundError: If the user has no profile.
    """
    profile = await require_profile(db, user_id)
    entries = await _split_entries(db, profile.training_days_per_week)
    names = prioritized_exercises(lagging_muscles)
    flags = [
        TemplateFlag(entry_id=entry.id, exercise_name=exercise.name, is_priority=entry.is_priority)
        for entry, exercise in entries
    ]
    rows = {entry.id: entry for entry, _ in entries}
    changes = plan_priority_updates(flags, names)
    for entry_id, flag in changes:
        rows[entry_id].is_priority = flag
    await db.commit()

    logger.info(
        "Priorities for %s (%d-day split): %d exercise(s) targeted, %d slot(s) updated",
        user_id,
        profile.training_days_per_week,
        len(names),
        len(changes),
    )
    return PriorityUpdateResult(
        lagging_muscles=lagging_muscles,
        exercises_prioritized=names,
        updated_count=len(changes),
    )


async def reset_priorities(db: AsyncSession, user_id: str) -> PriorityResetResult:
    """Clear every priority flag of the user's split.

    Raises:
        NotFoundError: If the user has no profile.
    """
    profile = await require_profile(db, user_id)
    entries = await _split_entries(db, profile.training_days_per_week)
    flags = [
        TemplateFlag(entry_id=entry.id, exercise_name=exercise.name, is_priority=entry.is_priority)
        for entry, exercise in entries
    ]
    rows = {entry.id: entry for entry, _ in entries}
    cleared = plan_priority_reset(flags)
    for entry_id in cleared:
        rows[entry_id].is_priority = False
    await db.commit()
    return PriorityResetResult(reset_count=len(cleared))
