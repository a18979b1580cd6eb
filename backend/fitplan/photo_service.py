"""Progress photos and their AI muscle analysis.

Saving a photo only stores the reference; ``run_analysis`` is scheduled as a
FastAPI background task and uses its own database session. A failed
analysis still marks the photo complete, with no analysis attached, so the
client stops waiting and can offer a retry.
"""

import asyncio
import json
import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fitplan.config import settings
from fitplan.database import AsyncSessionLocal
from fitplan.db_models import ProgressPhoto
from fitplan.errors import ExternalFailure, FitPlanError, NotFoundError, PermissionDeniedError
from fitplan.llm_service import analyze_progress_photo
from fitplan.models import MuscleAnalysis, PhotoInput, PhotoRecord
from fitplan.workout_service import apply_priorities

logger = logging.getLogger(__name__)


def photo_url(storage_id: str) -> str:
    return f"{settings.storage_base_url.rstrip('/')}/{storage_id}"


def _analysis_of(photo: ProgressPhoto) -> MuscleAnalysis | None:
    if photo.overall_score is None:
        return None
    return MuscleAnalysis(
        overall_score=photo.overall_score,
        lagging_muscles=json.loads(photo.lagging_muscles or "[]"),
        strong_muscles=json.loads(photo.strong_muscles or "[]"),
        recommendations=json.loads(photo.recommendations or "[]"),
    )


def _photo_record(photo: ProgressPhoto) -> PhotoRecord:
    return PhotoRecord(
        id=photo.id,
        date=photo.date,
        storage_id=photo.storage_id,
        url=photo_url(photo.storage_id),
        analysis_complete=photo.analysis_complete,
        analysis=_analysis_of(photo),
        uploaded_at=photo.uploaded_at,
    )


async def _owned_photo(db: AsyncSession, user_id: str, photo_id: int) -> ProgressPhoto:
    photo = await db.get(ProgressPhoto, photo_id)
    if photo is None:
        raise NotFoundError("Photo not found")
    if photo.user_id != user_id:
        raise PermissionDeniedError("You don't have permission to access this photo")
    return photo


# ── CRUD ──────────────────────────────────────────────────────────────────────


async def save_photo(db: AsyncSession, user_id: str, data: PhotoInput) -> PhotoRecord:
    """Store an uploaded photo reference, pending analysis."""
    photo = ProgressPhoto(
        user_id=user_id,
        date=(data.date or date.today()).isoformat(),
        storage_id=data.storage_id,
        analysis_complete=False,
    )
    db.add(photo)
    await db.commit()
    await db.refresh(photo)
    return _photo_record(photo)


async def list_photos(db: AsyncSession, user_id: str, limit: int = 20) -> list[PhotoRecord]:
    result = await db.execute(
        select(ProgressPhoto)
        .where(ProgressPhoto.user_id == user_id)
        .order_by(ProgressPhoto.uploaded_at.desc(), ProgressPhoto.id.desc())
        .limit(limit)
    )
    return [_photo_record(p) for p in result.scalars().all()]


async def get_latest_analysis(db: AsyncSession, user_id: str) -> MuscleAnalysis | None:
    """Analysis of the newest photo whose analysis has finished.

    Returns ``None`` when there is no finished photo or its analysis failed.
    """
    result = await db.execute(
        select(ProgressPhoto)
        .where(ProgressPhoto.user_id == user_id, ProgressPhoto.analysis_complete.is_(True))
        .order_by(ProgressPhoto.uploaded_at.desc(), ProgressPhoto.id.desc())
        .limit(1)
    )
    photo = result.scalar_one_or_none()
    return _analysis_of(photo) if photo else None


async def reset_analysis(db: AsyncSession, user_id: str, photo_id: int) -> PhotoRecord:
    """Clear a photo's analysis so it can be run again.

    Raises:
        NotFoundError: If the photo does not exist.
        PermissionDeniedError: If it belongs to another user.
    """
    photo = await _owned_photo(db, user_id, photo_id)
    photo.analysis_complete = False
    photo.overall_score = None
    photo.lagging_muscles = None
    photo.strong_muscles = None
    photo.recommendations = None
    await db.commit()
    return _photo_record(photo)


async def delete_photo(db: AsyncSession, user_id: str, photo_id: int) -> None:
    photo = await _owned_photo(db, user_id, photo_id)
    await db.delete(photo)
    await db.commit()


# ── Background analysis ───────────────────────────────────────────────────────


async def _store_analysis(db: AsyncSession, photo: ProgressPhoto, analysis: MuscleAnalysis | None) -> None:
    photo.analysis_complete = True
    if analysis is not None:
        photo.overall_score = analysis.overall_score
        photo.lagging_muscles = json.dumps(analysis.lagging_muscles)
        photo.strong_muscles = json.dumps(analysis.strong_muscles)
        photo.recommendations = json.dumps(analysis.recommendations)
    await db.commit()


async def run_analysis(
    photo_id: int,
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
) -> MuscleAnalysis | None:
    """Analyse a stored photo and feed lagging muscles into training priorities.

    Runs outside the request, so failures are logged and recorded on the
    photo instead of raised.

    Args:
        photo_id: Photo to analyse.
        session_factory: Session factory for the task's own session.

    Returns:
        The stored analysis, or ``None`` if the photo is gone or analysis failed.
    """
    async with session_factory() as db:
        photo = await db.get(ProgressPhoto, photo_id)
        if photo is None:
            logger.warning("Photo %d vanished before analysis", photo_id)
            return None

        try:
            analysis = await asyncio.to_thread(analyze_progress_photo, photo_url(photo.storage_id))
        except ExternalFailure:
            logger.warning("Analysis of photo %d failed; marking complete without result", photo_id)
            await _store_analysis(db, photo, None)
            return None

        await _store_analysis(db, photo, analysis)
        logger.info(
            "Photo %d analysed: score %.1f, lagging %s",
            photo_id,
            analysis.overall_score,
            ", ".join(analysis.lagging_muscles) or "none",
        )

        try:
            await apply_priorities(db, photo.user_id, analysis.lagging_muscles)
        except FitPlanError as exc:
            logger.warning("Priorities not updated after photo %d: %s", photo_id, exc.message)
        return analysis
