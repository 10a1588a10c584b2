"""Translation job state transitions.

Jobs move pending -> processing -> completed | failed and never return to
pending. Claims are conditional updates, so two invocations that pick the
same pending row cannot both move it to processing.
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.db.models import JobStatus, TranslationJob, utcnow

settings = get_settings()
logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.PROCESSING},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}

STALLED_ERROR = "Processing lease expired before the job finished"


class InvalidTransitionError(ValueError):
    """A job was asked to move along an edge the state machine does not allow."""


def check_transition(current: JobStatus, new: JobStatus):
    if new not in ALLOWED_TRANSITIONS[JobStatus(current)]:
        raise InvalidTransitionError(f"Illegal job transition {JobStatus(current).value} -> {new.value}")


class JobStore:
    """Reads and state changes on the translation_jobs table."""

    async def get(self, db: AsyncSession, job_id: str) -> Optional[TranslationJob]:
        result = await db.execute(
            select(TranslationJob)
            .where(TranslationJob.id == job_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def select_pending(
        self,
        db: AsyncSession,
        limit: int,
        target_language: Optional[str] = None,
    ) -> list[TranslationJob]:
        """Oldest pending jobs first."""
        query = select(TranslationJob).where(TranslationJob.status == JobStatus.PENDING)
        if target_language:
            query = query.where(TranslationJob.target_language == target_language)
        query = query.order_by(TranslationJob.created_at, TranslationJob.id).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def claim(
        self,
        db: AsyncSession,
        job_id: str,
        claimed_by: str,
        priority_marker: Optional[str] = None,
    ) -> bool:
        """
        Move one job pending -> processing.

        Returns False when the row is no longer pending (another invocation
        claimed it first).
        """
        now = utcnow()
        values = {
            "status": JobStatus.PROCESSING,
            "claimed_by": claimed_by,
            "lease_expires_at": now + timedelta(seconds=settings.job_lease_seconds),
            "updated_at": now,
        }
        if priority_marker:
            values["priority_marker"] = priority_marker
            values["priority_started_at"] = now

        result = await db.execute(
            update(TranslationJob)
            .where(
                TranslationJob.id == job_id,
                TranslationJob.status == JobStatus.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        claimed = result.rowcount == 1
        if not claimed:
            logger.info(f"Job {job_id} was claimed elsewhere, skipping")
        return claimed

    async def complete(
        self,
        db: AsyncSession,
        job: TranslationJob,
        translated_content: str,
        characters_used: int,
    ):
        check_transition(job.status, JobStatus.COMPLETED)
        job.status = JobStatus.COMPLETED
        job.translated_content = translated_content
        job.characters_used = characters_used
        job.error_message = None
        job.claimed_by = None
        job.lease_expires_at = None
        await db.flush()

    async def fail(self, db: AsyncSession, job: TranslationJob, error_message: str):
        check_transition(job.status, JobStatus.FAILED)
        job.status = JobStatus.FAILED
        job.error_message = error_message or "Unknown error"
        job.claimed_by = None
        job.lease_expires_at = None
        await db.flush()

    async def recover_stalled(self, db: AsyncSession) -> int:
        """Fail processing jobs whose lease ran out (crashed batch or drain)."""
        now = utcnow()
        result = await db.execute(
            update(TranslationJob)
            .where(
                TranslationJob.status == JobStatus.PROCESSING,
                TranslationJob.lease_expires_at.is_not(None),
                TranslationJob.lease_expires_at < now,
            )
            .values(
                status=JobStatus.FAILED,
                error_message=STALLED_ERROR,
                claimed_by=None,
                lease_expires_at=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.warning(f"Marked {result.rowcount} stalled job(s) as failed")
        return result.rowcount


# Singleton instance
job_store = JobStore()
