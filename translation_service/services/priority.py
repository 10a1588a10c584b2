"""Priority drains: push one language's pending backlog ahead of everything else."""

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.db.models import JobStatus, TranslationJob, utcnow
from translation_service.services.batch_processor import Translator
from translation_service.services.job_store import JobStore, job_store
from translation_service.services.key_pool import KeySelectionMode, key_pool
from translation_service.services.quota import QuotaTracker, quota_tracker

settings = get_settings()
logger = logging.getLogger(__name__)

QUOTA_STOP_ERROR = "Monthly limit reached before this priority job was translated"
DISPATCH_ERROR = "Priority drain could not be dispatched to the worker queue"


class PriorityConflictError(Exception):
    """A different language already has an active priority drain."""

    def __init__(self, language: str):
        self.language = language
        super().__init__(
            f"Priority translation for {language.upper()} is already active. "
            "Wait for it to finish before starting another one."
        )


@dataclass
class PriorityStartResult:
    language: str
    marker: Optional[str]
    job_ids: list[str] = field(default_factory=list)
    message: str = ""

    @property
    def priority_jobs_created(self) -> int:
        return len(self.job_ids)

    @property
    def estimated_duration_minutes(self) -> int:
        # Roughly 10 translations per minute
        return math.ceil(len(self.job_ids) / 10)


@dataclass
class PriorityStatus:
    language: str
    is_active: bool
    started_at: Optional[datetime] = None
    processed_count: int = 0
    total_count: int = 0
    marker: Optional[str] = None
    stalled: bool = False


@dataclass
class DrainResult:
    completed: int = 0
    failed: int = 0
    characters_used: int = 0
    stopped_on_quota: bool = False


def new_marker() -> str:
    return f"_priority_{int(time.time() * 1000)}"


class PriorityReprioritizer:
    """Claims a language's oldest pending jobs and drains them in the background."""

    def __init__(
        self,
        translator: Translator = key_pool,
        quota: QuotaTracker = quota_tracker,
        store: JobStore = job_store,
        delay_seconds: Optional[float] = None,
    ):
        self.translator = translator
        self.quota = quota
        self.store = store
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else settings.priority_job_delay_ms / 1000
        )

    def validate_language(self, language: str) -> str:
        language = (language or "").lower().strip()
        if language not in settings.target_languages:
            raise ValueError(
                f"Invalid language. Must be one of: {', '.join(settings.target_languages)}"
            )
        return language

    async def active_languages(self, db: AsyncSession) -> list[str]:
        """Languages that have processing jobs claimed by a priority drain."""
        result = await db.execute(
            select(TranslationJob.target_language)
            .where(
                TranslationJob.status == JobStatus.PROCESSING,
                TranslationJob.priority_marker.is_not(None),
            )
            .distinct()
        )
        return list(result.scalars().all())

    async def start_priority_translation(
        self, db: AsyncSession, language: str
    ) -> PriorityStartResult:
        """
        Claim up to `priority_batch_cap` pending jobs of `language`.

        The caller is responsible for dispatching `drain` for the returned
        job ids.

        Raises:
            ValueError: unknown language
            PriorityConflictError: another language is being drained
        """
        language = self.validate_language(language)

        for active in await self.active_languages(db):
            if active != language:
                raise PriorityConflictError(active)

        pending = await self.store.select_pending(
            db, settings.priority_batch_cap, target_language=language
        )
        if not pending:
            return PriorityStartResult(
                language=language,
                marker=None,
                message=f"No pending translations for {language.upper()}",
            )

        logger.info(f"Found {len(pending)} pending jobs for {language.upper()}")

        # Claim only what this month's quota can still cover; the rest stays pending
        remaining = await self.quota.remaining(db)
        affordable = []
        for job in pending:
            if len(job.source_content) > remaining:
                break
            remaining -= len(job.source_content)
            affordable.append(job)
        if not affordable:
            logger.warning(f"Monthly limit reached, no priority jobs claimed for {language.upper()}")
            return PriorityStartResult(
                language=language,
                marker=None,
                message="Monthly limit reached",
            )

        marker = new_marker()
        claimed = []
        for job in affordable:
            if await self.store.claim(db, job.id, claimed_by=marker, priority_marker=marker):
                claimed.append(job.id)
        await db.commit()

        logger.info(f"Marked {len(claimed)} jobs as priority for {language.upper()}")
        return PriorityStartResult(
            language=language,
            marker=marker,
            job_ids=claimed,
            message=f"Priority translation started for {language.upper()}",
        )

    async def drain(self, db: AsyncSession, job_ids: list[str]) -> DrainResult:
        """Translate claimed priority jobs one after another."""
        result = DrainResult()
        logger.info(f"Processing {len(job_ids)} priority jobs")

        for position, job_id in enumerate(job_ids):
            job = await self.store.get(db, job_id)
            if job is None or job.status != JobStatus.PROCESSING:
                continue

            if await self.quota.remaining(db) < len(job.source_content):
                logger.warning("Monthly limit reached, stopping priority processing")
                result.stopped_on_quota = True
                await self.fail_claimed(db, job_ids[position:], QUOTA_STOP_ERROR)
                break

            try:
                outcome = await self.translator.translate(
                    db,
                    job.source_content,
                    job.target_language,
                    job.source_language,
                    mode=KeySelectionMode(settings.default_key_mode),
                )
            except Exception as e:  # recorded on the job, the drain goes on
                logger.error(f"Error processing priority job {job_id}: {e}")
                await self.store.fail(db, job, str(e))
                result.failed += 1
            else:
                await self.store.complete(db, job, outcome.text, outcome.characters_used)
                await self.quota.record_usage(db, outcome.characters_used)
                result.completed += 1
                result.characters_used += outcome.characters_used
                logger.info(f"Completed priority job {job_id} for {job.target_language.upper()}")
            await db.commit()

            if position < len(job_ids) - 1 and self.delay_seconds:
                await asyncio.sleep(self.delay_seconds)

        logger.info(
            f"Finished priority drain: {result.completed} completed, {result.failed} failed"
        )
        return result

    async def fail_claimed(self, db: AsyncSession, job_ids: list[str], error_message: str):
        """Fail claimed jobs that will not be translated by this drain."""
        for job_id in job_ids:
            job = await self.store.get(db, job_id)
            if job is not None and job.status == JobStatus.PROCESSING:
                await self.store.fail(db, job, error_message)
        await db.commit()

    async def get_priority_status(self, db: AsyncSession, language: str) -> PriorityStatus:
        language = self.validate_language(language)

        result = await db.execute(
            select(TranslationJob)
            .where(
                TranslationJob.target_language == language,
                TranslationJob.status == JobStatus.PROCESSING,
                TranslationJob.priority_marker.is_not(None),
            )
            .order_by(TranslationJob.priority_started_at.desc())
            .execution_options(populate_existing=True)
        )
        active = list(result.scalars().all())
        if not active:
            return PriorityStatus(language=language, is_active=False)

        marker = active[0].priority_marker
        counts = await db.execute(
            select(TranslationJob.status, func.count())
            .where(TranslationJob.priority_marker == marker)
            .group_by(TranslationJob.status)
        )
        by_status = {JobStatus(s): n for s, n in counts.all()}
        total = sum(by_status.values())

        now = utcnow().replace(tzinfo=None)
        stalled = any(
            j.lease_expires_at is not None and j.lease_expires_at.replace(tzinfo=None) < now
            for j in active
        )

        return PriorityStatus(
            language=language,
            is_active=True,
            started_at=min(j.priority_started_at for j in active if j.priority_started_at),
            processed_count=total - by_status.get(JobStatus.PROCESSING, 0),
            total_count=total,
            marker=marker,
            stalled=stalled,
        )

    async def get_language_progress(self, db: AsyncSession) -> list[dict]:
        """Completion overview per target language."""
        result = await db.execute(
            select(TranslationJob.target_language, TranslationJob.status, func.count())
            .group_by(TranslationJob.target_language, TranslationJob.status)
        )
        counts: dict[str, dict[JobStatus, int]] = {}
        for language, status, count in result.all():
            counts.setdefault(language, {})[JobStatus(status)] = count

        active = set(await self.active_languages(db))
        progress = []
        for language in settings.target_languages:
            by_status = counts.get(language, {})
            total = sum(by_status.values())
            completed = by_status.get(JobStatus.COMPLETED, 0)
            progress.append(
                {
                    "language": language,
                    "total_items": total,
                    "completed": completed,
                    "pending": by_status.get(JobStatus.PENDING, 0),
                    "failed": by_status.get(JobStatus.FAILED, 0),
                    "completion_percentage": round(completed / total * 100) if total else 0,
                    "is_priority_processing": language in active,
                }
            )
        return progress


# Singleton instance
priority_reprioritizer = PriorityReprioritizer()
