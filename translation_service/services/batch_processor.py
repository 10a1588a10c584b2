"""Bounded, sequential processing of pending translation jobs."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.services.job_store import JobStore, job_store
from translation_service.services.key_pool import (
    KeySelectionMode,
    TranslationOutcome,
    key_pool,
)
from translation_service.services.quota import QuotaTracker, quota_tracker

settings = get_settings()
logger = logging.getLogger(__name__)


class Translator(Protocol):
    async def translate(
        self,
        db: AsyncSession,
        text: str,
        target_language: str,
        source_language: str = "pl",
        mode: KeySelectionMode = KeySelectionMode.FALLBACK,
    ) -> TranslationOutcome: ...


@dataclass
class BatchResult:
    """Outcome of one batch invocation."""

    processed_count: int = 0
    failed_count: int = 0
    characters_used: int = 0
    limit_exceeded: bool = False
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return not self.limit_exceeded


class BatchProcessor:
    """Drain a bounded number of pending jobs through the translator."""

    def __init__(
        self,
        translator: Translator = key_pool,
        quota: QuotaTracker = quota_tracker,
        store: JobStore = job_store,
        delay_seconds: Optional[float] = None,
        mode: Optional[KeySelectionMode] = None,
    ):
        self.translator = translator
        self.quota = quota
        self.store = store
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else settings.batch_job_delay_ms / 1000
        )
        self.mode = mode or KeySelectionMode(settings.default_key_mode)

    async def process_pending_batch(
        self, db: AsyncSession, max_jobs: Optional[int] = None
    ) -> BatchResult:
        """
        Translate up to `max_jobs` pending jobs, oldest first.

        Stops early once the next job would not fit in the remaining monthly
        quota; untouched jobs stay pending. The batch's characters are added
        to the monthly quota in one update at the end.
        """
        max_jobs = settings.batch_size if max_jobs is None else max_jobs
        if max_jobs <= 0:
            return BatchResult(message="No jobs requested")

        if not await self.quota.check_monthly_limit(db):
            logger.warning("Monthly limit exceeded, skipping batch")
            return BatchResult(limit_exceeded=True, message="Monthly limit exceeded")

        jobs = await self.store.select_pending(db, max_jobs)
        if not jobs:
            return BatchResult(message="No pending translations")

        remaining = await self.quota.remaining(db)
        batch_token = f"batch:{uuid4()}"
        result = BatchResult()

        for index, candidate in enumerate(jobs):
            needed = len(candidate.source_content)
            if result.characters_used + needed > remaining:
                logger.warning("Monthly limit reached during processing")
                result.limit_exceeded = True
                result.message = "Monthly limit reached during processing"
                break

            if not await self.store.claim(db, candidate.id, batch_token):
                continue
            await db.commit()
            job = await self.store.get(db, candidate.id)

            try:
                outcome = await self.translator.translate(
                    db,
                    job.source_content,
                    job.target_language,
                    job.source_language,
                    mode=self.mode,
                )
            except Exception as e:  # recorded on the job, the batch goes on
                logger.error(f"Error processing job {job.id}: {e}")
                await self.store.fail(db, job, str(e))
                result.failed_count += 1
            else:
                await self.store.complete(db, job, outcome.text, outcome.characters_used)
                result.processed_count += 1
                result.characters_used += outcome.characters_used
                logger.info(f"Processed translation job {job.id}")
            await db.commit()

            if index < len(jobs) - 1 and self.delay_seconds:
                await asyncio.sleep(self.delay_seconds)

        if result.characters_used > 0:
            await self.quota.record_usage(db, result.characters_used)
            await db.commit()

        return result


# Singleton instance
batch_processor = BatchProcessor()
