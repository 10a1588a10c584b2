"""Read-only translation pipeline diagnostics for the admin dashboard."""

import logging
from typing import Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.db.models import ContentType, JobStatus, TranslationJob
from translation_service.services.deepl_client import DeepLClient
from translation_service.services.key_pool import KeyPool, key_pool
from translation_service.services.quota import QuotaTracker, quota_tracker

settings = get_settings()
logger = logging.getLogger(__name__)


def display_name(content_type: str, content_id: str) -> str:
    """Human-readable label for a job, e.g. 'FAQ question #<id>'."""
    if content_type == ContentType.FAQ.value:
        item_id, _, field_name = content_id.partition(":")
        if field_name in ("question", "answer"):
            return f"FAQ {field_name} #{item_id}"
        return f"FAQ question #{content_id}"
    if content_type == ContentType.PRODUCT.value:
        return f"Product {content_id}"
    if content_type == ContentType.HOMEPAGE.value:
        return f"Homepage ({content_id})"
    return f"{content_type} {content_id}"


def job_summary(job: TranslationJob) -> dict:
    return {
        "id": job.id,
        "content_type": job.content_type,
        "content_id": job.content_id,
        "name": display_name(job.content_type, job.content_id),
        "source_language": job.source_language,
        "target_language": job.target_language,
        "status": JobStatus(job.status).value,
        "characters_used": job.characters_used or 0,
        "error_message": job.error_message,
        "created_at": job.created_at,
        "updated_at": job.updated_at,
    }


class DiagnosticsService:
    """Aggregates job counts, API connectivity and quota usage."""

    def __init__(
        self,
        pool: KeyPool = key_pool,
        quota: QuotaTracker = quota_tracker,
        client_factory: Optional[Callable[[str], DeepLClient]] = None,
    ):
        self.pool = pool
        self.quota = quota
        self.client_factory = client_factory

    async def test_api_connection(self, db: AsyncSession) -> bool:
        """Check the usage endpoint with the first available credential."""
        credentials = await self.pool.get_credentials(db)
        if not credentials:
            return False
        factory = self.client_factory or self.pool.client_factory
        return await factory(credentials[0].secret).ping()

    async def get_overview(self, db: AsyncSession) -> dict:
        api_connected = await self.test_api_connection(db)
        logger.info(f"DeepL API status: {'ONLINE' if api_connected else 'ERROR'}")

        result = await db.execute(
            select(TranslationJob.target_language, TranslationJob.status, func.count())
            .group_by(TranslationJob.target_language, TranslationJob.status)
        )
        by_status = {status.value: 0 for status in JobStatus}
        breakdown: dict[str, dict[str, int]] = {
            language: {status.value: 0 for status in JobStatus}
            for language in settings.target_languages
        }
        for language, status, count in result.all():
            status = JobStatus(status).value
            by_status[status] += count
            breakdown.setdefault(language, {s.value: 0 for s in JobStatus})[status] += count

        last_completed = (
            await db.execute(
                select(func.max(TranslationJob.updated_at)).where(
                    TranslationJob.status == JobStatus.COMPLETED
                )
            )
        ).scalar()

        return {
            "total_items": sum(by_status.values()),
            "completed_translations": by_status[JobStatus.COMPLETED.value],
            "pending_translations": by_status[JobStatus.PENDING.value],
            "processing_translations": by_status[JobStatus.PROCESSING.value],
            "failed_translations": by_status[JobStatus.FAILED.value],
            "language_breakdown": breakdown,
            "api_connection_status": "online" if api_connected else "error",
            "last_successful_translation": last_completed,
            "quota": await self.quota.get_month_stats(db),
        }

    async def get_detailed_translations(self, db: AsyncSession, limit: int = 100) -> list[dict]:
        result = await db.execute(
            select(TranslationJob)
            .order_by(TranslationJob.created_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [job_summary(job) for job in result.scalars().all()]

    async def check_status(
        self,
        db: AsyncSession,
        content_type: str,
        content_id: str,
        target_language: str,
    ) -> dict:
        """Current state of one job; the newest row wins when duplicates exist."""
        result = await db.execute(
            select(TranslationJob)
            .where(
                TranslationJob.content_type == content_type,
                TranslationJob.content_id == content_id,
                TranslationJob.target_language == target_language,
            )
            .order_by(TranslationJob.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        job = result.scalar_one_or_none()

        if job is None:
            logger.info(f"No translation found for {content_type}/{content_id} -> {target_language}")
            return {
                "exists": False,
                "status": "not_found",
                "message": "Translation not found",
            }

        return {
            "exists": True,
            "status": JobStatus(job.status).value,
            "content": job.translated_content,
            "error": job.error_message,
            "characters_used": job.characters_used,
            "created_at": job.created_at,
            "updated_at": job.updated_at,
        }

    async def get_recent_activity(self, db: AsyncSession, limit: int = 10) -> list[dict]:
        result = await db.execute(
            select(TranslationJob)
            .order_by(TranslationJob.updated_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [job_summary(job) for job in result.scalars().all()]


# Singleton instance
diagnostics_service = DiagnosticsService()
