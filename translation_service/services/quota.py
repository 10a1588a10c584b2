"""Monthly character quota tracking."""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.db.models import JobStatus, MonthlyQuota, TranslationJob, utcnow
from translation_service.db.upsert import insert_for

settings = get_settings()
logger = logging.getLogger(__name__)


def current_month(now: Optional[datetime] = None) -> str:
    """Quota key for the given (default: current) UTC time, e.g. '2026-10'."""
    return (now or datetime.now(timezone.utc)).strftime("%Y-%m")


class QuotaTracker:
    """Check and account for the monthly character budget."""

    async def get_month(self, db: AsyncSession, month: Optional[str] = None) -> Optional[MonthlyQuota]:
        result = await db.execute(
            select(MonthlyQuota)
            .where(MonthlyQuota.month_year == (month or current_month()))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def check_monthly_limit(self, db: AsyncSession) -> bool:
        """True while this month's budget is not used up. No row means nothing used yet."""
        row = await self.get_month(db)
        if row is None:
            return True
        return row.characters_used < row.characters_limit

    async def remaining(self, db: AsyncSession) -> int:
        """Characters still available this month."""
        row = await self.get_month(db)
        if row is None:
            return settings.monthly_character_limit
        return max(row.characters_limit - row.characters_used, 0)

    async def record_usage(self, db: AsyncSession, characters_used: int, api_calls: int = 1):
        """
        Add usage to the current month in a single atomic statement.

        Creates the month row on first use; otherwise increments
        characters_used and api_calls in place.
        """
        stmt = insert_for(db, MonthlyQuota).values(
            month_year=current_month(),
            characters_used=characters_used,
            characters_limit=settings.monthly_character_limit,
            api_calls=api_calls,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[MonthlyQuota.month_year],
            set_={
                "characters_used": MonthlyQuota.characters_used + stmt.excluded.characters_used,
                "api_calls": MonthlyQuota.api_calls + stmt.excluded.api_calls,
                "updated_at": utcnow(),
            },
        )
        await db.execute(stmt)
        logger.info(f"Recorded {characters_used} characters ({api_calls} API call(s)) for {current_month()}")

    async def get_month_stats(self, db: AsyncSession) -> dict:
        """Current month usage plus the pending job backlog."""
        row = await self.get_month(db)
        pending = (
            await db.execute(
                select(func.count())
                .select_from(TranslationJob)
                .where(TranslationJob.status == JobStatus.PENDING)
            )
        ).scalar() or 0

        used = row.characters_used if row else 0
        limit = row.characters_limit if row else settings.monthly_character_limit
        return {
            "current_month": current_month(),
            "characters_used": used,
            "characters_limit": limit,
            "characters_remaining": max(limit - used, 0),
            "api_calls": row.api_calls if row else 0,
            "pending_jobs": pending,
            "limit_reached": used >= limit if row else False,
        }


# Singleton instance
quota_tracker = QuotaTracker()
