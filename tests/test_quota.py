"""Tests for monthly quota tracking."""

from datetime import datetime, timezone

import pytest

from translation_service.db.models import MonthlyQuota
from translation_service.services.quota import QuotaTracker, current_month


def test_current_month_format():
    assert current_month(datetime(2026, 3, 7, tzinfo=timezone.utc)) == "2026-03"


@pytest.mark.asyncio
async def test_no_row_means_full_budget(db_session):
    tracker = QuotaTracker()

    assert await tracker.check_monthly_limit(db_session) is True
    assert await tracker.remaining(db_session) == 500_000
    assert await tracker.get_month(db_session) is None


@pytest.mark.asyncio
async def test_record_usage_creates_then_increments(db_session):
    tracker = QuotaTracker()

    await tracker.record_usage(db_session, 600)
    await tracker.record_usage(db_session, 150, api_calls=2)
    await db_session.commit()

    row = await tracker.get_month(db_session)
    assert row.characters_used == 750
    assert row.api_calls == 3
    assert row.characters_limit == 500_000


@pytest.mark.asyncio
async def test_usage_never_decreases(db_session):
    tracker = QuotaTracker()
    seen = []

    for amount in (10, 0, 25, 5):
        await tracker.record_usage(db_session, amount)
        seen.append((await tracker.get_month(db_session)).characters_used)

    assert seen == sorted(seen)
    assert seen[-1] == 40


@pytest.mark.asyncio
async def test_limit_reached(db_session):
    tracker = QuotaTracker()
    db_session.add(
        MonthlyQuota(month_year=current_month(), characters_used=1000, characters_limit=1000)
    )
    await db_session.commit()

    assert await tracker.check_monthly_limit(db_session) is False
    assert await tracker.remaining(db_session) == 0

    stats = await tracker.get_month_stats(db_session)
    assert stats["limit_reached"] is True
    assert stats["characters_remaining"] == 0


@pytest.mark.asyncio
async def test_month_stats_counts_pending_jobs(db_session, make_job):
    await make_job()
    await make_job(target_language="de")
    await db_session.commit()

    stats = await QuotaTracker().get_month_stats(db_session)

    assert stats["pending_jobs"] == 2
    assert stats["characters_used"] == 0
    assert stats["limit_reached"] is False
