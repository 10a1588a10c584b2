"""Celery worker configuration and tasks."""

import asyncio
import logging

from celery import Celery, Task

from translation_service.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# Create Celery app
celery_app = Celery(
    "translation_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=600,  # 10 minutes max per task
    task_soft_time_limit=540,  # Soft limit at 9 minutes
    worker_prefetch_multiplier=1,  # Fetch one task at a time
    task_acks_late=True,  # Ack after task completes
    task_reject_on_worker_lost=True,
    task_default_queue="default",
    task_queues={
        "default": {"exchange": "default", "routing_key": "default"},
        "priority": {"exchange": "priority", "routing_key": "priority"},
    },
    task_routes={
        "translation_service.worker.process_pending_translations": {"queue": "default"},
        "translation_service.worker.drain_priority_jobs": {"queue": "priority"},
        "translation_service.worker.recover_stalled_jobs": {"queue": "default"},
    },
    beat_schedule={
        "process-pending-translations": {
            "task": "translation_service.worker.process_pending_translations",
            "schedule": settings.process_interval_seconds,
        },
        "recover-stalled-jobs": {
            "task": "translation_service.worker.recover_stalled_jobs",
            "schedule": 3600.0,  # Every hour
        },
    },
)


class BaseTask(Task):
    """Base task for database-bound work; job failures are recorded, not retried."""

    max_retries = 0


def run_async(coro):
    """Run a coroutine on a fresh loop and release pooled connections afterwards."""
    from translation_service.db.session import engine

    async def runner():
        try:
            return await coro
        finally:
            await engine.dispose()

    return asyncio.run(runner())


@celery_app.task(base=BaseTask, name="translation_service.worker.process_pending_translations")
def process_pending_translations(max_jobs: int | None = None) -> dict:
    """Periodic batch over the pending job backlog."""
    from translation_service.db.session import async_session_maker
    from translation_service.services.batch_processor import batch_processor

    async def do_batch():
        async with async_session_maker() as db:
            return await batch_processor.process_pending_batch(db, max_jobs)

    result = run_async(do_batch())
    logger.info(
        f"Batch finished: {result.processed_count} processed, "
        f"{result.failed_count} failed, {result.characters_used} characters"
    )
    return {
        "success": result.success,
        "processed_count": result.processed_count,
        "failed_count": result.failed_count,
        "characters_used": result.characters_used,
        "limit_exceeded": result.limit_exceeded,
        "message": result.message,
    }


@celery_app.task(base=BaseTask, name="translation_service.worker.drain_priority_jobs")
def drain_priority_jobs(job_ids: list[str]) -> dict:
    """Translate the jobs claimed by one priority start."""
    from translation_service.db.session import async_session_maker
    from translation_service.services.priority import priority_reprioritizer

    async def do_drain():
        async with async_session_maker() as db:
            return await priority_reprioritizer.drain(db, job_ids)

    result = run_async(do_drain())
    return {
        "completed": result.completed,
        "failed": result.failed,
        "characters_used": result.characters_used,
        "stopped_on_quota": result.stopped_on_quota,
    }


@celery_app.task(base=BaseTask, name="translation_service.worker.recover_stalled_jobs")
def recover_stalled_jobs() -> int:
    """Fail processing jobs whose lease expired."""
    from translation_service.db.session import async_session_maker
    from translation_service.services.job_store import job_store

    async def do_recover():
        async with async_session_maker() as db:
            recovered = await job_store.recover_stalled(db)
            await db.commit()
            return recovered

    return run_async(do_recover())


def enqueue_priority_drain(job_ids: list[str]) -> str:
    """
    Dispatch the drain for claimed priority jobs.

    Returns:
        Celery task id
    """
    result = drain_priority_jobs.apply_async(args=[job_ids], queue="priority")
    return result.id
