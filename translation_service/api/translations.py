"""Translation job scheduling, processing and diagnostics routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.auth.security import require_manage_scope, require_read_scope
from translation_service.config import get_settings
from translation_service.db.models import AccessKey
from translation_service.db.session import get_db
from translation_service.middleware.rate_limit import rate_limit_trigger
from translation_service.schemas.schemas import (
    BatchResultResponse,
    JobSummary,
    MonthStatsResponse,
    OverviewResponse,
    ProcessBatchRequest,
    RecoverResponse,
    ScheduleAllResponse,
    ScheduleContentRequest,
    ScheduleFAQResponse,
    ScheduleProductRequest,
    ScheduleResponse,
    StatusCheckResponse,
)
from translation_service.services.batch_processor import batch_processor
from translation_service.services.diagnostics import diagnostics_service
from translation_service.services.job_store import job_store
from translation_service.services.quota import quota_tracker
from translation_service.services.scheduler import SourceField, job_scheduler

router = APIRouter(prefix="/v1/translations", tags=["Translations"])

settings = get_settings()


def _check_languages(languages: list[str] | None):
    for language in languages or []:
        if language not in settings.target_languages:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid language. Must be one of: {', '.join(settings.target_languages)}",
            )


@router.post(
    "/schedule",
    response_model=ScheduleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule content for translation",
    description="Create one pending job per non-blank field and target language.",
)
async def schedule_content(
    request: ScheduleContentRequest,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    _check_languages(request.target_languages)

    scheduled = await job_scheduler.schedule_content(
        db,
        request.content_type,
        request.content_id,
        [SourceField(name, text) for name, text in request.fields.items()],
        target_languages=request.target_languages,
    )
    await db.commit()

    return ScheduleResponse(
        scheduled_jobs=scheduled,
        message=f"Scheduled {scheduled} translation job(s)",
    )


@router.post(
    "/schedule/product",
    response_model=ScheduleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a new product",
    description="Schedule model, short and additional description of a product.",
)
async def schedule_product(
    request: ScheduleProductRequest,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    scheduled = await job_scheduler.schedule_product(
        db,
        request.product_id,
        model=request.model,
        short_description=request.short_description,
        additional_description=request.additional_description,
    )
    await db.commit()

    return ScheduleResponse(
        scheduled_jobs=scheduled,
        message=f"Scheduled {scheduled} translation job(s) for product {request.product_id}",
    )


@router.post(
    "/schedule/faq",
    response_model=ScheduleFAQResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule all active FAQ items",
)
async def schedule_faq(
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    result = await job_scheduler.schedule_faq(db)
    await db.commit()
    return result


@router.post(
    "/schedule/all",
    response_model=ScheduleAllResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule all existing content",
    description="Initial setup: schedule every FAQ item and every product.",
)
async def schedule_all_existing(
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    result = await job_scheduler.schedule_all_existing(db)
    await db.commit()
    return result


@router.post(
    "/process",
    response_model=BatchResultResponse,
    summary="Process a batch of pending jobs",
    description="Translate up to `max_jobs` pending jobs now, within the monthly quota.",
)
@rate_limit_trigger()
async def process_batch(
    request: Request,
    body: ProcessBatchRequest | None = None,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    max_jobs = body.max_jobs if body else settings.batch_size
    result = await batch_processor.process_pending_batch(db, max_jobs)
    return BatchResultResponse.model_validate(result)


@router.post(
    "/recover",
    response_model=RecoverResponse,
    summary="Fail stalled jobs",
    description="Mark processing jobs whose lease expired as failed.",
)
async def recover_stalled(
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    recovered = await job_store.recover_stalled(db)
    await db.commit()
    return RecoverResponse(recovered_jobs=recovered)


@router.get(
    "/overview",
    response_model=OverviewResponse,
    summary="Translation overview",
    description="Job counts by status and language, API connectivity and quota usage.",
)
async def get_overview(
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    return await diagnostics_service.get_overview(db)


@router.get(
    "/jobs",
    response_model=list[JobSummary],
    summary="Recent translation jobs",
)
async def get_detailed_translations(
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    return await diagnostics_service.get_detailed_translations(db, limit)


@router.get(
    "/status",
    response_model=StatusCheckResponse,
    summary="Check one translation",
    description="Point lookup by content type, content id and target language.",
)
async def check_status(
    content_type: str = Query(...),
    content_id: str = Query(...),
    target_language: str = Query(...),
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    return await diagnostics_service.check_status(
        db, content_type, content_id, target_language.lower()
    )


@router.get(
    "/activity",
    response_model=list[JobSummary],
    summary="Recently updated jobs",
)
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    return await diagnostics_service.get_recent_activity(db, limit)


@router.get(
    "/stats",
    response_model=MonthStatsResponse,
    summary="Monthly quota usage",
)
async def get_month_stats(
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    return await quota_tracker.get_month_stats(db)
