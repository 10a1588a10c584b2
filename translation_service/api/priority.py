"""Priority translation routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.auth.security import require_manage_scope, require_read_scope
from translation_service.db.models import AccessKey
from translation_service.db.session import get_db
from translation_service.middleware.rate_limit import rate_limit_trigger
from translation_service.schemas.schemas import (
    LanguageProgress,
    PriorityStartResponse,
    PriorityStatusResponse,
)
from translation_service.services.priority import DISPATCH_ERROR, priority_reprioritizer
from translation_service.worker import enqueue_priority_drain

router = APIRouter(prefix="/v1/priority", tags=["Priority"])

logger = logging.getLogger(__name__)


@router.get(
    "/progress",
    response_model=list[LanguageProgress],
    summary="Translation progress per language",
)
async def get_language_progress(
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    return await priority_reprioritizer.get_language_progress(db)


@router.post(
    "/{language}",
    response_model=PriorityStartResponse,
    summary="Start priority translation",
    description=(
        "Claim the oldest pending jobs of one language and drain them in the "
        "background. Fails with 409 while another language is being drained."
    ),
)
@rate_limit_trigger()
async def start_priority_translation(
    request: Request,
    language: str,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    # ValueError and PriorityConflictError are mapped to 400/409 in main
    result = await priority_reprioritizer.start_priority_translation(db, language)

    task_id = None
    if result.job_ids:
        try:
            task_id = enqueue_priority_drain(result.job_ids)
        except Exception as e:
            logger.error(f"Failed to dispatch priority drain for {result.language.upper()}: {e}")
            await priority_reprioritizer.fail_claimed(db, result.job_ids, DISPATCH_ERROR)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Worker queue unavailable, priority translation was not started",
            )
        logger.info(f"Dispatched priority drain {task_id} for {result.language.upper()}")

    return PriorityStartResponse(
        success=True,
        language=result.language,
        priority_jobs_created=result.priority_jobs_created,
        estimated_duration_minutes=result.estimated_duration_minutes,
        message=result.message,
        task_id=task_id,
    )


@router.get(
    "/{language}",
    response_model=PriorityStatusResponse,
    summary="Priority translation status",
)
async def get_priority_status(
    language: str,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    return PriorityStatusResponse.model_validate(
        await priority_reprioritizer.get_priority_status(db, language)
    )
