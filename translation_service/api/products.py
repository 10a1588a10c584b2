"""Synchronous product translation routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.auth.security import require_manage_scope, require_read_scope
from translation_service.config import get_settings
from translation_service.db.models import AccessKey
from translation_service.db.session import get_db
from translation_service.middleware.rate_limit import rate_limit_trigger
from translation_service.schemas.schemas import (
    ProductTranslateRequest,
    ProductTranslateResponse,
    TranslationLogInfo,
)
from translation_service.services.product_translation import (
    PRODUCT_TRANSLATABLE_FIELDS,
    ProductNotFoundError,
    product_translation_service,
)

router = APIRouter(prefix="/v1/products", tags=["Products"])

settings = get_settings()


@router.get(
    "/translation-logs",
    response_model=list[TranslationLogInfo],
    summary="Product translation audit log",
)
async def get_translation_logs(
    limit: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    return await product_translation_service.get_translation_logs(db, limit)


@router.post(
    "/{product_id}/translate",
    response_model=ProductTranslateResponse,
    summary="Translate a product now",
    description="Translate every non-empty product field into all target languages.",
)
@rate_limit_trigger()
async def translate_product(
    request: Request,
    product_id: str,
    body: ProductTranslateRequest | None = None,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    body = body or ProductTranslateRequest()

    unknown = set(body.fields or []) - set(PRODUCT_TRANSLATABLE_FIELDS)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown product field(s): {', '.join(sorted(unknown))}",
        )

    try:
        result = await product_translation_service.translate_product_fields(
            db, product_id, body.mode, body.fields
        )
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ProductTranslateResponse.model_validate(result)


@router.get(
    "/{product_id}/translations/{language}",
    response_model=dict[str, str],
    summary="Translated product fields",
    description="Field name to translated value, as read by the storefront.",
)
async def get_product_translations(
    product_id: str,
    language: str,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    language = language.lower()
    if language not in settings.target_languages:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid language. Must be one of: {', '.join(settings.target_languages)}",
        )
    return await product_translation_service.get_product_translations(db, product_id, language)
