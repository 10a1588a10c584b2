"""DeepL credential management routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.auth.security import require_manage_scope, require_read_scope
from translation_service.db.models import AccessKey
from translation_service.db.session import get_db
from translation_service.schemas.schemas import DeepLKeyCreate, DeepLKeyInfo, KeyTestResult
from translation_service.services.key_pool import key_pool

router = APIRouter(prefix="/v1/deepl-keys", tags=["DeepL Keys"])


@router.post(
    "",
    response_model=DeepLKeyInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Add a DeepL API key",
    description="Register a credential. Marking it primary demotes the current primary key.",
)
async def add_key(
    request: DeepLKeyCreate,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    key = await key_pool.add_key(db, request.name, request.api_key, request.is_primary)
    await db.commit()
    return key


@router.get(
    "",
    response_model=list[DeepLKeyInfo],
    summary="List DeepL API keys",
)
async def list_keys(
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_read_scope),
):
    return await key_pool.list_keys(db)


@router.post(
    "/refresh-usage",
    response_model=list[KeyTestResult],
    summary="Refresh usage of all active keys",
)
async def refresh_usage(
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    results = await key_pool.refresh_usage(db)
    await db.commit()
    return results


@router.post(
    "/{key_id}/test",
    response_model=KeyTestResult,
    summary="Test one DeepL API key",
    description="Query the usage endpoint with the key and store its status and quota.",
)
async def test_key(
    key_id: str,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    result = await key_pool.test_connection(db, key_id)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"DeepL key {key_id} not found",
        )
    await db.commit()
    return result


@router.delete(
    "/{key_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a DeepL API key",
)
async def delete_key(
    key_id: str,
    db: AsyncSession = Depends(get_db),
    _: AccessKey = Depends(require_manage_scope),
):
    if not await key_pool.delete_key(db, key_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"DeepL key {key_id} not found",
        )
    await db.commit()
