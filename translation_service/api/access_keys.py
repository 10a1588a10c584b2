"""Access key management routes (admin)."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.auth.security import create_access_key, verify_admin_key
from translation_service.db.models import AccessKey
from translation_service.db.session import get_db
from translation_service.schemas.schemas import AccessKeyCreate, AccessKeyInfo, AccessKeyResponse

router = APIRouter(prefix="/v1/admin/access-keys", tags=["Admin - Access Keys"])


async def _get_or_404(db: AsyncSession, key_id: str) -> AccessKey:
    access_key = await db.get(AccessKey, key_id)
    if not access_key:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Access key {key_id} not found",
        )
    return access_key


@router.post(
    "",
    response_model=AccessKeyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new access key",
    description="Create a key for the admin dashboard or automation. Admin only.",
)
async def create_new_access_key(
    request: AccessKeyCreate,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_key),
):
    """
    Create a new access key.

    **Important**: The full key is only shown once in this response.
    Store it securely as it cannot be retrieved later.
    """
    access_key, full_key = await create_access_key(
        db,
        name=request.name,
        owner=request.owner,
        scopes=request.scopes,
        rate_limit_per_minute=request.rate_limit_per_minute,
        rate_limit_per_hour=request.rate_limit_per_hour,
        expires_in_days=request.expires_in_days,
    )
    await db.commit()

    return AccessKeyResponse(
        id=access_key.id,
        access_key=full_key,  # Only time this is shown
        key_prefix=access_key.key_prefix,
        name=access_key.name,
        owner=access_key.owner,
        scopes=access_key.scopes,
        rate_limit_per_minute=access_key.rate_limit_per_minute,
        rate_limit_per_hour=access_key.rate_limit_per_hour,
        created_at=access_key.created_at,
        expires_at=access_key.expires_at,
    )


@router.get(
    "",
    response_model=list[AccessKeyInfo],
    summary="List all access keys",
    description="List all access keys (without the actual key values). Admin only.",
)
async def list_access_keys(
    include_inactive: bool = Query(False, description="Include inactive keys"),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_key),
):
    query = select(AccessKey)
    if not include_inactive:
        query = query.where(AccessKey.is_active == True)  # noqa: E712

    result = await db.execute(query.order_by(AccessKey.created_at.desc()))
    return list(result.scalars().all())


@router.get(
    "/{key_id}",
    response_model=AccessKeyInfo,
    summary="Get access key details",
)
async def get_access_key(
    key_id: str,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_key),
):
    return await _get_or_404(db, key_id)


@router.delete(
    "/{key_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke an access key",
    description="Deactivate an access key (soft delete). Admin only.",
)
async def revoke_access_key(
    key_id: str,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_key),
):
    access_key = await _get_or_404(db, key_id)
    access_key.is_active = False
    await db.commit()
