"""Access keys for the translation dashboard and automation clients.

Two scopes exist: ``read`` (overview, job lists, stats) and ``manage``
(scheduling, processing, priority drains, DeepL key changes). A manage key
can always read.
"""

import enum
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.db.models import AccessKey
from translation_service.db.session import get_db

settings = get_settings()
logger = logging.getLogger(__name__)

KEY_PREFIX = "tsk_"
KEY_LENGTH = len(KEY_PREFIX) + 32
LOOKUP_PREFIX_LENGTH = 12

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class Scope(str, enum.Enum):
    READ = "read"
    MANAGE = "manage"


IMPLIED_SCOPES: dict[Scope, set[Scope]] = {
    Scope.READ: set(),
    Scope.MANAGE: {Scope.READ},
}


def granted_scopes(scopes: Iterable[str]) -> set[Scope]:
    """Scopes a key effectively holds, unknown names ignored."""
    granted: set[Scope] = set()
    for name in scopes or []:
        try:
            scope = Scope(name)
        except ValueError:
            continue
        granted.add(scope)
        granted |= IMPLIED_SCOPES[scope]
    return granted


def generate_access_key() -> tuple[str, str]:
    """Return (full_key, lookup_prefix), e.g. ('tsk_3f9a...', 'tsk_3f9a1c2b')."""
    full_key = f"{KEY_PREFIX}{secrets.token_hex(16)}"
    return full_key, full_key[:LOOKUP_PREFIX_LENGTH]


def hash_access_key(access_key: str) -> str:
    return pwd_context.hash(access_key)


def verify_access_key(plain_key: str, hashed_key: str) -> bool:
    return pwd_context.verify(plain_key, hashed_key)


def is_well_formed(access_key: str) -> bool:
    return access_key.startswith(KEY_PREFIX) and len(access_key) == KEY_LENGTH


def read_presented_key(authorization: Optional[str], x_api_key: Optional[str]) -> str:
    """
    Pull the access key out of the request headers.

    `Authorization: Bearer <key>` wins over `X-API-Key`.

    Raises:
        HTTPException 401: no key, wrong auth scheme or malformed key
    """
    if authorization:
        scheme, _, presented = authorization.partition(" ")
        if scheme != "Bearer" or not presented:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authorization scheme. Use 'Bearer <access_key>'",
            )
    else:
        presented = x_api_key

    if not presented:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing access key. Send 'Authorization: Bearer <key>' or 'X-API-Key'",
        )
    if not is_well_formed(presented):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access key format",
        )
    return presented


def _is_expired(expires_at: Optional[datetime]) -> bool:
    if expires_at is None:
        return False
    # SQLite hands back naive datetimes
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < datetime.now(timezone.utc)


async def find_access_key(db: AsyncSession, presented: str) -> Optional[AccessKey]:
    """Active, unexpired key matching `presented`, or None."""
    result = await db.execute(
        select(AccessKey).where(
            AccessKey.key_prefix == presented[:LOOKUP_PREFIX_LENGTH],
            AccessKey.is_active == True,  # noqa: E712
        )
    )
    # Prefixes are not unique, so every candidate is checked against its hash
    for candidate in result.scalars().all():
        if not _is_expired(candidate.expires_at) and verify_access_key(
            presented, candidate.key_hash
        ):
            return candidate
    return None


class DashboardAccess:
    """FastAPI dependency admitting access keys that hold `scope`."""

    def __init__(self, scope: Scope):
        self.scope = scope

    async def __call__(
        self,
        request: Request,
        authorization: Optional[str] = Header(None),
        x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
        db: AsyncSession = Depends(get_db),
    ) -> AccessKey:
        presented = read_presented_key(authorization, x_api_key)

        access_key = await find_access_key(db, presented)
        if access_key is None:
            logger.warning(f"Rejected unknown or expired access key {presented[:LOOKUP_PREFIX_LENGTH]}...")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid or expired access key",
            )

        if self.scope not in granted_scopes(access_key.scopes):
            logger.warning(
                f"Access key '{access_key.name}' lacks the {self.scope.value} scope "
                f"for {request.method} {request.url.path}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access key lacks the '{self.scope.value}' scope",
            )

        # Rate limiting is keyed on this
        request.state.access_key = access_key
        return access_key


require_read_scope = DashboardAccess(Scope.READ)
require_manage_scope = DashboardAccess(Scope.MANAGE)


def verify_admin_key(x_admin_key: Optional[str] = Header(None)) -> bool:
    """Guard for access-key administration: `X-Admin-Key` must equal the secret key."""
    if not x_admin_key or not secrets.compare_digest(x_admin_key, settings.secret_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin key",
        )
    return True


async def create_access_key(
    db: AsyncSession,
    name: str,
    owner: str,
    scopes: list[str],
    rate_limit_per_minute: int = 60,
    rate_limit_per_hour: int = 500,
    expires_in_days: Optional[int] = None,
) -> tuple[AccessKey, str]:
    """
    Store a new hashed access key.

    Returns:
        (AccessKey row, full key). The full key is never stored and cannot
        be shown again.
    """
    full_key, lookup_prefix = generate_access_key()

    expires_at = None
    if expires_in_days:
        expires_at = datetime.now(timezone.utc) + timedelta(days=expires_in_days)

    access_key = AccessKey(
        key_hash=hash_access_key(full_key),
        key_prefix=lookup_prefix,
        name=name,
        owner=owner,
        scopes=sorted({Scope(s).value for s in scopes}),
        rate_limit_per_minute=rate_limit_per_minute,
        rate_limit_per_hour=rate_limit_per_hour,
        expires_at=expires_at,
    )
    db.add(access_key)
    await db.flush()

    logger.info(f"Created access key '{name}' for {owner} with scopes {access_key.scopes}")
    return access_key, full_key
