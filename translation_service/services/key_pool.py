"""Dual DeepL key pool with per-call selection modes."""

import base64
import binascii
import enum
import itertools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.db.models import DeepLApiKey, KeyStatus
from translation_service.services.deepl_client import (
    DeepLClient,
    DeepLUsage,
    TranslationAPIError,
    mask_key,
)

settings = get_settings()
logger = logging.getLogger(__name__)


class KeySelectionMode(str, enum.Enum):
    """How the pool picks among active keys for one call."""

    PRIMARY_ONLY = "primary_only"
    FALLBACK = "fallback"
    SEQUENTIAL = "sequential"


class NoActiveKeysError(Exception):
    """No usable DeepL credential is configured."""


@dataclass
class Credential:
    """Decoded key material; `id` is None for the key taken from settings."""

    id: Optional[str]
    name: str
    secret: str
    masked: str
    is_primary: bool


@dataclass
class TranslationOutcome:
    """Successful translation through the pool."""

    text: str
    characters_used: int
    api_key_used: str


def encode_key(raw_key: str) -> str:
    return base64.b64encode(raw_key.encode("utf-8")).decode("ascii")


def decode_key(encoded: str) -> str:
    """Decode stored key material; values that are not base64 are used as-is."""
    try:
        return base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return encoded


def select_keys(
    credentials: list[Credential], mode: KeySelectionMode, offset: int = 0
) -> list[Credential]:
    """
    Order credentials for one translation call.

    `credentials` must already be sorted primary first.
    - primary_only: just the primary key (or the first key when none is flagged)
    - fallback: primary first, then the others
    - sequential: start at `offset` (round-robin), the rest follow as fallback
    """
    if not credentials:
        return []

    if mode == KeySelectionMode.PRIMARY_ONLY:
        primary = next((c for c in credentials if c.is_primary), credentials[0])
        return [primary]

    if mode == KeySelectionMode.SEQUENTIAL:
        start = offset % len(credentials)
        return credentials[start:] + credentials[:start]

    return list(credentials)


class KeyPool:
    """Translate through the configured DeepL keys and keep their status fresh."""

    def __init__(self, client_factory: Optional[Callable[[str], DeepLClient]] = None):
        self.client_factory = client_factory or DeepLClient
        self._rotation = itertools.count()

    async def get_active_keys(self, db: AsyncSession) -> list[DeepLApiKey]:
        result = await db.execute(
            select(DeepLApiKey)
            .where(DeepLApiKey.is_active == True)  # noqa: E712
            .order_by(DeepLApiKey.is_primary.desc(), DeepLApiKey.created_at)
        )
        return list(result.scalars().all())

    async def get_credentials(self, db: AsyncSession) -> list[Credential]:
        """Active keys from the database, or the settings key when none exist."""
        keys = await self.get_active_keys(db)
        credentials = [
            Credential(
                id=k.id,
                name=k.name,
                secret=decode_key(k.api_key_encoded),
                masked=k.api_key_masked,
                is_primary=k.is_primary,
            )
            for k in keys
        ]
        if not credentials and settings.deepl_api_key:
            credentials.append(
                Credential(
                    id=None,
                    name="environment",
                    secret=settings.deepl_api_key,
                    masked=mask_key(settings.deepl_api_key),
                    is_primary=True,
                )
            )
        return credentials

    async def translate(
        self,
        db: AsyncSession,
        text: str,
        target_language: str,
        source_language: str = "pl",
        mode: KeySelectionMode = KeySelectionMode.FALLBACK,
    ) -> TranslationOutcome:
        """
        Translate `text`, trying keys in the order the mode dictates.

        Raises:
            NoActiveKeysError: nothing to translate with
            TranslationAPIError / httpx.HTTPError: every tried key failed
        """
        credentials = await self.get_credentials(db)
        if not credentials:
            raise NoActiveKeysError("No active DeepL API keys found")

        offset = next(self._rotation) if mode == KeySelectionMode.SEQUENTIAL else 0
        last_error: Optional[Exception] = None

        for credential in select_keys(credentials, KeySelectionMode(mode), offset):
            try:
                client = self.client_factory(credential.secret)
                translated = await client.translate(text, target_language, source_language)
            except (TranslationAPIError, httpx.HTTPError) as e:
                last_error = e
                logger.error(f"Translation failed with key {credential.masked}: {e}")
                status = (
                    KeyStatus.QUOTA_EXCEEDED
                    if isinstance(e, TranslationAPIError) and e.quota_exceeded
                    else KeyStatus.ERROR
                )
                await self._set_status(db, credential, status)
                continue

            await self._set_status(db, credential, KeyStatus.ACTIVE)
            return TranslationOutcome(
                text=translated,
                characters_used=len(text),
                api_key_used=credential.masked,
            )

        raise last_error or NoActiveKeysError("All API keys failed")

    async def _set_status(self, db: AsyncSession, credential: Credential, status: KeyStatus):
        if credential.id is None:
            return
        await db.execute(
            update(DeepLApiKey).where(DeepLApiKey.id == credential.id).values(status=status)
        )

    async def _apply_usage(
        self,
        db: AsyncSession,
        key: DeepLApiKey,
        status: KeyStatus,
        usage: Optional[DeepLUsage] = None,
    ):
        now = datetime.now(timezone.utc)
        key.status = status
        key.last_test_at = now
        if usage is not None:
            key.quota_used = usage.character_count
            key.quota_limit = usage.character_limit
            key.quota_remaining = usage.remaining
            key.last_sync_at = now
        await db.flush()

    async def _check_usage(self, db: AsyncSession, key: DeepLApiKey) -> dict:
        client = self.client_factory(decode_key(key.api_key_encoded))
        try:
            usage = await client.get_usage()
        except (TranslationAPIError, httpx.HTTPError) as e:
            status = (
                KeyStatus.QUOTA_EXCEEDED
                if isinstance(e, TranslationAPIError) and e.quota_exceeded
                else KeyStatus.ERROR
            )
            await self._apply_usage(db, key, status)
            return {"key_id": key.id, "success": False, "error": str(e)}

        await self._apply_usage(db, key, KeyStatus.ACTIVE, usage)
        return {
            "key_id": key.id,
            "success": True,
            "usage": {
                "characters_used": usage.character_count,
                "characters_limit": usage.character_limit,
            },
        }

    async def test_connection(self, db: AsyncSession, key_id: str) -> Optional[dict]:
        """Check one key; returns None when the key does not exist."""
        key = await db.get(DeepLApiKey, key_id)
        if key is None:
            return None
        return await self._check_usage(db, key)

    async def refresh_usage(self, db: AsyncSession) -> list[dict]:
        """Check every active key and store its quota."""
        return [await self._check_usage(db, key) for key in await self.get_active_keys(db)]

    async def add_key(
        self, db: AsyncSession, name: str, raw_key: str, is_primary: bool = False
    ) -> DeepLApiKey:
        if is_primary:
            await db.execute(update(DeepLApiKey).values(is_primary=False))
        key = DeepLApiKey(
            name=name,
            api_key_encoded=encode_key(raw_key),
            api_key_masked=mask_key(raw_key),
            is_primary=is_primary,
        )
        db.add(key)
        await db.flush()
        return key

    async def list_keys(self, db: AsyncSession) -> list[DeepLApiKey]:
        result = await db.execute(
            select(DeepLApiKey).order_by(DeepLApiKey.is_primary.desc(), DeepLApiKey.created_at)
        )
        return list(result.scalars().all())

    async def delete_key(self, db: AsyncSession, key_id: str) -> bool:
        key = await db.get(DeepLApiKey, key_id)
        if key is None:
            return False
        await db.delete(key)
        await db.flush()
        return True


# Singleton instance
key_pool = KeyPool()
