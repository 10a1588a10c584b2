"""Synchronous product field translation with audit logging.

This path writes straight into product_translations (what the storefront
reads) and is independent of the translation_jobs queue.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.db.models import (
    Product,
    ProductTranslation,
    TranslationLog,
    utcnow,
)
from translation_service.db.upsert import insert_for
from translation_service.services.key_pool import KeyPool, KeySelectionMode, key_pool
from translation_service.services.quota import QuotaTracker, quota_tracker

settings = get_settings()
logger = logging.getLogger(__name__)

PRODUCT_TRANSLATABLE_FIELDS = [
    "short_description",
    "initial_lift",
    "condition",
    "drive_type",
    "mast",
    "wheels",
    "foldable_platform",
    "additional_options",
    "detailed_description",
]


class QuotaExceededError(Exception):
    """The monthly character budget is used up."""


class ProductNotFoundError(LookupError):
    pass


@dataclass
class FieldResult:
    field_name: str
    language: str
    success: bool
    characters_used: int = 0
    api_key_used: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ProductTranslationResult:
    product_id: str
    results: list[FieldResult] = field(default_factory=list)
    characters_used: int = 0


class ProductTranslationService:
    """Translate a product's fields into every target language right away."""

    def __init__(
        self,
        pool: KeyPool = key_pool,
        quota: QuotaTracker = quota_tracker,
        delay_seconds: Optional[float] = None,
    ):
        self.pool = pool
        self.quota = quota
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else settings.product_field_delay_ms / 1000
        )

    async def translate_product_fields(
        self,
        db: AsyncSession,
        product_id: str,
        mode: KeySelectionMode = KeySelectionMode.FALLBACK,
        fields: Optional[list[str]] = None,
    ) -> ProductTranslationResult:
        """
        Translate the non-empty fields of one product.

        Raises:
            ProductNotFoundError: unknown product id
            QuotaExceededError: monthly budget already used up
        """
        product = await db.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(f"Product {product_id} not found")

        if not await self.quota.check_monthly_limit(db):
            raise QuotaExceededError("Monthly translation limit exceeded")

        mode = KeySelectionMode(mode)
        field_names = fields or PRODUCT_TRANSLATABLE_FIELDS
        outcome = ProductTranslationResult(product_id=product_id)

        for language in settings.target_languages:
            logger.info(f"Translating product {product_id} fields to {language}...")

            for field_name in field_names:
                source_text = getattr(product, field_name, None)
                if not source_text or not source_text.strip():
                    continue

                outcome.results.append(
                    await self._translate_field(db, product_id, field_name, source_text, language, mode)
                )
                await db.commit()

                if self.delay_seconds:
                    await asyncio.sleep(self.delay_seconds)

        outcome.characters_used = sum(r.characters_used for r in outcome.results if r.success)
        if outcome.characters_used > 0:
            await self.quota.record_usage(db, outcome.characters_used)
            await db.commit()

        logger.info(f"Translation completed for product {product_id}: {len(outcome.results)} operations")
        return outcome

    async def _translate_field(
        self,
        db: AsyncSession,
        product_id: str,
        field_name: str,
        source_text: str,
        language: str,
        mode: KeySelectionMode,
    ) -> FieldResult:
        started = time.monotonic()
        try:
            translated = await self.pool.translate(
                db, source_text, language, settings.source_language, mode=mode
            )
        except Exception as e:  # logged per field, the product run goes on
            logger.error(f"Error translating {field_name} to {language}: {e}")
            self._log(
                db,
                product_id,
                field_name,
                language,
                mode,
                status="error",
                api_key_used="unknown",
                request_payload={"text": source_text},
                error_details=str(e),
                processing_time_ms=int((time.monotonic() - started) * 1000),
            )
            return FieldResult(field_name=field_name, language=language, success=False, error=str(e))

        await self._save_translation(db, product_id, language, field_name, translated.text)
        self._log(
            db,
            product_id,
            field_name,
            language,
            mode,
            status="success",
            api_key_used=translated.api_key_used,
            request_payload={"text": source_text},
            response_payload={"text": translated.text},
            characters_used=translated.characters_used,
            processing_time_ms=int((time.monotonic() - started) * 1000),
        )
        return FieldResult(
            field_name=field_name,
            language=language,
            success=True,
            characters_used=translated.characters_used,
            api_key_used=translated.api_key_used,
        )

    async def _save_translation(
        self, db: AsyncSession, product_id: str, language: str, field_name: str, value: str
    ):
        stmt = insert_for(db, ProductTranslation).values(
            product_id=product_id,
            language=language,
            field_name=field_name,
            translated_value=value,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["product_id", "language", "field_name"],
            set_={"translated_value": stmt.excluded.translated_value, "updated_at": utcnow()},
        )
        await db.execute(stmt)

    def _log(
        self,
        db: AsyncSession,
        product_id: str,
        field_name: str,
        language: str,
        mode: KeySelectionMode,
        status: str,
        api_key_used: str,
        request_payload: Optional[dict] = None,
        response_payload: Optional[dict] = None,
        characters_used: int = 0,
        error_details: Optional[str] = None,
        processing_time_ms: Optional[int] = None,
    ):
        db.add(
            TranslationLog(
                product_id=product_id,
                api_key_used=api_key_used,
                translation_mode=mode.value,
                field_name=field_name,
                source_language=settings.source_language,
                target_language=language,
                status=status,
                characters_used=characters_used,
                error_details=error_details,
                processing_time_ms=processing_time_ms,
                request_payload=request_payload,
                response_payload=response_payload,
            )
        )

    async def get_product_translations(
        self, db: AsyncSession, product_id: str, language: str
    ) -> dict[str, str]:
        """Field name -> translated value for the storefront."""
        result = await db.execute(
            select(ProductTranslation).where(
                ProductTranslation.product_id == product_id,
                ProductTranslation.language == language,
            )
        )
        return {row.field_name: row.translated_value for row in result.scalars().all()}

    async def get_translation_logs(self, db: AsyncSession, limit: int = 20) -> list[TranslationLog]:
        result = await db.execute(
            select(TranslationLog).order_by(TranslationLog.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())


# Singleton instance
product_translation_service = ProductTranslationService()
