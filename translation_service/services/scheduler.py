"""Translation job scheduling for FAQ and product content."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.db.models import (
    ContentType,
    FAQItem,
    JobStatus,
    Product,
    TranslationJob,
)

settings = get_settings()
logger = logging.getLogger(__name__)


@dataclass
class SourceField:
    """One translatable field of a content item."""

    field_name: str
    source_text: Optional[str]


def product_fields(
    model: Optional[str],
    short_description: Optional[str],
    additional_description: Optional[str],
) -> list[SourceField]:
    return [
        SourceField("model", model),
        SourceField("shortDescription", short_description),
        SourceField("additionalDescription", additional_description),
    ]


class JobScheduler:
    """Turns source content into pending translation jobs."""

    async def schedule_content(
        self,
        db: AsyncSession,
        content_type: str,
        content_id: str,
        fields: Iterable[SourceField],
        target_languages: Optional[list[str]] = None,
        source_language: Optional[str] = None,
    ) -> int:
        """
        Insert one pending job per non-blank field per target language.

        Existing jobs for the same content are not checked; scheduling twice
        creates duplicates.

        Returns:
            Number of jobs scheduled
        """
        languages = target_languages or settings.target_languages
        source_language = source_language or settings.source_language

        scheduled = 0
        for field in fields:
            if not field.source_text or not field.source_text.strip():
                continue
            for language in languages:
                db.add(
                    TranslationJob(
                        content_type=content_type,
                        content_id=f"{content_id}:{field.field_name}",
                        source_language=source_language,
                        target_language=language,
                        source_content=field.source_text,
                        status=JobStatus.PENDING,
                    )
                )
                scheduled += 1

        await db.flush()
        logger.info(
            f"Scheduled {scheduled} translation job(s) for {content_type} {content_id} "
            f"in {len(languages)} language(s)"
        )
        return scheduled

    async def schedule_product(
        self,
        db: AsyncSession,
        product_id: str,
        model: Optional[str] = None,
        short_description: Optional[str] = None,
        additional_description: Optional[str] = None,
    ) -> int:
        return await self.schedule_content(
            db,
            ContentType.PRODUCT.value,
            product_id,
            product_fields(model, short_description, additional_description),
        )

    async def schedule_existing_products(self, db: AsyncSession) -> dict:
        """Schedule every product row (backfill)."""
        result = await db.execute(select(Product).order_by(Product.created_at))
        products = list(result.scalars().all())

        if not products:
            logger.info("No products found in database")
            return {"scheduled_products": 0, "scheduled_jobs": 0}

        jobs = 0
        for product in products:
            jobs += await self.schedule_product(
                db,
                product.id,
                model=product.name,
                short_description=product.short_description,
                additional_description=product.detailed_description,
            )

        logger.info(f"Scheduled translations for {len(products)} products")
        return {"scheduled_products": len(products), "scheduled_jobs": jobs}

    async def schedule_faq(self, db: AsyncSession) -> dict:
        """Schedule question and answer of every active FAQ in the source language."""
        result = await db.execute(
            select(FAQItem)
            .where(
                FAQItem.is_active == True,  # noqa: E712
                FAQItem.language == settings.source_language,
            )
            .order_by(FAQItem.display_order, FAQItem.created_at)
        )
        items = list(result.scalars().all())

        jobs = 0
        for item in items:
            jobs += await self.schedule_content(
                db,
                ContentType.FAQ.value,
                item.id,
                [SourceField("question", item.question), SourceField("answer", item.answer)],
            )

        logger.info(f"Scheduled {jobs} FAQ translations")
        return {"scheduled_faq_items": len(items), "scheduled_jobs": jobs}

    async def schedule_all_existing(self, db: AsyncSession) -> dict:
        """Initial setup: schedule all FAQ items and all products."""
        logger.info("Running initial setup: scheduling all existing content for translation...")
        faq_result = await self.schedule_faq(db)
        products_result = await self.schedule_existing_products(db)
        return {
            "faq": faq_result,
            "products": products_result,
            "total_jobs": faq_result["scheduled_jobs"] + products_result["scheduled_jobs"],
        }


# Singleton instance
job_scheduler = JobScheduler()
