"""Tests for the synchronous product translation path."""

import pytest
from sqlalchemy import func, select

from conftest import FakeTranslator
from translation_service.db.models import MonthlyQuota, Product, ProductTranslation, TranslationLog
from translation_service.services.key_pool import KeySelectionMode
from translation_service.services.product_translation import (
    ProductNotFoundError,
    ProductTranslationService,
    QuotaExceededError,
)
from translation_service.services.quota import QuotaTracker, current_month


def make_service(translator) -> ProductTranslationService:
    return ProductTranslationService(pool=translator, delay_seconds=0)


async def add_product(db) -> Product:
    product = Product(
        name="Still RX20",
        short_description="Wózek elektryczny",
        mast="Triplex",
        wheels="   ",
    )
    db.add(product)
    await db.commit()
    return product


@pytest.mark.asyncio
async def test_translates_non_blank_fields_for_every_language(db_session, fake_translator):
    product = await add_product(db_session)

    result = await make_service(fake_translator).translate_product_fields(
        db_session, product.id, KeySelectionMode.FALLBACK
    )

    assert len(result.results) == 8  # 2 fields x 4 languages
    assert all(r.success for r in result.results)
    assert result.characters_used == 4 * (len("Wózek elektryczny") + len("Triplex"))

    service = make_service(fake_translator)
    german = await service.get_product_translations(db_session, product.id, "de")
    assert german == {
        "short_description": "[de] Wózek elektryczny",
        "mast": "[de] Triplex",
    }

    quota = await QuotaTracker().get_month(db_session)
    assert quota.characters_used == result.characters_used
    assert quota.api_calls == 1


@pytest.mark.asyncio
async def test_retranslation_overwrites_instead_of_duplicating(db_session, fake_translator):
    product = await add_product(db_session)
    service = make_service(fake_translator)

    await service.translate_product_fields(db_session, product.id, fields=["mast"])
    await service.translate_product_fields(db_session, product.id, fields=["mast"])

    count = (
        await db_session.execute(
            select(func.count())
            .select_from(ProductTranslation)
            .where(ProductTranslation.product_id == product.id)
        )
    ).scalar()
    assert count == 4


@pytest.mark.asyncio
async def test_every_attempt_is_logged(db_session):
    product = await add_product(db_session)
    translator = FakeTranslator(fail_with=RuntimeError("API down"))

    result = await make_service(translator).translate_product_fields(
        db_session, product.id, KeySelectionMode.PRIMARY_ONLY, fields=["mast"]
    )

    assert [r.success for r in result.results] == [False] * 4
    assert result.characters_used == 0

    logs = await make_service(translator).get_translation_logs(db_session, limit=50)
    assert len(logs) == 4
    assert {log.status for log in logs} == {"error"}
    assert all(log.error_details == "API down" for log in logs)
    assert all(log.translation_mode == "primary_only" for log in logs)
    assert all(log.api_key_used == "unknown" for log in logs)

    assert await QuotaTracker().get_month(db_session) is None


@pytest.mark.asyncio
async def test_success_log_has_payloads(db_session, fake_translator):
    product = await add_product(db_session)

    await make_service(fake_translator).translate_product_fields(
        db_session, product.id, fields=["mast"]
    )

    log = (
        await db_session.execute(
            select(TranslationLog).where(TranslationLog.target_language == "en")
        )
    ).scalar_one()
    assert log.status == "success"
    assert log.request_payload == {"text": "Triplex"}
    assert log.response_payload == {"text": "[en] Triplex"}
    assert log.characters_used == len("Triplex")
    assert log.processing_time_ms is not None


@pytest.mark.asyncio
async def test_quota_exhausted_refuses(db_session, fake_translator):
    product = await add_product(db_session)
    db_session.add(
        MonthlyQuota(month_year=current_month(), characters_used=500_000, characters_limit=500_000)
    )
    await db_session.commit()

    with pytest.raises(QuotaExceededError):
        await make_service(fake_translator).translate_product_fields(db_session, product.id)

    assert fake_translator.calls == []


@pytest.mark.asyncio
async def test_unknown_product(db_session, fake_translator):
    with pytest.raises(ProductNotFoundError):
        await make_service(fake_translator).translate_product_fields(db_session, "missing")
