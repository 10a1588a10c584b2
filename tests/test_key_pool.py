"""Tests for the dual DeepL key pool."""

import pytest
from sqlalchemy import select

from translation_service.db.models import DeepLApiKey, KeyStatus
from translation_service.services.deepl_client import DeepLUsage, TranslationAPIError
from translation_service.services.key_pool import (
    Credential,
    KeyPool,
    KeySelectionMode,
    NoActiveKeysError,
    decode_key,
    encode_key,
    select_keys,
)


class FakeClient:
    """Per-key fake; `failures` maps key -> status code to fail with."""

    def __init__(self, api_key: str, failures: dict[str, int], used: list[str]):
        self.api_key = api_key
        self.failures = failures
        self.used = used

    async def translate(self, text, target_lang, source_lang="pl"):
        self.used.append(self.api_key)
        if self.api_key in self.failures:
            raise TranslationAPIError(self.failures[self.api_key], "failure")
        return f"{target_lang}:{text}"

    async def get_usage(self):
        if self.api_key in self.failures:
            raise TranslationAPIError(self.failures[self.api_key], "failure")
        return DeepLUsage(character_count=100, character_limit=500000)


def make_pool(failures=None):
    used: list[str] = []
    pool = KeyPool(client_factory=lambda key: FakeClient(key, failures or {}, used))
    return pool, used


async def add_two_keys(pool: KeyPool, db):
    primary = await pool.add_key(db, "Primary", "primary-key-0001", is_primary=True)
    secondary = await pool.add_key(db, "Secondary", "secondary-key-0002")
    await db.commit()
    return primary, secondary


def test_select_keys_modes():
    primary = Credential("1", "a", "k1", "k1", True)
    secondary = Credential("2", "b", "k2", "k2", False)
    creds = [primary, secondary]

    assert select_keys(creds, KeySelectionMode.PRIMARY_ONLY) == [primary]
    assert select_keys(creds, KeySelectionMode.FALLBACK) == [primary, secondary]
    assert select_keys(creds, KeySelectionMode.SEQUENTIAL, offset=1) == [secondary, primary]
    assert select_keys([], KeySelectionMode.FALLBACK) == []


def test_key_encoding_round_trip():
    assert decode_key(encode_key("abc:fx")) == "abc:fx"
    assert decode_key("not base64!") == "not base64!"


@pytest.mark.asyncio
async def test_no_keys_raises(db_session):
    pool, _ = make_pool()
    with pytest.raises(NoActiveKeysError):
        await pool.translate(db_session, "Tekst", "en")


@pytest.mark.asyncio
async def test_fallback_uses_secondary_when_primary_fails(db_session):
    pool, used = make_pool(failures={"primary-key-0001": 500})
    primary, _ = await add_two_keys(pool, db_session)

    outcome = await pool.translate(db_session, "Tekst", "en", mode=KeySelectionMode.FALLBACK)

    assert outcome.text == "en:Tekst"
    assert outcome.characters_used == len("Tekst")
    assert used == ["primary-key-0001", "secondary-key-0002"]

    stored = (
        await db_session.execute(
            select(DeepLApiKey)
            .where(DeepLApiKey.id == primary.id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert stored.status == KeyStatus.ERROR


@pytest.mark.asyncio
async def test_primary_only_does_not_fall_back(db_session):
    pool, used = make_pool(failures={"primary-key-0001": 500})
    await add_two_keys(pool, db_session)

    with pytest.raises(TranslationAPIError):
        await pool.translate(db_session, "Tekst", "en", mode=KeySelectionMode.PRIMARY_ONLY)

    assert used == ["primary-key-0001"]


@pytest.mark.asyncio
async def test_quota_status_marks_key_quota_exceeded(db_session):
    pool, _ = make_pool(failures={"primary-key-0001": 456})
    primary, _ = await add_two_keys(pool, db_session)

    await pool.translate(db_session, "Tekst", "de")

    stored = (
        await db_session.execute(
            select(DeepLApiKey)
            .where(DeepLApiKey.id == primary.id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert stored.status == KeyStatus.QUOTA_EXCEEDED


@pytest.mark.asyncio
async def test_sequential_rotates_start_key(db_session):
    pool, used = make_pool()
    await add_two_keys(pool, db_session)

    await pool.translate(db_session, "a", "en", mode=KeySelectionMode.SEQUENTIAL)
    await pool.translate(db_session, "b", "en", mode=KeySelectionMode.SEQUENTIAL)

    assert used == ["primary-key-0001", "secondary-key-0002"]


@pytest.mark.asyncio
async def test_settings_key_used_when_no_rows(db_session, monkeypatch):
    from translation_service.services import key_pool as key_pool_module

    monkeypatch.setattr(key_pool_module.settings, "deepl_api_key", "env-key-123456:fx")
    pool, used = make_pool()

    outcome = await pool.translate(db_session, "Tekst", "sk")

    assert outcome.text == "sk:Tekst"
    assert used == ["env-key-123456:fx"]


@pytest.mark.asyncio
async def test_add_primary_demotes_previous_primary(db_session):
    pool, _ = make_pool()
    first = await pool.add_key(db_session, "First", "first-key-0001", is_primary=True)
    await pool.add_key(db_session, "Second", "second-key-0002", is_primary=True)
    await db_session.commit()

    keys = await pool.list_keys(db_session)
    primaries = [k for k in keys if k.is_primary]
    assert len(primaries) == 1
    assert primaries[0].id != first.id


@pytest.mark.asyncio
async def test_test_connection_stores_usage(db_session):
    pool, _ = make_pool()
    primary, _ = await add_two_keys(pool, db_session)

    result = await pool.test_connection(db_session, primary.id)

    assert result["success"] is True
    assert primary.quota_used == 100
    assert primary.quota_remaining == 499900
    assert primary.last_sync_at is not None
    assert await pool.test_connection(db_session, "missing-id") is None


@pytest.mark.asyncio
async def test_refresh_usage_reports_per_key(db_session):
    pool, _ = make_pool(failures={"secondary-key-0002": 403})
    await add_two_keys(pool, db_session)

    results = await pool.refresh_usage(db_session)

    assert [r["success"] for r in results] == [True, False]


@pytest.mark.asyncio
async def test_delete_key(db_session):
    pool, _ = make_pool()
    primary, _ = await add_two_keys(pool, db_session)

    assert await pool.delete_key(db_session, primary.id) is True
    assert await pool.delete_key(db_session, primary.id) is False
