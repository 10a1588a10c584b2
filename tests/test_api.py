"""Tests for API endpoints."""

import pytest
from httpx import AsyncClient

from conftest import FakeTranslator
from translation_service.db.models import JobStatus, Product
from translation_service.services.batch_processor import batch_processor
from translation_service.services.product_translation import product_translation_service


@pytest.fixture
def patched_translator(monkeypatch) -> FakeTranslator:
    translator = FakeTranslator()
    monkeypatch.setattr(batch_processor, "translator", translator)
    monkeypatch.setattr(batch_processor, "delay_seconds", 0)
    monkeypatch.setattr(product_translation_service, "pool", translator)
    monkeypatch.setattr(product_translation_service, "delay_seconds", 0)
    return translator


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health check endpoint."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert "status" in data
    assert data["database"] == "ok"
    assert data["deepl"] == "unconfigured"


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    """Test root endpoint."""
    response = await client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "Dealer Translation Service"


@pytest.mark.asyncio
async def test_languages_endpoint(client: AsyncClient):
    """Test languages listing endpoint."""
    response = await client.get("/v1/languages")
    assert response.status_code == 200
    data = response.json()
    assert [lang["code"] for lang in data] == ["pl", "en", "cs", "sk", "de"]
    assert data[0]["is_source"] is True


@pytest.mark.asyncio
async def test_schedule_without_auth(client: AsyncClient):
    response = await client.post(
        "/v1/translations/schedule",
        json={"content_type": "faq", "content_id": "1", "fields": {"question": "Pytanie?"}},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_schedule_with_read_only_key(client: AsyncClient, read_only_headers: dict):
    response = await client.post(
        "/v1/translations/schedule",
        headers=read_only_headers,
        json={"content_type": "faq", "content_id": "1", "fields": {"question": "Pytanie?"}},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_schedule_content(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/v1/translations/schedule",
        headers=auth_headers,
        json={
            "content_type": "homepage",
            "content_id": "hero",
            "fields": {"title": "Wózki widłowe", "subtitle": ""},
            "target_languages": ["EN", "de"],
        },
    )
    assert response.status_code == 201
    assert response.json()["scheduled_jobs"] == 2


@pytest.mark.asyncio
async def test_schedule_rejects_unknown_language(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/v1/translations/schedule",
        headers=auth_headers,
        json={
            "content_type": "faq",
            "content_id": "1",
            "fields": {"question": "Pytanie?"},
            "target_languages": ["fr"],
        },
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_schedule_then_process(
    client: AsyncClient, auth_headers: dict, patched_translator: FakeTranslator
):
    await client.post(
        "/v1/translations/schedule/product",
        headers=auth_headers,
        json={"product_id": "p1", "model": "EP 20"},
    )

    response = await client.post(
        "/v1/translations/process", headers=auth_headers, json={"max_jobs": 3}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["processed_count"] == 3
    assert data["characters_used"] == 3 * len("EP 20")

    stats = (await client.get("/v1/translations/stats", headers=auth_headers)).json()
    assert stats["characters_used"] == 15
    assert stats["api_calls"] == 1
    assert stats["pending_jobs"] == 1


@pytest.mark.asyncio
async def test_status_not_found(client: AsyncClient, auth_headers: dict):
    response = await client.get(
        "/v1/translations/status",
        headers=auth_headers,
        params={"content_type": "faq", "content_id": "9:question", "target_language": "en"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "not_found"


@pytest.mark.asyncio
async def test_overview(client: AsyncClient, auth_headers: dict, make_job, db_session):
    await make_job(status=JobStatus.COMPLETED)
    await db_session.commit()

    response = await client.get("/v1/translations/overview", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["completed_translations"] == 1
    assert data["api_connection_status"] == "error"


@pytest.mark.asyncio
async def test_priority_conflict_returns_409(
    client: AsyncClient, auth_headers: dict, make_job, db_session, monkeypatch
):
    from translation_service.api import priority as priority_api

    dispatched = []
    monkeypatch.setattr(priority_api, "enqueue_priority_drain", lambda ids: dispatched.append(ids) or "task-1")

    await make_job(target_language="en")
    await make_job(target_language="de")
    await db_session.commit()

    started = await client.post("/v1/priority/en", headers=auth_headers)
    assert started.status_code == 200
    assert started.json()["priority_jobs_created"] == 1
    assert started.json()["task_id"] == "task-1"
    assert len(dispatched) == 1

    conflict = await client.post("/v1/priority/de", headers=auth_headers)
    assert conflict.status_code == 409

    status = (await client.get("/v1/priority/en", headers=auth_headers)).json()
    assert status["is_active"] is True
    assert status["total_count"] == 1


@pytest.mark.asyncio
async def test_priority_invalid_language(client: AsyncClient, auth_headers: dict):
    response = await client.post("/v1/priority/fr", headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_priority_progress(client: AsyncClient, auth_headers: dict):
    response = await client.get("/v1/priority/progress", headers=auth_headers)
    assert response.status_code == 200
    assert [p["language"] for p in response.json()] == ["en", "cs", "sk", "de"]


@pytest.mark.asyncio
async def test_deepl_key_crud(client: AsyncClient, auth_headers: dict):
    created = await client.post(
        "/v1/deepl-keys",
        headers=auth_headers,
        json={"name": "Main", "api_key": "abcd-efgh-ijkl-mnop:fx", "is_primary": True},
    )
    assert created.status_code == 201
    data = created.json()
    assert data["api_key_masked"] == "abcd...p:fx"
    assert "api_key" not in data

    listed = await client.get("/v1/deepl-keys", headers=auth_headers)
    assert [k["id"] for k in listed.json()] == [data["id"]]

    deleted = await client.delete(f"/v1/deepl-keys/{data['id']}", headers=auth_headers)
    assert deleted.status_code == 204

    missing = await client.post(f"/v1/deepl-keys/{data['id']}/test", headers=auth_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_translate_product(
    client: AsyncClient, auth_headers: dict, patched_translator: FakeTranslator, db_session
):
    product = Product(name="Still RX20", mast="Duplex")
    db_session.add(product)
    await db_session.commit()

    response = await client.post(
        f"/v1/products/{product.id}/translate", headers=auth_headers, json={"fields": ["mast"]}
    )
    assert response.status_code == 200
    assert len(response.json()["results"]) == 4

    translations = await client.get(
        f"/v1/products/{product.id}/translations/cs", headers=auth_headers
    )
    assert translations.json() == {"mast": "[cs] Duplex"}

    logs = await client.get("/v1/products/translation-logs", headers=auth_headers)
    assert len(logs.json()) == 4


@pytest.mark.asyncio
async def test_translate_unknown_product(
    client: AsyncClient, auth_headers: dict, patched_translator: FakeTranslator
):
    response = await client.post("/v1/products/missing/translate", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_translate_product_rejects_unknown_field(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/v1/products/p1/translate", headers=auth_headers, json={"fields": ["price"]}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_access_key_requires_admin(client: AsyncClient):
    response = await client.post(
        "/v1/admin/access-keys", json={"name": "CI", "owner": "ops"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_and_use_access_key(client: AsyncClient):
    from translation_service.config import get_settings

    created = await client.post(
        "/v1/admin/access-keys",
        headers={"X-Admin-Key": get_settings().secret_key},
        json={"name": "Viewer", "owner": "ops", "scopes": ["read"]},
    )
    assert created.status_code == 201
    key = created.json()["access_key"]
    assert key.startswith("tsk_")

    response = await client.get("/v1/translations/stats", headers={"X-API-Key": key})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_priority_dispatch_failure_releases_language(
    client: AsyncClient, auth_headers: dict, make_job, db_session, monkeypatch
):
    from translation_service.api import priority as priority_api
    from translation_service.services.job_store import JobStore
    from translation_service.services.priority import DISPATCH_ERROR

    def broker_down(job_ids):
        raise ConnectionError("broker unreachable")

    monkeypatch.setattr(priority_api, "enqueue_priority_drain", broker_down)

    english = await make_job(target_language="en")
    await make_job(target_language="de")
    await db_session.commit()

    response = await client.post("/v1/priority/en", headers=auth_headers)
    assert response.status_code == 503

    job = await JobStore().get(db_session, english.id)
    assert job.status == JobStatus.FAILED
    assert job.error_message == DISPATCH_ERROR

    monkeypatch.setattr(priority_api, "enqueue_priority_drain", lambda ids: "task-2")
    german = await client.post("/v1/priority/de", headers=auth_headers)
    assert german.status_code == 200
    assert german.json()["priority_jobs_created"] == 1
