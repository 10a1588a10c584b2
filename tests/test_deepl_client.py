"""Tests for the DeepL HTTP client."""

import httpx
import pytest

from translation_service.services.deepl_client import (
    FREE_API_URL,
    PRO_API_URL,
    DeepLClient,
    TranslationAPIError,
    base_url_for,
    mask_key,
)


def make_client(handler, api_key: str = "secret-key-1234:fx") -> DeepLClient:
    return DeepLClient(api_key, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_translate_sends_form_request():
    """Form fields are upper-cased and the key goes into the auth header."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.content.decode()
        return httpx.Response(200, json={"translations": [{"text": "Forklift"}]})

    result = await make_client(handler).translate("Wózek widłowy", "en", "pl")

    assert result == "Forklift"
    assert seen["url"] == f"{FREE_API_URL}/v2/translate"
    assert seen["auth"] == "DeepL-Auth-Key secret-key-1234:fx"
    assert "target_lang=EN" in seen["body"]
    assert "source_lang=PL" in seen["body"]


@pytest.mark.asyncio
async def test_translate_non_2xx_raises_with_status_and_body():
    client = make_client(lambda request: httpx.Response(403, text="Forbidden"))

    with pytest.raises(TranslationAPIError) as exc_info:
        await client.translate("Tekst", "de")

    assert exc_info.value.status_code == 403
    assert exc_info.value.body == "Forbidden"
    assert not exc_info.value.quota_exceeded


@pytest.mark.asyncio
async def test_translate_quota_status():
    client = make_client(lambda request: httpx.Response(456, text="Quota exceeded"))

    with pytest.raises(TranslationAPIError) as exc_info:
        await client.translate("Tekst", "de")

    assert exc_info.value.quota_exceeded


@pytest.mark.asyncio
async def test_translate_malformed_response():
    client = make_client(lambda request: httpx.Response(200, json={"translations": []}))

    with pytest.raises(TranslationAPIError, match="Malformed"):
        await client.translate("Tekst", "cs")


@pytest.mark.asyncio
async def test_translate_timeout_propagates():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(httpx.TimeoutException):
        await make_client(handler).translate("Tekst", "sk")


@pytest.mark.asyncio
async def test_get_usage():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/v2/usage"
        return httpx.Response(200, json={"character_count": 1200, "character_limit": 500000})

    usage = await make_client(handler).get_usage()

    assert usage.character_count == 1200
    assert usage.character_limit == 500000
    assert usage.remaining == 498800


@pytest.mark.asyncio
async def test_ping_reports_failure_as_false():
    client = make_client(lambda request: httpx.Response(500, text="boom"))
    assert await client.ping() is False


def test_base_url_depends_on_key_type():
    assert base_url_for("abc:fx") == FREE_API_URL
    assert base_url_for("abc") == PRO_API_URL


def test_mask_key():
    assert mask_key("1234567890abcdef") == "1234...cdef"
    assert mask_key("short") == "****"
