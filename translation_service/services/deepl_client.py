"""Thin async client for the DeepL REST API."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from translation_service.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

FREE_API_URL = "https://api-free.deepl.com"
PRO_API_URL = "https://api.deepl.com"

# DeepL answers 456 when the key's character quota is used up
QUOTA_EXCEEDED_STATUS = 456


class TranslationAPIError(Exception):
    """Non-2xx or malformed response from the translation API."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"DeepL API error ({status_code}): {body}")

    @property
    def quota_exceeded(self) -> bool:
        return self.status_code == QUOTA_EXCEEDED_STATUS


@dataclass
class DeepLUsage:
    """Character usage reported by the usage endpoint."""

    character_count: int
    character_limit: int

    @property
    def remaining(self) -> int:
        return max(self.character_limit - self.character_count, 0)


def mask_key(api_key: str) -> str:
    """Mask a key for display and logs, keeping the first and last 4 chars."""
    if len(api_key) <= 8:
        return "****"
    return f"{api_key[:4]}...{api_key[-4:]}"


def base_url_for(api_key: str) -> str:
    """Free keys end with ':fx' and live on a separate host."""
    if settings.deepl_api_url:
        return settings.deepl_api_url.rstrip("/")
    return FREE_API_URL if api_key.endswith(":fx") else PRO_API_URL


class DeepLClient:
    """DeepL client bound to a single API key."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or base_url_for(api_key)).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.deepl_timeout_seconds
        self._transport = transport

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"DeepL-Auth-Key {self.api_key}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def translate(self, text: str, target_lang: str, source_lang: str = "pl") -> str:
        """
        Translate one string.

        Raises:
            TranslationAPIError: non-2xx status or a response without a translation
            httpx.HTTPError: timeout or transport failure
        """
        async with self._client() as client:
            response = await client.post(
                "/v2/translate",
                headers=self._headers,
                data={
                    "text": text,
                    "target_lang": target_lang.upper(),
                    "source_lang": source_lang.upper(),
                },
            )

        if not response.is_success:
            raise TranslationAPIError(response.status_code, response.text)

        try:
            return response.json()["translations"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise TranslationAPIError(response.status_code, f"Malformed response: {response.text[:200]}")

    async def get_usage(self) -> DeepLUsage:
        """Fetch character usage for this key."""
        async with self._client() as client:
            response = await client.get("/v2/usage", headers=self._headers)

        if not response.is_success:
            raise TranslationAPIError(response.status_code, response.text)

        data = response.json()
        return DeepLUsage(
            character_count=int(data.get("character_count", 0)),
            character_limit=int(data.get("character_limit", settings.monthly_character_limit)),
        )

    async def ping(self) -> bool:
        """Connectivity check against the usage endpoint."""
        try:
            await self.get_usage()
            return True
        except (TranslationAPIError, httpx.HTTPError) as e:
            logger.error(f"DeepL connection test failed for key {mask_key(self.api_key)}: {e}")
            return False
