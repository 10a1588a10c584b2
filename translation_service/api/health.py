"""Health check and system info routes."""

import logging

import redis.asyncio as redis
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from translation_service.config import get_settings
from translation_service.db.session import get_db
from translation_service.schemas.schemas import HealthResponse, LanguageInfo
from translation_service.services.diagnostics import diagnostics_service

router = APIRouter(tags=["System"])

settings = get_settings()
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


async def check_redis() -> str:
    client = redis.from_url(settings.redis_url, socket_connect_timeout=2)
    try:
        await client.ping()
        return "ok"
    except redis.RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return "error"
    finally:
        await client.aclose()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the service and its dependencies.",
)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns the status of:
    - Database connection
    - Redis connection
    - DeepL API connectivity (``unconfigured`` when no key exists)
    """
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        db_status = "error"

    redis_status = await check_redis()

    deepl_status = "unconfigured"
    if db_status == "ok":
        credentials = await diagnostics_service.pool.get_credentials(db)
        if credentials:
            deepl_status = "ok" if await diagnostics_service.test_api_connection(db) else "error"

    overall_status = "healthy"
    if "error" in (db_status, redis_status, deepl_status):
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=VERSION,
        database=db_status,
        redis=redis_status,
        deepl=deepl_status,
    )


@router.get(
    "/v1/languages",
    response_model=list[LanguageInfo],
    summary="List supported languages",
    description="The source language and the languages content is translated into.",
)
async def list_languages():
    codes = [settings.source_language] + [
        code for code in settings.target_languages if code != settings.source_language
    ]
    return [
        LanguageInfo(
            code=code,
            name=settings.language_names.get(code, code),
            is_source=code == settings.source_language,
            is_target=code in settings.target_languages,
        )
        for code in codes
    ]


@router.get(
    "/v1/info",
    summary="Service information",
    description="Get general information about the service.",
)
async def service_info():
    return {
        "name": settings.app_name,
        "version": VERSION,
        "environment": settings.app_env,
        "source_language": settings.source_language,
        "target_languages": settings.target_languages,
        "content_types": ["faq", "product", "homepage"],
        "key_selection_modes": ["primary_only", "fallback", "sequential"],
        "monthly_character_limit": settings.monthly_character_limit,
        "documentation": "/docs",
        "redoc": "/redoc",
    }
