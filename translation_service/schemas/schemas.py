"""Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from translation_service.db.models import KeyStatus
from translation_service.services.key_pool import KeySelectionMode


def normalize_language(lang: str | None) -> str | None:
    """Normalize language code to standard format."""
    if lang is None:
        return None
    return lang.lower().strip()


# ============== Scheduling Schemas ==============


class ScheduleContentRequest(BaseModel):
    """Schedule translation jobs for one content item."""

    content_type: Literal["faq", "product", "homepage"]
    content_id: str = Field(..., min_length=1, max_length=200)
    fields: dict[str, Optional[str]] = Field(
        ..., description="Field name -> source text; blank fields are skipped"
    )
    target_languages: Optional[list[str]] = Field(
        None, description="Defaults to all configured target languages"
    )

    @field_validator("target_languages", mode="before")
    @classmethod
    def normalize_langs(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return [normalize_language(lang) for lang in v]


class ScheduleProductRequest(BaseModel):
    """Schedule translations for a newly created product."""

    product_id: str = Field(..., min_length=1)
    model: Optional[str] = None
    short_description: Optional[str] = None
    additional_description: Optional[str] = None


class ScheduleResponse(BaseModel):
    scheduled_jobs: int
    message: str


class ScheduleFAQResponse(BaseModel):
    scheduled_faq_items: int
    scheduled_jobs: int


class ScheduleProductsResponse(BaseModel):
    scheduled_products: int
    scheduled_jobs: int


class ScheduleAllResponse(BaseModel):
    """Result of the initial backfill."""

    faq: ScheduleFAQResponse
    products: ScheduleProductsResponse
    total_jobs: int


# ============== Processing Schemas ==============


class ProcessBatchRequest(BaseModel):
    max_jobs: int = Field(10, ge=1, le=100, description="Upper bound on jobs in this batch")


class BatchResultResponse(BaseModel):
    """Outcome of one batch run."""

    model_config = ConfigDict(from_attributes=True)

    success: bool
    processed_count: int
    failed_count: int
    characters_used: int
    limit_exceeded: bool
    message: Optional[str] = None


class RecoverResponse(BaseModel):
    recovered_jobs: int


# ============== Diagnostics Schemas ==============


class MonthStatsResponse(BaseModel):
    """Current month quota usage."""

    current_month: str
    characters_used: int
    characters_limit: int
    characters_remaining: int
    api_calls: int
    pending_jobs: int
    limit_reached: bool


class OverviewResponse(BaseModel):
    total_items: int
    completed_translations: int
    pending_translations: int
    processing_translations: int
    failed_translations: int
    language_breakdown: dict[str, dict[str, int]]
    api_connection_status: Literal["online", "error"]
    last_successful_translation: Optional[datetime] = None
    quota: MonthStatsResponse


class JobSummary(BaseModel):
    """One translation job as shown on the admin dashboard."""

    id: str
    content_type: str
    content_id: str
    name: str
    source_language: str
    target_language: str
    status: str
    characters_used: int
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class StatusCheckResponse(BaseModel):
    exists: bool
    status: str
    message: Optional[str] = None
    content: Optional[str] = None
    error: Optional[str] = None
    characters_used: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============== Priority Schemas ==============


class PriorityStartResponse(BaseModel):
    success: bool
    language: str
    priority_jobs_created: int
    estimated_duration_minutes: int
    message: str
    task_id: Optional[str] = None


class PriorityStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    language: str
    is_active: bool
    started_at: Optional[datetime] = None
    processed_count: int
    total_count: int
    marker: Optional[str] = None
    stalled: bool


class LanguageProgress(BaseModel):
    language: str
    total_items: int
    completed: int
    pending: int
    failed: int
    completion_percentage: int
    is_priority_processing: bool


# ============== DeepL Key Schemas ==============


class DeepLKeyCreate(BaseModel):
    """Register a DeepL credential."""

    name: str = Field(..., min_length=1, max_length=100)
    api_key: str = Field(..., min_length=8, max_length=200)
    is_primary: bool = False


class DeepLKeyInfo(BaseModel):
    """DeepL credential without its key material."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    api_key_masked: str
    is_primary: bool
    is_active: bool
    status: KeyStatus
    quota_used: Optional[int] = None
    quota_remaining: Optional[int] = None
    quota_limit: Optional[int] = None
    last_test_at: Optional[datetime] = None
    last_sync_at: Optional[datetime] = None
    created_at: datetime


class KeyUsage(BaseModel):
    characters_used: int
    characters_limit: int


class KeyTestResult(BaseModel):
    key_id: str
    success: bool
    error: Optional[str] = None
    usage: Optional[KeyUsage] = None


# ============== Product Translation Schemas ==============


class ProductTranslateRequest(BaseModel):
    mode: KeySelectionMode = KeySelectionMode.FALLBACK
    fields: Optional[list[str]] = Field(
        None, description="Restrict to these product fields (default: all translatable fields)"
    )


class FieldResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field_name: str
    language: str
    success: bool
    characters_used: int = 0
    api_key_used: Optional[str] = None
    error: Optional[str] = None


class ProductTranslateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    characters_used: int
    results: list[FieldResultResponse]


class TranslationLogInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: Optional[str] = None
    api_key_used: str
    translation_mode: str
    field_name: str
    source_language: str
    target_language: str
    status: str
    characters_used: int
    error_details: Optional[str] = None
    processing_time_ms: Optional[int] = None
    created_at: datetime


# ============== Access Key Schemas ==============


class AccessKeyCreate(BaseModel):
    """Request to create a new access key."""

    name: str = Field(..., min_length=1, max_length=100)
    owner: str = Field(..., min_length=1, max_length=100)
    scopes: list[Literal["read", "manage"]] = Field(default=["read", "manage"])
    rate_limit_per_minute: int = Field(60, ge=1, le=10000)
    rate_limit_per_hour: int = Field(500, ge=1, le=100000)
    expires_in_days: Optional[int] = Field(None, ge=1, le=365)


class AccessKeyResponse(BaseModel):
    """Response after creating an access key (only time full key is shown)."""

    id: str
    access_key: str  # Full key, shown only once
    key_prefix: str
    name: str
    owner: str
    scopes: list[str]
    rate_limit_per_minute: int
    rate_limit_per_hour: int
    created_at: datetime
    expires_at: Optional[datetime] = None


class AccessKeyInfo(BaseModel):
    """Access key info (without full key)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    key_prefix: str
    name: str
    owner: str
    scopes: list[str]
    rate_limit_per_minute: int
    rate_limit_per_hour: int
    is_active: bool
    created_at: datetime
    expires_at: Optional[datetime] = None


# ============== Health & Misc Schemas ==============


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    redis: str
    deepl: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: Optional[str] = None


class LanguageInfo(BaseModel):
    """A language the service reads from or writes to."""

    code: str
    name: str
    is_source: bool
    is_target: bool
