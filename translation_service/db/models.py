"""Database models for the translation service."""

import enum
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from translation_service.config import get_settings
from translation_service.db.session import Base

settings = get_settings()


def utcnow() -> datetime:
    """Timezone-aware current time, used for all timestamp defaults."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


class JobStatus(str, enum.Enum):
    """Status of a translation job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ContentType(str, enum.Enum):
    """Kinds of source content that get translated."""

    FAQ = "faq"
    PRODUCT = "product"
    HOMEPAGE = "homepage"


class KeyStatus(str, enum.Enum):
    """Health of a DeepL credential, refreshed by test/sync actions."""

    ACTIVE = "active"
    ERROR = "error"
    QUOTA_EXCEEDED = "quota_exceeded"


class TranslationJob(Base):
    """One (content item, field, target language) unit of translation work."""

    __tablename__ = "translation_jobs"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=new_id)
    content_type: Mapped[str] = mapped_column(String(50), index=True)
    content_id: Mapped[str] = mapped_column(String(255), index=True)  # "<id>:<field>"
    source_language: Mapped[str] = mapped_column(
        String(10), default=lambda: settings.source_language
    )
    target_language: Mapped[str] = mapped_column(String(10), index=True)

    source_content: Mapped[str] = mapped_column(Text)
    translated_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, values_callable=lambda e: [m.value for m in e]),
        default=JobStatus.PENDING,
        index=True,
    )
    characters_used: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Claim / priority bookkeeping
    priority_marker: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, index=True
    )  # "_priority_<epoch_ms>", kept after the drain for progress accounting
    priority_started_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    claimed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    lease_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class MonthlyQuota(Base):
    """Monthly character budget for the translation API."""

    __tablename__ = "translation_stats"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=new_id)
    month_year: Mapped[str] = mapped_column(String(7), unique=True)  # YYYY-MM
    characters_used: Mapped[int] = mapped_column(Integer, default=0)
    characters_limit: Mapped[int] = mapped_column(
        Integer, default=lambda: settings.monthly_character_limit
    )
    api_calls: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class DeepLApiKey(Base):
    """A DeepL credential in the dual-key pool."""

    __tablename__ = "deepl_api_keys"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100))
    api_key_encoded: Mapped[str] = mapped_column(Text)  # base64 of the raw key
    api_key_masked: Mapped[str] = mapped_column(String(50))
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[KeyStatus] = mapped_column(
        Enum(KeyStatus, values_callable=lambda e: [m.value for m in e]),
        default=KeyStatus.ACTIVE,
    )
    quota_used: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    quota_remaining: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    quota_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    last_test_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class TranslationLog(Base):
    """Audit trail of product-path translation attempts (append-only)."""

    __tablename__ = "translation_logs"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=new_id)
    product_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    api_key_used: Mapped[str] = mapped_column(String(50))
    translation_mode: Mapped[str] = mapped_column(String(20))
    field_name: Mapped[str] = mapped_column(String(100))
    source_language: Mapped[str] = mapped_column(String(10))
    target_language: Mapped[str] = mapped_column(String(10))
    status: Mapped[str] = mapped_column(String(20))  # "success" / "error"
    characters_used: Mapped[int] = mapped_column(Integer, default=0)
    error_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    processing_time_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    request_payload: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    response_payload: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )


class ProductTranslation(Base):
    """Translated product field consumed by the storefront."""

    __tablename__ = "product_translations"
    __table_args__ = (
        UniqueConstraint("product_id", "language", "field_name", name="uq_product_translation"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=new_id)
    product_id: Mapped[str] = mapped_column(String(100), index=True)
    language: Mapped[str] = mapped_column(String(10))
    field_name: Mapped[str] = mapped_column(String(100))
    translated_value: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


# ============== Source content (owned by the CRUD layer) ==============


class Product(Base):
    """Product row as written by the admin product forms."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255))
    short_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    detailed_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    initial_lift: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    condition: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    drive_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    mast: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    wheels: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    foldable_platform: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    additional_options: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class FAQItem(Base):
    """FAQ entry as written by the admin FAQ manager."""

    __tablename__ = "faqs"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=new_id)
    question: Mapped[str] = mapped_column(Text)
    answer: Mapped[str] = mapped_column(Text)
    language: Mapped[str] = mapped_column(String(10), default="pl")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


# ============== Service access ==============


class AccessKey(Base):
    """Access keys for the admin API surface."""

    __tablename__ = "access_keys"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=new_id)
    key_hash: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    key_prefix: Mapped[str] = mapped_column(String(12), index=True)  # First 12 chars for lookup
    name: Mapped[str] = mapped_column(String(100))
    owner: Mapped[str] = mapped_column(String(100))
    scopes: Mapped[list] = mapped_column(JSON, default=list)  # ["read", "manage"]
    rate_limit_per_minute: Mapped[int] = mapped_column(Integer, default=60)
    rate_limit_per_hour: Mapped[int] = mapped_column(Integer, default=500)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
