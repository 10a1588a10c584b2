"""Pytest configuration and fixtures."""

import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_STORAGE_URL"] = "memory://"
os.environ["DEEPL_API_KEY"] = ""
os.environ["BATCH_JOB_DELAY_MS"] = "0"
os.environ["PRIORITY_JOB_DELAY_MS"] = "0"
os.environ["PRODUCT_FIELD_DELAY_MS"] = "0"

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from translation_service.db.models import ContentType, JobStatus, TranslationJob
from translation_service.db.session import Base, get_db
from translation_service.main import app
from translation_service.services.key_pool import KeySelectionMode, TranslationOutcome

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeTranslator:
    """Stands in for the key pool; prefixes text with the target language."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.fail_with = fail_with
        self.calls: list[tuple[str, str]] = []

    async def translate(
        self,
        db,
        text: str,
        target_language: str,
        source_language: str = "pl",
        mode: KeySelectionMode = KeySelectionMode.FALLBACK,
    ) -> TranslationOutcome:
        self.calls.append((text, target_language))
        if self.fail_with is not None:
            raise self.fail_with
        return TranslationOutcome(
            text=f"[{target_language}] {text}",
            characters_used=len(text),
            api_key_used="fake...0000",
        )


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def fake_translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def make_job(db_session: AsyncSession):
    """Insert a job directly; each call is one second newer than the previous one."""
    base = datetime.now(timezone.utc) - timedelta(hours=1)
    counter = iter(range(10_000))

    async def _make(
        target_language: str = "en",
        source_content: str = "Wózek widłowy",
        status: JobStatus = JobStatus.PENDING,
        content_type: str = ContentType.FAQ.value,
        content_id: Optional[str] = None,
        **extra,
    ) -> TranslationJob:
        n = next(counter)
        job = TranslationJob(
            content_type=content_type,
            content_id=content_id or f"item-{n}:question",
            source_language="pl",
            target_language=target_language,
            source_content=source_content,
            status=status,
            created_at=base + timedelta(seconds=n),
            **extra,
        )
        db_session.add(job)
        await db_session.flush()
        return job

    return _make


@pytest_asyncio.fixture
async def access_key(db_session: AsyncSession) -> tuple[str, str]:
    """Create a test access key with both scopes."""
    from translation_service.auth.security import create_access_key

    key_model, full_key = await create_access_key(
        db_session,
        name="Test Key",
        owner="test",
        scopes=["read", "manage"],
    )
    await db_session.commit()

    return key_model.id, full_key


@pytest_asyncio.fixture
async def auth_headers(access_key: tuple[str, str]) -> dict:
    """Get auth headers with the test access key."""
    _, full_key = access_key
    return {"Authorization": f"Bearer {full_key}"}


@pytest_asyncio.fixture
async def read_only_headers(db_session: AsyncSession) -> dict:
    from translation_service.auth.security import create_access_key

    _, full_key = await create_access_key(
        db_session, name="Viewer", owner="test", scopes=["read"]
    )
    await db_session.commit()
    return {"Authorization": f"Bearer {full_key}"}
