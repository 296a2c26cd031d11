"""Pytest configuration and fixtures."""

import os

# Settings are read at import time of marvin.main
os.environ.update(
    {
        "ENVIRONMENT": "production",
        "SUPABASE_URL": "https://marvin-test.supabase.co",
        "SUPABASE_ANON_KEY": "test-anon-key",
        "SUPABASE_SERVICE_ROLE_KEY": "test-service-key",
        "SUPABASE_JWT_SECRET": "test-jwt-secret-with-enough-length",
        "OPENAI_API_KEY": "sk-test",
        "ADMIN_EMAILS": '["admin@example.com"]',
    }
)

import time
from collections.abc import AsyncGenerator
from uuid import UUID

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from marvin.api.deps import get_auth, get_completion_client, get_storage
from marvin.config import get_settings
from marvin.db.base import Base
from marvin.db.session import create_session_factory, get_db
from marvin.errors import UpstreamError
from marvin.main import app
from marvin.services.auth import SupabaseAuth
from marvin.services.completion import CompletionOptions, CompletionResult
from marvin.services.storage import StorageService

USER_ID = UUID("11111111-1111-1111-1111-111111111111")
OTHER_USER_ID = UUID("22222222-2222-2222-2222-222222222222")
ADMIN_ID = UUID("33333333-3333-3333-3333-333333333333")


def make_token(user_id: UUID, email: str | None = "user@example.com", **claims) -> str:
    """Access token signed like the managed auth service signs them."""
    settings = get_settings()
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "exp": int(time.time()) + 3600,
        **claims,
    }
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(user_id: UUID = USER_ID, email: str | None = "user@example.com") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


# =============================================================================
# FAKES
# =============================================================================


class FakeCompletionClient:
    """Stands in for CompletionClient; records every call."""

    def __init__(self):
        self.options = CompletionOptions()
        self.reply = "Was bewegt dich gerade am meisten?"
        self.stream_parts = ["Was bewegt ", "dich gerade ", "am meisten?"]
        self.fail_with: Exception | None = None
        self.calls: list[list[dict[str, str]]] = []
        self.embedded: list[str] = []

    async def complete(self, messages, **overrides) -> CompletionResult:
        self.calls.append(messages)
        if self.fail_with is not None:
            raise self.fail_with
        return CompletionResult(
            content=self.reply,
            model=self.options.model,
            prompt_tokens=40,
            completion_tokens=10,
            total_tokens=50,
        )

    async def stream(self, messages, **overrides):
        self.calls.append(messages)
        for part in self.stream_parts:
            yield part
        if self.fail_with is not None:
            raise self.fail_with

    async def embed(self, text: str) -> list[float]:
        self.embedded.append(text)
        if self.fail_with is not None:
            raise UpstreamError("Embedding konnte nicht erstellt werden")
        # Two-dimensional "topic space": mindfulness vs. everything else
        if "achtsamkeit" in text.lower():
            return [1.0, 0.1]
        return [0.1, 1.0]


class FakeS3Client:
    """Records put/delete calls made through StorageService."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[Key] = Body

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)
        self.objects.pop(Key, None)


def admin_api_handler(request: httpx.Request) -> httpx.Response:
    """Answers the auth admin API like the managed backend does."""
    if request.url.path == "/auth/v1/admin/users":
        return httpx.Response(
            200,
            json={
                "users": [
                    {"id": str(USER_ID), "email": "user@example.com"},
                    {"id": str(ADMIN_ID), "email": "admin@example.com"},
                ]
            },
        )
    return httpx.Response(404)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
async def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def completion() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def storage(s3_client) -> StorageService:
    return StorageService(s3_client, bucket="documents")


@pytest.fixture
async def auth() -> AsyncGenerator[SupabaseAuth, None]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(admin_api_handler))
    supabase_auth = SupabaseAuth(get_settings(), http_client)
    yield supabase_auth
    await supabase_auth.aclose()


@pytest.fixture
def test_app(session_factory, completion, storage, auth):
    """The app with database and external clients replaced."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_completion_client] = lambda: completion
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_auth] = lambda: auth
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def lenient_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Client that returns 500 responses instead of re-raising app errors."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def override_settings(test_app):
    """Swap settings for one test: override_settings(embed_documents=False)."""

    def _override(**updates):
        settings = get_settings().model_copy(update=updates)
        test_app.dependency_overrides[get_settings] = lambda: settings
        return settings

    return _override


@pytest.fixture
def user_id() -> UUID:
    return USER_ID


@pytest.fixture
def headers() -> dict[str, str]:
    return auth_headers(USER_ID)


@pytest.fixture
def other_headers() -> dict[str, str]:
    return auth_headers(OTHER_USER_ID, "other@example.com")


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_headers(ADMIN_ID, "admin@example.com")
