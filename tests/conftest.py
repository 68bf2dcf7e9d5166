"""Pytest fixtures and configuration."""

import os
import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-for-testing-at-least-32-chars")
os.environ.setdefault("DEBUG", "true")

from vivvers.database import Base, enable_sqlite_savepoints, get_db
from vivvers.main import app
from vivvers.models.project import Project
from vivvers.models.user import User, UserRole, UserStatus
from vivvers.schemas.external import AuthIdentity
from vivvers.services.storage import SupabaseStorageClient, get_storage_client
from vivvers.services.supabase_auth import SupabaseAuthClient, get_auth_client
from vivvers.utils.security import get_session_identity


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def mock_db_session():
    """Create a mock database session."""
    mock_session = AsyncMock()
    mock_session.add = MagicMock()
    mock_session.delete = AsyncMock()
    mock_session.flush = AsyncMock()
    mock_session.refresh = AsyncMock()
    return mock_session


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession]:
    """Real session on a fresh in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def use_db(db_session: AsyncSession):
    """Route the app's get_db dependency to the in-memory database."""

    async def override_get_db():
        yield db_session
        await db_session.commit()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield db_session
    finally:
        app.dependency_overrides.clear()


DEFAULT_USER_ID = "00000000-0000-4000-8000-000000000001"


def make_identity(
    id: str = DEFAULT_USER_ID,
    email: str = "dev@example.com",
    **metadata,
) -> AuthIdentity:
    """Create a provider identity as the auth client would return it."""
    return AuthIdentity(
        id=id,
        email=email,
        email_confirmed_at=datetime(2025, 1, 1, tzinfo=UTC),
        user_metadata=metadata,
    )


@pytest.fixture
def identity() -> AuthIdentity:
    """Identity of the default signed-in test user."""
    return make_identity()


@pytest.fixture
def sign_in():
    """Make every request in the test resolve to the given identity."""

    def _sign_in(identity: AuthIdentity | None) -> None:
        async def override_identity():
            return identity

        app.dependency_overrides[get_session_identity] = override_identity

    try:
        yield _sign_in
    finally:
        app.dependency_overrides.pop(get_session_identity, None)


async def insert_user(
    db: AsyncSession,
    id: str = DEFAULT_USER_ID,
    username: str = "devuser",
    role: UserRole = UserRole.USER,
    status: UserStatus = UserStatus.ACTIVE,
    **fields,
) -> User:
    """Insert a user row and return it."""
    user = User(
        id=id,
        username=username,
        email=fields.pop("email", f"{username}@example.com"),
        role=role,
        status=status,
        skills=[],
        is_public=fields.pop("is_public", True),
        verified=False,
        **fields,
    )
    db.add(user)
    await db.flush()
    return user


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory inserting users into the in-memory database."""

    async def _make_user(**kwargs) -> User:
        return await insert_user(db_session, **kwargs)

    return _make_user


@pytest.fixture
def identity_factory():
    """Factory for identities other than the default one."""
    return make_identity


@pytest.fixture
def make_project(db_session: AsyncSession):
    """Factory inserting projects into the in-memory database."""

    async def _make_project(author_id: str = DEFAULT_USER_ID, **fields) -> Project:
        project = Project(
            id=fields.pop("id", str(uuid.uuid4())),
            author_id=author_id,
            title=fields.pop("title", "Side Project"),
            excerpt=fields.pop("excerpt", "A small side project"),
            description=fields.pop("description", ""),
            category=fields.pop("category", "웹 개발"),
            images=fields.pop("images", ["https://cdn.example.com/shot.png"]),
            features=fields.pop("features", []),
            featured=fields.pop("featured", False),
            view_count=fields.pop("view_count", 0),
            like_count=fields.pop("like_count", 0),
            **fields,
        )
        db_session.add(project)
        await db_session.flush()
        return project

    return _make_project


@pytest.fixture
def auth_http():
    """Route the app's auth client through a mocked HTTP transport."""
    auth_client = SupabaseAuthClient()
    mock_http_client = AsyncMock()

    async def override_auth_client():
        return auth_client

    app.dependency_overrides[get_auth_client] = override_auth_client
    try:
        with patch.object(auth_client, "_get_client", return_value=mock_http_client):
            yield mock_http_client
    finally:
        app.dependency_overrides.pop(get_auth_client, None)


@pytest.fixture
def storage_http():
    """Route the app's storage client through a mocked HTTP transport."""
    storage_client = SupabaseStorageClient(access_token="user-token")
    mock_http_client = AsyncMock()

    async def override_storage_client():
        return storage_client

    app.dependency_overrides[get_storage_client] = override_storage_client
    try:
        with patch.object(storage_client, "_get_client", return_value=mock_http_client):
            yield mock_http_client
    finally:
        app.dependency_overrides.pop(get_storage_client, None)


@pytest.fixture
def provider_response():
    """Build provider responses for mocked HTTP transports."""

    def _provider_response(status_code: int, json=None) -> httpx.Response:
        return httpx.Response(
            status_code, json=json, request=httpx.Request("POST", "https://provider.test")
        )

    return _provider_response
