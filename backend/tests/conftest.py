"""
Pytest configuration and shared fixtures for backend tests.
"""

import os
import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are read once at import time; point them at SQLite before any app module loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from typing import AsyncGenerator
from uuid import uuid4

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import after path is set
from core.domain.caller import Authenticated
from core.domain.user import UserRole
from core.security import PasswordHasher, TokenService
from infrastructure.config import get_settings
from infrastructure.database.connection import get_db
from infrastructure.database.models import Base, Subject, User
from services.content_revision import ContentRevisionEngine

# Initialize security services
password_hasher = PasswordHasher(rounds=4)
settings = get_settings()
token_service = TokenService(secret_key=settings.jwt_secret_key, issuer=settings.jwt_issuer)

TEST_PASSWORD = "TestPassword123"

# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session configured like the application's."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


async def _make_user(db_session: AsyncSession, role: UserRole, email: str) -> User:
    user = User(
        id=str(uuid4()),
        email=email,
        password_hash=password_hasher.hash(TEST_PASSWORD),
        name=f"{role.value.replace('_', ' ').title()} User",
        role=role.value,
        status="active",
    )
    db_session.add(user)
    await db_session.commit()
    return user


def _caller(user: User) -> Authenticated:
    return Authenticated(user_id=user.id, role=user.role)


def _headers(user: User) -> dict:
    access_token = token_service.create_access_token(user_id=user.id, role=user.role)
    return {"Authorization": f"Bearer {access_token}"}


# ============================================================================
# Users by role
# ============================================================================


@pytest.fixture
async def student_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.STUDENT, "student@example.com")


@pytest.fixture
async def contributor_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.CONTRIBUTOR, "contributor@example.com")


@pytest.fixture
async def manager_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.MANAGER, "manager@example.com")


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.ADMIN, "admin@example.com")


# ============================================================================
# Caller contexts (service-level tests)
# ============================================================================


@pytest.fixture
def student(student_user: User) -> Authenticated:
    return _caller(student_user)


@pytest.fixture
def contributor(contributor_user: User) -> Authenticated:
    return _caller(contributor_user)


@pytest.fixture
def manager(manager_user: User) -> Authenticated:
    return _caller(manager_user)


@pytest.fixture
def admin(admin_user: User) -> Authenticated:
    return _caller(admin_user)


# ============================================================================
# Authentication headers (HTTP tests)
# ============================================================================


@pytest.fixture
def student_headers(student_user: User) -> dict:
    return _headers(student_user)


@pytest.fixture
def contributor_headers(contributor_user: User) -> dict:
    return _headers(contributor_user)


@pytest.fixture
def manager_headers(manager_user: User) -> dict:
    return _headers(manager_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return _headers(admin_user)


# ============================================================================
# Content fixtures
# ============================================================================


@pytest.fixture
async def subject(db_session: AsyncSession) -> Subject:
    """A subject to hang chapters off."""
    subject = Subject(
        id=str(uuid4()),
        code="CS101",
        name="Data Structures",
        slug="data-structures",
    )
    db_session.add(subject)
    await db_session.commit()
    return subject


@pytest.fixture
def content_engine(db_session: AsyncSession) -> ContentRevisionEngine:
    return ContentRevisionEngine(db_session)


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
