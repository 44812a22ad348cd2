"""
Shared test fixtures for SocialFeed API tests.

Provides database session management, test clients, user fixtures and a
notification dispatcher that tests can drain before asserting.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from socialfeed.auth.jwt import create_tokens
from socialfeed.auth.password import hash_password
from socialfeed.config import settings
from socialfeed.database import Base, enable_sqlite_foreign_keys, get_db
from socialfeed.main import app
from socialfeed.middleware.rate_limit import reset_limiters
from socialfeed.services.notifications import NotificationDispatcher, get_dispatcher

# Import models so they're registered with Base.metadata before table creation
from socialfeed.models import Comment, Notification, Post, User  # noqa: F401

# Test database URL (uses separate test database)
TEST_DATABASE_URL = settings.test_database_url

# Create test engine with NullPool to avoid connection issues
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,
    echo=False,
)
enable_sqlite_foreign_keys(test_engine)

TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


# --- Rate Limiter Reset Fixture ---


@pytest_asyncio.fixture(autouse=True)
async def reset_rate_limiters():
    """Reset per-IP and per-user rate limits before each test."""
    await reset_limiters()
    yield


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create tables before each test function, drop after.
    Provides isolated database state per test.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def notification_dispatcher(
    db_session: AsyncSession,
) -> AsyncGenerator[NotificationDispatcher, None]:
    """Dispatcher writing to the test database; drained again on teardown."""
    dispatcher = NotificationDispatcher(TestSessionLocal)
    yield dispatcher
    await dispatcher.drain()


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession,
    notification_dispatcher: NotificationDispatcher,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client configured for testing.
    Overrides the database and dispatcher dependencies.
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: notification_dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=True,
    ) as client:
        yield client

    app.dependency_overrides.clear()


# --- Authentication Helper Fixtures ---


@pytest.fixture
def auth_headers():
    """Factory fixture for creating bearer Authorization headers."""

    def _auth_headers(user_or_token: dict[str, Any] | str) -> dict[str, str]:
        token = (
            user_or_token["access_token"] if isinstance(user_or_token, dict) else user_or_token
        )
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def valid_registration_data() -> dict[str, str]:
    """Valid user registration payload."""
    return {
        "username": "newuser",
        "email": "newuser@example.com",
        "password": "SecurePassword123!",
        "displayName": "New User",
    }


@pytest.fixture
def valid_login_data() -> dict[str, str]:
    """Valid login payload (requires test_user to exist)."""
    return {
        "username": "testuser",
        "password": "TestPassword123!",
    }


# --- User Fixtures ---


async def _create_user(
    db_session: AsyncSession,
    username: str,
    email: str,
    password: str,
    open_profile: bool = True,
) -> dict[str, Any]:
    """Helper to create a user in the database and issue tokens for it."""
    user = User(
        username=username,
        email=email.lower(),
        password_hash=hash_password(password),
        display_name=username.title(),
        open_profile=open_profile,
    )
    db_session.add(user)
    await db_session.commit()

    tokens = create_tokens(str(user.id))
    return {
        "id": user.id,
        "user_id": str(user.id),
        "username": user.username,
        "email": user.email,
        "password": password,
        "access_token": tokens["access_token"],
        "refresh_token": tokens["refresh_token"],
    }


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> dict[str, Any]:
    """Create a standard test user with an access token."""
    return await _create_user(
        db_session,
        username="testuser",
        email="test@example.com",
        password="TestPassword123!",
    )


@pytest_asyncio.fixture
async def second_user(db_session: AsyncSession) -> dict[str, Any]:
    """Create a second user for testing ownership/authorization scenarios."""
    return await _create_user(
        db_session,
        username="seconduser",
        email="second@example.com",
        password="SecondPassword123!",
    )


@pytest_asyncio.fixture
async def third_user(db_session: AsyncSession) -> dict[str, Any]:
    """Create a third user for fan-out scenarios."""
    return await _create_user(
        db_session,
        username="thirduser",
        email="third@example.com",
        password="ThirdPassword123!",
    )


@pytest_asyncio.fixture
async def closed_user(db_session: AsyncSession) -> dict[str, Any]:
    """Create a user whose wall only accepts their own posts."""
    return await _create_user(
        db_session,
        username="closeduser",
        email="closed@example.com",
        password="ClosedPassword123!",
        open_profile=False,
    )


# --- Content Helpers ---


@pytest.fixture
def create_post(async_client: AsyncClient, auth_headers):
    """Factory fixture posting on a wall through the API; returns the response JSON."""

    async def _create_post(author: dict[str, Any], message: str, wall: str | None = None):
        response = await async_client.post(
            f"/api/v1/users/{wall or author['username']}/posts",
            json={"message": message},
            headers=auth_headers(author),
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create_post


@pytest.fixture
def create_comment(async_client: AsyncClient, auth_headers):
    """Factory fixture commenting on a post through the API; returns the response JSON."""

    async def _create_comment(
        author: dict[str, Any],
        post_id: str,
        message: str,
        parent_comment_id: str | None = None,
    ):
        payload: dict[str, Any] = {"message": message, "postId": post_id}
        if parent_comment_id is not None:
            payload["parentCommentId"] = parent_comment_id
        response = await async_client.post(
            "/api/v1/comments",
            json=payload,
            headers=auth_headers(author),
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create_comment


# --- Utility Fixtures ---


@pytest.fixture
def frozen_time():
    """
    Fixture for time-based testing using freezegun.

    Usage:
        with frozen_time("2026-02-01 12:00:00"):
            # time is frozen
    """
    from freezegun import freeze_time

    return freeze_time
