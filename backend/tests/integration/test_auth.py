"""Integration tests for the authentication endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import PasswordHasher
from infrastructure.database.models.user import User, UserStatus

pytestmark = pytest.mark.asyncio

# Password the conftest user fixtures are created with
TEST_PASSWORD = "TestPassword123"


class TestRegistration:
    """Tests for user registration."""

    async def test_register_success(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/auth/register",
            json={"email": "New.Reader@example.com", "password": "SecurePass123", "name": "New Reader"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new.reader@example.com"
        assert data["role"] == "student"
        assert data["status"] == "active"
        assert data["can_author"] is False
        assert data["can_review"] is False
        assert "password" not in data
        assert "password_hash" not in data

    async def test_register_duplicate_email(self, async_client: AsyncClient, student_user: User):
        response = await async_client.post(
            "/api/v1/auth/register",
            json={"email": student_user.email.upper(), "password": "SecurePass123", "name": "Dup"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "BAD_REQUEST"
        assert "already exists" in response.json()["detail"]

    async def test_register_weak_password(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/auth/register",
            json={"email": "weak@example.com", "password": "alllowercase1", "name": "Weak"},
        )
        assert response.status_code == 422
        assert "uppercase" in response.json()["detail"]

    @pytest.mark.parametrize(
        "password,message",
        [
            ("NoDigitsHere", "Password needs at least one digit"),
            ("Aa1" + "x" * 70, "Password must be at most 72 bytes"),
            ("Brightstar2024", "Password must not contain the email address"),
        ],
    )
    async def test_password_policy(self, async_client: AsyncClient, password: str, message: str):
        response = await async_client.post(
            "/api/v1/auth/register",
            json={"email": "brightstar@example.com", "password": password, "name": "Bright"},
        )
        assert response.status_code == 422
        assert message in response.json()["detail"]

    async def test_blank_name_rejected(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/auth/register",
            json={"email": "blank@example.com", "password": "SecurePass123", "name": "   "},
        )
        assert response.status_code == 422

    async def test_register_rate_limited(self, async_client: AsyncClient):
        statuses = []
        for n in range(4):
            response = await async_client.post(
                "/api/v1/auth/register",
                json={"email": f"user{n}@example.com", "password": "SecurePass123", "name": "N"},
            )
            statuses.append(response.status_code)
        assert statuses == [201, 201, 201, 429]


class TestLogin:
    """Tests for user login."""

    async def test_login_success(self, async_client: AsyncClient, manager_user: User):
        response = await async_client.post(
            "/api/v1/auth/login", json={"email": manager_user.email, "password": TEST_PASSWORD}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] > 0

        me = await async_client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["role"] == "manager"
        assert me.json()["last_login"] is not None
        assert me.json()["can_author"] is True
        assert me.json()["can_review"] is True

    async def test_login_upgrades_weak_hash(
        self, async_client: AsyncClient, monkeypatch: pytest.MonkeyPatch, manager_user: User
    ):
        monkeypatch.setattr("api.routes.auth.password_hasher", PasswordHasher(rounds=5))
        assert manager_user.password_hash.startswith("$2b$04$")

        response = await async_client.post(
            "/api/v1/auth/login", json={"email": manager_user.email, "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        assert manager_user.password_hash.startswith("$2b$05$")

    async def test_login_wrong_password(self, async_client: AsyncClient, student_user: User):
        response = await async_client.post(
            "/api/v1/auth/login", json={"email": student_user.email, "password": "WrongPass123"}
        )
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid email or password", "code": "UNAUTHORIZED"}

    async def test_login_unknown_email(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/auth/login", json={"email": "nobody@example.com", "password": "Whatever123"}
        )
        assert response.status_code == 401

    async def test_suspended_user(
        self, async_client: AsyncClient, db_session: AsyncSession, student_user: User
    ):
        student_user.status = UserStatus.SUSPENDED.value
        await db_session.commit()

        response = await async_client.post(
            "/api/v1/auth/login", json={"email": student_user.email, "password": TEST_PASSWORD}
        )
        assert response.status_code == 403


class TestCurrentUser:
    async def test_me_requires_token(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_me_with_invalid_token(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/v1/auth/me", headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401

    async def test_suspended_caller_is_anonymous_for_content(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        contributor_user: User,
        contributor_headers: dict,
        subject,
    ):
        contributor_user.status = UserStatus.SUSPENDED.value
        await db_session.commit()

        response = await async_client.post(
            "/api/v1/chapters",
            json={"subject_id": subject.id, "title": "Arrays", "slug": "arrays"},
            headers=contributor_headers,
        )
        assert response.status_code == 401
