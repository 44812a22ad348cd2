"""Tests for POST /api/v1/auth/login endpoint."""

from httpx import AsyncClient

from socialfeed.auth.jwt import TokenType, decode_token


class TestLoginSuccess:
    """Successful logins."""

    async def test_login_with_username_returns_tokens(
        self, async_client: AsyncClient, test_user: dict, valid_login_data: dict
    ):
        response = await async_client.post("/api/v1/auth/login", json=valid_login_data)

        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == test_user["user_id"]
        assert decode_token(data["accessToken"], TokenType.ACCESS) == test_user["id"]

    async def test_login_with_email(self, async_client: AsyncClient, test_user: dict):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"username": "TEST@example.com", "password": test_user["password"]},
        )
        assert response.status_code == 200

    async def test_username_is_case_insensitive(self, async_client: AsyncClient, test_user: dict):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"username": "TestUser", "password": test_user["password"]},
        )
        assert response.status_code == 200


class TestLoginFailure:
    """Rejected logins."""

    async def test_wrong_password_returns_401(self, async_client: AsyncClient, test_user: dict):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"username": test_user["username"], "password": "WrongPassword1"},
        )
        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "UNAUTHORIZED"

    async def test_unknown_user_returns_401(self, async_client: AsyncClient, db_session):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"username": "ghost", "password": "Whatever123"},
        )
        assert response.status_code == 401

    async def test_eleventh_attempt_is_rate_limited(
        self, async_client: AsyncClient, test_user: dict
    ):
        payload = {"username": test_user["username"], "password": "WrongPassword1"}
        for _ in range(10):
            response = await async_client.post("/api/v1/auth/login", json=payload)
            assert response.status_code == 401

        response = await async_client.post("/api/v1/auth/login", json=payload)
        assert response.status_code == 429
