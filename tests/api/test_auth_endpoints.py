"""
Tests for registration, JWT login and the current user endpoints.

These go through the real FastAPI Users routers and password hashing.
"""

from timehatch.core.models.tortoise_models import Profile

PASSWORD = "Tr0ub4dor&3horse"


async def register(client, email="jane@example.com", password=PASSWORD):
    return await client.post(
        "/api/v1/auth/register", json={"email": email, "password": password}
    )


async def login(client, email="jane@example.com", password=PASSWORD):
    return await client.post(
        "/api/v1/auth/jwt/login", data={"username": email, "password": password}
    )


class TestRegistration:
    """Test POST /auth/register."""

    async def test_register_creates_profile(self, client):
        response = await register(client)

        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "jane@example.com"
        assert "hashed_password" not in body
        assert await Profile.exists(user_id=body["id"])

    async def test_weak_password(self, client):
        response = await register(client, password="password")

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "REGISTER_INVALID_PASSWORD"

    async def test_password_containing_email(self, client):
        response = await register(client, email="ab@c.io", password="Xab@c.io9!")

        assert response.status_code == 400
        assert "e-mail" in response.json()["detail"]["reason"]

    async def test_duplicate_email(self, client):
        await register(client)

        response = await register(client)

        assert response.status_code == 400
        assert response.json()["detail"] == "REGISTER_USER_ALREADY_EXISTS"


class TestJWTLogin:
    """Test bearer token login and its use on protected routes."""

    async def test_login_and_fetch_me(self, client):
        await register(client)

        response = await login(client)

        assert response.status_code == 200
        token = response.json()["access_token"]
        assert response.json()["token_type"] == "bearer"

        me = await client.get(
            "/api/v1/users/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert me.status_code == 200
        assert me.json()["email"] == "jane@example.com"

    async def test_bad_credentials(self, client):
        await register(client)

        response = await login(client, password="Wr0ng&Password")

        assert response.status_code == 400
        assert response.json()["detail"] == "LOGIN_BAD_CREDENTIALS"

    async def test_token_opens_protected_routes(self, client):
        await register(client)
        token = (await login(client)).json()["access_token"]

        response = await client.get(
            "/api/v1/onboarding", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200

    async def test_invalid_token(self, client):
        response = await client.get(
            "/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
