"""
Tests for health, version and cross-cutting middleware behaviour.
"""

from unittest.mock import AsyncMock, patch

from timehatch.api.app import SECURITY_HEADERS


class TestHealthEndpoints:
    """Test liveness and readiness."""

    async def test_health(self, client):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "TimeHatch API"

    async def test_ready(self, client, mock_cache):
        with patch("timehatch.api.routes.health.get_cache", return_value=mock_cache):
            response = await client.get("/api/v1/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"] == {"database": "ready", "redis": "ready"}

    async def test_redis_down_is_degraded(self, client, mock_cache):
        mock_cache.health_check.return_value = False

        with patch("timehatch.api.routes.health.get_cache", return_value=mock_cache):
            response = await client.get("/api/v1/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    async def test_database_down_is_not_ready(self, client, mock_cache):
        database_down = AsyncMock(return_value="unavailable")
        with patch("timehatch.api.routes.health.get_cache", return_value=mock_cache):
            with patch("timehatch.api.routes.health._check_database", database_down):
                response = await client.get("/api/v1/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


class TestVersionEndpoint:
    async def test_version_is_never_cached(self, client):
        response = await client.get("/api/version")

        assert response.status_code == 200
        assert response.json()["name"] == "TimeHatch"
        assert response.json()["env"] == "testing"
        assert "no-store" in response.headers["cache-control"]
        assert response.headers["pragma"] == "no-cache"
        assert response.headers["expires"] == "0"


class TestMiddleware:
    """Test security headers, error bodies and the auth rate limit."""

    async def test_security_headers(self, client):
        response = await client.get("/api/v1/health")

        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value

    async def test_docs_skip_csp(self, client):
        response = await client.get("/docs")

        assert response.status_code == 200
        assert "content-security-policy" not in response.headers
        assert response.headers["x-frame-options"] == "DENY"

    async def test_not_found_body(self, client):
        response = await client.get("/api/v1/nope")

        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found", "path": "/api/v1/nope"}

    async def test_requires_authentication(self, client):
        response = await client.get("/api/v1/onboarding")
        assert response.status_code == 401

    async def test_auth_rate_limit(self, client):
        for _ in range(10):
            response = await client.post(
                "/api/v1/auth/password-strength", json={"password": "x"}
            )
            assert response.status_code == 200

        response = await client.post(
            "/api/v1/auth/password-strength", json={"password": "x"}
        )

        assert response.status_code == 429
        assert int(response.headers["retry-after"]) >= 1
        assert response.json()["retry_after"] >= 1

    async def test_rate_limit_is_per_client_ip(self, client):
        for _ in range(10):
            await client.post(
                "/api/v1/auth/password-strength",
                json={"password": "x"},
                headers={"X-Forwarded-For": "198.51.100.1"},
            )

        response = await client.post(
            "/api/v1/auth/password-strength",
            json={"password": "x"},
            headers={"X-Forwarded-For": "198.51.100.2"},
        )

        assert response.status_code == 200


class TestPasswordStrengthEndpoint:
    async def test_camel_case_response(self, client):
        response = await client.post(
            "/api/v1/auth/password-strength", json={"password": "Tr0ub4dor&3"}
        )

        body = response.json()
        assert body["isValid"] is True
        assert body["label"] == "Strong"
        assert body["requirements"]["hasSpecialChar"] is True

    async def test_missing_password(self, client):
        response = await client.post("/api/v1/auth/password-strength", json={})

        assert response.status_code == 422
        body = response.json()
        assert body["detail"] == "Validation error"
        assert body["errors"][0]["loc"] == ["body", "password"]