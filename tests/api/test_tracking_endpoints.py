"""
Tests for the client, project and timer endpoints.
"""


class TestClientsAndProjects:
    """Test creation, listing and plan limits."""

    async def test_create_client(self, client, authenticated):
        response = await client.post("/api/v1/clients", json={"name": "Acme"})

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Acme"
        assert body["archived"] is False

    async def test_free_plan_client_limit(self, client, authenticated):
        await client.post("/api/v1/clients", json={"name": "Acme"})

        response = await client.post("/api/v1/clients", json={"name": "Globex"})

        assert response.status_code == 403
        assert response.json()["error_type"] == "authorization_error"

    async def test_empty_name(self, client, authenticated):
        response = await client.post("/api/v1/clients", json={"name": ""})

        assert response.status_code == 422

    async def test_project_for_client(self, client, authenticated):
        acme = (await client.post("/api/v1/clients", json={"name": "Acme"})).json()

        response = await client.post(
            "/api/v1/projects",
            json={"name": "Website", "client_id": acme["id"], "rate_hour": "85.50"},
        )

        assert response.status_code == 201
        assert response.json()["client_id"] == acme["id"]
        listed = (await client.get("/api/v1/projects")).json()
        assert [project["name"] for project in listed] == ["Website"]

    async def test_archive_unknown_client(self, client, authenticated):
        response = await client.post(
            "/api/v1/clients/00000000-0000-0000-0000-000000000000/archive"
        )

        assert response.status_code == 404


class TestTimerEndpoints:
    """Test the running timer."""

    async def test_start_and_stop(self, client, authenticated):
        project = (
            await client.post("/api/v1/projects", json={"name": "Website"})
        ).json()

        started = await client.post(
            "/api/v1/timer/start", json={"project_id": project["id"]}
        )
        assert started.status_code == 201
        assert started.json()["stopped_at"] is None

        running = await client.get("/api/v1/timer")
        assert running.json()["id"] == started.json()["id"]

        stopped = await client.post("/api/v1/timer/stop", json={"notes": "Hero"})
        assert stopped.status_code == 200
        assert stopped.json()["notes"] == "Hero"
        assert stopped.json()["stopped_at"] is not None

        assert (await client.get("/api/v1/timer")).json() is None

    async def test_stop_without_timer(self, client, authenticated):
        response = await client.post("/api/v1/timer/stop", json={})

        assert response.status_code == 404
        assert response.json()["detail"] == "No running timer"
