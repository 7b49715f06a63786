"""
Tests for the project expense endpoints.
"""

import pytest

from timehatch.core.models.tortoise_models import Client, Project


@pytest.fixture
async def project(authenticated):
    client = await Client.create(user=authenticated, name="Acme")
    return await Project.create(user=authenticated, client=client, name="Website")


class TestExpenses:
    """Test creating, replacing, listing and deleting expenses."""

    async def test_create(self, client, project):
        response = await client.post(
            "/api/v1/expenses",
            json={
                "project_id": str(project.id),
                "spent_on": "2024-02-01",
                "vendor": "SBB",
                "quantity": "2",
                "unit_amount": "12.50",
                "currency": "chf",
                "vat_rate": "8.1",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["currency"] == "CHF"
        assert body["net_amount_cents"] == 2500
        assert body["vat_amount_cents"] == 203
        assert body["gross_amount_cents"] == 2703
        assert body["client_id"] == str(project.client_id)

        onboarding = (await client.get("/api/v1/onboarding")).json()
        assert onboarding["state"]["expense_added"] is True

    async def test_replace(self, client, project):
        created = (
            await client.post(
                "/api/v1/expenses",
                json={"project_id": str(project.id), "unit_amount": "10"},
            )
        ).json()

        response = await client.put(
            f"/api/v1/expenses/{created['id']}",
            json={"project_id": str(project.id), "unit_amount": "15", "quantity": "2"},
        )

        assert response.status_code == 200
        assert response.json()["gross_amount_cents"] == 3000

    async def test_list_and_delete(self, client, project):
        created = (
            await client.post(
                "/api/v1/expenses",
                json={"project_id": str(project.id), "unit_amount": "10"},
            )
        ).json()

        listed = await client.get(f"/api/v1/projects/{project.id}/expenses")
        assert [item["id"] for item in listed.json()] == [created["id"]]

        deleted = await client.delete(f"/api/v1/expenses/{created['id']}")
        assert deleted.status_code == 200

        listed = await client.get(f"/api/v1/projects/{project.id}/expenses")
        assert listed.json() == []

    async def test_unknown_project(self, client, authenticated):
        response = await client.post(
            "/api/v1/expenses",
            json={
                "project_id": "00000000-0000-0000-0000-000000000000",
                "unit_amount": "10",
            },
        )

        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found_error"

    async def test_unsupported_currency(self, client, project):
        response = await client.post(
            "/api/v1/expenses",
            json={
                "project_id": str(project.id),
                "unit_amount": "10",
                "currency": "JPY",
            },
        )

        assert response.status_code == 422

    async def test_delete_unknown(self, client, authenticated):
        response = await client.delete(
            "/api/v1/expenses/00000000-0000-0000-0000-000000000000"
        )

        assert response.status_code == 404


class TestExpenseTotals:
    """Test GET /projects/{id}/expenses/total."""

    async def test_billable_totals(self, client, project):
        for payload in (
            {"unit_amount": "10"},
            {"unit_amount": "5", "currency": "EUR"},
            {"unit_amount": "100", "billable": False},
        ):
            await client.post(
                "/api/v1/expenses", json={"project_id": str(project.id), **payload}
            )

        response = await client.get(f"/api/v1/projects/{project.id}/expenses/total")

        assert response.status_code == 200
        body = response.json()
        assert body["project_id"] == str(project.id)
        assert [
            (total["currency"], total["gross_amount_cents"]) for total in body["totals"]
        ] == [("CHF", 1000), ("EUR", 500)]
        assert float(body["totals"][0]["gross_amount"]) == 10
