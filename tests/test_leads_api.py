"""
Lead API tests: lifecycle, role rules and CSV import.
"""
import pytest
from httpx import AsyncClient

from realty_crm.repositories.activity_repo import LeadActivityRepository
from realty_crm.repositories.lead_repo import LeadRepository
from realty_crm.schemas.lead import LeadCreate
from realty_crm.services.lead_service import LeadService


LEAD_PAYLOAD = {
    "name": "Karim Rahman",
    "phone": "01711000000",
    "email": "karim@example.com",
    "project_name": "Lake View",
    "source": "website",
}


async def create_lead(client: AsyncClient, user, **overrides) -> dict:
    response = await client.post("/api/leads/", json={**LEAD_PAYLOAD, **overrides}, headers=user.headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateLead:

    async def test_salesman_lead_is_self_assigned_sgl(self, client: AsyncClient, salesman):
        lead = await create_lead(client, salesman, stage="MQL")

        assert lead["stage"] == "SGL"
        assert lead["assigned_to"] == str(salesman.id)
        assert lead["created_by"] == str(salesman.id)
        assert lead["lead_code"].startswith("LD-")

    async def test_marketer_lead_defaults_to_mql(self, client: AsyncClient, marketer):
        lead = await create_lead(client, marketer)

        assert lead["stage"] == "MQL"
        assert lead["assigned_to"] is None
        assert lead["status"] == "new"

    async def test_blank_name_rejected(self, client: AsyncClient, admin):
        response = await client.post("/api/leads/", json={**LEAD_PAYLOAD, "name": "  "}, headers=admin.headers)
        assert response.status_code == 422

    async def test_unauthenticated_rejected(self, client: AsyncClient):
        response = await client.post("/api/leads/", json=LEAD_PAYLOAD)
        assert response.status_code == 401

    async def test_account_without_role_rejected(self, client: AsyncClient, make_user):
        newcomer = await make_user(None)
        response = await client.post("/api/leads/", json=LEAD_PAYLOAD, headers=newcomer.headers)
        assert response.status_code == 403

    async def test_creation_is_logged(self, client: AsyncClient, admin):
        lead = await create_lead(client, admin)

        response = await client.get(f"/api/leads/{lead['id']}", headers=admin.headers)
        detail = response.json()

        assert response.status_code == 200
        assert [a["activity_type"] for a in detail["activities"]] == ["Created"]
        assert detail["activities"][0]["user_name"] == "Alice Admin"
        assert detail["duration"]["severity_tier"] == "fresh"
        assert detail["capabilities"]["can_delete"] is True


class TestLeadRoles:

    async def test_marketer_cannot_update_status(self, client: AsyncClient, marketer):
        lead = await create_lead(client, marketer)

        response = await client.put(
            f"/api/leads/{lead['id']}/status", json={"status": "contacted"}, headers=marketer.headers
        )

        assert response.status_code == 403

    async def test_salesman_updates_status_of_own_lead(self, client: AsyncClient, salesman):
        lead = await create_lead(client, salesman)

        response = await client.put(
            f"/api/leads/{lead['id']}/status", json={"status": "contacted"}, headers=salesman.headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "contacted"

    async def test_salesman_cannot_edit_assigned_marketing_lead(self, client: AsyncClient, admin, salesman):
        lead = await create_lead(client, admin, assigned_to=str(salesman.id))

        edit = await client.patch(f"/api/leads/{lead['id']}", json={"notes": "x"}, headers=salesman.headers)
        delete = await client.delete(f"/api/leads/{lead['id']}", headers=salesman.headers)
        meeting = await client.put(
            f"/api/leads/{lead['id']}/meeting",
            json={"meeting_type": "Site visit", "meeting_date": "2024-07-01"},
            headers=salesman.headers,
        )

        assert edit.status_code == 403
        assert delete.status_code == 403
        assert meeting.status_code == 200
        assert meeting.json()["meeting_date"] == "2024-07-01"

    async def test_salesman_cannot_see_other_leads(self, client: AsyncClient, admin, salesman):
        lead = await create_lead(client, admin)

        response = await client.get(f"/api/leads/{lead['id']}", headers=salesman.headers)

        assert response.status_code == 404

    async def test_salesman_can_delete_own_lead(self, client: AsyncClient, salesman):
        lead = await create_lead(client, salesman)

        response = await client.delete(f"/api/leads/{lead['id']}", headers=salesman.headers)
        assert response.status_code == 204

        response = await client.get(f"/api/leads/{lead['id']}", headers=salesman.headers)
        assert response.status_code == 404

    async def test_salesman_edit_keeps_stage(self, client: AsyncClient, salesman):
        lead = await create_lead(client, salesman)

        response = await client.patch(
            f"/api/leads/{lead['id']}", json={"stage": "MQL", "name": "Renamed"}, headers=salesman.headers
        )

        assert response.status_code == 200
        assert response.json()["stage"] == "SGL"
        assert response.json()["name"] == "Renamed"


class TestAssignment:

    async def test_assign_notifies_assignee(self, client: AsyncClient, marketer, salesman):
        lead = await create_lead(client, marketer)

        response = await client.put(
            f"/api/leads/{lead['id']}/assign", json={"assigned_to": str(salesman.id)}, headers=marketer.headers
        )
        assert response.status_code == 200
        assert response.json()["assigned_to"] == str(salesman.id)

        notifications = (await client.get("/api/notifications/", headers=salesman.headers)).json()
        assert len(notifications) == 1
        assert notifications[0]["type"] == "lead"
        assert notifications[0]["lead_id"] == lead["id"]
        assert notifications[0]["is_read"] is False

        detail = (await client.get(f"/api/leads/{lead['id']}", headers=salesman.headers)).json()
        assert detail["assignee"]["full_name"] == "Sam Sales"
        assert "Lead assigned to Sam Sales" in [a["notes"] for a in detail["activities"]]

    async def test_salesman_cannot_assign(self, client: AsyncClient, salesman, make_user):
        other = await make_user("salesman")
        lead = await create_lead(client, salesman)

        response = await client.put(
            f"/api/leads/{lead['id']}/assign", json={"assigned_to": str(other.id)}, headers=salesman.headers
        )

        assert response.status_code == 403

    async def test_assign_to_unknown_user(self, client: AsyncClient, admin):
        lead = await create_lead(client, admin)

        response = await client.put(
            f"/api/leads/{lead['id']}/assign",
            json={"assigned_to": "00000000-0000-0000-0000-000000000000"},
            headers=admin.headers,
        )

        assert response.status_code == 404


class TestListViews:

    async def test_mine_view_shows_only_assigned_leads(self, client: AsyncClient, admin, salesman):
        await create_lead(client, admin, name="Unassigned")
        await create_lead(client, admin, name="Assigned", assigned_to=str(salesman.id))
        await create_lead(client, salesman, name="Own")

        response = await client.get("/api/leads/", params={"view": "mine"}, headers=salesman.headers)
        body = response.json()

        assert response.status_code == 200
        assert sorted(row["lead"]["name"] for row in body["items"]) == ["Assigned", "Own"]
        assert body["view"]["show_duration_column"] is True
        assert all(row["duration"] is not None for row in body["items"])
        assert all(row["can_transfer"] is False for row in body["items"])

    async def test_distribution_view_offers_transfer(self, client: AsyncClient, marketer, salesman):
        await create_lead(client, marketer)

        body = (await client.get("/api/leads/", params={"view": "distribution"}, headers=marketer.headers)).json()

        assert body["total"] == 1
        assert body["items"][0]["can_transfer"] is True
        assert body["refresh_interval_seconds"] > 0

    async def test_recent_view_hides_optional_columns(self, client: AsyncClient, admin):
        await create_lead(client, admin)

        body = (await client.get("/api/leads/", headers=admin.headers)).json()

        assert body["view"]["name"] == "recent"
        assert body["items"][0]["duration"] is None

    async def test_unknown_view_rejected(self, client: AsyncClient, admin):
        response = await client.get("/api/leads/", params={"view": "kanban"}, headers=admin.headers)
        assert response.status_code == 422

    async def test_search_filter(self, client: AsyncClient, admin):
        await create_lead(client, admin, name="Karim Rahman")
        await create_lead(client, admin, name="Nadia Islam", phone="01811000000", email="nadia@example.com")

        body = (await client.get("/api/leads/", params={"search": "nadia"}, headers=admin.headers)).json()

        assert [row["lead"]["name"] for row in body["items"]] == ["Nadia Islam"]


class TestImport:

    async def test_import_two_rows(self, client: AsyncClient, marketer):
        csv_bytes = b"Name,Mobile,Source\nA,1,Website\nB,2,Facebook Ads\n"

        response = await client.post(
            "/api/leads/import",
            files={"file": ("leads.csv", csv_bytes, "text/csv")},
            headers=marketer.headers,
        )

        assert response.status_code == 200
        assert response.json()["imported"] == 2
        assert response.json()["message"] == "Successfully imported 2 leads!"

        body = (await client.get("/api/leads/", headers=marketer.headers)).json()
        assert body["total"] == 2
        assert {row["lead"]["source"] for row in body["items"]} == {"website", "other"}

    async def test_import_with_byte_order_mark(self, client: AsyncClient, admin):
        csv_bytes = "\ufeffname,phone\nA,1\n".encode("utf-8")

        response = await client.post(
            "/api/leads/import",
            files={"file": ("leads.csv", csv_bytes, "text/csv")},
            headers=admin.headers,
        )

        assert response.status_code == 200
        assert response.json()["imported"] == 1

    async def test_non_csv_rejected(self, client: AsyncClient, admin):
        response = await client.post(
            "/api/leads/import",
            files={"file": ("leads.xlsx", b"name,phone\nA,1\n", "application/octet-stream")},
            headers=admin.headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Please upload a CSV file"

    async def test_no_valid_rows(self, client: AsyncClient, admin):
        response = await client.post(
            "/api/leads/import",
            files={"file": ("leads.csv", b"name,email\nA,a@x.com\n", "text/csv")},
            headers=admin.headers,
        )

        assert response.status_code == 422


@pytest.mark.parametrize("endpoint,payload", [
    ("address", {"customer_address_details": "House 4, Road 2"}),
    ("budget", {"budget_min": 100000, "budget_max": 250000}),
])
async def test_working_fields_logged(client: AsyncClient, salesman, endpoint, payload):
    lead = await create_lead(client, salesman)

    response = await client.put(f"/api/leads/{lead['id']}/{endpoint}", json=payload, headers=salesman.headers)
    assert response.status_code == 200

    detail = (await client.get(f"/api/leads/{lead['id']}", headers=salesman.headers)).json()
    assert len(detail["activities"]) == 2


async def test_add_note(client: AsyncClient, salesman):
    lead = await create_lead(client, salesman)

    response = await client.post(
        f"/api/leads/{lead['id']}/notes", json={"notes": "Called, no answer"}, headers=salesman.headers
    )

    assert response.status_code == 201
    assert response.json()["activity_type"] == "Note"
    assert response.json()["notes"] == "Called, no answer"


async def test_dashboard_stats(client: AsyncClient, admin, salesman):
    lead = await create_lead(client, admin)
    await client.put(f"/api/leads/{lead['id']}/priority-status", json={"priority_status": "sold"}, headers=admin.headers)
    await create_lead(client, salesman)

    stats = (await client.get("/api/dashboard/stats", headers=admin.headers)).json()
    own_stats = (await client.get("/api/dashboard/stats", headers=salesman.headers)).json()

    assert stats["total"] == 2
    assert stats["sold"] == 1
    assert own_stats["total"] == 1


class TestLeadWritesAreAtomic:
    """A failing write leaves neither half of a lead change behind."""

    @staticmethod
    def fail(*args, **kwargs):
        raise RuntimeError("write failed")

    async def test_create_without_activity_is_rolled_back(self, session, admin, monkeypatch):
        service = LeadService(session)
        monkeypatch.setattr(LeadActivityRepository, "log", self.fail)

        with pytest.raises(RuntimeError):
            await service.create(admin.id, admin.role, LeadCreate(name="Karim", phone="1"))
        await session.rollback()

        assert await LeadRepository(session).count() == 0

    async def test_import_without_activities_is_rolled_back(self, session, admin, monkeypatch):
        service = LeadService(session)
        monkeypatch.setattr(LeadActivityRepository, "create_many", self.fail)

        with pytest.raises(RuntimeError):
            await service.import_csv(admin.id, admin.role, "name,phone\nA,1\nB,2\n")
        await session.rollback()

        assert await LeadRepository(session).count() == 0

    async def test_failed_delete_keeps_activity_trail(self, session, admin, monkeypatch):
        service = LeadService(session)
        lead = await service.create(admin.id, admin.role, LeadCreate(name="Karim", phone="1"))
        monkeypatch.setattr(LeadRepository, "delete", self.fail)

        with pytest.raises(RuntimeError):
            await service.delete(admin.id, admin.role, lead.id)
        await session.rollback()

        assert await LeadRepository(session).count() == 1
        assert await LeadActivityRepository(session).count({"lead_id": lead.id}) == 1
