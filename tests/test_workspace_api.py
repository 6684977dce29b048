"""
API tests for reports, catalogs, settings, tasks and team chat.
"""
from datetime import datetime

from httpx import AsyncClient

from realty_crm.services.chat_service import MESSAGE_TABLE


class TestReports:

    async def test_monthly_report(self, client: AsyncClient, admin, salesman):
        await client.post("/api/projects/", json={"name": "Lake View", "area": "Gulshan", "category": "Apartment"},
                          headers=admin.headers)
        for name in ("A", "B"):
            await client.post(
                "/api/leads/",
                json={"name": name, "phone": "1", "project_name": "Lake View", "assigned_to": str(salesman.id)},
                headers=admin.headers,
            )
        await client.post("/api/leads/", json={"name": "C", "phone": "2"}, headers=admin.headers)

        now = datetime.utcnow()
        response = await client.get(
            "/api/reports/monthly", params={"year": now.year, "month": now.month}, headers=admin.headers
        )
        report = response.json()

        assert response.status_code == 200
        assert report["lead_count"] == 3
        assert report["scope"] == "all"
        projects = {row["project_name"]: row for row in report["by_project"]}
        assert projects["Lake View"]["total"] == 2
        assert projects["Lake View"]["area"] == "Gulshan"
        assert projects["Lake View"]["category"] == "Apartment"
        assert projects["No Project"]["total"] == 1
        assert report["by_salesperson"] == [{
            "sales_person": "Sam Sales", "designation": "Sales Person",
            "mql": 2, "sgl": 0, "total": 2, "priority": 0, "top_priority": 0,
            "junk": 0, "hold": 0, "sold": 0,
        }]

    async def test_salesman_report_is_scoped(self, client: AsyncClient, admin, salesman):
        await client.post("/api/leads/", json={"name": "Other", "phone": "1"}, headers=admin.headers)
        await client.post("/api/leads/", json={"name": "Own", "phone": "2"}, headers=salesman.headers)

        now = datetime.utcnow()
        report = (await client.get(
            "/api/reports/monthly", params={"year": now.year, "month": now.month}, headers=salesman.headers
        )).json()

        assert report["scope"] == "assigned"
        assert report["lead_count"] == 1

    async def test_export_csv(self, client: AsyncClient, admin):
        await client.post("/api/leads/", json={"name": "A", "phone": "1", "source": "referral"}, headers=admin.headers)

        response = await client.get(
            "/api/reports/monthly/source/export", params={"year": 2030, "month": 1}, headers=admin.headers
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert response.text == "SL No,Source Type,MQL,SGL,Total,Priority,Top Priority,Junk,Hold,Sold\n"

    async def test_unknown_pivot(self, client: AsyncClient, admin):
        response = await client.get(
            "/api/reports/monthly/region/export", params={"year": 2024, "month": 1}, headers=admin.headers
        )
        assert response.status_code == 422

    async def test_bad_month(self, client: AsyncClient, admin):
        response = await client.get("/api/reports/monthly", params={"year": 2024, "month": 13}, headers=admin.headers)
        assert response.status_code == 422


class TestCatalog:

    async def test_project_lifecycle(self, client: AsyncClient, marketer, salesman):
        created = await client.post("/api/projects/", json={"name": "Hill Top", "area": "Uttara"},
                                    headers=marketer.headers)
        assert created.status_code == 201
        project_id = created.json()["id"]

        assert [p["name"] for p in (await client.get("/api/projects/", headers=salesman.headers)).json()] == ["Hill Top"]

        response = await client.delete(f"/api/projects/{project_id}", headers=marketer.headers)
        assert response.json()["is_active"] is False

        assert (await client.get("/api/projects/", headers=salesman.headers)).json() == []
        everything = (await client.get("/api/projects/", params={"include_inactive": True},
                                       headers=salesman.headers)).json()
        assert len(everything) == 1

    async def test_salesman_cannot_manage_projects(self, client: AsyncClient, salesman):
        response = await client.post("/api/projects/", json={"name": "Hill Top"}, headers=salesman.headers)
        assert response.status_code == 403

    async def test_source_with_sub_sources(self, client: AsyncClient, admin):
        response = await client.post(
            "/api/sources/", json={"source_name": "Digital", "sub_sources": ["Facebook", " ", "Google"]},
            headers=admin.headers,
        )
        assert response.status_code == 201
        assert response.json()["sub_sources"] == ["Facebook", "Google"]

        source_id = response.json()["id"]
        response = await client.patch(f"/api/sources/{source_id}", json={"sub_sources": ["TikTok"]},
                                      headers=admin.headers)
        assert response.json()["sub_sources"] == ["TikTok"]


class TestSettings:

    async def test_defaults_and_update(self, client: AsyncClient, admin):
        settings = (await client.get("/api/settings/", headers=admin.headers)).json()["settings"]
        assert settings == {"company": {}, "notifications": {}, "integrations": {}}

        response = await client.put(
            "/api/settings/company", json={"setting_value": {"name": "Acme Realty"}}, headers=admin.headers
        )
        assert response.json()["settings"]["company"] == {"name": "Acme Realty"}

    async def test_unknown_key(self, client: AsyncClient, admin):
        response = await client.put("/api/settings/theme", json={"setting_value": {}}, headers=admin.headers)
        assert response.status_code == 404

    async def test_salesman_cannot_read_settings(self, client: AsyncClient, salesman):
        response = await client.get("/api/settings/", headers=salesman.headers)
        assert response.status_code == 403


class TestTasks:

    async def test_task_lifecycle(self, client: AsyncClient, salesman):
        created = await client.post(
            "/api/tasks/", json={"title": "Call back Karim", "priority": "high", "due_date": "2024-07-01"},
            headers=salesman.headers,
        )
        assert created.status_code == 201
        task = created.json()
        assert task["is_completed"] is False

        toggled = await client.post(f"/api/tasks/{task['id']}/toggle", headers=salesman.headers)
        assert toggled.json()["is_completed"] is True

        updated = await client.patch(f"/api/tasks/{task['id']}", json={"title": "Call back Karim at 5"},
                                     headers=salesman.headers)
        assert updated.json()["title"] == "Call back Karim at 5"

        response = await client.delete(f"/api/tasks/{task['id']}", headers=salesman.headers)
        assert response.status_code == 204
        assert (await client.get("/api/tasks/", headers=salesman.headers)).json() == []

    async def test_tasks_are_private(self, client: AsyncClient, salesman, marketer):
        task = (await client.post("/api/tasks/", json={"title": "Mine"}, headers=salesman.headers)).json()

        assert (await client.get("/api/tasks/", headers=marketer.headers)).json() == []
        response = await client.post(f"/api/tasks/{task['id']}/toggle", headers=marketer.headers)
        assert response.status_code == 404


class TestChat:

    async def test_group_messages(self, client: AsyncClient, fresh_broker, admin, salesman):
        group = (await client.post(
            "/api/chat/groups",
            json={"name": "Sales floor", "member_ids": [str(salesman.id), str(salesman.id)]},
            headers=admin.headers,
        )).json()

        members = (await client.get(f"/api/chat/groups/{group['id']}/members", headers=salesman.headers)).json()
        assert sorted(member["full_name"] for member in members) == ["Alice Admin", "Sam Sales"]

        events = []
        fresh_broker.subscribe(MESSAGE_TABLE, {"group_id": group["id"]}, events.append)

        response = await client.post(
            f"/api/chat/groups/{group['id']}/messages", json={"message": "Site visit at 4"}, headers=salesman.headers
        )
        assert response.status_code == 201
        assert response.json()["sender_name"] == "Sam Sales"

        messages = (await client.get(f"/api/chat/groups/{group['id']}/messages", headers=admin.headers)).json()
        assert [message["message"] for message in messages] == ["Site visit at 4"]
        assert len(events) == 1
        assert events[0].record["sender_name"] == "Sam Sales"

    async def test_non_member_is_refused(self, client: AsyncClient, admin, marketer):
        group = (await client.post("/api/chat/groups", json={"name": "Admins"}, headers=admin.headers)).json()

        response = await client.get(f"/api/chat/groups/{group['id']}/messages", headers=marketer.headers)
        assert response.status_code == 403
        assert (await client.get("/api/chat/groups", headers=marketer.headers)).json() == []
