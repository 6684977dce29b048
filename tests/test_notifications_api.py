"""
Notification and notice API tests.
"""
from httpx import AsyncClient

from realty_crm.services.notification_service import NOTIFICATION_TABLE
from realty_crm.services.realtime import EventTypes


async def send_notice(client: AsyncClient, sender, **payload) -> dict:
    body = {"title": "Office closed", "message": "Friday is a holiday", **payload}
    response = await client.post("/api/notices/", json=body, headers=sender.headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestNotices:

    async def test_broadcast_creates_one_row_per_user(self, client: AsyncClient, admin, marketer, salesman):
        result = await send_notice(client, admin)

        assert result["sent"] == 3
        assert {notice["user_id"] for notice in result["notices"]} == {
            str(admin.id), str(marketer.id), str(salesman.id)
        }

        own = (await client.get("/api/notices/", headers=salesman.headers)).json()
        assert len(own) == 1
        assert own[0]["title"] == "Office closed"
        assert own[0]["type"] == "notice"

    async def test_targeted_notice(self, client: AsyncClient, marketer, salesman):
        result = await send_notice(client, marketer, target_user_id=str(salesman.id))

        assert result["sent"] == 1
        assert (await client.get("/api/notices/", headers=marketer.headers)).json() == []

    async def test_unknown_target(self, client: AsyncClient, admin):
        response = await client.post(
            "/api/notices/",
            json={"title": "t", "message": "m", "target_user_id": "00000000-0000-0000-0000-000000000000"},
            headers=admin.headers,
        )
        assert response.status_code == 404

    async def test_salesman_cannot_send(self, client: AsyncClient, salesman):
        response = await client.post("/api/notices/", json={"title": "t", "message": "m"}, headers=salesman.headers)
        assert response.status_code == 403

    async def test_blank_title_rejected(self, client: AsyncClient, admin):
        response = await client.post("/api/notices/", json={"title": " ", "message": "m"}, headers=admin.headers)
        assert response.status_code == 422

    async def test_manage_lists_recipients(self, client: AsyncClient, admin, salesman):
        await send_notice(client, admin, target_user_id=str(salesman.id))

        notices = (await client.get("/api/notices/manage", headers=admin.headers)).json()

        assert len(notices) == 1
        assert notices[0]["recipient_name"] == "Sam Sales"
        assert notices[0]["recipient_email"] == salesman.email

    async def test_edit_and_delete_one_copy(self, client: AsyncClient, admin, salesman):
        result = await send_notice(client, admin)
        copy = next(n for n in result["notices"] if n["user_id"] == str(salesman.id))

        response = await client.put(
            f"/api/notices/{copy['id']}", json={"title": "Office open", "message": "Never mind"}, headers=admin.headers
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Office open"

        response = await client.delete(f"/api/notices/{copy['id']}", headers=admin.headers)
        assert response.status_code == 204

        assert (await client.get("/api/notices/", headers=salesman.headers)).json() == []
        assert len((await client.get("/api/notices/", headers=admin.headers)).json()) == 1


class TestNotifications:

    async def test_mark_read(self, client: AsyncClient, admin, salesman):
        result = await send_notice(client, admin, target_user_id=str(salesman.id))
        notice_id = result["notices"][0]["id"]

        assert (await client.get("/api/notifications/unread-count", headers=salesman.headers)).json() == {"unread": 1}

        response = await client.post(f"/api/notifications/{notice_id}/read", headers=salesman.headers)
        assert response.status_code == 200
        assert response.json()["is_read"] is True

        assert (await client.get("/api/notifications/unread-count", headers=salesman.headers)).json() == {"unread": 0}

    async def test_cannot_mark_someone_elses_notification(self, client: AsyncClient, admin, salesman):
        result = await send_notice(client, admin, target_user_id=str(salesman.id))

        response = await client.post(f"/api/notifications/{result['notices'][0]['id']}/read", headers=admin.headers)

        assert response.status_code == 404

    async def test_mark_all_read(self, client: AsyncClient, admin, salesman):
        await send_notice(client, admin, target_user_id=str(salesman.id))
        await send_notice(client, admin, target_user_id=str(salesman.id), title="Second")

        response = await client.post("/api/notifications/read-all", headers=salesman.headers)

        assert response.json()["message"] == "Marked 2 notifications as read"
        unread = (await client.get("/api/notifications/", params={"unread_only": True}, headers=salesman.headers)).json()
        assert unread == []

    async def test_changes_are_published(self, client: AsyncClient, fresh_broker, admin, salesman):
        events = []
        fresh_broker.subscribe(NOTIFICATION_TABLE, {"user_id": salesman.id}, events.append)

        result = await send_notice(client, admin)
        notice_id = next(n["id"] for n in result["notices"] if n["user_id"] == str(salesman.id))
        await client.post(f"/api/notifications/{notice_id}/read", headers=salesman.headers)

        assert [event.event_type for event in events] == [EventTypes.INSERT, EventTypes.UPDATE]
        assert events[1].record["is_read"] is True
