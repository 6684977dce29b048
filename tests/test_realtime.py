import asyncio
import json
import uuid

import pytest
from fastapi import WebSocketDisconnect

from realty_crm.api.streams import pump
from realty_crm.services.notification_feed import apply_event, mark_read_event, replay
from realty_crm.services.realtime import EventTypes, RealtimeBroker


def notification(number, is_read=False, user_id="u1"):
    return {"id": f"n{number}", "user_id": user_id, "title": f"Title {number}", "is_read": is_read}


# ---- Feed reducer ----

def test_insert_goes_to_front():
    state = [notification(1), notification(2)]
    new_state = apply_event(state, EventTypes.INSERT, notification(3))
    assert [item["id"] for item in new_state] == ["n3", "n1", "n2"]
    assert [item["id"] for item in state] == ["n1", "n2"]


def test_update_replaces_in_place():
    state = [notification(1), notification(2), notification(3)]
    new_state = apply_event(state, EventTypes.UPDATE, {"id": "n2", "title": "Changed"})
    assert [item["id"] for item in new_state] == ["n1", "n2", "n3"]
    assert new_state[1]["title"] == "Changed"
    assert new_state[1]["user_id"] == "u1"


def test_duplicate_insert_does_not_duplicate():
    state = [notification(1)]
    new_state = apply_event(state, EventTypes.INSERT, {**notification(1), "title": "Again"})
    assert len(new_state) == 1
    assert new_state[0]["title"] == "Again"


def test_update_for_unknown_id_is_ignored():
    state = [notification(1)]
    assert apply_event(state, EventTypes.UPDATE, {"id": "n9", "is_read": True}) == state


def test_delete_removes_entry():
    state = [notification(1), notification(2)]
    new_state = apply_event(state, EventTypes.DELETE, {"id": "n1"})
    assert [item["id"] for item in new_state] == ["n2"]


def test_unread_feed_drops_read_entries():
    state = [notification(1), notification(2)]
    new_state = apply_event(state, EventTypes.UPDATE, mark_read_event("n1"), unread_only=True)
    assert [item["id"] for item in new_state] == ["n2"]


def test_last_write_wins_regardless_of_source():
    events = [
        {"event_type": EventTypes.INSERT, "record": notification(1)},
        {"event_type": EventTypes.UPDATE, "record": mark_read_event("n1")},
        {"event_type": EventTypes.UPDATE, "record": {"id": "n1", "is_read": False}},
    ]
    state = replay([], events)
    assert state[0]["is_read"] is False


def test_feed_is_capped():
    state = []
    for number in range(15):
        state = apply_event(state, EventTypes.INSERT, notification(number), limit=10)
    assert len(state) == 10
    assert state[0]["id"] == "n14"


# ---- Broker ----

def test_broker_filters_by_table_and_fields():
    broker = RealtimeBroker()
    received = []
    broker.subscribe("notification", {"user_id": "u1"}, received.append)

    assert broker.publish("notification", EventTypes.INSERT, notification(1, user_id="u1")) == 1
    assert broker.publish("notification", EventTypes.INSERT, notification(2, user_id="u2")) == 0
    assert broker.publish("lead", EventTypes.INSERT, {"id": "l1", "user_id": "u1"}) == 0

    assert [event.record["id"] for event in received] == ["n1"]
    assert received[0].event_type == EventTypes.INSERT


def test_filter_matches_uuid_against_string():
    broker = RealtimeBroker()
    user_id = uuid.uuid4()
    received = []
    broker.subscribe("notification", {"user_id": user_id}, received.append)

    broker.publish("notification", EventTypes.INSERT, {"id": "n1", "user_id": str(user_id)})

    assert len(received) == 1


def test_unsubscribe_stops_delivery():
    broker = RealtimeBroker()
    received = []
    subscription = broker.subscribe("notification", None, received.append)

    subscription.unsubscribe()
    subscription.unsubscribe()
    broker.publish("notification", EventTypes.INSERT, notification(1))

    assert received == []
    assert broker.subscription_count == 0


def test_failing_callback_does_not_block_others():
    broker = RealtimeBroker()
    received = []

    def explode(event):
        raise RuntimeError("boom")

    broker.subscribe("notification", None, explode)
    broker.subscribe("notification", None, received.append)

    assert broker.publish("notification", EventTypes.INSERT, notification(1)) == 1
    assert len(received) == 1


# ---- WebSocket pump ----

class FakeWebSocket:
    def __init__(self):
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent = []

    async def receive_json(self):
        message = await self.incoming.get()
        if message is None:
            raise WebSocketDisconnect(code=1000)
        if isinstance(message, str):
            return json.loads(message)
        return message

    async def send_json(self, data):
        self.sent.append(data)


@pytest.mark.asyncio
async def test_pump_forwards_events_and_unsubscribes_on_disconnect(fresh_broker):
    websocket = FakeWebSocket()
    events = []
    messages = []

    async def on_event(event):
        events.append(event.record["id"])

    async def on_message(message):
        messages.append(message)

    task = asyncio.create_task(
        pump(websocket, "notification", {"user_id": "u1"}, on_event, on_message)
    )
    await asyncio.sleep(0)
    assert fresh_broker.subscription_count == 1

    fresh_broker.publish("notification", EventTypes.INSERT, notification(1))
    fresh_broker.publish("notification", EventTypes.INSERT, notification(2, user_id="u2"))
    await websocket.incoming.put({"action": "mark_read", "id": "n1"})
    await asyncio.sleep(0.01)

    await websocket.incoming.put(None)
    await asyncio.wait_for(task, timeout=1)

    assert events == ["n1"]
    assert messages == [{"action": "mark_read", "id": "n1"}]
    assert fresh_broker.subscription_count == 0


@pytest.mark.asyncio
async def test_pump_answers_malformed_frame_and_keeps_running(fresh_broker):
    websocket = FakeWebSocket()
    messages = []

    async def on_event(event):
        pass

    async def on_message(message):
        messages.append(message)

    task = asyncio.create_task(
        pump(websocket, "notification", {"user_id": "u1"}, on_event, on_message)
    )
    await websocket.incoming.put("not json")
    await websocket.incoming.put({"action": "mark_all_read"})
    await asyncio.sleep(0.01)

    assert not task.done()
    assert websocket.sent == [{"type": "error", "detail": "Frames must be JSON objects"}]
    assert messages == [{"action": "mark_all_read"}]

    await websocket.incoming.put(None)
    await asyncio.wait_for(task, timeout=1)
    assert fresh_broker.subscription_count == 0
