"""
Live notification feed reducer.

The feed is a newest-first list of notification dicts. Pushed events and
local "mark as read" edits are both expressed as events and folded in with
``apply_event``; the latest event for an id wins and entries that an event
does not touch keep their relative order.
"""
from typing import Any, Dict, Iterable, List, Optional

from realty_crm.services.realtime import EventTypes

FEED_LIMIT = 10


def _key(notification: Dict[str, Any]) -> str:
    return str(notification["id"])


def apply_event(
    state: List[Dict[str, Any]],
    event_type: str,
    record: Dict[str, Any],
    unread_only: bool = False,
    limit: Optional[int] = FEED_LIMIT
) -> List[Dict[str, Any]]:
    """
    Return a new feed with one event applied. ``state`` is not modified.

    INSERT of a known id and UPDATE both replace the entry in place; INSERT of
    a new id is prepended; UPDATE of an unknown id is ignored; DELETE removes.
    With ``unread_only`` an entry that becomes read drops out of the feed.
    """
    key = _key(record)
    index = next((i for i, item in enumerate(state) if _key(item) == key), None)
    new_state = list(state)

    if event_type == EventTypes.DELETE:
        if index is not None:
            del new_state[index]
        return new_state

    if unread_only and record.get("is_read"):
        if index is not None:
            del new_state[index]
        return new_state

    if index is not None:
        new_state[index] = {**new_state[index], **record}
    elif event_type == EventTypes.INSERT:
        new_state.insert(0, dict(record))

    if limit is not None:
        new_state = new_state[:limit]
    return new_state


def mark_read_event(notification_id: Any) -> Dict[str, Any]:
    """The local edit for marking one entry read, as an UPDATE record."""
    return {"id": notification_id, "is_read": True}


def replay(
    state: List[Dict[str, Any]],
    events: Iterable[Dict[str, Any]],
    unread_only: bool = False,
    limit: Optional[int] = FEED_LIMIT
) -> List[Dict[str, Any]]:
    """Fold a sequence of ``{"event_type": ..., "record": ...}`` into the feed."""
    for event in events:
        state = apply_event(state, event["event_type"], event["record"], unread_only, limit)
    return state
