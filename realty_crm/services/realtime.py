"""
In-process realtime broker.

Services publish row events after a successful commit; WebSocket handlers
subscribe with a table name, an equality filter and a callback. Callbacks run
synchronously in the publisher's task, so they must be quick (typically a
``queue.put_nowait``).
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class EventTypes:
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class RealtimeEvent(BaseModel):
    table: str
    event_type: str
    record: Dict[str, Any]
    created_at: datetime


EventCallback = Callable[[RealtimeEvent], None]


class Subscription:
    """Handle returned by ``RealtimeBroker.subscribe``."""

    def __init__(
        self,
        broker: "RealtimeBroker",
        table: str,
        filters: Dict[str, Any],
        callback: EventCallback
    ):
        self.id = uuid.uuid4()
        self.broker = broker
        self.table = table
        self.filters = filters
        self.callback = callback
        self.active = True

    def matches(self, event: RealtimeEvent) -> bool:
        if event.table != self.table:
            return False
        for field, value in self.filters.items():
            if str(event.record.get(field)) != str(value):
                return False
        return True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.broker.remove(self)


class RealtimeBroker:
    """Fan-out of table events to matching subscriptions."""

    def __init__(self):
        self._subscriptions: Dict[uuid.UUID, Subscription] = {}

    def subscribe(
        self,
        table: str,
        filters: Optional[Dict[str, Any]],
        callback: EventCallback
    ) -> Subscription:
        subscription = Subscription(self, table, filters or {}, callback)
        self._subscriptions[subscription.id] = subscription
        logger.info(f"Realtime subscription {subscription.id} on {table} {subscription.filters}")
        return subscription

    def remove(self, subscription: Subscription) -> None:
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.info(f"Realtime subscription {subscription.id} closed")

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, table: str, event_type: str, record: Dict[str, Any]) -> int:
        """Deliver an event; returns the number of callbacks invoked."""
        event = RealtimeEvent(
            table=table,
            event_type=event_type,
            record=record,
            created_at=datetime.utcnow()
        )
        delivered = 0
        # Copy so callbacks may unsubscribe while we iterate
        targets: List[Subscription] = list(self._subscriptions.values())
        for subscription in targets:
            if not subscription.active or not subscription.matches(event):
                continue
            try:
                subscription.callback(event)
                delivered += 1
            except Exception as e:
                logger.error(f"Realtime callback {subscription.id} failed: {e}")
        return delivered


_broker: Optional[RealtimeBroker] = None


def get_broker() -> RealtimeBroker:
    """Process-wide broker."""
    global _broker
    if _broker is None:
        _broker = RealtimeBroker()
    return _broker
