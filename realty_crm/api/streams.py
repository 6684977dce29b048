"""
WebSocket plumbing shared by the realtime endpoints.

Each connection gets a bounded queue fed by a broker subscription; the pump
interleaves queued events with messages sent by the client until the socket
closes, then drops the subscription.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from realty_crm.services.realtime import RealtimeEvent, get_broker

logger = logging.getLogger(__name__)

QUEUE_SIZE = 50

EventHandler = Callable[[RealtimeEvent], Awaitable[None]]
MessageHandler = Callable[[Dict[str, Any]], Awaitable[None]]


async def pump(
    websocket: WebSocket,
    table: str,
    filters: Dict[str, Any],
    on_event: EventHandler,
    on_message: Optional[MessageHandler] = None
) -> None:
    """Run until the client disconnects. The socket must already be accepted."""
    queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_SIZE)

    def enqueue(event: RealtimeEvent) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Stream queue full for {table} {filters}, dropping event")

    subscription = get_broker().subscribe(table, filters, enqueue)
    receive_task = asyncio.create_task(websocket.receive_json())
    event_task = asyncio.create_task(queue.get())

    try:
        while True:
            done, _ = await asyncio.wait(
                {receive_task, event_task},
                return_when=asyncio.FIRST_COMPLETED
            )

            if event_task in done:
                await on_event(event_task.result())
                event_task = asyncio.create_task(queue.get())

            if receive_task in done:
                try:
                    message = receive_task.result()
                except ValueError:
                    await websocket.send_json({"type": "error", "detail": "Frames must be JSON objects"})
                else:
                    if on_message is not None and isinstance(message, dict):
                        await on_message(message)
                receive_task = asyncio.create_task(websocket.receive_json())
    except WebSocketDisconnect:
        logger.info(f"Stream on {table} {filters} disconnected")
    finally:
        receive_task.cancel()
        event_task.cancel()
        subscription.unsubscribe()
