"""WebSocket bridge from the change bus to live viewers.

A client connects with ``?table=votes&column=proposal_id&value=prop_...`` and
receives one ``{"type": "change"}`` message per committed row change in that
scope. The subscription is dropped when the socket closes.
"""

import asyncio
import contextlib
import json
import logging

from fastapi import WebSocket, WebSocketDisconnect

from poolift.realtime import (
    DELETE,
    INSERT,
    SUBSCRIBABLE_SCOPES,
    UPDATE,
    ChangeBus,
    ChangeHandlers,
    Row,
    change_bus,
)

logger = logging.getLogger(__name__)


def is_subscribable(table: str, column: str) -> bool:
    return column in SUBSCRIBABLE_SCOPES.get(table, set())


async def websocket_changes(
    ws: WebSocket,
    table: str,
    column: str,
    value: str,
    bus: ChangeBus = change_bus,
):
    """WebSocket endpoint for scoped change notifications."""
    if not value or not is_subscribable(table, column):
        await ws.close(code=4003, reason="Unsupported subscription scope")
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def forward(kind: str):
        def handler(row: Row) -> None:
            message = {"type": "change", "event": kind, "table": table, "row": row}
            # Handlers run in whichever thread committed the change
            loop.call_soon_threadsafe(queue.put_nowait, message)
        return handler

    unsubscribe = bus.subscribe(
        table,
        column,
        value,
        ChangeHandlers(
            on_insert=forward(INSERT),
            on_update=forward(UPDATE),
            on_delete=forward(DELETE),
        ),
    )

    async def sender():
        while True:
            message = await queue.get()
            try:
                await ws.send_json(message)
            except Exception:
                # Socket is gone; the receive loop will see the disconnect
                logger.debug("Change push failed for %s.%s=%s, stopping sender", table, column, value)
                return

    sender_task = None
    try:
        await ws.accept()
        await ws.send_json({"type": "subscribed", "table": table, "column": column, "value": value})
        sender_task = asyncio.create_task(sender())
        logger.debug("Change subscription opened: %s.%s=%s", table, column, value)

        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
                msg_type = msg.get("type", "") if isinstance(msg, dict) else ""

                if msg_type == "ping":
                    await ws.send_json({"type": "pong"})
                else:
                    await ws.send_json({"type": "error", "message": f"Unknown type: {msg_type}"})
            except json.JSONDecodeError:
                await ws.send_json({"type": "error", "message": "Invalid JSON"})
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        if sender_task is not None:
            sender_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sender_task
        logger.debug("Change subscription closed: %s.%s=%s", table, column, value)
