# src/safeyak/api/v1/endpoints/realtime.py
"""WebSocket relay for row-change events."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from safeyak.services.realtime import (
    EVENT_ANY,
    EVENT_DELETE,
    EVENT_INSERT,
    EVENT_UPDATE,
    ChangeEvent,
    column_equals,
    get_realtime_channel,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

_EVENT_TYPES = {EVENT_ANY, EVENT_INSERT, EVENT_UPDATE, EVENT_DELETE}

# Only tables whose rows are public are streamed.
REALTIME_TABLES = frozenset({"post", "comment", "reputation"})


def _redact(row: dict[str, Any] | None) -> dict[str, Any] | None:
    # Hidden bodies are only ever shown to their author, who is unknown here.
    if row is not None and row.get("is_hidden"):
        return {**row, "body": None}
    return row


def _wire_payload(event: ChangeEvent) -> dict[str, Any]:
    payload = event.to_payload()
    payload["new"] = _redact(payload["new"])
    payload["old"] = _redact(payload["old"])
    return jsonable_encoder(payload)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/realtime")
async def realtime_stream(
    websocket: WebSocket,
    table: str,
    event: str = EVENT_ANY,
    column: str | None = None,
    value: str | None = None,
) -> None:
    """Stream change events for one table to the client.

    The first frame acknowledges the subscription; every following frame is
    ``{table, eventType, new, old}``. ``column``/``value`` narrow the stream
    to rows whose column equals the value (e.g. one author's reputation).
    """
    event_type = event.upper()
    if table not in REALTIME_TABLES or event_type not in _EVENT_TYPES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    predicate = column_equals(column, value) if column and value is not None else None
    channel = get_realtime_channel()

    with channel.subscribe(table, event_type, predicate) as subscription:
        await websocket.send_json({"type": "subscribed", "table": table, "event": event_type})
        disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
        try:
            while True:
                next_event = asyncio.create_task(subscription.get())
                done, _ = await asyncio.wait(
                    {next_event, disconnected},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if disconnected in done:
                    next_event.cancel()
                    break
                payload = _wire_payload(next_event.result())
                await websocket.send_json(payload)
        except WebSocketDisconnect:
            logger.debug("Realtime client for %s went away", table)
        finally:
            disconnected.cancel()
