from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import ValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect

from netsim.api import deps
from netsim.config import Settings, get_settings
from netsim.core.simulator.runtime import NetworkSimulatorRuntime
from netsim.schemas.device import DeviceUpdateMessage, DeviceUpdateRequest
from netsim.schemas.packet import EndpointPairRequest, SendPacketRequest
from netsim.schemas.simulation import ALL_EVENT_KINDS
from netsim.utils.exceptions import NetsimException


logger = logging.getLogger(__name__)

router = APIRouter()


async def _run_command(sim: NetworkSimulatorRuntime, obj: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Execute a client command; returns the direct reply, if any.

    Results reach every client through the event stream, so commands that
    produce packets only acknowledge here.
    """
    kind = obj.get("type")
    if kind == "send-packet":
        req = SendPacketRequest.model_validate(obj.get("data") or {})
        packet = await sim.packets.send_packet(req.source, req.destination, req.protocol, req.payload)
        return {"type": "packet-sent", "id": packet.id, "status": packet.status}

    if kind == "ping":
        req = EndpointPairRequest.model_validate(obj.get("data") or {})
        packet = await sim.packets.ping(req.source, req.destination)
        return {"type": "packet-sent", "id": packet.id, "status": packet.status}

    if kind == "traceroute":
        req = EndpointPairRequest.model_validate(obj.get("data") or {})
        packets = await sim.packets.traceroute(req.source, req.destination)
        return {"type": "traceroute-sent", "ids": [p.id for p in packets]}

    if kind == "simulation-command":
        command = (obj.get("data") or {}).get("command")
        if command == "start":
            sim.controller.start()
        elif command == "stop":
            sim.controller.stop()
        elif command == "reset":
            sim.controller.reset()
        else:
            return {"type": "error", "error": "unknown_simulation_command"}
        return None

    if kind == "device-update":
        msg = DeviceUpdateMessage.model_validate(obj.get("data") or {})
        changes = dict(msg.updates)
        status = changes.pop("status", None)
        req = DeviceUpdateRequest.model_validate(changes) if changes else None
        if status is not None:
            sim.topology.update_device_status(msg.device_id, str(status))
        if req is not None:
            sim.topology.update_device(msg.device_id, req.model_dump(exclude_unset=True, by_alias=False))
        device = sim.topology.get_device(msg.device_id)
        return {"type": "device-updated", "deviceId": device.id, "status": device.status}

    return {"type": "error", "error": "unknown_message"}


@router.websocket("/ws")
async def ws_events(
    websocket: WebSocket,
    sim: NetworkSimulatorRuntime = Depends(deps.get_runtime),
    app_settings: Settings = Depends(get_settings),
):
    await websocket.accept()
    await websocket.send_json({"type": "hello", "ts": datetime.now(timezone.utc).isoformat()})

    sub = None
    room: Optional[str] = None
    writer_task: asyncio.Task | None = None

    async def _writer(queue: asyncio.Queue):
        while True:
            msg = await queue.get()
            await websocket.send_json(msg)

    async def _resubscribe(events: list[str]) -> None:
        nonlocal sub, writer_task
        if sub is not None:
            await sim.events.unsubscribe(sub)
            sub = None
        if writer_task is not None:
            writer_task.cancel()
            await asyncio.gather(writer_task, return_exceptions=True)
            writer_task = None
        sub = await sim.events.subscribe(events=events, room=room)
        writer_task = asyncio.create_task(_writer(sub.queue))

    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
                continue

            try:
                obj = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "error": "invalid_json"})
                continue
            if not isinstance(obj, dict):
                await websocket.send_json({"type": "error", "error": "unknown_message"})
                continue

            msg_type = obj.get("type")
            if msg_type == "join-simulation":
                room = str(obj.get("room") or app_settings.DEFAULT_ROOM)
                await _resubscribe(list(ALL_EVENT_KINDS))
                await websocket.send_json({"type": "joined-simulation", "room": room})
                continue

            if msg_type == "subscribe":
                events = obj.get("events") or []
                if (
                    not isinstance(events, list)
                    or not all(isinstance(e, str) for e in events)
                    or not set(events) <= set(ALL_EVENT_KINDS)
                ):
                    await websocket.send_json({"type": "error", "error": "invalid_events"})
                    continue
                await _resubscribe(events)
                await websocket.send_json({"type": "subscribed", "events": events})
                continue

            try:
                reply = await _run_command(sim, obj)
            except ValidationError:
                await websocket.send_json({"type": "error", "error": "invalid_request"})
                continue
            except NetsimException as exc:
                await websocket.send_json({"type": "error", "error": exc.message, "code": exc.code})
                continue
            if reply is not None:
                await websocket.send_json(reply)

    except WebSocketDisconnect:
        pass
    finally:
        if writer_task is not None:
            writer_task.cancel()
            await asyncio.gather(writer_task, return_exceptions=True)
        if sub is not None:
            await sim.events.unsubscribe(sub)
        try:
            await websocket.close()
        except RuntimeError:
            # Already closed by the client.
            pass
