from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from sqlalchemy import delete, select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from netsim.db.models import ConnectionRow, DeviceRow, PacketRow
from netsim.schemas.connection import Connection
from netsim.schemas.device import Device
from netsim.schemas.simulation import ALL_EVENT_KINDS, EventKind
from netsim.utils.event_bus import InMemoryEventBus
from netsim.utils.observability import log_duration

logger = logging.getLogger(__name__)


def _device_row(device: dict[str, Any], ordinal: int) -> DeviceRow:
    position = device.get("position") or {}
    return DeviceRow(
        id=device["id"],
        type=device["type"],
        name=device["name"],
        position_x=float(position.get("x", 0.0)),
        position_y=float(position.get("y", 0.0)),
        status=device.get("status", "offline"),
        interfaces=list(device.get("interfaces") or []),
        config=device.get("config"),
        ordinal=ordinal,
    )


def _connection_row(conn: dict[str, Any], ordinal: int) -> ConnectionRow:
    return ConnectionRow(
        id=conn["id"],
        source=conn["source"],
        target=conn["target"],
        source_interface=conn["sourceInterface"],
        target_interface=conn["targetInterface"],
        status=conn.get("status", "connected"),
        ordinal=ordinal,
    )


def _packet_row(packet: dict[str, Any]) -> PacketRow:
    return PacketRow(
        id=packet["id"],
        source=packet["source"],
        destination=packet["destination"],
        protocol=packet["protocol"],
        status=packet["status"],
        path=list(packet.get("path") or []),
        timestamp=int(packet["timestamp"]),
        payload=packet.get("payload"),
    )


async def load_topology(session_factory: async_sessionmaker[AsyncSession]) -> tuple[list[Device], list[Connection]]:
    """Read the mirrored topology back. Packets are not reloaded."""
    async with session_factory() as session:
        device_rows = (await session.execute(select(DeviceRow).order_by(DeviceRow.ordinal.asc()))).scalars().all()
        conn_rows = (
            await session.execute(select(ConnectionRow).order_by(ConnectionRow.ordinal.asc()))
        ).scalars().all()

    devices = [
        Device.model_validate(
            {
                "id": row.id,
                "type": row.type,
                "name": row.name,
                "position": {"x": row.position_x, "y": row.position_y},
                "status": row.status,
                "interfaces": row.interfaces or [],
                "config": row.config,
            }
        )
        for row in device_rows
    ]
    connections = [
        Connection(
            id=row.id,
            source=row.source,
            target=row.target,
            source_interface=row.source_interface,
            target_interface=row.target_interface,
            status=row.status,
        )
        for row in conn_rows
    ]
    return devices, connections


class StorageMirror:
    """Best-effort persistence collaborator.

    Subscribes to every simulator event and replays them into the database on
    a single worker task, in publish order. Write failures are logged and
    skipped; the engine never waits on the database.
    """

    def __init__(
        self,
        *,
        events: InMemoryEventBus,
        session_factory: async_sessionmaker[AsyncSession],
        queue_max: int = 1000,
    ) -> None:
        self._events = events
        self._session_factory = session_factory
        self._queue_max = queue_max
        self._sub = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if self.running:
            return
        self._sub = await self._events.subscribe(events=ALL_EVENT_KINDS, queue_max=self._queue_max)
        self._worker = asyncio.create_task(self._run(self._sub.queue), name="simulator-storage-mirror")

    async def stop(self) -> None:
        """Drain what is already queued, then stop."""
        if self._sub is not None:
            await self._events.unsubscribe(self._sub)
        worker, self._worker = self._worker, None
        if worker is None:
            return
        queue = self._sub.queue if self._sub is not None else None
        if queue is not None:
            try:
                await asyncio.wait_for(queue.join(), timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("simulator.storage.drain_timeout pending=%d", queue.qsize())
        worker.cancel()
        await asyncio.gather(worker, return_exceptions=True)
        self._sub = None

    async def _run(self, queue: asyncio.Queue) -> None:
        while True:
            message = await queue.get()
            try:
                await self.apply(message)
            except Exception:
                logger.exception("simulator.storage.apply_failed event=%s", message.get("event"))
            finally:
                queue.task_done()

    async def apply(self, message: dict[str, Any]) -> None:
        event = message.get("event")
        payload = message.get("payload") or {}
        with log_duration(logger, "simulator.storage.apply", event=event):
            await self._apply(event, payload)

    async def _apply(self, event: Any, payload: dict[str, Any]) -> None:
        async with self._session_factory() as session:
            try:
                if event == EventKind.TOPOLOGY_CHANGED.value:
                    await self._sync_topology(session, payload)
                elif event == EventKind.DEVICE_STATUS_CHANGED.value:
                    await session.execute(
                        sql_update(DeviceRow)
                        .where(DeviceRow.id == payload["deviceId"])
                        .values(status=payload["status"])
                    )
                elif event == EventKind.PACKET_FLOW.value:
                    await session.merge(_packet_row(payload))
                else:
                    return
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _sync_topology(self, session: AsyncSession, payload: dict[str, Any]) -> None:
        # Payload carries the full topology after the change: replace, don't diff.
        await session.execute(delete(ConnectionRow))
        await session.execute(delete(DeviceRow))
        if payload.get("action") == "reset":
            await session.execute(delete(PacketRow))
        for ordinal, device in enumerate(payload.get("devices") or []):
            session.add(_device_row(device, ordinal))
        for ordinal, conn in enumerate(payload.get("connections") or []):
            session.add(_connection_row(conn, ordinal))
