from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, Optional

from pydantic import BaseModel

from netsim.core.simulator.helpers import epoch_ms, new_packet_id
from netsim.core.simulator.models import SimulationRecord
from netsim.core.simulator.path_resolver import resolve_path
from netsim.schemas.packet import ACTIVE_PACKET_STATUSES, PacketFlow, Protocol
from netsim.schemas.simulation import EventKind
from netsim.utils.exceptions import ConflictException, NotFoundException
from netsim.utils.metrics import PACKETS_TOTAL


Publish = Callable[[EventKind, BaseModel], None]


class PacketLifecycleManager:
    """Creates packets and drives them to a terminal status.

    pending -> transmitted -> received   (a path exists)
    pending -> dropped                   (no path; immediate)

    ``pending`` only exists while the packet is being built. A transmitted
    packet owns one settle task, keyed by packet id, that flips it to
    ``received`` after ``settle_delay_seconds``. Reset, removal and shutdown
    cancel those tasks; a task that still fires finds no packet and does
    nothing.
    """

    def __init__(
        self,
        *,
        lock: threading.RLock,
        state: SimulationRecord,
        publish: Publish,
        settle_delay_seconds: float,
        require_running: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._lock = lock
        self._state = state
        self._publish = publish
        self._settle_delay_seconds = max(0.0, float(settle_delay_seconds))
        self._require_running = require_running
        self._logger = logger or logging.getLogger(__name__)

    @property
    def settle_delay_seconds(self) -> float:
        return self._settle_delay_seconds

    def resolve_path(self, source: str, destination: str) -> list[str]:
        with self._lock:
            return resolve_path(
                source,
                destination,
                self._state.devices.keys(),
                list(self._state.connections.values()),
            )

    async def send_packet(
        self,
        source: str,
        destination: str,
        protocol: Protocol,
        payload: Any = None,
    ) -> PacketFlow:
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._require_running and not self._state.is_running:
                raise ConflictException("Simulation is not running")

            packet = PacketFlow(
                id=new_packet_id(),
                source=source,
                destination=destination,
                protocol=protocol,
                status="pending",
                path=[],
                timestamp=epoch_ms(),
                payload=payload,
            )
            path = resolve_path(
                source,
                destination,
                self._state.devices.keys(),
                list(self._state.connections.values()),
            )
            if path:
                packet.path = path
                packet.status = "transmitted"
            else:
                packet.status = "dropped"

            self._state.packets.append(packet)
            self._state.packets_by_id[packet.id] = packet
            PACKETS_TOTAL.labels(protocol=packet.protocol, status=packet.status).inc()

            if packet.status == "transmitted":
                task = loop.create_task(
                    self._settle_after(packet.id, self._settle_delay_seconds),
                    name=f"packet-settle:{packet.id}",
                )
                self._state.settle_tasks[packet.id] = task
                self._logger.debug(
                    "simulator.packet.transmitted packet_id=%s hops=%d", packet.id, len(path) - 1
                )
            else:
                self._logger.info(
                    "simulator.packet.dropped packet_id=%s source=%s destination=%s",
                    packet.id,
                    source,
                    destination,
                )

            snapshot = packet.model_copy(deep=True)
            self._publish(EventKind.PACKET_FLOW, snapshot)
            return snapshot.model_copy(deep=True)

    async def _settle_after(self, packet_id: str, delay: float) -> None:
        await asyncio.sleep(delay)
        self._mark_received(packet_id)

    def _mark_received(self, packet_id: str) -> None:
        with self._lock:
            task = self._state.settle_tasks.get(packet_id)
            if task is not None and task is asyncio.current_task():
                del self._state.settle_tasks[packet_id]
            packet = self._state.packets_by_id.get(packet_id)
            if packet is None or packet.status != "transmitted":
                return
            packet.status = "received"
            PACKETS_TOTAL.labels(protocol=packet.protocol, status=packet.status).inc()
            self._logger.debug("simulator.packet.received packet_id=%s", packet_id)
            self._publish(EventKind.PACKET_FLOW, packet.model_copy(deep=True))

    async def ping(self, source: str, destination: str) -> PacketFlow:
        return await self.send_packet(
            source,
            destination,
            "ICMP",
            payload={"type": "ping", "sequence": 1},
        )

    async def traceroute(self, source: str, destination: str) -> list[PacketFlow]:
        """One ICMP probe per consecutive hop pair of the resolved path."""
        path = self.resolve_path(source, destination)
        packets: list[PacketFlow] = []
        for hop, (a, b) in enumerate(zip(path, path[1:]), start=1):
            packets.append(
                await self.send_packet(a, b, "ICMP", payload={"type": "traceroute", "hop": hop})
            )
        return packets

    def get_history(self) -> list[PacketFlow]:
        with self._lock:
            return self._state.packet_list()

    def get_packet(self, packet_id: str) -> PacketFlow:
        with self._lock:
            packet = self._state.packets_by_id.get(packet_id)
            if packet is None:
                raise NotFoundException(f"Packet {packet_id} not found")
            return packet.model_copy(deep=True)

    def remove_packet(self, packet_id: str) -> None:
        with self._lock:
            packet = self._state.packets_by_id.pop(packet_id, None)
            if packet is None:
                raise NotFoundException(f"Packet {packet_id} not found")
            self._state.packets = [p for p in self._state.packets if p.id != packet_id]
            task = self._state.settle_tasks.pop(packet_id, None)
        if task is not None:
            task.cancel()

    def active_count_locked(self) -> int:
        return sum(1 for p in self._state.packets if p.status in ACTIVE_PACKET_STATUSES)

    def cancel_pending_locked(self) -> int:
        tasks = list(self._state.settle_tasks.values())
        self._state.settle_tasks.clear()
        for task in tasks:
            task.cancel()
        return len(tasks)

    def clear_history_locked(self) -> None:
        self.cancel_pending_locked()
        self._state.packets = []
        self._state.packets_by_id = {}

    async def shutdown(self) -> None:
        with self._lock:
            tasks = list(self._state.settle_tasks.values())
            self.cancel_pending_locked()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
