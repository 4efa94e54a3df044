from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from pydantic import BaseModel

from netsim.config import Settings, settings as default_settings
from netsim.core.simulator.controller import SimulationController
from netsim.core.simulator.helpers import DEMO_CONNECTIONS, DEMO_DEVICES, default_device_config
from netsim.core.simulator.models import SimulationRecord
from netsim.core.simulator.packets import PacketLifecycleManager
from netsim.core.simulator.topology import TopologyStore
from netsim.schemas.connection import Connection
from netsim.schemas.device import Device
from netsim.schemas.simulation import EventKind
from netsim.utils.event_bus import InMemoryEventBus

logger = logging.getLogger(__name__)


class NetworkSimulatorRuntime:
    """In-process network simulation engine.

    Owns the single ``SimulationRecord`` and the lock that serializes every
    mutation. Components share both and publish through ``events``:

    - ``topology``: devices, interfaces, connections
    - ``packets``: packet creation, settle timers, history
    - ``controller``: start / stop / reset / status
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        settle_delay_seconds: Optional[float] = None,
        events: Optional[InMemoryEventBus] = None,
    ) -> None:
        cfg = settings or default_settings
        self._lock = threading.RLock()
        self._state = SimulationRecord()
        self.events = events or InMemoryEventBus(queue_max=cfg.EVENT_QUEUE_MAX)

        if settle_delay_seconds is None:
            settle_delay_seconds = cfg.packet_settle_delay_seconds

        self.topology = TopologyStore(
            lock=self._lock,
            state=self._state,
            publish=self._publish,
            strict_endpoints=cfg.STRICT_CONNECTION_ENDPOINTS,
            logger=logger,
        )
        self.packets = PacketLifecycleManager(
            lock=self._lock,
            state=self._state,
            publish=self._publish,
            settle_delay_seconds=settle_delay_seconds,
            require_running=cfg.SIMULATION_REQUIRE_RUNNING,
            logger=logger,
        )
        self.controller = SimulationController(
            lock=self._lock,
            state=self._state,
            publish=self._publish,
            topology=self.topology,
            packets=self.packets,
            logger=logger,
        )

    def _publish(self, kind: EventKind, payload: BaseModel) -> None:
        self.events.publish(kind.value, payload)

    def load_topology(self, devices: Iterable[Device], connections: Iterable[Connection]) -> None:
        """Replace devices and connections wholesale (startup load); packets are untouched."""
        with self._lock:
            self._state.devices.clear()
            self._state.connections.clear()
            for device in devices:
                self.topology.put_device_locked(device)
            for connection in connections:
                self.topology.put_connection_locked(connection)
            logger.info(
                "simulator.runtime.topology_loaded devices=%d connections=%d",
                len(self._state.devices),
                len(self._state.connections),
            )
            self.topology.announce_locked("loaded")

    def seed_demo(self) -> bool:
        """Seed Router-1 / Switch-1 / PC-1 when the topology is empty."""
        with self._lock:
            if self._state.devices:
                return False
            devices = [
                Device.model_validate(
                    {**spec, "status": "online", "config": default_device_config(spec["type"], hostname=spec["name"])}
                )
                for spec in DEMO_DEVICES
            ]
            connections = [Connection.model_validate(spec) for spec in DEMO_CONNECTIONS]
            self.load_topology(devices, connections)
            return True

    async def shutdown(self) -> None:
        await self.packets.shutdown()


runtime = NetworkSimulatorRuntime()
