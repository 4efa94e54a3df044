from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from netsim.schemas.connection import Connection
from netsim.schemas.device import Device
from netsim.schemas.packet import PacketFlow


@dataclass
class SimulationRecord:
    """The single mutable simulation aggregate.

    Owned by the runtime; every read and write happens under the runtime lock.
    Dicts keep insertion order, which is also the connection iteration order
    used by path resolution.
    """

    devices: dict[str, Device] = field(default_factory=dict)
    connections: dict[str, Connection] = field(default_factory=dict)
    packets: list[PacketFlow] = field(default_factory=list)
    packets_by_id: dict[str, PacketFlow] = field(default_factory=dict)
    is_running: bool = False

    # packet_id -> pending transmitted->received task
    settle_tasks: dict[str, asyncio.Task] = field(default_factory=dict)

    def device_list(self) -> list[Device]:
        return [d.model_copy(deep=True) for d in self.devices.values()]

    def connection_list(self) -> list[Connection]:
        return [c.model_copy(deep=True) for c in self.connections.values()]

    def packet_list(self) -> list[PacketFlow]:
        return [p.model_copy(deep=True) for p in self.packets]
