from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from netsim.schemas.common import WireModel
from netsim.schemas.connection import Connection
from netsim.schemas.device import Device, DeviceStatus
from netsim.schemas.packet import PacketFlow


class EventKind(str, Enum):
    TOPOLOGY_CHANGED = "topology-changed"
    DEVICE_STATUS_CHANGED = "device-status-changed"
    PACKET_FLOW = "packet-flow"
    SIMULATION_STATE_CHANGED = "simulation-state-changed"


ALL_EVENT_KINDS: tuple[str, ...] = tuple(k.value for k in EventKind)


TopologyAction = Literal[
    "device_added",
    "device_updated",
    "device_removed",
    "connection_added",
    "connection_updated",
    "connection_removed",
    "loaded",
    "reset",
]


class SimulationState(WireModel):
    devices: List[Device]
    connections: List[Connection]
    packets: List[PacketFlow]
    is_running: bool


class SimulationStatus(WireModel):
    is_running: bool
    device_count: int
    connection_count: int
    active_packets: int


class TopologyChangedPayload(WireModel):
    """What changed, plus the full topology after the change."""

    action: TopologyAction
    device_id: Optional[str] = None
    connection_id: Optional[str] = None
    devices: List[Device]
    connections: List[Connection]


class DeviceStatusChangedPayload(WireModel):
    device_id: str
    status: DeviceStatus


class SimulationStateChangedPayload(WireModel):
    is_running: bool
