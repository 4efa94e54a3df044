from __future__ import annotations

import time
import uuid
from typing import Optional

from netsim.schemas.device import (
    DeviceConfig,
    PcConfig,
    RouteEntry,
    RouterConfig,
    ServerConfig,
    ServiceConfig,
    SwitchConfig,
    VlanConfig,
)


def epoch_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


def new_packet_id() -> str:
    return f"packet_{epoch_ms()}_{uuid.uuid4().hex[:9]}"


def interface_name_for(device_type: str, index: int) -> str:
    """Default interface naming per device kind."""
    if device_type == "router":
        return f"GigabitEthernet0/{index}"
    if device_type == "switch":
        return f"FastEthernet0/{index}"
    if device_type in ("pc", "server"):
        return f"Ethernet{index}"
    return f"Interface{index}"


def default_device_config(device_type: str, *, hostname: Optional[str] = None) -> DeviceConfig:
    hostname = hostname or f"{device_type}-{uuid.uuid4().hex[:6]}"
    if device_type == "router":
        return RouterConfig(
            hostname=hostname,
            enable_password="cisco",
            routing_table=[
                RouteEntry(
                    destination="0.0.0.0",
                    netmask="0.0.0.0",
                    gateway="192.168.1.1",
                    interface=interface_name_for("router", 0),
                )
            ],
        )
    if device_type == "switch":
        return SwitchConfig(hostname=hostname, vlans=[VlanConfig(id=1, name="default", ports=[])])
    if device_type == "server":
        return ServerConfig(
            hostname=hostname,
            services=[
                ServiceConfig(type="web", enabled=False, config={"port": 80}),
                ServiceConfig(type="dns", enabled=False, config={"port": 53}),
            ],
        )
    if device_type == "pc":
        return PcConfig(hostname=hostname)
    raise ValueError(f"Unknown device type: {device_type!r}")


# Router-1 -- Switch-1 -- PC-1, addressed on 192.168.1.0/24.
DEMO_DEVICES: list[dict] = [
    {
        "id": "router-1",
        "type": "router",
        "name": "Router-1",
        "position": {"x": 100, "y": 100},
        "interfaces": [
            {
                "id": "gig0/0",
                "name": "GigabitEthernet0/0",
                "ip_address": "192.168.1.1",
                "subnet_mask": "255.255.255.0",
                "status": "up",
            }
        ],
    },
    {
        "id": "switch-1",
        "type": "switch",
        "name": "Switch-1",
        "position": {"x": 300, "y": 100},
        "interfaces": [
            {"id": "fa0/1", "name": "FastEthernet0/1", "status": "up"},
            {"id": "fa0/2", "name": "FastEthernet0/2", "status": "up"},
        ],
    },
    {
        "id": "pc-1",
        "type": "pc",
        "name": "PC-1",
        "position": {"x": 500, "y": 100},
        "interfaces": [
            {
                "id": "eth0",
                "name": "Ethernet0",
                "ip_address": "192.168.1.10",
                "subnet_mask": "255.255.255.0",
                "status": "up",
            }
        ],
    },
]

DEMO_CONNECTIONS: list[dict] = [
    {
        "id": "conn-1",
        "source": "router-1",
        "target": "switch-1",
        "source_interface": "gig0/0",
        "target_interface": "fa0/1",
    },
    {
        "id": "conn-2",
        "source": "switch-1",
        "target": "pc-1",
        "source_interface": "fa0/2",
        "target_interface": "eth0",
    },
]
