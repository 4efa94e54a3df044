from netsim.db.base import Base
from .device import DeviceRow
from .connection import ConnectionRow
from .packet import PacketRow
from .network import NetworkRow

__all__ = [
    "Base",
    "DeviceRow",
    "ConnectionRow",
    "PacketRow",
    "NetworkRow",
]
