from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import Field

from netsim.schemas.common import WireModel


Protocol = Literal["ICMP", "TCP", "UDP", "ARP", "DNS"]
PacketStatus = Literal["pending", "transmitted", "received", "dropped"]

ACTIVE_PACKET_STATUSES: frozenset[str] = frozenset({"pending", "transmitted"})


class PacketFlow(WireModel):
    id: str
    source: str
    destination: str
    protocol: Protocol
    status: PacketStatus = "pending"
    path: List[str] = Field(default_factory=list)
    # Epoch milliseconds.
    timestamp: int
    payload: Optional[Any] = None


class SendPacketRequest(WireModel):
    source: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    protocol: Protocol
    payload: Optional[dict[str, Any]] = None


class EndpointPairRequest(WireModel):
    source: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
