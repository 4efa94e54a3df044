from __future__ import annotations

from typing import Literal

from pydantic import Field

from netsim.schemas.common import WireModel


ConnectionStatus = Literal["connected", "disconnected"]

CONNECTION_STATUSES: tuple[str, ...] = ("connected", "disconnected")


class Connection(WireModel):
    id: str
    source: str
    target: str
    source_interface: str
    target_interface: str
    status: ConnectionStatus = "connected"


class ConnectionCreateRequest(WireModel):
    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    source_interface: str
    target_interface: str


class ConnectionStatusUpdateRequest(WireModel):
    status: str
