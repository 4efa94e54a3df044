from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from netsim.schemas.common import WireModel


class Network(WireModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    devices: List[str] = Field(default_factory=list)
    connections: List[str] = Field(default_factory=list)
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NetworkCreateRequest(WireModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    devices: List[str] = Field(default_factory=list)
    connections: List[str] = Field(default_factory=list)


class NetworkUpdateRequest(WireModel):
    """Partial update; fields left out of the request keep their stored value."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    devices: Optional[List[str]] = None
    connections: Optional[List[str]] = None
