from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field, field_validator, model_validator

from netsim.schemas.common import WireModel
from netsim.utils.validation import validate_hostname, validate_ip_address, validate_subnet_mask


DeviceType = Literal["router", "switch", "pc", "server"]
DeviceStatus = Literal["online", "offline", "error"]
InterfaceStatus = Literal["up", "down"]

DEVICE_STATUSES: tuple[str, ...] = ("online", "offline", "error")


class Position(WireModel):
    x: float
    y: float


class _AddressedModel(WireModel):
    ip_address: Optional[str] = None
    subnet_mask: Optional[str] = None

    @field_validator("ip_address")
    @classmethod
    def _check_ip(cls, v: Optional[str]) -> Optional[str]:
        return validate_ip_address(v)

    @field_validator("subnet_mask")
    @classmethod
    def _check_mask(cls, v: Optional[str]) -> Optional[str]:
        return validate_subnet_mask(v)


class Interface(_AddressedModel):
    id: str
    name: str
    status: InterfaceStatus = "down"
    connected_to: Optional[str] = None


class InterfaceCreateRequest(_AddressedModel):
    id: Optional[str] = None
    name: Optional[str] = None
    status: InterfaceStatus = "down"
    connected_to: Optional[str] = None


class InterfaceUpdateRequest(_AddressedModel):
    name: Optional[str] = None
    status: Optional[InterfaceStatus] = None
    connected_to: Optional[str] = None


# --- Per-kind configuration ---------------------------------------------------


class InterfaceConfig(_AddressedModel):
    enabled: bool = True
    vlan: Optional[int] = None
    mode: Optional[Literal["access", "trunk"]] = None


class RouteEntry(WireModel):
    destination: str
    netmask: str
    gateway: str
    interface: str

    @field_validator("destination", "gateway")
    @classmethod
    def _check_address(cls, v: str) -> str:
        return validate_ip_address(v)

    @field_validator("netmask")
    @classmethod
    def _check_netmask(cls, v: str) -> str:
        return validate_subnet_mask(v)


class VlanConfig(WireModel):
    id: int = Field(..., ge=1, le=4094)
    name: str
    ports: List[str] = Field(default_factory=list)


class ServiceConfig(WireModel):
    type: Literal["web", "ftp", "dhcp", "dns"]
    enabled: bool = False
    config: Optional[Dict[str, Any]] = None


class _BaseDeviceConfig(WireModel):
    hostname: Optional[str] = None
    interfaces: Dict[str, InterfaceConfig] = Field(default_factory=dict)

    @field_validator("hostname")
    @classmethod
    def _check_hostname(cls, v: Optional[str]) -> Optional[str]:
        return validate_hostname(v)


class RouterConfig(_BaseDeviceConfig):
    type: Literal["router"] = "router"
    enable_password: Optional[str] = None
    routing_table: List[RouteEntry] = Field(default_factory=list)


class SwitchConfig(_BaseDeviceConfig):
    type: Literal["switch"] = "switch"
    vlans: List[VlanConfig] = Field(default_factory=list)


class PcConfig(_BaseDeviceConfig):
    type: Literal["pc"] = "pc"
    services: List[ServiceConfig] = Field(default_factory=list)


class ServerConfig(_BaseDeviceConfig):
    type: Literal["server"] = "server"
    services: List[ServiceConfig] = Field(default_factory=list)


DeviceConfig = Annotated[
    Union[RouterConfig, SwitchConfig, PcConfig, ServerConfig],
    Field(discriminator="type"),
]


def _tag_config(data: Any) -> Any:
    """Clients send configs without a discriminator; the device type supplies it."""
    if not isinstance(data, dict):
        return data
    config = data.get("config")
    device_type = data.get("type")
    if isinstance(config, dict) and device_type and "type" not in config:
        data = {**data, "config": {**config, "type": device_type}}
    return data


class _DeviceBody(WireModel):
    @model_validator(mode="before")
    @classmethod
    def _tag(cls, data: Any) -> Any:
        return _tag_config(data)

    @model_validator(mode="after")
    def _config_matches_type(self):
        # Partial updates carry a raw dict; it is checked after the merge.
        config_type = getattr(getattr(self, "config", None), "type", None)
        device_type = getattr(self, "type", None)
        if config_type is not None and device_type is not None and config_type != device_type:
            raise ValueError(f"config type {config_type!r} does not match device type {device_type!r}")
        return self

    @model_validator(mode="after")
    def _interface_ids_unique(self):
        seen: set[str] = set()
        for interface in getattr(self, "interfaces", None) or []:
            if interface.id in seen:
                raise ValueError(f"duplicate interface id {interface.id!r}")
            seen.add(interface.id)
        return self


class Device(_DeviceBody):
    id: str
    type: DeviceType
    name: str
    position: Position
    interfaces: List[Interface] = Field(default_factory=list)
    status: DeviceStatus = "offline"
    config: Optional[DeviceConfig] = None


class DeviceCreateRequest(_DeviceBody):
    type: DeviceType
    name: str = Field(..., min_length=1, max_length=50)
    position: Position
    interfaces: List[Interface] = Field(default_factory=list)
    config: Optional[DeviceConfig] = None


class DeviceUpdateRequest(_DeviceBody):
    """Partial update; only fields present in the request are merged."""

    type: Optional[DeviceType] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    position: Optional[Position] = None
    interfaces: Optional[List[Interface]] = None
    # Validated against the resulting device type when merged.
    config: Optional[Dict[str, Any]] = None


class DeviceStatusUpdateRequest(WireModel):
    status: str


class DeviceUpdateMessage(WireModel):
    """Websocket ``device-update`` command body."""

    device_id: str
    updates: Dict[str, Any] = Field(default_factory=dict)
