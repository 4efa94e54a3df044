from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from pydantic import BaseModel, ValidationError

from netsim.core.simulator.helpers import default_device_config, interface_name_for, new_id
from netsim.core.simulator.models import SimulationRecord
from netsim.schemas.connection import CONNECTION_STATUSES, Connection, ConnectionCreateRequest
from netsim.schemas.device import (
    DEVICE_STATUSES,
    Device,
    DeviceCreateRequest,
    Interface,
    InterfaceCreateRequest,
)
from netsim.schemas.simulation import (
    DeviceStatusChangedPayload,
    EventKind,
    TopologyAction,
    TopologyChangedPayload,
)
from netsim.utils.exceptions import BadRequestException, NotFoundException


Publish = Callable[[EventKind, BaseModel], None]

# Fields that only dedicated operations may change.
_DEVICE_PROTECTED_FIELDS = frozenset({"id", "status"})
_INTERFACE_PROTECTED_FIELDS = frozenset({"id"})


def _validation_details(exc: ValidationError) -> dict[str, Any]:
    return {"errors": exc.errors(include_url=False, include_context=False, include_input=False)}


class TopologyStore:
    """Devices and connections of the running simulation.

    Every mutation runs under the runtime lock and announces itself through
    ``publish`` before the lock is released, so events arrive in mutation order.
    Returned models are copies; callers never hold live references.
    """

    def __init__(
        self,
        *,
        lock: threading.RLock,
        state: SimulationRecord,
        publish: Publish,
        strict_endpoints: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._lock = lock
        self._state = state
        self._publish = publish
        self._strict_endpoints = strict_endpoints
        self._logger = logger or logging.getLogger(__name__)

    # --- reads -------------------------------------------------------------

    def _get_device_locked(self, device_id: str) -> Device:
        device = self._state.devices.get(device_id)
        if device is None:
            raise NotFoundException(f"Device {device_id} not found")
        return device

    def _get_connection_locked(self, connection_id: str) -> Connection:
        conn = self._state.connections.get(connection_id)
        if conn is None:
            raise NotFoundException(f"Connection {connection_id} not found")
        return conn

    def get_device(self, device_id: str) -> Device:
        with self._lock:
            return self._get_device_locked(device_id).model_copy(deep=True)

    def list_devices(self) -> list[Device]:
        with self._lock:
            return self._state.device_list()

    def get_connection(self, connection_id: str) -> Connection:
        with self._lock:
            return self._get_connection_locked(connection_id).model_copy(deep=True)

    def list_connections(self) -> list[Connection]:
        with self._lock:
            return self._state.connection_list()

    # --- events ------------------------------------------------------------

    def announce_locked(
        self,
        action: TopologyAction,
        *,
        device_id: Optional[str] = None,
        connection_id: Optional[str] = None,
    ) -> None:
        self._publish(
            EventKind.TOPOLOGY_CHANGED,
            TopologyChangedPayload(
                action=action,
                device_id=device_id,
                connection_id=connection_id,
                devices=self._state.device_list(),
                connections=self._state.connection_list(),
            ),
        )

    # --- devices -----------------------------------------------------------

    def add_device(self, spec: DeviceCreateRequest) -> Device:
        config = spec.config if spec.config is not None else default_device_config(spec.type)
        device = Device(
            id=new_id(),
            type=spec.type,
            name=spec.name,
            position=spec.position.model_copy(),
            interfaces=[i.model_copy(deep=True) for i in spec.interfaces],
            status="offline",
            config=config.model_copy(deep=True),
        )
        with self._lock:
            # uuid4 collisions are not expected; guard the invariant anyway.
            while device.id in self._state.devices:
                device.id = new_id()
            self._state.devices[device.id] = device
            self._logger.info(
                "simulator.topology.device_added device_id=%s type=%s", device.id, device.type
            )
            self.announce_locked("device_added", device_id=device.id)
            return device.model_copy(deep=True)

    def put_device_locked(self, device: Device) -> None:
        """Insert or replace a fully-formed device (seeding and storage load)."""
        self._state.devices[device.id] = device.model_copy(deep=True)

    def put_connection_locked(self, connection: Connection) -> None:
        self._state.connections[connection.id] = connection.model_copy(deep=True)

    def remove_device(self, device_id: str) -> None:
        with self._lock:
            self._get_device_locked(device_id)
            touching = [
                c.id
                for c in self._state.connections.values()
                if c.source == device_id or c.target == device_id
            ]
            for connection_id in touching:
                del self._state.connections[connection_id]
                self.announce_locked("connection_removed", connection_id=connection_id, device_id=device_id)
            del self._state.devices[device_id]
            self._logger.info(
                "simulator.topology.device_removed device_id=%s cascaded_connections=%d",
                device_id,
                len(touching),
            )
            self.announce_locked("device_removed", device_id=device_id)

    def update_device(self, device_id: str, changes: dict[str, Any]) -> Device:
        changes = {k: v for k, v in changes.items() if k not in _DEVICE_PROTECTED_FIELDS}
        with self._lock:
            current = self._get_device_locked(device_id)
            merged = current.model_dump(by_alias=False)
            merged.update(changes)
            if "type" in changes and changes["type"] != current.type and "config" not in changes:
                merged["config"] = default_device_config(changes["type"]).model_dump(by_alias=False)
            if isinstance(merged.get("config"), dict):
                merged["config"].pop("type", None)
            try:
                updated = Device.model_validate(merged)
            except ValidationError as exc:
                raise BadRequestException("Invalid device update", details=_validation_details(exc))

            self._state.devices[device_id] = updated
            self.announce_locked("device_updated", device_id=device_id)
            return updated.model_copy(deep=True)

    def update_device_status(self, device_id: str, status: str) -> None:
        if status not in DEVICE_STATUSES:
            raise BadRequestException(
                "Invalid status value",
                details={"status": status, "allowed": list(DEVICE_STATUSES)},
            )
        with self._lock:
            device = self._get_device_locked(device_id)
            device.status = status  # type: ignore[assignment]
            self._logger.debug("simulator.topology.device_status device_id=%s status=%s", device_id, status)
            self._publish(
                EventKind.DEVICE_STATUS_CHANGED,
                DeviceStatusChangedPayload(device_id=device_id, status=status),
            )

    def set_all_offline_locked(self) -> None:
        for device in self._state.devices.values():
            device.status = "offline"

    # --- interfaces --------------------------------------------------------

    def add_interface(self, device_id: str, spec: InterfaceCreateRequest) -> Interface:
        with self._lock:
            device = self._get_device_locked(device_id)
            interface_id = spec.id or new_id()
            if any(i.id == interface_id for i in device.interfaces):
                raise BadRequestException(
                    f"Interface {interface_id} already exists on device {device_id}"
                )
            interface = Interface(
                id=interface_id,
                name=spec.name or interface_name_for(device.type, len(device.interfaces)),
                ip_address=spec.ip_address,
                subnet_mask=spec.subnet_mask,
                status=spec.status,
                connected_to=spec.connected_to,
            )
            device.interfaces.append(interface)
            self.announce_locked("device_updated", device_id=device_id)
            return interface.model_copy(deep=True)

    def update_interface(self, device_id: str, interface_id: str, changes: dict[str, Any]) -> Interface:
        changes = {k: v for k, v in changes.items() if k not in _INTERFACE_PROTECTED_FIELDS}
        with self._lock:
            device = self._get_device_locked(device_id)
            for idx, current in enumerate(device.interfaces):
                if current.id == interface_id:
                    break
            else:
                raise NotFoundException(f"Interface {interface_id} not found on device {device_id}")

            merged = current.model_dump(by_alias=False)
            merged.update(changes)
            try:
                updated = Interface.model_validate(merged)
            except ValidationError as exc:
                raise BadRequestException("Invalid interface update", details=_validation_details(exc))

            device.interfaces[idx] = updated
            self.announce_locked("device_updated", device_id=device_id)
            return updated.model_copy(deep=True)

    # --- connections -------------------------------------------------------

    def add_connection(self, spec: ConnectionCreateRequest) -> Connection:
        if spec.source == spec.target:
            raise BadRequestException("Connection source and target must differ")
        with self._lock:
            if self._strict_endpoints:
                for endpoint in (spec.source, spec.target):
                    if endpoint not in self._state.devices:
                        raise NotFoundException(f"Device {endpoint} not found")
            elif spec.source not in self._state.devices or spec.target not in self._state.devices:
                self._logger.warning(
                    "simulator.topology.connection_unknown_endpoint source=%s target=%s",
                    spec.source,
                    spec.target,
                )

            connection = Connection(
                id=new_id(),
                source=spec.source,
                target=spec.target,
                source_interface=spec.source_interface,
                target_interface=spec.target_interface,
                status="connected",
            )
            while connection.id in self._state.connections:
                connection.id = new_id()
            self._state.connections[connection.id] = connection
            self._logger.info(
                "simulator.topology.connection_added connection_id=%s source=%s target=%s",
                connection.id,
                connection.source,
                connection.target,
            )
            self.announce_locked("connection_added", connection_id=connection.id)
            return connection.model_copy(deep=True)

    def remove_connection(self, connection_id: str) -> None:
        with self._lock:
            self._get_connection_locked(connection_id)
            del self._state.connections[connection_id]
            self._logger.info("simulator.topology.connection_removed connection_id=%s", connection_id)
            self.announce_locked("connection_removed", connection_id=connection_id)

    def update_connection_status(self, connection_id: str, status: str) -> Connection:
        if status not in CONNECTION_STATUSES:
            raise BadRequestException(
                "Invalid status value",
                details={"status": status, "allowed": list(CONNECTION_STATUSES)},
            )
        with self._lock:
            conn = self._get_connection_locked(connection_id)
            conn.status = status  # type: ignore[assignment]
            self.announce_locked("connection_updated", connection_id=connection_id)
            return conn.model_copy(deep=True)
