from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from netsim.api import deps
from netsim.core.simulator.runtime import NetworkSimulatorRuntime
from netsim.schemas.common import ApiResponse, ok
from netsim.schemas.device import (
    Device,
    DeviceCreateRequest,
    DeviceStatusUpdateRequest,
    DeviceUpdateRequest,
    Interface,
    InterfaceCreateRequest,
    InterfaceUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=ApiResponse[List[Device]])
async def list_devices(sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    return ok(sim.topology.list_devices())


@router.get("/{device_id}", response_model=ApiResponse[Device])
async def get_device(device_id: str, sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    return ok(sim.topology.get_device(device_id))


@router.post("", response_model=ApiResponse[Device], status_code=status.HTTP_201_CREATED)
async def create_device(data: DeviceCreateRequest, sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    return ok(sim.topology.add_device(data), message="Device created successfully")


@router.put("/{device_id}", response_model=ApiResponse[Device])
async def update_device(
    device_id: str,
    data: DeviceUpdateRequest,
    sim: NetworkSimulatorRuntime = Depends(deps.get_runtime),
):
    device = sim.topology.update_device(device_id, data.model_dump(exclude_unset=True, by_alias=False))
    return ok(device, message="Device updated successfully")


@router.delete("/{device_id}", response_model=ApiResponse)
async def delete_device(device_id: str, sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    sim.topology.remove_device(device_id)
    return ok(message="Device deleted successfully")


@router.post(
    "/{device_id}/interfaces",
    response_model=ApiResponse[Interface],
    status_code=status.HTTP_201_CREATED,
)
async def add_interface(
    device_id: str,
    data: InterfaceCreateRequest,
    sim: NetworkSimulatorRuntime = Depends(deps.get_runtime),
):
    return ok(sim.topology.add_interface(device_id, data), message="Interface added successfully")


@router.put("/{device_id}/interfaces/{interface_id}", response_model=ApiResponse[Interface])
async def update_interface(
    device_id: str,
    interface_id: str,
    data: InterfaceUpdateRequest,
    sim: NetworkSimulatorRuntime = Depends(deps.get_runtime),
):
    interface = sim.topology.update_interface(
        device_id, interface_id, data.model_dump(exclude_unset=True, by_alias=False)
    )
    return ok(interface, message="Interface updated successfully")


@router.patch("/{device_id}/status", response_model=ApiResponse)
async def update_device_status(
    device_id: str,
    data: DeviceStatusUpdateRequest,
    sim: NetworkSimulatorRuntime = Depends(deps.get_runtime),
):
    sim.topology.update_device_status(device_id, data.status)
    return ok(message=f"Device status updated to {data.status}")
