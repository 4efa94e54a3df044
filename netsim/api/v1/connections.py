from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from netsim.api import deps
from netsim.core.simulator.runtime import NetworkSimulatorRuntime
from netsim.schemas.common import ApiResponse, ok
from netsim.schemas.connection import Connection, ConnectionCreateRequest, ConnectionStatusUpdateRequest

router = APIRouter()


@router.get("", response_model=ApiResponse[List[Connection]])
async def list_connections(sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    return ok(sim.topology.list_connections())


@router.post("", response_model=ApiResponse[Connection], status_code=status.HTTP_201_CREATED)
async def create_connection(
    data: ConnectionCreateRequest,
    sim: NetworkSimulatorRuntime = Depends(deps.get_runtime),
):
    return ok(sim.topology.add_connection(data), message="Connection created successfully")


@router.delete("/{connection_id}", response_model=ApiResponse)
async def delete_connection(connection_id: str, sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    sim.topology.remove_connection(connection_id)
    return ok(message="Connection deleted successfully")


@router.patch("/{connection_id}/status", response_model=ApiResponse[Connection])
async def update_connection_status(
    connection_id: str,
    data: ConnectionStatusUpdateRequest,
    sim: NetworkSimulatorRuntime = Depends(deps.get_runtime),
):
    connection = sim.topology.update_connection_status(connection_id, data.status)
    return ok(connection, message=f"Connection status updated to {data.status}")
