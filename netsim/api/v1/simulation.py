from __future__ import annotations

from fastapi import APIRouter, Depends

from netsim.api import deps
from netsim.core.simulator.runtime import NetworkSimulatorRuntime
from netsim.schemas.common import ApiResponse, ok
from netsim.schemas.simulation import SimulationState, SimulationStatus

router = APIRouter()


@router.get("/status", response_model=ApiResponse[SimulationStatus])
async def get_status(sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    return ok(sim.controller.status())


@router.get("/state", response_model=ApiResponse[SimulationState])
async def get_state(sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    return ok(sim.controller.get_state())


@router.post("/start", response_model=ApiResponse)
async def start(sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    sim.controller.start()
    return ok(message="Simulation started successfully")


@router.post("/stop", response_model=ApiResponse)
async def stop(sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    sim.controller.stop()
    return ok(message="Simulation stopped successfully")


@router.post("/reset", response_model=ApiResponse)
async def reset(sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    sim.controller.reset()
    return ok(message="Simulation reset successfully")
