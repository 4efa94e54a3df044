from fastapi import APIRouter

from netsim.api.v1 import connections, devices, health, networks, packets, simulation, websocket

api_router = APIRouter()

api_router.include_router(devices.router, prefix="/devices", tags=["Devices"])
api_router.include_router(connections.router, prefix="/connections", tags=["Connections"])
api_router.include_router(networks.router, prefix="/networks", tags=["Networks"])
api_router.include_router(packets.router, prefix="/packets", tags=["Packets"])
api_router.include_router(simulation.router, prefix="/simulation", tags=["Simulation"])
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(websocket.router, tags=["WebSocket"])
