from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from netsim.api import deps
from netsim.core.simulator.runtime import NetworkSimulatorRuntime
from netsim.schemas.common import ApiResponse, ok
from netsim.schemas.packet import EndpointPairRequest, PacketFlow, SendPacketRequest

router = APIRouter()


@router.post("/send", response_model=ApiResponse[PacketFlow], status_code=status.HTTP_201_CREATED)
async def send_packet(data: SendPacketRequest, sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    packet = await sim.packets.send_packet(data.source, data.destination, data.protocol, data.payload)
    return ok(packet, message="Packet sent successfully")


@router.get("/history", response_model=ApiResponse[List[PacketFlow]])
async def get_packet_history(sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    return ok(sim.packets.get_history())


@router.post("/ping", response_model=ApiResponse[PacketFlow], status_code=status.HTTP_201_CREATED)
async def ping(data: EndpointPairRequest, sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    packet = await sim.packets.ping(data.source, data.destination)
    return ok(packet, message="Ping packet sent successfully")


@router.post("/traceroute", response_model=ApiResponse[List[PacketFlow]], status_code=status.HTTP_201_CREATED)
async def traceroute(data: EndpointPairRequest, sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    packets = await sim.packets.traceroute(data.source, data.destination)
    return ok(packets, message="Traceroute completed successfully")


@router.get("/{packet_id}", response_model=ApiResponse[PacketFlow])
async def get_packet(packet_id: str, sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    return ok(sim.packets.get_packet(packet_id))


@router.delete("/{packet_id}", response_model=ApiResponse)
async def delete_packet(packet_id: str, sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    sim.packets.remove_packet(packet_id)
    return ok(message="Packet removed")
