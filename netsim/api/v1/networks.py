from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from netsim.api import deps
from netsim.core.networks.service import NetworkService
from netsim.schemas.common import ApiResponse, ok
from netsim.schemas.network import Network, NetworkCreateRequest, NetworkUpdateRequest

router = APIRouter()


@router.get("", response_model=ApiResponse[List[Network]])
async def list_networks(db: AsyncSession = Depends(deps.get_db)):
    service = NetworkService(db)
    networks = await service.list_networks()
    return ok([Network.model_validate(n) for n in networks])


@router.get("/{network_id}", response_model=ApiResponse[Network])
async def get_network(network_id: str, db: AsyncSession = Depends(deps.get_db)):
    service = NetworkService(db)
    network = await service.get_network(network_id)
    return ok(Network.model_validate(network))


@router.post("", response_model=ApiResponse[Network], status_code=status.HTTP_201_CREATED)
async def create_network(data: NetworkCreateRequest, db: AsyncSession = Depends(deps.get_db)):
    service = NetworkService(db)
    network = await service.create_network(data)
    return ok(Network.model_validate(network), message="Network created successfully")


@router.put("/{network_id}", response_model=ApiResponse[Network])
async def update_network(
    network_id: str,
    data: NetworkUpdateRequest,
    db: AsyncSession = Depends(deps.get_db),
):
    service = NetworkService(db)
    network = await service.update_network(network_id, data)
    return ok(Network.model_validate(network), message="Network updated successfully")


@router.delete("/{network_id}", response_model=ApiResponse)
async def delete_network(network_id: str, db: AsyncSession = Depends(deps.get_db)):
    service = NetworkService(db)
    await service.delete_network(network_id)
    return ok(message="Network deleted successfully")
