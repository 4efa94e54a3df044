from __future__ import annotations

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from netsim.core.simulator.helpers import new_id
from netsim.db.models.network import NetworkRow
from netsim.schemas.network import NetworkCreateRequest, NetworkUpdateRequest
from netsim.utils.exceptions import NotFoundException


logger = logging.getLogger(__name__)


class NetworkService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_networks(self) -> List[NetworkRow]:
        result = await self.db.execute(select(NetworkRow).order_by(NetworkRow.created_at, NetworkRow.id))
        return list(result.scalars().all())

    async def get_network(self, network_id: str) -> NetworkRow:
        result = await self.db.execute(select(NetworkRow).where(NetworkRow.id == network_id))
        network = result.scalar_one_or_none()
        if network is None:
            raise NotFoundException("Network not found")
        return network

    async def create_network(self, network_in: NetworkCreateRequest) -> NetworkRow:
        network = NetworkRow(
            id=new_id(),
            name=network_in.name,
            description=network_in.description,
            devices=list(network_in.devices),
            connections=list(network_in.connections),
        )
        self.db.add(network)
        await self.db.commit()
        await self.db.refresh(network)
        logger.info("networks.created network_id=%s name=%s", network.id, network.name)
        return network

    async def update_network(self, network_id: str, network_in: NetworkUpdateRequest) -> NetworkRow:
        network = await self.get_network(network_id)

        changes = network_in.model_dump(exclude_unset=True, by_alias=False)
        for field, value in changes.items():
            # name is required on the row; an explicit null leaves it alone.
            if field == "name" and value is None:
                continue
            if field in ("devices", "connections"):
                value = list(value or [])
            setattr(network, field, value)

        await self.db.commit()
        await self.db.refresh(network)
        logger.info("networks.updated network_id=%s fields=%s", network_id, ",".join(sorted(changes)))
        return network

    async def delete_network(self, network_id: str) -> None:
        network = await self.get_network(network_id)
        await self.db.delete(network)
        await self.db.commit()
        logger.info("networks.deleted network_id=%s", network_id)
