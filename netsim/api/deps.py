from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from netsim.core.simulator.runtime import NetworkSimulatorRuntime
from netsim.db.session import get_db_session


def get_runtime(conn: HTTPConnection) -> NetworkSimulatorRuntime:
    """The runtime attached to the app; shared by HTTP and WebSocket routes."""
    return conn.app.state.runtime


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session
