"""
Network simulator: pytest fixtures.

Provides:
- A fresh simulator runtime per test (short settle delay)
- A FastAPI TestClient bound to that runtime
- Small topology builders shared by unit and integration tests
- A throwaway SQLite file for the saved-networks API
"""
import os
import tempfile
from typing import Generator

# Must be set before netsim.config is imported.
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{tempfile.mkdtemp()}/netsim-test.db")

import pytest
from fastapi.testclient import TestClient

from netsim.core.simulator.runtime import NetworkSimulatorRuntime
from netsim.schemas.connection import ConnectionCreateRequest
from netsim.schemas.device import DeviceCreateRequest, Position


# Fast enough to keep the suite quick, slow enough to observe `transmitted`.
SETTLE_DELAY_SECONDS = 0.05


@pytest.fixture
def sim() -> NetworkSimulatorRuntime:
    return NetworkSimulatorRuntime(settle_delay_seconds=SETTLE_DELAY_SECONDS)


@pytest.fixture
def client(sim: NetworkSimulatorRuntime) -> Generator[TestClient, None, None]:
    """TestClient whose app talks to the per-test runtime instead of the module singleton."""
    from netsim.main import app

    previous = app.state.runtime
    app.state.runtime = sim
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.state.runtime = previous


@pytest.fixture
def make_device(sim: NetworkSimulatorRuntime):
    def _make(name: str, device_type: str = "pc"):
        return sim.topology.add_device(
            DeviceCreateRequest(type=device_type, name=name, position=Position(x=0, y=0))
        )

    return _make


@pytest.fixture
def make_connection(sim: NetworkSimulatorRuntime):
    def _make(source: str, target: str):
        return sim.topology.add_connection(
            ConnectionCreateRequest(
                source=source,
                target=target,
                source_interface="eth0",
                target_interface="eth0",
            )
        )

    return _make


@pytest.fixture
def line_topology(make_device, make_connection) -> tuple[str, str, str]:
    """R1 -- S1 -- PC1; returns the three device ids."""
    r1 = make_device("R1", "router")
    s1 = make_device("S1", "switch")
    pc1 = make_device("PC1", "pc")
    make_connection(r1.id, s1.id)
    make_connection(s1.id, pc1.id)
    return r1.id, s1.id, pc1.id
