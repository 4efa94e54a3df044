from __future__ import annotations

import os
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from netsim.api import deps
from netsim.core.simulator.runtime import NetworkSimulatorRuntime


router = APIRouter()

_START_TIME = time.time()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _best_effort_version() -> str:
    v = (os.getenv("NETSIM_APP_VERSION") or os.getenv("APP_VERSION") or "").strip()
    return v or "dev"


@router.get("/health")
async def health_check(sim: NetworkSimulatorRuntime = Depends(deps.get_runtime)):
    return {
        "status": "ok",
        "version": _best_effort_version(),
        "uptime_seconds": int(max(0.0, time.time() - _START_TIME)),
        "simulation": {"is_running": sim.controller.is_running},
        "timestamp": _utc_now_iso(),
    }


@router.get("/healthz")
async def healthz_check():
    return {"status": "ok"}
