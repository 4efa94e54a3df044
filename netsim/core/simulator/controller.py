from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from pydantic import BaseModel

from netsim.core.simulator.models import SimulationRecord
from netsim.core.simulator.packets import PacketLifecycleManager
from netsim.core.simulator.topology import TopologyStore
from netsim.schemas.simulation import (
    EventKind,
    SimulationState,
    SimulationStateChangedPayload,
    SimulationStatus,
)


Publish = Callable[[EventKind, BaseModel], None]


class SimulationController:
    def __init__(
        self,
        *,
        lock: threading.RLock,
        state: SimulationRecord,
        publish: Publish,
        topology: TopologyStore,
        packets: PacketLifecycleManager,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._lock = lock
        self._state = state
        self._publish = publish
        self._topology = topology
        self._packets = packets
        self._logger = logger or logging.getLogger(__name__)

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._state.is_running

    def _set_running_locked(self, running: bool) -> None:
        self._state.is_running = running
        self._publish(
            EventKind.SIMULATION_STATE_CHANGED,
            SimulationStateChangedPayload(is_running=running),
        )

    def start(self) -> None:
        with self._lock:
            self._set_running_locked(True)
        self._logger.info("simulator.controller.start")

    def stop(self) -> None:
        with self._lock:
            self._set_running_locked(False)
        self._logger.info("simulator.controller.stop")

    def reset(self) -> None:
        """Clear packets (cancelling their settle tasks), stop, and take every device offline."""
        with self._lock:
            cancelled = self._packets.cancel_pending_locked()
            self._packets.clear_history_locked()
            self._topology.set_all_offline_locked()
            self._set_running_locked(False)
            self._topology.announce_locked("reset")
        self._logger.info("simulator.controller.reset cancelled_settle_tasks=%d", cancelled)

    def status(self) -> SimulationStatus:
        with self._lock:
            return SimulationStatus(
                is_running=self._state.is_running,
                device_count=len(self._state.devices),
                connection_count=len(self._state.connections),
                active_packets=self._packets.active_count_locked(),
            )

    def get_state(self) -> SimulationState:
        with self._lock:
            return SimulationState(
                devices=self._state.device_list(),
                connections=self._state.connection_list(),
                packets=self._state.packet_list(),
                is_running=self._state.is_running,
            )
