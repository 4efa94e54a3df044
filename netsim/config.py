import logging
from typing import Any, ClassVar, FrozenSet

from pydantic_settings import BaseSettings, SettingsConfigDict

_logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Database (persistence mirror only; the engine never waits on it)
    DATABASE_URL: str = "sqlite+aiosqlite:///./netsim.db"

    # Application
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    # Environment
    # Suggested values: dev|staging|prod.
    ENV: str = "dev"

    # CORS: local dev servers on any port, localhost only.
    CORS_ORIGIN_REGEX: str = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

    # Packet lifecycle
    # Uniform delay between `transmitted` and `received`, not scaled by hop count.
    PACKET_SETTLE_DELAY_MS: int = 1000
    # When enabled, packets can only be sent while the simulation is running.
    SIMULATION_REQUIRE_RUNNING: bool = False

    # Topology
    # Reject connections whose endpoints are not known devices.
    STRICT_CONNECTION_ENDPOINTS: bool = False

    # Simulator persistence mirror (best-effort)
    SIMULATOR_DB_ENABLED: bool = False
    # Seed Router-1 / Switch-1 / PC-1 on startup when the store is empty.
    SIMULATOR_SEED_DEMO: bool = False

    # Event broadcaster
    EVENT_QUEUE_MAX: int = 100
    DEFAULT_ROOM: str = "default-simulation"

    # Observability
    METRICS_ENABLED: bool = True

    _SAFE_ENVS: ClassVar[FrozenSet[str]] = frozenset({"dev", "development", "test", "testing"})

    def model_post_init(self, __context: Any) -> None:
        self._guardrail_settle_delay()
        self._guardrail_debug_outside_dev()

    def _guardrail_settle_delay(self) -> None:
        if int(self.PACKET_SETTLE_DELAY_MS) < 0:
            raise RuntimeError(
                f"PACKET_SETTLE_DELAY_MS must be >= 0. Got {self.PACKET_SETTLE_DELAY_MS!r}."
            )
        if int(self.EVENT_QUEUE_MAX) < 1:
            raise RuntimeError(f"EVENT_QUEUE_MAX must be >= 1. Got {self.EVENT_QUEUE_MAX!r}.")

    def _guardrail_debug_outside_dev(self) -> None:
        env = (self.ENV or "").strip().lower()
        if env in self._SAFE_ENVS:
            return
        if self.DEBUG:
            _logger.warning("config.debug_enabled_outside_dev env=%s", self.ENV)

    @property
    def packet_settle_delay_seconds(self) -> float:
        return max(0, int(self.PACKET_SETTLE_DELAY_MS)) / 1000.0


settings = Settings()


def get_settings() -> Settings:
    """Return the global settings instance.

    Provided as a callable for FastAPI Depends() and test mocking convenience.
    """
    return settings
