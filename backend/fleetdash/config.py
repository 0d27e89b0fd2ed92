# fleetdash/config.py
# ------------------------------------------------------------
# Central configuration using pydantic-settings.
#
# All values can be overridden via environment variables
# (prefix FLEET_, e.g. FLEET_TICK_INTERVAL_MS=50).
# ------------------------------------------------------------

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """
    Runtime configuration for the fleet backend.
    """

    model_config = SettingsConfigDict(env_prefix="FLEET_", env_file=".env", extra="ignore")

    environment: str = "development"

    # --------------------------------------------------------
    # Simulation engine
    # --------------------------------------------------------
    tick_interval_ms: int = 100
    default_speed: float = 10.0
    alert_dedup_window_sec: int = 60

    # --------------------------------------------------------
    # Infrastructure / push transports
    # --------------------------------------------------------
    redis_url: str = "redis://localhost:6379/0"
    pubsub_enabled: bool = False
    pubsub_channel: str = "fleet-events"

    # --------------------------------------------------------
    # CORS / Frontend integration
    # --------------------------------------------------------
    api_cors_origins: str = (
        "http://localhost:5173,"
        "http://localhost:3000"
    )

    # --------------------------------------------------------
    # Telemetry sources
    # --------------------------------------------------------
    trip_config_url: Optional[str] = None
    trip_config_path: str = "data/trip-config.json"
    telemetry_data_dir: str = "data"
    synthetic_fallback_enabled: bool = True
    synthetic_seed: int = 42

    # --------------------------------------------------------
    # Alert summarizer (OpenAI-compatible chat endpoint)
    # --------------------------------------------------------
    summarizer_api_key: str = ""
    summarizer_api_url: str = "https://api.deepseek.com/v1/chat/completions"
    summarizer_model: str = "deepseek-chat"
    summarizer_cache_ttl_sec: int = 300
    summarizer_min_interval_sec: float = 6.7   # ~9 requests per minute
    summarizer_max_attempts: int = 3
    summarizer_timeout_sec: float = 30.0

    # --------------------------------------------------------
    # Streams (seconds)
    # --------------------------------------------------------
    stream_heartbeat_sec: int = 10
    stream_poll_sec: float = 0.5

    # --------------------------------------------------------
    # Helpers
    # --------------------------------------------------------
    def cors_list(self) -> List[str]:
        """
        Parse comma-separated CORS origins into a clean list.
        """
        return [
            x.strip()
            for x in self.api_cors_origins.split(",")
            if x.strip()
        ]


# Singleton settings object
settings = Settings()
