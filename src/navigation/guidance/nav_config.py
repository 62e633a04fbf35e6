# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Directions service constants
# ---------------------------------------------------------------------------

AMAP_DRIVING_URL: str = "https://restapi.amap.com/v3/direction/driving"

CONNECT_TIMEOUT_MS: int = 15_000
READ_TIMEOUT_MS: int = 15_000

NOISE_FLOOR_M: float = 1.0   # movement must exceed this to count


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Directions service
    api_key: str = ""
    base_url: str = AMAP_DRIVING_URL
    output: str = "json"
    connect_timeout_ms: int = CONNECT_TIMEOUT_MS
    read_timeout_ms: int = READ_TIMEOUT_MS
    user_agent: str = "NavigationApp/1.0"
    fetch_workers: int = 1                 # background threads for route fetches

    # Movement tracking
    noise_floor_m: float = NOISE_FLOOR_M

    # Map rendering
    camera_zoom: float = 15.0
    route_color: str = "#2196F3"
    route_width: float = 8.0
    trace_color: str = "#4CAF50"
    trace_width: float = 5.0

    # Diagnostics
    diagnostic_capacity: int = 500         # lines kept by NavLogger

    @property
    def timeouts(self) -> Tuple[float, float]:
        """(connect, read) in seconds, as requests expects them."""
        return self.connect_timeout_ms / 1000, self.read_timeout_ms / 1000

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "NavConfig":
        """
        Build a config from environment variables (and a .env file if present).

        Recognised variables:
            AMAP_API_KEY, AMAP_BASE_URL,
            NAV_CONNECT_TIMEOUT_MS, NAV_READ_TIMEOUT_MS
        """
        load_dotenv(env_file)
        values = {
            "api_key": os.getenv("AMAP_API_KEY", ""),
            "base_url": os.getenv("AMAP_BASE_URL", AMAP_DRIVING_URL),
            "connect_timeout_ms": int(os.getenv("NAV_CONNECT_TIMEOUT_MS", CONNECT_TIMEOUT_MS)),
            "read_timeout_ms": int(os.getenv("NAV_READ_TIMEOUT_MS", READ_TIMEOUT_MS)),
        }
        values.update(overrides)
        return cls(**values)
