# trip_summary.py
# Immutable end-of-trip statistics and their display formatting.

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .models import Fix

MIN_TRIP_DISTANCE_M = 10.0   # below this the trip is treated as no movement


@dataclass(frozen=True)
class TripSummary:
    """Duration, distance and trace of one completed trip."""
    duration_ms: int
    distance_m: float
    trace: Tuple[Fix, ...] = ()

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise ValueError(f"duration_ms must be >= 0, got {self.duration_ms}")
        if self.distance_m < 0:
            raise ValueError(f"distance_m must be >= 0, got {self.distance_m}")

    def formatted_duration(self) -> str:
        total_seconds = self.duration_ms // 1000
        hours, rest = divmod(total_seconds, 3600)
        minutes, seconds = divmod(rest, 60)
        if hours > 0:
            return f"{hours} hours {minutes} minutes {seconds} seconds"
        if minutes > 0:
            return f"{minutes} minutes {seconds} seconds"
        return f"{seconds} seconds"

    def formatted_distance(self) -> str:
        if self.distance_m >= 1000:
            return f"{self.distance_m / 1000:.2f} km"
        return f"{self.distance_m:.0f} m"

    def average_speed_kmh(self) -> float:
        if self.duration_ms == 0 or self.distance_m < MIN_TRIP_DISTANCE_M:
            return 0.0
        return (self.distance_m / 1000) / (self.duration_ms / 3_600_000)

    def formatted_average_speed(self) -> str:
        return f"{self.average_speed_kmh():.1f} km/h"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.formatted_duration(),
            "distance": self.formatted_distance(),
            "average_speed": self.formatted_average_speed(),
            "duration_ms": self.duration_ms,
            "distance_m": self.distance_m,
            "trace_points": len(self.trace),
        }
