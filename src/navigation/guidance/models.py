# models.py
# Shared data structures and enums used across all modules.

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .errors import RouteError


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

def in_range(lat: float, lon: float) -> bool:
    """True when lat is in [-90, 90] and lon in [-180, 180] (NaN fails)."""
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


@dataclass(frozen=True)
class Coord:
    """Immutable geographic coordinate."""
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not in_range(self.lat, self.lon):
            raise ValueError(f"Coordinate out of range: ({self.lat}, {self.lon})")

    def __str__(self) -> str:
        return f"({self.lat:.6f}, {self.lon:.6f})"


@dataclass(frozen=True)
class Fix:
    """A single timestamped position reading (timestamp in epoch millis)."""
    coord: Coord
    timestamp: int


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Route:
    """
    Ordered polyline returned by the directions service.

    points[0] is the snapped origin, points[-1] the snapped destination.
    distance_m / duration_s / strategy are the provider's own estimates,
    when it sends them.
    """
    points: Tuple[Coord, ...]
    distance_m: Optional[float] = None
    duration_s: Optional[float] = None
    strategy: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.points:
            raise ValueError("A route needs at least one point.")

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Coord]:
        return iter(self.points)

    @property
    def origin(self) -> Coord:
        return self.points[0]

    @property
    def destination(self) -> Coord:
        return self.points[-1]

    def length_m(self) -> float:
        """Geometric length of the polyline in metres."""
        from .geo_utils import path_length
        return path_length(self.points)


@dataclass
class FetchDiagnostics:
    """What happened during one directions request. The key is always masked."""
    params: Dict[str, str] = field(default_factory=dict)
    http_status: Optional[int] = None
    api_status: Optional[str] = None
    info: Optional[str] = None
    infocode: Optional[str] = None
    valid_coords: int = 0
    invalid_coords: int = 0
    skipped_steps: int = 0
    elapsed_ms: Optional[float] = None
    error_body: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "params": dict(self.params),
            "http_status": self.http_status,
            "api_status": self.api_status,
            "info": self.info,
            "infocode": self.infocode,
            "valid_coords": self.valid_coords,
            "invalid_coords": self.invalid_coords,
            "skipped_steps": self.skipped_steps,
            "elapsed_ms": self.elapsed_ms,
            "error_body": self.error_body,
        }


@dataclass
class RouteResult:
    """Outcome of an asynchronous fetch: exactly one of route / error is set."""
    route: Optional[Route]
    error: Optional["RouteError"]
    diagnostics: FetchDiagnostics

    @property
    def ok(self) -> bool:
        return self.route is not None


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

class SessionState(Enum):
    AWAITING_ORIGIN      = "awaiting_origin"
    AWAITING_DESTINATION = "awaiting_destination"
    READY                = "ready"
    NAVIGATING           = "navigating"


@dataclass(frozen=True)
class TrackUpdate:
    """Returned by PathTracker.observe() for every fix."""
    distance_delta_m: float        # added to the total by this fix
    total_distance_m: float
    speed_kmh: float
    moved: bool = False            # displacement exceeded the noise floor
    anchor: bool = False           # first fix of the trip
    accepted: bool = True          # False for out-of-order fixes
