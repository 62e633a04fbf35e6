# collaborators.py
# Interfaces of the platform pieces the engine talks to but does not own:
# the map surface, the location provider and the diagnostic sink.

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence

from .models import Coord, Fix


# ---------------------------------------------------------------------------
# Opaque handles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MarkerHandle:
    """Marker created by a map surface; only that surface can remove it."""
    id: int
    surface: Any


@dataclass(frozen=True)
class PolylineHandle:
    """Polyline created by a map surface; only that surface can remove it."""
    id: int
    surface: Any


@dataclass(frozen=True)
class SubscriptionHandle:
    id: int


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

class MapSurface(Protocol):
    def add_marker(self, coord: Coord, label: str) -> MarkerHandle: ...

    def remove_marker(self, handle: MarkerHandle) -> None: ...

    def draw_polyline(self, points: Sequence[Coord], color: str, width: float) -> PolylineHandle: ...

    def remove_polyline(self, handle: PolylineHandle) -> None: ...

    def move_camera(self, coord: Coord, zoom: float) -> None: ...

    def on_click(self, callback: Callable[[Coord], None]) -> None: ...


class LocationProvider(Protocol):
    def get_current_position(self, callback: Callable[[Optional[Coord]], None]) -> None: ...

    def subscribe(self, callback: Callable[[Fix], None]) -> SubscriptionHandle: ...

    def unsubscribe(self, handle: SubscriptionHandle) -> None: ...


class DiagnosticSink(Protocol):
    def write(self, tag: str, level: str, message: str) -> None: ...
