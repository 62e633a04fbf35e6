# simulation.py
# Stand-in collaborators for running the engine without a device:
# a map surface that only logs, and a location provider that replays fixes.

import itertools
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .collaborators import MarkerHandle, PolylineHandle, SubscriptionHandle
from .models import Coord, Fix

logger = logging.getLogger(__name__)


class LoggingMapSurface:
    """MapSurface that keeps its objects in dicts and logs every call."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.markers: Dict[int, Tuple[Coord, str]] = {}
        self.polylines: Dict[int, Tuple[Coord, ...]] = {}
        self.camera: Optional[Tuple[Coord, float]] = None
        self._click_callback: Optional[Callable[[Coord], None]] = None

    def add_marker(self, coord: Coord, label: str) -> MarkerHandle:
        handle = MarkerHandle(next(self._ids), self)
        self.markers[handle.id] = (coord, label)
        logger.debug(f"Marker #{handle.id} '{label}' at {coord}")
        return handle

    def remove_marker(self, handle: MarkerHandle) -> None:
        self._check_owner(handle)
        self.markers.pop(handle.id, None)

    def draw_polyline(self, points: Sequence[Coord], color: str, width: float) -> PolylineHandle:
        handle = PolylineHandle(next(self._ids), self)
        self.polylines[handle.id] = tuple(points)
        logger.debug(f"Polyline #{handle.id}: {len(points)} points, {color}, {width}px")
        return handle

    def remove_polyline(self, handle: PolylineHandle) -> None:
        self._check_owner(handle)
        self.polylines.pop(handle.id, None)

    def move_camera(self, coord: Coord, zoom: float) -> None:
        self.camera = (coord, zoom)

    def on_click(self, callback: Callable[[Coord], None]) -> None:
        self._click_callback = callback

    def click(self, coord: Coord) -> None:
        """Simulate a user tap on the map."""
        if self._click_callback is not None:
            self._click_callback(coord)

    def _check_owner(self, handle) -> None:
        if handle.surface is not self:
            raise ValueError(f"Handle #{handle.id} belongs to another map surface.")


class ReplayLocationProvider:
    """
    LocationProvider fed from a fixed list of positions.

    Args:
        positions:   Coordinates to replay, in order.
        interval_ms: Spacing between fix timestamps.
        start_ms:    Timestamp of the first fix.
    """

    def __init__(self, positions: Sequence[Coord], interval_ms: int = 3000, start_ms: int = 0) -> None:
        self.positions: List[Coord] = list(positions)
        self.interval_ms = interval_ms
        self.start_ms = start_ms
        self._ids = itertools.count(1)
        self._subscribers: Dict[int, Callable[[Fix], None]] = {}

    def get_current_position(self, callback: Callable[[Optional[Coord]], None]) -> None:
        callback(self.positions[0] if self.positions else None)

    def subscribe(self, callback: Callable[[Fix], None]) -> SubscriptionHandle:
        handle = SubscriptionHandle(next(self._ids))
        self._subscribers[handle.id] = callback
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        self._subscribers.pop(handle.id, None)

    @property
    def subscribed(self) -> bool:
        return bool(self._subscribers)

    def replay(self) -> int:
        """Deliver every position to current subscribers. Returns fixes sent."""
        sent = 0
        for i, coord in enumerate(self.positions):
            fix = Fix(coord, self.start_ms + i * self.interval_ms)
            for callback in list(self._subscribers.values()):
                callback(fix)
            sent += 1
        return sent
