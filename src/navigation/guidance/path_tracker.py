# path_tracker.py
# Accumulates distance and speed from live position fixes.
# Call reset() at trip start, then observe() on every fix.

import logging
from typing import Callable, List, Optional

from .geo_utils import great_circle_distance
from .models import Coord, Fix, TrackUpdate
from .nav_config import NavConfig

logger = logging.getLogger(__name__)

DistanceFn = Callable[[Coord, Coord], float]


class PathTracker:
    """
    Noise-filtered odometer for a single trip.

    Displacements at or below the noise floor are GPS jitter: the fix is kept
    in the trace for rendering, but no distance is added and the speed drops
    to zero. Distance is always measured from the last point that counted as
    movement, so slow drift below the floor never accumulates.

    Usage:
        tracker = PathTracker(config)
        update = tracker.observe(Fix(coord, timestamp_ms))
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        distance_fn: DistanceFn = great_circle_distance,
    ) -> None:
        self.config = config or NavConfig()
        self._distance = distance_fn
        self.reset()

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Forget the current trip."""
        self._trace: List[Fix] = []
        self._last_point: Optional[Coord] = None
        self._last_fix_time: Optional[int] = None
        self._total_m: float = 0.0
        self._speed_kmh: float = 0.0

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def trace(self) -> List[Fix]:
        return list(self._trace)

    @property
    def total_distance_m(self) -> float:
        return self._total_m

    @property
    def speed_kmh(self) -> float:
        return self._speed_kmh

    @property
    def has_anchor(self) -> bool:
        return self._last_point is not None

    def seed(self, fix: Fix) -> TrackUpdate:
        """
        Anchor the trip at a position known before live fixes arrive.

        The fix is drawn and measured from, but its timestamp comes from a
        different clock than the live feed, so the first live fix sets the
        time base instead.
        """
        self._trace.append(fix)
        self._last_point = fix.coord
        self._last_fix_time = None
        return TrackUpdate(0.0, self._total_m, self._speed_kmh, anchor=True)

    # ------------------------------------------------------------------
    # Core method: call on every fix
    # ------------------------------------------------------------------

    def observe(self, fix: Fix) -> TrackUpdate:
        """
        Fold one fix into the trip.

        Args:
            fix: Position reading; timestamps must not go backwards.

        Returns:
            TrackUpdate with the distance added by this fix and the new speed.
        """
        # 1. Anchor
        if self._last_point is None:
            self._trace.append(fix)
            self._last_point = fix.coord
            self._last_fix_time = fix.timestamp
            return TrackUpdate(0.0, self._total_m, self._speed_kmh, anchor=True)

        # 2. Out-of-order fix: keep the trace chronological
        if self._last_fix_time is not None and fix.timestamp < self._last_fix_time:
            logger.warning(f"Dropping out-of-order fix at {fix.timestamp} "
                           f"(last was {self._last_fix_time}).")
            return TrackUpdate(0.0, self._total_m, self._speed_kmh, accepted=False)

        self._trace.append(fix)
        d = self._distance(self._last_point, fix.coord)
        elapsed_s = (
            (fix.timestamp - self._last_fix_time) / 1000
            if self._last_fix_time is not None else 0.0
        )
        self._last_fix_time = fix.timestamp

        # 3. Stationary: jitter below the noise floor
        if d <= self.config.noise_floor_m:
            self._speed_kmh = 0.0
            return TrackUpdate(0.0, self._total_m, 0.0)

        # 4. Moving
        self._total_m += d
        if elapsed_s > 0:
            self._speed_kmh = (d / elapsed_s) * 3.6
        self._last_point = fix.coord
        return TrackUpdate(d, self._total_m, self._speed_kmh, moved=True)
