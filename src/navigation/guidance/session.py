# session.py
# State machine for one navigation session, reused across trips.
# Not thread-safe: every method must be called from the control thread.

import logging
import time
from typing import Callable, List, Optional

from .errors import InvalidStateError
from .events import RouteResolved
from .models import Coord, Fix, Route, RouteResult, SessionState, TrackUpdate
from .nav_config import NavConfig
from .path_tracker import PathTracker
from .route_client import RouteClient
from .trip_summary import TripSummary

logger = logging.getLogger(__name__)


def epoch_millis() -> int:
    return int(time.time() * 1000)


class NavigationSession:
    """
    AwaitingOrigin -> AwaitingDestination -> Ready -> Navigating -> AwaitingOrigin

    Route fetches run on the client's worker pool; their results come back as
    RouteResolved events through `post`, which must hand them to the control
    thread. Only then does on_route_resolved() change state.

    Args:
        route_client: RouteClient (or anything with fetch_route_async).
        post:         Delivers events to the control thread.
        config:       Optional NavConfig; defaults to NavConfig().
        clock:        Epoch-millisecond clock, replaceable in tests.
    """

    def __init__(
        self,
        route_client: RouteClient,
        post: Callable[[object], None],
        config: Optional[NavConfig] = None,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        self.config = config or NavConfig()
        self._client = route_client
        self._post = post
        self._clock = clock
        self._tracker = PathTracker(self.config)

        self._state = SessionState.AWAITING_ORIGIN
        self._origin: Optional[Coord] = None
        self._destination: Optional[Coord] = None
        self._route: Optional[Route] = None
        self._start_time: Optional[int] = None
        self._last_position: Optional[Coord] = None

        self._request_seq = 0
        self._pending_request: Optional[int] = None

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def origin(self) -> Optional[Coord]:
        return self._origin

    @property
    def destination(self) -> Optional[Coord]:
        return self._destination

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def trace(self) -> List[Fix]:
        return self._tracker.trace

    @property
    def accumulated_distance_m(self) -> float:
        return self._tracker.total_distance_m

    @property
    def current_speed_kmh(self) -> float:
        return self._tracker.speed_kmh

    @property
    def start_time(self) -> Optional[int]:
        return self._start_time

    @property
    def last_known_position(self) -> Optional[Coord]:
        return self._last_position

    @property
    def fetch_pending(self) -> bool:
        return self._pending_request is not None

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_point(self, coord: Coord) -> bool:
        """
        Use coord as origin or destination, depending on the state.

        Returns:
            False when the state does not take point selections.
        """
        if self._state is SessionState.AWAITING_ORIGIN:
            self._origin = coord
            self._set_state(SessionState.AWAITING_DESTINATION)
            logger.info(f"Origin set: {coord}")
            return True
        if self._state is SessionState.AWAITING_DESTINATION:
            self._destination = coord
            self._set_state(SessionState.READY)
            logger.info(f"Destination set: {coord}")
            return True
        logger.debug(f"Point {coord} ignored in state {self._state.name}.")
        return False

    def update_position(self, coord: Coord) -> None:
        """Remember the latest known position (seeds the next trace)."""
        self._last_position = coord

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def request_start(self) -> int:
        """
        Ask the directions service for a route between origin and destination.

        Returns:
            Id of the request; the matching RouteResolved carries the same id.

        Raises:
            InvalidStateError: not Ready, or a fetch is already in flight.
        """
        if self._state is not SessionState.READY:
            raise InvalidStateError(
                f"Cannot start navigation in state {self._state.name}; "
                "select origin and destination first."
            )
        if self._pending_request is not None:
            raise InvalidStateError("A route request is already in flight.")

        self._request_seq += 1
        request_id = self._request_seq
        self._pending_request = request_id
        logger.info(f"Route request #{request_id}: {self._origin} -> {self._destination}")

        self._client.fetch_route_async(
            self._origin,
            self._destination,
            lambda result: self._post(RouteResolved(request_id, result)),
        )
        return request_id

    def on_route_resolved(self, event: RouteResolved) -> Optional[RouteResult]:
        """
        Apply a finished fetch.

        Returns:
            The result when it was applied, None when it was stale.
        """
        if event.request_id != self._pending_request:
            logger.info(f"Discarding stale result of route request #{event.request_id}.")
            return None
        self._pending_request = None
        result = event.result

        if not result.ok:
            logger.error(f"Route request #{event.request_id} failed "
                         f"[{result.error.kind}]: {result.error}")
            return result

        self._route = result.route
        self._start_time = self._clock()
        self._tracker.reset()
        if self._last_position is not None:
            self._tracker.seed(Fix(self._last_position, self._start_time))
        self._set_state(SessionState.NAVIGATING)
        logger.info(f"Navigation started with {len(result.route)} route points.")
        return result

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def on_fix(self, fix: Fix) -> Optional[TrackUpdate]:
        """Feed a live fix to the tracker. Ignored unless navigating."""
        if self._state is not SessionState.NAVIGATING:
            logger.debug(f"Fix at {fix.timestamp} discarded in state {self._state.name}.")
            return None
        self._last_position = fix.coord
        return self._tracker.observe(fix)

    # ------------------------------------------------------------------
    # Stop
    # ------------------------------------------------------------------

    def request_stop(self) -> Optional[TripSummary]:
        """
        End the trip (or drop the current selection) and go back to AwaitingOrigin.

        Returns:
            TripSummary when a trip was in progress, otherwise None.
        """
        summary = None
        if self._state is SessionState.NAVIGATING:
            duration = max(0, self._clock() - self._start_time)
            summary = TripSummary(
                duration_ms=duration,
                distance_m=self._tracker.total_distance_m,
                trace=tuple(self._tracker.trace),
            )
            logger.info(f"Trip finished: {summary.formatted_duration()}, "
                        f"{summary.formatted_distance()}, "
                        f"{summary.formatted_average_speed()}")
        elif self._pending_request is not None:
            logger.info(f"Selection cleared; route request #{self._pending_request} "
                        "will be discarded.")

        self._reset()
        return summary

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self._origin = None
        self._destination = None
        self._route = None
        self._start_time = None
        self._pending_request = None
        self._tracker.reset()
        self._set_state(SessionState.AWAITING_ORIGIN)

    def _set_state(self, state: SessionState) -> None:
        if state is not self._state:
            logger.debug(f"State {self._state.name} -> {state.name}")
        self._state = state
