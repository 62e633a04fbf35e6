# navigator.py
# Public entry point for the navigation engine.
# A single control loop receives typed events from any thread and
# dispatches them to the NavigationSession; map and location plumbing
# lives here so the session stays free of platform concerns.

import logging
import queue
import threading
from typing import Callable, Dict, List, Optional

from .collaborators import (
    LocationProvider,
    MapSurface,
    MarkerHandle,
    PolylineHandle,
    SubscriptionHandle,
)
from .errors import InvalidStateError, RouteError
from .events import (
    FixReceived,
    PointSelected,
    PositionKnown,
    RouteResolved,
    Shutdown,
    StartRequested,
    StopRequested,
)
from .models import Coord, FetchDiagnostics, Fix, Route, SessionState, TrackUpdate
from .nav_config import NavConfig
from .route_client import RouteClient
from .session import NavigationSession, epoch_millis
from .trip_summary import TripSummary

logger = logging.getLogger(__name__)


class NavigationListener:
    """Presentation-layer callbacks. Override what you need; all run on the control thread."""

    def on_state_changed(self, state: SessionState) -> None:
        pass

    def on_route_ready(self, route: Route) -> None:
        pass

    def on_route_failed(self, error: RouteError, diagnostics: FetchDiagnostics) -> None:
        pass

    def on_start_rejected(self, error: InvalidStateError) -> None:
        pass

    def on_track_update(self, update: TrackUpdate, trace: List[Fix]) -> None:
        pass

    def on_trip_finished(self, summary: TripSummary) -> None:
        pass


class Navigator:
    """
    High-level navigation facade and control loop.

    Typical lifecycle:
        nav = Navigator(RouteClient(config), map_surface, location_provider, config)
        nav.start()                       # spawn the control thread
        nav.locate()
        nav.select_point(origin)
        nav.select_point(destination)
        nav.request_start()
        ...
        nav.request_stop()
        nav.close()

    Without start(), drive the loop from the calling thread with drain().

    Args:
        route_client:      Directions client.
        map_surface:       Map capability (markers, polylines, camera).
        location_provider: Source of the current position and live fixes.
        config:            Optional NavConfig; defaults to NavConfig().
        listener:          Optional NavigationListener.
        clock:             Epoch-millisecond clock for trip timing.
    """

    def __init__(
        self,
        route_client: RouteClient,
        map_surface: MapSurface,
        location_provider: LocationProvider,
        config: Optional[NavConfig] = None,
        listener: Optional[NavigationListener] = None,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        self.config = config or NavConfig()
        self.listener = listener or NavigationListener()
        self._events: "queue.Queue[object]" = queue.Queue()
        self._map = map_surface
        self._location = location_provider
        self.session = NavigationSession(route_client, self.post, self.config, clock)

        self._markers: Dict[str, MarkerHandle] = {}
        self._route_line: Optional[PolylineHandle] = None
        self._trace_line: Optional[PolylineHandle] = None
        self._subscription: Optional[SubscriptionHandle] = None
        self._thread: Optional[threading.Thread] = None

        self._handlers = {
            PointSelected: self._on_point_selected,
            PositionKnown: self._on_position_known,
            StartRequested: self._on_start_requested,
            StopRequested: self._on_stop_requested,
            FixReceived: self._on_fix_received,
            RouteResolved: self._on_route_resolved,
        }

        self._map.on_click(self.select_point)

    # ------------------------------------------------------------------
    # Thread-safe API: only enqueues events
    # ------------------------------------------------------------------

    def post(self, event: object) -> None:
        self._events.put(event)

    def select_point(self, coord: Coord) -> None:
        self.post(PointSelected(coord))

    def request_start(self) -> None:
        self.post(StartRequested())

    def request_stop(self) -> None:
        self.post(StopRequested())

    def locate(self) -> None:
        """Ask the location provider for the current position."""
        def on_position(coord: Optional[Coord]) -> None:
            if coord is None:
                logger.warning("Failed to get current location.")
                return
            self.post(PositionKnown(coord))

        self._location.get_current_position(on_position)

    @property
    def state(self) -> SessionState:
        return self.session.state

    # ------------------------------------------------------------------
    # Control loop
    # ------------------------------------------------------------------

    def process_next(self, timeout: Optional[float] = None) -> bool:
        """
        Handle one queued event.

        Args:
            timeout: Seconds to wait; None blocks, 0 returns at once.

        Returns:
            False when no event arrived or a Shutdown was received.
        """
        try:
            if timeout == 0:
                event = self._events.get_nowait()
            else:
                event = self._events.get(timeout=timeout)
        except queue.Empty:
            return False
        if isinstance(event, Shutdown):
            return False
        self._dispatch(event)
        return True

    def drain(self) -> int:
        """Handle everything queued right now. Returns the number handled."""
        handled = 0
        while self.process_next(timeout=0):
            handled += 1
        return handled

    def run(self) -> None:
        """Loop until a Shutdown event arrives."""
        logger.info("Control loop running.")
        while True:
            event = self._events.get()
            if isinstance(event, Shutdown):
                break
            try:
                self._dispatch(event)
            except Exception:
                logger.exception(f"Unhandled error while processing {type(event).__name__}")
        logger.info("Control loop stopped.")

    def start(self) -> None:
        """Run the control loop on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self.run, name="nav-control", daemon=True)
        self._thread.start()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the control thread (if any) and release the location subscription."""
        if self._thread is not None:
            self.post(Shutdown())
            self._thread.join(timeout)
            self._thread = None
        self._unsubscribe()

    # ------------------------------------------------------------------
    # Dispatch: control thread only
    # ------------------------------------------------------------------

    def _dispatch(self, event: object) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning(f"No handler for event {event!r}")
            return
        before = self.session.state
        handler(event)
        after = self.session.state
        if after is not before:
            self.listener.on_state_changed(after)

    def _on_point_selected(self, event: PointSelected) -> None:
        state = self.session.state
        if not self.session.select_point(event.coord):
            return
        role = "Origin" if state is SessionState.AWAITING_ORIGIN else "Destination"
        old = self._markers.pop(role, None)
        if old is not None:
            self._map.remove_marker(old)
        self._markers[role] = self._map.add_marker(event.coord, role)

    def _on_position_known(self, event: PositionKnown) -> None:
        self.session.update_position(event.coord)
        self._map.move_camera(event.coord, self.config.camera_zoom)
        logger.info(f"Current location obtained: {event.coord}")

    def _on_start_requested(self, event: StartRequested) -> None:
        try:
            self.session.request_start()
        except InvalidStateError as e:
            logger.warning(f"Start rejected: {e}")
            self.listener.on_start_rejected(e)

    def _on_route_resolved(self, event: RouteResolved) -> None:
        result = self.session.on_route_resolved(event)
        if result is None:
            return
        if not result.ok:
            self.listener.on_route_failed(result.error, result.diagnostics)
            return

        self._clear_line("_route_line")
        self._route_line = self._map.draw_polyline(
            result.route.points, self.config.route_color, self.config.route_width,
        )
        self._subscription = self._location.subscribe(
            lambda fix: self.post(FixReceived(fix))
        )
        self.listener.on_route_ready(result.route)

    def _on_fix_received(self, event: FixReceived) -> None:
        update = self.session.on_fix(event.fix)
        if update is None or not update.accepted:
            return
        trace = self.session.trace
        if len(trace) >= 2:
            self._clear_line("_trace_line")
            self._trace_line = self._map.draw_polyline(
                [f.coord for f in trace], self.config.trace_color, self.config.trace_width,
            )
        self.listener.on_track_update(update, trace)

    def _on_stop_requested(self, event: StopRequested) -> None:
        self._unsubscribe()
        summary = self.session.request_stop()
        self._clear_line("_route_line")
        self._clear_line("_trace_line")
        for handle in self._markers.values():
            self._map.remove_marker(handle)
        self._markers.clear()
        if summary is not None:
            self.listener.on_trip_finished(summary)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _clear_line(self, attr: str) -> None:
        handle = getattr(self, attr)
        if handle is not None:
            self._map.remove_polyline(handle)
            setattr(self, attr, None)

    def _unsubscribe(self) -> None:
        if self._subscription is not None:
            self._location.unsubscribe(self._subscription)
            self._subscription = None
