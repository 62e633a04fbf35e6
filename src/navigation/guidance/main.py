# main.py
# Entry point: simulates one trip through the navigation engine.
# Needs AMAP_API_KEY in the environment (or a .env file) for a real route.
#
# Run with: python -m navigation.guidance.main   (from the src directory)

import logging
from typing import List

from .models import Coord, FetchDiagnostics, Fix, Route, SessionState, TrackUpdate
from .errors import InvalidStateError, RouteError
from .nav_config import NavConfig
from .nav_logger import NavLogger, attach_sink
from .navigator import NavigationListener, Navigator
from .route_client import RouteClient
from .session import epoch_millis
from .simulation import LoggingMapSurface, ReplayLocationProvider
from .trip_summary import TripSummary

# ------------------------------------------------------------------
# Logging setup: configure once here, all modules inherit
# ------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

# ------------------------------------------------------------------
# Simulation coordinates (Tiananmen → Forbidden City, Beijing)
# ------------------------------------------------------------------
test_locations = [
    Coord(39.908823, 116.397470),   # Start
    Coord(39.909410, 116.397455),
    Coord(39.910120, 116.397431),
    Coord(39.910125, 116.397431),   # standing still
    Coord(39.911870, 116.397380),
    Coord(39.913560, 116.397262),
    Coord(39.915140, 116.397118),
    Coord(39.916668, 116.397026),   # Arrival
]

ORIGIN      = test_locations[0]
DESTINATION = test_locations[-1]
FIX_INTERVAL_MS = 3000


class ConsoleListener(NavigationListener):
    def on_state_changed(self, state: SessionState) -> None:
        print(f"[Nav] State: {state.name}")

    def on_route_ready(self, route: Route) -> None:
        print(f"[Nav] Route ready: {len(route)} points, {route.length_m():.0f} m.")

    def on_route_failed(self, error: RouteError, diagnostics: FetchDiagnostics) -> None:
        print(f"[Nav] Could not get a route ({error.kind}): {error}")

    def on_start_rejected(self, error: InvalidStateError) -> None:
        print(f"[Nav] Start rejected: {error}")

    def on_track_update(self, update: TrackUpdate, trace: List[Fix]) -> None:
        print(f"  +{update.distance_delta_m:6.1f} m  total {update.total_distance_m:7.1f} m  "
              f"{update.speed_kmh:5.1f} km/h")

    def on_trip_finished(self, summary: TripSummary) -> None:
        print("\n--- Trip summary ---")
        for key, value in summary.to_dict().items():
            print(f"    {key}: {value}")


def main() -> None:
    # 1. Config and diagnostics
    config = NavConfig.from_env()
    diagnostics = NavLogger(config)
    attach_sink(diagnostics)

    # 2. Collaborators
    client = RouteClient(config)
    surface = LoggingMapSurface()
    start_ms = epoch_millis()
    provider = ReplayLocationProvider(test_locations, interval_ms=FIX_INTERVAL_MS, start_ms=start_ms)
    sim_time = {"now": start_ms}

    nav = Navigator(
        client, surface, provider, config,
        listener=ConsoleListener(),
        clock=lambda: sim_time["now"],
    )

    # 3. Locate, pick origin and destination, request a route
    nav.locate()
    surface.click(ORIGIN)
    surface.click(DESTINATION)
    nav.request_start()
    nav.drain()
    while nav.session.fetch_pending:
        nav.process_next(timeout=1.0)

    if nav.state is not SessionState.NAVIGATING:
        print("[Main] Could not start navigation, see the log above.")
        client.close()
        return

    # 4. GPS loop: replace with a real location feed in production
    print("\n--- GPS Loop Active ---")
    provider.replay()
    nav.drain()

    # 5. Stop and summarise
    sim_time["now"] = start_ms + (len(test_locations) - 1) * FIX_INTERVAL_MS
    nav.request_stop()
    nav.drain()

    print(f"\n    {len(diagnostics)} diagnostic lines buffered.")
    nav.close()
    client.close()


if __name__ == "__main__":
    main()
