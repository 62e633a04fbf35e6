# events.py
# Typed messages consumed by the Navigator control loop.
# Any thread may create and post them; only the control thread handles them.

from dataclasses import dataclass

from .models import Coord, Fix, RouteResult


@dataclass(frozen=True)
class PointSelected:
    coord: Coord


@dataclass(frozen=True)
class PositionKnown:
    """Current position from a one-shot location request."""
    coord: Coord


@dataclass(frozen=True)
class StartRequested:
    pass


@dataclass(frozen=True)
class StopRequested:
    pass


@dataclass(frozen=True)
class FixReceived:
    fix: Fix


@dataclass(frozen=True)
class RouteResolved:
    request_id: int
    result: RouteResult


@dataclass(frozen=True)
class Shutdown:
    pass
