# route_client.py
# HTTP adapter for the AMap driving directions service.
# Sole responsibility: build the request, perform it, and turn the JSON
# answer into a Route. No session or rendering logic lives here.

import logging
import socket
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterator, List, Optional

import requests

from .errors import (
    ApiError,
    HttpStatusError,
    NoRouteFound,
    ParseError,
    RouteError,
    TransportError,
    TransportFailure,
)
from .models import Coord, FetchDiagnostics, Route, RouteResult, in_range
from .nav_config import NavConfig

logger = logging.getLogger(__name__)

# Fixed pair used by probe(): Tiananmen -> Forbidden City, Beijing.
PROBE_ORIGIN = Coord(39.908823, 116.397470)
PROBE_DESTINATION = Coord(39.916668, 116.397026)

ERROR_BODY_LIMIT = 500


# ---------------------------------------------------------------------------
# Wire helpers
# ---------------------------------------------------------------------------

def format_lon_lat(coord: Coord) -> str:
    """Service wire format: longitude first, then latitude."""
    return f"{coord.lon},{coord.lat}"


def mask_key(key: str) -> str:
    """Keep just enough of an API key to tell keys apart in logs."""
    if len(key) <= 10:
        return "***"
    return f"{key[:6]}...{key[-4:]}"


def _optional_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_token(token: str) -> Optional[Coord]:
    """'lon,lat' -> Coord, or None when the token is unusable."""
    parts = token.strip().split(",")
    if len(parts) != 2:
        return None
    try:
        lon = float(parts[0])
        lat = float(parts[1])
    except ValueError:
        return None
    if not in_range(lat, lon):
        return None
    return Coord(lat, lon)


def parse_directions(payload: Any, diagnostics: Optional[FetchDiagnostics] = None) -> Route:
    """
    Turn a decoded directions response into a Route.

    Only the first path is used. Steps without a polyline and tokens that are
    not two in-range numbers are skipped and counted in diagnostics.

    Raises:
        ApiError:     status is not "1".
        ParseError:   the JSON does not have the expected structure.
        NoRouteFound: no usable coordinate in the first path.
    """
    diag = diagnostics if diagnostics is not None else FetchDiagnostics()

    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object, got {type(payload).__name__}")
    if "status" not in payload:
        raise ParseError(f"Response has no 'status' field (fields: {sorted(payload)})")

    status = str(payload["status"])
    diag.api_status = status
    diag.info = payload.get("info")
    diag.infocode = payload.get("infocode")

    if status != "1":
        error = ApiError(diag.infocode, diag.info)
        logger.error(f"Directions API error: status={status} info={diag.info} "
                     f"infocode={diag.infocode} ({error.description})")
        raise error

    route = payload.get("route")
    if not isinstance(route, dict):
        raise ParseError("Response has no 'route' object")

    paths = route.get("paths")
    if not isinstance(paths, list):
        raise ParseError(f"'route' has no 'paths' array (fields: {sorted(route)})")
    if not paths:
        raise NoRouteFound("The service returned no paths")

    path = paths[0]
    if not isinstance(path, dict):
        raise ParseError("paths[0] is not an object")
    if len(paths) > 1:
        logger.debug(f"Ignoring {len(paths) - 1} alternative path(s).")

    steps = path.get("steps")
    if not isinstance(steps, list):
        raise ParseError(f"paths[0] has no 'steps' array (fields: {sorted(path)})")

    points: List[Coord] = []
    for i, step in enumerate(steps):
        polyline = step.get("polyline") if isinstance(step, dict) else None
        if not isinstance(polyline, str) or not polyline:
            logger.warning(f"Step {i} has no polyline, skipped.")
            diag.skipped_steps += 1
            continue

        step_valid = step_invalid = 0
        for token in polyline.split(";"):
            coord = _parse_token(token)
            if coord is None:
                logger.warning(f"Step {i}: unusable coordinate {token!r}")
                step_invalid += 1
                continue
            points.append(coord)
            step_valid += 1

        diag.valid_coords += step_valid
        diag.invalid_coords += step_invalid
        logger.debug(f"Step {i}: {step_valid} valid, {step_invalid} invalid coordinates.")

    logger.debug(f"Parsed {diag.valid_coords} coordinates "
                 f"({diag.invalid_coords} rejected, {diag.skipped_steps} steps skipped).")

    if not points:
        raise NoRouteFound("Status was OK but no usable coordinate was found")

    return Route(
        points=tuple(points),
        distance_m=_optional_float(path.get("distance")),
        duration_s=_optional_float(path.get("duration")),
        strategy=path.get("strategy"),
    )


def _causes(exc: BaseException) -> Iterator[BaseException]:
    """Walk an exception and everything it wraps (urllib3 nests deeply)."""
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        for linked in (current.__cause__, current.__context__, getattr(current, "reason", None)):
            if isinstance(linked, BaseException):
                stack.append(linked)
        stack.extend(arg for arg in current.args if isinstance(arg, BaseException))


def classify_transport_error(exc: BaseException) -> TransportError:
    """Map a requests/socket exception onto the transport taxonomy."""
    if isinstance(exc, (requests.exceptions.Timeout, socket.timeout)):
        return TransportError(TransportFailure.TIMEOUT, str(exc))
    for cause in _causes(exc):
        if isinstance(cause, socket.gaierror):
            return TransportError(TransportFailure.DNS_FAILURE, str(exc))
        if isinstance(cause, ConnectionRefusedError):
            return TransportError(TransportFailure.CONNECTION_REFUSED, str(exc))
    return TransportError(TransportFailure.IO_ERROR, str(exc))


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class RouteClient:
    """
    Directions service client.

    Stateless between calls: the only shared objects are the HTTP session and
    the worker pool, neither of which holds per-request data.

    Usage:
        client = RouteClient(NavConfig.from_env())
        route = client.fetch_route(origin, destination)          # blocking
        client.fetch_route_async(origin, destination, callback)  # worker thread

    Args:
        config:  NavConfig with URL, key and timeouts.
        session: Object with a requests-compatible get(); defaults to a
                 fresh requests.Session.
    """

    def __init__(self, config: Optional[NavConfig] = None, session=None) -> None:
        self.config = config or NavConfig()
        self._http = session or requests.Session()
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.fetch_workers,
            thread_name_prefix="route-fetch",
        )

    # ------------------------------------------------------------------
    # Request construction
    # ------------------------------------------------------------------

    def build_params(self, origin: Coord, destination: Coord) -> Dict[str, str]:
        return {
            "origin": format_lon_lat(origin),
            "destination": format_lon_lat(destination),
            "output": self.config.output,
            "key": self.config.api_key,
        }

    # ------------------------------------------------------------------
    # Blocking fetch
    # ------------------------------------------------------------------

    def fetch_route(
        self,
        origin: Coord,
        destination: Coord,
        diagnostics: Optional[FetchDiagnostics] = None,
    ) -> Route:
        """
        Request a driving route and parse it.

        Args:
            origin:      Start coordinate.
            destination: End coordinate.
            diagnostics: Optional record filled in as the request progresses.

        Returns:
            Route in step-then-token order.

        Raises:
            RouteError subclass describing the failure.
        """
        diag = diagnostics if diagnostics is not None else FetchDiagnostics()
        params = self.build_params(origin, destination)
        diag.params = dict(params, key=mask_key(params["key"]))
        logger.info(f"Requesting route {origin} -> {destination} "
                    f"(origin={params['origin']} destination={params['destination']})")

        started = time.monotonic()
        try:
            response = self._http.get(
                self.config.base_url,
                params=params,
                timeout=self.config.timeouts,
                headers={"User-Agent": self.config.user_agent},
            )
        except (requests.exceptions.RequestException, OSError) as e:
            error = classify_transport_error(e)
            logger.error(f"Transport failure ({error.failure.value}) after "
                         f"{(time.monotonic() - started) * 1000:.0f} ms: {e}")
            raise error from e
        finally:
            diag.elapsed_ms = (time.monotonic() - started) * 1000

        diag.http_status = response.status_code
        logger.debug(f"HTTP {response.status_code} in {diag.elapsed_ms:.0f} ms.")

        if not 200 <= response.status_code < 300:
            body = (response.text or "")[:ERROR_BODY_LIMIT]
            diag.error_body = body
            error = HttpStatusError(response.status_code, body)
            logger.error(f"Directions request failed: {error}")
            raise error

        if not response.text:
            raise ParseError("Empty response body")
        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"Response is not valid JSON: {e}") from e

        route = parse_directions(payload, diag)
        logger.info(f"Route has {len(route)} points, "
                    f"from {route.origin} to {route.destination}.")
        return route

    # ------------------------------------------------------------------
    # Asynchronous fetch: never raises across the worker boundary
    # ------------------------------------------------------------------

    def resolve(self, origin: Coord, destination: Coord) -> RouteResult:
        """Blocking fetch that reports failures as a RouteResult."""
        diag = FetchDiagnostics()
        try:
            route = self.fetch_route(origin, destination, diag)
        except RouteError as e:
            logger.warning(f"Route fetch failed [{e.kind}]: {e} | {diag.to_dict()}")
            return RouteResult(route=None, error=e, diagnostics=diag)
        except Exception as e:
            logger.exception(f"Unexpected error during route fetch | {diag.to_dict()}")
            error = TransportError(TransportFailure.IO_ERROR, f"{type(e).__name__}: {e}")
            return RouteResult(route=None, error=error, diagnostics=diag)
        return RouteResult(route=route, error=None, diagnostics=diag)

    def fetch_route_async(
        self,
        origin: Coord,
        destination: Coord,
        callback: Callable[[RouteResult], None],
    ) -> Future:
        """
        Run resolve() on the worker pool and hand the result to callback.

        The callback runs on the worker thread; callers marshal it onto their
        own thread.
        """
        def task() -> RouteResult:
            result = self.resolve(origin, destination)
            callback(result)
            return result

        return self._executor.submit(task)

    def probe(self) -> bool:
        """Fetch a short fixed route to check the key and connectivity."""
        logger.info("Probing directions service with a fixed test route.")
        result = self.resolve(PROBE_ORIGIN, PROBE_DESTINATION)
        if result.ok:
            logger.info(f"Probe succeeded: {len(result.route)} points.")
        else:
            logger.error(f"Probe failed: {result.error}")
        return result.ok

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        close = getattr(self._http, "close", None)
        if close is not None:
            close()
