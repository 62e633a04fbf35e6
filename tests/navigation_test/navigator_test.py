"""Navigator control-loop tests: event marshaling, map and location plumbing."""

import threading

import pytest

from navigation.guidance.errors import InvalidStateError, NoRouteFound
from navigation.guidance.events import FixReceived
from navigation.guidance.models import Coord, Fix, SessionState
from navigation.guidance.nav_config import NavConfig
from navigation.guidance.navigator import Navigator
from navigation.guidance.route_client import RouteClient
from navigation.guidance.simulation import LoggingMapSurface, ReplayLocationProvider

from nav_fakes import SCENARIO_1, FakeHttp, FakeResponse, failed_result, north_of, ok_result

START = Coord(39.9088, 116.3975)


@pytest.fixture
def surface():
    return LoggingMapSurface()


@pytest.fixture
def provider():
    positions = [START, north_of(START, 0.5), north_of(START, 10), north_of(START, 40)]
    return ReplayLocationProvider(positions, interval_ms=5000, start_ms=0)


@pytest.fixture
def nav(fake_client, surface, provider, listener, clock):
    clock.now = 0
    return Navigator(fake_client, surface, provider, listener=listener, clock=clock)


def ready(nav, surface, origin, destination):
    surface.click(origin)
    surface.click(destination)
    nav.drain()


def navigating(nav, surface, fake_client, origin, destination):
    ready(nav, surface, origin, destination)
    nav.request_start()
    nav.drain()
    fake_client.complete(ok_result([origin, destination]))
    nav.drain()
    assert nav.state is SessionState.NAVIGATING


class TestSelection:
    def test_clicks_become_markers(self, nav, surface, listener, origin, destination):
        ready(nav, surface, origin, destination)
        assert nav.state is SessionState.READY
        labels = sorted(label for _, label in surface.markers.values())
        assert labels == ["Destination", "Origin"]
        assert listener.states == [SessionState.AWAITING_DESTINATION, SessionState.READY]

    def test_nothing_happens_before_drain(self, nav, surface, origin):
        surface.click(origin)
        assert nav.state is SessionState.AWAITING_ORIGIN
        assert nav.drain() == 1
        assert nav.state is SessionState.AWAITING_DESTINATION

    def test_locate_moves_camera_and_records_position(self, nav, surface):
        nav.locate()
        nav.drain()
        assert surface.camera == (START, NavConfig().camera_zoom)
        assert nav.session.last_known_position == START

    def test_locate_without_fix(self, fake_client, surface, listener):
        nav = Navigator(fake_client, surface, ReplayLocationProvider([]), listener=listener)
        nav.locate()
        assert nav.drain() == 0
        assert nav.session.last_known_position is None


class TestStart:
    def test_rejected_start_is_reported(self, nav, listener):
        nav.request_start()
        nav.drain()
        assert len(listener.rejections) == 1
        assert isinstance(listener.rejections[0], InvalidStateError)
        assert nav.state is SessionState.AWAITING_ORIGIN

    def test_route_drawn_and_fixes_subscribed(self, nav, surface, provider, fake_client, listener, origin, destination):
        navigating(nav, surface, fake_client, origin, destination)
        assert list(surface.polylines.values()) == [(origin, destination)]
        assert provider.subscribed
        assert len(listener.routes) == 1

    def test_failed_route_reported(self, nav, surface, provider, fake_client, listener, origin, destination):
        ready(nav, surface, origin, destination)
        nav.request_start()
        nav.drain()
        fake_client.complete(failed_result(NoRouteFound("empty")))
        nav.drain()
        assert nav.state is SessionState.READY
        assert isinstance(listener.failures[0][0], NoRouteFound)
        assert not surface.polylines
        assert not provider.subscribed


class TestTracking:
    def test_replayed_fixes_update_trip(self, nav, surface, provider, fake_client, listener, origin, destination):
        nav.locate()
        navigating(nav, surface, fake_client, origin, destination)
        provider.replay()
        nav.drain()

        assert nav.session.accumulated_distance_m == pytest.approx(40, abs=1e-6)
        update, trace = listener.updates[2]
        assert update.total_distance_m == pytest.approx(10, abs=1e-6)
        assert update.speed_kmh == pytest.approx(7.2, abs=1e-6)
        # route + trace
        assert len(surface.polylines) == 2

    def test_stop_cleans_up_and_summarises(self, nav, surface, provider, fake_client, listener, clock, origin, destination):
        nav.locate()
        navigating(nav, surface, fake_client, origin, destination)
        provider.replay()
        nav.drain()
        clock.now = 15_000

        nav.request_stop()
        nav.drain()
        summary = listener.summaries[0]
        assert summary.duration_ms == 15_000
        assert summary.distance_m == pytest.approx(40, abs=1e-6)
        assert not surface.polylines
        assert not surface.markers
        assert not provider.subscribed
        assert nav.state is SessionState.AWAITING_ORIGIN

    def test_wall_clock_session_with_provider_timestamps(self, fake_client, surface, listener, origin, destination):
        positions = [north_of(START, m) for m in (0, 100, 200, 300)]
        provider = ReplayLocationProvider(positions)
        nav = Navigator(fake_client, surface, provider, listener=listener)
        nav.locate()
        navigating(nav, surface, fake_client, origin, destination)
        provider.replay()
        nav.drain()
        assert nav.session.accumulated_distance_m == pytest.approx(300, abs=1e-6)
        assert len(listener.updates) == 4

    def test_fix_queued_behind_stop_is_discarded(self, nav, surface, fake_client, listener, origin, destination):
        navigating(nav, surface, fake_client, origin, destination)
        nav.request_stop()
        nav.post(FixReceived(Fix(north_of(origin, 100), 50_000)))
        nav.drain()
        assert listener.updates == []
        assert nav.session.trace == []


class TestThreadedLoop:
    def test_worker_result_marshaled_to_control_thread(self, surface, provider, listener, origin, destination):
        config = NavConfig(api_key="k")
        client = RouteClient(config, session=FakeHttp(response=FakeResponse(SCENARIO_1)))
        nav = Navigator(client, surface, provider, config, listener=listener)

        control_threads = set()
        real_handler = nav.session.on_route_resolved

        def spy(event):
            control_threads.add(threading.current_thread().name)
            return real_handler(event)

        nav.session.on_route_resolved = spy
        nav.start()
        try:
            surface.click(origin)
            surface.click(destination)
            nav.request_start()
            assert listener.route_ready.wait(timeout=5)
            assert control_threads == {"nav-control"}
            assert nav.state is SessionState.NAVIGATING
            assert len(listener.routes[0]) == 3
        finally:
            nav.close()
            client.close()
