"""Shared fixtures for the navigation engine tests."""

import pytest

from navigation.guidance.models import Coord

from nav_fakes import FakeClock, FakeRouteClient, RecordingListener


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_client():
    return FakeRouteClient()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def origin():
    return Coord(39.9088, 116.3975)


@pytest.fixture
def destination():
    return Coord(39.9167, 116.3970)
