"""Tests for container wiring."""

from telescope.adapters.astrometry_transport import HttpxAstrometryTransport
from telescope.config import Settings
from telescope.containers import build_container
from tests.conftest import FakeAstrometryService


def test_build_container_creates_client(settings: Settings) -> None:
    container = build_container(settings)

    assert isinstance(container.transport, HttpxAstrometryTransport)
    assert container.client.sessions is container.session_manager
    assert container.client.tracker is container.submission_tracker
    assert container.result_aggregator.tracker is container.submission_tracker
    assert container.transport.http_client.timeout.read == 60.0
    container.close_resources()
    assert container.transport.http_client.is_closed


def test_build_container_accepts_transport(settings: Settings) -> None:
    service = FakeAstrometryService()
    service.respond("/login", {"status": "success", "session": "abc"})
    container = build_container(settings, transport=service.transport())

    assert container.client.authenticate() == "abc"
    container.close_resources()
