"""Dependency container wiring for the client."""

from collections.abc import Callable
from dataclasses import dataclass

from telescope.adapters.astrometry_transport import (
    AstrometryTransport,
    HttpxAstrometryTransport,
)
from telescope.client import AstrometryClient
from telescope.config import Settings
from telescope.services.reviews import ResultAggregator
from telescope.services.sessions import SessionManager
from telescope.services.tracker import SubmissionTracker


@dataclass
class AppContainer:
    """Holds client-wide dependencies."""

    settings: Settings
    transport: AstrometryTransport
    session_manager: SessionManager
    submission_tracker: SubmissionTracker
    result_aggregator: ResultAggregator
    client: AstrometryClient
    close_resources: Callable[[], None]


def build_container(
    settings: Settings | None = None,
    transport: AstrometryTransport | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_transport = transport or HttpxAstrometryTransport.create(
        base_url=resolved_settings.astrometry_base_url,
        timeout_seconds=resolved_settings.request_timeout_seconds,
    )
    session_manager = SessionManager(
        api_key=resolved_settings.astrometry_api_key,
        transport=resolved_transport,
    )
    submission_tracker = SubmissionTracker()
    client = AstrometryClient(
        transport=resolved_transport,
        sessions=session_manager,
        tracker=submission_tracker,
    )

    def close_resources() -> None:
        client.close()

    return AppContainer(
        settings=resolved_settings,
        transport=resolved_transport,
        session_manager=session_manager,
        submission_tracker=submission_tracker,
        result_aggregator=client.aggregator,
        client=client,
        close_resources=close_resources,
    )
