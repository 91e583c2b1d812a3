"""Shared test fixtures."""

import json
from dataclasses import dataclass, field

import httpx
import pytest

from telescope.adapters.astrometry_transport import HttpxAstrometryTransport
from telescope.client import AstrometryClient
from telescope.config import Settings
from telescope.services.requests import ApiRequest

BASE_URL = "http://astrometry.test/api"

LOGIN_PAYLOAD = {"status": "success", "message": "authenticated user", "session": "s1"}
EXPIRED_PAYLOAD = {
    "status": "error",
    "errormessage": "no session with key \"s1\"",
}
CALIBRATION_PAYLOAD = {
    "parity": 1.0,
    "orientation": 45.3,
    "pixscale": 1.7,
    "radius": 2.0,
    "ra": 180.5,
    "dec": -12.25,
}
JOB_RESULTS_PAYLOAD = {
    "status": "success",
    "machine_tags": ["NGC 1976", "M 42"],
    "calibration": CALIBRATION_PAYLOAD,
    "tags": ["NGC 1976", "M 42", "orion"],
    "original_filename": "m42.fits",
    "objects_in_field": ["NGC 1976", "M 42"],
}
ANNOTATIONS_PAYLOAD = {
    "annotations": [
        {
            "radius": 12.5,
            "type": "ngc",
            "names": ["NGC 1976", "M 42"],
            "pixelx": 512.25,
            "pixely": 384.75,
        }
    ]
}


@dataclass
class FakeAstrometryService:
    """Scripted astrometry.net API backed by httpx.MockTransport.

    Each path holds a queue of bodies; the last body repeats once the queue
    drains.
    """

    routes: dict[str, list[object]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def respond(self, path: str, *bodies: object) -> None:
        self.routes.setdefault(path, []).extend(bodies)

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if _api_path(request) == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        queue = self.routes.get(_api_path(request))
        if not queue:
            return httpx.Response(404, text="not found")
        body = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(body, bytes):
            return httpx.Response(200, content=body)
        return httpx.Response(200, json=body)

    def transport(self) -> HttpxAstrometryTransport:
        http_client = httpx.Client(
            transport=httpx.MockTransport(self.handler), base_url=BASE_URL
        )
        return HttpxAstrometryTransport(http_client=http_client)


@dataclass
class RecordingTransport:
    """Transport fake returning queued raw bodies for built requests."""

    bodies: list[bytes] = field(default_factory=list)
    sent: list[ApiRequest] = field(default_factory=list)
    closed: bool = False

    def send(self, request: ApiRequest) -> bytes:
        self.sent.append(request)
        return self.bodies.pop(0)

    def close(self) -> None:
        self.closed = True


def _api_path(request: httpx.Request) -> str:
    return request.url.path.removeprefix("/api")


def form_json(request: httpx.Request) -> dict[str, object]:
    """Decode the request-json field of a form-encoded request."""
    fields = httpx.QueryParams(request.content.decode())
    return json.loads(fields["request-json"])


@pytest.fixture
def settings() -> Settings:
    return Settings(
        astrometry_api_key="fake-api-key",
        astrometry_base_url=BASE_URL,
    )


@pytest.fixture
def service() -> FakeAstrometryService:
    fake = FakeAstrometryService()
    fake.respond("/login", LOGIN_PAYLOAD)
    return fake


@pytest.fixture
def client(service: FakeAstrometryService) -> AstrometryClient:
    return AstrometryClient.create(
        api_key="fake-api-key", transport=service.transport()
    )
