"""HTTP transport for the astrometry.net API."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from telescope.errors import RequestTimeoutError, TransportError
from telescope.services.requests import ApiRequest, open_http_request


class AstrometryTransport(Protocol):
    """Interface for sending built requests and returning raw bodies."""

    def send(self, request: ApiRequest) -> bytes:
        """Send a request and return the raw response body."""

    def close(self) -> None:
        """Release network resources."""


@dataclass
class HttpxAstrometryTransport(AstrometryTransport):
    """HTTPX-backed transport with a bounded timeout."""

    http_client: httpx.Client

    @classmethod
    def create(
        cls, base_url: str, timeout_seconds: float = 60.0
    ) -> "HttpxAstrometryTransport":
        """Create a transport with a managed httpx session."""
        return cls(
            http_client=httpx.Client(base_url=base_url, timeout=timeout_seconds)
        )

    def send(self, request: ApiRequest) -> bytes:
        """Send a request; the service reports logical failures in the body."""
        try:
            with open_http_request(request, self.http_client) as http_request:
                response = self.http_client.send(http_request)
                response.raise_for_status()
                return response.content
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                f"{request.method} {request.path} timed out"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"{request.method} {request.path} returned "
                f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                f"{request.method} {request.path} failed: {exc}"
            ) from exc

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.http_client.close()
