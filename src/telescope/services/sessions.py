"""Session token lifecycle and authenticated call dispatch."""

import logging
import threading
from dataclasses import dataclass, field
from typing import TypeVar

from pydantic import BaseModel

from telescope.adapters.astrometry_transport import AstrometryTransport
from telescope.domain.responses import LoginResponse
from telescope.errors import AuthError, ServiceError, ValidationError
from telescope.services.decoder import decode_response
from telescope.services.requests import Operation, build_request

SESSION_EXPIRED_PHRASE = "no session with key"

ModelT = TypeVar("ModelT", bound=BaseModel)

_logger = logging.getLogger(__name__)


def is_session_expired(message: str) -> bool:
    """Return True when a service error message reports an unknown session.

    The service has no status code for this, so the message text is the
    only signal.
    """
    return SESSION_EXPIRED_PHRASE in message


@dataclass
class SessionManager:
    """Owns the session token and re-authenticates once on expiry."""

    api_key: str
    transport: AstrometryTransport
    max_reauthentications: int = 1
    _token: str | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ValidationError("An API key is required")

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    def authenticate(self) -> str:
        """Log in with the API key and store the new session token."""
        request = build_request(Operation.LOGIN, api_key=self.api_key)
        with self._lock:
            self._token = None
            raw = self.transport.send(request)
            try:
                response = decode_response(raw, LoginResponse)
            except ServiceError as exc:
                raise AuthError(f"Authentication failed: {exc.message}") from exc
            if not response.session:
                raise AuthError("Authentication returned no session key")
            self._token = response.session
        _logger.info("Authenticated with astrometry.net")
        return response.session

    def ensure_session(self) -> str:
        """Return the current token, authenticating first if needed."""
        token = self._token
        if token is None:
            return self.authenticate()
        return token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None

    def call(
        self, operation: Operation, model: type[ModelT], **params: object
    ) -> ModelT:
        """Send an operation and decode it, re-authenticating on expiry.

        An expired session triggers a fresh login and a single retry of the
        same call. If the retried call is also rejected for an unknown
        session, ``AuthError`` is raised.
        """
        reauthentications = 0
        while True:
            token = self.ensure_session()
            if operation.needs_session:
                params["session"] = token
            request = build_request(operation, **params)
            try:
                return decode_response(self.transport.send(request), model)
            except ServiceError as exc:
                if not is_session_expired(exc.message):
                    raise
                if reauthentications >= self.max_reauthentications:
                    raise AuthError(
                        f"Session rejected after re-authentication: {exc.message}"
                    ) from exc
                reauthentications += 1
                _logger.warning(
                    "Session expired during %s, re-authenticating", operation.name
                )
                self.invalidate()
