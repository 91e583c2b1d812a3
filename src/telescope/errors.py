"""Error taxonomy for the astrometry client."""


class TelescopeError(Exception):
    """Base class for all client errors."""


class ValidationError(TelescopeError, ValueError):
    """Raised when caller input is malformed."""


class FileReadError(TelescopeError, OSError):
    """Raised when a local source file cannot be opened or read."""


class TransportError(TelescopeError):
    """Raised when the HTTP exchange itself fails."""


class RequestTimeoutError(TransportError, TimeoutError):
    """Raised when a request exceeds the configured timeout."""


class DecodeError(TelescopeError):
    """Raised when a response body does not match the expected shape."""


class ServiceError(TelescopeError):
    """Raised when the service answers with an error body."""

    def __init__(self, message: str) -> None:
        super().__init__(f"error response from astrometry: {message}")
        self.message = message


class AuthError(TelescopeError):
    """Raised when a session cannot be established or re-established."""


class NotFoundError(TelescopeError, LookupError):
    """Raised when a submission key is not tracked."""

    def __init__(self, key: str) -> None:
        super().__init__(f"submission not tracked: {key}")
        self.key = key


class FormatError(TelescopeError):
    """Raised when image bytes cannot be decoded as FITS."""
