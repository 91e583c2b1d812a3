"""Two-phase decoding of astrometry.net response bodies."""

from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from telescope.domain.responses import ErrorResponse
from telescope.errors import DecodeError, ServiceError

ERROR_STATUS = "error"

ModelT = TypeVar("ModelT", bound=BaseModel)


def decode_response(raw: bytes, model: type[ModelT]) -> ModelT:
    """Decode a body, surfacing service-level errors first.

    The service answers HTTP 200 whatever the outcome, so the body is first
    read as the generic error shape. Only when its status is not ``"error"``
    are the same bytes decoded into ``model``.
    """
    try:
        envelope = ErrorResponse.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise DecodeError(f"Malformed response body: {exc}") from exc

    if envelope.status == ERROR_STATUS:
        raise ServiceError(envelope.errormessage)

    try:
        return model.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise DecodeError(
            f"Response does not match {model.__name__}: {exc}"
        ) from exc
