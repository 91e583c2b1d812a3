"""Request construction for astrometry.net API operations."""

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import httpx

from telescope.errors import FileReadError, ValidationError

# Consent cannot be collected per user, so every flag is denied.
_CONSENT_FLAGS: dict[str, str] = {
    "allow_commercial_use": "n",
    "allow_modifications": "n",
    "publicly_visible": "n",
}


class Operation(Enum):
    """Closed set of API operations with their method and path template."""

    LOGIN = ("POST", "/login")
    UPLOAD = ("POST", "/upload")
    URL_UPLOAD = ("POST", "/url_upload")
    SUBMISSION_STATUS = ("GET", "/submissions/{id}")
    JOB_STATUS = ("GET", "/jobs/{id}")
    CALIBRATION = ("GET", "/jobs/{id}/calibration")
    TAGS = ("GET", "/jobs/{id}/machine_tags")
    KNOWN_OBJECTS = ("GET", "/jobs/{id}/objects_in_field")
    ANNOTATIONS = ("GET", "/jobs/{id}/annotations")
    JOB_RESULTS = ("GET", "/jobs/{id}/info")

    def __init__(self, method: str, template: str) -> None:
        self.method = method
        self.template = template

    @property
    def templated(self) -> bool:
        return "{id}" in self.template

    @property
    def needs_session(self) -> bool:
        return self in {Operation.UPLOAD, Operation.URL_UPLOAD}


@dataclass(frozen=True)
class ApiRequest:
    """Transport-neutral description of one outbound call."""

    operation: Operation
    method: str
    path: str
    form: dict[str, str] | None = None
    upload_path: Path | None = None


def build_request(operation: Operation, **params: object) -> ApiRequest:
    """Build a request for an operation, validating its parameters."""
    if not isinstance(operation, Operation):
        raise ValidationError(f"Unknown operation: {operation!r}")

    if operation.templated:
        path = operation.template.format(id=_resource_id(params.get("id")))
        return ApiRequest(operation=operation, method=operation.method, path=path)

    if operation is Operation.LOGIN:
        api_key = _required_text(params, "api_key")
        return ApiRequest(
            operation=operation,
            method=operation.method,
            path=operation.template,
            form=_request_json({"apikey": api_key}),
        )

    session = _required_text(params, "session")
    if operation is Operation.URL_UPLOAD:
        url = _required_text(params, "url")
        return ApiRequest(
            operation=operation,
            method=operation.method,
            path=operation.template,
            form=_request_json({"session": session, "url": url, **_CONSENT_FLAGS}),
        )

    upload_path = _readable_file(params.get("path"))
    return ApiRequest(
        operation=operation,
        method=operation.method,
        path=operation.template,
        form=_request_json({"session": session, **_CONSENT_FLAGS}),
        upload_path=upload_path,
    )


@contextmanager
def open_http_request(
    request: ApiRequest, http_client: httpx.Client
) -> Iterator[httpx.Request]:
    """Yield an httpx request, keeping any upload file open while it is sent.

    The file is streamed by httpx's multipart encoder, which also sets the
    boundary and the Content-Type header.
    """
    if request.upload_path is None:
        yield http_client.build_request(
            request.method, request.path, data=request.form
        )
        return

    try:
        handle = request.upload_path.open("rb")
    except OSError as exc:
        raise FileReadError(f"Cannot open {request.upload_path}: {exc}") from exc
    with handle:
        files = {"file": (request.upload_path.name, handle, "application/octet-stream")}
        yield http_client.build_request(
            request.method, request.path, data=request.form, files=files
        )


def _request_json(payload: dict[str, str]) -> dict[str, str]:
    return {"request-json": json.dumps(payload)}


def _required_text(params: dict[str, object], name: str) -> str:
    value = params.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing required parameter: {name}")
    return value


def _resource_id(value: object) -> str:
    """Normalize a submission or job id for path substitution."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid id: {value!r}")
    if isinstance(value, int) and value >= 0:
        return str(value)
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return value
    raise ValidationError(f"Invalid id: {value!r}")


def _readable_file(value: object) -> Path:
    if not isinstance(value, str | os.PathLike):
        raise ValidationError("Missing required parameter: path")
    path = Path(value)
    if not path.is_file():
        raise FileReadError(f"No such file: {path}")
    if not os.access(path, os.R_OK):
        raise FileReadError(f"File is not readable: {path}")
    return path
