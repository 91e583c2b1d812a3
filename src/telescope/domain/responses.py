"""Pydantic models for astrometry.net API payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Payload(BaseModel):
    """Lenient base: unknown keys are ignored and nulls fall back to defaults."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class ErrorResponse(_Payload):
    """Generic shape shared by every response body."""

    status: str = ""
    errormessage: str = ""


class LoginResponse(_Payload):
    """Login result carrying the session key."""

    status: str = ""
    message: str = ""
    session: str = ""


class UploadResponse(_Payload):
    """Upload result carrying the submission id."""

    status: str = ""
    subid: int = 0
    hash: str = ""


class SubmissionStatus(_Payload):
    """Progress of a submission and the jobs spawned for it."""

    processing_started: str = ""
    processing_finished: str = ""
    job_calibrations: list[list[int]] = Field(default_factory=list)
    jobs: list[int | None] = Field(default_factory=list)
    user: int = 0
    user_images: list[int] = Field(default_factory=list)

    @property
    def is_calibrated(self) -> bool:
        return any(record for record in self.job_calibrations)

    def first_job_id(self) -> int | None:
        for job_id in self.jobs:
            if job_id is not None:
                return job_id
        return None


class JobStatus(_Payload):
    """Status string of a single job."""

    status: str = ""


class Calibration(_Payload):
    """Astrometric solution of an image."""

    parity: float = 0.0
    orientation: float = 0.0
    pixscale: float = 0.0
    radius: float = 0.0
    ra: float = 0.0
    dec: float = 0.0


class TaggedObjects(_Payload):
    tags: list[str] = Field(default_factory=list)


class KnownObjects(_Payload):
    objects_in_field: list[str] = Field(default_factory=list)


class Annotation(_Payload):
    """Recognized object and its pixel position."""

    radius: float = 0.0
    type: str = ""
    names: list[str] = Field(default_factory=list)
    pixelx: float = 0.0
    pixely: float = 0.0


class AnnotationList(_Payload):
    annotations: list[Annotation] = Field(default_factory=list)


class JobResults(_Payload):
    """Combined job results, excluding object coordinates."""

    status: str = ""
    machine_tags: list[str] = Field(default_factory=list)
    calibration: Calibration = Field(default_factory=Calibration)
    tags: list[str] = Field(default_factory=list)
    original_filename: str = ""
    objects_in_field: list[str] = Field(default_factory=list)
