"""Domain models for tracked submissions and their reviews."""

from dataclasses import dataclass
from enum import Enum

from telescope.domain.responses import Annotation, Calibration


class SubmissionState(Enum):
    """Lifecycle of a submission key inside one client."""

    UNKNOWN = "unknown"
    PENDING = "pending"
    FINISHED = "finished"


class ReviewDetail(Enum):
    """How much job data a review fetches."""

    CALIBRATION = "calibration"
    RESULTS = "results"
    ANNOTATED = "annotated"


JOB_FAILURE_STATUS = "failure"


@dataclass(frozen=True)
class Review:
    """Caller-facing summary of one submission."""

    key: str
    submission_id: int
    finished: bool
    relevant: bool = False
    job_id: int | None = None
    job_status: str | None = None
    calibration: Calibration | None = None
    tags: tuple[str, ...] = ()
    machine_tags: tuple[str, ...] = ()
    objects_in_field: tuple[str, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    original_filename: str | None = None
