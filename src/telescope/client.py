"""Client facade over the astrometry.net session and submission engine."""

import logging
import os
from dataclasses import dataclass, field

from telescope.adapters.astrometry_transport import AstrometryTransport
from telescope.domain.responses import (
    Annotation,
    AnnotationList,
    Calibration,
    JobResults,
    JobStatus,
    KnownObjects,
    SubmissionStatus,
    TaggedObjects,
    UploadResponse,
)
from telescope.domain.submissions import Review, ReviewDetail, SubmissionState
from telescope.errors import ValidationError
from telescope.services.requests import Operation
from telescope.services.reviews import ResultAggregator
from telescope.services.sessions import SessionManager
from telescope.services.tracker import SubmissionTracker

_logger = logging.getLogger(__name__)


@dataclass
class AstrometryClient:
    """Uploads images, tracks submissions and reviews their results.

    One instance owns one session token and one set of tracked
    submissions. Token and tracker mutations are serialized internally;
    everything else is a blocking call on the caller's thread.
    """

    transport: AstrometryTransport
    sessions: SessionManager
    tracker: SubmissionTracker = field(default_factory=SubmissionTracker)
    aggregator: ResultAggregator = field(init=False)

    def __post_init__(self) -> None:
        self.aggregator = ResultAggregator(sessions=self.sessions, tracker=self.tracker)

    @classmethod
    def create(
        cls, api_key: str, transport: AstrometryTransport
    ) -> "AstrometryClient":
        """Create a client for an API key over an existing transport."""
        return cls(
            transport=transport,
            sessions=SessionManager(api_key=api_key, transport=transport),
        )

    def authenticate(self) -> str:
        return self.sessions.authenticate()

    def upload(self, path: str | os.PathLike[str], key: str | None = None) -> int:
        """Upload an image file and track it as pending under ``key``."""
        resolved_key = key or os.fspath(path)
        self._require_untracked(resolved_key)
        response = self.sessions.call(Operation.UPLOAD, UploadResponse, path=path)
        self.tracker.track(resolved_key, response.subid)
        _logger.info("Uploaded %s as submission %s", resolved_key, response.subid)
        return response.subid

    def upload_url(self, url: str, key: str | None = None) -> int:
        """Submit an image by URL and track it as pending under ``key``."""
        resolved_key = key or url
        self._require_untracked(resolved_key)
        response = self.sessions.call(Operation.URL_UPLOAD, UploadResponse, url=url)
        self.tracker.track(resolved_key, response.subid)
        _logger.info("Submitted %s as submission %s", resolved_key, response.subid)
        return response.subid

    def status(self, key: str) -> SubmissionState:
        return self.tracker.status(key)

    def pending(self) -> frozenset[str]:
        return self.tracker.pending()

    def finished(self) -> frozenset[str]:
        return self.tracker.finished()

    def review(self, key: str, detail: ReviewDetail = ReviewDetail.RESULTS) -> Review:
        return self.aggregator.review_submission(key, detail)

    def refresh_all(self, detail: ReviewDetail = ReviewDetail.RESULTS) -> list[str]:
        return self.aggregator.refresh_all(detail)

    def submission_status(self, submission_id: int) -> SubmissionStatus:
        return self.sessions.call(
            Operation.SUBMISSION_STATUS, SubmissionStatus, id=submission_id
        )

    def job_status(self, job_id: int) -> JobStatus:
        return self.sessions.call(Operation.JOB_STATUS, JobStatus, id=job_id)

    def calibration(self, job_id: int) -> Calibration:
        return self.sessions.call(Operation.CALIBRATION, Calibration, id=job_id)

    def tags(self, job_id: int) -> list[str]:
        return self.sessions.call(Operation.TAGS, TaggedObjects, id=job_id).tags

    def known_objects(self, job_id: int) -> list[str]:
        return self.sessions.call(
            Operation.KNOWN_OBJECTS, KnownObjects, id=job_id
        ).objects_in_field

    def annotations(self, job_id: int) -> list[Annotation]:
        return self.sessions.call(
            Operation.ANNOTATIONS, AnnotationList, id=job_id
        ).annotations

    def job_results(self, job_id: int) -> JobResults:
        return self.sessions.call(Operation.JOB_RESULTS, JobResults, id=job_id)

    def close(self) -> None:
        """Close the underlying transport."""
        self.transport.close()

    def _require_untracked(self, key: str) -> None:
        if self.tracker.status(key) is not SubmissionState.UNKNOWN:
            raise ValidationError(f"Submission key already tracked: {key}")

    def __enter__(self) -> "AstrometryClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
