"""Assembly of submission reviews from multi-step API calls."""

import logging
from dataclasses import dataclass

from telescope.domain.responses import (
    Annotation,
    AnnotationList,
    Calibration,
    JobResults,
    JobStatus,
    SubmissionStatus,
)
from telescope.domain.submissions import JOB_FAILURE_STATUS, Review, ReviewDetail
from telescope.errors import DecodeError
from telescope.services.requests import Operation
from telescope.services.sessions import SessionManager
from telescope.services.tracker import SubmissionTracker

_logger = logging.getLogger(__name__)


@dataclass
class ResultAggregator:
    """Turns status, job and result calls into a single Review."""

    sessions: SessionManager
    tracker: SubmissionTracker

    def review_submission(
        self, key: str, detail: ReviewDetail = ReviewDetail.RESULTS
    ) -> Review:
        """Build a review of a tracked submission.

        ``finished`` comes from the submission's job calibrations and
        ``relevant`` from the job's own status, so a finished submission can
        still be irrelevant when solving failed.
        """
        submission_id = self.tracker.submission_id(key)
        status = self.sessions.call(
            Operation.SUBMISSION_STATUS, SubmissionStatus, id=submission_id
        )
        if not status.is_calibrated:
            return Review(key=key, submission_id=submission_id, finished=False)

        job_id = status.first_job_id()
        if job_id is None:
            raise DecodeError(
                f"Submission {submission_id} has calibrations but no jobs"
            )
        self.tracker.mark_finished(key)
        return self._review_job(key, submission_id, job_id, detail)

    def refresh_all(self, detail: ReviewDetail = ReviewDetail.RESULTS) -> list[str]:
        """Review every pending key and return those that finished.

        Stops at the first failing key and re-raises its error.
        """
        transitioned: list[str] = []
        for key in sorted(self.tracker.pending()):
            review = self.review_submission(key, detail)
            if review.finished:
                transitioned.append(key)
        if transitioned:
            _logger.info("Refresh finished %s submission(s)", len(transitioned))
        return transitioned

    def _review_job(
        self, key: str, submission_id: int, job_id: int, detail: ReviewDetail
    ) -> Review:
        if detail is ReviewDetail.CALIBRATION:
            job = self.sessions.call(Operation.JOB_STATUS, JobStatus, id=job_id)
            if job.status == JOB_FAILURE_STATUS:
                return _irrelevant(key, submission_id, job_id, job.status)
            calibration = self.sessions.call(
                Operation.CALIBRATION, Calibration, id=job_id
            )
            return Review(
                key=key,
                submission_id=submission_id,
                finished=True,
                relevant=True,
                job_id=job_id,
                job_status=job.status,
                calibration=calibration,
            )

        results = self.sessions.call(Operation.JOB_RESULTS, JobResults, id=job_id)
        if results.status == JOB_FAILURE_STATUS:
            return _irrelevant(key, submission_id, job_id, results.status)

        annotations: list[Annotation] = []
        if detail is ReviewDetail.ANNOTATED:
            annotations = self.sessions.call(
                Operation.ANNOTATIONS, AnnotationList, id=job_id
            ).annotations
        return Review(
            key=key,
            submission_id=submission_id,
            finished=True,
            relevant=True,
            job_id=job_id,
            job_status=results.status,
            calibration=results.calibration,
            tags=tuple(results.tags),
            machine_tags=tuple(results.machine_tags),
            objects_in_field=tuple(results.objects_in_field),
            annotations=tuple(annotations),
            original_filename=results.original_filename or None,
        )


def _irrelevant(key: str, submission_id: int, job_id: int, job_status: str) -> Review:
    _logger.info("Job %s for %s failed to solve", job_id, key)
    return Review(
        key=key,
        submission_id=submission_id,
        finished=True,
        relevant=False,
        job_id=job_id,
        job_status=job_status,
    )
