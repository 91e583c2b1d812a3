"""In-memory tracking of submissions by caller key."""

import logging
import threading
from dataclasses import dataclass, field

from telescope.domain.submissions import SubmissionState
from telescope.errors import NotFoundError, ValidationError

_logger = logging.getLogger(__name__)


@dataclass
class SubmissionTracker:
    """Maps caller keys to submission ids, split into pending and finished.

    A key lives in exactly one of the two maps, and only ever moves from
    pending to finished.
    """

    _pending: dict[str, int] = field(default_factory=dict, init=False)
    _finished: dict[str, int] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def track(self, key: str, submission_id: int) -> None:
        """Start tracking a new submission as pending."""
        if not key:
            raise ValidationError("Submission key must not be empty")
        if isinstance(submission_id, bool) or not isinstance(submission_id, int):
            raise ValidationError(f"Invalid submission id: {submission_id!r}")
        if submission_id < 0:
            raise ValidationError(f"Invalid submission id: {submission_id!r}")
        with self._lock:
            if key in self._pending or key in self._finished:
                raise ValidationError(f"Submission key already tracked: {key}")
            self._pending[key] = submission_id
        _logger.info("Tracking submission %s as %s", submission_id, key)

    def status(self, key: str) -> SubmissionState:
        if key in self._finished:
            return SubmissionState.FINISHED
        if key in self._pending:
            return SubmissionState.PENDING
        return SubmissionState.UNKNOWN

    def submission_id(self, key: str) -> int:
        """Return the submission id for a pending or finished key."""
        if key in self._finished:
            return self._finished[key]
        if key in self._pending:
            return self._pending[key]
        raise NotFoundError(key)

    def mark_finished(self, key: str) -> bool:
        """Move a key to finished; returns True only on the first transition."""
        with self._lock:
            if key in self._finished:
                return False
            if key not in self._pending:
                raise NotFoundError(key)
            self._finished[key] = self._pending[key]
            del self._pending[key]
        _logger.info("Submission %s finished", key)
        return True

    def pending(self) -> frozenset[str]:
        return frozenset(self._pending)

    def finished(self) -> frozenset[str]:
        return frozenset(self._finished)
