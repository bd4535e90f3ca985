# pyworkqueue/common/states.py

from datetime import datetime, UTC
from typing import Dict, Any, Optional

from .exceptions import InvalidStateTransition
from .job import Job, JobStatus


class BaseState:
    NAME: JobStatus

    def __init__(self, reason: Optional[str] = None, created_at: datetime = None):
        self.reason = reason
        self.created_at = created_at or datetime.now(UTC)

    @property
    def name(self) -> JobStatus:
        return self.NAME

    def serialize_data(self) -> Dict[str, Any]:
        data = {"created_at": self.created_at.isoformat()}
        if self.reason:
            data["reason"] = self.reason
        return data

    def apply(self, job: Job) -> None:
        """Moves ``job`` into this state, enforcing the transition table."""
        allowed = TRANSITIONS.get(job.status, ())
        if self.NAME not in allowed:
            raise InvalidStateTransition(job.id, job.status.value, self.NAME.value)
        job.status = self.NAME
        self._stamp(job)

    def _stamp(self, job: Job) -> None:
        pass


class QueuedState(BaseState):
    NAME = JobStatus.QUEUED

    def _stamp(self, job: Job) -> None:
        # A retried job keeps its id, priority and sequence; only the
        # execution timestamps are reset.
        job.started_at = None
        job.completed_at = None


class ProcessingState(BaseState):
    NAME = JobStatus.PROCESSING

    def __init__(self, worker_id: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.worker_id = worker_id

    def serialize_data(self) -> Dict[str, Any]:
        data = super().serialize_data()
        data["worker_id"] = self.worker_id
        return data

    def _stamp(self, job: Job) -> None:
        job.started_at = self.created_at
        job.completed_at = None


class CompletedState(BaseState):
    NAME = JobStatus.COMPLETED

    def __init__(self, result: Any, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.result = result

    def serialize_data(self) -> Dict[str, Any]:
        data = super().serialize_data()
        data["result"] = self.result
        return data

    def _stamp(self, job: Job) -> None:
        job.completed_at = self.created_at
        job.result = self.result
        job.error = None


class FailedState(BaseState):
    NAME = JobStatus.FAILED

    def __init__(
        self,
        exception_type: str,
        exception_message: str,
        exception_details: str = "",
        *args,
        retryable: bool = True,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.exception_type = exception_type
        self.exception_message = exception_message
        self.exception_details = exception_details
        self.retryable = retryable

    def serialize_data(self) -> Dict[str, Any]:
        data = super().serialize_data()
        data.update(
            {
                "exception_type": self.exception_type,
                "exception_message": self.exception_message,
                "retryable": self.retryable,
            }
        )
        return data

    def _stamp(self, job: Job) -> None:
        job.completed_at = self.created_at
        job.error = self.exception_message
        job.result = None


TRANSITIONS = {
    JobStatus.QUEUED: (JobStatus.PROCESSING,),
    JobStatus.PROCESSING: (JobStatus.COMPLETED, JobStatus.QUEUED, JobStatus.FAILED),
    JobStatus.COMPLETED: (),
    JobStatus.FAILED: (),
}
