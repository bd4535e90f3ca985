# pyworkqueue/server/runner.py
import traceback
import logging
from typing import List, Optional

from pyworkqueue.common.job import Job
from pyworkqueue.common.metrics import QueueMetrics
from pyworkqueue.common.states import (
    BaseState,
    CompletedState,
    FailedState,
    QueuedState,
)
from pyworkqueue.common.exceptions import JobValidationError, ProcessorNotFoundError
from pyworkqueue.execution.performer import perform_job, resolve_processor
from pyworkqueue.filters.base import JobFilter
from pyworkqueue.filters.builtin import RetryFilter
from pyworkqueue.processors.registry import ProcessorRegistry
from pyworkqueue.storage.base import JobStorage
from .context import ElectStateContext

logger = logging.getLogger(__name__)


class JobRunner:
    """Runs one in-flight job and moves it to its next state. Never raises."""

    def __init__(
        self,
        storage: JobStorage,
        registry: ProcessorRegistry,
        metrics: QueueMetrics,
        filters: Optional[List[JobFilter]] = None,
    ):
        self.storage = storage
        self.registry = registry
        self.metrics = metrics
        self.filters = filters if filters is not None else [RetryFilter()]

    def run(self, job: Job) -> BaseState:
        try:
            # 1. Route and validate
            processor = resolve_processor(self.registry, job)

            # 2. Perform the job
            job.attempts += 1
            result = perform_job(processor, job.payload)

            candidate_state = CompletedState(
                result=result, reason="Job performed successfully"
            )

        except (ProcessorNotFoundError, JobValidationError) as e:
            logger.warning(f"Job {job.id} failed permanently: {e}")
            job.retryable = False
            job.last_error = str(e)
            candidate_state = FailedState(
                exception_type=type(e).__name__,
                exception_message=str(e),
                retryable=False,
            )

        except Exception as e:
            # 3. Handle failure
            logger.error(
                f"Job {job.id} failed on attempt {job.attempts}/{job.max_attempts}.",
                exc_info=True,
            )
            job.last_error = str(e)
            candidate_state = FailedState(
                exception_type=type(e).__name__,
                exception_message=str(e),
                exception_details=traceback.format_exc(),
            )

        return self._elect_and_apply(job, candidate_state)

    def _elect_and_apply(self, job: Job, candidate_state: BaseState) -> BaseState:
        elect_state_context = ElectStateContext(job=job, candidate_state=candidate_state)
        for f in self.filters:
            f.on_state_election(elect_state_context)
        final_state = elect_state_context.candidate_state
        logger.debug(
            f"Job {job.id}: attempts={job.attempts}, final_state={final_state.name.value} "
            f"{final_state.serialize_data()}"
        )

        if isinstance(final_state, QueuedState):
            # Back into the backlog at its original position among peers
            self.storage.requeue(job.id, final_state)
            self.metrics.record_retried()
            logger.info(
                f"Retrying job: {job.id} (Attempt {job.attempts + 1}/{job.max_attempts})"
            )
        elif isinstance(final_state, CompletedState):
            self.storage.finish(job.id, final_state)
            self.metrics.record_completed(job.processing_time or 0.0)
            logger.info(f"Job completed: {job.id} ({job.processing_time:.3f}s)")
        else:
            self.storage.finish(job.id, final_state)
            self.metrics.record_failed()
            logger.info(f"Job failed permanently: {job.id} ({job.error})")
        return final_state
