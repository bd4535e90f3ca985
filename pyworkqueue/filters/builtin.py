# pyworkqueue/filters/builtin.py
import logging
from typing import Optional

from pyworkqueue.filters.base import JobFilter
from pyworkqueue.common.states import QueuedState, FailedState
from pyworkqueue.server.context import ElectStateContext

logger = logging.getLogger(__name__)


class RetryFilter(JobFilter):
    """
    Turns a retryable failure back into ``queued`` while the job has attempts
    left. ``attempts`` caps every job below its own ``max_attempts`` when set.
    """

    def __init__(self, attempts: Optional[int] = None):
        self.attempts = attempts

    def _limit(self, job) -> int:
        if self.attempts is None:
            return job.max_attempts
        return min(self.attempts, job.max_attempts)

    def on_state_election(self, elect_state_context: ElectStateContext):
        job = elect_state_context.job
        candidate_state = elect_state_context.candidate_state

        if not isinstance(candidate_state, FailedState):
            return

        if not candidate_state.retryable:
            logger.debug(f"RetryFilter: Job {job.id} failed with a non-retryable error.")
            return

        limit = self._limit(job)
        logger.debug(
            f"RetryFilter: Job {job.id} failed. Attempts: {job.attempts}, Max attempts: {limit}"
        )

        if job.attempts < limit:
            new_reason = f"Retrying job... Attempt {job.attempts + 1} of {limit}"
            elect_state_context.candidate_state = QueuedState(reason=new_reason)
        else:
            logger.debug(
                f"RetryFilter: Job {job.id} retries exhausted. Moving to Failed state."
            )
