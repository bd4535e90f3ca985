# pyworkqueue/storage/memory_storage.py
import copy
import heapq
import itertools
import logging
from collections import OrderedDict
from threading import RLock, Condition
from typing import Optional, List, Dict, Tuple

from pyworkqueue.storage.base import JobStorage
from pyworkqueue.common.job import Job, JobPriority
from pyworkqueue.common.states import BaseState, ProcessingState

logger = logging.getLogger(__name__)


class MemoryStorage(JobStorage):
    """
    Process-local job storage. Nothing survives a restart.

    The backlog is a heap of ``(priority rank, sequence, job id)``; the
    sequence is assigned once at enqueue so a retried job goes back to its
    original place among jobs of the same priority.
    """

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._backlog: List[Tuple[int, int, str]] = []
        self._processing: Dict[str, Job] = {}  # Jobs currently being processed
        self._finished: "OrderedDict[str, Job]" = OrderedDict()
        self._sequence = itertools.count(1)
        self._lock = RLock()
        self._condition = Condition(self._lock)

    def enqueue(self, job: Job) -> str:
        with self._lock:
            job.sequence = next(self._sequence)
            self._jobs[job.id] = job
            self._push(job)
            self._condition.notify()  # Notify any waiting worker
        return job.id

    def _push(self, job: Job) -> None:
        priority = JobPriority(job.priority)
        heapq.heappush(self._backlog, (priority.rank, job.sequence, job.id))

    def dequeue(self, timeout_seconds: float, worker_id: str = "worker-1") -> Optional[Job]:
        with self._condition:
            if not self._backlog and timeout_seconds > 0:
                self._condition.wait(timeout_seconds)
            if not self._backlog:
                return None

            _, _, job_id = heapq.heappop(self._backlog)
            job = self._jobs[job_id]

            # Atomically move to processing
            ProcessingState(worker_id).apply(job)
            self._processing[job.id] = job
            return job

    def requeue(self, job_id: str, state: BaseState) -> bool:
        with self._lock:
            job = self._processing.pop(job_id, None)
            if job is None:
                return False
            state.apply(job)
            self._push(job)
            self._condition.notify()
            return True

    def finish(self, job_id: str, state: BaseState) -> bool:
        with self._lock:
            job = self._processing.pop(job_id, None)
            if job is None:
                return False
            state.apply(job)
            self._finished[job.id] = job
            return True

    def get_job_data(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return copy.copy(job) if job else None

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return {
                "backlog": len(self._backlog),
                "in_flight": len(self._processing),
                "finished": len(self._finished),
            }

    def cleanup_finished(self, keep: int) -> int:
        with self._lock:
            excess = len(self._finished) - keep
            if excess <= 0:
                return 0
            oldest = sorted(
                self._finished.values(), key=lambda job: job.completed_at
            )[:excess]
            for job in oldest:
                del self._finished[job.id]
                del self._jobs[job.id]
            return len(oldest)

    def wake_all(self) -> None:
        with self._condition:
            self._condition.notify_all()
