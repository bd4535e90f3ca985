# pyworkqueue/storage/base.py
from abc import ABC, abstractmethod
from typing import Optional, Dict

from pyworkqueue.common.job import Job
from pyworkqueue.common.states import BaseState


class JobStorage(ABC):
    """Holds every job in exactly one of backlog, in-flight or finished."""

    @abstractmethod
    def enqueue(self, job: Job) -> str: ...

    @abstractmethod
    def dequeue(self, timeout_seconds: float, worker_id: str) -> Optional[Job]: ...

    @abstractmethod
    def requeue(self, job_id: str, state: BaseState) -> bool: ...

    @abstractmethod
    def finish(self, job_id: str, state: BaseState) -> bool: ...

    @abstractmethod
    def get_job_data(self, job_id: str) -> Optional[Job]: ...

    @abstractmethod
    def counts(self) -> Dict[str, int]: ...

    @abstractmethod
    def cleanup_finished(self, keep: int) -> int: ...

    def wake_all(self) -> None:
        """Releases workers blocked in ``dequeue`` so they can see a shutdown."""
        pass
