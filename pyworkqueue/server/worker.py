# pyworkqueue/server/worker.py
import logging
import threading
import uuid
from typing import Optional

from pyworkqueue.common.job import Job
from pyworkqueue.storage.base import JobStorage
from pyworkqueue.server.runner import JobRunner

logger = logging.getLogger(__name__)


class Worker:
    def __init__(
        self,
        storage: JobStorage,
        runner: JobRunner,
        poll_interval: float = 0.1,
        error_cooldown: float = 5.0,
    ):
        self.storage = storage
        self.runner = runner
        self.poll_interval = poll_interval
        self.error_cooldown = error_cooldown
        self.worker_id = f"worker:{uuid.uuid4()}"
        self._shutdown_requested = threading.Event()

    def tick(self, timeout_seconds: Optional[float] = None) -> Optional[Job]:
        """Dequeues and runs at most one job."""
        if timeout_seconds is None:
            timeout_seconds = self.poll_interval
        job = self.storage.dequeue(timeout_seconds, worker_id=self.worker_id)
        if job is None:
            return None
        logger.info(f"[{self.worker_id}] Processing job: {job.id} ({job.type})")
        self.runner.run(job)
        return job

    def run(self):
        """Starts the worker's processing loop."""
        logger.info(f"[{self.worker_id}] Starting worker")
        while not self._shutdown_requested.is_set():
            try:
                self.tick()
            except Exception:
                logger.error(
                    f"[{self.worker_id}] Unhandled exception in worker loop", exc_info=True
                )
                # Cooldown period after a major failure
                self._shutdown_requested.wait(self.error_cooldown)

        logger.info(f"[{self.worker_id}] Worker has stopped.")

    def request_shutdown(self) -> None:
        self._shutdown_requested.set()
