# pyworkqueue/manager.py
import logging
import threading
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from .common.job import Job, JobPriority, JobStatus
from .common.metrics import QueueMetrics
from .config import QueueSettings
from .filters.base import JobFilter
from .processors.registry import ProcessorRegistry
from .server.runner import JobRunner
from .server.worker import Worker
from .storage.base import JobStorage
from .storage.memory_storage import MemoryStorage

logger = logging.getLogger(__name__)


class QueueManager:
    """
    Accepts jobs and drives them through the registered processors.

    Build one per process at startup and hand it to whoever enqueues or polls.
    ``enqueue`` never blocks on execution; failures only become visible through
    ``get_status`` and ``get_result``.
    """

    def __init__(
        self,
        registry: ProcessorRegistry,
        settings: Optional[QueueSettings] = None,
        storage: Optional[JobStorage] = None,
        filters: Optional[List[JobFilter]] = None,
    ):
        self.registry = registry
        self.settings = settings or QueueSettings()
        self.storage = storage or MemoryStorage()
        self._metrics = QueueMetrics()
        self.runner = JobRunner(self.storage, self.registry, self._metrics, filters)

        self._workers: List[Worker] = []
        self._threads: List[threading.Thread] = []
        self._janitor: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._lifecycle_lock = threading.Lock()

    # --- Producer side ---

    def enqueue(
        self,
        job_type: str,
        payload: Dict[str, Any],
        priority: str = JobPriority.NORMAL,
        max_attempts: Optional[int] = None,
    ) -> str:
        """Creates a job and returns its id immediately."""
        priority = JobPriority(priority)
        if max_attempts is None:
            max_attempts = self.settings.default_max_attempts
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        job = Job(
            type=str(job_type),
            payload=payload,
            priority=priority,
            max_attempts=max_attempts,
        )
        self.storage.enqueue(job)
        self._metrics.record_enqueued()
        logger.info(f"Job enqueued: {job.id} ({job.type}) - Priority: {priority}")

        if self.settings.auto_start and not self.is_running:
            self.start()
        return job.id

    # --- Polling side ---

    def get_status(self, job_id: str) -> Optional[Job]:
        return self.storage.get_job_data(job_id)

    def get_result(self, job_id: str) -> Any:
        job = self.storage.get_job_data(job_id)
        if job is None or job.status != JobStatus.COMPLETED:
            return None
        return job.result

    def metrics(self) -> Dict[str, Any]:
        data = self._metrics.snapshot()
        data.update(self.storage.counts())
        return data

    def processor_metrics(self) -> Dict[str, Dict[str, Any]]:
        return self.registry.metrics()

    def estimated_duration(self, job_id: str) -> Optional[float]:
        job = self.storage.get_job_data(job_id)
        if job is None:
            return None
        processor = self.registry.get(job.type)
        if processor is None:
            return None
        return processor.estimated_duration(job.payload)

    def progress(self, job_id: str) -> Optional[int]:
        """Rough percentage for pollers; never reports 100 before completion."""
        job = self.storage.get_job_data(job_id)
        if job is None:
            return None
        if job.status == JobStatus.COMPLETED:
            return 100
        if job.status != JobStatus.PROCESSING or job.started_at is None:
            return 0
        estimate = self.estimated_duration(job_id) or 15.0
        elapsed = (datetime.now(UTC) - job.started_at).total_seconds()
        return min(round(elapsed / estimate * 100), 99)

    # --- Processing ---

    def process_next(self, timeout: float = 0) -> Optional[Job]:
        """Runs a single tick on the calling thread."""
        job = self.storage.dequeue(timeout, worker_id="manager")
        if job is None:
            return None
        self.runner.run(job)
        return self.storage.get_job_data(job.id)

    @property
    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        with self._lifecycle_lock:
            if self.is_running:
                return
            self._stop.clear()
            self._workers = [
                Worker(self.storage, self.runner, poll_interval=self.settings.poll_interval)
                for _ in range(self.settings.worker_count)
            ]
            self._threads = [
                threading.Thread(target=worker.run, name=f"pyworkqueue-{i}", daemon=True)
                for i, worker in enumerate(self._workers)
            ]
            for thread in self._threads:
                thread.start()
            self._janitor = threading.Thread(
                target=self._cleanup_loop, name="pyworkqueue-janitor", daemon=True
            )
            self._janitor.start()
            logger.info(f"Queue processing started with {len(self._workers)} worker(s)")

    def stop(self, timeout: float = 10.0) -> None:
        """Stops taking new jobs; jobs already running are allowed to finish."""
        with self._lifecycle_lock:
            self._stop.set()
            for worker in self._workers:
                worker.request_shutdown()
            self.storage.wake_all()
            for thread in self._threads:
                thread.join(timeout=timeout)
            if self._janitor:
                self._janitor.join(timeout=timeout)
            self._threads = []
            self._workers = []
            self._janitor = None
            logger.info("Queue processing stopped")

    # --- Maintenance ---

    def cleanup_old_jobs(self) -> int:
        removed = self.storage.cleanup_finished(self.settings.max_finished_jobs)
        if removed:
            logger.info(f"Cleaned up {removed} old jobs")
        return removed

    def _cleanup_loop(self) -> None:
        while not self._stop.wait(self.settings.cleanup_interval):
            try:
                self.cleanup_old_jobs()
            except Exception:
                logger.error("Finished-job cleanup failed", exc_info=True)
