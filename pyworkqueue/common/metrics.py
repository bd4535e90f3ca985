# pyworkqueue/common/metrics.py
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Any


@dataclass
class RunningAverage:
    """Incremental mean: no sample history is kept."""

    count: int = 0
    mean: float = 0.0

    def add(self, value: float) -> float:
        self.count += 1
        self.mean += (value - self.mean) / self.count
        return self.mean


@dataclass
class ProcessorMetrics:
    processed: int = 0
    failed: int = 0
    average_time: float = 0.0

    def __post_init__(self):
        self._lock = Lock()
        self._average = RunningAverage()

    def record(self, elapsed: float, failed: bool) -> None:
        with self._lock:
            if failed:
                self.failed += 1
                return
            self.processed += 1
            self.average_time = self._average.add(elapsed)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "processed": self.processed,
                "failed": self.failed,
                "average_time": self.average_time,
            }


class QueueMetrics:
    """Counters for the queue; safe to update from several worker threads."""

    def __init__(self):
        self._lock = Lock()
        self.enqueued = 0
        self.processed = 0
        self.failed = 0
        self.retried = 0
        self._processing_time = RunningAverage()

    def record_enqueued(self) -> None:
        with self._lock:
            self.enqueued += 1

    def record_completed(self, duration: float) -> None:
        with self._lock:
            self.processed += 1
            self._processing_time.add(duration)

    def record_retried(self) -> None:
        with self._lock:
            self.retried += 1

    def record_failed(self) -> None:
        with self._lock:
            self.failed += 1

    @property
    def avg_processing_time(self) -> float:
        return self._processing_time.mean

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "enqueued": self.enqueued,
                "processed": self.processed,
                "failed": self.failed,
                "retried": self.retried,
                "avg_processing_time": self._processing_time.mean,
            }
