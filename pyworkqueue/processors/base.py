# pyworkqueue/processors/base.py
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Union

from pyworkqueue.common.metrics import ProcessorMetrics
from pyworkqueue.execution.performer import run_to_completion

logger = logging.getLogger(__name__)

ValidationResult = Union[bool, str]


class JobProcessor(ABC):
    """Handles one job type. The queue only ever talks to this contract."""

    job_type: str

    @abstractmethod
    def validate(self, payload: Dict[str, Any]) -> ValidationResult:
        """Returns ``True`` or a human readable reason. Must not have side effects."""

    @abstractmethod
    def execute(self, payload: Dict[str, Any]) -> Any: ...

    @abstractmethod
    def estimated_duration(self, payload: Dict[str, Any]) -> float:
        """Seconds; only used for operator-facing estimates."""


class BaseJobProcessor(JobProcessor):
    """
    Wraps ``handle`` with timing and success/failure bookkeeping so concrete
    processors only carry their domain logic. ``handle`` may be a coroutine
    function; it is driven to completion on the calling worker thread.
    """

    def __init__(self):
        self._metrics = ProcessorMetrics()

    def execute(self, payload: Dict[str, Any]) -> Any:
        start = time.perf_counter()
        try:
            result = run_to_completion(self.handle(payload))
        except Exception as e:
            self._metrics.record(time.perf_counter() - start, failed=True)
            logger.error(f"[{self.job_type}] Failed: {e}")
            raise

        elapsed = time.perf_counter() - start
        self._metrics.record(elapsed, failed=False)
        logger.info(f"[{self.job_type}] Processed in {elapsed:.3f}s")
        return result

    @abstractmethod
    def handle(self, payload: Dict[str, Any]) -> Any: ...

    def get_metrics(self) -> Dict[str, Any]:
        return self._metrics.snapshot()


def missing_fields(payload: Dict[str, Any], *names: str) -> Union[str, None]:
    for name in names:
        value = payload.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            return name
    return None
