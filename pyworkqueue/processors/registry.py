# pyworkqueue/processors/registry.py
import logging
from typing import Dict, List, Optional, Any

from .base import BaseJobProcessor, JobProcessor

logger = logging.getLogger(__name__)


class ProcessorRegistry:
    """Job type to processor lookup, filled once at startup."""

    def __init__(self):
        self._processors: Dict[str, JobProcessor] = {}

    def register(self, processor: JobProcessor) -> None:
        job_type = str(getattr(processor.job_type, "value", processor.job_type))
        if job_type in self._processors:
            logger.warning(f"Replacing processor for job type: {job_type}")
        self._processors[job_type] = processor
        logger.info(f"Registered processor: {job_type}")

    def get(self, job_type: str) -> Optional[JobProcessor]:
        return self._processors.get(str(getattr(job_type, "value", job_type)))

    def has(self, job_type: str) -> bool:
        return self.get(job_type) is not None

    def all(self) -> List[JobProcessor]:
        return list(self._processors.values())

    def metrics(self) -> Dict[str, Dict[str, Any]]:
        return {
            job_type: processor.get_metrics()
            for job_type, processor in self._processors.items()
            if isinstance(processor, BaseJobProcessor)
        }
