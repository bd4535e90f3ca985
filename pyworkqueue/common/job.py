# pyworkqueue/common/job.py
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Optional, Dict, Any


class JobType(str, Enum):
    DOCUMENT_ANALYSIS = "document_analysis"
    CONTENT_GENERATION = "content_generation"
    MESSAGE_DELIVERY = "message_delivery"
    REPORT_RENDERING = "report_rendering"

    def __str__(self) -> str:
        return self.value


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


class JobPriority(str, Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {JobPriority.HIGH: 0, JobPriority.NORMAL: 1, JobPriority.LOW: 2}


def generate_job_id(job_type: str) -> str:
    type_tag = job_type.value if isinstance(job_type, JobType) else str(job_type)
    return f"job_{type_tag}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass
class Job:
    """
    A unit of asynchronous work.

    The payload is opaque to the queue; only the processor registered for
    ``type`` knows its shape. ``result`` and ``error`` are written once, on the
    terminal transition.
    """

    type: str
    payload: Dict[str, Any]

    priority: JobPriority = JobPriority.NORMAL
    status: JobStatus = JobStatus.QUEUED

    id: str = ""
    sequence: int = 0

    # Retry bookkeeping
    attempts: int = 0
    max_attempts: int = 3
    retryable: bool = True
    last_error: Optional[str] = None

    result: Any = None
    error: Optional[str] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id:
            self.id = generate_job_id(self.type)

    @property
    def processing_time(self) -> Optional[float]:
        """Seconds between start and completion of the last execution."""
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def is_finished(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)
