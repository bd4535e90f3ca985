# pyworkqueue/serialization/json_serializer.py
import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pyworkqueue.serialization.base import BaseSerializer
from pyworkqueue.common.job import Job


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return _to_jsonable(asdict(value))
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


class JsonSerializer(BaseSerializer):
    def job_to_dict(self, job: Job) -> Dict[str, Any]:
        # The payload can carry raw input text; it is not echoed back to pollers.
        return {
            "id": job.id,
            "type": job.type,
            "status": _to_jsonable(job.status),
            "priority": _to_jsonable(job.priority),
            "attempts": job.attempts,
            "max_attempts": job.max_attempts,
            "created_at": _to_jsonable(job.created_at),
            "started_at": _to_jsonable(job.started_at),
            "completed_at": _to_jsonable(job.completed_at),
            "processing_time": job.processing_time,
            "result": _to_jsonable(job.result),
            "error": job.error,
            "finished": job.is_finished,
        }

    def serialize_job(self, job: Job) -> str:
        return json.dumps(self.job_to_dict(job), default=str)
