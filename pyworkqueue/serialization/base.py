# pyworkqueue/serialization/base.py
from abc import ABC, abstractmethod
from typing import Any, Dict

from pyworkqueue.common.job import Job


class BaseSerializer(ABC):
    @abstractmethod
    def job_to_dict(self, job: Job) -> Dict[str, Any]: ...

    @abstractmethod
    def serialize_job(self, job: Job) -> str: ...
