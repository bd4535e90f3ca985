# pyworkqueue/processors/report_rendering.py
from typing import Any, Dict

from pyworkqueue.common.job import JobType
from .base import BaseJobProcessor, missing_fields
from .collaborators import ReportRenderer


class ReportRenderingProcessor(BaseJobProcessor):
    job_type = JobType.REPORT_RENDERING

    def __init__(self, renderer: ReportRenderer):
        super().__init__()
        self.renderer = renderer

    def handle(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        report_path = self.renderer.render(payload["structured_result"])
        return {"job_id": payload["job_id"], "report_path": report_path}

    def validate(self, payload: Dict[str, Any]):
        if missing_fields(payload, "job_id"):
            return "Missing job_id"
        if not payload.get("structured_result"):
            return "Missing structured result"
        return True

    def estimated_duration(self, payload: Dict[str, Any]) -> float:
        return 4.0
