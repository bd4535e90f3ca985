# pyworkqueue/processors/document_analysis.py
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from pyworkqueue.common.job import JobType
from .analysis import AnalysisResult
from .base import BaseJobProcessor, missing_fields
from .collaborators import AnalysisFunction, MessageSender, ReportRenderer

logger = logging.getLogger(__name__)

DEFAULT_SCOPE_FIELDS = ("target_role", "target_market")


class DocumentAnalysisProcessor(BaseJobProcessor):
    """
    AI document analysis. The slowest job kind (tens of seconds), so the
    analysis step goes through the semantic cache.

    Steps: analyze (cached) -> render report -> deliver to the recipient.
    """

    job_type = JobType.DOCUMENT_ANALYSIS

    def __init__(
        self,
        cache,
        analyze: AnalysisFunction,
        renderer: ReportRenderer,
        sender: MessageSender,
        scope_fields: Sequence[str] = DEFAULT_SCOPE_FIELDS,
        extra_attachment_path: Optional[str] = None,
    ):
        super().__init__()
        self.cache = cache
        self.analyze = analyze
        self.renderer = renderer
        self.sender = sender
        self.scope_fields = tuple(scope_fields)
        self.extra_attachment_path = extra_attachment_path

    def scope_key(self, scope_params: Dict[str, Any]) -> Tuple[str, ...]:
        return tuple(str(scope_params[name]) for name in self.scope_fields)

    def handle(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        scope_params = payload["scope_params"]

        # Step 1: analysis, reused from a near-identical earlier input when possible
        logger.info(f"[{self.job_type.value}] Starting analysis for {payload['job_id']}")
        lookup = self.cache.get_or_compute(
            payload["raw_text"],
            self.scope_key(scope_params),
            lambda text, _scope_key: self.analyze(text, scope_params),
        )
        analysis = lookup.result
        if isinstance(analysis, dict):
            analysis = AnalysisResult.from_mapping(analysis)

        # Step 2: report
        structured_result = {"job_id": payload["job_id"], **analysis.to_dict()}
        report_path = self.renderer.render(structured_result)

        # Step 3: delivery
        attachments = [report_path]
        if payload.get("include_extra") and self.extra_attachment_path:
            attachments.append(self.extra_attachment_path)
        logger.info(f"[{self.job_type.value}] Sending report to {payload['recipient_email']}")
        self.sender.send(
            payload["recipient_email"],
            "Your document analysis report",
            f"Hi {payload['recipient_name']}, your analysis report is attached.",
            attachments,
        )

        return {
            "job_id": payload["job_id"],
            "report_path": report_path,
            "score": analysis.overall_score,
            "ats_score": analysis.ats_score,
            "message_sent": True,
            "cache_hit": lookup.was_cache_hit,
            "similarity": lookup.similarity,
        }

    def validate(self, payload: Dict[str, Any]):
        missing = missing_fields(
            payload, "job_id", "raw_text", "recipient_email", "recipient_name"
        )
        if missing:
            return f"Missing or empty {missing}"
        scope_params = payload.get("scope_params")
        if not isinstance(scope_params, dict):
            return "Missing scope_params"
        missing = missing_fields(scope_params, *self.scope_fields)
        if missing:
            return f"Missing scope parameter {missing}"
        if "include_extra" in payload and not isinstance(payload["include_extra"], bool):
            return "include_extra must be a boolean"
        return True

    def estimated_duration(self, payload: Dict[str, Any]) -> float:
        # 15s base, plus up to 15s more for long inputs
        length = len(payload.get("raw_text") or "")
        return 15.0 + min(length / 1000, 15.0)
