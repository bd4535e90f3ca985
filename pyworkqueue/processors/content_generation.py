# pyworkqueue/processors/content_generation.py
import logging
from typing import Any, Dict

from pyworkqueue.common.job import JobType
from .base import BaseJobProcessor, missing_fields

logger = logging.getLogger(__name__)


class ContentGenerationProcessor(BaseJobProcessor):
    """Prepares session content (agenda, topics, resources) for a participant."""

    job_type = JobType.CONTENT_GENERATION

    # TODO: generate per-session content with the analysis model instead of
    # returning the fixed session outline.
    def handle(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(f"[{self.job_type.value}] Generating content for session {payload['session_id']}")
        return {
            "session_id": payload["session_id"],
            "party_id": payload["party_id"],
            "agenda": [
                "Introduction and goal setting",
                "Review of current situation",
                "Action plan discussion",
                "Q&A and next steps",
            ],
            "suggested_topics": [
                "Career progression strategies",
                "Technical skill development",
                "Interview preparation",
            ],
            "resources": [
                "Recommended courses",
                "Industry insights",
                "Networking tips",
            ],
        }

    def validate(self, payload: Dict[str, Any]):
        missing = missing_fields(payload, "session_id", "party_id", "recipient_email")
        return f"Missing {missing}" if missing else True

    def estimated_duration(self, payload: Dict[str, Any]) -> float:
        return 5.0
