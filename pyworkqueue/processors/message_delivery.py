# pyworkqueue/processors/message_delivery.py
import logging
from typing import Any, Dict

from pyworkqueue.common.job import JobType
from .base import BaseJobProcessor, missing_fields
from .collaborators import MessageSender

logger = logging.getLogger(__name__)


class MessageDeliveryProcessor(BaseJobProcessor):
    job_type = JobType.MESSAGE_DELIVERY

    def __init__(self, sender: MessageSender, subject: str = "Your report is ready"):
        super().__init__()
        self.sender = sender
        self.subject = subject

    def handle(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        attachments = [payload["report_path"]]
        if payload.get("optional_attachment_path"):
            attachments.append(payload["optional_attachment_path"])

        logger.info(f"[{self.job_type.value}] Sending to {payload['recipient']}")
        confirmation = self.sender.send(
            payload["recipient"],
            self.subject,
            "Please find your report attached.",
            attachments,
        )
        return {
            "sent": True,
            "recipient": payload["recipient"],
            "attachments": len(attachments),
            "confirmation": confirmation,
        }

    def validate(self, payload: Dict[str, Any]):
        if missing_fields(payload, "recipient"):
            return "Missing recipient"
        if missing_fields(payload, "report_path"):
            return "Missing report path"
        return True

    def estimated_duration(self, payload: Dict[str, Any]) -> float:
        # 2s per message, 1s more for the extra attachment
        return 2.0 + (1.0 if payload.get("optional_attachment_path") else 0.0)
