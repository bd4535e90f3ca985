"""Interfaces for the services processors call out to."""

from __future__ import annotations

import json
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .analysis import AnalysisResult

# compute(input_text, scope_params) -> AnalysisResult
AnalysisFunction = Callable[[str, Dict[str, Any]], AnalysisResult]


class ReportRenderer(ABC):
    @abstractmethod
    def render(self, structured_result: Dict[str, Any]) -> str:
        """Renders a report and returns the path of the written file."""


class MessageSender(ABC):
    @abstractmethod
    def send(
        self,
        recipient: str,
        subject: str,
        body: str,
        attachments: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Delivers one message and returns a delivery confirmation."""


class FileReportRenderer(ReportRenderer):
    """Writes the structured result as a JSON report file."""

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    def render(self, structured_result: Dict[str, Any]) -> str:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"report_{uuid.uuid4().hex[:12]}.json"
        path.write_text(
            json.dumps(structured_result, indent=2, default=str), encoding="utf-8"
        )
        return str(path)
