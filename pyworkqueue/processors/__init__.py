from typing import Optional

from .analysis import AnalysisResult, OpenAIDocumentAnalyzer, parse_analysis_response
from .base import BaseJobProcessor, JobProcessor
from .collaborators import (
    AnalysisFunction,
    FileReportRenderer,
    MessageSender,
    ReportRenderer,
)
from .content_generation import ContentGenerationProcessor
from .document_analysis import DocumentAnalysisProcessor
from .message_delivery import MessageDeliveryProcessor
from .registry import ProcessorRegistry
from .report_rendering import ReportRenderingProcessor


def build_default_registry(
    cache,
    analyze: AnalysisFunction,
    renderer: ReportRenderer,
    sender: MessageSender,
    extra_attachment_path: Optional[str] = None,
) -> ProcessorRegistry:
    """Registers the four built-in processors. Call once at process start."""
    registry = ProcessorRegistry()
    registry.register(
        DocumentAnalysisProcessor(
            cache, analyze, renderer, sender, extra_attachment_path=extra_attachment_path
        )
    )
    registry.register(ContentGenerationProcessor())
    registry.register(MessageDeliveryProcessor(sender))
    registry.register(ReportRenderingProcessor(renderer))
    return registry


__all__ = [
    "AnalysisFunction",
    "AnalysisResult",
    "BaseJobProcessor",
    "ContentGenerationProcessor",
    "DocumentAnalysisProcessor",
    "FileReportRenderer",
    "JobProcessor",
    "MessageDeliveryProcessor",
    "MessageSender",
    "OpenAIDocumentAnalyzer",
    "ProcessorRegistry",
    "ReportRenderer",
    "ReportRenderingProcessor",
    "build_default_registry",
    "parse_analysis_response",
]
