from .cache import OpenAIEmbeddingProvider, SemanticCache
from .common.job import Job, JobPriority, JobStatus, JobType
from .config import CacheSettings, QueueSettings
from .manager import QueueManager
from .processors import (
    FileReportRenderer,
    MessageSender,
    OpenAIDocumentAnalyzer,
    ProcessorRegistry,
    ReportRenderer,
    build_default_registry,
)


def create_queue_manager(
    sender: MessageSender,
    renderer: ReportRenderer,
    queue_settings: QueueSettings | None = None,
    cache_settings: CacheSettings | None = None,
    extra_attachment_path: str | None = None,
) -> tuple[QueueManager, SemanticCache]:
    """Wires the OpenAI-backed cache and the built-in processors. Call once at startup."""
    cache_settings = cache_settings or CacheSettings.from_env()
    cache = SemanticCache(
        OpenAIEmbeddingProvider(model=cache_settings.embedding_model), cache_settings
    )
    registry = build_default_registry(
        cache,
        OpenAIDocumentAnalyzer(),
        renderer,
        sender,
        extra_attachment_path=extra_attachment_path,
    )
    manager = QueueManager(registry, queue_settings or QueueSettings.from_env())
    return manager, cache


__all__ = [
    "CacheSettings",
    "FileReportRenderer",
    "Job",
    "JobPriority",
    "JobStatus",
    "JobType",
    "MessageSender",
    "ProcessorRegistry",
    "QueueManager",
    "QueueSettings",
    "ReportRenderer",
    "SemanticCache",
    "create_queue_manager",
]
