# main.py
import hashlib
import logging
import tempfile
import time

from pyworkqueue import JobType, QueueManager, QueueSettings, SemanticCache
from pyworkqueue.cache import EmbeddingProvider
from pyworkqueue.processors import (
    AnalysisResult,
    FileReportRenderer,
    MessageSender,
    build_default_registry,
)


class HashingEmbeddingProvider(EmbeddingProvider):
    """Bag-of-words vectors; good enough to show near-duplicate reuse offline."""

    def embed(self, text):
        vector = [0.0] * 64
        for word in text.split():
            vector[int(hashlib.md5(word.encode()).hexdigest(), 16) % 64] += 1.0
        return vector


class ConsoleSender(MessageSender):
    def send(self, recipient, subject, body, attachments=None):
        print(f"-> {recipient}: {subject} ({len(attachments or [])} attachment(s))")
        return {"delivered": True}


def fake_analysis(text, scope_params):
    time.sleep(0.5)  # stands in for the slow model call
    return AnalysisResult(overall_score=72, ats_score=64, issues=["No metrics in experience"])


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    # 1. Wire collaborators and processors once at startup
    cache = SemanticCache(HashingEmbeddingProvider())
    registry = build_default_registry(
        cache, fake_analysis, FileReportRenderer(tempfile.mkdtemp()), ConsoleSender()
    )
    manager = QueueManager(registry, QueueSettings(auto_start=False))

    # 2. Enqueue two near-identical analyses and a notification
    document = "Senior backend engineer. Python, PostgreSQL, Kubernetes. Led a team of five."
    job_ids = [
        manager.enqueue(
            JobType.DOCUMENT_ANALYSIS,
            {
                "job_id": f"analysis-{i}",
                "raw_text": document + suffix,
                "scope_params": {"target_role": "backend", "target_market": "es"},
                "recipient_email": "ana@example.com",
                "recipient_name": "Ana",
            },
            priority="high",
        )
        for i, suffix in enumerate(["", " "])
    ]
    job_ids.append(
        manager.enqueue(
            JobType.CONTENT_GENERATION,
            {"session_id": "s-1", "party_id": "p-1", "recipient_email": "ana@example.com"},
            priority="low",
        )
    )

    # 3. Start the workers and wait for the backlog to drain
    manager.start()
    deadline = time.time() + 10
    while time.time() < deadline and manager.metrics()["finished"] < len(job_ids):
        time.sleep(0.1)
    manager.stop()

    for job_id in job_ids:
        job = manager.get_status(job_id)
        print(f"{job.id}: {job.status} result={job.result}")
    print(f"Queue metrics: {manager.metrics()}")
    print(f"Cache metrics: {cache.metrics()}")
