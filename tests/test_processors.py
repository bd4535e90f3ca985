import json
from types import SimpleNamespace

import pytest

from fakes import (
    AsyncFakeProcessor,
    CountingAnalyzer,
    FakeProcessor,
    MappedEmbeddingProvider,
    RecordingRenderer,
    RecordingSender,
)

from pyworkqueue.cache.semantic_cache import SemanticCache
from pyworkqueue.common.exceptions import JobValidationError, ProcessorNotFoundError
from pyworkqueue.common.job import Job, JobType
from pyworkqueue.execution.performer import (
    perform_job,
    resolve_processor,
    run_to_completion,
)
from pyworkqueue.processors import (
    AnalysisResult,
    ContentGenerationProcessor,
    DocumentAnalysisProcessor,
    FileReportRenderer,
    MessageDeliveryProcessor,
    OpenAIDocumentAnalyzer,
    ProcessorRegistry,
    ReportRenderingProcessor,
    build_default_registry,
    parse_analysis_response,
)


def analysis_payload(**overrides):
    payload = {
        "job_id": "analysis-1",
        "raw_text": "Senior Python developer",
        "scope_params": {"target_role": "backend", "target_market": "es"},
        "recipient_email": "ana@example.com",
        "recipient_name": "Ana",
        "include_extra": False,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def cache():
    return SemanticCache(
        MappedEmbeddingProvider(
            {"senior python developer": [1.0, 0.0], "junior designer": [0.0, 1.0]}
        )
    )


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def analyzer():
    return CountingAnalyzer()


@pytest.fixture
def document_processor(cache, analyzer, renderer, sender):
    return DocumentAnalysisProcessor(
        cache, analyzer, renderer, sender, extra_attachment_path="/assets/guide.md"
    )


# --- Registry ---


def test_registry_lookup():
    registry = ProcessorRegistry()
    processor = FakeProcessor(JobType.CONTENT_GENERATION)
    registry.register(processor)

    assert registry.get(JobType.CONTENT_GENERATION) is processor
    assert registry.get("content_generation") is processor
    assert registry.has("content_generation")
    assert registry.get("report_rendering") is None
    assert registry.all() == [processor]


def test_registry_replaces_processor_for_same_type():
    registry = ProcessorRegistry()
    registry.register(FakeProcessor(JobType.CONTENT_GENERATION))
    replacement = FakeProcessor(JobType.CONTENT_GENERATION)
    registry.register(replacement)
    assert registry.all() == [replacement]


def test_build_default_registry(cache, analyzer, renderer, sender):
    registry = build_default_registry(cache, analyzer, renderer, sender)
    assert {str(p.job_type) for p in registry.all()} == {t.value for t in JobType}
    assert set(registry.metrics()) == {t.value for t in JobType}


# --- Base processor and performer ---


def test_base_processor_tracks_metrics():
    processor = FakeProcessor(JobType.CONTENT_GENERATION, fail_times=1)

    with pytest.raises(ConnectionError):
        processor.execute({"name": "a"})
    assert processor.execute({"name": "b"}) == {"ok": True, "name": "b"}

    metrics = processor.get_metrics()
    assert metrics["processed"] == 1
    assert metrics["failed"] == 1
    assert metrics["average_time"] >= 0


def test_async_handle_is_run_to_completion():
    processor = AsyncFakeProcessor(JobType.CONTENT_GENERATION)
    assert perform_job(processor, {}) == {"async": True}
    assert processor.get_metrics()["processed"] == 1


def test_run_to_completion_passes_plain_values_through():
    async def coro():
        return 3

    assert run_to_completion(3) == 3
    assert run_to_completion(coro()) == 3


def test_resolve_processor_errors():
    registry = ProcessorRegistry()
    registry.register(FakeProcessor(JobType.CONTENT_GENERATION, invalid_reason="Missing x"))

    with pytest.raises(ProcessorNotFoundError):
        resolve_processor(registry, Job(type="report_rendering", payload={}))
    with pytest.raises(JobValidationError, match="Missing x"):
        resolve_processor(registry, Job(type="content_generation", payload={}))

    registry.register(ContentGenerationProcessor())
    with pytest.raises(JobValidationError) as excinfo:
        resolve_processor(registry, Job(type="content_generation", payload=None))
    assert isinstance(excinfo.value.__cause__, AttributeError)


# --- Document analysis ---


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"job_id": None}, "job_id"),
        ({"raw_text": "   "}, "raw_text"),
        ({"recipient_email": ""}, "recipient_email"),
        ({"recipient_name": None}, "recipient_name"),
        ({"scope_params": None}, "scope_params"),
        ({"scope_params": {"target_role": "backend"}}, "target_market"),
        ({"include_extra": "no"}, "include_extra"),
        ({"include_extra": 1}, "include_extra"),
    ],
)
def test_document_analysis_validation(document_processor, overrides, reason):
    result = document_processor.validate(analysis_payload(**overrides))
    assert result is not True
    assert reason in result


def test_document_analysis_valid_payload(document_processor):
    assert document_processor.validate(analysis_payload()) is True


def test_document_analysis_estimate(document_processor):
    assert document_processor.estimated_duration(analysis_payload(raw_text="x" * 5000)) == 20.0
    assert document_processor.estimated_duration(analysis_payload(raw_text="x" * 90000)) == 30.0


def test_document_analysis_pipeline(document_processor, analyzer, renderer, sender):
    result = document_processor.execute(analysis_payload(include_extra=True))

    assert result == {
        "job_id": "analysis-1",
        "report_path": "/reports/analysis-1.json",
        "score": 81,
        "ats_score": 74,
        "message_sent": True,
        "cache_hit": False,
        "similarity": None,
    }
    assert analyzer.calls == [
        ("Senior Python developer", {"target_role": "backend", "target_market": "es"})
    ]
    assert renderer.rendered[0]["issues"] == ["Missing dates"]
    recipient, _, body, attachments = sender.sent[0]
    assert recipient == "ana@example.com"
    assert "Ana" in body
    assert attachments == ["/reports/analysis-1.json", "/assets/guide.md"]


def test_document_analysis_reuses_cached_analysis_within_scope(document_processor, analyzer):
    document_processor.execute(analysis_payload())
    repeat = document_processor.execute(analysis_payload(job_id="analysis-2"))
    other_market = document_processor.execute(
        analysis_payload(
            job_id="analysis-3",
            scope_params={"target_role": "backend", "target_market": "mx"},
        )
    )

    assert repeat["cache_hit"] is True
    assert repeat["similarity"] == pytest.approx(1.0)
    assert other_market["cache_hit"] is False
    assert len(analyzer.calls) == 2


def test_document_analysis_without_extra_attachment(document_processor, sender):
    document_processor.execute(analysis_payload(include_extra=False))
    assert sender.sent[0][3] == ["/reports/analysis-1.json"]


# --- Other processors ---


def test_content_generation():
    processor = ContentGenerationProcessor()
    payload = {"session_id": "s-1", "party_id": "p-1", "recipient_email": "a@b.c"}

    assert processor.validate(payload) is True
    assert processor.validate({"session_id": "s-1"}) == "Missing party_id"
    result = processor.execute(payload)
    assert result["session_id"] == "s-1"
    assert len(result["agenda"]) == 4
    assert processor.estimated_duration(payload) == 5.0


def test_message_delivery(sender):
    processor = MessageDeliveryProcessor(sender)
    payload = {
        "recipient": "ana@example.com",
        "report_path": "/reports/r.json",
        "optional_attachment_path": "/assets/guide.md",
    }

    assert processor.validate({"report_path": "/r"}) == "Missing recipient"
    assert processor.validate({"recipient": "ana@example.com"}) == "Missing report path"
    result = processor.execute(payload)
    assert result["attachments"] == 2
    assert result["confirmation"] == {"delivered": True, "recipient": "ana@example.com"}
    assert processor.estimated_duration(payload) == 3.0
    assert processor.estimated_duration({"recipient": "x", "report_path": "y"}) == 2.0


def test_report_rendering_writes_file(tmp_path):
    processor = ReportRenderingProcessor(FileReportRenderer(tmp_path / "reports"))
    payload = {"job_id": "analysis-1", "structured_result": {"overall_score": 90}}

    assert processor.validate({"job_id": "analysis-1"}) == "Missing structured result"
    result = processor.execute(payload)

    assert result["job_id"] == "analysis-1"
    with open(result["report_path"], encoding="utf-8") as f:
        assert json.load(f) == {"overall_score": 90}
    assert processor.estimated_duration(payload) == 4.0


# --- Analysis parsing ---


def test_parse_fenced_json_with_alias_keys():
    content = '```json\n{"score": 70, "scores": {"atsCompatibility": 55}, "criticalIssues": ["typo"]}\n```'
    result = parse_analysis_response(content)
    assert result == AnalysisResult(overall_score=70, ats_score=55, issues=["typo"])


def test_parse_plain_json():
    result = parse_analysis_response(
        '{"overallScore": 88, "atsScore": 80, "improvements": ["Add metrics"], "strengths": ["Clear"]}'
    )
    assert result.overall_score == 88
    assert result.ats_score == 80
    assert result.improvements == ["Add metrics"]
    assert result.strengths == ["Clear"]


def test_parse_free_text_becomes_recommendation():
    result = parse_analysis_response("Looks good overall.")
    assert result.recommendations == ["Looks good overall."]
    assert result.overall_score == 0


def test_openai_analyzer_parses_completion():
    seen = {}

    def create(**kwargs):
        seen.update(kwargs)
        message = SimpleNamespace(content='{"overallScore": 64, "atsScore": 50}')
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    analyzer = OpenAIDocumentAnalyzer(client=client, model="test-model", max_input_chars=10)

    result = analyzer("a" * 50, {"target_role": "backend"})

    assert result.overall_score == 64
    assert seen["model"] == "test-model"
    assert "target_role: backend" in seen["messages"][1]["content"]
    assert "a" * 11 not in seen["messages"][1]["content"]


def test_openai_analyzer_rejects_empty_completion():
    def create(**kwargs):
        return SimpleNamespace(choices=[])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    with pytest.raises(ValueError):
        OpenAIDocumentAnalyzer(client=client)("text", {})
