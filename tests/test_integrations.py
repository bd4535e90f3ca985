import json
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from litestar import Litestar, get
from litestar.testing import TestClient as LitestarTestClient

from fakes import FakeProcessor, MappedEmbeddingProvider

from pyworkqueue.cache.semantic_cache import SemanticCache
from pyworkqueue.common.job import JobStatus, JobType
from pyworkqueue.config import QueueSettings
from pyworkqueue.integrations.fastapi import add_pyworkqueue_to_fastapi
from pyworkqueue.integrations.litestar import (
    configure_pyworkqueue,
    queue_manager_dependency,
)
from pyworkqueue.manager import QueueManager
from pyworkqueue.processors.registry import ProcessorRegistry
from pyworkqueue.serialization.json_serializer import JsonSerializer


@pytest.fixture
def manager():
    registry = ProcessorRegistry()
    registry.register(FakeProcessor(JobType.CONTENT_GENERATION, fail_times=1))
    return QueueManager(registry, QueueSettings(auto_start=False))


@pytest.fixture
def cache():
    cache = SemanticCache(MappedEmbeddingProvider({"hello": [1.0, 0.0]}))
    cache.get_or_compute("hello", "scope", lambda text, scope: "computed")
    cache.get_or_compute("hello", "scope", lambda text, scope: "computed")
    return cache


def make_client(manager, cache=None):
    app = FastAPI()
    plugin = add_pyworkqueue_to_fastapi(app, manager, cache, run_workers=False)
    plugin.include_routes(prefix="/api")
    return TestClient(app)


# --- FastAPI ---


def test_job_status_route(manager):
    job_id = manager.enqueue(JobType.CONTENT_GENERATION, {"name": "a"})
    client = make_client(manager)

    response = client.get(f"/api/jobs/{job_id}")

    assert response.status_code == 200
    job = response.json()["job"]
    assert job["id"] == job_id
    assert job["status"] == "queued"
    assert job["priority"] == "normal"
    assert job["progress"] == 0
    assert "payload" not in job


def test_job_status_route_for_failed_job(manager):
    job_id = manager.enqueue(JobType.CONTENT_GENERATION, {"name": "a"}, max_attempts=1)
    manager.process_next()
    client = make_client(manager)

    job = client.get(f"/api/jobs/{job_id}").json()["job"]

    assert job["status"] == "failed"
    assert job["error"] == "transient failure 1"
    assert job["message"] == "We could not finish this job. Please try again."


def test_job_status_route_for_completed_job(manager):
    manager.registry.register(FakeProcessor(JobType.CONTENT_GENERATION))
    job_id = manager.enqueue(JobType.CONTENT_GENERATION, {"name": "a"})
    manager.process_next()
    client = make_client(manager)

    job = client.get(f"/api/jobs/{job_id}").json()["job"]

    assert job["status"] == "completed"
    assert job["progress"] == 100
    assert job["result"] == {"ok": True, "name": "a"}


def test_unknown_job_is_404(manager):
    response = make_client(manager).get("/api/jobs/job_missing")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Job not found"}


def test_queue_metrics_route(manager):
    manager.enqueue(JobType.CONTENT_GENERATION, {"name": "a"})
    manager.process_next()

    metrics = make_client(manager).get("/api/queue/metrics").json()["metrics"]

    assert metrics["queue"]["enqueued"] == 1
    assert metrics["queue"]["retried"] == 1
    assert metrics["queue"]["backlog"] == 1
    assert metrics["processors"]["content_generation"]["failed"] == 1


def test_cache_routes(manager, cache):
    client = make_client(manager, cache)

    metrics = client.get("/api/cache/metrics").json()["metrics"]
    assert metrics["hits"] == 1
    assert metrics["misses"] == 1
    assert metrics["size"] == 1

    assert client.delete("/api/cache").json() == {"success": True}
    assert len(cache) == 0


def test_cache_routes_without_cache(manager):
    client = make_client(manager)
    assert client.get("/api/cache/metrics").status_code == 404
    assert client.delete("/api/cache").status_code == 404


def test_plugin_exposes_manager_on_app_state(manager):
    app = FastAPI()
    plugin = add_pyworkqueue_to_fastapi(app, manager, run_workers=False)
    assert plugin.get_manager() is manager
    assert app.state.queue_manager is manager
    assert app.state.semantic_cache is None


# --- Litestar ---


def test_litestar_dependency(manager):
    @get("/queue/backlog", sync_to_thread=False)
    def backlog(queue_manager: Any) -> dict:
        return {"backlog": queue_manager.metrics()["backlog"]}

    app = Litestar(
        route_handlers=[backlog],
        dependencies={"queue_manager": queue_manager_dependency()},
    )
    configure_pyworkqueue(app, manager, run_workers=False)
    manager.enqueue(JobType.CONTENT_GENERATION, {"name": "a"})

    with LitestarTestClient(app=app) as client:
        response = client.get("/queue/backlog")

    assert response.status_code == 200
    assert response.json() == {"backlog": 1}
    assert not manager.is_running


def test_litestar_lifecycle_hooks(manager):
    app = Litestar(route_handlers=[])
    configure_pyworkqueue(app, manager)
    assert len(app.on_startup) == 1
    assert len(app.on_shutdown) == 1


# --- Serialization ---


def test_json_serializer(manager):
    job_id = manager.enqueue(JobType.CONTENT_GENERATION, {"secret": "raw text"})
    job = manager.get_status(job_id)

    data = json.loads(JsonSerializer().serialize_job(job))

    assert data["type"] == "content_generation"
    assert data["status"] == JobStatus.QUEUED.value
    assert data["started_at"] is None
    assert data["finished"] is False
    assert data["created_at"] == job.created_at.isoformat()
    assert "raw text" not in json.dumps(data)
