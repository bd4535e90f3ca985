"""FastAPI integration helpers for pyworkqueue."""

from __future__ import annotations

from typing import Optional

try:
    from fastapi import APIRouter, FastAPI, Request
    from fastapi.responses import JSONResponse
except ImportError as exc:  # pragma: no cover - optional dependency
    raise ImportError(
        "FastAPI integration requires 'fastapi'. Install with `pip install fastapi`."
    ) from exc

from pyworkqueue.cache.semantic_cache import SemanticCache
from pyworkqueue.manager import QueueManager
from pyworkqueue.serialization.json_serializer import JsonSerializer


class PyWorkQueueFastAPIPlugin:
    def __init__(
        self,
        app: FastAPI,
        manager: QueueManager,
        cache: Optional[SemanticCache] = None,
        run_workers: bool = True,
    ):
        self.app = app
        self.manager = manager
        self.cache = cache
        self.run_workers = run_workers
        self.serializer = JsonSerializer()

        app.state.queue_manager = manager
        app.state.semantic_cache = cache
        app.add_event_handler("startup", self.startup)
        app.add_event_handler("shutdown", self.shutdown)

    def get_manager(self) -> QueueManager:
        return self.manager

    def include_routes(self, prefix: str = "") -> None:
        self.app.include_router(build_router(self.serializer), prefix=prefix)

    async def startup(self) -> None:
        if self.run_workers:
            self.manager.start()

    async def shutdown(self) -> None:
        self.manager.stop()


def build_router(serializer: Optional[JsonSerializer] = None) -> APIRouter:
    serializer = serializer or JsonSerializer()
    router = APIRouter()

    @router.get("/jobs/{job_id}")
    def job_status(job_id: str, request: Request):
        manager: QueueManager = request.app.state.queue_manager
        job = manager.get_status(job_id)
        if job is None:
            return JSONResponse(
                {"success": False, "error": "Job not found"}, status_code=404
            )
        data = serializer.job_to_dict(job)
        data["progress"] = manager.progress(job_id)
        if job.error:
            # Pollers get an apologetic message; the raw error stays in the logs.
            data["message"] = "We could not finish this job. Please try again."
        return {"success": True, "job": data}

    @router.get("/queue/metrics")
    def queue_metrics(request: Request):
        manager: QueueManager = request.app.state.queue_manager
        return {
            "success": True,
            "metrics": {
                "queue": manager.metrics(),
                "processors": manager.processor_metrics(),
            },
        }

    @router.get("/cache/metrics")
    def cache_metrics(request: Request):
        cache: Optional[SemanticCache] = request.app.state.semantic_cache
        if cache is None:
            return JSONResponse(
                {"success": False, "error": "Semantic cache is not configured"},
                status_code=404,
            )
        return {"success": True, "metrics": cache.metrics()}

    @router.delete("/cache")
    def clear_cache(request: Request):
        cache: Optional[SemanticCache] = request.app.state.semantic_cache
        if cache is None:
            return JSONResponse(
                {"success": False, "error": "Semantic cache is not configured"},
                status_code=404,
            )
        cache.clear()
        return {"success": True}

    return router


def add_pyworkqueue_to_fastapi(
    app: FastAPI,
    manager: QueueManager,
    cache: Optional[SemanticCache] = None,
    run_workers: bool = True,
) -> PyWorkQueueFastAPIPlugin:
    return PyWorkQueueFastAPIPlugin(app, manager, cache, run_workers)
