"""Litestar integration helpers for pyworkqueue."""

from __future__ import annotations

try:
    from litestar import Litestar
    from litestar.datastructures import State
    from litestar.di import Provide
except ImportError as exc:  # pragma: no cover - optional dependency
    raise ImportError(
        "Litestar integration requires 'litestar'. Install with `pip install litestar`."
    ) from exc

from pyworkqueue.manager import QueueManager


def get_queue_manager(state: State) -> QueueManager:
    return state.queue_manager


def queue_manager_dependency() -> Provide:
    return Provide(get_queue_manager, sync_to_thread=False)


def configure_pyworkqueue(
    app: Litestar, manager: QueueManager, run_workers: bool = True
) -> QueueManager:
    app.state.queue_manager = manager
    if run_workers:
        app.on_startup.append(lambda: manager.start())
        app.on_shutdown.append(lambda: manager.stop())
    return manager
