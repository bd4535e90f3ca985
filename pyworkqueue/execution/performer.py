# pyworkqueue/execution/performer.py
import asyncio
import inspect
from typing import TYPE_CHECKING, Any

from pyworkqueue.common.exceptions import JobValidationError, ProcessorNotFoundError
from pyworkqueue.common.job import Job

if TYPE_CHECKING:
    from pyworkqueue.processors.base import JobProcessor
    from pyworkqueue.processors.registry import ProcessorRegistry


def resolve_processor(registry: "ProcessorRegistry", job: Job) -> "JobProcessor":
    """Looks up and validates; both failures are static and never retried."""
    processor = registry.get(job.type)
    if processor is None:
        raise ProcessorNotFoundError(job.type)

    # A payload validate() cannot even inspect is as invalid as a rejected one
    try:
        validation_result = processor.validate(job.payload)
    except Exception as e:
        raise JobValidationError(str(e)) from e
    if validation_result is not True:
        raise JobValidationError(str(validation_result))
    return processor


def run_to_completion(value: Any) -> Any:
    """Drives an awaitable returned by processor code on the current thread."""
    if inspect.isawaitable(value):
        return asyncio.run(_await(value))
    return value


async def _await(awaitable):
    return await awaitable


def perform_job(processor: "JobProcessor", payload: dict) -> Any:
    return run_to_completion(processor.execute(payload))
