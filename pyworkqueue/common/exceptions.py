# pyworkqueue/common/exceptions.py


class PyWorkQueueException(Exception):
    """Base exception for the pyworkqueue library."""

    pass


class JobValidationError(PyWorkQueueException):
    """Raised when a processor rejects a job payload. Never retried."""

    def __init__(self, reason: str):
        super().__init__(f"Validation failed: {reason}")
        self.reason = reason


class ProcessorNotFoundError(PyWorkQueueException):
    """Raised when no processor is registered for a job type. Never retried."""

    def __init__(self, job_type: str):
        super().__init__(f"No processor registered for job type: {job_type}")
        self.job_type = job_type


class InvalidStateTransition(PyWorkQueueException):
    def __init__(self, job_id: str, current: str, target: str):
        super().__init__(f"Job {job_id} cannot move from {current} to {target}")
        self.job_id = job_id
        self.current = current
        self.target = target


class EmbeddingProviderError(PyWorkQueueException):
    """Raised when an embedding cannot be produced for an input."""

    pass
