from .base import JobStorage
from .memory_storage import MemoryStorage

__all__ = ["JobStorage", "MemoryStorage"]
