from .progress_store import (
    JsonFileProgressStore,
    MemoryProgressStore,
    ProgressStore,
    progress_key,
)

__all__ = [
    "JsonFileProgressStore",
    "MemoryProgressStore",
    "ProgressStore",
    "progress_key",
]
