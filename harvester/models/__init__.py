from __future__ import annotations

from .collect import CollectedSet, ScrollCollectConfig, normalize_identifier
from .task import KNOWN_ACTIONS, SearchSpec, Task, TaskFile, TaskResult

__all__ = [
    "CollectedSet",
    "ScrollCollectConfig",
    "normalize_identifier",
    "KNOWN_ACTIONS",
    "SearchSpec",
    "Task",
    "TaskFile",
    "TaskResult",
]
