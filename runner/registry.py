"""Registry of running extraction jobs, shared between the manager and its callers."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from typing import Any


@dataclass
class JobHandle:
    job_id: str
    cancel_requested: bool = False
    running: bool = False
    session: Any = None
    task: asyncio.Task | None = field(default=None, repr=False)


class JobRegistry:
    """Job id -> JobHandle. The lock only guards dictionary operations."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[str, JobHandle] = {}

    def register(self, job_id: str) -> JobHandle:
        handle = JobHandle(job_id=job_id)
        with self._lock:
            self._handles[job_id] = handle
        return handle

    def get(self, job_id: str) -> JobHandle | None:
        with self._lock:
            return self._handles.get(job_id)

    def request_cancel(self, job_id: str) -> JobHandle | None:
        """Flag the job for cancellation. Returns None if it has no handle."""
        with self._lock:
            handle = self._handles.get(job_id)
            if handle is not None:
                handle.cancel_requested = True
            return handle

    def remove(self, job_id: str) -> None:
        with self._lock:
            self._handles.pop(job_id, None)

    def active_ids(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._handles
