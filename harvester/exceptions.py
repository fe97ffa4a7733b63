"""
Exception hierarchy for the harvester engine.

Every error raised by the engine derives from HarvesterError so callers at the
job-control boundary can map them to responses without inspecting messages.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class ErrorContext:
    """Where an error happened."""

    job_id: str | None = None
    action: str | None = None
    task_index: int | None = None
    source_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class HarvesterError(Exception):
    """Base class for all harvester errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class InvalidArgumentError(HarvesterError):
    """Missing or malformed input (job creation, task definitions)."""


class NotFoundError(HarvesterError):
    """Unknown job, category or active job handle."""


class InvalidJobStateError(HarvesterError):
    """Operation not allowed in the job's current state."""


class SearchExhaustedError(HarvesterError):
    """Retry search ran out of attempts without finding its target."""

    def __init__(self, message: str, *, attempts: int, context: ErrorContext | None = None) -> None:
        super().__init__(message, context=context)
        self.attempts = attempts


class SessionFaultError(HarvesterError):
    """The underlying browser session raised while executing a step."""


class AlreadyMaterializedError(HarvesterError):
    """The job's identifiers were already saved to the record store."""


class NothingToMaterializeError(HarvesterError):
    """The job has no collected identifiers to save."""
