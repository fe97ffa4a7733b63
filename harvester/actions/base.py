from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from harvester.context import TaskContext
from harvester.models.task import Task, TaskResult


class BaseAction(ABC):
    """Base class for all task actions.

    ``execute`` returns None (or an ok TaskResult) when the effect was
    applied, a TaskResult with ``ok=False`` for a reportable failure, and
    lets session errors propagate.
    """

    def __init__(self, ctx: TaskContext) -> None:
        self.ctx = ctx

    @abstractmethod
    async def execute(self, task: Task) -> TaskResult | None: ...

    async def pause(self, task: Task) -> None:
        """Sleep the task's post-action delay."""
        await asyncio.sleep(task.delay_seconds)
