from __future__ import annotations

import logging

from harvester.actions.base import BaseAction
from harvester.actions.registry import ActionRegistry
from harvester.models.task import Task

logger = logging.getLogger(__name__)


@ActionRegistry.register("wait")
class WaitAction(BaseAction):
    """Action to wait for the task's delay."""

    async def execute(self, task: Task) -> None:
        logger.debug(f"Waiting for {task.delay_ms}ms")
        await self.pause(task)
