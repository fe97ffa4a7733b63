from __future__ import annotations

import logging

from harvester.actions.base import BaseAction
from harvester.actions.registry import ActionRegistry
from harvester.exceptions import SearchExhaustedError
from harvester.executor.retry_search import RetrySearch
from harvester.models.task import Task, TaskResult

logger = logging.getLogger(__name__)


@ActionRegistry.register("press")
class PressAction(BaseAction):
    """Press a key once, or keep pressing it until the focused element matches ``search``."""

    async def execute(self, task: Task) -> TaskResult | None:
        logger.info(f"Pressing key: {task.key}")

        if task.search is None:
            await self.ctx.page.keyboard.press(task.key)
            await self.pause(task)
            return None

        search = RetrySearch(self.ctx.page, self.ctx.resolver)
        try:
            outcome = await search.find(task.key, task.search, delay_ms=task.delay or 0)
        except SearchExhaustedError as e:
            return TaskResult(ok=False, message=e.message)
        return TaskResult(data=outcome.element)
