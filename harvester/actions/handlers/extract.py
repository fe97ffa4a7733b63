from __future__ import annotations

import logging

from harvester.actions.base import BaseAction
from harvester.actions.registry import ActionRegistry
from harvester.models.task import Task, TaskResult
from harvester.output_writer import resolve_output_path, write_identifiers, write_single

logger = logging.getLogger(__name__)


@ActionRegistry.register("extract")
class ExtractAction(BaseAction):
    """One-shot extraction of every matching element. No scrolling, no dedup."""

    async def execute(self, task: Task) -> TaskResult:
        logger.info(f"Extracting content from: {task.selector}")
        values = await self.ctx.resolver.project_all(task.selector, task.attribute)

        logger.info(f"Found {len(values)} items")
        for i, value in enumerate(values, 1):
            logger.debug(f"  {i}. {value}")

        if task.save_to:
            path = write_identifiers(resolve_output_path(task.save_to, self.ctx.output_dir), values)
            logger.info(f"Saved to: {path}")

        await self.pause(task)
        return TaskResult(data=values)


@ActionRegistry.register("extractOne")
class ExtractOneAction(BaseAction):
    """Extract the first matching element."""

    async def execute(self, task: Task) -> TaskResult:
        logger.info(f"Extracting single element from: {task.selector}")
        value = await self.ctx.resolver.project_one(task.selector, task.attribute)
        logger.info(f"Content: {value}")

        if task.save_to:
            path = write_single(resolve_output_path(task.save_to, self.ctx.output_dir), value)
            logger.info(f"Saved to: {path}")

        await self.pause(task)
        return TaskResult(data=value)
