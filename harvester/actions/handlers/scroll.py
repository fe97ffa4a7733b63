from __future__ import annotations

import asyncio
import logging

from harvester.actions.base import BaseAction
from harvester.actions.registry import ActionRegistry
from harvester.executor.scroll_collect import (
    ScrollCollectEngine,
    scroll_container,
    scroll_viewport,
    wheel_at,
)
from harvester.models.collect import DEFAULT_SCROLL_AMOUNT, ScrollCollectConfig
from harvester.models.task import Task, TaskResult
from harvester.output_writer import resolve_output_path

logger = logging.getLogger(__name__)


@ActionRegistry.register("scroll")
class ScrollAction(BaseAction):
    """Scroll a container, the point under (x, y), or the whole page."""

    async def execute(self, task: Task) -> None:
        page = self.ctx.page
        iterations = task.iterations or 1
        amount = task.scroll_amount or DEFAULT_SCROLL_AMOUNT
        if task.direction == "up":
            amount = -amount

        for i in range(1, iterations + 1):
            logger.debug(f"Scroll {i}/{iterations}")
            if task.selector:
                await scroll_container(page, task.selector, amount)
            elif task.coordinates is not None:
                x, y = task.coordinates
                await wheel_at(page, x, y, amount)
            else:
                await scroll_viewport(page, amount)
            await asyncio.sleep(task.delay_seconds)


@ActionRegistry.register("scrollAndCollect")
class ScrollAndCollectAction(BaseAction):
    """Collect identifiers from a virtually scrolled list, merging into ``saveTo``."""

    async def execute(self, task: Task) -> TaskResult:
        config = ScrollCollectConfig.from_task(task)
        engine = ScrollCollectEngine(self.ctx.page, config)
        collected = await engine.run()

        data = {"collected": collected.to_list()}
        if task.save_to:
            report = engine.persist(resolve_output_path(task.save_to, self.ctx.output_dir))
            data.update(path=str(report.path), total=report.total, added=report.added)
        return TaskResult(data=data)
