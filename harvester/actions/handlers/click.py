from __future__ import annotations

import logging

from harvester.actions.base import BaseAction
from harvester.actions.registry import ActionRegistry
from harvester.models.task import Task

logger = logging.getLogger(__name__)


@ActionRegistry.register("click")
class ClickAction(BaseAction):
    """Click a selector, or a point when no selector is given."""

    click_count = 1

    async def execute(self, task: Task) -> None:
        page = self.ctx.page

        if task.selector:
            logger.info(f"Clicking on selector: {task.selector} (count={self.click_count})")
            await page.click(task.selector, click_count=self.click_count)
        else:
            x, y = task.coordinates
            logger.info(f"Clicking at coordinates: ({x}, {y}) (count={self.click_count})")
            await page.mouse.click(x, y, click_count=self.click_count)

        await self.pause(task)


@ActionRegistry.register("doubleclick")
class DoubleClickAction(ClickAction):
    click_count = 2


@ActionRegistry.register("hover")
class HoverAction(BaseAction):
    """Move the pointer over a selector or a point."""

    async def execute(self, task: Task) -> None:
        page = self.ctx.page

        if task.selector:
            logger.info(f"Hovering on selector: {task.selector}")
            await page.hover(task.selector)
        else:
            x, y = task.coordinates
            logger.info(f"Hovering at coordinates: ({x}, {y})")
            await page.mouse.move(x, y)

        await self.pause(task)
