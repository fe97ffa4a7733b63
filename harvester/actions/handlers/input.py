from __future__ import annotations

import asyncio
import logging

from harvester.actions.base import BaseAction
from harvester.actions.registry import ActionRegistry
from harvester.models.task import DEFAULT_TYPE_DELAY_MS, Task

logger = logging.getLogger(__name__)

# Generic root selector; typing "into html" means typing into the focused element
ROOT_SELECTOR = "html"
FOCUS_SETTLE_SECONDS = 0.3


@ActionRegistry.register("type")
class TypeAction(BaseAction):
    """Type text, optionally focusing a point or element first."""

    async def execute(self, task: Task) -> None:
        page = self.ctx.page

        if task.coordinates is not None:
            x, y = task.coordinates
            logger.info(f'Clicking at ({x}, {y}) and typing: "{task.text}"')
            await page.mouse.click(x, y)
            await asyncio.sleep(FOCUS_SETTLE_SECONDS)
        elif task.selector and task.selector != ROOT_SELECTOR:
            logger.info(f'Clicking on {task.selector} and typing: "{task.text}"')
            await page.click(task.selector)
            await asyncio.sleep(FOCUS_SETTLE_SECONDS)
        else:
            logger.info(f'Typing: "{task.text}"')

        type_delay = task.type_delay if task.type_delay is not None else DEFAULT_TYPE_DELAY_MS
        await page.keyboard.type(task.text, delay=type_delay)
        await self.pause(task)
