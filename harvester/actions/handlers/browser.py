from __future__ import annotations

import logging
import time

from harvester.actions.base import BaseAction
from harvester.actions.registry import ActionRegistry
from harvester.models.task import Task
from harvester.output_writer import resolve_output_path

logger = logging.getLogger(__name__)


@ActionRegistry.register("refresh")
class RefreshAction(BaseAction):
    """Reload the page and wait for network quiescence."""

    async def execute(self, task: Task) -> None:
        logger.info("Refreshing page...")
        await self.ctx.session.reload()
        await self.pause(task)


@ActionRegistry.register("close")
class CloseAction(BaseAction):
    """Close the session and stop the task list."""

    async def execute(self, task: Task) -> None:
        logger.info("Closing browser...")
        await self.ctx.session.close()
        self.ctx.workflow_stopped = True


@ActionRegistry.register("screenshot")
class ScreenshotAction(BaseAction):
    async def execute(self, task: Task) -> None:
        filename = task.path or f"screenshot-{int(time.time() * 1000)}.png"
        path = resolve_output_path(filename, self.ctx.output_dir)
        path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Taking screenshot: {path}")
        await self.ctx.page.screenshot(path=str(path), full_page=task.full_page)
        await self.pause(task)
