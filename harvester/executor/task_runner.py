"""
Task runner: executes a Task List sequentially against one browser session.

Execution stops at the first task reporting ``ok=False`` or after a ``close``
task. Exceptions from the session abort the list and surface as
SessionFaultError carrying the original message.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from harvester.actions import ActionRegistry
from harvester.context import Session
from harvester.exceptions import ErrorContext, HarvesterError, SessionFaultError
from harvester.executor.selector_resolver import SelectorResolver
from harvester.executor.step_executor import StepExecutor
from harvester.models.task import Task, TaskResult

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    completed: bool
    tasks_run: int
    total_tasks: int
    stopped: bool = False
    failed_task: int | None = None
    message: str | None = None
    results: list[TaskResult] = field(default_factory=list)


class TaskRunner:
    """Runs task lists on a session. Implements the TaskContext protocol for actions."""

    def __init__(self, session: Session, output_dir: str | Path | None = None) -> None:
        self.session = session
        self.output_dir = Path(output_dir) if output_dir else Path.cwd()
        self.workflow_stopped = False
        self._resolver: SelectorResolver | None = None

        ActionRegistry.auto_discover_actions()
        self.step_executor = StepExecutor(self)

    @property
    def page(self) -> Any:
        return self.session.page

    @property
    def resolver(self) -> SelectorResolver:
        page = self.page
        if self._resolver is None or self._resolver.page is not page:
            self._resolver = SelectorResolver(page)
        return self._resolver

    async def run(self, tasks: Sequence[Task]) -> RunReport:
        """
        Execute ``tasks`` in order.

        Returns:
            RunReport describing how far the list got

        Raises:
            SessionFaultError: if the session raised while executing a task
        """
        total = len(tasks)
        results: list[TaskResult] = []
        self.workflow_stopped = False
        logger.info(f"Executing {total} tasks...")

        for i, task in enumerate(tasks, 1):
            logger.info(f"Task {i}/{total}: {task.action}", extra={"action": task.action, "task_index": i})

            try:
                result = await self.step_executor.execute_task(task)
            except HarvesterError:
                raise
            except Exception as e:
                raise SessionFaultError(
                    str(e),
                    context=ErrorContext(action=task.action, task_index=i),
                    cause=e,
                ) from e

            results.append(result)

            if not result.ok:
                logger.error(f"Task failed: {result.message}", extra={"action": task.action, "task_index": i})
                return RunReport(
                    completed=False,
                    tasks_run=i,
                    total_tasks=total,
                    failed_task=i,
                    message=result.message,
                    results=results,
                )

            if self.workflow_stopped:
                logger.info("Session closed, skipping remaining tasks.")
                return RunReport(completed=True, tasks_run=i, total_tasks=total, stopped=True, results=results)

        logger.info("All tasks completed!")
        return RunReport(completed=True, tasks_run=total, total_tasks=total, results=results)
