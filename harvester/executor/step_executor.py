"""
Step executor: dispatches one task to its registered action handler.
"""

from __future__ import annotations

import inspect
import logging

from harvester.actions import ActionRegistry
from harvester.context import TaskContext
from harvester.models.task import Task, TaskResult

logger = logging.getLogger(__name__)


class StepExecutor:
    """Executes individual tasks through the action registry."""

    def __init__(self, context: TaskContext) -> None:
        """
        Initialize the step executor.

        Args:
            context: The runner passed to actions (TaskContext protocol)
        """
        self.context = context

    async def execute_task(self, task: Task) -> TaskResult:
        """
        Execute a single task.

        Args:
            task: Task to execute

        Returns:
            TaskResult; ``ok=False`` for unknown actions and reportable failures

        Raises:
            Exception: whatever the session raised while applying the effect
        """
        action_class = ActionRegistry.get_action_class(task.action)
        if not action_class:
            logger.warning(f"Unknown action: {task.action}")
            return TaskResult(ok=False, message=f"Unknown action: {task.action}")

        action_instance = action_class(self.context)

        # Support both sync and async actions
        result = action_instance.execute(task)
        if inspect.isawaitable(result):
            result = await result

        return result if result is not None else TaskResult()
