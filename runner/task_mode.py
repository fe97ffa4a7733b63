"""
Standalone task-list runner.

Loads a task file (YAML or JSON), opens one browser session and runs the
task list against the file's URL, or, in loop mode, against the URL of every
identifier in the ``users`` listing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from harvester.exceptions import HarvesterError, InvalidArgumentError
from harvester.executor.task_runner import RunReport, TaskRunner
from harvester.models.task import TaskFile
from harvester.output_writer import read_identifiers

logger = logging.getLogger(__name__)


@dataclass
class TaskModeResult:
    reports: dict[str, RunReport] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def load_task_file(path: str | Path) -> TaskFile:
    """Parse a YAML or JSON task file.

    Raises:
        InvalidArgumentError: unreadable file or invalid task definitions
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidArgumentError(f"Cannot read task file {path}: {e}") from e

    try:
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidArgumentError(f"Malformed task file {path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Task file {path} must contain a mapping")

    try:
        return TaskFile.model_validate(data)
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid task file {path}: {e}") from e


def user_url(base_url: str, user: str) -> str:
    return base_url + user if base_url.endswith("/") else f"{base_url}/{user}"


async def run_task_file(
    task_file: TaskFile,
    session: Any,
    output_dir: str | Path | None = None,
    base_dir: str | Path | None = None,
) -> TaskModeResult:
    """Run a task file on an open session.

    ``base_dir`` resolves a relative ``users`` path (normally the task file's directory).
    """
    runner = TaskRunner(session, output_dir=output_dir)
    result = TaskModeResult()

    if not task_file.loop:
        await session.goto(task_file.url)
        report = await runner.run(task_file.tasks)
        result.reports[task_file.url] = report
        if not report.completed:
            result.failed.append(task_file.url)
        return result

    users_path = Path(task_file.users)
    if not users_path.is_absolute() and base_dir is not None:
        users_path = Path(base_dir) / users_path
    users = read_identifiers(users_path)
    if not users:
        logger.warning(f"No users found in {users_path}")
        return result

    logger.info(f"Loop mode: Processing {len(users)} users...")
    for i, user in enumerate(users, 1):
        logger.info(f"User {i}/{len(users)}: {user}")
        try:
            await session.goto(user_url(task_file.url, user))
            report = await runner.run(task_file.tasks)
        except HarvesterError as e:
            logger.error(f"Tasks for user {user} aborted: {e}", extra=e.context.to_dict())
            result.failed.append(user)
            continue

        result.reports[user] = report
        if report.completed:
            logger.info(f"Completed tasks for user: {user}")
        else:
            logger.warning(f"Failed tasks for user: {user}")
            result.failed.append(user)

        if report.stopped:
            logger.info("Session closed, ending loop.")
            break

    logger.info("All users processed!")
    return result
