"""TaskContext Protocol for decoupling actions from the task runner."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from harvester.executor.selector_resolver import SelectorResolver


class Session(Protocol):
    """The automation session an action drives (see BrowserSession)."""

    @property
    def page(self) -> Any: ...

    async def reload(self) -> None: ...

    async def close(self) -> None: ...


class TaskContext(Protocol):
    """Protocol defining the interface between actions and the runner."""

    session: Session
    resolver: SelectorResolver
    output_dir: Path

    # Set by the close action; the runner stops after the current task
    workflow_stopped: bool

    @property
    def page(self) -> Any: ...
