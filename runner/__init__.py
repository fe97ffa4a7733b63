"""Job control for lead-harvester: the lifecycle manager, its registry and the CLI entry points."""

from __future__ import annotations

from runner.jobs import JobLifecycleManager, build_collect_config
from runner.registry import JobHandle, JobRegistry

__all__ = ["JobHandle", "JobLifecycleManager", "JobRegistry", "build_collect_config"]
