from __future__ import annotations

from harvester.actions.base import BaseAction

# Import handlers to ensure they are registered
from harvester.actions.handlers import (
    browser,
    click,
    extract,
    input,
    keyboard,
    scroll,
    wait,
)
from harvester.actions.registry import ActionRegistry

__all__ = ["ActionRegistry", "BaseAction"]
