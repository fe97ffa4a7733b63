from __future__ import annotations

import importlib
import logging
import pkgutil
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from harvester.actions.base import BaseAction

logger = logging.getLogger(__name__)

HANDLERS_PACKAGE = "harvester.actions.handlers"


class ActionRegistry:
    """Maps task action names to their handler classes."""

    _actions: dict[str, type[BaseAction]] = {}
    _discovered = False

    @classmethod
    def register(cls, name: str) -> Callable[[type[BaseAction]], type[BaseAction]]:
        def decorator(action_class: type[BaseAction]) -> type[BaseAction]:
            if name in cls._actions and cls._actions[name] is not action_class:
                logger.debug(f"Replacing handler for action '{name}'")
            cls._actions[name] = action_class
            return action_class

        return decorator

    @classmethod
    def get_action_class(cls, name: str) -> type[BaseAction] | None:
        return cls._actions.get(name)

    @classmethod
    def get_registered_actions(cls) -> dict[str, type[BaseAction]]:
        return dict(cls._actions)

    @classmethod
    def auto_discover_actions(cls) -> None:
        """Import every handler module so its decorators run."""
        if cls._discovered:
            return

        package = importlib.import_module(HANDLERS_PACKAGE)
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{HANDLERS_PACKAGE}.{module_name}")
        cls._discovered = True
        logger.debug(f"Discovered actions: {sorted(cls._actions)}")
