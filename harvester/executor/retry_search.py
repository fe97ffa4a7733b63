"""
Retry search: find an element by moving focus until it matches a predicate.

Some targets have no stable selector; the only reliable path to them is the
focus order. The search presses a key (usually Tab), inspects the newly
focused element and stops at the first one whose attribute matches.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from harvester.exceptions import SearchExhaustedError
from harvester.executor.selector_resolver import SelectorResolver
from harvester.models.task import SearchSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchOutcome:
    attempts: int
    element: dict[str, Any]


def is_key_value_available(snapshot: dict[str, Any] | None, key: str, value: Any) -> bool:
    """Substring match for string pairs, strict equality otherwise."""
    if not isinstance(snapshot, dict) or key not in snapshot:
        return False

    actual = snapshot[key]
    if isinstance(actual, str) and isinstance(value, str):
        return value in actual
    if isinstance(actual, bool) or isinstance(value, bool):
        return type(actual) is type(value) and actual == value
    return actual == value


class RetrySearch:
    """Bounded focus-advancing search over a page."""

    def __init__(self, page: Any, resolver: SelectorResolver | None = None) -> None:
        self.page = page
        self.resolver = resolver or SelectorResolver(page)

    async def find(self, key: str, spec: SearchSpec, delay_ms: int = 0) -> SearchOutcome:
        """Press ``key`` up to ``spec.max_attempts`` times until the focused element matches.

        Raises:
            SearchExhaustedError: if no attempt matched
        """
        for attempt in range(1, spec.max_attempts + 1):
            await self.page.keyboard.press(key)
            if delay_ms:
                await asyncio.sleep(delay_ms / 1000)

            element = await self.resolver.active_element()
            if element is None:
                logger.debug(f"Search attempt {attempt}/{spec.max_attempts} - no active element")
                continue

            if is_key_value_available(element, spec.key, spec.value):
                logger.info(f'Search found: {spec.key}="{spec.value}" at attempt {attempt}')
                return SearchOutcome(attempts=attempt, element=element)

            logger.debug(f'Search attempt {attempt}/{spec.max_attempts} - {spec.key}="{spec.value}" not found')

        raise SearchExhaustedError(
            f"Search failed: target not found after {spec.max_attempts} attempts",
            attempts=spec.max_attempts,
        )
