"""
Scroll-collect engine for virtually rendered lists.

Virtual lists drop off-screen rows from the DOM, so no single snapshot is
complete. The engine alternates small scrolls with snapshots and accumulates
every identifier it sees into a CollectedSet. A small scroll amount bounds how
much content can pass through unobserved between two snapshots.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from playwright.async_api import Error as PlaywrightError

from harvester.executor.selector_resolver import SelectorResolver
from harvester.models.collect import CollectedSet, ScrollCollectConfig
from harvester.output_writer import MergeReport, merge_identifiers

logger = logging.getLogger(__name__)


async def scroll_container(page: Any, selector: str, amount: int) -> None:
    await page.eval_on_selector(selector, "(el, amount) => el.scrollBy(0, amount)", amount)


async def scroll_viewport(page: Any, amount: int) -> None:
    await page.evaluate("amount => window.scrollBy(0, amount)", amount)


async def wheel_at(page: Any, x: float, y: float, amount: int) -> None:
    await page.mouse.move(x, y)
    await page.mouse.wheel(0, amount)


class ScrollCollectEngine:
    """Runs extraction rounds against one page.

    Callers that need to act between rounds (checkpointing, cancellation)
    drive ``extract_round``/``advance``/``settle`` themselves; ``run`` is the
    plain loop.
    """

    def __init__(self, page: Any, config: ScrollCollectConfig, collected: CollectedSet | None = None) -> None:
        self.page = page
        self.config = config
        self.resolver = SelectorResolver(page)
        self.collected = collected if collected is not None else CollectedSet(config.attribute)

    async def extract_round(self) -> int:
        """Snapshot the rendered items into the set; returns how many were new."""
        values = await self.resolver.project_all(self.config.extract_selector, self.config.attribute)
        return self.collected.update(values)

    async def advance(self) -> None:
        """Scroll by the configured amount: wheel at a point, else the container, else the viewport."""
        amount = self.config.scroll_amount
        if self.config.coordinates is not None:
            x, y = self.config.coordinates
            await wheel_at(self.page, x, y, amount)
            return

        try:
            await scroll_container(self.page, self.config.selector, amount)
        except PlaywrightError as e:
            logger.debug(f"Container scroll failed for '{self.config.selector}', scrolling window: {e}")
            await scroll_viewport(self.page, amount)

    async def settle(self) -> None:
        await asyncio.sleep(self.config.delay_seconds)

    async def run(self) -> CollectedSet:
        total = self.config.iterations
        logger.info(f"Scrolling and collecting from: {self.config.extract_selector}")

        for i in range(1, total + 1):
            await self.extract_round()
            logger.info(f"Scroll {i}/{total} - Collected: {len(self.collected)} items", extra={"round": i})
            await self.advance()
            await self.settle()

        logger.info(f"Total collected: {len(self.collected)} items")
        return self.collected

    def persist(self, path: str | Path) -> MergeReport:
        """Union the collected set into the identifier file at ``path``."""
        return merge_identifiers(path, self.collected)
