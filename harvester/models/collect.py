"""Scroll-collect configuration and the deduplicated identifier set."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field, model_validator

from harvester.models.task import DEFAULT_DELAY_MS, Task

DEFAULT_COLLECT_ITERATIONS = 50
DEFAULT_SCROLL_AMOUNT = 500

# Attribute modes whose values are profile paths such as "/alice_92/"
PATH_LIKE_ATTRIBUTES = frozenset({"href"})
CANONICAL_IDENTIFIER_PATTERN = re.compile(r"/([a-zA-Z0-9._]+)/")


class ScrollCollectConfig(BaseModel):
    """How to extract from and scroll a virtually rendered list.

    Exactly one scroll target is set: a container ``selector`` or a
    ``coordinates`` point that receives wheel events.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    extract_selector: str = Field(alias="extractSelector", min_length=1)
    selector: str | None = None
    coordinates: tuple[float, float] | None = None
    scroll_amount: int = Field(default=DEFAULT_SCROLL_AMOUNT, alias="scrollAmount")
    iterations: int = Field(default=DEFAULT_COLLECT_ITERATIONS, ge=1)
    delay_ms: int = Field(default=DEFAULT_DELAY_MS, alias="delay", ge=0)
    attribute: str = "text"

    @model_validator(mode="after")
    def _one_scroll_target(self) -> ScrollCollectConfig:
        if (self.selector is None) == (self.coordinates is None):
            raise ValueError("exactly one of 'selector' or 'coordinates' must be set")
        return self

    @classmethod
    def from_task(cls, task: Task) -> ScrollCollectConfig:
        """Build from a scrollAndCollect task; coordinates win over a selector."""
        coordinates = task.coordinates
        return cls(
            extract_selector=task.extract_selector,
            selector=None if coordinates else task.selector,
            coordinates=coordinates,
            scroll_amount=task.scroll_amount or DEFAULT_SCROLL_AMOUNT,
            iterations=task.iterations or DEFAULT_COLLECT_ITERATIONS,
            delay_ms=task.delay_ms,
            attribute=task.attribute or "text",
        )

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000


def normalize_identifier(raw: str | None, attribute: str) -> str | None:
    """Reduce a projected value to the identifier to store, or None to drop it.

    Path-like values (``/alice_92/``) keep only their single segment; paths
    that do not match the canonical pattern are dropped.
    """
    if not raw:
        return None
    if attribute in PATH_LIKE_ATTRIBUTES and raw.startswith("/"):
        match = CANONICAL_IDENTIFIER_PATTERN.fullmatch(raw)
        return match.group(1) if match else None
    return raw


class CollectedSet:
    """Identifiers accumulated across extraction rounds. Only ever grows."""

    def __init__(self, attribute: str = "text", initial: Iterable[str] = ()) -> None:
        self.attribute = attribute
        self._items: dict[str, None] = {}
        for item in initial:
            if item:
                self._items[item] = None

    def add(self, raw: str | None) -> bool:
        """Normalize and insert; returns True if a new identifier was added."""
        value = normalize_identifier(raw, self.attribute)
        if value is None or value in self._items:
            return False
        self._items[value] = None
        return True

    def update(self, raws: Iterable[str | None]) -> int:
        return sum(1 for raw in raws if self.add(raw))

    def to_list(self) -> list[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)
