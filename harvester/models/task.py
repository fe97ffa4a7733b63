"""
Task model for declarative browser task lists.

A task file is a URL plus an ordered list of tasks. Field names follow the
camelCase vocabulary used in task files (``scrollAmount``, ``saveTo``...);
snake_case names are accepted as well.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_DELAY_MS = 1000
DEFAULT_TYPE_DELAY_MS = 50
DEFAULT_SEARCH_ATTEMPTS = 10

KNOWN_ACTIONS = frozenset(
    {
        "click",
        "doubleclick",
        "type",
        "scroll",
        "scrollAndCollect",
        "hover",
        "wait",
        "refresh",
        "close",
        "press",
        "screenshot",
        "extract",
        "extractOne",
    }
)

# Keys of a legacy search block that hold the attempt budget rather than the predicate
_SEARCH_BUDGET_KEYS = ("maxAttempts", "max_attempts", "itration")


class SearchSpec(BaseModel):
    """Predicate for the retry search: focused element ``key`` must match ``value``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str = Field(min_length=1)
    value: str | int | float | bool | None = None
    max_attempts: int = Field(default=DEFAULT_SEARCH_ATTEMPTS, alias="maxAttempts", ge=1)

    @model_validator(mode="before")
    @classmethod
    def _from_legacy_shape(cls, data: Any) -> Any:
        """Accept ``{"textContent": "Follow", "itration": 5}`` style blocks.

        The first key that is not an attempt budget becomes the predicate.
        """
        if not isinstance(data, dict) or "key" in data:
            return data

        budget = next((data[k] for k in _SEARCH_BUDGET_KEYS if k in data), None)
        predicate = [(k, v) for k, v in data.items() if k not in _SEARCH_BUDGET_KEYS]
        if not predicate:
            raise ValueError("search block requires a key/value predicate")

        key, value = predicate[0]
        converted: dict[str, Any] = {"key": key, "value": value}
        if budget is not None:
            converted["maxAttempts"] = budget
        return converted


class Task(BaseModel):
    """A single step of a task list. Immutable once constructed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    action: str = Field(min_length=1)
    selector: str | None = None
    x: float | None = None
    y: float | None = None
    text: str | None = None
    attribute: str | None = None
    scroll_amount: int | None = Field(default=None, alias="scrollAmount")
    iterations: int | None = Field(default=None, ge=1)
    delay: int | None = Field(default=None, ge=0)
    save_to: str | None = Field(default=None, alias="saveTo")
    search: SearchSpec | None = None
    key: str | None = None
    direction: Literal["up", "down"] = "down"
    extract_selector: str | None = Field(default=None, alias="extractSelector")
    type_delay: int | None = Field(default=None, alias="typeDelay", ge=0)
    path: str | None = None
    full_page: bool = Field(default=False, alias="fullPage")

    @model_validator(mode="after")
    def _check_required_params(self) -> Task:
        if (self.x is None) != (self.y is None):
            raise ValueError("coordinates require both 'x' and 'y'")

        has_target = self.selector is not None or self.coordinates is not None

        if self.action in ("click", "doubleclick", "hover") and not has_target:
            raise ValueError(f"{self.action} requires 'selector' or 'x'/'y'")
        if self.action == "scrollAndCollect":
            if not self.extract_selector:
                raise ValueError("scrollAndCollect requires 'extractSelector'")
            if not has_target:
                raise ValueError("scrollAndCollect requires a scroll container 'selector' or 'x'/'y'")
        if self.action in ("extract", "extractOne") and not self.selector:
            raise ValueError(f"{self.action} requires 'selector'")
        if self.action == "press" and not self.key:
            raise ValueError("press requires 'key'")
        if self.action == "type" and self.text is None:
            raise ValueError("type requires 'text'")
        return self

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.x is None or self.y is None:
            return None
        return (self.x, self.y)

    @property
    def delay_ms(self) -> int:
        """Post-action delay, 1000 ms unless the task overrides it."""
        return self.delay if self.delay is not None else DEFAULT_DELAY_MS

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000


class TaskResult(BaseModel):
    """Outcome of one task. Session errors are raised, never reported here."""

    ok: bool = True
    message: str | None = None
    data: Any = None


class TaskFile(BaseModel):
    """A task-list document: the page to open and the steps to run on it.

    With ``loop`` enabled the task list runs once per identifier read from
    ``users``, each time on ``url`` joined with the identifier.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(min_length=1)
    tasks: list[Task] = Field(default_factory=list)
    loop: bool = False
    users: str = "users.js"
