from __future__ import annotations

import pytest
from pydantic import ValidationError

from harvester.models.collect import CollectedSet, ScrollCollectConfig, normalize_identifier
from harvester.models.task import DEFAULT_SEARCH_ATTEMPTS, SearchSpec, Task, TaskFile


def test_task_accepts_camel_case_fields() -> None:
    task = Task.model_validate(
        {
            "action": "scrollAndCollect",
            "selector": "div.list",
            "extractSelector": "a span",
            "scrollAmount": 300,
            "saveTo": "users.js",
            "iterations": 4,
        }
    )

    assert task.extract_selector == "a span"
    assert task.scroll_amount == 300
    assert task.save_to == "users.js"


def test_task_is_immutable() -> None:
    task = Task(action="wait", delay=10)

    with pytest.raises(ValidationError):
        task.delay = 20


def test_delay_defaults_to_one_second() -> None:
    assert Task(action="wait").delay_ms == 1000
    assert Task(action="wait", delay=250).delay_seconds == 0.25


@pytest.mark.parametrize(
    "data",
    [
        {"action": "click"},
        {"action": "hover"},
        {"action": "click", "x": 10},
        {"action": "scrollAndCollect", "selector": "html"},
        {"action": "scrollAndCollect", "extractSelector": "a"},
        {"action": "extract"},
        {"action": "extractOne"},
        {"action": "press"},
        {"action": "type", "selector": "input"},
    ],
)
def test_missing_required_parameters_are_rejected(data: dict) -> None:
    with pytest.raises(ValidationError):
        Task.model_validate(data)


def test_unknown_action_still_parses() -> None:
    assert Task(action="teleport").action == "teleport"


def test_legacy_search_block_is_converted() -> None:
    task = Task.model_validate({"action": "press", "key": "Tab", "search": {"textContent": "Follow", "itration": 5}})

    assert task.search == SearchSpec(key="textContent", value="Follow", max_attempts=5)


def test_search_block_defaults_to_ten_attempts() -> None:
    spec = SearchSpec.model_validate({"role": "button"})

    assert spec.key == "role"
    assert spec.value == "button"
    assert spec.max_attempts == DEFAULT_SEARCH_ATTEMPTS


def test_explicit_search_shape() -> None:
    spec = SearchSpec.model_validate({"key": "value", "value": 3, "maxAttempts": 2})

    assert (spec.key, spec.value, spec.max_attempts) == ("value", 3, 2)


def test_task_file_defaults() -> None:
    task_file = TaskFile.model_validate({"url": "https://example.com/", "tasks": [{"action": "wait"}]})

    assert task_file.loop is False
    assert task_file.users == "users.js"
    assert len(task_file.tasks) == 1


def test_collect_config_prefers_coordinates() -> None:
    task = Task(action="scrollAndCollect", selector="div.list", x=105, y=260, extract_selector="a")

    config = ScrollCollectConfig.from_task(task)

    assert config.coordinates == (105, 260)
    assert config.selector is None
    assert config.iterations == 50
    assert config.scroll_amount == 500
    assert config.delay_ms == 1000
    assert config.attribute == "text"


def test_collect_config_requires_exactly_one_target() -> None:
    with pytest.raises(ValidationError):
        ScrollCollectConfig(extract_selector="a")
    with pytest.raises(ValidationError):
        ScrollCollectConfig(extract_selector="a", selector="html", coordinates=(1, 2))


@pytest.mark.parametrize(
    ("raw", "attribute", "expected"),
    [
        ("/alice_92/", "href", "alice_92"),
        ("/a/b/", "href", None),
        ("/alice", "href", None),
        ("https://example.com/alice/", "href", "https://example.com/alice/"),
        ("", "text", None),
        (None, "text", None),
        ("/alice_92/", "text", "/alice_92/"),
    ],
)
def test_normalize_identifier(raw: str | None, attribute: str, expected: str | None) -> None:
    assert normalize_identifier(raw, attribute) == expected


def test_collected_set_only_grows() -> None:
    collected = CollectedSet("href")
    sizes = []
    for snapshot in (["/a/", "/b/"], ["/b/", "/x/y/"], [], ["/c/", ""]):
        collected.update(snapshot)
        sizes.append(len(collected))

    assert sizes == sorted(sizes)
    assert collected.to_list() == ["a", "b", "c"]
    assert "" not in collected
