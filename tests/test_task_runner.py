from __future__ import annotations

import json
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from harvester.exceptions import SessionFaultError
from harvester.executor.task_runner import TaskRunner
from harvester.models.task import Task
from harvester.output_writer import read_identifiers
from tests.fakes import FakePage, FakeSession


def _tasks(*items: dict) -> list[Task]:
    return [Task.model_validate(item) for item in items]


class _BrokenPage(FakePage):
    async def click(self, selector: str, click_count: int = 1) -> None:
        raise PlaywrightError(f"Timeout 30000ms exceeded waiting for {selector}")


@pytest.mark.anyio
async def test_click_prefers_selector_over_coordinates(tmp_path: Path) -> None:
    page = FakePage()
    runner = TaskRunner(FakeSession(page), output_dir=tmp_path)

    report = await runner.run(
        _tasks(
            {"action": "click", "selector": "button.follow", "x": 5, "y": 6, "delay": 0},
            {"action": "doubleclick", "x": 5, "y": 6, "delay": 0},
        )
    )

    assert report.completed
    assert page.actions("click") == [("click", "button.follow", 1)]
    assert page.actions("mouse.click") == [("mouse.click", 5, 6, 2)]


@pytest.mark.anyio
async def test_type_focuses_target_first(tmp_path: Path) -> None:
    page = FakePage()
    runner = TaskRunner(FakeSession(page), output_dir=tmp_path)

    await runner.run(
        _tasks(
            {"action": "type", "selector": "input[name=q]", "text": "cats", "delay": 0},
            {"action": "type", "selector": "html", "text": "dogs", "typeDelay": 10, "delay": 0},
        )
    )

    assert page.actions("click") == [("click", "input[name=q]", 1)]
    assert page.actions("keyboard.type") == [("keyboard.type", "cats", 50), ("keyboard.type", "dogs", 10)]


@pytest.mark.anyio
async def test_scroll_target_precedence_and_direction(tmp_path: Path) -> None:
    page = FakePage()
    runner = TaskRunner(FakeSession(page), output_dir=tmp_path)

    await runner.run(
        _tasks(
            {"action": "scroll", "selector": "div.feed", "iterations": 2, "delay": 0},
            {"action": "scroll", "x": 10, "y": 20, "scrollAmount": 300, "direction": "up", "delay": 0},
            {"action": "scroll", "delay": 0},
        )
    )

    assert page.actions("container.scroll") == [("container.scroll", "div.feed", 500)] * 2
    assert page.actions("mouse.wheel") == [("mouse.wheel", 0, -300)]
    assert page.actions("window.scroll") == [("window.scroll", 500)]


@pytest.mark.anyio
async def test_unknown_action_stops_the_list(tmp_path: Path) -> None:
    page = FakePage()
    runner = TaskRunner(FakeSession(page), output_dir=tmp_path)

    report = await runner.run(_tasks({"action": "teleport"}, {"action": "click", "selector": "a", "delay": 0}))

    assert not report.completed
    assert report.failed_task == 1
    assert report.message == "Unknown action: teleport"
    assert page.actions("click") == []


@pytest.mark.anyio
async def test_failed_search_stops_the_list(tmp_path: Path) -> None:
    page = FakePage(active_elements=[{"textContent": "Home"}] * 3)
    runner = TaskRunner(FakeSession(page), output_dir=tmp_path)

    report = await runner.run(
        _tasks(
            {"action": "press", "key": "Tab", "search": {"textContent": "Follow", "itration": 3}, "delay": 0},
            {"action": "press", "key": "Enter", "delay": 0},
        )
    )

    assert not report.completed
    assert report.message == "Search failed: target not found after 3 attempts"
    assert page.actions("keyboard.press") == [("keyboard.press", "Tab")] * 3


@pytest.mark.anyio
async def test_close_skips_remaining_tasks(tmp_path: Path) -> None:
    session = FakeSession()
    runner = TaskRunner(session, output_dir=tmp_path)

    report = await runner.run(_tasks({"action": "close"}, {"action": "click", "selector": "a", "delay": 0}))

    assert report.completed
    assert report.stopped
    assert report.tasks_run == 1
    assert session.closed
    assert session.page.actions("click") == []


@pytest.mark.anyio
async def test_session_errors_surface_as_session_fault(tmp_path: Path) -> None:
    runner = TaskRunner(FakeSession(_BrokenPage()), output_dir=tmp_path)

    with pytest.raises(SessionFaultError) as exc_info:
        await runner.run(_tasks({"action": "click", "selector": "button.gone"}))

    assert exc_info.value.message == "Timeout 30000ms exceeded waiting for button.gone"
    assert exc_info.value.context.task_index == 1
    assert exc_info.value.context.action == "click"
    assert exc_info.value.context.to_dict() == {"action": "click", "task_index": 1}


@pytest.mark.anyio
async def test_scroll_and_collect_merges_into_save_to(tmp_path: Path) -> None:
    (tmp_path / "users.js").write_text('const users = [\n    "old"\n];\n\nmodule.exports = users;')
    page = FakePage([["/alice/", "/bob/"], ["/bob/", "/carol/", "/x/y/"]])
    runner = TaskRunner(FakeSession(page), output_dir=tmp_path)

    report = await runner.run(
        _tasks(
            {
                "action": "scrollAndCollect",
                "extractSelector": "main a",
                "x": 105,
                "y": 260,
                "attribute": "href",
                "iterations": 2,
                "delay": 0,
                "saveTo": "users.js",
            }
        )
    )

    assert report.completed
    assert report.results[0].data["added"] == 3
    assert read_identifiers(tmp_path / "users.js") == ["old", "alice", "bob", "carol"]


@pytest.mark.anyio
async def test_extract_and_extract_one_overwrite(tmp_path: Path) -> None:
    (tmp_path / "all.json").write_text('["stale"]')
    page = FakePage([["one", "two"]], single_value="first")
    runner = TaskRunner(FakeSession(page), output_dir=tmp_path)

    await runner.run(
        _tasks(
            {"action": "extract", "selector": "li", "saveTo": "all.json", "delay": 0},
            {"action": "extractOne", "selector": "h1", "saveTo": "one.json", "delay": 0},
        )
    )

    assert json.loads((tmp_path / "all.json").read_text()) == ["one", "two"]
    assert json.loads((tmp_path / "one.json").read_text()) == {"content": "first"}


@pytest.mark.anyio
async def test_screenshot_refresh_hover_and_wait(tmp_path: Path) -> None:
    page = FakePage()
    runner = TaskRunner(FakeSession(page), output_dir=tmp_path)

    report = await runner.run(
        _tasks(
            {"action": "hover", "selector": "nav", "delay": 0},
            {"action": "refresh", "delay": 0},
            {"action": "wait", "delay": 5},
            {"action": "screenshot", "path": "shot.png", "fullPage": True, "delay": 0},
        )
    )

    assert report.completed
    assert page.actions("hover") == [("hover", "nav")]
    assert page.actions("reload") == [("reload",)]
    assert page.actions("screenshot") == [("screenshot", str(tmp_path / "shot.png"), True)]
