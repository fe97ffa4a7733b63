from __future__ import annotations

import json
from pathlib import Path

import pytest

from harvester.exceptions import InvalidArgumentError
from harvester.output_writer import write_identifiers
from runner.task_mode import load_task_file, run_task_file, user_url
from tests.fakes import FakePage, FakeSession


def test_load_yaml_task_file(tmp_path: Path) -> None:
    path = tmp_path / "task.yaml"
    path.write_text(
        "url: https://example.com/u/followers\n"
        "tasks:\n"
        "  - action: scrollAndCollect\n"
        "    selector: html\n"
        "    extractSelector: \"main a span[dir='auto']\"\n"
        "    saveTo: users.js\n"
    )

    task_file = load_task_file(path)

    assert task_file.url == "https://example.com/u/followers"
    assert task_file.tasks[0].save_to == "users.js"


def test_load_json_task_file(tmp_path: Path) -> None:
    path = tmp_path / "task.json"
    path.write_text(json.dumps({"url": "https://example.com/", "loop": True, "tasks": [{"action": "wait"}]}))

    assert load_task_file(path).loop is True


@pytest.mark.parametrize(
    "content",
    [
        "url: https://example.com\ntasks:\n  - action: click\n",
        "- just\n- a list\n",
        "url: [unclosed\n",
    ],
)
def test_invalid_task_files(tmp_path: Path, content: str) -> None:
    path = tmp_path / "task.yaml"
    path.write_text(content)

    with pytest.raises(InvalidArgumentError):
        load_task_file(path)


def test_user_url() -> None:
    assert user_url("https://example.com/", "alice") == "https://example.com/alice"
    assert user_url("https://example.com", "alice") == "https://example.com/alice"


@pytest.mark.anyio
async def test_single_mode_runs_tasks_on_url(tmp_path: Path) -> None:
    path = tmp_path / "task.json"
    path.write_text(json.dumps({"url": "https://example.com/u", "tasks": [{"action": "wait", "delay": 0}]}))
    session = FakeSession()

    result = await run_task_file(load_task_file(path), session, output_dir=tmp_path)

    assert result.ok
    assert session.visited == ["https://example.com/u"]


@pytest.mark.anyio
async def test_loop_mode_continues_after_failed_user(tmp_path: Path) -> None:
    write_identifiers(tmp_path / "users.js", ["alice", "bob"])
    path = tmp_path / "task.json"
    path.write_text(
        json.dumps(
            {
                "url": "https://example.com/",
                "loop": True,
                "tasks": [{"action": "press", "key": "Tab", "search": {"role": "button", "itration": 1}, "delay": 0}],
            }
        )
    )
    page = FakePage(active_elements=[{"role": "link"}, {"role": "button"}])
    session = FakeSession(page)

    result = await run_task_file(load_task_file(path), session, output_dir=tmp_path, base_dir=tmp_path)

    assert session.visited == ["https://example.com/alice", "https://example.com/bob"]
    assert result.failed == ["alice"]
    assert result.reports["bob"].completed


@pytest.mark.anyio
async def test_loop_mode_without_users(tmp_path: Path) -> None:
    path = tmp_path / "task.json"
    path.write_text(json.dumps({"url": "https://example.com/", "loop": True, "tasks": []}))
    session = FakeSession()

    result = await run_task_file(load_task_file(path), session, base_dir=tmp_path)

    assert result.ok
    assert session.visited == []
