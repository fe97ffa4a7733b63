from __future__ import annotations

import threading

from runner.registry import JobRegistry


def test_register_creates_idle_handle() -> None:
    registry = JobRegistry()

    handle = registry.register("job-1")

    assert registry.get("job-1") is handle
    assert not handle.running
    assert not handle.cancel_requested
    assert registry.active_ids() == ["job-1"]


def test_request_cancel_sets_flag() -> None:
    registry = JobRegistry()
    registry.register("job-1")

    handle = registry.request_cancel("job-1")

    assert handle is not None and handle.cancel_requested
    assert registry.request_cancel("missing") is None


def test_remove_is_idempotent() -> None:
    registry = JobRegistry()
    registry.register("job-1")

    registry.remove("job-1")
    registry.remove("job-1")

    assert registry.get("job-1") is None
    assert "job-1" not in registry


def test_concurrent_registration() -> None:
    registry = JobRegistry()

    threads = [threading.Thread(target=registry.register, args=(f"job-{i}",)) for i in range(50)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry.active_ids()) == 50
