"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    """Make the top-level packages importable without installing the project."""
    project_root = Path(__file__).resolve().parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    """Delays are part of the behavior under test only as arguments; skip the real waiting."""
    import asyncio

    real_sleep = asyncio.sleep

    async def fast_sleep(delay, result=None):
        return await real_sleep(0, result)

    monkeypatch.setattr(asyncio, "sleep", fast_sleep)
