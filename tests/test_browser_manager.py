from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from harvester.exceptions import SessionFaultError
from harvester.executor.browser_manager import MOBILE_USER_AGENT, MOBILE_VIEWPORT, BrowserSession
from tests.fakes import mock_playwright_driver


@pytest.mark.anyio
async def test_ephemeral_session_uses_mobile_context(tmp_path: Path) -> None:
    starter, playwright, page = mock_playwright_driver()
    state_file = tmp_path / "state.json"
    state_file.write_text("{}")

    with patch("harvester.executor.browser_manager.async_playwright", return_value=starter):
        session = BrowserSession(headless=True, storage_state=state_file, navigation_timeout_ms=5000)
        assert await session.open() is page

    browser = playwright.chromium.launch.return_value
    options = browser.new_context.call_args.kwargs
    assert options["viewport"] == MOBILE_VIEWPORT
    assert options["user_agent"] == MOBILE_USER_AGENT
    assert options["is_mobile"] and options["has_touch"]
    assert options["storage_state"] == str(state_file)
    browser.new_context.return_value.set_default_navigation_timeout.assert_called_once_with(5000)


@pytest.mark.anyio
async def test_persistent_profile(tmp_path: Path) -> None:
    starter, playwright, _ = mock_playwright_driver()
    profile = tmp_path / "profile"

    with patch("harvester.executor.browser_manager.async_playwright", return_value=starter):
        session = BrowserSession(user_data_dir=profile)
        await session.open()

    assert profile.is_dir()
    assert playwright.chromium.launch_persistent_context.call_args.args[0] == str(profile)
    playwright.chromium.launch.assert_not_called()


@pytest.mark.anyio
async def test_close_is_idempotent_and_page_then_faults() -> None:
    starter, playwright, _ = mock_playwright_driver()

    with patch("harvester.executor.browser_manager.async_playwright", return_value=starter):
        session = BrowserSession()
        await session.open()
        await session.goto("https://example.com", settle_ms=0)
        await session.close()
        await session.close()

    playwright.stop.assert_awaited_once()
    assert not session.is_open
    with pytest.raises(SessionFaultError):
        _ = session.page


@pytest.mark.anyio
async def test_close_during_launch_releases_the_late_browser() -> None:
    starter, playwright, _ = mock_playwright_driver()
    browser = playwright.chromium.launch.return_value
    launching = asyncio.Event()
    release = asyncio.Event()

    async def slow_launch(**kwargs):
        launching.set()
        await release.wait()
        return browser

    playwright.chromium.launch = AsyncMock(side_effect=slow_launch)

    with patch("harvester.executor.browser_manager.async_playwright", return_value=starter):
        session = BrowserSession()
        opening = asyncio.create_task(session.open())
        await launching.wait()
        await session.close()
        release.set()

        with pytest.raises(SessionFaultError):
            await opening

    playwright.stop.assert_awaited_once()
    browser.close.assert_awaited_once()
    browser.new_context.assert_not_called()


@pytest.mark.anyio
async def test_open_after_close_never_starts_the_driver() -> None:
    starter, _, _ = mock_playwright_driver()

    with patch("harvester.executor.browser_manager.async_playwright", return_value=starter):
        session = BrowserSession()
        await session.close()
        with pytest.raises(SessionFaultError):
            await session.open()

    starter.start.assert_not_called()
