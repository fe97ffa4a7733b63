"""Browser session lifecycle: one Playwright browser context per session."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from playwright.async_api import async_playwright

from harvester.exceptions import SessionFaultError

logger = logging.getLogger(__name__)

MOBILE_VIEWPORT = {"width": 360, "height": 600}
MOBILE_DEVICE_SCALE_FACTOR = 3
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 13; SM-G991B) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)


class BrowserSession:
    """Owns a Playwright driver, its browser context and the working page.

    With ``user_data_dir`` the session runs on a persistent profile (a
    profile can only be used by one browser at a time). Otherwise it gets a
    fresh context, optionally seeded from a ``storage_state`` file so that
    concurrent sessions share cookies without sharing a profile.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        user_data_dir: str | Path | None = None,
        storage_state: str | Path | None = None,
        navigation_timeout_ms: int = 30000,
    ) -> None:
        self.headless = headless
        self.user_data_dir = Path(user_data_dir) if user_data_dir else None
        self.storage_state = Path(storage_state) if storage_state else None
        self.navigation_timeout_ms = navigation_timeout_ms

        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._page: Any = None
        self._closed = False

    async def open(self) -> Any:
        """Launch the browser and return the page to work on.

        Raises:
            SessionFaultError: if ``close`` was called before the launch finished
        """
        self._ensure_not_closed("before opening")
        context_options: dict[str, Any] = {
            "viewport": MOBILE_VIEWPORT,
            "device_scale_factor": MOBILE_DEVICE_SCALE_FACTOR,
            "is_mobile": True,
            "has_touch": True,
            "user_agent": MOBILE_USER_AGENT,
        }
        args = [
            f"--window-size={MOBILE_VIEWPORT['width'] + 100},{MOBILE_VIEWPORT['height'] + 150}",
            "--window-position=100,50",
        ]

        self._playwright = await async_playwright().start()
        await self._abort_if_closed("starting the driver")
        chromium = self._playwright.chromium

        if self.user_data_dir:
            self.user_data_dir.mkdir(parents=True, exist_ok=True)
            self._context = await chromium.launch_persistent_context(
                str(self.user_data_dir),
                headless=self.headless,
                args=args,
                **context_options,
            )
        else:
            self._browser = await chromium.launch(headless=self.headless, args=args)
            await self._abort_if_closed("launching the browser")
            if self.storage_state and self.storage_state.exists():
                context_options["storage_state"] = str(self.storage_state)
            self._context = await self._browser.new_context(**context_options)
        await self._abort_if_closed("creating the context")

        self._context.set_default_navigation_timeout(self.navigation_timeout_ms)
        self._page = self._context.pages[0] if self._context.pages else await self._context.new_page()
        await self._abort_if_closed("opening the page")
        logger.info(f"Browser session opened (headless={self.headless}, profile={self.user_data_dir or 'ephemeral'})")
        return self._page

    def _ensure_not_closed(self, stage: str) -> None:
        if self._closed:
            raise SessionFaultError(f"Browser session was closed {stage}")

    async def _abort_if_closed(self, stage: str) -> None:
        """A close during launch only sees the handles that existed then; release the rest."""
        if self._closed:
            await self._release()
            raise SessionFaultError(f"Browser session was closed while {stage}")

    @property
    def page(self) -> Any:
        if self._page is None or self._closed:
            raise SessionFaultError("Browser session is not open")
        return self._page

    @property
    def is_open(self) -> bool:
        return self._page is not None and not self._closed

    async def goto(self, url: str, settle_ms: int = 2000) -> None:
        """Navigate and wait for network quiescence plus a settle delay."""
        logger.info(f"Opening URL: {url}")
        await self.page.goto(url, wait_until="networkidle")
        if settle_ms:
            await asyncio.sleep(settle_ms / 1000)

    async def reload(self) -> None:
        await self.page.reload(wait_until="networkidle")

    async def close(self) -> None:
        """Close context, browser and driver. Safe to call more than once."""
        self._closed = True
        if await self._release():
            logger.info("Browser session closed")

    async def _release(self) -> bool:
        """Close every handle still held and drop the references. Returns True if any was held."""
        handles = (
            ("context", self._context, "close"),
            ("browser", self._browser, "close"),
            ("driver", self._playwright, "stop"),
        )
        self._context = self._browser = self._playwright = self._page = None

        released = False
        for name, handle, method in handles:
            if handle is None:
                continue
            released = True
            try:
                await getattr(handle, method)()
            except Exception as e:
                logger.warning(f"Failed to close browser {name}: {e}")
        return released
