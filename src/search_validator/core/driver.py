"""Capability wrapper over a single Playwright page.

The validator only talks to the page through :class:`SessionDriver`, which
turns Playwright exceptions into :class:`DriverError` /
:class:`DriverTimeoutError` so callers can re-wrap them per phase.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from search_validator.errors import DriverError, DriverTimeoutError

logger = logging.getLogger(__name__)

_VISIBILITY_POLL_INTERVAL_S = 0.25


def _union(selectors: Sequence[str]) -> str:
    # A CSS selector list matches each element once, even when alternatives overlap.
    return ", ".join(selectors)


class SessionDriver:
    def __init__(self, page: Page) -> None:
        self.page = page

    @contextmanager
    def _translate(self, action: str) -> Iterator[None]:
        try:
            yield
        except PlaywrightTimeoutError as exc:
            raise DriverTimeoutError(f"{action} timed out: {exc.message}") from exc
        except PlaywrightError as exc:
            raise DriverError(f"{action} failed: {exc.message}") from exc

    async def navigate(self, url: str, timeout_ms: float) -> None:
        logger.debug("Navigating to %s", url)
        with self._translate(f"Navigation to {url}"):
            await self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)

    def current_url(self) -> str:
        return self.page.url

    async def settle(self, delay_ms: float) -> None:
        """Fixed pause letting asynchronous rendering finish."""
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

    async def wait_for_visible(self, selectors: Sequence[str], timeout_ms: float) -> Locator:
        """Return the first selector, in declared order, whose element is visible.

        Candidates are polled until ``timeout_ms`` expires; a candidate that
        errors is treated as not visible for that round.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000
        while True:
            for selector in selectors:
                locator = self.page.locator(selector).first
                try:
                    if await locator.is_visible():
                        logger.debug("Resolved visible element via %s", selector)
                        return locator
                except PlaywrightError as exc:
                    logger.debug("Selector %s could not be evaluated: %s", selector, exc.message)
            if loop.time() >= deadline:
                raise DriverTimeoutError.waiting_for(tuple(selectors), timeout_ms)
            await asyncio.sleep(_VISIBILITY_POLL_INTERVAL_S)

    async def probe_visible(self, selectors: str | Sequence[str], timeout_ms: float) -> Optional[Locator]:
        """Short visibility check for optional elements; ``None`` when absent.

        Hidden matches are skipped, so a visible element later in the DOM is
        still found when the first match is hidden.
        """
        selector = selectors if isinstance(selectors, str) else _union(selectors)
        locator = self.page.locator(selector).locator("visible=true").first
        try:
            await locator.wait_for(state="visible", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return None
        except PlaywrightError as exc:
            raise DriverError(f"Probe of {selector} failed: {exc.message}") from exc
        return locator

    async def wait_for_present(self, selectors: Sequence[str], timeout_ms: float) -> None:
        try:
            await self.page.wait_for_selector(_union(selectors), state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise DriverTimeoutError.waiting_for(tuple(selectors), timeout_ms) from exc
        except PlaywrightError as exc:
            raise DriverError(f"Waiting for {_union(selectors)} failed: {exc.message}") from exc

    async def click(self, locator: Locator) -> None:
        with self._translate("Click"):
            await locator.click()

    async def fill_and_submit(self, locator: Locator, text: str) -> None:
        """Replace the element's content with ``text`` and press Enter."""
        with self._translate("Fill and submit"):
            await locator.click()
            await locator.clear()
            await locator.fill(text)
            await locator.press("Enter")

    async def count(self, selectors: Sequence[str]) -> int:
        with self._translate("Count"):
            return await self.page.locator(_union(selectors)).count()

    async def locate_all(self, selectors: Sequence[str]) -> list[Locator]:
        with self._translate("Locate"):
            return await self.page.locator(_union(selectors)).all()

    async def read_text(self, locator: Locator) -> str:
        with self._translate("Read text"):
            return await locator.text_content() or ""

    async def page_text(self) -> str:
        with self._translate("Read page text"):
            return await self.page.locator("body").text_content() or ""

    async def screenshot(self, path: Path, *, full_page: bool = True, image_type: str = "png") -> None:
        with self._translate(f"Screenshot to {path}"):
            await self.page.screenshot(path=str(path), full_page=full_page, type=image_type)
