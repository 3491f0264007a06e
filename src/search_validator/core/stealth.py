"""Stealth helpers built on top of playwright-stealth.

Search engines tend to answer automated sessions with interstitials instead of
results, so evasions are on by default. See:
https://github.com/mattwmaster58/playwright_stealth
"""
from __future__ import annotations

from contextlib import AbstractAsyncContextManager

from playwright.async_api import BrowserContext, async_playwright
from playwright_stealth import ALL_EVASIONS_DISABLED_KWARGS, Stealth


class StealthManager:
    """Owns the Stealth helper for one browser session."""

    def __init__(self, enabled: bool, **overrides: object) -> None:
        self.enabled = enabled
        self._overrides = overrides
        self._stealth = Stealth(**{**({} if enabled else ALL_EVASIONS_DISABLED_KWARGS), **overrides})

    def playwright(self) -> AbstractAsyncContextManager:
        """Context manager yielding Playwright, patched when stealth is enabled."""
        if not self.enabled:
            return async_playwright()
        return self._stealth.use_async(async_playwright())

    async def apply(self, context: BrowserContext) -> None:
        if not self.enabled:
            return
        await self._stealth.apply_stealth_async(context)

    def describe(self) -> dict[str, object]:
        return {"enabled": self.enabled, **({"overrides": self._overrides} if self.enabled else {})}
