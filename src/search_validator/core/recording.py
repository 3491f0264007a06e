"""Trace and video capture for scenario attempts, retained only on failure.

Tracing starts once per browser context and is cut into one chunk per
attempt. Each attempt after the first runs on a fresh page so its video is a
separate file; the page is closed when the attempt ends, which finalises the
recording.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from playwright.async_api import BrowserContext
from playwright.async_api import Error as PlaywrightError

from search_validator.config.settings import Settings
from search_validator.core.driver import SessionDriver
from search_validator.errors import EvidenceError
from search_validator.storage.evidence import evidence_path
from search_validator.validation import EvidenceArtifact

logger = logging.getLogger(__name__)


class AttemptRecorder:
    def __init__(self, context: BrowserContext, settings: Settings) -> None:
        self.context = context
        self.settings = settings
        self._tracing = False

    async def begin(self, driver: SessionDriver) -> None:
        """Point ``driver`` at an open page and start a trace chunk for the attempt."""
        try:
            if driver.page.is_closed():
                driver.page = await self.context.new_page()
            if self.settings.trace_on_failure:
                if self._tracing:
                    await self.context.tracing.start_chunk()
                else:
                    await self.context.tracing.start(screenshots=True, snapshots=True)
                    self._tracing = True
        except PlaywrightError as exc:
            raise EvidenceError(
                f"Could not start recording: {exc.message}", path=str(self.settings.evidence_dir)
            ) from exc

    async def end(self, driver: SessionDriver, name: str, *, keep: bool) -> list[EvidenceArtifact]:
        """Close the attempt; write its trace and video under ``name`` when ``keep`` is set."""
        moment = datetime.now(timezone.utc)
        folder = self.settings.evidence_dir
        kept: list[EvidenceArtifact] = []
        target = folder
        try:
            folder.mkdir(parents=True, exist_ok=True)
            if self._tracing:
                if keep:
                    target = evidence_path(f"trace_{name}", folder, moment=moment, extension="zip")
                    await self.context.tracing.stop_chunk(path=target)
                    kept.append(EvidenceArtifact(path=target, timestamp=moment, kind="trace"))
                else:
                    await self.context.tracing.stop_chunk()
            page = driver.page
            video = page.video
            await page.close()
            if video is not None:
                if keep:
                    target = evidence_path(f"video_{name}", folder, moment=moment, extension="webm")
                    await video.save_as(target)
                    kept.append(EvidenceArtifact(path=target, timestamp=moment, kind="video"))
                await video.delete()
        except (OSError, PlaywrightError) as exc:
            raise EvidenceError(f"Recording capture failed for {target}: {exc}", path=str(target)) from exc
        for artifact in kept:
            logger.info("Kept %s: %s", artifact.kind, artifact.path)
        return kept

    async def close(self) -> None:
        if not self._tracing:
            return
        self._tracing = False
        try:
            await self.context.tracing.stop()
        except PlaywrightError as exc:
            logger.warning("Failed to stop tracing: %s", exc.message)
