"""Search validation workflow against a live search page.

:class:`SearchValidator` drives navigation, consent dismissal, query
submission, keyword scoring and result extraction through a
:class:`~search_validator.core.driver.SessionDriver`. It keeps no state
between calls apart from the phase of the call in progress, which is only
used to attribute failures.

Steps fall into three groups:

* best-effort (consent dismissal, main-surface enforcement) return a
  :class:`StepOutcome` that is logged and discarded, they never raise;
* correctness gates (navigation, search execution, minimum result count,
  evidence capture) raise a typed error with the cause chained;
* diagnostics (result extraction) degrade to partial data.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from search_validator.config.settings import Settings
from search_validator.core.driver import SessionDriver
from search_validator.errors import (
    DriverError,
    EvidenceError,
    NavigationError,
    ResultAssertionError,
    SearchError,
    ValidationError,
)
from search_validator.selectors.search_page import DEFAULT_LOCATORS, LocatorSet
from search_validator.storage.evidence import evidence_path
from search_validator.validation import (
    EvidenceArtifact,
    Phase,
    ResultEntry,
    StepOutcome,
    ValidationResult,
    match_keywords,
    meets_majority,
)

logger = logging.getLogger(__name__)


class SearchValidator:
    """Validate one search surface, one query at a time."""

    def __init__(
        self,
        driver: SessionDriver,
        settings: Settings,
        locators: LocatorSet = DEFAULT_LOCATORS,
    ) -> None:
        self.driver = driver
        self.settings = settings
        self.locators = locators
        self.phase = Phase.IDLE

    async def navigate_to_search_engine(self, url: Optional[str] = None) -> None:
        """Open the engine, dismiss consent dialogs and land on the main surface."""
        target = url or self.settings.search_engine_url
        self.phase = Phase.NAVIGATING
        try:
            await self.driver.navigate(target, self.settings.navigation_timeout_ms)
            await self.driver.settle(self.settings.navigation_settle_ms)
            self._log_outcome(await self._handle_consent_dialogs())
            self._log_outcome(await self._ensure_main_search_page())
        except Exception as exc:
            raise NavigationError(f"Navigation failed: {exc}", phase=self.phase) from exc
        self.phase = Phase.READY
        logger.info("Navigated to %s", target)

    async def execute_search(self, term: str) -> None:
        """Type ``term`` into the query input, submit with Enter and wait for results."""
        logger.info("Executing search for '%s'", term)
        self.phase = Phase.SEARCHING
        try:
            search_input = await self.driver.wait_for_visible(
                self.locators.search_input, self.settings.action_timeout_ms
            )
            current_url = self.driver.current_url()
            if self.locators.is_alternate_surface(current_url):
                root = self.locators.surface_root(current_url)
                logger.info("Search started on alternate surface %s; returning to %s", current_url, root)
                await self.driver.navigate(root, self.settings.navigation_timeout_ms)
                search_input = await self.driver.wait_for_visible(
                    self.locators.search_input, self.settings.surface_input_timeout_ms
                )
            await self.driver.fill_and_submit(search_input, term)
            self.phase = Phase.AWAITING_RESULTS
            await self.driver.wait_for_present(self.locators.result_container, self.settings.wait_timeout_ms)
        except Exception as exc:
            raise SearchError(f"Search execution failed: {exc}", phase=self.phase) from exc
        logger.info("Search completed for '%s'", term)

    async def validate_search_results(
        self,
        expected_keywords: Sequence[str],
        min_result_count: Optional[int] = None,
    ) -> ValidationResult:
        """Count results, then score the page against ``expected_keywords``.

        Raises :class:`ResultAssertionError` when fewer than ``min_result_count``
        results are rendered; keywords are not read in that case.
        """
        self.phase = Phase.VALIDATING
        minimum = self.settings.min_result_count if min_result_count is None else min_result_count
        if minimum < 0:
            raise ValueError("min_result_count must be >= 0")
        keywords = tuple(expected_keywords)

        try:
            total_results = await self.driver.count(self.locators.result_title)
        except DriverError as exc:
            raise ValidationError(f"Result validation failed: {exc}", phase=self.phase) from exc

        if total_results < minimum:
            raise ResultAssertionError(
                f"Result validation failed: expected at least {minimum} results, found {total_results}",
                expected=minimum,
                actual=total_results,
            )

        try:
            page_text = await self.driver.page_text()
        except DriverError as exc:
            raise ValidationError(f"Result validation failed: {exc}", phase=self.phase) from exc

        keyword_matches = match_keywords(page_text, keywords)
        for keyword, present in keyword_matches.items():
            if present:
                logger.info("Keyword found: '%s'", keyword)
            else:
                logger.info("Keyword missing: '%s'", keyword)

        result = ValidationResult(
            total_results=total_results,
            keyword_matches=keyword_matches,
            is_valid=meets_majority(keyword_matches, len(keywords)),
        )
        logger.info(
            "Validation summary: %s/%s keywords found across %s results",
            result.matched_count,
            len(keywords),
            total_results,
        )
        return result

    async def extract_result_data(self) -> list[ResultEntry]:
        """Pair result titles with snippets by index; never raises.

        Titles and snippets are not guaranteed to sit together in the DOM, so
        index alignment is a heuristic. On failure the entries read so far
        are returned.
        """
        self.phase = Phase.EXTRACTING
        entries: list[ResultEntry] = []
        try:
            titles = await self.driver.locate_all(self.locators.result_title)
            descriptions = await self.driver.locate_all(self.locators.result_snippet)
            for index in range(min(len(titles), self.settings.max_extracted_results)):
                title = await self.driver.read_text(titles[index])
                description = ""
                if index < len(descriptions):
                    description = await self.driver.read_text(descriptions[index])
                entries.append(
                    ResultEntry(position=index + 1, title=title.strip(), description=description.strip())
                )
        except Exception as exc:
            logger.warning("Result extraction stopped after %s entries: %s", len(entries), exc)
            return entries
        logger.info("Extracted %s result entries", len(entries))
        return entries

    async def capture_evidence(self, name: str, folder: Optional[Path | str] = None) -> EvidenceArtifact:
        """Write a screenshot named after ``name`` and the current UTC time."""
        moment = datetime.now(timezone.utc)
        target_dir = Path(folder) if folder else self.settings.evidence_dir
        path = evidence_path(name, target_dir, moment=moment, extension=self.settings.screenshot_type)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            await self.driver.screenshot(path, **self.settings.screenshot_options())
        except (OSError, DriverError) as exc:
            raise EvidenceError(f"Evidence capture failed for {path}: {exc}", path=str(path)) from exc
        logger.info("Evidence captured: %s", path)
        return EvidenceArtifact(path=path, timestamp=moment)

    async def _handle_consent_dialogs(self) -> StepOutcome:
        self.phase = Phase.CONSENT_CHECK
        for selector in self.locators.consent_button:
            try:
                element = await self.driver.probe_visible(selector, self.settings.probe_timeout_ms)
                if element is None:
                    continue
                await self.driver.click(element)
                await self.driver.settle(self.settings.settle_ms)
            except Exception as exc:
                logger.debug("Consent candidate %s failed: %s", selector, exc)
                continue
            return StepOutcome(self.phase, True, detail=f"Dismissed consent dialog via {selector}")
        return StepOutcome(self.phase, False, diagnostic="No consent dialog detected")

    async def _ensure_main_search_page(self) -> StepOutcome:
        self.phase = Phase.SURFACE_CHECK
        actions: list[str] = []
        try:
            current_url = self.driver.current_url()
            if self.locators.is_alternate_surface(current_url):
                root = self.locators.surface_root(current_url)
                await self.driver.navigate(root, self.settings.navigation_timeout_ms)
                await self.driver.settle(self.settings.settle_ms)
                await self.driver.wait_for_visible(
                    self.locators.search_input, self.settings.surface_input_timeout_ms
                )
                actions.append(f"returned from {current_url} to {root}")
            switch = await self.driver.probe_visible(self.locators.surface_switch, self.settings.probe_timeout_ms)
            if switch is not None:
                await self.driver.click(switch)
                await self.driver.settle(self.settings.settle_ms)
                actions.append("selected the main results tab")
        except Exception as exc:
            return StepOutcome(
                self.phase,
                False,
                diagnostic=f"Could not ensure main search page, continuing: {exc}",
            )
        return StepOutcome(self.phase, True, detail="; ".join(actions) or "already on main search page")

    @staticmethod
    def _log_outcome(outcome: StepOutcome) -> None:
        if outcome.completed:
            logger.info("%s: %s", outcome.phase.value, outcome.detail)
        else:
            logger.info("%s skipped: %s", outcome.phase.value, outcome.diagnostic)
