"""Sequential scenario runner for configured queries."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Sequence

from search_validator.config.settings import Settings
from search_validator.core.recording import AttemptRecorder
from search_validator.errors import EvidenceError, ResultAssertionError
from search_validator.tasks.search import SearchValidator
from search_validator.validation import (
    EvidenceArtifact,
    Phase,
    Query,
    ResultEntry,
    ValidationResult,
    majority_threshold,
)

logger = logging.getLogger(__name__)

PASSED = "PASSED"
FAILED = "FAILED"
_REPORTED_RESULTS = 3


@dataclass
class ScenarioOutcome:
    """What happened to one query, ready for the reports."""

    term: str
    status: str
    duration_ms: int
    attempts: int = 1
    result_count: Optional[int] = None
    keyword_matches: dict[str, bool] = field(default_factory=dict)
    evidence: list[EvidenceArtifact] = field(default_factory=list)
    top_results: list[ResultEntry] = field(default_factory=list)
    error: Optional[str] = None
    phase: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status == PASSED

    @property
    def evidence_path(self) -> Optional[str]:
        return self._latest("screenshot")

    @property
    def trace_path(self) -> Optional[str]:
        return self._latest("trace")

    @property
    def video_path(self) -> Optional[str]:
        return self._latest("video")

    def _latest(self, kind: str) -> Optional[str]:
        paths = [artifact.path for artifact in self.evidence if artifact.kind == kind]
        return str(paths[-1]) if paths else None

    def to_dict(self) -> dict[str, object]:
        return {
            "search_term": self.term,
            "status": self.status,
            "duration_ms": self.duration_ms,
            "attempts": self.attempts,
            "result_count": self.result_count,
            "keyword_matches": dict(self.keyword_matches),
            "evidence_path": self.evidence_path,
            "trace_path": self.trace_path,
            "video_path": self.video_path,
            "evidence": [artifact.to_dict() for artifact in self.evidence],
            "result_data": [entry.to_dict() for entry in self.top_results],
            "error": self.error,
            "phase": self.phase,
        }


class OutcomeLedger:
    """Accumulates scenario outcomes for one run."""

    def __init__(self) -> None:
        self._outcomes: list[ScenarioOutcome] = []

    def record(self, outcome: ScenarioOutcome) -> None:
        self._outcomes.append(outcome)

    def __iter__(self) -> Iterator[ScenarioOutcome]:
        return iter(self._outcomes)

    def __len__(self) -> int:
        return len(self._outcomes)

    @property
    def passed(self) -> list[ScenarioOutcome]:
        return [outcome for outcome in self._outcomes if outcome.passed]

    @property
    def failed(self) -> list[ScenarioOutcome]:
        return [outcome for outcome in self._outcomes if not outcome.passed]

    def summary(self) -> dict[str, int]:
        return {
            "total": len(self._outcomes),
            "passed": len(self.passed),
            "failed": len(self.failed),
            "duration_ms": sum(outcome.duration_ms for outcome in self._outcomes),
        }

    def to_dicts(self) -> list[dict[str, object]]:
        return [outcome.to_dict() for outcome in self._outcomes]


def is_relevant(query: Query, entries: Sequence[ResultEntry]) -> bool:
    """True when any extracted title or snippet mentions a term word or expected keyword."""
    needles = [word for word in query.term.lower().split() if word]
    needles.extend(keyword.lower() for keyword in query.expected_keywords if keyword)
    for entry in entries:
        haystack = f"{entry.title}\n{entry.description}".lower()
        if any(needle in haystack for needle in needles):
            return True
    return False


def assert_scenario(query: Query, result: ValidationResult, entries: Sequence[ResultEntry]) -> None:
    """Scenario-level gates applied after validation and extraction."""
    if result.total_results < query.min_result_count:
        raise ResultAssertionError(
            f"Expected at least {query.min_result_count} results, found {result.total_results}",
            expected=query.min_result_count,
            actual=result.total_results,
        )
    if not result.is_valid:
        needed = majority_threshold(len(query.expected_keywords))
        raise ResultAssertionError(
            f"Keyword threshold not met: {result.matched_count}/{len(query.expected_keywords)} found, "
            f"{needed} required",
            expected=needed,
            actual=result.matched_count,
        )
    if not is_relevant(query, entries):
        raise ResultAssertionError(
            f"No extracted result mentions '{query.term}' or its expected keywords",
            phase=Phase.EXTRACTING,
        )


class ScenarioRunner:
    """Run queries one after another through a single validator.

    With a ``recorder`` every attempt is traced and filmed; the recordings are
    attached to the outcome only when the attempt fails.
    """

    def __init__(
        self,
        validator: SearchValidator,
        settings: Settings,
        ledger: Optional[OutcomeLedger] = None,
        recorder: Optional[AttemptRecorder] = None,
    ) -> None:
        self.validator = validator
        self.settings = settings
        self.ledger = ledger if ledger is not None else OutcomeLedger()
        self.recorder = recorder

    async def run(self, queries: Iterable[Query]) -> OutcomeLedger:
        for index, query in enumerate(queries, start=1):
            logger.info("Scenario %s: '%s'", index, query.term)
            outcome = await self.run_scenario(query)
            self.ledger.record(outcome)
            logger.info(
                "%s %s (%sms, %s results, attempts=%s)%s",
                outcome.status,
                outcome.term,
                outcome.duration_ms,
                outcome.result_count if outcome.result_count is not None else "-",
                outcome.attempts,
                f": {outcome.error}" if outcome.error else "",
            )
        return self.ledger

    async def run_scenario(self, query: Query) -> ScenarioOutcome:
        max_attempts = self.settings.scenario_retries + 1
        attempt = 1
        while True:
            outcome = await self._attempt(query, attempt)
            if outcome.passed or attempt >= max_attempts:
                return outcome
            attempt += 1
            logger.warning("Retrying '%s' (attempt %s of %s)", query.term, attempt, max_attempts)

    async def _attempt(self, query: Query, attempt: int) -> ScenarioOutcome:
        outcome = await self._run_steps(query, attempt)
        if self.recorder is not None:
            outcome.evidence.extend(await self._finish_recording(query, keep=not outcome.passed))
        return outcome

    async def _run_steps(self, query: Query, attempt: int) -> ScenarioOutcome:
        started = time.monotonic()
        evidence: list[EvidenceArtifact] = []
        result: Optional[ValidationResult] = None
        try:
            if self.recorder is not None:
                await self.recorder.begin(self.validator.driver)
            await self.validator.navigate_to_search_engine(self.settings.search_engine_url)
            evidence.append(await self.validator.capture_evidence("initial_state"))
            await self.validator.execute_search(query.term)
            evidence.append(await self.validator.capture_evidence(f"test_results_{query.slug}"))
            result = await self.validator.validate_search_results(
                query.expected_keywords, query.min_result_count
            )
            entries = await self.validator.extract_result_data()
            assert_scenario(query, result, entries)
        except Exception as exc:
            phase = getattr(exc, "phase", self.validator.phase)
            logger.error("Validation failed for '%s' during %s: %s", query.term, Phase(phase).value, exc)
            failure_evidence = await self._capture_failure_evidence(query)
            if failure_evidence:
                evidence.append(failure_evidence)
            return ScenarioOutcome(
                term=query.term,
                status=FAILED,
                duration_ms=_elapsed_ms(started),
                attempts=attempt,
                result_count=result.total_results if result else getattr(exc, "actual", None),
                keyword_matches=dict(result.keyword_matches) if result else {},
                evidence=evidence,
                error=str(exc),
                phase=Phase(phase).value,
            )
        return ScenarioOutcome(
            term=query.term,
            status=PASSED,
            duration_ms=_elapsed_ms(started),
            attempts=attempt,
            result_count=result.total_results,
            keyword_matches=dict(result.keyword_matches),
            evidence=evidence,
            top_results=list(entries[:_REPORTED_RESULTS]),
        )

    async def _capture_failure_evidence(self, query: Query) -> Optional[EvidenceArtifact]:
        try:
            return await self.validator.capture_evidence(f"failure_{query.slug}")
        except Exception as exc:
            logger.warning("Failed to capture failure evidence for '%s': %s", query.term, exc)
            return None

    async def _finish_recording(self, query: Query, *, keep: bool) -> list[EvidenceArtifact]:
        try:
            return await self.recorder.end(self.validator.driver, query.slug, keep=keep)
        except EvidenceError as exc:
            logger.warning("Failed to finish recordings for '%s': %s", query.term, exc)
            return []


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
