"""Dataclasses describing queries, validation outcomes and evidence."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from search_validator.validation.phases import Phase


@dataclass(frozen=True, slots=True)
class Query:
    """A search term plus the keywords its results are expected to mention."""

    term: str
    expected_keywords: tuple[str, ...] = ()
    min_result_count: int = 3

    def __post_init__(self) -> None:
        if not self.term or not self.term.strip():
            raise ValueError("Query term must not be blank")
        if self.min_result_count < 0:
            raise ValueError("min_result_count must be >= 0")
        if not isinstance(self.expected_keywords, tuple):
            object.__setattr__(self, "expected_keywords", tuple(self.expected_keywords))

    @classmethod
    def from_values(
        cls,
        term: str,
        expected_keywords: Iterable[str] = (),
        min_result_count: Optional[int] = None,
        *,
        default_min_result_count: int = 3,
    ) -> "Query":
        return cls(
            term=term,
            expected_keywords=tuple(str(keyword) for keyword in expected_keywords),
            min_result_count=default_min_result_count if min_result_count is None else min_result_count,
        )

    @property
    def slug(self) -> str:
        """Term with whitespace runs collapsed to underscores, for file names."""
        return "_".join(self.term.split())


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of scoring one result page against a keyword set.

    ``keyword_matches`` is a read-only view over a private copy of the mapping
    it was built from.
    """

    total_results: int
    keyword_matches: Mapping[str, bool] = field(default_factory=dict)
    is_valid: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "keyword_matches", MappingProxyType(dict(self.keyword_matches)))

    @property
    def matched_count(self) -> int:
        return sum(1 for matched in self.keyword_matches.values() if matched)

    def to_dict(self) -> dict[str, object]:
        return {
            "total_results": self.total_results,
            "keyword_matches": dict(self.keyword_matches),
            "matched_count": self.matched_count,
            "is_valid": self.is_valid,
        }


@dataclass(frozen=True, slots=True)
class ResultEntry:
    """One rendered search result, in page order."""

    position: int
    title: str
    description: str = ""

    def __post_init__(self) -> None:
        if self.position < 1:
            raise ValueError("ResultEntry position starts at 1")

    def to_dict(self) -> dict[str, object]:
        return {
            "position": self.position,
            "title": self.title,
            "description": self.description,
        }


@dataclass(frozen=True, slots=True)
class EvidenceArtifact:
    """File written during a run: a screenshot, or a trace or video kept for a failed attempt."""

    path: Path
    timestamp: datetime
    kind: str = "screenshot"

    def to_dict(self) -> dict[str, object]:
        return {"path": str(self.path), "timestamp": self.timestamp.isoformat(), "kind": self.kind}


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Result of a best-effort step; callers log ``diagnostic`` and carry on."""

    phase: Phase
    completed: bool
    detail: Optional[str] = None
    diagnostic: Optional[str] = None
