"""Validation data model and keyword scoring helpers."""

from .models import EvidenceArtifact, Query, ResultEntry, StepOutcome, ValidationResult
from .phases import Phase
from .scoring import majority_threshold, match_keywords, meets_majority

__all__ = [
    "EvidenceArtifact",
    "Phase",
    "Query",
    "ResultEntry",
    "StepOutcome",
    "ValidationResult",
    "majority_threshold",
    "match_keywords",
    "meets_majority",
]
