"""Named phases of a validation call, used to attribute failures."""
from __future__ import annotations

from enum import Enum


class Phase(str, Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    CONSENT_CHECK = "consent_check"
    SURFACE_CHECK = "surface_check"
    READY = "ready"
    SEARCHING = "searching"
    AWAITING_RESULTS = "awaiting_results"
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    CAPTURING_EVIDENCE = "capturing_evidence"
