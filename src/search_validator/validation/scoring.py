"""Keyword scoring used to judge a result page.

Matching is case-insensitive substring containment against the whole page
text, not per result, so a keyword found in a sidebar or snippet counts. A
page is valid when at least half of the expected keywords (rounded up) are
present.
"""
from __future__ import annotations

import math
from typing import Sequence


def majority_threshold(keyword_count: int) -> int:
    """Number of keyword hits needed for ``keyword_count`` expected keywords."""
    if keyword_count < 0:
        raise ValueError("keyword_count must be >= 0")
    return math.ceil(keyword_count / 2)


def match_keywords(page_text: str, expected_keywords: Sequence[str]) -> dict[str, bool]:
    """Map each keyword (original spelling, expected order) to its presence in ``page_text``."""
    content = page_text.lower()
    return {keyword: keyword.lower() in content for keyword in expected_keywords}


def meets_majority(keyword_matches: dict[str, bool], expected_count: int) -> bool:
    matched = sum(1 for hit in keyword_matches.values() if hit)
    return matched >= majority_threshold(expected_count)
