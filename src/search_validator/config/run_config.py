"""Query fixture and run configuration loader.

Accepts TOML (preferred) or the JSON layout used by older suites::

    {"environment": {"searchEngine": "..."},
     "validation": {"minResultCount": 3, "screenshotPath": "evidence"},
     "testData": {"searchQueries": [{"term": "...", "expectedKeywords": [...]}]}}
"""
from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from search_validator.config.settings import Settings, require_http_url
from search_validator.selectors.search_page import LOCATOR_ROLES, LocatorSet
from search_validator.validation import Query

def _coerce_string_list(value: object) -> list[str]:
    if value in (None, "", ()):
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, Iterable):
        result: list[str] = []
        for item in value:
            text = str(item).strip()
            if text:
                result.append(text)
        return result
    raise TypeError("Expected string or list of strings")


class EnvironmentSection(BaseModel):
    """Where the scenarios run."""

    model_config = ConfigDict(populate_by_name=True)

    search_engine: Optional[str] = Field(default=None, alias="searchEngine")

    @field_validator("search_engine")
    @classmethod
    def _check_engine_url(cls, value: Optional[str]) -> Optional[str]:
        return require_http_url(value) if value else value


class BrowserSection(BaseModel):
    """Browser/runtime overrides decoded from the run config."""

    headless: Optional[bool] = None
    slow_mo_ms: Optional[int] = Field(default=None, ge=0)
    viewport_width: Optional[int] = Field(default=None, ge=0)
    viewport_height: Optional[int] = Field(default=None, ge=0)
    chromium_channel: Optional[str] = None
    log_level: Optional[str] = None


class ValidationSection(BaseModel):
    """Thresholds and evidence options shared by every query."""

    model_config = ConfigDict(populate_by_name=True)

    min_result_count: Optional[int] = Field(default=None, ge=0, alias="minResultCount")
    screenshot_path: Optional[str] = Field(default=None, alias="screenshotPath")
    report_path: Optional[str] = Field(default=None, alias="reportPath")
    retries: Optional[int] = Field(default=None, ge=0)
    wait_timeout_ms: Optional[int] = Field(default=None, ge=0, alias="waitTimeout")


class QuerySection(BaseModel):
    """One query fixture."""

    model_config = ConfigDict(populate_by_name=True)

    term: str
    expected_keywords: list[str] = Field(default_factory=list, alias="expectedKeywords")
    min_result_count: Optional[int] = Field(default=None, ge=0, alias="minResultCount")

    @field_validator("term")
    @classmethod
    def _strip_term(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query term must not be blank")
        return value.strip()

    @field_validator("expected_keywords", mode="before")
    @classmethod
    def _coerce_keywords(cls, value: object) -> list[str]:
        return _coerce_string_list(value)


class RunConfig(BaseModel):
    """Top-level configuration decoded from TOML or JSON."""

    profile: str = Field(default="default", description="Human label used for logging")
    title: Optional[str] = None
    environment: EnvironmentSection = Field(default_factory=EnvironmentSection)
    browser: BrowserSection = Field(default_factory=BrowserSection)
    validation: ValidationSection = Field(default_factory=ValidationSection)
    queries: list[QuerySection] = Field(default_factory=list)
    locators: dict[str, list[str]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _lift_legacy_test_data(cls, data: object) -> object:
        if isinstance(data, dict) and "testData" in data and "queries" not in data:
            data = dict(data)
            test_data = data.pop("testData") or {}
            data["queries"] = test_data.get("searchQueries", [])
        return data

    @field_validator("locators")
    @classmethod
    def _validate_locators(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for role, selectors in value.items():
            if role not in LOCATOR_ROLES:
                raise ValueError(f"Unknown locator role '{role}'. Known roles: {', '.join(LOCATOR_ROLES)}")
            if not [selector for selector in selectors if selector.strip()]:
                raise ValueError(f"Locator role '{role}' needs at least one selector")
        return value

    @classmethod
    def load(cls, path: Path) -> "RunConfig":
        """Load a config from a TOML or JSON file."""
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = tomllib.loads(text)
        return cls.model_validate(data)

    # Public API -----------------------------------------------------------------

    def apply_to(self, settings: Settings, *, base_dir: Optional[Path] = None) -> None:
        """Apply overrides to an existing Settings instance."""
        self._apply_environment(settings)
        self._apply_browser(settings)
        self._apply_validation(settings, base_dir)

    def queries_for(self, settings: Settings) -> list[Query]:
        """Build immutable queries, falling back to the configured minimum result count."""
        return [
            Query.from_values(
                section.term,
                section.expected_keywords,
                section.min_result_count,
                default_min_result_count=settings.min_result_count,
            )
            for section in self.queries
        ]

    def locator_set(self, base: Optional[LocatorSet] = None) -> LocatorSet:
        base = base or LocatorSet()
        if not self.locators:
            return base
        return base.with_overrides(self.locators)

    # Internal helpers -----------------------------------------------------------

    def _apply_environment(self, settings: Settings) -> None:
        if self.environment.search_engine:
            settings.search_engine_url = self.environment.search_engine

    def _apply_browser(self, settings: Settings) -> None:
        browser = self.browser
        if browser.headless is not None:
            settings.headless = browser.headless
        if browser.slow_mo_ms is not None:
            settings.slow_mo_ms = browser.slow_mo_ms
        if browser.viewport_width is not None:
            settings.viewport_width = browser.viewport_width
        if browser.viewport_height is not None:
            settings.viewport_height = browser.viewport_height
        if browser.chromium_channel:
            settings.chromium_channel = browser.chromium_channel
        if browser.log_level:
            settings.log_level = browser.log_level

    def _apply_validation(self, settings: Settings, base_dir: Optional[Path]) -> None:
        validation = self.validation
        if validation.min_result_count is not None:
            settings.min_result_count = validation.min_result_count
        if validation.screenshot_path:
            settings.evidence_dir = _resolve_path(validation.screenshot_path, base_dir)
        if validation.report_path:
            settings.report_dir = _resolve_path(validation.report_path, base_dir)
        if validation.retries is not None:
            settings.scenario_retries = validation.retries
        if validation.wait_timeout_ms is not None:
            settings.wait_timeout_ms = validation.wait_timeout_ms


def _resolve_path(raw: str, base_dir: Optional[Path]) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute() and base_dir:
        return (base_dir / path).resolve()
    return path


__all__ = ["RunConfig"]
