"""Runtime configuration for validation runs.

Relies on pydantic-settings so that environment variables (prefixed with
``SEARCH_VALIDATOR_``) can override defaults. See `.env.example` for common values.
Assignments after construction are validated too, so overrides from the run
config or the CLI go through the same checks as the environment.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Literal, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def require_http_url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"search engine URL must be an http(s) URL, got {value!r}")
    return value


def _parse_args_value(value: object) -> Tuple[str, ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        # A JSON list keeps args that contain commas, such as --window-size=W,H.
        if value.lstrip().startswith("["):
            value = json.loads(value)
        else:
            value = value.split(",")
    if isinstance(value, (list, tuple)):
        return tuple(str(item).strip() for item in value if str(item).strip())
    raise ValueError("chromium_args must be provided as a comma-separated string, JSON list or list")


class Settings(BaseSettings):
    """Captures runtime configuration for the validation suite."""

    search_engine_url: str = Field(
        default="https://www.google.com",
        description="Search engine landing page each scenario starts from",
    )
    headless: bool = True
    slow_mo_ms: int = Field(default=0, description="Slow-mo delay in milliseconds")
    viewport_width: int = 1920
    viewport_height: int = 1080
    ignore_https_errors: bool = True
    user_agent: Optional[str] = None
    locale: Optional[str] = Field(default="en-US")
    chromium_channel: Optional[str] = Field(
        default=None,
        description="Browser channel passed to Playwright (e.g. 'chrome'); use None for bundled Chromium",
    )
    chromium_args: Annotated[Tuple[str, ...], NoDecode] = Field(
        default=("--disable-blink-features=AutomationControlled", "--window-size=1920,1080"),
        description="Extra Chromium args passed during launch",
    )
    stealth_enabled: bool = Field(default=True, description="Apply playwright-stealth evasions")
    stealth_init_scripts_only: bool = False

    navigation_timeout_ms: int = Field(default=30000, ge=0)
    action_timeout_ms: int = Field(default=10000, ge=0, description="Wait for the search input")
    wait_timeout_ms: int = Field(default=10000, ge=0, description="Wait for the result container")
    probe_timeout_ms: int = Field(default=2000, ge=0, description="Visibility probe for optional elements")
    surface_input_timeout_ms: int = Field(
        default=5000, ge=0, description="Wait for the search input after returning to the main surface"
    )
    navigation_settle_ms: int = Field(default=2000, ge=0)
    settle_ms: int = Field(default=1000, ge=0)

    screenshot_full_page: bool = True
    screenshot_type: Literal["png", "jpeg"] = "png"
    evidence_dir: Path = Field(default=Path("evidence"))
    report_dir: Path = Field(default=Path("validation-reports"))
    log_dir: Path = Field(default=Path("validation-output/logs"))
    log_level: str = Field(default="INFO")

    trace_on_failure: bool = Field(default=True, description="Keep a Playwright trace for failed attempts")
    video_on_failure: bool = Field(default=True, description="Keep the page video for failed attempts")
    video_dir: Path = Field(
        default=Path("validation-output/videos"),
        description="Scratch directory for raw recordings before they are kept or discarded",
    )

    min_result_count: int = Field(default=3, ge=0)
    max_extracted_results: int = Field(default=10, ge=0)
    scenario_retries: int = Field(default=1, ge=0, description="Extra attempts per failing scenario")

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_VALIDATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )

    @field_validator("evidence_dir", "report_dir", "log_dir", "video_dir", mode="before")
    def _expand_dir(cls, value: str | Path) -> Path:  # noqa: D401
        if isinstance(value, Path):
            return value.expanduser()
        return Path(value).expanduser()

    @field_validator("chromium_args", mode="before")
    def _parse_chromium_args(cls, value: object) -> Tuple[str, ...]:
        return _parse_args_value(value)

    @field_validator("search_engine_url")
    def _validate_engine_url(cls, value: str) -> str:
        return require_http_url(value)

    def ensure_directories(self) -> None:
        """Create directories that must exist at runtime."""
        self.evidence_dir.mkdir(parents=True, exist_ok=True)
        self.report_dir.mkdir(parents=True, exist_ok=True)
        if self.video_on_failure:
            self.video_dir.mkdir(parents=True, exist_ok=True)

    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}

    def chromium_launch_args(self) -> dict[str, object]:
        launch_args: dict[str, object] = {
            "headless": self.headless,
        }
        if self.slow_mo_ms:
            launch_args["slow_mo"] = self.slow_mo_ms
        if self.chromium_channel:
            launch_args["channel"] = self.chromium_channel
        if self.chromium_args:
            launch_args["args"] = list(self.chromium_args)
        return launch_args

    def context_options(self) -> dict[str, object]:
        options: dict[str, object] = {
            "viewport": self.viewport(),
            "ignore_https_errors": self.ignore_https_errors,
        }
        if self.user_agent:
            options["user_agent"] = self.user_agent
        if self.locale:
            options["locale"] = self.locale
        if self.video_on_failure:
            options["record_video_dir"] = str(self.video_dir)
            options["record_video_size"] = self.viewport()
        return options

    def stealth_kwargs(self) -> dict[str, object]:
        if not self.stealth_enabled:
            return {}
        kwargs: dict[str, object] = {
            "init_scripts_only": self.stealth_init_scripts_only,
        }
        if self.user_agent:
            kwargs["navigator_user_agent_override"] = self.user_agent
        if self.locale:
            kwargs["navigator_languages_override"] = (self.locale, self.locale.split("-")[0])
        return kwargs

    def screenshot_options(self) -> dict[str, object]:
        return {"full_page": self.screenshot_full_page, "image_type": self.screenshot_type}
