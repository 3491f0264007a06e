from __future__ import annotations

import pytest
from pydantic import ValidationError

from search_validator.config.settings import Settings


def test_settings_defaults_match_validation_timeouts() -> None:
    settings = Settings()

    assert settings.navigation_timeout_ms == 30000
    assert settings.wait_timeout_ms == 10000
    assert settings.probe_timeout_ms == 2000
    assert settings.screenshot_options() == {"full_page": True, "image_type": "png"}


def test_settings_builds_launch_and_context_options(tmp_path) -> None:
    settings = Settings(
        headless=False,
        chromium_channel="chrome",
        slow_mo_ms=50,
        evidence_dir=tmp_path / "evidence",
        report_dir=tmp_path / "reports",
        video_dir=tmp_path / "videos",
    )

    launch = settings.chromium_launch_args()
    assert launch["headless"] is False
    assert launch["channel"] == "chrome"
    assert launch["slow_mo"] == 50
    assert "--disable-blink-features=AutomationControlled" in launch["args"]

    context = settings.context_options()
    assert context["viewport"] == {"width": 1920, "height": 1080}
    assert context["ignore_https_errors"] is True
    assert context["record_video_dir"] == str(tmp_path / "videos")
    assert context["record_video_size"] == {"width": 1920, "height": 1080}
    assert "record_video_dir" not in Settings(video_on_failure=False).context_options()

    settings.ensure_directories()
    assert settings.evidence_dir.exists()
    assert settings.report_dir.exists()
    assert settings.video_dir.exists()


def test_settings_builds_stealth_kwargs() -> None:
    settings = Settings(stealth_enabled=True, user_agent="UA/1.0", locale="en-GB")

    kwargs = settings.stealth_kwargs()
    assert kwargs["navigator_user_agent_override"] == "UA/1.0"
    assert kwargs["navigator_languages_override"] == ("en-GB", "en")
    assert Settings(stealth_enabled=False).stealth_kwargs() == {}


def test_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEARCH_VALIDATOR_SEARCH_ENGINE_URL", "https://duckduckgo.com")
    monkeypatch.setenv("SEARCH_VALIDATOR_MIN_RESULT_COUNT", "5")

    settings = Settings()

    assert settings.search_engine_url == "https://duckduckgo.com"
    assert settings.min_result_count == 5


def test_settings_rejects_non_http_engine() -> None:
    with pytest.raises(ValidationError):
        Settings(search_engine_url="ftp://example.com")


def test_settings_reads_comma_separated_chromium_args(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEARCH_VALIDATOR_CHROMIUM_ARGS", "--no-sandbox, --disable-gpu,")

    settings = Settings()

    assert settings.chromium_args == ("--no-sandbox", "--disable-gpu")
    assert settings.chromium_launch_args()["args"] == ["--no-sandbox", "--disable-gpu"]


def test_settings_validates_engine_url_on_assignment() -> None:
    settings = Settings()

    with pytest.raises(ValidationError):
        settings.search_engine_url = "www.bing.com"

    settings.search_engine_url = "https://www.bing.com"
    assert settings.search_engine_url == "https://www.bing.com"


def test_settings_reads_chromium_args_json_list(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEARCH_VALIDATOR_CHROMIUM_ARGS", '["--window-size=1280,720", "--mute-audio"]')

    assert Settings().chromium_args == ("--window-size=1280,720", "--mute-audio")
