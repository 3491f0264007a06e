from __future__ import annotations

import pytest

from fakes import FakeDriver, FakeElement
from search_validator.config.settings import Settings
from search_validator.errors import (
    DriverError,
    EvidenceError,
    NavigationError,
    ResultAssertionError,
    SearchError,
    ValidationError,
)
from search_validator.selectors.search_page import DEFAULT_LOCATORS
from search_validator.tasks.search import SearchValidator
from search_validator.validation import Phase

SEARCH_INPUT = DEFAULT_LOCATORS.search_input[0]


def _settings(tmp_path, **overrides) -> Settings:
    return Settings(evidence_dir=tmp_path / "evidence", report_dir=tmp_path / "reports", **overrides)


def _titles(count: int) -> list[FakeElement]:
    return [FakeElement(f"  Result {index}  ") for index in range(1, count + 1)]


@pytest.mark.asyncio
async def test_valletta_scenario_majority_of_keywords(tmp_path) -> None:
    driver = FakeDriver(
        titles=_titles(5),
        page_text="Valletta is the capital city of Malta, a small island nation.",
    )
    validator = SearchValidator(driver, _settings(tmp_path))

    result = await validator.validate_search_results(["malta", "capital", "unesco"], 3)

    assert result.total_results == 5
    assert result.keyword_matches == {"malta": True, "capital": True, "unesco": False}
    assert list(result.keyword_matches) == ["malta", "capital", "unesco"]
    assert result.matched_count == 2
    assert result.is_valid is True


@pytest.mark.asyncio
async def test_keyword_matching_is_case_insensitive(tmp_path) -> None:
    driver = FakeDriver(titles=_titles(3), page_text="all about malta")
    validator = SearchValidator(driver, _settings(tmp_path))

    result = await validator.validate_search_results(["MALTA"], 0)

    assert result.keyword_matches == {"MALTA": True}
    assert result.is_valid is True


@pytest.mark.asyncio
async def test_minority_of_keywords_is_invalid(tmp_path) -> None:
    driver = FakeDriver(titles=_titles(4), page_text="Malta")
    validator = SearchValidator(driver, _settings(tmp_path))

    result = await validator.validate_search_results(["malta", "capital", "unesco", "harbour"], 3)

    assert result.matched_count == 1
    assert result.is_valid is False


@pytest.mark.asyncio
async def test_empty_keywords_are_trivially_valid(tmp_path) -> None:
    driver = FakeDriver(titles=_titles(1), page_text="anything")
    validator = SearchValidator(driver, _settings(tmp_path))

    result = await validator.validate_search_results([], 0)

    assert result.keyword_matches == {}
    assert result.is_valid is True


@pytest.mark.asyncio
async def test_too_few_results_fail_before_reading_page_text(tmp_path) -> None:
    driver = FakeDriver(titles=_titles(2), page_text="malta capital")
    validator = SearchValidator(driver, _settings(tmp_path))

    with pytest.raises(ResultAssertionError, match="expected at least 3 results, found 2") as excinfo:
        await validator.validate_search_results(["malta"], 3)

    assert isinstance(excinfo.value, AssertionError)
    assert excinfo.value.actual == 2
    assert excinfo.value.phase is Phase.VALIDATING
    assert "page_text" not in driver.call_names()


@pytest.mark.asyncio
async def test_validation_uses_configured_minimum_by_default(tmp_path) -> None:
    driver = FakeDriver(titles=_titles(4), page_text="")
    validator = SearchValidator(driver, _settings(tmp_path, min_result_count=5))

    with pytest.raises(ResultAssertionError):
        await validator.validate_search_results(["malta"])


@pytest.mark.asyncio
async def test_validation_does_not_mutate_keywords(tmp_path) -> None:
    keywords = ["Malta", "capital"]
    driver = FakeDriver(titles=_titles(3), page_text="malta")
    validator = SearchValidator(driver, _settings(tmp_path))

    await validator.validate_search_results(keywords, 1)

    assert keywords == ["Malta", "capital"]


@pytest.mark.asyncio
async def test_count_failure_is_a_validation_error(tmp_path) -> None:
    driver = FakeDriver(titles=_titles(3))
    driver.fail_count = True
    validator = SearchValidator(driver, _settings(tmp_path))

    with pytest.raises(ValidationError, match="count failed"):
        await validator.validate_search_results(["malta"], 1)


@pytest.mark.asyncio
async def test_execute_search_clears_before_fill_and_waits_for_results(tmp_path) -> None:
    driver = FakeDriver(visible=[SEARCH_INPUT], input_value="previous query")
    settings = _settings(tmp_path, wait_timeout_ms=7500)
    validator = SearchValidator(driver, settings)

    await validator.execute_search("ftira")

    names = driver.call_names()
    assert names.index("clear") < names.index("fill") < names.index("press") < names.index("wait_for_present")
    assert ("fill", SEARCH_INPUT, "ftira") in driver.calls
    assert ("press", SEARCH_INPUT, "Enter") in driver.calls
    assert driver.input_value == "ftira"
    wait_call = next(call for call in driver.calls if call[0] == "wait_for_present")
    assert wait_call[1] == DEFAULT_LOCATORS.result_container
    assert wait_call[2] == 7500


@pytest.mark.asyncio
async def test_execute_search_missing_input_raises_search_error(tmp_path) -> None:
    driver = FakeDriver(visible=[])
    validator = SearchValidator(driver, _settings(tmp_path))

    with pytest.raises(SearchError, match="Search execution failed") as excinfo:
        await validator.execute_search("ftira")

    assert excinfo.value.phase is Phase.SEARCHING
    assert "fill" not in driver.call_names()


@pytest.mark.asyncio
async def test_execute_search_missing_results_raises_search_error(tmp_path) -> None:
    driver = FakeDriver(visible=[SEARCH_INPUT])
    driver.fail_results = True
    validator = SearchValidator(driver, _settings(tmp_path))

    with pytest.raises(SearchError) as excinfo:
        await validator.execute_search("ftira")

    assert excinfo.value.phase is Phase.AWAITING_RESULTS
    assert isinstance(excinfo.value.__cause__, DriverError)


@pytest.mark.asyncio
async def test_execute_search_returns_to_main_surface_first(tmp_path) -> None:
    driver = FakeDriver(url="https://www.google.com/search?q=x&tbm=isch", visible=[SEARCH_INPUT])
    validator = SearchValidator(driver, _settings(tmp_path, surface_input_timeout_ms=5000))

    await validator.execute_search("ftira")

    assert driver.navigated == ["https://www.google.com"]
    names = driver.call_names()
    assert names.index("navigate") < names.index("fill")
    waits = [call for call in driver.calls if call[0] == "wait_for_visible"]
    assert waits[-1][2] == 5000


@pytest.mark.asyncio
async def test_consent_stops_at_first_visible_candidate(tmp_path) -> None:
    accept_all, i_agree, accept = DEFAULT_LOCATORS.consent_button[:3]
    driver = FakeDriver(visible=[i_agree, accept])
    validator = SearchValidator(driver, _settings(tmp_path))

    outcome = await validator._handle_consent_dialogs()

    assert outcome.completed is True
    assert driver.probed == [accept_all, i_agree]
    assert driver.clicked == [i_agree]


@pytest.mark.asyncio
async def test_consent_errors_are_swallowed_and_next_candidate_tried(tmp_path) -> None:
    accept_all, i_agree = DEFAULT_LOCATORS.consent_button[:2]
    driver = FakeDriver(visible=[i_agree])
    driver.fail_probe_for = {accept_all}
    validator = SearchValidator(driver, _settings(tmp_path))

    outcome = await validator._handle_consent_dialogs()

    assert outcome.completed is True
    assert driver.clicked == [i_agree]


@pytest.mark.asyncio
async def test_consent_absent_never_fails(tmp_path) -> None:
    driver = FakeDriver()
    validator = SearchValidator(driver, _settings(tmp_path))

    outcome = await validator._handle_consent_dialogs()

    assert outcome.completed is False
    assert outcome.diagnostic
    assert driver.probed == list(DEFAULT_LOCATORS.consent_button)


@pytest.mark.asyncio
async def test_navigation_runs_consent_and_surface_checks(tmp_path) -> None:
    all_tab = DEFAULT_LOCATORS.surface_switch[0]
    driver = FakeDriver(visible=[DEFAULT_LOCATORS.consent_button[0], all_tab])
    settings = _settings(tmp_path, navigation_settle_ms=2000)
    validator = SearchValidator(driver, settings)

    await validator.navigate_to_search_engine("https://www.google.com")

    assert driver.calls[0] == ("navigate", "https://www.google.com", settings.navigation_timeout_ms)
    assert driver.calls[1] == ("settle", 2000)
    assert driver.clicked == [DEFAULT_LOCATORS.consent_button[0], all_tab]
    assert validator.phase is Phase.READY


@pytest.mark.asyncio
async def test_navigation_leaves_alternate_surface(tmp_path) -> None:
    driver = FakeDriver(visible=[SEARCH_INPUT])
    driver.url_after_navigate = "https://www.google.com/imghp?tbm=isch"
    validator = SearchValidator(driver, _settings(tmp_path))

    await validator.navigate_to_search_engine("https://www.google.com/imghp?tbm=isch")

    assert driver.navigated[-1] == "https://www.google.com"


@pytest.mark.asyncio
async def test_surface_enforcement_failure_is_absorbed(tmp_path) -> None:
    driver = FakeDriver(visible=[])
    driver.url_after_navigate = "https://www.google.com/search?tbm=nws"
    validator = SearchValidator(driver, _settings(tmp_path))

    await validator.navigate_to_search_engine("https://www.google.com/search?tbm=nws")

    assert validator.phase is Phase.READY


@pytest.mark.asyncio
async def test_navigation_failure_is_wrapped(tmp_path) -> None:
    driver = FakeDriver()
    driver.fail_navigation = DriverError("net::ERR_NAME_NOT_RESOLVED")
    validator = SearchValidator(driver, _settings(tmp_path))

    with pytest.raises(NavigationError, match="Navigation failed: net::ERR_NAME_NOT_RESOLVED") as excinfo:
        await validator.navigate_to_search_engine("https://search.invalid")

    assert excinfo.value.phase is Phase.NAVIGATING


@pytest.mark.asyncio
async def test_extract_pairs_titles_and_descriptions_by_index(tmp_path) -> None:
    driver = FakeDriver(
        titles=_titles(3),
        descriptions=[FakeElement(" first snippet "), FakeElement("second snippet")],
    )
    validator = SearchValidator(driver, _settings(tmp_path))

    entries = await validator.extract_result_data()

    assert [entry.position for entry in entries] == [1, 2, 3]
    assert entries[0].title == "Result 1"
    assert entries[0].description == "first snippet"
    assert entries[2].description == ""


@pytest.mark.asyncio
async def test_extract_is_capped_at_ten_entries(tmp_path) -> None:
    driver = FakeDriver(titles=_titles(14))
    validator = SearchValidator(driver, _settings(tmp_path))

    entries = await validator.extract_result_data()

    assert len(entries) == 10


@pytest.mark.asyncio
async def test_extract_returns_partial_data_on_error(tmp_path) -> None:
    titles = _titles(2) + [FakeElement(fail_read=True)] + _titles(2)
    driver = FakeDriver(titles=titles)
    validator = SearchValidator(driver, _settings(tmp_path))

    entries = await validator.extract_result_data()

    assert [entry.title for entry in entries] == ["Result 1", "Result 2"]


@pytest.mark.asyncio
async def test_extract_returns_empty_when_lookup_fails(tmp_path) -> None:
    driver = FakeDriver(titles=_titles(3))
    driver.fail_locate = True
    validator = SearchValidator(driver, _settings(tmp_path))

    assert await validator.extract_result_data() == []


@pytest.mark.asyncio
async def test_capture_evidence_writes_timestamped_png(tmp_path) -> None:
    driver = FakeDriver()
    validator = SearchValidator(driver, _settings(tmp_path))

    artifact = await validator.capture_evidence("initial_state", tmp_path / "shots")

    assert artifact.path.parent == tmp_path / "shots"
    assert artifact.path.name.startswith("initial_state_")
    assert artifact.path.suffix == ".png"
    assert ":" not in artifact.path.name
    assert driver.calls[-1] == ("screenshot", artifact.path, True, "png")


@pytest.mark.asyncio
async def test_capture_evidence_failure_propagates(tmp_path) -> None:
    driver = FakeDriver()
    driver.fail_screenshot = True
    validator = SearchValidator(driver, _settings(tmp_path))

    with pytest.raises(EvidenceError, match="Evidence capture failed"):
        await validator.capture_evidence("failure_ftira")


@pytest.mark.asyncio
async def test_capture_evidence_uses_configured_screenshot_options(tmp_path) -> None:
    driver = FakeDriver()
    validator = SearchValidator(driver, _settings(tmp_path, screenshot_type="jpeg", screenshot_full_page=False))

    artifact = await validator.capture_evidence("initial_state")

    assert artifact.path.suffix == ".jpeg"
    assert driver.calls[-1] == ("screenshot", artifact.path, False, "jpeg")
