"""Entry point for validation runs."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from search_validator.config.run_config import RunConfig
from search_validator.config.settings import Settings
from search_validator.core.browser import BrowserSession, ensure_close_context
from search_validator.core.driver import SessionDriver
from search_validator.core.logging import configure_logging
from search_validator.core.recording import AttemptRecorder
from search_validator.storage.html_writer import HtmlReportWriter
from search_validator.storage.json_writer import JsonReportWriter
from search_validator.storage.junit_writer import JUnitReportWriter
from search_validator.tasks.scenario import OutcomeLedger, ScenarioRunner
from search_validator.tasks.search import SearchValidator

DEFAULT_CONFIG = Path("config/search_validation.toml")

logger = logging.getLogger("search_validator.run")


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run search validation scenarios")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="TOML or JSON run configuration")
    parser.add_argument("--engine", help="Override the search engine URL")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--evidence-dir", type=Path, help="Where screenshots are written")
    parser.add_argument("--report-dir", type=Path, help="Where results.json, junit.xml and html/ are written")
    parser.add_argument("--no-trace", action="store_true", help="Do not keep Playwright traces for failed attempts")
    parser.add_argument("--no-video", action="store_true", help="Do not keep videos for failed attempts")
    parser.add_argument("--log-level", help="Logging level (default from settings)")
    return parser.parse_args(argv)


def _build_settings(args: argparse.Namespace, run_config: RunConfig) -> Settings:
    settings = Settings()
    run_config.apply_to(settings, base_dir=args.config.parent.resolve())
    if args.engine:
        settings.search_engine_url = args.engine
    if args.headed:
        settings.headless = False
    if args.evidence_dir:
        settings.evidence_dir = args.evidence_dir
    if args.report_dir:
        settings.report_dir = args.report_dir
    if args.log_level:
        settings.log_level = args.log_level
    if args.no_trace:
        settings.trace_on_failure = False
    if args.no_video:
        settings.video_on_failure = False
    return settings


async def run(args: argparse.Namespace) -> int:
    run_config = RunConfig.load(args.config)
    settings = _build_settings(args, run_config)
    configure_logging(settings.log_level, settings.log_dir)

    queries = run_config.queries_for(settings)
    if not queries:
        logger.error("No queries configured in %s", args.config)
        return 2
    logger.info(
        "Running %s scenarios against %s (profile=%s)",
        len(queries),
        settings.search_engine_url,
        run_config.profile,
    )

    ledger = OutcomeLedger()
    async with BrowserSession(settings) as session:
        context = await session.new_context()
        recorder = AttemptRecorder(context, settings)
        try:
            page = await context.new_page()
            validator = SearchValidator(SessionDriver(page), settings, run_config.locator_set())
            await ScenarioRunner(validator, settings, ledger, recorder).run(queries)
        finally:
            await recorder.close()
            await ensure_close_context(context)

    summary = ledger.summary()
    json_path = JsonReportWriter(settings.report_dir).write(ledger.to_dicts(), summary=summary)
    junit_path = JUnitReportWriter(settings.report_dir).write(ledger)
    html_path = HtmlReportWriter(settings.report_dir / "html").write(ledger, summary=summary)
    logger.info("Reports written to %s, %s and %s", json_path, junit_path, html_path)
    logger.info("%s passed, %s failed of %s", summary["passed"], summary["failed"], summary["total"])
    return 0 if not ledger.failed else 1


def main(argv: Optional[list[str]] = None) -> None:
    args = _parse_args(argv)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
