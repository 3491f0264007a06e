"""Logging helpers."""
from __future__ import annotations

import logging
from pathlib import Path


def configure_logging(level: str, log_dir: Path) -> None:
    """Configure console and file logging for validation runs."""
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / "validation.log", encoding="utf-8"),
        ],
        force=True,
    )
    # Playwright's asyncio transport is chatty at DEBUG.
    logging.getLogger("asyncio").setLevel(logging.WARNING)
