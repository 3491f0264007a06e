"""Evidence file naming."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_UNSAFE_TIMESTAMP_CHARS = re.compile(r"[:.]")
_UNSAFE_NAME_CHARS = re.compile(r"[^\w\-]+")


def evidence_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, safe for file names.

    ``2025-03-01T09:15:02.123Z`` becomes ``2025-03-01T09-15-02-123Z``.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    iso = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return _UNSAFE_TIMESTAMP_CHARS.sub("-", iso)


def safe_name(name: str) -> str:
    cleaned = _UNSAFE_NAME_CHARS.sub("_", name.strip()).strip("_")
    return cleaned or "evidence"


def evidence_path(
    name: str,
    folder: Path,
    *,
    moment: Optional[datetime] = None,
    extension: str = "png",
) -> Path:
    moment = moment or datetime.now(timezone.utc)
    return folder / f"{safe_name(name)}_{evidence_timestamp(moment)}.{extension}"
