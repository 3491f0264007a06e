"""JSON report emission."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Optional


class JsonReportWriter:
    def __init__(self, root: Path) -> None:
        self.root = root

    def write(
        self,
        items: Iterable[dict[str, object]],
        *,
        summary: Optional[Mapping[str, object]] = None,
        filename: str = "results.json",
    ) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / filename
        serialisable = {
            "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "summary": dict(summary or {}),
            "items": list(items),
        }
        path.write_text(json.dumps(serialisable, indent=2, default=str), encoding="utf-8")
        return path
