"""Browsable HTML report with links to screenshots, traces and videos."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Optional

from jinja2 import Environment, FileSystemLoader

from search_validator.tasks.scenario import ScenarioOutcome

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"
REPORT_TITLE = "Automated Search Testing Suite"


class HtmlReportWriter:
    def __init__(self, root: Path, templates_dir: Optional[Path] = None) -> None:
        self.root = root
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir or DEFAULT_TEMPLATES_DIR)),
            autoescape=True,
        )

    def render(self, outcomes: Iterable[ScenarioOutcome], *, summary: Mapping[str, object]) -> str:
        rows = []
        for outcome in outcomes:
            row = outcome.to_dict()
            # Attachments open straight from disk.
            row["artifacts"] = [
                {"kind": artifact.kind, "uri": artifact.path.resolve().as_uri()} for artifact in outcome.evidence
            ]
            rows.append(row)
        template = self.env.get_template("report.html.j2")
        return template.render(
            title=REPORT_TITLE,
            generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
            summary=dict(summary),
            rows=rows,
        )

    def write(
        self,
        outcomes: Iterable[ScenarioOutcome],
        *,
        summary: Mapping[str, object],
        filename: str = "index.html",
    ) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / filename
        path.write_text(self.render(outcomes, summary=summary), encoding="utf-8")
        return path
