"""JUnit XML report emission so CI systems can pick up scenario results."""
from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable

from search_validator.tasks.scenario import ScenarioOutcome

SUITE_NAME = "Automated Search Testing Suite"


class JUnitReportWriter:
    def __init__(self, root: Path) -> None:
        self.root = root

    def build(self, outcomes: Iterable[ScenarioOutcome]) -> ET.ElementTree:
        outcomes = list(outcomes)
        failures = sum(1 for outcome in outcomes if not outcome.passed)
        total_s = sum(outcome.duration_ms for outcome in outcomes) / 1000
        suites = ET.Element("testsuites", tests=str(len(outcomes)), failures=str(failures), time=f"{total_s:.3f}")
        suite = ET.SubElement(
            suites,
            "testsuite",
            name=SUITE_NAME,
            tests=str(len(outcomes)),
            failures=str(failures),
            errors="0",
            time=f"{total_s:.3f}",
        )
        for index, outcome in enumerate(outcomes, start=1):
            case = ET.SubElement(
                suite,
                "testcase",
                classname="search_validation",
                name=f"Automated Test Case {index}: {outcome.term}",
                time=f"{outcome.duration_ms / 1000:.3f}",
            )
            if not outcome.passed:
                failure = ET.SubElement(case, "failure", message=outcome.error or "failed", type=outcome.phase or "")
                failure.text = outcome.error or ""
            attachments = [path for path in (outcome.evidence_path, outcome.trace_path, outcome.video_path) if path]
            if attachments:
                system_out = ET.SubElement(case, "system-out")
                system_out.text = "\n".join(f"[[ATTACHMENT|{path}]]" for path in attachments)
        return ET.ElementTree(suites)

    def write(self, outcomes: Iterable[ScenarioOutcome], *, filename: str = "junit.xml") -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / filename
        tree = self.build(outcomes)
        ET.indent(tree)
        tree.write(path, encoding="utf-8", xml_declaration=True)
        return path
