"""
PulseGuard Trivy Config Scanner

Runs ``trivy config`` over the scan root and reshapes the JSON report into
the structure the update-configs endpoint expects.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Optional

from pulseguard.core.errors import DirectoryNotFound, ReportParseFailed
from pulseguard.core.scanner import BaseScanner

logger = logging.getLogger(__name__)

MISCONFIG_FIELDS = ("ID", "Title", "Description", "Severity", "PrimaryURL", "Query")


def trivy_report_path(scan_dir: Path) -> Path:
    return Path(scan_dir) / f"trivy_report_{int(time.time() * 1000)}.json"


class TrivyConfigScanner(BaseScanner):

    name = "trivy"

    def __init__(self, binary: str = "trivy", timeout: Optional[int] = None) -> None:
        super().__init__(binary, timeout=timeout)

    def build_command(self, scan_dir: Path, report_path: Path) -> list[str]:
        return [
            self.binary,
            "config",
            "--format",
            "json",
            "--output",
            str(report_path),
            str(scan_dir),
        ]

    def scan(self, scan_dir: Path, report_path: Path) -> Path:
        """Run the config scan and return the report path."""
        scan_dir = Path(scan_dir).resolve()
        report_path = Path(report_path).resolve()
        if not scan_dir.is_dir():
            raise DirectoryNotFound(scan_dir)

        logger.info("Running Trivy config scan on %s", scan_dir)
        self.run(self.build_command(scan_dir, report_path), cwd=scan_dir)
        logger.info("Trivy scan completed. Report saved to %s", report_path)
        return report_path


def parse_config_report(path: Path) -> dict[str, Any]:
    """
    Reduce a Trivy config report to the fields the API stores.

    Raises:
        ReportParseFailed: the file is unreadable, not JSON, or not an object.
    """
    path = Path(path)
    try:
        report = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ReportParseFailed(path, str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise ReportParseFailed(path, f"invalid JSON: {exc}") from exc

    if not isinstance(report, dict):
        raise ReportParseFailed(path, "expected a JSON object")

    results = report.get("Results")
    if not isinstance(results, list):
        results = []

    return {
        "ArtifactName": report.get("ArtifactName") or "unknown-artifact",
        "ArtifactType": report.get("ArtifactType") or "config",
        "Results": [
            {
                "Target": result.get("Target"),
                "Class": result.get("Class"),
                "Type": result.get("Type"),
                "Misconfigurations": [
                    {key: m.get(key) for key in MISCONFIG_FIELDS}
                    for m in result.get("Misconfigurations") or []
                ],
            }
            for result in results
        ],
    }


def count_by_severity(report: dict[str, Any], severity: str) -> int:
    """Count misconfigurations at one severity in a parsed report."""
    return sum(
        1
        for result in report.get("Results", [])
        for m in result.get("Misconfigurations", [])
        if m.get("Severity") == severity
    )
