"""
PulseGuard JSON Reporter

Writes the exact payload sent to update-secrets, wrapped with run metadata:
{
    "version": "1.0",
    "tool": {"name": "PulseGuard", "version": "..."},
    "target": "...",
    "summary": {"reported": N, "kept": n, "dropped": {...}},
    "records": [...]
}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pulseguard import __version__
from pulseguard.pipeline import SecretRunResult


class JSONReporter:
    """Generates a JSON record of a secret pipeline run."""

    def __init__(self, target: str) -> None:
        self.target = target

    def report(
        self,
        result: SecretRunResult,
        output_file: Optional[str] = None,
    ) -> str:
        """
        Generate the JSON document.

        Args:
            result: Result of a secret pipeline run.
            output_file: Optional file path to write the document to.

        Returns:
            The JSON string.
        """
        report_data = {
            "version": "1.0",
            "tool": {
                "name": "PulseGuard",
                "version": __version__,
            },
            "target": self.target,
            "summary": {
                "reported": result.reported,
                "kept": len(result.kept),
                "dropped": dict(result.dropped),
            },
            "records": result.records,
        }

        json_str = json.dumps(report_data, indent=2, default=str)

        if output_file:
            Path(output_file).write_text(json_str, encoding="utf-8")

        return json_str
