"""
PulseGuard Gitleaks Scanner

Runs ``gitleaks detect`` with the generated rule set and writes the JSON
report. The report file, not stdout, is the source of findings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pulseguard.core.errors import DirectoryNotFound
from pulseguard.core.finding import ScanRequest
from pulseguard.core.scanner import BaseScanner, CommandResult

logger = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    request: ScanRequest
    leaks_found: bool
    result: CommandResult


class GitleaksScanner(BaseScanner):
    """Gitleaks exits 1 when it found leaks; that is a normal run."""

    name = "gitleaks"
    success_codes = frozenset({0})
    findings_codes = frozenset({1})

    def __init__(
        self,
        binary: str = "gitleaks",
        timeout: Optional[int] = None,
        scan_git_history: bool = False,
        verbose: bool = False,
    ) -> None:
        super().__init__(binary, timeout=timeout)
        self.scan_git_history = scan_git_history
        self.verbose = verbose

    def build_command(self, request: ScanRequest) -> list[str]:
        command = [
            request.scanner_binary or self.binary,
            "detect",
            f"--source={request.source_dir}",
            f"--report-path={request.report_path}",
            f"--config={request.rules_path}",
            "--report-format=json",
            "--no-banner",
        ]
        if not self.scan_git_history:
            command.append("--no-git")
        if self.verbose:
            command.append("--verbose")
        return command

    def scan(self, request: ScanRequest) -> ScanOutcome:
        """
        Run Gitleaks for one request.

        Raises:
            DirectoryNotFound: the source directory is missing.
            ScannerExecutionFailed: Gitleaks failed to run.
        """
        if not request.source_dir.is_dir():
            raise DirectoryNotFound(request.source_dir)

        request.report_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Running Gitleaks on %s", request.source_dir)

        result = self.run(self.build_command(request), cwd=request.source_dir)
        if result.findings_reported:
            logger.info("Gitleaks reported leaks; report at %s", request.report_path)
        else:
            logger.info("Gitleaks reported no leaks")

        return ScanOutcome(request=request, leaks_found=result.findings_reported, result=result)
