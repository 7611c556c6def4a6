"""
PulseGuard Base Scanner

A scanner wraps one external binary. It owns the command line and the
exit-code policy for that binary; the JSON it writes is read elsewhere.

Example scanners:
- GitleaksScanner
- TrivyConfigScanner
- CdxgenScanner
"""

from __future__ import annotations

import logging
import subprocess
import time
from abc import ABC
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pulseguard.core.errors import ScannerExecutionFailed

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of a scanner process run."""

    command: List[str]
    return_code: int
    stdout: str
    stderr: str
    duration: float
    findings_reported: bool = False


class BaseScanner(ABC):
    """
    Minimal external-scanner wrapper.

    ``success_codes`` are exit codes meaning "ran fine, nothing found";
    ``findings_codes`` mean "ran fine, findings present". Anything else is
    a failed run.
    """

    name: str = "base"
    success_codes: frozenset[int] = frozenset({0})
    findings_codes: frozenset[int] = frozenset()

    def __init__(self, binary: str, timeout: Optional[int] = None) -> None:
        self.binary = binary
        self.timeout = timeout

    def version(self) -> Optional[str]:
        """First line of ``<binary> --version``, or None if unavailable."""
        try:
            result = subprocess.run(
                [self.binary, "--version"],
                capture_output=True,
                text=True,
                timeout=30,
            )
        except (OSError, subprocess.TimeoutExpired):
            return None
        if result.returncode != 0:
            return None
        lines = result.stdout.strip().splitlines()
        return lines[0] if lines else None

    def run(self, command: List[str], cwd: Optional[Path] = None) -> CommandResult:
        """
        Run the scanner and apply the exit-code policy.

        Output is captured for logging only.

        Raises:
            ScannerExecutionFailed: the process could not be started, timed
                out, or exited with a code outside the policy.
        """
        logger.debug("[%s] Running: %s", self.name, " ".join(command))
        start = time.time()

        try:
            proc = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ScannerExecutionFailed(
                self.name, f"timed out after {self.timeout}s"
            ) from exc
        except OSError as exc:
            raise ScannerExecutionFailed(
                self.name, f"could not start {command[0]}: {exc}"
            ) from exc

        result = CommandResult(
            command=list(command),
            return_code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            duration=time.time() - start,
        )

        if result.stdout.strip():
            logger.debug("[%s] STDOUT:\n%s", self.name, result.stdout)
        if result.stderr.strip():
            logger.debug("[%s] STDERR:\n%s", self.name, result.stderr.strip())

        if result.return_code in self.success_codes:
            result.findings_reported = False
        elif result.return_code in self.findings_codes:
            result.findings_reported = True
        else:
            raise ScannerExecutionFailed(
                self.name,
                "unexpected exit",
                exit_code=result.return_code,
                stderr=result.stderr,
            )

        logger.debug(
            "[%s] Exited %d in %.2fs", self.name, result.return_code, result.duration
        )
        return result
