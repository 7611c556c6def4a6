"""
PulseGuard Errors

Every fatal pipeline condition is a PulseGuardError subclass. Library code
raises them; the CLI turns them into a non-zero exit code.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class PulseGuardError(Exception):
    """Base class for all pipeline failures."""


class DirectoryNotFound(PulseGuardError):
    """The scan root does not exist or is not a directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Scan directory not found: {path}")


class ScannerExecutionFailed(PulseGuardError):
    """The scanner could not be started or exited with an unexpected code."""

    def __init__(
        self,
        scanner: str,
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        self.scanner = scanner
        self.exit_code = exit_code
        self.stderr = stderr
        detail = f"{scanner}: {message}"
        if exit_code is not None:
            detail += f" (exit code {exit_code})"
        super().__init__(detail)


class ReportParseFailed(PulseGuardError):
    """The scanner report is not valid JSON or has the wrong shape."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse report {path}: {reason}")


class MissingConfiguration(PulseGuardError):
    """A required setting (e.g. PROJECT_ID) is absent."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"{name} is not set")


class UploadFailed(PulseGuardError):
    """The reporting API rejected the upload or could not be reached."""

    def __init__(
        self,
        url: str,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"Upload to {url} failed: {message}")


class InvalidConfiguration(PulseGuardError):
    """The project config file could not be read or has the wrong shape."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid configuration in {path}: {reason}")


class ManifestNotFound(PulseGuardError):
    """No supported dependency manifest exists in the project root."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"No supported manifest file found in {path}")
