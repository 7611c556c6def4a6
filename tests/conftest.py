"""
Pytest Configuration and Fixtures

Shared fixtures for PulseGuard tests.
"""

import json
import re
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import MagicMock

import pytest

from pulseguard.core.config import PulseGuardConfig
from pulseguard.core.finding import Finding, ScanRequest
from pulseguard.core.scanner import CommandResult
from pulseguard.scanners.gitleaks import GitleaksScanner, ScanOutcome
from pulseguard.secrets.rules import default_ruleset
from pulseguard.upload.client import UploadResult


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def env() -> dict:
    """A CI-like environment with a project and credentials."""
    return {
        "PROJECT_ID": "proj-123",
        "X_API_KEY": "api-key",
        "X_SECRET_KEY": "secret-key",
        "X_TENANT_KEY": "tenant-key",
    }


@pytest.fixture
def config(temp_dir: Path, env: dict) -> PulseGuardConfig:
    """Configuration scanning the temp directory."""
    return PulseGuardConfig.load(scan_dir=temp_dir, environ=env)


@pytest.fixture
def sample_finding() -> Finding:
    """Create a sample finding for testing."""
    return Finding(
        rule_id="aws-key",
        description="AWS Access Key ID",
        file="src/settings.py",
        match="AKIA1234567890ABCD12",
        secret="AKIA1234567890ABCD12",
        start_line=12,
        end_line=12,
        start_column=9,
        end_column=28,
        tags=["aws", "key"],
    )


@pytest.fixture
def gitleaks_entry() -> dict:
    """One entry of a Gitleaks JSON report."""
    return {
        "RuleID": "strict-secret-detection",
        "Description": "Detect likely passwords or secrets with high entropy",
        "StartLine": 3,
        "EndLine": 3,
        "StartColumn": 1,
        "EndColumn": 28,
        "Match": 'API_KEY="abcdEFGH12345678"',
        "Secret": "abcdEFGH12345678",
        "File": "config/secret.env",
        "Entropy": 3.75,
        "Tags": ["key", "secret"],
        "Fingerprint": "config/secret.env:strict-secret-detection:3",
    }


@pytest.fixture
def write_report() -> Callable[[Path, Any], Path]:
    """Write a JSON (or raw text) report file."""

    def _write(path: Path, content: Any) -> Path:
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(json.dumps(content), encoding="utf-8")
        return path

    return _write


class CannedGitleaks(GitleaksScanner):
    """Writes a fixed report instead of running Gitleaks."""

    def __init__(self, report: Any) -> None:
        super().__init__(binary="gitleaks")
        self.report = report
        self.requests: list[ScanRequest] = []

    def scan(self, request: ScanRequest) -> ScanOutcome:
        self.requests.append(request)
        # The rule file must exist while the scanner runs
        assert request.rules_path.exists()
        if isinstance(self.report, str):
            request.report_path.write_text(self.report, encoding="utf-8")
        else:
            request.report_path.write_text(json.dumps(self.report), encoding="utf-8")
        leaks = bool(self.report) and self.report != "[]"
        result = CommandResult(
            command=self.build_command(request),
            return_code=1 if leaks else 0,
            stdout="",
            stderr="",
            duration=0.0,
            findings_reported=leaks,
        )
        return ScanOutcome(request=request, leaks_found=leaks, result=result)


class RegexGitleaks(GitleaksScanner):
    """
    Minimal stand-in for ``gitleaks detect --no-git``: applies the built-in
    rules line by line to every file and writes a Gitleaks-shaped report.
    """

    def __init__(self) -> None:
        super().__init__(binary="gitleaks")

    def scan(self, request: ScanRequest) -> ScanOutcome:
        rules = default_ruleset().rules
        entries = []
        for path in sorted(request.source_dir.rglob("*")):
            if not path.is_file() or path == request.report_path:
                continue
            lines = path.read_text(encoding="utf-8", errors="ignore").splitlines()
            for line_no, line in enumerate(lines, start=1):
                for rule in rules:
                    m = re.search(rule.regex, line)
                    if not m:
                        continue
                    secret = m.group(rule.secret_group) if rule.secret_group else m.group(0)
                    entries.append({
                        "RuleID": rule.id,
                        "Description": rule.description,
                        "StartLine": line_no,
                        "EndLine": line_no,
                        "StartColumn": m.start() + 1,
                        "EndColumn": m.end(),
                        "Match": m.group(0),
                        "Secret": secret,
                        "File": str(path.relative_to(request.source_dir)),
                        "Tags": list(rule.tags),
                    })
        request.report_path.write_text(json.dumps(entries), encoding="utf-8")
        result = CommandResult(
            command=self.build_command(request),
            return_code=1 if entries else 0,
            stdout="",
            stderr="",
            duration=0.0,
            findings_reported=bool(entries),
        )
        return ScanOutcome(request=request, leaks_found=bool(entries), result=result)


@pytest.fixture
def canned_gitleaks() -> Callable[[Any], CannedGitleaks]:
    return CannedGitleaks


@pytest.fixture
def regex_gitleaks() -> RegexGitleaks:
    return RegexGitleaks()


@pytest.fixture
def mock_client() -> MagicMock:
    """A reporting client that accepts every upload."""
    client = MagicMock()
    ok = UploadResult(url="https://api.test/", status_code=200, body={"ok": True})
    client.upload_secrets.return_value = ok
    client.upload_configs.return_value = ok
    client.upload_sbom.return_value = ok
    return client
