"""
PulseGuard Report Loader & Filter

Reads the Gitleaks JSON report and drops findings that are noise: files on
the skip list, dependency/CI working directories, and matches that are
only an unresolved environment variable reference.
"""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from pulseguard.core.config import CI_WORKDIR_NAME
from pulseguard.core.errors import ReportParseFailed
from pulseguard.core.finding import Finding, SkipRules

logger = logging.getLogger(__name__)

# Files that always show up in a checkout and never hold real secrets
DEFAULT_SKIP_FILES = (
    "package.json",
    "package-lock.json",
    "pom.xml",
    "build.gradle",
    "requirements.txt",
    "README.md",
    ".gitignore",
)

# Artifacts written by the pipelines themselves, plus lockfiles
GENERATED_SKIP_FILES = (
    "credentials_report_*.json",
    "secrets_report_*.json",
    "trivy_report_*.json",
    "sbom.json",
    "yarn.lock",
    "pnpm-lock.yaml",
)

DEFAULT_PATH_MARKERS = ("node_modules", CI_WORKDIR_NAME)

# ${NAME}, $NAME, or a bare NAME made of capitals and underscores
PLACEHOLDER_RE = re.compile(
    r"^(?:\$\{[A-Z_][A-Z0-9_]*\}|\$[A-Z_][A-Z0-9_]*|[A-Z_]+)$"
)

QUOTE_CHARS = "\"'`"


def load_report(path: Path) -> List[Finding]:
    """
    Parse a Gitleaks JSON report.

    A missing or blank report means no findings.

    Raises:
        ReportParseFailed: the content is not JSON or not a JSON array.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Report file %s was not written; treating as no findings", path)
        return []

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ReportParseFailed(path, str(exc)) from exc

    if not content.strip():
        return []

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ReportParseFailed(path, f"invalid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise ReportParseFailed(path, "expected a JSON array of findings")

    findings = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ReportParseFailed(path, "report entries must be JSON objects")
        findings.append(Finding.from_report(entry))
    return findings


def default_skip_rules(*extra: Iterable[str]) -> SkipRules:
    return SkipRules.of(DEFAULT_SKIP_FILES, GENERATED_SKIP_FILES, *extra)


def is_placeholder(text: str) -> bool:
    """True if ``text`` is just an environment variable reference."""
    stripped = text.strip().strip(QUOTE_CHARS).strip()
    if not stripped:
        return False
    return PLACEHOLDER_RE.match(stripped) is not None


@dataclass
class FilterResult:
    kept: List[Finding] = field(default_factory=list)
    dropped: Counter = field(default_factory=Counter)

    @property
    def dropped_count(self) -> int:
        return sum(self.dropped.values())


class FindingFilter:
    """Drops findings that should never reach the reporting API."""

    def __init__(
        self,
        skip_rules: SkipRules,
        path_markers: Iterable[str] = DEFAULT_PATH_MARKERS,
    ) -> None:
        self.skip_rules = skip_rules
        self.path_markers = frozenset(path_markers)

    def reason(self, finding: Finding) -> Optional[str]:
        """Why a finding is dropped, or None if it is kept."""
        if not finding.file:
            return "no file"
        if self.skip_rules.matches(finding.base_name):
            return "skip list"
        segments = finding.file.replace("\\", "/").split("/")
        if any(seg in self.path_markers for seg in segments):
            return "excluded directory"
        if is_placeholder(finding.match) or is_placeholder(finding.secret):
            return "placeholder"
        return None

    def keep(self, finding: Finding) -> bool:
        return self.reason(finding) is None

    def apply(self, findings: Iterable[Finding]) -> FilterResult:
        """Filter findings, preserving the order of the ones kept."""
        result = FilterResult()
        for finding in findings:
            why = self.reason(finding)
            if why is None:
                result.kept.append(finding)
            else:
                result.dropped[why] += 1
                logger.debug("Dropped %s in %s (%s)", finding.rule_id, finding.file, why)
        return result
