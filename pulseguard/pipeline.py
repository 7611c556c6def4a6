"""
PulseGuard Pipelines

Each pipeline runs one scanner end to end: invoke, read the JSON it
wrote, trim it, and upload what is left. Everything a pipeline needs comes
from the PulseGuardConfig it is built with.

Secret pipeline:
    walk (log only) -> gitleaks -> load report -> filter -> map -> upload
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

from pulseguard.core.config import PulseGuardConfig
from pulseguard.core.errors import DirectoryNotFound, ManifestNotFound
from pulseguard.core.finding import Finding, ScanRequest
from pulseguard.scanners.cdxgen import (
    CdxgenScanner,
    component_count,
    filter_components,
    find_manifests,
    load_sbom,
    write_sbom,
)
from pulseguard.scanners.gitleaks import GitleaksScanner
from pulseguard.scanners.trivy import (
    TrivyConfigScanner,
    count_by_severity,
    parse_config_report,
    trivy_report_path,
)
from pulseguard.secrets.filters import FindingFilter, default_skip_rules, load_report
from pulseguard.secrets.mapper import map_findings
from pulseguard.secrets.rules import default_ruleset, write_rules_file
from pulseguard.secrets.walker import walk_targets
from pulseguard.upload.client import ReportingClient, UploadResult

logger = logging.getLogger(__name__)

ClientFactory = Callable[[PulseGuardConfig], ReportingClient]


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def _require_dir(path: Path) -> Path:
    path = Path(path).resolve()
    if not path.is_dir():
        raise DirectoryNotFound(path)
    return path


# ── Secrets ──


@dataclass
class SecretRunResult:
    report_path: Path
    scanned_files: int = 0
    reported: int = 0
    kept: List[Finding] = field(default_factory=list)
    dropped: Counter = field(default_factory=Counter)
    records: List[dict[str, Any]] = field(default_factory=list)
    upload: Optional[UploadResult] = None

    @property
    def findings_detected(self) -> bool:
        return bool(self.kept)


class SecretPipeline:
    """Secret detection with Gitleaks, reported to update-secrets."""

    def __init__(
        self,
        config: PulseGuardConfig,
        scanner: Optional[GitleaksScanner] = None,
        client_factory: ClientFactory = ReportingClient.from_config,
        upload: bool = True,
        cleanup: bool = False,
    ) -> None:
        self.config = config
        self.scanner = scanner or GitleaksScanner(
            binary=config.tools.gitleaks,
            scan_git_history=config.secrets.scan_git_history,
            verbose=config.debug,
        )
        self.client_factory = client_factory
        self.upload = upload
        self.cleanup = cleanup

    def run(self) -> SecretRunResult:
        """
        Run the pipeline once.

        Raises:
            DirectoryNotFound, ScannerExecutionFailed, ReportParseFailed,
            MissingConfiguration, UploadFailed
        """
        root = _require_dir(self.config.scan_dir)
        report_path = root / f"credentials_report_{_timestamp_ms()}.json"
        skip_rules = default_skip_rules(self.config.secrets.skip_files, [report_path.name])

        logger.info("Scanning directory: %s", root)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s version: %s", self.scanner.name, self.scanner.version() or "unknown")
        targets = walk_targets(root, skip_rules, self.config.secrets.exclude_dirs)
        logger.info("%d candidate file(s) after skip rules", len(targets))
        for target in targets:
            logger.debug("  %s", target.relative_to(root))

        result = SecretRunResult(report_path=report_path, scanned_files=len(targets))

        ruleset = default_ruleset(self.config.secrets.min_secret_length)
        rules_path = write_rules_file(ruleset)
        logger.debug("Using rules from %s", rules_path)
        try:
            request = ScanRequest(
                source_dir=root,
                report_path=report_path,
                rules_path=rules_path,
                scanner_binary=self.scanner.binary,
            )
            self.scanner.scan(request)
            findings = load_report(report_path)
        finally:
            rules_path.unlink(missing_ok=True)

        try:
            return self._process(findings, skip_rules, result)
        finally:
            if self.cleanup:
                report_path.unlink(missing_ok=True)

    def _process(self, findings, skip_rules, result: SecretRunResult) -> SecretRunResult:
        result.reported = len(findings)
        if not findings:
            logger.info("No credentials detected.")
            return result

        filtered = FindingFilter(skip_rules).apply(findings)
        result.kept = filtered.kept
        result.dropped = filtered.dropped
        if filtered.dropped_count:
            logger.info(
                "Filtered out %d finding(s): %s",
                filtered.dropped_count,
                ", ".join(f"{k}={v}" for k, v in sorted(filtered.dropped.items())),
            )

        if not result.kept:
            logger.info("No credentials detected after filtering.")
            return result

        result.records = map_findings(result.kept, self.config.secrets.path_depth)
        logger.info("Credentials detected: %d", len(result.records))
        for finding in result.kept:
            logger.debug("  [%s] %s", finding.rule_id, finding.location)

        if self.upload:
            client = self.client_factory(self.config)
            result.upload = client.upload_secrets(result.records)
        else:
            logger.info("Upload disabled; skipping API call")
        return result


# ── Configs ──


@dataclass
class ConfigRunResult:
    report_path: Path
    report: dict[str, Any] = field(default_factory=dict)
    critical: int = 0
    fail_on_critical: bool = True
    upload: Optional[UploadResult] = None

    @property
    def findings_detected(self) -> bool:
        return self.fail_on_critical and self.critical > 0


class ConfigPipeline:
    """Misconfiguration scanning with Trivy, reported to update-configs."""

    def __init__(
        self,
        config: PulseGuardConfig,
        scanner: Optional[TrivyConfigScanner] = None,
        client_factory: ClientFactory = ReportingClient.from_config,
        upload: bool = True,
    ) -> None:
        self.config = config
        self.scanner = scanner or TrivyConfigScanner(binary=config.tools.trivy)
        self.client_factory = client_factory
        self.upload = upload

    def run(self) -> ConfigRunResult:
        root = _require_dir(self.config.scan_dir)
        report_path = self.scanner.scan(root, trivy_report_path(root))
        report = parse_config_report(report_path)

        result = ConfigRunResult(
            report_path=report_path,
            report=report,
            critical=count_by_severity(report, "CRITICAL"),
            fail_on_critical=self.config.configs.fail_on_critical,
        )
        logger.info(
            "Trivy reported %d target(s), %d critical misconfiguration(s)",
            len(report["Results"]),
            result.critical,
        )

        if self.upload:
            client = self.client_factory(self.config)
            result.upload = client.upload_configs(report)

        if result.findings_detected:
            logger.error("Critical misconfigurations found.")
        return result


# ── SBOM ──


@dataclass
class SbomRunResult:
    sbom_path: Optional[Path] = None
    manifests: List[str] = field(default_factory=list)
    original_components: int = 0
    components: int = 0
    upload: Optional[UploadResult] = None

    @property
    def findings_detected(self) -> bool:
        return False


class SbomPipeline:
    """SBOM generation with cdxgen, uploaded to update-sbom."""

    def __init__(
        self,
        config: PulseGuardConfig,
        scanner: Optional[CdxgenScanner] = None,
        client_factory: ClientFactory = ReportingClient.from_config,
        upload: bool = True,
    ) -> None:
        self.config = config
        self.scanner = scanner or CdxgenScanner(
            binary=config.tools.cdxgen, spec_version=config.sbom.spec_version
        )
        self.client_factory = client_factory
        self.upload = upload

    def run(self) -> SbomRunResult:
        root = _require_dir(self.config.scan_dir)
        manifests = find_manifests(root)
        if not manifests:
            raise ManifestNotFound(root)
        logger.info("Found manifest file(s): %s", ", ".join(manifests))

        sbom_path = self.scanner.generate(root)
        sbom = load_sbom(sbom_path)
        result = SbomRunResult(
            sbom_path=sbom_path,
            manifests=manifests,
            original_components=component_count(sbom),
        )
        logger.info("Original SBOM component count: %d", result.original_components)

        if "components" in sbom:
            sbom = filter_components(sbom, self.config.sbom.exclude_components)
            write_sbom(sbom, sbom_path)
        result.components = component_count(sbom)
        logger.info("Filtered SBOM component count: %d", result.components)

        if result.components == 0:
            logger.warning("SBOM contains 0 components after filtering. Skipping upload.")
            return result

        if self.upload:
            client = self.client_factory(self.config)
            result.upload = client.upload_sbom(
                sbom_path,
                display_name=self.config.sbom.display_name,
                branch_name=self.config.branch_name,
            )
        return result
