"""
PulseGuard Console Reporter

Prints the end-of-run summary for the secret pipeline. Secret values are
masked; the full records only go to the API and the optional JSON dump.
"""

from __future__ import annotations

import sys
from collections import Counter
from typing import Optional

import click

from pulseguard import __version__
from pulseguard.core.finding import Finding
from pulseguard.pipeline import ConfigRunResult, SbomRunResult, SecretRunResult


def _safe_echo(text: str = "", **kwargs) -> None:
    """Echo text, handling Unicode issues on Windows consoles."""
    try:
        click.echo(text, **kwargs)
    except UnicodeEncodeError:
        safe = text.encode(sys.stdout.encoding or "utf-8", errors="replace").decode(
            sys.stdout.encoding or "utf-8", errors="replace"
        )
        click.echo(safe, **kwargs)


def mask_secret(value: str, visible_chars: int = 4) -> str:
    """Keep the first few characters of a secret and star out the rest."""
    if not value:
        return ""
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * min(len(value) - visible_chars, 16)


class ConsoleReporter:
    """Prints a formatted run summary to the console."""

    def __init__(self, target: str, fail_on_findings: bool = True) -> None:
        self.target = target
        self.fail_on_findings = fail_on_findings

    def report_secrets(self, result: SecretRunResult) -> None:
        self._print_header("Secret Scan Report")
        _safe_echo(click.style(f"  Files considered: {result.scanned_files}", fg="white"))
        _safe_echo(click.style(f"  Reported by scanner: {result.reported}", fg="white"))
        if result.dropped:
            dropped = ", ".join(f"{k}: {v}" for k, v in sorted(result.dropped.items()))
            _safe_echo(click.style(f"  Filtered out: {dropped}", fg="bright_black"))

        if result.kept:
            self._print_rule_summary(result.kept)
            self._print_detailed_findings(result.kept)

        self._print_upload(result.upload is not None, bool(result.records))
        self._print_footer(result.findings_detected and self.fail_on_findings, bool(result.kept))

    def report_configs(self, result: ConfigRunResult) -> None:
        self._print_header("Config Scan Report")
        counter: Counter = Counter(
            m.get("Severity") or "UNKNOWN"
            for r in result.report.get("Results", [])
            for m in r.get("Misconfigurations", [])
        )
        _safe_echo(click.style(f"  Targets: {len(result.report.get('Results', []))}", fg="white"))
        for sev in ["CRITICAL", "HIGH", "MEDIUM", "LOW", "UNKNOWN"]:
            if counter.get(sev):
                _safe_echo(click.style(f"     {sev:10s}: {counter[sev]}", fg="white"))
        self._print_upload(result.upload is not None, True)
        self._print_footer(result.findings_detected, sum(counter.values()) > 0)

    def report_sbom(self, result: SbomRunResult) -> None:
        self._print_header("SBOM Report")
        _safe_echo(click.style(f"  Manifests: {', '.join(result.manifests)}", fg="white"))
        _safe_echo(
            click.style(
                f"  Components: {result.components} (of {result.original_components})",
                fg="white",
            )
        )
        self._print_upload(result.upload is not None, result.components > 0)
        self._print_footer(False, False)

    def _print_header(self, title: str) -> None:
        _safe_echo("")
        _safe_echo(click.style("=" * 55, fg="bright_blue"))
        _safe_echo(click.style(f"  PulseGuard {title}", fg="bright_white", bold=True))
        _safe_echo(click.style(f"  Version: {__version__}", fg="white"))
        _safe_echo(click.style(f"  Target: {self.target}", fg="white"))
        _safe_echo(click.style("=" * 55, fg="bright_blue"))

    def _print_rule_summary(self, findings: list[Finding]) -> None:
        _safe_echo("")
        _safe_echo(click.style("  Findings by Rule:", fg="bright_white", bold=True))
        for rule_id, count in Counter(f.rule_id for f in findings).most_common():
            _safe_echo(click.style(f"     {rule_id:28s}: ", fg="yellow") + str(count))

    def _print_detailed_findings(self, findings: list[Finding]) -> None:
        _safe_echo("")
        _safe_echo(click.style("  Detailed Findings:", fg="bright_white", bold=True))
        _safe_echo(click.style("-" * 55, fg="bright_black"))

        for idx, finding in enumerate(findings, start=1):
            _safe_echo("")
            _safe_echo(
                click.style(f"  {idx}. ", fg="white")
                + click.style(f" {finding.rule_id} ", fg="red", bold=True)
                + click.style(f" {finding.description}", fg="bright_white")
            )
            _safe_echo(click.style(f"      Location: {finding.location}", fg="bright_black"))
            if finding.secret:
                _safe_echo(
                    click.style(f"      Secret: {mask_secret(finding.secret)}", fg="bright_black")
                )

    def _print_upload(self, uploaded: bool, had_payload: bool) -> None:
        if not had_payload:
            return
        _safe_echo("")
        if uploaded:
            _safe_echo(click.style("  [+] Results uploaded to Open Pulse", fg="green"))
        else:
            _safe_echo(click.style("  [-] Upload skipped", fg="yellow"))

    def _print_footer(self, should_fail: bool, has_findings: bool) -> None:
        _safe_echo("")
        _safe_echo(click.style("=" * 55, fg="bright_blue"))

        if should_fail:
            _safe_echo(
                click.style(
                    "  [X] FINDINGS DETECTED - Build marked as failed",
                    fg="bright_red",
                    bold=True,
                )
            )
        elif not has_findings:
            _safe_echo(click.style("  [OK] PASSED - Nothing to report", fg="green", bold=True))
        else:
            _safe_echo(
                click.style(
                    "  [!] WARNINGS - Review findings above",
                    fg="yellow",
                    bold=True,
                )
            )

        _safe_echo(click.style("=" * 55, fg="bright_blue"))
        _safe_echo("")


def print_error(message: str, hint: Optional[str] = None) -> None:
    _safe_echo(click.style(f"  [X] {message}", fg="red"), err=True)
    if hint:
        _safe_echo(click.style(f"      {hint}", fg="bright_black"), err=True)
