"""
PulseGuard CLI

Command-line entry points for CI jobs.

Commands:
    pulseguard secrets [PATH]   - Gitleaks secret scan, upload to update-secrets
    pulseguard configs [PATH]   - Trivy config scan, upload to update-configs
    pulseguard sbom [PATH]      - cdxgen SBOM, upload to update-sbom
    pulseguard rules            - Print the generated Gitleaks rule file
    pulseguard init             - Create a default .pulseguard.yaml

Exit codes: 0 success, 1 findings detected, 2 fatal error.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from pulseguard import __version__
from pulseguard.core.config import CONFIG_FILENAME, PulseGuardConfig, generate_default_config
from pulseguard.core.errors import PulseGuardError
from pulseguard.core.logger import setup_logger
from pulseguard.pipeline import ConfigPipeline, SbomPipeline, SecretPipeline
from pulseguard.reporting.console import ConsoleReporter, _safe_echo, print_error
from pulseguard.reporting.json_reporter import JSONReporter
from pulseguard.secrets.rules import default_ruleset

EXIT_SUCCESS = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2

logger = logging.getLogger("pulseguard")


def _load_config(path: Optional[str], config_path: Optional[str], debug: bool) -> PulseGuardConfig:
    config = PulseGuardConfig.load(
        scan_dir=Path(path) if path else None,
        config_path=Path(config_path) if config_path else None,
    )
    config.debug = config.debug or debug
    setup_logger(debug=config.debug)
    return config


def _fail(exc: PulseGuardError) -> None:
    logger.debug("Fatal error", exc_info=exc)
    print_error(str(exc))
    sys.exit(EXIT_ERROR)


@click.group()
@click.version_option(version=__version__, prog_name="PulseGuard")
def cli() -> None:
    """
    PulseGuard - CI security scans reported to Open Pulse

    Runs Gitleaks, Trivy and cdxgen against a checkout and uploads the
    results. Credentials come from X_API_KEY, X_SECRET_KEY and X_TENANT_KEY;
    the target project from PROJECT_ID.
    """
    pass


# ═══════════════════════════════════════════════════════
#  pulseguard secrets
# ═══════════════════════════════════════════════════════
@cli.command()
@click.argument("path", required=False, type=click.Path(file_okay=False))
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help=f"Path to {CONFIG_FILENAME} (default: <PATH>/{CONFIG_FILENAME}).")
@click.option("--output", "-o", "output_file", type=click.Path(), default=None,
              help="Also write the mapped payload to a JSON file.")
@click.option("--upload/--no-upload", default=True, show_default=True,
              help="Send retained findings to the reporting API.")
@click.option("--fail-on-findings/--no-fail-on-findings", default=None,
              help="Exit 1 when findings remain after filtering (default: from config).")
@click.option("--min-secret-length", type=click.IntRange(min=1), default=None,
              help="Minimum length of a generic secret value.")
@click.option("--path-depth", type=click.IntRange(min=0), default=None,
              help="Minimum slash-delimited segments in uploaded paths (0 disables).")
@click.option("--cleanup", is_flag=True, help="Delete the Gitleaks report after the run.")
@click.option("--debug", is_flag=True, help="Verbose logging (same as DEBUG_MODE=true).")
def secrets(
    path: Optional[str],
    config_path: Optional[str],
    output_file: Optional[str],
    upload: bool,
    fail_on_findings: Optional[bool],
    min_secret_length: Optional[int],
    path_depth: Optional[int],
    cleanup: bool,
    debug: bool,
) -> None:
    """Detect hardcoded credentials with Gitleaks and report them.

    Examples:

        pulseguard secrets

        SCAN_DIR=./app pulseguard secrets --no-upload -o secrets.json
    """
    try:
        config = _load_config(path, config_path, debug)
        # CLI flags override config
        if fail_on_findings is not None:
            config.secrets.fail_on_findings = fail_on_findings
        if min_secret_length is not None:
            config.secrets.min_secret_length = min_secret_length
        if path_depth is not None:
            config.secrets.path_depth = path_depth

        pipeline = SecretPipeline(config, upload=upload, cleanup=cleanup)
        result = pipeline.run()
    except PulseGuardError as exc:
        _fail(exc)
        return

    target = str(config.scan_dir)
    ConsoleReporter(target, fail_on_findings=config.secrets.fail_on_findings).report_secrets(result)
    if output_file:
        JSONReporter(target).report(result, output_file=output_file)

    if result.findings_detected and config.secrets.fail_on_findings:
        sys.exit(EXIT_FINDINGS)


# ═══════════════════════════════════════════════════════
#  pulseguard configs
# ═══════════════════════════════════════════════════════
@cli.command()
@click.argument("path", required=False, type=click.Path(file_okay=False))
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help=f"Path to {CONFIG_FILENAME}.")
@click.option("--upload/--no-upload", default=True, show_default=True,
              help="Send the report to the reporting API.")
@click.option("--fail-on-critical/--no-fail-on-critical", default=None,
              help="Exit 1 when critical misconfigurations are found.")
@click.option("--debug", is_flag=True, help="Verbose logging.")
def configs(
    path: Optional[str],
    config_path: Optional[str],
    upload: bool,
    fail_on_critical: Optional[bool],
    debug: bool,
) -> None:
    """Scan IaC and config files with Trivy and report misconfigurations."""
    try:
        config = _load_config(path, config_path, debug)
        if fail_on_critical is not None:
            config.configs.fail_on_critical = fail_on_critical
        result = ConfigPipeline(config, upload=upload).run()
    except PulseGuardError as exc:
        _fail(exc)
        return

    ConsoleReporter(str(config.scan_dir)).report_configs(result)
    if result.findings_detected:
        sys.exit(EXIT_FINDINGS)


# ═══════════════════════════════════════════════════════
#  pulseguard sbom
# ═══════════════════════════════════════════════════════
@cli.command()
@click.argument("path", required=False, type=click.Path(file_okay=False))
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help=f"Path to {CONFIG_FILENAME}.")
@click.option("--upload/--no-upload", default=True, show_default=True,
              help="Upload the SBOM to the reporting API.")
@click.option("--display-name", default=None, help="Display name sent with the SBOM.")
@click.option("--debug", is_flag=True, help="Verbose logging.")
def sbom(
    path: Optional[str],
    config_path: Optional[str],
    upload: bool,
    display_name: Optional[str],
    debug: bool,
) -> None:
    """Generate a CycloneDX SBOM with cdxgen and upload it."""
    try:
        config = _load_config(path, config_path, debug)
        if display_name:
            config.sbom.display_name = display_name
        result = SbomPipeline(config, upload=upload).run()
    except PulseGuardError as exc:
        _fail(exc)
        return

    ConsoleReporter(str(config.scan_dir)).report_sbom(result)


# ═══════════════════════════════════════════════════════
#  pulseguard rules
# ═══════════════════════════════════════════════════════
@cli.command()
@click.option("--min-secret-length", type=click.IntRange(min=1), default=10, show_default=True,
              help="Minimum length of a generic secret value.")
@click.option("--output", "-o", "output_file", type=click.Path(), default=None,
              help="Write the rule file here instead of stdout.")
def rules(min_secret_length: int, output_file: Optional[str]) -> None:
    """Print the Gitleaks rule file the secret scan uses."""
    rendered = default_ruleset(min_secret_length).render()
    if output_file:
        Path(output_file).write_text(rendered, encoding="utf-8")
        _safe_echo(click.style(f"  [+] Wrote {output_file}", fg="green"))
    else:
        _safe_echo(rendered, nl=False)


# ═══════════════════════════════════════════════════════
#  pulseguard init
# ═══════════════════════════════════════════════════════
@cli.command()
@click.option("--path", "-p", "target_path", type=click.Path(file_okay=False), default=".",
              help="Directory to create the config file in.")
def init(target_path: str) -> None:
    """Create a default .pulseguard.yaml."""
    target = Path(target_path).resolve()
    target.mkdir(parents=True, exist_ok=True)

    config_file = target / CONFIG_FILENAME
    if config_file.exists():
        _safe_echo(click.style(f"  [!] {config_file} already exists, skipping.", fg="yellow"))
        return

    config_file.write_text(generate_default_config(), encoding="utf-8")
    _safe_echo(click.style(f"  [+] Created {config_file}", fg="green"))
    _safe_echo("")
    _safe_echo("  Set PROJECT_ID and the X_*_KEY credentials in your CI job,")
    _safe_echo("  then run 'pulseguard secrets'.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
