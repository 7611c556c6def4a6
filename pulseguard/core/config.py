"""
PulseGuard Configuration Management

Builds one PulseGuardConfig per run from the process environment and an
optional .pulseguard.yaml in the scan root. Components receive the config
object instead of reading os.environ themselves.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from pulseguard.core.errors import InvalidConfiguration


CONFIG_FILENAME = ".pulseguard.yaml"

DEFAULT_API_BASE_URL = "https://dev.neotrak.io/open-pulse/project"
DEFAULT_UPLOAD_TIMEOUT = 120

# Working directory the Jenkins job checks this tool out into
CI_WORKDIR_NAME = "neotrak-jenkins"

# Components pulled in by the pipeline tooling itself, not by the project
DEFAULT_SBOM_EXCLUDE_COMPONENTS = [
    "axios",
    "form-data",
    "asynckit",
    "call-bind-apply-helpers",
    "combined-stream",
    "delayed-stream",
    "dunder-proto",
    "es-define-property",
    "es-errors",
    "es-object-atoms",
    "es-set-tostringtag",
    "follow-redirects",
    "function-bind",
    "get-intrinsic",
    "get-proto",
    "gopd",
    "hasown",
    "has-symbols",
    "has-tostringtag",
    "math-intrinsics",
    "mime-types",
    "mime-db",
    "neotrack",
    "proxy-from-env",
]

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class SecretsConfig:
    skip_files: list[str] = field(default_factory=list)
    exclude_dirs: list[str] = field(default_factory=list)
    min_secret_length: int = 10
    path_depth: int = 8
    fail_on_findings: bool = True
    scan_git_history: bool = False


@dataclass
class ConfigsConfig:
    fail_on_critical: bool = True


@dataclass
class SbomConfig:
    display_name: str = "sbom"
    spec_version: str = "1.4"
    exclude_components: list[str] = field(
        default_factory=lambda: list(DEFAULT_SBOM_EXCLUDE_COMPONENTS)
    )


@dataclass
class ApiConfig:
    base_url: str = DEFAULT_API_BASE_URL
    timeout: int = DEFAULT_UPLOAD_TIMEOUT
    project_id: Optional[str] = None
    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    tenant_key: Optional[str] = None


@dataclass
class ToolPaths:
    gitleaks: str = "gitleaks"
    trivy: str = "trivy"
    cdxgen: str = "cdxgen"


@dataclass
class PulseGuardConfig:
    """Root configuration object for a pipeline run."""

    scan_dir: Path = field(default_factory=Path.cwd)
    debug: bool = False
    branch_name: str = "main"
    api: ApiConfig = field(default_factory=ApiConfig)
    tools: ToolPaths = field(default_factory=ToolPaths)
    secrets: SecretsConfig = field(default_factory=SecretsConfig)
    configs: ConfigsConfig = field(default_factory=ConfigsConfig)
    sbom: SbomConfig = field(default_factory=SbomConfig)

    @classmethod
    def load(
        cls,
        scan_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        config_path: Optional[Path] = None,
    ) -> "PulseGuardConfig":
        """
        Assemble the run configuration.

        Args:
            scan_dir: Directory to scan. Falls back to SCAN_DIR, then the cwd.
            environ: Environment mapping, os.environ by default.
            config_path: Explicit config file. Defaults to
                <scan_dir>/.pulseguard.yaml when that file exists.

        Returns:
            The populated config.
        """
        env = os.environ if environ is None else environ

        if scan_dir is None:
            scan_dir = Path(env.get("SCAN_DIR") or Path.cwd())
        scan_dir = Path(scan_dir).resolve()

        if config_path is None:
            config_path = scan_dir / CONFIG_FILENAME
            data = _read_yaml(config_path) if config_path.exists() else {}
        else:
            config_path = Path(config_path)
            if not config_path.is_file():
                raise InvalidConfiguration(config_path, "file not found")
            data = _read_yaml(config_path)

        config = cls._from_dict(data, scan_dir, config_path)
        config._apply_environment(env)
        return config

    @classmethod
    def _from_dict(
        cls,
        data: dict[str, Any],
        scan_dir: Path,
        source: Path = Path(CONFIG_FILENAME),
    ) -> "PulseGuardConfig":
        """
        Build config from a parsed YAML dictionary.

        Keys that are present but empty fall back to their defaults.

        Raises:
            InvalidConfiguration: a section is not a mapping, or a value has
                the wrong type.
        """
        secrets_data = _section(data, "secrets", source)
        secrets = SecretsConfig(
            skip_files=_str_list(secrets_data, "secrets.skip_files", [], source),
            exclude_dirs=_str_list(secrets_data, "secrets.exclude_dirs", [], source),
            min_secret_length=_int(secrets_data, "secrets.min_secret_length", 10, source, minimum=1),
            path_depth=_int(secrets_data, "secrets.path_depth", 8, source),
            fail_on_findings=_bool(secrets_data, "secrets.fail_on_findings", True),
            scan_git_history=_bool(secrets_data, "secrets.scan_git_history", False),
        )

        configs_data = _section(data, "configs", source)
        configs = ConfigsConfig(
            fail_on_critical=_bool(configs_data, "configs.fail_on_critical", True),
        )

        sbom_data = _section(data, "sbom", source)
        sbom = SbomConfig(
            display_name=_str(sbom_data, "sbom.display_name", "sbom"),
            spec_version=_str(sbom_data, "sbom.spec_version", "1.4"),
            exclude_components=_str_list(
                sbom_data, "sbom.exclude_components", DEFAULT_SBOM_EXCLUDE_COMPONENTS, source
            ),
        )

        api_data = _section(data, "api", source)
        api = ApiConfig(
            base_url=_str(api_data, "api.base_url", DEFAULT_API_BASE_URL),
            timeout=_int(api_data, "api.timeout", DEFAULT_UPLOAD_TIMEOUT, source, minimum=1),
        )

        tools_data = _section(data, "tools", source)
        tools = ToolPaths(
            gitleaks=_str(tools_data, "tools.gitleaks", "gitleaks"),
            trivy=_str(tools_data, "tools.trivy", "trivy"),
            cdxgen=_str(tools_data, "tools.cdxgen", "cdxgen"),
        )

        return cls(
            scan_dir=scan_dir,
            api=api,
            tools=tools,
            secrets=secrets,
            configs=configs,
            sbom=sbom,
        )

    def _apply_environment(self, env: Mapping[str, str]) -> None:
        """Environment variables win over the config file."""
        self.debug = env.get("DEBUG_MODE", "").strip().lower() in TRUE_VALUES

        self.api.project_id = env.get("PROJECT_ID") or None
        self.api.api_key = env.get("X_API_KEY") or None
        self.api.secret_key = env.get("X_SECRET_KEY") or None
        self.api.tenant_key = env.get("X_TENANT_KEY") or None
        if env.get("API_BASE_URL"):
            self.api.base_url = env["API_BASE_URL"]

        self.tools.gitleaks = env.get("GITLEAKS_PATH") or self.tools.gitleaks
        self.tools.trivy = env.get("TRIVY_PATH") or self.tools.trivy
        self.tools.cdxgen = env.get("CDXGEN_PATH") or self.tools.cdxgen

        extra_skips = [s.strip() for s in env.get("SKIP_FILES", "").split(",") if s.strip()]
        self.secrets.skip_files.extend(extra_skips)

        if env.get("DISPLAY_NAME"):
            self.sbom.display_name = env["DISPLAY_NAME"]

        self.branch_name = (
            env.get("GITHUB_REF_NAME")
            or env.get("CI_COMMIT_REF_NAME")
            or env.get("BRANCH_NAME")
            or "main"
        )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise InvalidConfiguration(path, str(exc)) from exc

    if not isinstance(raw, dict):
        raise InvalidConfiguration(path, "top level must be a mapping")
    return raw


def _section(data: dict[str, Any], name: str, source: Path) -> dict[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise InvalidConfiguration(source, f"'{name}' must be a mapping")
    return section


def _get(section: dict[str, Any], dotted: str) -> Any:
    return section.get(dotted.rsplit(".", 1)[-1])


def _str(section: dict[str, Any], dotted: str, default: str) -> str:
    value = _get(section, dotted)
    return default if value is None else str(value)


def _bool(section: dict[str, Any], dotted: str, default: bool) -> bool:
    value = _get(section, dotted)
    return default if value is None else bool(value)


def _int(
    section: dict[str, Any],
    dotted: str,
    default: int,
    source: Path,
    minimum: int = 0,
) -> int:
    value = _get(section, dotted)
    if value is None:
        return default
    # bool is an int subclass
    if isinstance(value, bool):
        raise InvalidConfiguration(source, f"'{dotted}' must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(source, f"'{dotted}' must be an integer") from exc
    if number < minimum:
        raise InvalidConfiguration(source, f"'{dotted}' must be at least {minimum}")
    return number


def _str_list(section: dict[str, Any], dotted: str, default: list[str], source: Path) -> list[str]:
    value = _get(section, dotted)
    if value is None:
        return list(default)
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise InvalidConfiguration(source, f"'{dotted}' must be a list")
    return [str(item) for item in value if item is not None]


def generate_default_config() -> str:
    """Generate a default .pulseguard.yaml configuration file content."""
    return """\
# PulseGuard Configuration
# Credentials and PROJECT_ID come from the environment, never from this file.

secrets:
  # Extra file names or glob patterns to drop from the report
  skip_files:
    - "*.example"
  # Extra directory names to leave out of the file listing
  exclude_dirs:
    - dist
  min_secret_length: 10
  path_depth: 8
  fail_on_findings: true
  scan_git_history: false

configs:
  fail_on_critical: true

sbom:
  display_name: sbom
  spec_version: "1.4"

api:
  base_url: https://dev.neotrak.io/open-pulse/project
  timeout: 120
"""
