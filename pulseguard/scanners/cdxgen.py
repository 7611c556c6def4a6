"""
PulseGuard cdxgen Scanner

Generates a CycloneDX SBOM for the project root and strips components
that belong to the pipeline tooling rather than the project.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from pulseguard.core.config import CI_WORKDIR_NAME
from pulseguard.core.errors import DirectoryNotFound, ReportParseFailed
from pulseguard.core.scanner import BaseScanner

logger = logging.getLogger(__name__)

MANIFEST_FILES = (
    "package.json",
    "pom.xml",
    "build.gradle",
    "requirements.txt",
)

SBOM_FILENAME = "sbom.json"


def find_manifests(project_root: Path) -> List[str]:
    """Supported manifests present directly in ``project_root``."""
    root = Path(project_root)
    found = [name for name in MANIFEST_FILES if (root / name).is_file()]
    found.extend(sorted(p.name for p in root.glob("*.csproj") if p.is_file()))
    return found


class CdxgenScanner(BaseScanner):

    name = "cdxgen"

    def __init__(
        self,
        binary: str = "cdxgen",
        timeout: Optional[int] = None,
        spec_version: str = "1.4",
    ) -> None:
        super().__init__(binary, timeout=timeout)
        self.spec_version = spec_version

    def build_command(self, project_root: Path, output_path: Path) -> list[str]:
        return [
            self.binary,
            str(project_root),
            "-o",
            str(output_path),
            "--exclude",
            f"{CI_WORKDIR_NAME}/**",
            "--exclude",
            "node_modules/**",
            "--spec-version",
            self.spec_version,
            "--no-dev-dependencies",
        ]

    def generate(self, project_root: Path, output_path: Optional[Path] = None) -> Path:
        """
        Generate the SBOM.

        Raises:
            DirectoryNotFound: the project root is missing.
            ScannerExecutionFailed: cdxgen failed to run.
        """
        project_root = Path(project_root).resolve()
        if not project_root.is_dir():
            raise DirectoryNotFound(project_root)

        output_path = Path(output_path or project_root / SBOM_FILENAME).resolve()
        logger.info("Generating SBOM for %s", project_root)
        self.run(self.build_command(project_root, output_path), cwd=project_root)
        logger.info("SBOM generated as %s", output_path)
        return output_path


def load_sbom(path: Path) -> dict[str, Any]:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ReportParseFailed(path, str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise ReportParseFailed(path, f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ReportParseFailed(path, "expected a CycloneDX JSON object")
    return data


def filter_components(sbom: dict[str, Any], excluded: Iterable[str]) -> dict[str, Any]:
    """
    Drop components whose name contains any excluded name.

    Matching is case-insensitive substring matching. Returns a new dict;
    ``sbom`` is left untouched.
    """
    patterns = [e.strip().lower() for e in excluded if e and e.strip()]
    result = dict(sbom)
    components = sbom.get("components")
    if components is None:
        return result

    result["components"] = [
        c
        for c in components
        if not any(p in str(c.get("name") or "").strip().lower() for p in patterns)
    ]
    return result


def component_count(sbom: dict[str, Any]) -> int:
    return len(sbom.get("components") or [])


def write_sbom(sbom: dict[str, Any], path: Path) -> None:
    Path(path).write_text(json.dumps(sbom, indent=2), encoding="utf-8")
