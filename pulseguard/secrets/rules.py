"""
PulseGuard Rule Set

Detection rules handed to Gitleaks through a generated config file.
Rules are kept as typed data and rendered to Gitleaks TOML on demand.
"""

from __future__ import annotations

import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

RULESET_VERSION = "1.0"
DEFAULT_MIN_SECRET_LENGTH = 10

RULES_FILE_PREFIX = "gitleaks-rules"


@dataclass(frozen=True)
class Rule:
    id: str
    description: str
    regex: str
    tags: tuple[str, ...] = ()
    secret_group: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "regex": self.regex,
            "tags": list(self.tags),
        }
        if self.secret_group is not None:
            data["secretGroup"] = self.secret_group
        return data


@dataclass(frozen=True)
class RuleSet:
    """An ordered list of rules plus a document version."""

    rules: tuple[Rule, ...] = field(default_factory=tuple)
    title: str = "pulseguard custom rules"
    version: str = RULESET_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "version": self.version,
            "rules": [rule.to_dict() for rule in self.rules],
        }

    def render(self) -> str:
        """Serialize to the TOML layout Gitleaks reads with --config."""
        lines = [
            f"# pulseguard rule set v{self.version}",
            f"title = {_basic_string(self.title)}",
        ]
        for rule in self.rules:
            lines.append("")
            lines.append("[[rules]]")
            lines.append(f"id = {_basic_string(rule.id)}")
            lines.append(f"description = {_basic_string(rule.description)}")
            lines.append(f"regex = {_literal_string(rule.regex)}")
            if rule.secret_group is not None:
                lines.append(f"secretGroup = {rule.secret_group}")
            tags = ", ".join(_basic_string(t) for t in rule.tags)
            lines.append(f"tags = [{tags}]")
        return "\n".join(lines) + "\n"


def _basic_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _literal_string(value: str) -> str:
    # Multi-line literal strings keep regex backslashes and quotes verbatim
    if "'''" in value:
        raise ValueError(f"Regex cannot contain ''' in a TOML literal: {value!r}")
    return f"'''{value}'''"


def default_ruleset(min_secret_length: int = DEFAULT_MIN_SECRET_LENGTH) -> RuleSet:
    """
    The built-in rules.

    ``min_secret_length`` bounds the captured value of the generic
    key/secret rule so short placeholders like "changeme" are not reported.
    """
    if min_secret_length < 1:
        raise ValueError("min_secret_length must be at least 1")

    generic = (
        r"(?i)(password|passwd|pwd|secret|key|token|auth|access)"
        r"""[\s"']*[=:][\s"']*["']"""
        r"([A-Za-z0-9@#\-_!$%]{" + str(min_secret_length) + r",})"
        r"""["']"""
    )

    return RuleSet(
        rules=(
            Rule(
                id="strict-secret-detection",
                description="Detect likely passwords or secrets with high entropy",
                regex=generic,
                tags=("key", "secret", "generic", "password"),
                secret_group=2,
            ),
            Rule(
                id="aws-secret",
                description="AWS Secret Access Key",
                regex=r"""(?i)aws(.{0,20})?(secret|access)?(.{0,20})?['"][0-9a-zA-Z/+]{40}['"]""",
                tags=("aws", "key", "secret"),
            ),
            Rule(
                id="aws-key",
                description="AWS Access Key ID",
                regex=r"AKIA[0-9A-Z]{16}",
                tags=("aws", "key"),
            ),
            Rule(
                id="github-token",
                description="GitHub Personal Access Token",
                regex=r"ghp_[A-Za-z0-9_]{36}",
                tags=("github", "token"),
            ),
            Rule(
                id="jwt",
                description="JSON Web Token",
                regex=r"eyJ[A-Za-z0-9-_]+\.eyJ[A-Za-z0-9-_]+\.[A-Za-z0-9-_]+",
                tags=("token", "jwt"),
            ),
            Rule(
                id="firebase-api-key",
                description="Firebase API Key",
                regex=r"AIza[0-9A-Za-z\-_]{35}",
                tags=("firebase", "apikey"),
            ),
        )
    )


def write_rules_file(ruleset: RuleSet, directory: Optional[Path] = None) -> Path:
    """
    Write the rendered rule set to a run-unique file.

    The name carries a millisecond timestamp and the process id, so two
    runs on the same host do not share a file.
    """
    base = Path(directory) if directory else Path(tempfile.gettempdir())
    base.mkdir(parents=True, exist_ok=True)
    stamp = int(time.time() * 1000)
    path = base / f"{RULES_FILE_PREFIX}-{stamp}-{os.getpid()}.toml"
    path.write_text(ruleset.render(), encoding="utf-8")
    return path
