"""
PulseGuard Finding Model

A Finding is one secret occurrence reported by the scanner. SkipRule and
ScanRequest are the other per-run value types the secret pipeline passes
around.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Iterable, Optional


@dataclass
class Finding:
    rule_id: str
    file: str
    description: str = ""
    match: str = ""
    secret: str = ""
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    start_column: Optional[int] = None
    end_column: Optional[int] = None
    tags: list[str] = field(default_factory=list)

    @property
    def base_name(self) -> str:
        """Last path segment of ``file``, separator-agnostic."""
        return PurePosixPath(self.file.replace("\\", "/")).name

    @classmethod
    def from_report(cls, entry: dict[str, Any]) -> "Finding":
        """Build a finding from one entry of a Gitleaks JSON report."""
        return cls(
            rule_id=str(entry.get("RuleID") or ""),
            description=str(entry.get("Description") or ""),
            file=str(entry.get("File") or ""),
            match=str(entry.get("Match") or ""),
            secret=str(entry.get("Secret") or ""),
            start_line=_as_int(entry.get("StartLine")),
            end_line=_as_int(entry.get("EndLine")),
            start_column=_as_int(entry.get("StartColumn")),
            end_column=_as_int(entry.get("EndColumn")),
            tags=list(entry.get("Tags") or []),
        )

    @property
    def location(self) -> str:
        if self.start_line is not None:
            return f"{self.file}:{self.start_line}"
        return self.file


def _as_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


_GLOB_CHARS = set("*?[")


@dataclass(frozen=True)
class SkipRule:
    """An exact file name, or a glob pattern when it contains * ? or [."""

    value: str

    @property
    def is_pattern(self) -> bool:
        return any(ch in _GLOB_CHARS for ch in self.value)

    def matches(self, name: str) -> bool:
        if self.is_pattern:
            return fnmatch.fnmatchcase(name, self.value)
        return name == self.value


@dataclass(frozen=True)
class SkipRules:
    """The immutable skip list for one run."""

    rules: tuple[SkipRule, ...] = ()

    @classmethod
    def of(cls, *groups: Iterable[str]) -> "SkipRules":
        seen: dict[str, None] = {}
        for group in groups:
            for value in group:
                if value:
                    seen.setdefault(value, None)
        return cls(tuple(SkipRule(v) for v in seen))

    def matches(self, name: str) -> bool:
        return any(rule.matches(name) for rule in self.rules)

    def __len__(self) -> int:
        return len(self.rules)


@dataclass(frozen=True)
class ScanRequest:
    """Everything the secret scanner needs for one invocation."""

    source_dir: Path
    report_path: Path
    rules_path: Path
    scanner_binary: str = "gitleaks"

    def __post_init__(self) -> None:
        # The scanner runs with its own cwd, so relative paths are ambiguous
        object.__setattr__(self, "source_dir", Path(self.source_dir).resolve())
        object.__setattr__(self, "report_path", Path(self.report_path).resolve())
        object.__setattr__(self, "rules_path", Path(self.rules_path).resolve())
