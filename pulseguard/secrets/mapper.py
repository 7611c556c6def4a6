"""
PulseGuard Payload Mapper

Turns findings into the records the update-secrets endpoint accepts.
Key order and string-typed positions are part of that API's schema.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from pulseguard.core.finding import Finding

DEFAULT_MIN_SEGMENTS = 8

RECORD_FIELDS = (
    "RuleID",
    "Description",
    "File",
    "Match",
    "Secret",
    "StartLine",
    "EndLine",
    "StartColumn",
    "EndColumn",
)


def normalize_path(path: Optional[str], min_segments: int = DEFAULT_MIN_SEGMENTS) -> str:
    """
    Use forward slashes and left-pad with empty segments.

    The API splits the path and reads fixed segment positions, so short
    paths get leading empty segments until there are ``min_segments``.
    ``min_segments=0`` turns padding off.
    """
    normalized = (path or "").replace("\\", "/")
    segments = normalized.split("/")
    missing = min_segments - len(segments)
    if missing > 0:
        segments = [""] * missing + segments
    return "/".join(segments)


def _position(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def map_finding(finding: Finding, min_segments: int = DEFAULT_MIN_SEGMENTS) -> dict[str, Any]:
    """Map one finding to an API record. Pure; same input, same output."""
    return {
        "RuleID": finding.rule_id,
        "Description": finding.description,
        "File": normalize_path(finding.file, min_segments),
        "Match": finding.match,
        "Secret": finding.secret,
        "StartLine": _position(finding.start_line),
        "EndLine": _position(finding.end_line),
        "StartColumn": _position(finding.start_column),
        "EndColumn": _position(finding.end_column),
    }


def map_findings(
    findings: Iterable[Finding], min_segments: int = DEFAULT_MIN_SEGMENTS
) -> list[dict[str, Any]]:
    return [map_finding(f, min_segments) for f in findings]
