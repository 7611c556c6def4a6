"""
PulseGuard Scan Target Walker

Lists the files under the scan root that findings could be reported for.
Gitleaks walks the tree on its own; this listing is for the run log.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List

from pulseguard.core.config import CI_WORKDIR_NAME
from pulseguard.core.errors import DirectoryNotFound
from pulseguard.core.finding import SkipRules

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = frozenset({"node_modules", ".git", CI_WORKDIR_NAME})

REPORT_PREFIXES = ("credentials_report_", "secrets_report_", "trivy_report_")


def is_excluded_dir(name: str, extra: Iterable[str] = ()) -> bool:
    """Check a directory name against the fixed and extra exclusions."""
    if name in EXCLUDED_DIRS or name in set(extra):
        return True
    return name.startswith(REPORT_PREFIXES)


def iter_targets(
    root: Path,
    skip_rules: SkipRules,
    exclude_dirs: Iterable[str] = (),
) -> Iterator[Path]:
    """Yield candidate files depth-first, in sorted order."""
    extra = frozenset(exclude_dirs)
    try:
        entries = sorted(os.scandir(root), key=lambda e: e.name)
    except OSError as exc:
        logger.warning("Cannot list %s: %s", root, exc)
        return

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            if is_excluded_dir(entry.name, extra):
                continue
            yield from iter_targets(Path(entry.path), skip_rules, extra)
        elif entry.is_file(follow_symlinks=False):
            if skip_rules.matches(entry.name):
                continue
            yield Path(entry.path)


def walk_targets(
    root: Path,
    skip_rules: SkipRules,
    exclude_dirs: Iterable[str] = (),
) -> List[Path]:
    """
    Enumerate candidate files under ``root``.

    Args:
        root: Directory to walk.
        skip_rules: File names and patterns to leave out.
        exclude_dirs: Directory names to prune on top of the fixed set.

    Returns:
        Absolute file paths.

    Raises:
        DirectoryNotFound: ``root`` is missing or not a directory.
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise DirectoryNotFound(root)
    return list(iter_targets(root, skip_rules, exclude_dirs))
