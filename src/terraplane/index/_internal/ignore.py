"""Glob exclusion and directory pruning for Terraform workspaces.

Exclusion patterns use fnmatch semantics (``*`` also crosses ``/``) with
``**/`` prefixes matching at any depth. A document is excluded when any
pattern matches its full path or its file name.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable
from pathlib import PurePosixPath

__all__ = [
    "HARDCODED_DIRS",
    "DEFAULT_PRUNABLE_DIRS",
    "PRUNABLE_DIRS",
    "is_excluded",
    "matches_glob",
    "should_prune_dir",
]

# Never traversed
HARDCODED_DIRS: frozenset[str] = frozenset(
    (
        ".git",
        ".svn",
        ".hg",
        ".terraplane",
    )
)

# Provider/module caches and tooling output; excluded from crawls by default
DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        ".terraform",
        ".terragrunt-cache",
        "node_modules",
        ".venv",
        "__pycache__",
    )
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def should_prune_dir(dirname: str) -> bool:
    return dirname in PRUNABLE_DIRS


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a path matches a glob pattern, with ** support."""
    if fnmatch.fnmatch(rel_path, pattern):
        return True
    # Handle **/pattern for any-depth matching
    if pattern.startswith("**/"):
        return fnmatch.fnmatch(rel_path, pattern[3:])
    return False


def is_excluded(path: str, patterns: Iterable[str] | None) -> bool:
    if not patterns:
        return False

    # Normalize to POSIX-style separators for pattern matching on Windows
    posix = path.replace("\\", "/")
    candidates = (posix, PurePosixPath(posix).name)
    return any(matches_glob(c, p) for p in patterns for c in candidates if c)
