"""Debug marker scanning for edited and modified source files."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .config import ScanConfig

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 5


@dataclass
class MarkerHit:
    """Debug marker occurrences in one file."""

    path: str
    lines: list[tuple[int, str]] = field(default_factory=list)

    @property
    def line_numbers(self) -> list[int]:
        return [number for number, _ in self.lines]


def find_marker_lines(path: str | Path, marker: str) -> list[tuple[int, str]]:
    """
    Find lines containing marker.

    Returns:
        (1-based line number, stripped line) pairs; empty if unreadable
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return [
                (number, line.strip())
                for number, line in enumerate(f, start=1)
                if marker in line
            ]
    except OSError as e:
        logger.debug(f"Cannot scan {path}: {e}")
        return []


def scan_files(
    paths: list[str],
    config: ScanConfig,
    root: Path | None = None,
    skip_excluded: bool = True,
) -> list[MarkerHit]:
    """
    Scan source files for the debug marker, keeping input order.

    Exclusion patterns are matched against the path relative to root
    when root is given.
    """
    hits = []
    for path in paths:
        if not config.is_source_file(path):
            continue
        display = os.path.relpath(path, root) if root else path
        if skip_excluded and config.is_excluded(display):
            continue
        lines = find_marker_lines(path, config.debug_marker)
        if lines:
            hits.append(MarkerHit(path=display, lines=lines))
    return hits


def _git_lines(args: list[str], cwd: Path) -> list[str]:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"git {' '.join(args)} failed: {e}")
        return []
    if proc.returncode != 0:
        logger.debug(f"git {' '.join(args)} exited {proc.returncode}: {proc.stderr.strip()}")
        return []
    return [line.strip() for line in proc.stdout.splitlines() if line.strip()]


def git_toplevel(cwd: str | Path | None) -> Path | None:
    """Root of the git repository containing cwd, or None."""
    start = Path(cwd) if cwd else Path.cwd()
    if not start.is_dir():
        return None
    toplevel = _git_lines(["rev-parse", "--show-toplevel"], start)
    return Path(toplevel[0]) if toplevel else None


def modified_files(repo: Path) -> list[str]:
    """
    Files changed in the working tree of a git repository.

    Tracked changes against HEAD plus untracked files, as absolute paths.
    """
    names = _git_lines(["diff", "--name-only", "HEAD"], repo)
    names += _git_lines(["ls-files", "--others", "--exclude-standard"], repo)

    seen: set[str] = set()
    files = []
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        path = repo / name
        if path.is_file():
            files.append(str(path))
    return files


__all__ = [
    "MarkerHit",
    "find_marker_lines",
    "scan_files",
    "git_toplevel",
    "modified_files",
]
