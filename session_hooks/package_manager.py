"""
Package manager detection for a project directory.

Used by the build/fix commands to pick the right tool; not part of the
session bookkeeping.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_OVERRIDE = "CLAUDE_PACKAGE_MANAGER"
DEFAULT_PACKAGE_MANAGER = "npm"

# Checked in order; first match wins
LOCKFILES: list[tuple[str, str]] = [
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
    ("uv.lock", "uv"),
    ("poetry.lock", "poetry"),
    ("Pipfile.lock", "pipenv"),
]

RUN_PREFIX = {
    "npm": "npm run",
    "pnpm": "pnpm",
    "yarn": "yarn",
    "bun": "bun run",
    "uv": "uv run",
    "poetry": "poetry run",
    "pipenv": "pipenv run",
}


@dataclass
class PackageManagerInfo:
    """Detected package manager."""

    name: str
    source: str  # "env" | "package.json" | "lockfile" | "default"
    marker: str | None = None

    def run_command(self, script: str) -> str:
        """Command line that runs a project script with this manager."""
        prefix = RUN_PREFIX.get(self.name, f"{self.name} run")
        return f"{prefix} {script}"


def _from_package_json(project_dir: Path) -> str | None:
    package_json = project_dir / "package.json"
    if not package_json.is_file():
        return None
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.debug(f"Ignoring unreadable {package_json}: {e}")
        return None
    field = data.get("packageManager") if isinstance(data, dict) else None
    if not isinstance(field, str) or not field:
        return None
    # "pnpm@8.15.0" -> "pnpm"
    return field.split("@", 1)[0].strip() or None


def detect_package_manager(
    project_dir: str | Path,
    env: Mapping[str, str] | None = None,
) -> PackageManagerInfo:
    """
    Detect which package manager a project uses.

    Priority: CLAUDE_PACKAGE_MANAGER, package.json "packageManager",
    lockfiles, then npm.

    Args:
        project_dir: Project root to inspect
        env: Environment mapping (default: os.environ)

    Returns:
        PackageManagerInfo describing the choice and where it came from
    """
    env = os.environ if env is None else env
    override = env.get(ENV_OVERRIDE, "").strip()
    if override:
        return PackageManagerInfo(name=override, source="env")

    root = Path(project_dir)
    declared = _from_package_json(root)
    if declared:
        return PackageManagerInfo(name=declared, source="package.json", marker="package.json")

    for filename, name in LOCKFILES:
        if (root / filename).exists():
            return PackageManagerInfo(name=name, source="lockfile", marker=filename)

    return PackageManagerInfo(name=DEFAULT_PACKAGE_MANAGER, source="default")


__all__ = [
    "PackageManagerInfo",
    "detect_package_manager",
    "LOCKFILES",
]
