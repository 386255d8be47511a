"""
Install the configuration bundle into a Claude config root.

Copies agents/commands/rules/scripts and the session_hooks package
(which the hook scripts import), backs up whatever they replace,
and merges hooks/hooks.json into settings.json without touching any
other settings key.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

BUNDLE_DIRS = ("agents", "commands", "rules", "scripts", "session_hooks")
HOOKS_FILE = Path("hooks") / "hooks.json"
SETTINGS_FILE = "settings.json"
PLUGIN_ROOT_ENV = "CLAUDE_PLUGIN_ROOT"


class InstallError(Exception):
    """Installation cannot continue."""


@dataclass
class InstallReport:
    """What an install run did."""

    dest_dir: Path
    backup_dir: Path | None = None
    copied: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    settings_action: str | None = None  # "created" | "merged" | "replaced" | None
    warnings: list[str] = field(default_factory=list)

    def lines(self) -> list[str]:
        out = [f"Installed to: {self.dest_dir}"]
        if self.backup_dir:
            out.append(f"Backup at:    {self.backup_dir}")
        out += [f"[OK] Copied {name}/" for name in self.copied]
        out += [f"[WARN] Missing {name}/ in source - skipped" for name in self.missing]
        if self.settings_action:
            out.append(f"[OK] settings.json hooks {self.settings_action}")
        out += [f"[WARN] {w}" for w in self.warnings]
        return out


def merge_hooks(settings: dict[str, Any], fragment: dict[str, Any]) -> dict[str, Any]:
    """
    Return settings with its hooks section replaced by the fragment's.

    Every other key of settings is preserved.

    Raises:
        InstallError: If the fragment has no hooks object
    """
    hooks = fragment.get("hooks") if isinstance(fragment, dict) else None
    if not isinstance(hooks, dict):
        raise InstallError("hooks.json has no 'hooks' object")
    merged = dict(settings)
    merged["hooks"] = hooks
    return merged


class Installer:
    """Copy the bundle into dest_dir (default ~/.claude)."""

    def __init__(
        self,
        source_dir: Path,
        dest_dir: Path | None = None,
        backup_dir: Path | None = None,
    ):
        self.source_dir = Path(source_dir)
        self.dest_dir = Path(dest_dir) if dest_dir else Path.home() / ".claude"
        if backup_dir is None:
            stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
            backup_dir = self.dest_dir.parent / f"{self.dest_dir.name}-backup-{stamp}"
        self.backup_dir = Path(backup_dir)

    def backup(self) -> Path | None:
        """Back up existing bundle dirs and settings.json; None if nothing existed."""
        existing = [self.dest_dir / name for name in BUNDLE_DIRS if (self.dest_dir / name).is_dir()]
        settings = self.dest_dir / SETTINGS_FILE
        if not existing and not settings.is_file():
            return None

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        for path in existing:
            shutil.copytree(path, self.backup_dir / path.name, dirs_exist_ok=True)
        if settings.is_file():
            shutil.copy2(settings, self.backup_dir / SETTINGS_FILE)
        logger.info(f"Backed up existing config to {self.backup_dir}")
        return self.backup_dir

    def copy_dirs(self, report: InstallReport) -> None:
        self.dest_dir.mkdir(parents=True, exist_ok=True)
        for name in BUNDLE_DIRS:
            src = self.source_dir / name
            if not src.is_dir():
                report.missing.append(name)
                continue
            shutil.copytree(
                src,
                self.dest_dir / name,
                dirs_exist_ok=True,
                ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
            )
            report.copied.append(name)

    def install_hooks(self, report: InstallReport) -> None:
        """Create settings.json from hooks.json or merge hooks into it."""
        fragment_path = self.source_dir / HOOKS_FILE
        if not fragment_path.is_file():
            report.warnings.append(f"Missing {HOOKS_FILE} - skipped")
            return

        try:
            fragment = json.loads(fragment_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InstallError(f"Invalid {fragment_path}: {e}") from e

        settings_path = self.dest_dir / SETTINGS_FILE
        if not settings_path.is_file():
            shutil.copy2(fragment_path, settings_path)
            report.settings_action = "created"
            return

        try:
            settings = json.loads(settings_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InstallError(f"Existing {settings_path} is not valid JSON: {e}") from e
        if not isinstance(settings, dict):
            raise InstallError(f"Existing {settings_path} is not a JSON object")

        had_hooks = "hooks" in settings
        if had_hooks:
            report.warnings.append("settings.json already has hooks - replacing hooks section")
        merged = merge_hooks(settings, fragment)
        settings_path.write_text(json.dumps(merged, indent=2) + "\n", encoding="utf-8")
        report.settings_action = "replaced" if had_hooks else "merged"

    def check_plugin_root(self, report: InstallReport, env: Mapping[str, str] | None = None) -> None:
        """Hook commands resolve scripts through ${CLAUDE_PLUGIN_ROOT}; warn when it is unset."""
        if env is None:
            env = os.environ
        if env.get(PLUGIN_ROOT_ENV):
            return
        report.warnings.append(
            f"{PLUGIN_ROOT_ENV} is not set - hook commands will not resolve. "
            f"Add to your shell profile: export {PLUGIN_ROOT_ENV}=\"{self.dest_dir}\""
        )

    def install(self, env: Mapping[str, str] | None = None) -> InstallReport:
        """
        Run the full install.

        Raises:
            InstallError: If the source bundle is missing or JSON is invalid
        """
        if not self.source_dir.is_dir():
            raise InstallError(f"Source directory not found: {self.source_dir}")

        report = InstallReport(dest_dir=self.dest_dir)
        report.backup_dir = self.backup()
        self.copy_dirs(report)
        self.install_hooks(report)
        self.check_plugin_root(report, env)
        return report


__all__ = [
    "BUNDLE_DIRS",
    "InstallError",
    "InstallReport",
    "PLUGIN_ROOT_ENV",
    "Installer",
    "merge_hooks",
]
