"""
Command line entry point.

    echo '{"session_id": "abc"}' | session-hooks run pre-tool-use
    session-hooks detect-pm [DIR]
    session-hooks install [--source DIR] [--dest DIR]

Hook runs always exit 0 so the host's workflow is never blocked.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .config import HooksConfig
from .dispatcher import HOOKS, HookRunner
from .installer import InstallError, Installer
from .package_manager import detect_package_manager

logger = logging.getLogger(__name__)

DEBUG_ENV = "SESSION_HOOKS_DEBUG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(config: HooksConfig, debug: bool | None = None) -> None:
    """
    Send diagnostics to the log file, keeping stderr for advisories.

    With SESSION_HOOKS_DEBUG set, DEBUG records are mirrored to stderr.
    """
    if debug is None:
        debug = os.environ.get(DEBUG_ENV, "").lower() in ("1", "true", "yes")

    root = logging.getLogger("session_hooks")
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    try:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler: logging.Handler = logging.FileHandler(config.log_file, encoding="utf-8")
    except OSError:
        file_handler = logging.NullHandler()
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)

    if debug:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(logging.Formatter("DEBUG %(name)s: %(message)s"))
        root.addHandler(stream_handler)


def _cmd_run(args: argparse.Namespace, config: HooksConfig) -> int:
    runner = HookRunner(config)
    return runner.run(args.hook, sys.stdin)


def _cmd_detect_pm(args: argparse.Namespace, config: HooksConfig) -> int:
    info = detect_package_manager(args.project_dir)
    print(json.dumps({
        "name": info.name,
        "source": info.source,
        "marker": info.marker,
        "build": info.run_command("build"),
        "test": info.run_command("test"),
    }))
    return 0


def _cmd_install(args: argparse.Namespace, config: HooksConfig) -> int:
    installer = Installer(source_dir=args.source, dest_dir=args.dest)
    try:
        report = installer.install()
    except InstallError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    for line in report.lines():
        print(line)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="session-hooks",
        description="Session lifecycle hooks for the Claude CLI",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="Config file (default: ~/.claude/session-hooks.json)")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a hook with the event payload on stdin")
    run.add_argument("hook", choices=sorted(HOOKS))
    run.set_defaults(func=_cmd_run)

    detect = sub.add_parser("detect-pm", help="Detect the project's package manager")
    detect.add_argument("project_dir", nargs="?", default=".")
    detect.set_defaults(func=_cmd_detect_pm)

    install = sub.add_parser("install", help="Install the bundle into a config root")
    install.add_argument("--source", type=Path, default=Path.cwd(), help="Bundle directory (default: cwd)")
    install.add_argument("--dest", type=Path, default=None, help="Config root (default: ~/.claude)")
    install.set_defaults(func=_cmd_install)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = HooksConfig.load(args.config)
    except Exception as e:
        config = HooksConfig()
        configure_logging(config)
        logger.warning(f"Config load failed, using defaults: {e}")
    else:
        configure_logging(config)
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
