"""
Configuration management for session hooks.

Threshold cadence, debug marker and eligibility limits are policy, so
they live here instead of inside the hooks.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".claude" / "session-hooks.json"
DEFAULT_STATE_DIR = Path.home() / ".claude"


def _filter_dataclass_fields(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter dict to only include fields that exist in the dataclass."""
    valid_fields = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_fields}


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        logger.warning(f"Ignoring config section {name!r}: not an object")
        return {}
    return value


def _positive_int(value: Any, default: int, name: str) -> int:
    """Coerce a config value to a positive int, falling back to default."""
    parsed: int | None
    if isinstance(value, bool):
        parsed = None
    elif isinstance(value, int):
        parsed = value
    else:
        try:
            parsed = int(str(value).strip())
        except ValueError:
            parsed = None
    if parsed is None or parsed < 1:
        logger.warning(f"Ignoring invalid {name}={value!r}; using {default}")
        return default
    return parsed


def _str_list(value: Any, default: list[str], name: str) -> list[str]:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return value
    logger.warning(f"Ignoring invalid {name}={value!r}")
    return default


def _int_env(env: Mapping[str, str], name: str) -> int | None:
    value = env.get(name)
    if value is None:
        return None
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={value!r}")
        return None
    if parsed < 1:
        logger.warning(f"Ignoring non-positive {name}={value!r}")
        return None
    return parsed


@dataclass
class CompactConfig:
    """
    When to suggest a manual /compact.

    The first suggestion fires at `threshold` tool calls, then every
    `interval` calls after that.
    """

    threshold: int = 50
    interval: int = 50

    def __post_init__(self) -> None:
        self.threshold = _positive_int(self.threshold, 50, "compact.threshold")
        self.interval = _positive_int(self.interval, 50, "compact.interval")


@dataclass
class ScanConfig:
    """Debug marker scanning for edited and modified source files."""

    debug_marker: str = "console.log"
    source_extensions: list[str] = field(
        default_factory=lambda: [".ts", ".tsx", ".js", ".jsx"]
    )
    # Substrings; any match excludes the path from the stop scan
    excluded_patterns: list[str] = field(
        default_factory=lambda: [
            ".test.",
            ".spec.",
            ".config.",
            "/__tests__/",
            "/tests/",
            "/test/",
            "/scripts/",
            "/node_modules/",
        ]
    )

    def __post_init__(self) -> None:
        defaults = ScanConfig.__dataclass_fields__
        if not isinstance(self.debug_marker, str) or not self.debug_marker:
            logger.warning(f"Ignoring invalid scan.debug_marker={self.debug_marker!r}")
            self.debug_marker = defaults["debug_marker"].default
        self.source_extensions = _str_list(
            self.source_extensions,
            defaults["source_extensions"].default_factory(),
            "scan.source_extensions",
        )
        self.excluded_patterns = _str_list(
            self.excluded_patterns,
            defaults["excluded_patterns"].default_factory(),
            "scan.excluded_patterns",
        )

    def is_source_file(self, path: str) -> bool:
        return any(path.endswith(ext) for ext in self.source_extensions)

    def is_excluded(self, path: str) -> bool:
        normalized = "/" + path.replace("\\", "/").lstrip("/")
        return any(pattern in normalized for pattern in self.excluded_patterns)


@dataclass
class LearningConfig:
    """Pattern extraction eligibility."""

    min_session_messages: int = 10

    def __post_init__(self) -> None:
        self.min_session_messages = _positive_int(
            self.min_session_messages, 10, "learning.min_session_messages"
        )


@dataclass
class HooksConfig:
    """
    Complete hooks configuration.

    Loaded from ~/.claude/session-hooks.json; environment variables
    override file values.
    """

    compact: CompactConfig = field(default_factory=CompactConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    learning: LearningConfig = field(default_factory=LearningConfig)
    state_dir: Path = DEFAULT_STATE_DIR
    sessions_dir: Path | None = None

    def __post_init__(self) -> None:
        self.state_dir = Path(self.state_dir).expanduser()
        if self.sessions_dir is None:
            self.sessions_dir = self.state_dir / "sessions"
        else:
            self.sessions_dir = Path(self.sessions_dir).expanduser()

    @property
    def log_file(self) -> Path:
        return self.state_dir / "session-hooks.log"

    @classmethod
    def load(cls, path: Path | None = None) -> "HooksConfig":
        """
        Load config from file with defaults and environment overrides.

        Args:
            path: Optional config file path. Defaults to ~/.claude/session-hooks.json

        Returns:
            HooksConfig with user settings merged over defaults
        """
        if path is None:
            path = CONFIG_PATH

        data: dict[str, Any] = {}
        if path.exists():
            try:
                loaded = json.loads(path.read_text())
                if isinstance(loaded, dict):
                    data = loaded
                else:
                    logger.warning(f"Ignoring config {path}: top level is not an object")
            except (ValueError, RecursionError, OSError) as e:
                logger.warning(f"Ignoring unreadable config {path}: {e}")

        kwargs: dict[str, Any] = {
            "compact": CompactConfig(**_filter_dataclass_fields(_section(data, "compact"), CompactConfig)),
            "scan": ScanConfig(**_filter_dataclass_fields(_section(data, "scan"), ScanConfig)),
            "learning": LearningConfig(**_filter_dataclass_fields(_section(data, "learning"), LearningConfig)),
        }
        for key in ("state_dir", "sessions_dir"):
            value = data.get(key)
            if value is None:
                continue
            if isinstance(value, str) and value:
                kwargs[key] = Path(value)
            else:
                logger.warning(f"Ignoring invalid {key}={value!r}")

        config = cls(**kwargs)
        config.apply_env()
        return config

    def apply_env(self, env: Mapping[str, str] | None = None) -> None:
        """Apply environment variable overrides in place."""
        if env is None:
            env = os.environ

        threshold = _int_env(env, "COMPACT_THRESHOLD")
        interval = _int_env(env, "COMPACT_INTERVAL")
        sessions_dir = env.get("SESSION_HOOKS_DIR")
        marker = env.get("SESSION_HOOKS_DEBUG_MARKER")

        if threshold:
            self.compact.threshold = threshold
        if interval:
            self.compact.interval = interval
        if sessions_dir:
            self.sessions_dir = Path(sessions_dir).expanduser()
        if marker:
            self.scan.debug_marker = marker

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_PATH

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(
                {
                    "compact": asdict(self.compact),
                    "scan": asdict(self.scan),
                    "learning": asdict(self.learning),
                    "state_dir": str(self.state_dir),
                    "sessions_dir": str(self.sessions_dir),
                },
                f,
                indent=2,
            )


__all__ = [
    "CONFIG_PATH",
    "CompactConfig",
    "ScanConfig",
    "LearningConfig",
    "HooksConfig",
]
