#!/usr/bin/env python3
"""
Run a session hook by name.

Called by: hooks/hooks.json (every lifecycle event)

Hooks receive JSON via stdin with session_id plus event fields
(tool_name, tool_input, transcript_path, cwd). Advisories are printed
to stderr; the exit status is always 0.

Usage:
    echo '{"session_id": "abc123"}' | python scripts/run_hook.py pre-tool-use
"""

import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from session_hooks.config import HooksConfig  # noqa: E402
from session_hooks.cli import configure_logging  # noqa: E402
from session_hooks.dispatcher import HookRunner  # noqa: E402


def main() -> int:
    if len(sys.argv) != 2:
        print("usage: run_hook.py <hook-name>", file=sys.stderr)
        return 0

    try:
        config = HooksConfig.load()
    except Exception as e:
        config = HooksConfig()
        configure_logging(config)
        logging.getLogger("session_hooks").warning(f"Config load failed, using defaults: {e}")
    else:
        configure_logging(config)
    return HookRunner(config).run(sys.argv[1], sys.stdin)


if __name__ == "__main__":
    sys.exit(main())
