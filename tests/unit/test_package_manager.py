"""Tests for package manager detection."""

import json

import pytest

from session_hooks.package_manager import ENV_OVERRIDE, detect_package_manager


class TestDetectPackageManager:
    """Tests for detect_package_manager."""

    @pytest.mark.parametrize(
        "lockfile,expected",
        [
            ("pnpm-lock.yaml", "pnpm"),
            ("yarn.lock", "yarn"),
            ("bun.lockb", "bun"),
            ("package-lock.json", "npm"),
            ("uv.lock", "uv"),
            ("poetry.lock", "poetry"),
        ],
    )
    def test_lockfiles(self, tmp_path, lockfile, expected):
        (tmp_path / lockfile).write_text("")
        info = detect_package_manager(tmp_path, env={})

        assert info.name == expected
        assert info.source == "lockfile"
        assert info.marker == lockfile

    def test_lockfile_priority(self, tmp_path):
        (tmp_path / "package-lock.json").write_text("{}")
        (tmp_path / "pnpm-lock.yaml").write_text("")
        assert detect_package_manager(tmp_path, env={}).name == "pnpm"

    def test_package_json_field_beats_lockfile(self, tmp_path):
        (tmp_path / "yarn.lock").write_text("")
        (tmp_path / "package.json").write_text(json.dumps({"packageManager": "pnpm@8.15.0"}))

        info = detect_package_manager(tmp_path, env={})
        assert info.name == "pnpm"
        assert info.source == "package.json"

    def test_invalid_package_json_ignored(self, tmp_path):
        (tmp_path / "package.json").write_text("{oops")
        (tmp_path / "yarn.lock").write_text("")
        assert detect_package_manager(tmp_path, env={}).name == "yarn"

    def test_env_override(self, tmp_path):
        (tmp_path / "yarn.lock").write_text("")
        info = detect_package_manager(tmp_path, env={ENV_OVERRIDE: "bun"})

        assert info.name == "bun"
        assert info.source == "env"

    def test_default_npm(self, tmp_path):
        info = detect_package_manager(tmp_path, env={})
        assert info.name == "npm"
        assert info.source == "default"

    @pytest.mark.parametrize(
        "name,expected",
        [("npm", "npm run build"), ("pnpm", "pnpm build"), ("yarn", "yarn build"), ("bun", "bun run build")],
    )
    def test_run_command(self, tmp_path, name, expected):
        info = detect_package_manager(tmp_path, env={ENV_OVERRIDE: name})
        assert info.run_command("build") == expected
