"""Tests for the bundle installer."""

import json

import pytest

from session_hooks.installer import InstallError, Installer, merge_hooks

HOOKS_FRAGMENT = {"hooks": {"PreToolUse": [{"matcher": "*", "hooks": []}]}}


@pytest.fixture
def bundle(tmp_path):
    """A source bundle with rules, scripts and hooks.json."""
    src = tmp_path / "bundle"
    (src / "rules").mkdir(parents=True)
    (src / "rules" / "security.md").write_text("# Security\n")
    (src / "scripts").mkdir()
    (src / "scripts" / "run_hook.py").write_text("print('hi')\n")
    (src / "hooks").mkdir()
    (src / "hooks" / "hooks.json").write_text(json.dumps(HOOKS_FRAGMENT))
    return src


@pytest.fixture
def installer(bundle, tmp_path):
    return Installer(bundle, dest_dir=tmp_path / "dot-claude", backup_dir=tmp_path / "backup")


class TestMergeHooks:
    """Tests for merge_hooks."""

    def test_preserves_other_keys(self):
        settings = {"model": "opus", "permissions": {"allow": ["Bash"]}, "hooks": {"Old": []}}
        merged = merge_hooks(settings, HOOKS_FRAGMENT)

        assert merged["model"] == "opus"
        assert merged["permissions"] == {"allow": ["Bash"]}
        assert merged["hooks"] == HOOKS_FRAGMENT["hooks"]
        assert settings["hooks"] == {"Old": []}

    @pytest.mark.parametrize("fragment", [{}, {"hooks": []}, []])
    def test_rejects_fragment_without_hooks(self, fragment):
        with pytest.raises(InstallError):
            merge_hooks({}, fragment)


class TestInstaller:
    """Tests for Installer.install."""

    def test_fresh_install(self, installer):
        report = installer.install()
        dest = installer.dest_dir

        assert (dest / "rules" / "security.md").exists()
        assert (dest / "scripts" / "run_hook.py").exists()
        assert json.loads((dest / "settings.json").read_text()) == HOOKS_FRAGMENT
        assert report.settings_action == "created"
        assert report.backup_dir is None
        assert report.copied == ["rules", "scripts"]
        assert "agents" in report.missing

    def test_merges_into_existing_settings(self, installer):
        dest = installer.dest_dir
        dest.mkdir()
        (dest / "settings.json").write_text(json.dumps({"theme": "dark"}))

        report = installer.install()
        settings = json.loads((dest / "settings.json").read_text())

        assert settings["theme"] == "dark"
        assert settings["hooks"] == HOOKS_FRAGMENT["hooks"]
        assert report.settings_action == "merged"

    def test_replaces_existing_hooks_with_warning(self, installer):
        dest = installer.dest_dir
        dest.mkdir()
        (dest / "settings.json").write_text(json.dumps({"hooks": {"Stop": []}, "env": {"A": "1"}}))

        report = installer.install()
        settings = json.loads((dest / "settings.json").read_text())

        assert settings == {"hooks": HOOKS_FRAGMENT["hooks"], "env": {"A": "1"}}
        assert report.settings_action == "replaced"
        assert any("already has hooks" in w for w in report.warnings)

    def test_backs_up_existing_config(self, installer):
        dest = installer.dest_dir
        (dest / "rules").mkdir(parents=True)
        (dest / "rules" / "mine.md").write_text("keep me\n")
        (dest / "settings.json").write_text('{"theme": "light"}')

        report = installer.install()

        assert report.backup_dir == installer.backup_dir
        assert (installer.backup_dir / "rules" / "mine.md").read_text() == "keep me\n"
        assert json.loads((installer.backup_dir / "settings.json").read_text()) == {"theme": "light"}
        # Existing files alongside the new ones survive the copy
        assert (dest / "rules" / "mine.md").exists()

    def test_missing_hooks_json_warns(self, installer, bundle):
        (bundle / "hooks" / "hooks.json").unlink()
        report = installer.install()

        assert report.settings_action is None
        assert not (installer.dest_dir / "settings.json").exists()
        assert any("hooks.json" in w for w in report.warnings)

    def test_invalid_existing_settings(self, installer):
        dest = installer.dest_dir
        dest.mkdir()
        (dest / "settings.json").write_text("{broken")

        with pytest.raises(InstallError):
            installer.install()

    def test_missing_source(self, tmp_path):
        with pytest.raises(InstallError):
            Installer(tmp_path / "nope", dest_dir=tmp_path / "d").install()

    def test_report_lines(self, installer):
        lines = installer.install().lines()
        assert lines[0].startswith("Installed to:")
        assert "[OK] Copied rules/" in lines

    def test_warns_when_plugin_root_unset(self, installer):
        report = installer.install(env={})

        hint = f'export CLAUDE_PLUGIN_ROOT="{installer.dest_dir}"'
        assert any(hint in w for w in report.warnings)
        assert any(hint in line for line in report.lines())

    def test_quiet_when_plugin_root_set(self, installer):
        report = installer.install(env={"CLAUDE_PLUGIN_ROOT": str(installer.dest_dir)})
        assert not any("CLAUDE_PLUGIN_ROOT" in w for w in report.warnings)
