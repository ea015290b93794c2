"""
Tests for the CLI — every command through click's CliRunner.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from aiops.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def installed(runner: CliRunner, project: Path, home: Path) -> Path:
    """A project after a non-interactive ``aiops init``."""
    result = runner.invoke(cli, ["--dir", str(project), "init", "--yes"])
    assert result.exit_code == 0, result.output
    return project


def _run(runner: CliRunner, project: Path, *args: str, **kwargs):
    return runner.invoke(cli, ["--dir", str(project), *args], **kwargs)


class TestCLIBasics:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "aiops" in result.output
        for command in (
            "scan", "init", "status", "update", "apply", "sync", "doctor", "evolve", "uninstall",
        ):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestScanCommand:
    def test_scan_text(self, runner, project: Path, home: Path, make_file):
        make_file(project, "go.mod", "module github.com/acme/app\n\ngo 1.22\n")

        result = _run(runner, project, "scan")

        assert result.exit_code == 0, result.output
        assert "Languages:   go" in result.output
        assert "Go module:   github.com/acme/app" in result.output
        assert "read-only scan" in result.output
        assert not (project / ".aiops.yaml").exists()

    def test_scan_json(self, runner, project: Path, home: Path, make_file):
        make_file(project, "package.json", '{"dependencies": {"next": "14"}}')

        result = _run(runner, project, "scan", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["detected"]["languages"][0]["name"] == "typescript"
        assert data["maturity"] == "bootstrap"
        assert data["targets"] == ["windsurf", "cursor", "copilot"]

    def test_scan_missing_dir(self, runner, tmp_path: Path, home: Path):
        result = _run(runner, tmp_path / "gone", "scan")
        assert result.exit_code == 1
        assert "❌" in result.output


class TestInitCommand:
    def test_init_yes(self, runner, project: Path, home: Path):
        result = _run(runner, project, "init", "--yes", "--name", "shop")

        assert result.exit_code == 0, result.output
        assert "✓ Created .aiops.yaml" in result.output
        assert "aiops initialized!" in result.output
        assert "Bootstrap mode detected" in result.output
        assert (project / ".aiops.yaml").is_file()
        assert (project / ".windsurf/rules/aiops.md").read_text().startswith("# shop")
        assert (home / ".codeium/windsurf/memories/global_rules.md").is_file()

    def test_init_interactive(self, runner, project: Path, home: Path):
        result = _run(runner, project, "init", input="y\nmyproj\n")

        assert result.exit_code == 0, result.output
        assert "Is this correct?" in result.output
        assert "name: myproj" in (project / ".aiops.yaml").read_text()

    def test_reinit_declined(self, runner, installed: Path):
        before = (installed / ".aiops.yaml").read_text()

        result = _run(runner, installed, "init", input="n\n")

        assert result.exit_code == 0
        assert "already exists" in result.output
        assert "Aborted." in result.output
        assert (installed / ".aiops.yaml").read_text() == before

    def test_quiet_skips_next_steps(self, runner, project: Path, home: Path):
        result = runner.invoke(cli, ["--dir", str(project), "-q", "init", "--yes"])
        assert result.exit_code == 0, result.output
        assert "Bootstrap mode detected" not in result.output


class TestGenerateCommand:
    def test_generate_without_config(self, runner, project: Path, home: Path):
        result = _run(runner, project, "generate")

        assert result.exit_code == 0, result.output
        assert "from fresh scan" in result.output
        assert (project / ".aiops/soul.md").is_file()

    def test_generate_with_config(self, runner, installed: Path):
        result = _run(runner, installed, "generate")
        assert result.exit_code == 0, result.output
        assert "from .aiops.yaml" in result.output


class TestStatusCommand:
    def test_not_installed(self, runner, project: Path, home: Path):
        result = _run(runner, project, "status")

        assert result.exit_code == 0, result.output
        assert "aiops is not installed" in result.output
        assert "Run `aiops update` to apply." in result.output

    def test_installed_json(self, runner, installed: Path):
        result = _run(runner, installed, "status", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["installed"] is True
        assert data["project"]["name"] == "demo"
        assert data["orchestrator_active"] is True
        assert data["plan"]["modified"] == 0
        assert data["plan"]["new"] == 0

    def test_installed_text(self, runner, installed: Path):
        result = _run(runner, installed, "status")

        assert result.exit_code == 0, result.output
        assert "📋 demo" in result.output
        assert "Orchestrator: active" in result.output


class TestUpdateCommand:
    def test_up_to_date(self, runner, installed: Path):
        result = _run(runner, installed, "update")

        assert result.exit_code == 0, result.output
        assert "All artifacts are up to date. No changes needed." in result.output

    def test_update_yes_restores_file(self, runner, installed: Path):
        soul = installed / ".aiops/soul.md"
        original = soul.read_text()
        soul.write_text("edited")

        result = _run(runner, installed, "update", "--yes")

        assert result.exit_code == 0, result.output
        assert "~ .aiops/soul.md (modified)" in result.output
        assert "Updated 1 files." in result.output
        assert soul.read_text() == original

    def test_update_declined(self, runner, installed: Path):
        soul = installed / ".aiops/soul.md"
        soul.write_text("edited")

        result = _run(runner, installed, "update", input="n\n")

        assert "Aborted." in result.output
        assert soul.read_text() == "edited"

    def test_apply_alias(self, runner, installed: Path):
        (installed / "decisions/0001-aiops-initialized.md").unlink()

        result = _run(runner, installed, "apply", "--yes")

        assert result.exit_code == 0, result.output
        assert "+ decisions/0001-aiops-initialized.md (new)" in result.output
        assert (installed / "decisions/0001-aiops-initialized.md").is_file()

    def test_update_all_lists_unchanged(self, runner, installed: Path):
        result = _run(runner, installed, "update", "--all", "--yes")

        assert result.exit_code == 0, result.output
        assert "= .aiops/soul.md (unchanged)" in result.output


class TestSyncCommand:
    def test_requires_init(self, runner, project: Path, home: Path):
        result = _run(runner, project, "sync")
        assert result.exit_code == 1
        assert "aiops init" in result.output

    def test_new_target(self, runner, installed: Path):
        (installed / ".continue").mkdir()

        result = _run(runner, installed, "sync")

        assert result.exit_code == 0, result.output
        assert "+ Target added: continue" in result.output
        assert "Synced." in result.output
        assert (installed / ".continue/rules/aiops.md").is_file()

    def test_restores_deleted_artifact(self, runner, installed: Path):
        (installed / ".aiops/soul.md").unlink()

        result = _run(runner, installed, "sync")

        assert result.exit_code == 0, result.output
        assert (installed / ".aiops/soul.md").is_file()


class TestDoctorCommand:
    def test_healthy(self, runner, installed: Path):
        result = _run(runner, installed, "doctor")

        assert result.exit_code == 0, result.output
        assert "0 failed" in result.output
        assert "soul.local.md" in result.output

    def test_failure_exits_nonzero(self, runner, installed: Path):
        (installed / ".cursor/rules/aiops.mdc").unlink()

        result = _run(runner, installed, "doctor")

        assert result.exit_code == 1
        assert "repo rules (Cursor) — missing" in result.output

    def test_json(self, runner, installed: Path):
        result = _run(runner, installed, "doctor", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["healthy"] is True
        assert data["failed"] == 0

    def test_requires_init(self, runner, project: Path, home: Path):
        result = _run(runner, project, "doctor")
        assert result.exit_code == 1


class TestEvolveCommand:
    def test_no_log(self, runner, installed: Path):
        (installed / ".windsurf/orchestrator/session_state.yaml").unlink()

        result = _run(runner, installed, "evolve")

        assert result.exit_code == 0, result.output
        assert "No directive log found" in result.output

    def test_requires_init(self, runner, project: Path, home: Path):
        result = _run(runner, project, "evolve")
        assert result.exit_code == 1

    def test_report(self, runner, installed: Path):
        state = installed / ".windsurf/orchestrator/session_state.yaml"
        state.write_text(
            "directive_log:\n"
            "  - {session: a, directive: go fast, rule_overridden: escalation}\n"
            "  - {session: b, directive: go faster, rule_overridden: escalation}\n"
        )

        result = _run(runner, installed, "evolve")

        assert result.exit_code == 0, result.output
        assert "# Evolution Analysis Report" in result.output
        assert "Report saved to:" in result.output
        assert (state.parent / "evolution_report.md").is_file()


class TestUninstallCommand:
    def test_uninstall_yes(self, runner, installed: Path):
        result = _run(runner, installed, "uninstall", "--yes")

        assert result.exit_code == 0, result.output
        assert "The following will be deleted:" in result.output
        assert "- multiagency/" in result.output
        assert "Global tools and binaries will NOT be removed." in result.output
        assert "✓ Removed .aiops.yaml" in result.output
        assert "aiops uninstalled." in result.output
        assert not (installed / ".aiops.yaml").exists()
        assert not (installed / ".aiops").exists()
        assert not (installed / "multiagency").exists()
        assert not (installed / ".windsurf/rules/aiops.md").exists()

    def test_uninstall_declined(self, runner, installed: Path):
        result = _run(runner, installed, "uninstall", input="n\n")

        assert result.exit_code == 0
        assert "Proceed?" in result.output
        assert "Aborted." in result.output
        assert (installed / ".aiops.yaml").is_file()

    def test_uninstall_requires_init(self, runner, project: Path, home: Path):
        result = _run(runner, project, "uninstall", "--yes")
        assert result.exit_code == 1
        assert "❌" in result.output
