"""
aiops — CLI entrypoint.

Usage:
    aiops scan
    aiops init
    aiops status --json
    aiops update --yes
    aiops uninstall
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from aiops import __version__
from aiops.core.models.stack import DetectedStack
from aiops.core.observability.logging_config import resolve_level, setup_from_env


def _echo_json(data: dict) -> None:
    click.echo(json.dumps(data, indent=2))


def _fail(message: str) -> None:
    click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


def _print_detected(stack: DetectedStack) -> None:
    click.secho("   Detected:", fg="white", bold=True)

    if stack.languages:
        names = [
            f"{lang.name} ({lang.entry_dir})" if lang.entry_dir else lang.name
            for lang in stack.languages
        ]
        click.echo(f"     Languages:   {', '.join(names)}")

    if stack.frameworks:
        names = [
            f"{fw.name} ({fw.dir})" if fw.dir not in ("", ".") else fw.name
            for fw in stack.frameworks
        ]
        click.echo(f"     Frameworks:  {', '.join(names)}")

    if stack.build.commands:
        click.echo(f"     Build:       {', '.join(stack.build.commands)}")
    if stack.build.generate_commands:
        click.echo(f"     Generate:    {', '.join(stack.build.generate_commands)}")
    if stack.patterns:
        click.echo(f"     Patterns:    {', '.join(stack.patterns)}")
    if stack.go_module:
        click.echo(f"     Go module:   {stack.go_module}")
    if stack.mcp_servers:
        names = [f"{s.name} ({s.source})" if s.source else s.name for s in stack.mcp_servers]
        click.echo(f"     MCP servers: {', '.join(names)}")

    if not (stack.languages or stack.frameworks or stack.patterns):
        click.echo("     (nothing recognized)")


def _print_files(files: list[str]) -> None:
    for path in files:
        click.secho("   ✓ ", fg="green", nl=False)
        click.echo(path)


@click.group()
@click.version_option(version=__version__, prog_name="aiops")
@click.option(
    "--dir",
    "-d",
    "project_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(
    ctx: click.Context,
    project_dir: Path | None,
    verbose: bool,
    quiet: bool,
    debug: bool,
) -> None:
    """aiops — generate AI assistant rules and workflows from your stack."""
    ctx.ensure_object(dict)
    ctx.obj["project_root"] = (project_dir or Path.cwd()).resolve()
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    setup_from_env(resolve_level(verbose=verbose, quiet=quiet, debug=debug))


# ── scan ─────────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def scan(ctx: click.Context, as_json: bool) -> None:
    """Detect the project's stack (read-only)."""
    from aiops.core.use_cases.scan import run_scan

    result = run_scan(ctx.obj["project_root"])

    if as_json:
        _echo_json(result.to_dict())
        sys.exit(1 if result.error else 0)

    if result.error:
        _fail(result.error)

    assert result.stack is not None
    click.secho(f"\n🔍 aiops scan — {result.project_root}", fg="cyan", bold=True)
    click.echo()
    _print_detected(result.stack)
    click.echo()
    click.echo(f"   Maturity:  {result.maturity}")
    click.echo(f"   Targets:   {', '.join(t.display_name for t in result.targets)}")
    click.echo()
    click.echo("   This is a read-only scan. Run `aiops init` to generate files.")
    click.echo()


# ── init / generate ──────────────────────────────────────────────


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--name", default=None, help="Project name (default: directory name).")
@click.pass_context
def init(ctx: click.Context, yes: bool, name: str | None) -> None:
    """Scan the project, write .aiops.yaml and generate all artifacts."""
    from aiops.core.config.loader import config_exists
    from aiops.core.models.project import MATURITY_BOOTSTRAP
    from aiops.core.use_cases.init import run_init
    from aiops.core.use_cases.scan import run_scan

    project_root: Path = ctx.obj["project_root"]
    click.secho(f"\n🚀 aiops init — {project_root}", fg="cyan", bold=True)
    click.echo()

    if config_exists(project_root) and not yes:
        click.secho("   ⚠️  .aiops.yaml already exists in this directory.", fg="yellow")
        if not click.confirm("   Reinitialize? This will overwrite generated files", default=True):
            click.echo("   Aborted.")
            return

    if not yes:
        preview = run_scan(project_root)
        if preview.error:
            _fail(preview.error)
        assert preview.stack is not None
        _print_detected(preview.stack)
        click.echo()
        if not click.confirm("   Is this correct?", default=True):
            click.echo("   You can edit .aiops.yaml after init to correct it.")
        if name is None:
            name = click.prompt("   Project name", default=project_root.name)

    result = run_init(project_root, name=name)
    if result.error:
        _fail(result.error)

    cfg = result.config
    assert cfg is not None
    click.echo(f"   Targets:   {', '.join(t.display_name for t in result.targets)}")
    click.echo(f"   Maturity:  {cfg.project.maturity}")
    click.secho("   ✓ Created .aiops.yaml", fg="green")
    click.echo()
    _print_files(result.files)
    click.echo()
    click.secho(
        f"✅ aiops initialized! {len(result.files)} files generated.", fg="green", bold=True
    )

    if ctx.obj.get("quiet"):
        return

    click.echo()
    if cfg.project.maturity == MATURITY_BOOTSTRAP:
        click.echo("   Bootstrap mode detected. Recommended first actions:")
        click.echo("     1. Open an AI session and run: /multiagency design.yaml")
        click.echo("     2. Produce architecture.md, risks.md, assumptions.md")
        click.echo("     3. Run `aiops sync` after the project matures")
    else:
        click.echo("   Next steps:")
        click.echo("     1. Review the generated files")
        click.echo("     2. Commit them to version control")
        click.echo("     3. Run `aiops status` to check for updates later")
    click.echo()


@cli.command()
@click.pass_context
def generate(ctx: click.Context) -> None:
    """Render all artifacts (from .aiops.yaml, or a fresh scan)."""
    from aiops.core.use_cases.init import run_generate

    result = run_generate(ctx.obj["project_root"])
    if result.error:
        _fail(result.error)

    source = ".aiops.yaml" if result.from_config else "fresh scan"
    click.secho(f"\n⚙️  aiops generate — from {source}", fg="cyan", bold=True)
    click.echo()
    _print_files(result.files)
    click.echo()
    click.secho(f"✅ {len(result.files)} files generated.", fg="green", bold=True)
    click.echo()


# ── status / update ──────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show installation status, stack drift and pending changes."""
    from aiops.core.use_cases.status import get_status

    result = get_status(ctx.obj["project_root"])

    if as_json:
        _echo_json(result.to_dict())
        sys.exit(1 if result.error else 0)

    if result.error:
        _fail(result.error)

    click.echo()
    if result.config is None:
        click.secho("📋 aiops is not installed in this repository.", fg="yellow", bold=True)
        click.echo("   Run: aiops init")
    else:
        cfg = result.config
        click.secho(f"📋 {cfg.project.name}", fg="cyan", bold=True)
        click.echo(f"   Version:    {cfg.version}")
        click.echo(f"   Maturity:   {cfg.project.maturity}")
        mcps = [s.name for s in cfg.detected.mcp_servers]
        click.echo(f"   MCP:        {', '.join(mcps) if mcps else 'none'}")

    click.echo(f"   Targets:    {', '.join(t.name for t in result.targets)}")
    click.echo(f"   Skills:     {len(result.skills)}")
    click.echo(f"   Workflows:  {len(result.workflows)}")
    if result.orchestrator_active:
        click.echo("   Orchestrator: active")

    if result.config is not None:
        click.echo()
        if result.drift:
            click.secho("   ⚠️  Stack drift detected:", fg="yellow")
            for line in result.drift:
                click.echo(f"     • {line}")
            click.echo("   Run `aiops sync` to update.")
        else:
            click.secho("   ✓ No drift detected", fg="green")

    plan = result.plan
    if plan is not None:
        click.echo()
        click.secho(
            f"   Artifacts: {plan.new_files} new, {plan.modified} modified, "
            f"{plan.unchanged} unchanged",
            fg="white", bold=True,
        )
        if ctx.obj.get("verbose"):
            for diff in plan.diffs:
                click.echo(f"     {diff.status:<10} {diff.path}")
        if plan.has_changes:
            click.echo("   Run `aiops update` to apply.")
    click.echo()


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Apply without asking.")
@click.option("--all", "include_unchanged", is_flag=True, help="List unchanged files too.")
@click.pass_context
def update(ctx: click.Context, yes: bool, include_unchanged: bool) -> None:
    """Show the update plan and apply it."""
    from aiops.core.use_cases.update import apply_update, plan_update

    result = plan_update(ctx.obj["project_root"])
    if result.error:
        _fail(result.error)

    plan = result.plan
    assert plan is not None
    click.secho("\n🔄 aiops update", fg="cyan", bold=True)
    click.echo()

    if not plan.has_changes and not include_unchanged:
        click.secho("   ✓ All artifacts are up to date. No changes needed.", fg="green")
        click.echo()
        return

    click.echo(
        f"   Update plan: {plan.new_files} new, {plan.modified} modified, "
        f"{plan.unchanged} unchanged"
    )
    click.echo()
    for diff in plan.diffs:
        if diff.status == "new":
            click.secho(f"   + {diff.path} (new)", fg="green")
        elif diff.status == "modified":
            click.secho(f"   ~ {diff.path} (modified)", fg="yellow")
        elif include_unchanged:
            click.echo(f"   = {diff.path} (unchanged)")
    click.echo()

    if not yes and not click.confirm("   Apply these changes?", default=True):
        click.echo("   Aborted.")
        return

    result = apply_update(result, include_unchanged=include_unchanged)
    if result.error:
        _fail(result.error)

    click.secho(f"✅ Updated {len(result.applied)} files.", fg="green", bold=True)
    click.echo()


cli.add_command(update, name="apply")


# ── uninstall ────────────────────────────────────────────────────


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def uninstall(ctx: click.Context, yes: bool) -> None:
    """Remove aiops artifacts from this repository."""
    from aiops.core.use_cases.uninstall import plan_uninstall, run_uninstall

    result = plan_uninstall(ctx.obj["project_root"])
    if result.error:
        _fail(result.error)

    if not result.removals:
        click.echo("Nothing to remove.")
        return

    click.secho("\n🗑️  aiops uninstall", fg="cyan", bold=True)
    click.echo()
    click.echo("   The following will be deleted:")
    for removal in result.removals:
        click.echo(f"     - {removal.label}")
    click.echo()
    click.echo("   Global tools and binaries will NOT be removed.")
    click.echo()

    if not yes and not click.confirm("   Proceed?", default=False):
        click.echo("   Aborted.")
        return

    result = run_uninstall(result)
    for label in result.removed:
        click.secho("   ✓ ", fg="green", nl=False)
        click.echo(f"Removed {label}")
    for label in result.failed:
        click.secho(f"   ✗ Failed to remove {label}", fg="red", err=True)
    click.echo()

    click.secho(
        f"✅ aiops uninstalled. {len(result.removed)} items removed.", fg="green", bold=True,
    )
    click.echo()
    if result.failed:
        sys.exit(1)


# ── sync / doctor / evolve ───────────────────────────────────────


@cli.command()
@click.pass_context
def sync(ctx: click.Context) -> None:
    """Refresh MCP servers, targets and maturity, then re-render."""
    from aiops.core.use_cases.sync import run_sync

    result = run_sync(ctx.obj["project_root"])
    if result.error:
        _fail(result.error)

    cfg = result.config
    assert cfg is not None
    click.secho(f"\n🔁 aiops sync — {cfg.project.name}", fg="cyan", bold=True)
    click.echo()

    if not result.has_changes:
        click.secho("   ✓ No changes detected.", fg="green")
    for name in result.mcp_added:
        click.secho(f"   + MCP added: {name}", fg="green")
    for name in result.mcp_removed:
        click.secho(f"   - MCP removed: {name}", fg="red")
    for name in result.targets_added:
        click.secho(f"   + Target added: {name}", fg="green")
    for name in result.targets_removed:
        click.secho(f"   - Target removed: {name}", fg="red")
    if result.maturity_change:
        old, new = result.maturity_change
        click.secho(f"   ↑ Maturity changed: {old} → {new}", fg="yellow")

    click.echo(f"   MCP servers: {len(cfg.detected.mcp_servers)}")
    click.echo(f"   Targets:     {', '.join(cfg.paths.targets)}")
    click.echo(f"   Skills:      {len(result.skills)}")
    click.echo(f"   Workflows:   {len(result.workflows)}")
    click.echo()
    click.secho(f"✅ Synced. {len(result.files)} files rendered.", fg="green", bold=True)
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def doctor(ctx: click.Context, as_json: bool) -> None:
    """Check installation integrity."""
    from aiops.core.use_cases.doctor import run_doctor

    result = run_doctor(ctx.obj["project_root"])

    if as_json:
        _echo_json(result.to_dict())
        sys.exit(0 if result.healthy else 1)

    if result.error:
        _fail(result.error)

    click.secho("\n🩺 aiops doctor — checking installation integrity", fg="cyan", bold=True)
    click.echo()
    icons = {"pass": ("✓", "green"), "warn": ("⚠", "yellow"), "fail": ("✗", "red")}
    for check in result.checks:
        icon, color = icons[check.status]
        click.secho(f"   {icon} ", fg=color, nl=False)
        click.echo(f"{check.label} — {check.message}" if check.message else check.label)

    click.echo()
    click.echo(f"   {result.passed} passed, {result.warned} warnings, {result.failed} failed")
    if result.failed:
        click.echo("   Run `aiops sync` to fix missing artifacts.")
        click.echo()
        sys.exit(1)
    if result.warned:
        click.secho("   ⚠️  Some warnings detected. Review above.", fg="yellow")
    else:
        click.secho("✅ Installation is healthy.", fg="green", bold=True)
    click.echo()


@cli.command()
@click.pass_context
def evolve(ctx: click.Context) -> None:
    """Analyze logged @directive overrides and propose rule changes."""
    from aiops.core.use_cases.evolve import run_evolve

    result = run_evolve(ctx.obj["project_root"])
    if result.error:
        _fail(result.error)

    if result.no_log:
        click.echo("No directive log found. This is normal if no @directive overrides")
        click.echo("have been used yet.")
        return

    click.echo(result.report)
    if result.report_path:
        click.secho(f"Report saved to: {result.report_path}", fg="cyan")


if __name__ == "__main__":
    cli()
