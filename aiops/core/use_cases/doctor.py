"""
Doctor use case — installation integrity checks.

Each check yields one ``Check`` with a pass/warn/fail status.  Any
failure makes the overall result unhealthy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from aiops import __version__
from aiops.core.config.loader import CONFIG_FILE, ConfigError, load_config
from aiops.core.services.catalog import SCOPE_WORKFLOWS, TemplateCatalog
from aiops.core.services.evolve import state_path
from aiops.core.services.targets import resolve_targets

CheckStatus = Literal["pass", "warn", "fail"]

SOUL_NODE = "shared/aiops/soul.md"
SOUL_PATH = ".aiops/soul.md"
SOUL_LOCAL_PATH = ".aiops/soul.local.md"
KILL_SWITCH_PATH = ".aiops/disabled"
DECISIONS_DIR = "decisions"


@dataclass
class Check:
    label: str
    status: CheckStatus
    message: str = ""

    def to_dict(self) -> dict:
        return {"label": self.label, "status": self.status, "message": self.message}


@dataclass
class DoctorResult:
    """All checks for one project."""

    project_root: Path | None = None
    checks: list[Check] = field(default_factory=list)
    error: str | None = None

    def _count(self, status: CheckStatus) -> int:
        return sum(1 for c in self.checks if c.status == status)

    @property
    def passed(self) -> int:
        return self._count("pass")

    @property
    def warned(self) -> int:
        return self._count("warn")

    @property
    def failed(self) -> int:
        return self._count("fail")

    @property
    def healthy(self) -> bool:
        return self.error is None and self.failed == 0

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "healthy": self.healthy,
            "passed": self.passed,
            "warned": self.warned,
            "failed": self.failed,
            "checks": [c.to_dict() for c in self.checks],
        }


def run_doctor(
    project_root: Path,
    *,
    catalog: TemplateCatalog | None = None,
) -> DoctorResult:
    """Check that every expected artifact is present and current."""
    project_root = Path(project_root).resolve()
    result = DoctorResult(project_root=project_root)

    try:
        cfg = load_config(project_root)
    except ConfigError as e:
        result.error = str(e)
        return result

    catalog = catalog or TemplateCatalog.from_package()
    checks = result.checks
    checks.append(Check(CONFIG_FILE, "pass"))

    # Soul
    soul = project_root / SOUL_PATH
    canonical = catalog.get(SOUL_NODE)
    if not soul.is_file():
        checks.append(Check("soul.md", "fail", "missing, run `aiops sync` to create"))
    elif canonical is not None and soul.read_bytes() != canonical.payload:
        checks.append(Check("soul.md", "warn", "modified from canonical, run `aiops sync` to restore"))
    else:
        checks.append(Check("soul.md", "pass"))

    if (project_root / SOUL_LOCAL_PATH).is_file():
        checks.append(Check("soul.local.md", "pass"))
    else:
        checks.append(Check("soul.local.md", "warn", "not created (optional)"))

    if (project_root / KILL_SWITCH_PATH).exists():
        checks.append(Check("kill switch", "warn", f"ACTIVE, {KILL_SWITCH_PATH} disables orchestration"))
    else:
        checks.append(Check("kill switch", "pass", "inactive"))

    # Per-target artifacts
    workflow_names = [n.output_relpath for n in catalog.scope(SCOPE_WORKFLOWS)]
    for target in resolve_targets(cfg.paths.targets):
        rules = target.resolve_repo_rules_path(project_root)
        if rules is not None:
            label = f"repo rules ({target.display_name})"
            checks.append(Check(label, "pass") if rules.is_file() else Check(label, "fail", "missing"))

        workflows_dir = target.resolve_workflows_dir(project_root)
        if workflows_dir is not None:
            for name in workflow_names:
                label = f"{target.name} workflow/{name}"
                present = (workflows_dir / name).is_file()
                checks.append(Check(label, "pass") if present else Check(label, "fail", "missing"))

        if target.orchestrator_dir:
            label = f"{target.name} session_state.yaml"
            present = state_path(project_root, target.orchestrator_dir).is_file()
            checks.append(Check(label, "pass") if present else Check(label, "fail", "missing"))

    # Shared artifacts
    if (project_root / DECISIONS_DIR).is_dir():
        checks.append(Check("decisions/", "pass"))
    else:
        checks.append(Check("decisions/", "warn", "not found, run `aiops sync` to create"))

    multiagency = cfg.paths.multiagency or "multiagency"
    if (project_root / multiagency / "go.mod").is_file():
        checks.append(Check(f"{multiagency}/go.mod", "pass"))
    else:
        checks.append(Check(f"{multiagency}/go.mod", "warn", "not found"))

    if cfg.version != __version__:
        checks.append(Check(
            "version", "warn",
            f"config says {cfg.version}, aiops is {__version__}, run `aiops update`",
        ))
    else:
        checks.append(Check(f"version ({__version__})", "pass"))

    return result
