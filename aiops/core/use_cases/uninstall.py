"""
Uninstall use case — remove aiops artifacts from a repository.

Planning and removal are separate calls so the CLI can list what will
be deleted and ask first.  Only files aiops generates are touched:
user-written decision records and workflows stay, and nothing under
the home directory is removed.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from aiops.core.config.loader import CONFIG_FILE, ConfigError, load_config
from aiops.core.models.target import Target
from aiops.core.services.catalog import SCOPE_SHARED, SCOPE_WORKFLOWS, TemplateCatalog
from aiops.core.services.targets import detect_targets, resolve_targets
from aiops.core.use_cases.doctor import DECISIONS_DIR

logger = logging.getLogger(__name__)

AIOPS_DIR = ".aiops"


@dataclass
class Removal:
    path: Path
    label: str
    is_dir: bool = False

    def to_dict(self) -> dict:
        return {"path": str(self.path), "label": self.label, "is_dir": self.is_dir}


@dataclass
class UninstallResult:
    """What uninstall would remove, and what it did remove."""

    project_root: Path | None = None
    removals: list[Removal] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "project_root": str(self.project_root),
            "removals": [r.to_dict() for r in self.removals],
            "removed": self.removed,
            "failed": self.failed,
        }


def plan_uninstall(
    project_root: Path,
    *,
    home: Path | None = None,
    catalog: TemplateCatalog | None = None,
) -> UninstallResult:
    """List the artifacts to remove.  Deletes nothing.

    Requires an initialized project.
    """
    project_root = Path(project_root).resolve()
    result = UninstallResult(project_root=project_root)

    try:
        cfg = load_config(project_root)
    except ConfigError as e:
        result.error = str(e)
        return result

    catalog = catalog or TemplateCatalog.from_package()
    removals = result.removals

    config_path = project_root / CONFIG_FILE
    if config_path.is_file():
        removals.append(Removal(config_path, CONFIG_FILE))

    # soul.md, soul.local.md and the kill switch
    aiops_dir = project_root / AIOPS_DIR
    if aiops_dir.exists():
        removals.append(Removal(aiops_dir, f"{AIOPS_DIR}/", is_dir=True))

    # Only when nothing but the seed record is in there
    decisions = project_root / DECISIONS_DIR
    if decisions.is_dir():
        entries = {entry.name for entry in decisions.iterdir()}
        if entries and entries <= _seed_decisions(catalog):
            removals.append(Removal(decisions, f"{DECISIONS_DIR}/ (seed only)", is_dir=True))

    multiagency = cfg.paths.multiagency or "multiagency"
    multiagency_path = project_root / multiagency
    # Never the project root itself or anything outside it
    if multiagency_path.exists() and project_root in multiagency_path.resolve().parents:
        removals.append(Removal(multiagency_path, f"{multiagency}/", is_dir=True))

    workflow_names = [n.output_relpath for n in catalog.scope(SCOPE_WORKFLOWS)]
    for target in _targets(project_root, cfg.paths.targets, home):
        rules = target.resolve_repo_rules_path(project_root)
        if rules is not None and rules.is_file():
            removals.append(Removal(rules, target.repo_rules_path))

        workflows_dir = target.resolve_workflows_dir(project_root)
        if workflows_dir is not None:
            for name in workflow_names:
                if (workflows_dir / name).is_file():
                    removals.append(Removal(workflows_dir / name, f"{target.workflows_dir}/{name}"))

        orchestrator = target.resolve_orchestrator_dir(project_root)
        if orchestrator is not None and orchestrator.exists():
            removals.append(Removal(orchestrator, f"{target.orchestrator_dir}/", is_dir=True))

    return result


def run_uninstall(result: UninstallResult) -> UninstallResult:
    """Remove everything ``plan_uninstall`` listed.  Fills ``removed``/``failed``."""
    if result.error:
        return result

    for removal in result.removals:
        try:
            if removal.is_dir:
                shutil.rmtree(removal.path)
            else:
                removal.path.unlink()
        except OSError as e:
            logger.warning("Failed to remove %s: %s", removal.path, e)
            result.failed.append(removal.label)
        else:
            result.removed.append(removal.label)

    logger.info("Uninstalled aiops from %s (%d removed)", result.project_root, len(result.removed))
    return result


def _seed_decisions(catalog: TemplateCatalog) -> set[str]:
    """File names aiops writes into the decisions directory."""
    names = set()
    for node in catalog.scope(SCOPE_SHARED):
        rel = PurePosixPath(node.output_relpath)
        if rel.parent.as_posix() == DECISIONS_DIR:
            names.add(rel.name)
    return names


def _targets(project_root: Path, names: list[str], home: Path | None) -> list[Target]:
    """Persisted targets, then any other integration present on disk."""
    targets = resolve_targets(names) if names else []
    for target in detect_targets(project_root, home=home):
        if target not in targets:
            targets.append(target)
    return targets
