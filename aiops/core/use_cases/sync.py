"""
Sync use case — refresh the recorded environment and re-render.

Re-detects MCP servers, targets and maturity, reports what changed
against .aiops.yaml, saves the refreshed config and renders every
artifact again (restoring anything deleted by hand).  Languages,
frameworks and the Go module stay as recorded by init.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from aiops.core.config.loader import ConfigError, load_config, save_config
from aiops.core.models.project import AiopsConfig
from aiops.core.services.catalog import TemplateCatalog
from aiops.core.services.detection import (
    DetectionError,
    detect_maturity,
    detect_mcp_servers,
    detect_skills,
    detect_specs,
)
from aiops.core.services.renderer import Renderer, RenderError
from aiops.core.services.targets import detect_targets, resolve_targets, target_names

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """What sync found and did."""

    project_root: Path | None = None
    config: AiopsConfig | None = None
    mcp_added: list[str] = field(default_factory=list)
    mcp_removed: list[str] = field(default_factory=list)
    targets_added: list[str] = field(default_factory=list)
    targets_removed: list[str] = field(default_factory=list)
    maturity_change: tuple[str, str] | None = None
    skills: list[str] = field(default_factory=list)
    workflows: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def has_changes(self) -> bool:
        return bool(
            self.mcp_added or self.mcp_removed
            or self.targets_added or self.targets_removed
            or self.maturity_change
        )

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "project_root": str(self.project_root),
            "changed": self.has_changes,
            "mcp_added": self.mcp_added,
            "mcp_removed": self.mcp_removed,
            "targets_added": self.targets_added,
            "targets_removed": self.targets_removed,
            "maturity_change": list(self.maturity_change) if self.maturity_change else None,
            "skills": self.skills,
            "workflows": self.workflows,
            "files": self.files,
        }


def run_sync(
    project_root: Path,
    *,
    home: Path | None = None,
    renderer: Renderer | None = None,
) -> SyncResult:
    """Refresh .aiops.yaml from the live project and re-render.

    Requires an initialized project.
    """
    project_root = Path(project_root).resolve()
    result = SyncResult(project_root=project_root)

    try:
        cfg = load_config(project_root)
        maturity = detect_maturity(project_root, exclude=cfg.paths.generated_dirs)
    except (ConfigError, DetectionError) as e:
        result.error = str(e)
        return result

    # MCP servers
    mcp_servers = detect_mcp_servers(
        project_root, home=home if home is not None else Path.home(),
    )
    old_mcps = {s.name: s for s in cfg.detected.mcp_servers}
    new_mcps = {s.name: s for s in mcp_servers}
    result.mcp_added = [f"{s.name} ({s.source})" for n, s in new_mcps.items() if n not in old_mcps]
    result.mcp_removed = [f"{s.name} ({s.source})" for n, s in old_mcps.items() if n not in new_mcps]

    # Targets
    targets = detect_targets(project_root, home=home)
    new_names = target_names(targets)
    old_names = [t.name for t in resolve_targets(cfg.paths.targets)] if cfg.paths.targets else []
    result.targets_added = [n for n in new_names if n not in old_names]
    result.targets_removed = [n for n in old_names if n not in new_names]

    # Maturity
    if maturity != cfg.project.maturity:
        result.maturity_change = (cfg.project.maturity, maturity)

    cfg = cfg.model_copy(update={
        "detected": cfg.detected.model_copy(update={"mcp_servers": mcp_servers}),
        "project": cfg.project.model_copy(update={"maturity": maturity}),
        "paths": cfg.paths.model_copy(update={"targets": new_names}),
    })
    result.config = cfg

    try:
        save_config(project_root, cfg)
    except ConfigError as e:
        result.error = str(e)
        return result

    renderer = renderer or Renderer(TemplateCatalog.from_package(), home=home)
    try:
        result.files = renderer.render_all(
            project_root, cfg.detected, targets,
            project=cfg.project, paths=cfg.paths, home=home,
        )
    except RenderError as e:
        result.error = f"Rendering failed: {e}"
        return result

    result.skills = detect_skills(project_root, targets)
    result.workflows = detect_specs(project_root, targets)

    logger.info("Synced '%s' (%d files)", cfg.project.name, len(result.files))
    return result
