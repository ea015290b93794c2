"""
Init and generate use cases — first install and plain re-render.

``run_init`` scans the project, records the result in .aiops.yaml and
renders every artifact.  ``run_generate`` renders from whatever the
project already has (persisted config, or a fresh scan).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from aiops import __version__
from aiops.core.config.loader import ConfigError, config_exists, save_config
from aiops.core.models.project import AiopsConfig, PathsConfig, ProjectInfo
from aiops.core.models.target import Target
from aiops.core.services.catalog import TemplateCatalog
from aiops.core.services.detection import DetectionError, detect_maturity, scan
from aiops.core.services.renderer import Renderer, RenderError
from aiops.core.services.targets import detect_targets, target_names
from aiops.core.use_cases.inputs import load_inputs

logger = logging.getLogger(__name__)


@dataclass
class InitResult:
    """Result of ``aiops init``."""

    project_root: Path | None = None
    config: AiopsConfig | None = None
    targets: list[Target] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    reinitialized: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "project_root": str(self.project_root),
            "project": self.config.project.model_dump() if self.config else {},
            "targets": target_names(self.targets),
            "files": self.files,
            "reinitialized": self.reinitialized,
        }


@dataclass
class GenerateResult:
    """Result of ``aiops generate``."""

    project_root: Path | None = None
    targets: list[Target] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    from_config: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "project_root": str(self.project_root),
            "targets": target_names(self.targets),
            "files": self.files,
            "from_config": self.from_config,
        }


def run_init(
    project_root: Path,
    *,
    name: str | None = None,
    home: Path | None = None,
    renderer: Renderer | None = None,
) -> InitResult:
    """Scan, write .aiops.yaml and render all artifacts.

    An existing config is overwritten; the CLI asks before calling this.

    Args:
        project_root: Project directory.
        name: Project name (default: directory name).
        home: Home directory for detection and global outputs.
        renderer: Renderer to use (default: packaged corpus).
    """
    project_root = Path(project_root).resolve()
    result = InitResult(project_root=project_root)
    result.reinitialized = config_exists(project_root)

    # A reinit must not mistake a previous install's output for project code
    generated = PathsConfig().generated_dirs
    try:
        stack = scan(project_root, home=home, exclude=generated)
        maturity = detect_maturity(project_root, exclude=generated)
    except DetectionError as e:
        result.error = str(e)
        return result

    targets = detect_targets(project_root, home=home)
    result.targets = targets

    cfg = AiopsConfig(
        version=__version__,
        project=ProjectInfo(name=name or project_root.name, maturity=maturity),
        paths=PathsConfig(targets=target_names(targets)),
        detected=stack,
    )
    result.config = cfg

    try:
        save_config(project_root, cfg)
    except ConfigError as e:
        result.error = str(e)
        return result

    renderer = renderer or Renderer(TemplateCatalog.from_package(), home=home)
    try:
        result.files = renderer.render_all(
            project_root, stack, targets,
            project=cfg.project, paths=cfg.paths, home=home,
        )
    except RenderError as e:
        result.error = f"Rendering failed: {e}"
        return result

    logger.info(
        "Initialized '%s' for %s (%d files)",
        cfg.project.name, target_names(targets), len(result.files),
    )
    return result


def run_generate(
    project_root: Path,
    *,
    home: Path | None = None,
    renderer: Renderer | None = None,
) -> GenerateResult:
    """Render every artifact without touching .aiops.yaml."""
    project_root = Path(project_root).resolve()
    result = GenerateResult(project_root=project_root)

    try:
        inputs = load_inputs(project_root, home=home)
    except (ConfigError, DetectionError) as e:
        result.error = str(e)
        return result

    result.targets = inputs.targets
    result.from_config = inputs.from_config

    renderer = renderer or Renderer(TemplateCatalog.from_package(), home=home)
    try:
        result.files = renderer.render_all(
            project_root, inputs.stack, inputs.targets,
            project=inputs.project, paths=inputs.paths, home=home,
        )
    except RenderError as e:
        result.error = f"Rendering failed: {e}"

    return result
