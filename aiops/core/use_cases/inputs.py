"""
Render inputs — what a render needs, from config or from a fresh scan.

Commands that render (generate, status, update) work on an initialized
project by replaying the persisted stack and targets, and on a bare
project by scanning it on the spot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from aiops.core.config.loader import config_exists, load_config
from aiops.core.models.project import AiopsConfig, PathsConfig, ProjectInfo
from aiops.core.models.stack import DetectedStack
from aiops.core.models.target import Target
from aiops.core.services.detection import detect_maturity, scan
from aiops.core.services.targets import detect_targets, resolve_targets

logger = logging.getLogger(__name__)


@dataclass
class RenderInputs:
    """Everything the renderer is called with."""

    stack: DetectedStack
    targets: list[Target]
    project: ProjectInfo
    paths: PathsConfig
    config: AiopsConfig | None = None

    @property
    def from_config(self) -> bool:
        return self.config is not None


def load_inputs(project_root: Path, *, home: Path | None = None) -> RenderInputs:
    """Render inputs for a project.

    Raises:
        ConfigError: If .aiops.yaml exists but is invalid.
        DetectionError: If the project has no config and cannot be scanned.
    """
    if config_exists(project_root):
        cfg = load_config(project_root)
        return RenderInputs(
            stack=cfg.detected,
            targets=resolve_targets(cfg.paths.targets),
            project=cfg.project,
            paths=cfg.paths,
            config=cfg,
        )

    logger.info("No config in %s; scanning instead", project_root)
    paths = PathsConfig()
    stack = scan(project_root, home=home, exclude=paths.generated_dirs)
    maturity = detect_maturity(project_root, exclude=paths.generated_dirs)
    return RenderInputs(
        stack=stack,
        targets=detect_targets(project_root, home=home),
        project=ProjectInfo(name=project_root.name, maturity=maturity),
        paths=paths,
    )
