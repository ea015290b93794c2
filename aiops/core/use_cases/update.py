"""
Update use case — plan against the live tree, then apply.

Planning and applying are separate calls so the CLI can show the plan
and ask for confirmation in between.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from aiops.core.config.loader import ConfigError
from aiops.core.models.plan import Plan
from aiops.core.services.detection import DetectionError
from aiops.core.services.renderer import RenderError, Renderer
from aiops.core.services.updater import apply_plan, compute_plan
from aiops.core.use_cases.inputs import RenderInputs, load_inputs

logger = logging.getLogger(__name__)


@dataclass
class UpdateResult:
    """Result of planning (and optionally applying) an update."""

    project_root: Path | None = None
    inputs: RenderInputs | None = None
    plan: Plan | None = None
    applied: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "project_root": str(self.project_root),
            "plan": self.plan.to_dict() if self.plan else None,
            "applied": self.applied,
        }


def plan_update(
    project_root: Path,
    *,
    home: Path | None = None,
    renderer: Renderer | None = None,
) -> UpdateResult:
    """Compute the update plan.  Writes nothing to the project."""
    project_root = Path(project_root).resolve()
    result = UpdateResult(project_root=project_root)

    try:
        result.inputs = load_inputs(project_root, home=home)
    except (ConfigError, DetectionError) as e:
        result.error = str(e)
        return result

    inputs = result.inputs
    try:
        result.plan = compute_plan(
            project_root, inputs.stack, inputs.targets,
            renderer=renderer, project=inputs.project, paths=inputs.paths, home=home,
        )
    except RenderError as e:
        result.error = f"Cannot compute update plan: {e}"

    return result


def apply_update(
    result: UpdateResult,
    *,
    include_unchanged: bool = False,
    home: Path | None = None,
    renderer: Renderer | None = None,
) -> UpdateResult:
    """Apply a plan produced by ``plan_update``.  Fills ``result.applied``."""
    if result.error or result.plan is None or result.inputs is None:
        return result

    inputs = result.inputs
    try:
        result.applied = apply_plan(
            result.project_root, inputs.stack, inputs.targets, result.plan,
            include_unchanged=include_unchanged,
            renderer=renderer, project=inputs.project, paths=inputs.paths, home=home,
        )
    except RenderError as e:
        result.error = f"Update failed: {e}"

    logger.info("Applied update: %d files", len(result.applied))
    return result
