"""
Status use case — installation summary, stack drift and the update plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from aiops.core.config.loader import ConfigError
from aiops.core.models.plan import Plan
from aiops.core.models.project import AiopsConfig
from aiops.core.models.stack import DetectedStack
from aiops.core.models.target import Target
from aiops.core.services.detection import (
    DetectionError,
    detect_skills,
    detect_specs,
    scan,
)
from aiops.core.services.evolve import state_path
from aiops.core.services.renderer import Renderer, RenderError
from aiops.core.services.targets import target_names
from aiops.core.services.updater import compute_plan
from aiops.core.use_cases.inputs import load_inputs

logger = logging.getLogger(__name__)


@dataclass
class StatusResult:
    """Aggregated project status."""

    project_root: Path | None = None
    config: AiopsConfig | None = None
    targets: list[Target] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    workflows: list[str] = field(default_factory=list)
    drift: list[str] = field(default_factory=list)
    plan: Plan | None = None
    orchestrator_active: bool = False
    error: str | None = None

    @property
    def installed(self) -> bool:
        return self.config is not None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["installed"] = self.installed
        if self.config:
            result["version"] = self.config.version
            result["project"] = self.config.project.model_dump()
            result["mcp_servers"] = [s.name for s in self.config.detected.mcp_servers]
        result["targets"] = target_names(self.targets)
        result["skills"] = self.skills
        result["workflows"] = self.workflows
        result["drift"] = self.drift
        result["orchestrator_active"] = self.orchestrator_active
        if self.plan:
            result["plan"] = self.plan.to_dict()
        return result


def compare_stack(old: DetectedStack, new: DetectedStack) -> list[str]:
    """Human-readable additions in ``new`` that ``old`` does not have."""
    drift: list[str] = []

    old_langs = set(old.language_names)
    for lang in new.languages:
        if lang.name not in old_langs:
            drift.append(f"New language detected: {lang.name}")

    old_fws = set(old.framework_names)
    for name in new.framework_names:
        if name not in old_fws:
            drift.append(f"New framework detected: {name}")

    old_patterns = set(old.patterns)
    for tag in new.patterns:
        if tag not in old_patterns:
            drift.append(f"New pattern detected: {tag}")

    old_mcps = {s.name for s in old.mcp_servers}
    for server in new.mcp_servers:
        if server.name not in old_mcps:
            drift.append(f"New MCP server detected: {server.name} ({server.source})")

    return drift


def get_status(
    project_root: Path,
    *,
    home: Path | None = None,
    renderer: Renderer | None = None,
) -> StatusResult:
    """Summarize the installation and compute what ``update`` would change.

    Works on uninitialized projects too: the plan is then computed from a
    fresh scan and no drift is reported.
    """
    project_root = Path(project_root).resolve()
    result = StatusResult(project_root=project_root)

    try:
        inputs = load_inputs(project_root, home=home)
    except (ConfigError, DetectionError) as e:
        result.error = str(e)
        return result

    result.config = inputs.config
    result.targets = inputs.targets
    result.skills = detect_skills(project_root, inputs.targets)
    result.workflows = detect_specs(project_root, inputs.targets)
    result.orchestrator_active = any(
        state_path(project_root, t.orchestrator_dir).is_file()
        for t in inputs.targets if t.orchestrator_dir
    )

    if inputs.config is not None:
        try:
            result.drift = compare_stack(
                inputs.stack,
                scan(project_root, home=home, exclude=inputs.paths.generated_dirs),
            )
        except DetectionError as e:
            logger.warning("Drift check skipped: %s", e)

    try:
        result.plan = compute_plan(
            project_root, inputs.stack, inputs.targets,
            renderer=renderer, project=inputs.project, paths=inputs.paths, home=home,
        )
    except RenderError as e:
        result.error = f"Cannot compute update plan: {e}"

    return result
