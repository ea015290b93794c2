"""
Target registry — the known editor/agent integrations.

A closed, static catalog.  Detection only decides which targets are
active for a project; the records themselves never change.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from aiops.core.models.target import Target

logger = logging.getLogger(__name__)


WINDSURF = Target(
    name="windsurf",
    display_name="Windsurf (Cascade)",
    global_rules=".codeium/windsurf/memories/global_rules.md",
    repo_rules_path=".windsurf/rules/aiops.md",
    workflows_dir=".windsurf/workflows",
    orchestrator_dir=".windsurf/orchestrator",
    skills_dir=".windsurf/skills",
    rules_format="markdown",
    project_probes=(".windsurf",),
    home_probes=(".codeium/windsurf",),
)

CURSOR = Target(
    name="cursor",
    display_name="Cursor",
    repo_rules_path=".cursor/rules/aiops.mdc",
    workflows_dir=".cursor/prompts",
    orchestrator_dir=".cursor/orchestrator",
    skills_dir=".cursor/skills",
    rules_format="mdc",
    project_probes=(".cursor",),
    home_probes=(".cursor",),
)

CONTINUE = Target(
    name="continue",
    display_name="Continue (VS Code)",
    repo_rules_path=".continue/rules/aiops.md",
    workflows_dir=".continue/prompts",
    orchestrator_dir=".continue/orchestrator",
    skills_dir=".continue/skills",
    rules_format="markdown",
    project_probes=(".continue",),
    home_probes=(".continue",),
)

# Copilot reads a single instructions file: no workflows, orchestrator or skills.
COPILOT = Target(
    name="copilot",
    display_name="GitHub Copilot",
    repo_rules_path=".github/copilot-instructions.md",
    rules_format="markdown",
    project_probes=(".github",),
    home_probes=(".vscode",),
)

ALL_TARGETS: tuple[Target, ...] = (WINDSURF, CURSOR, CONTINUE, COPILOT)

# Used when no target probes present: every target with project-local files.
DEFAULT_TARGETS: tuple[Target, ...] = (WINDSURF, CURSOR, COPILOT)

# Used when persisted target names resolve to nothing.
FALLBACK_TARGET = WINDSURF


def get_target(name: str) -> Target | None:
    """Look up a target by name."""
    for target in ALL_TARGETS:
        if target.name == name:
            return target
    return None


def is_target_present(project_root: Path, target: Target, *, home: Path) -> bool:
    """True if any of the target's project or home probe directories exist."""
    if any(os.path.isdir(project_root / p) for p in target.project_probes):
        return True
    return any(os.path.isdir(home / p) for p in target.home_probes)


def detect_targets(project_root: Path, *, home: Path | None = None) -> list[Target]:
    """Determine which targets are active for a project.

    Never returns an empty list: if nothing probes present, the fixed
    default subset is used.
    """
    home = home if home is not None else Path.home()
    detected = [t for t in ALL_TARGETS if is_target_present(project_root, t, home=home)]

    if not detected:
        logger.info(
            "No integration detected in %s; using defaults %s",
            project_root, [t.name for t in DEFAULT_TARGETS],
        )
        return list(DEFAULT_TARGETS)

    logger.debug("Detected targets: %s", [t.name for t in detected])
    return detected


def resolve_targets(names: list[str]) -> list[Target]:
    """Map persisted target names to records, dropping unknown names.

    An empty result falls back to the single legacy target.
    """
    targets: list[Target] = []
    for name in names:
        target = get_target(name)
        if target is None:
            logger.warning("Ignoring unknown target '%s'", name)
            continue
        if target not in targets:
            targets.append(target)
    return targets or [FALLBACK_TARGET]


def target_names(targets: list[Target]) -> list[str]:
    return [t.name for t in targets]
