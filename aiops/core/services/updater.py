"""
Update planner — compare a fresh render against the live tree.

The plan is computed by rendering into a throwaway scratch directory
(separate ``project/`` and ``home/`` roots), then hashing each scratch
file against its counterpart in the real project or home directory.
The project itself is never touched while planning.

Usage::

    plan = compute_plan(root, stack, targets)
    if plan.has_changes:
        apply_plan(root, stack, targets, plan)
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import tempfile
from pathlib import Path

from aiops.core.models.plan import Diff, Plan
from aiops.core.models.project import PathsConfig, ProjectInfo
from aiops.core.models.stack import DetectedStack
from aiops.core.models.target import Target
from aiops.core.services.catalog import TemplateCatalog
from aiops.core.services.renderer import Renderer, locate

logger = logging.getLogger(__name__)

# Bytes of the sha256 digest kept for display.
HASH_BYTES = 8

_CHUNK = 64 * 1024


def hash_file(path: Path) -> str:
    """Short content hash (sha256, first 8 bytes as hex)."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()[: HASH_BYTES * 2]


def classify(current_hash: str, new_hash: str) -> str:
    """Diff status from the current hash (empty if absent) and the new hash."""
    if not current_hash:
        return "new"
    if current_hash != new_hash:
        return "modified"
    return "unchanged"


def compute_plan(
    project_root: Path,
    stack: DetectedStack,
    targets: list[Target],
    *,
    renderer: Renderer | None = None,
    project: ProjectInfo | None = None,
    paths: PathsConfig | None = None,
    home: Path | None = None,
) -> Plan:
    """Render into scratch space and classify every output.

    Args:
        project_root: The live project tree.
        stack:        Detected (or persisted) stack.
        targets:      Active targets.
        renderer:     Renderer to use (default: packaged corpus).
        project:      Project identity; defaults to one derived from the root
                      so the scratch render matches a real one.
        paths:        Path settings (multiagency location).
        home:         Live home directory (default: the renderer's home, else
                      ``Path.home()``).

    Returns:
        Plan with one Diff per output file, in render order.

    Raises:
        RenderError: If the corpus fails to render.
    """
    project_root = Path(project_root).resolve()
    renderer = renderer or Renderer(TemplateCatalog.from_package())
    if home is None:
        home = renderer.home or Path.home()
    home = Path(home)
    project = project or ProjectInfo(name=project_root.name)

    scratch = Path(tempfile.mkdtemp(prefix="aiops-plan-"))
    scratch_project = scratch / "project"
    scratch_home = scratch / "home"
    scratch_project.mkdir()
    scratch_home.mkdir()

    plan = Plan()
    try:
        written = renderer.render_all(
            scratch_project, stack, targets,
            project=project, paths=paths, home=scratch_home,
        )

        for display in written:
            new_hash = hash_file(locate(display, scratch_project, scratch_home))
            live = locate(display, project_root, home)

            current_hash = ""
            if live.is_file():
                try:
                    current_hash = hash_file(live)
                except OSError as e:
                    logger.debug("Cannot hash %s: %s", live, e)

            plan.add(Diff(
                path=display,
                status=classify(current_hash, new_hash),
                current_hash=current_hash,
                new_hash=new_hash,
            ))
    finally:
        shutil.rmtree(scratch, ignore_errors=True)

    logger.info(
        "Plan: %d new, %d modified, %d unchanged",
        plan.new_files, plan.modified, plan.unchanged,
    )
    return plan


def apply_plan(
    project_root: Path,
    stack: DetectedStack,
    targets: list[Target],
    plan: Plan,
    *,
    include_unchanged: bool = False,
    renderer: Renderer | None = None,
    project: ProjectInfo | None = None,
    paths: PathsConfig | None = None,
    home: Path | None = None,
) -> list[str]:
    """Re-render into the live tree and report what the plan said changed.

    The render itself is the full corpus; overwriting unchanged files is
    a no-op on content.

    Returns:
        Plan paths that were new or modified (or all, with ``include_unchanged``).
    """
    project_root = Path(project_root).resolve()
    renderer = renderer or Renderer(TemplateCatalog.from_package())
    project = project or ProjectInfo(name=project_root.name)

    renderer.render_all(
        project_root, stack, targets,
        project=project, paths=paths, home=home,
    )
    return plan.changed_paths(include_unchanged=include_unchanged)
