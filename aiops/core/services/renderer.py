"""
Renderer — turn a DetectedStack and a set of targets into artifacts.

One template corpus is mapped onto every active target's layout, plus a
single shared pass for target-independent artifacts.  Every node is
rendered in memory before anything is written, so a template error
leaves the project untouched.  Writes themselves overwrite in place.

Pure function of its inputs: the same stack, targets and corpus always
produce the same bytes at the same paths.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path, PurePosixPath
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from aiops.core.models.project import PathsConfig, ProjectInfo
from aiops.core.models.stack import DetectedStack
from aiops.core.models.target import Target
from aiops.core.models.template import RenderedArtifact, TemplateNode
from aiops.core.services.catalog import (
    SCOPE_GLOBAL,
    SCOPE_ORCHESTRATOR,
    SCOPE_RULES,
    SCOPE_SHARED,
    SCOPE_SKILLS,
    SCOPE_WORKFLOWS,
    TemplateCatalog,
)

logger = logging.getLogger(__name__)

MULTIAGENCY_SUFFIX = "/multiagency"

# Top-level folders of the shared scope and where they land.  The
# multiagency folder follows paths.multiagency instead.
_SHARED_ROOTS = {
    "aiops": ".aiops",
    "decisions": "decisions",
}
_SHARED_MULTIAGENCY = "multiagency"

HOME_PREFIX = "~/"


class RenderError(Exception):
    """Raised when a template node cannot be rendered or written.

    ``node`` names the failing node's virtual path.
    """

    def __init__(self, message: str, node: str = "") -> None:
        super().__init__(f"{node}: {message}" if node else message)
        self.node = node


class Flags(dict):
    """Capability map whose unknown keys read as False."""

    def __missing__(self, key: str) -> bool:
        return False


def build_context(stack: DetectedStack, project: ProjectInfo) -> dict[str, Any]:
    """Build the shared rendering context for one run."""
    go_module = stack.go_module
    base_module = go_module or project.name

    return {
        "project": project.model_dump(),
        "detected": stack.model_dump(),
        "build": stack.build.model_dump(),
        "go_module": go_module,
        "multiagency_module": base_module + MULTIAGENCY_SUFFIX,
        "has_language": Flags({lang.name: True for lang in stack.languages}),
        "has_framework": Flags({fw.name: True for fw in stack.frameworks}),
        "has_pattern": Flags({tag: True for tag in stack.patterns}),
        "mcp_servers": [s.model_dump() for s in stack.mcp_servers],
    }


def locate(display_path: str, project_root: Path, home: Path) -> Path:
    """Map a display path back to an absolute filesystem path.

    ``~/…`` paths resolve against ``home``; everything else against the
    project root.  Used by both real renders and update planning.
    """
    if display_path.startswith(HOME_PREFIX):
        return home / display_path[len(HOME_PREFIX):]
    return project_root / display_path


def _bullet(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


class Renderer:
    """Renders a template catalog for a set of targets.

    Args:
        catalog: Template corpus (``TemplateCatalog.from_package()`` in production).
        home:    Home directory for global outputs (default: ``Path.home()``).
    """

    def __init__(self, catalog: TemplateCatalog, *, home: Path | None = None) -> None:
        self.catalog = catalog
        self.home = home
        self._env = Environment(
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self._env.filters["bullet"] = _bullet

    # ── Public API ───────────────────────────────────────────────

    def render(
        self,
        project_root: Path,
        stack: DetectedStack,
        targets: list[Target],
        *,
        project: ProjectInfo | None = None,
        paths: PathsConfig | None = None,
    ) -> list[RenderedArtifact]:
        """Render every artifact in memory.  Nothing is written.

        Raises:
            RenderError: If any node fails to render.
        """
        project = project or ProjectInfo(name=Path(project_root).resolve().name)
        paths = paths or PathsConfig()
        context = build_context(stack, project)

        artifacts: list[RenderedArtifact] = []
        for target in targets:
            artifacts.extend(self._render_target(context, target))
        artifacts.extend(self._render_shared(context, paths))

        logger.debug(
            "Rendered %d artifacts for targets %s", len(artifacts), [t.name for t in targets]
        )
        return artifacts

    def render_all(
        self,
        project_root: Path,
        stack: DetectedStack,
        targets: list[Target],
        *,
        project: ProjectInfo | None = None,
        paths: PathsConfig | None = None,
        home: Path | None = None,
    ) -> list[str]:
        """Render and write every artifact.

        Returns:
            Display paths of the written files (project-relative, or ``~/…``).

        Raises:
            RenderError: On a template or write failure.  Files written
                before a write failure are left in place.
        """
        project_root = Path(project_root)
        home = self._home(home)
        artifacts = self.render(project_root, stack, targets, project=project, paths=paths)

        written: list[str] = []
        for artifact in artifacts:
            out_path = locate(artifact.display_path, project_root, home)
            try:
                write_file(out_path, artifact.content)
            except OSError as e:
                raise RenderError(f"cannot write {out_path}: {e}", artifact.source) from e
            written.append(artifact.display_path)

        logger.info("Wrote %d artifacts under %s", len(written), project_root)
        return written

    # ── Per-target pass ──────────────────────────────────────────

    def _render_target(self, shared: dict[str, Any], target: Target) -> list[RenderedArtifact]:
        context = copy.copy(shared)
        context["target"] = {
            "name": target.name,
            "display_name": target.display_name,
            "orchestrator_dir": target.orchestrator_dir,
            "rules_format": target.rules_format,
        }

        artifacts: list[RenderedArtifact] = []

        # Single-file scopes
        if target.global_rules:
            node = self._single_node(SCOPE_GLOBAL)
            if node is not None:
                artifacts.append(
                    self._artifact(node, context, target.global_rules, location="home")
                )
        if target.repo_rules_path:
            node = self._single_node(SCOPE_RULES)
            if node is not None:
                artifacts.append(self._artifact(node, context, target.repo_rules_path))

        # Directory scopes
        for scope, base in (
            (SCOPE_WORKFLOWS, target.workflows_dir),
            (SCOPE_ORCHESTRATOR, target.orchestrator_dir),
            (SCOPE_SKILLS, target.skills_dir),
        ):
            if not base:
                continue
            for node in self.catalog.scope(scope):
                out = PurePosixPath(base, node.output_relpath).as_posix()
                artifacts.append(self._artifact(node, context, out))

        return artifacts

    # ── Shared pass ──────────────────────────────────────────────

    def _render_shared(self, shared: dict[str, Any], paths: PathsConfig) -> list[RenderedArtifact]:
        context = copy.copy(shared)
        context["target"] = {
            "name": "shared",
            "display_name": "Shared",
            "orchestrator_dir": "",
            "rules_format": "markdown",
        }

        roots = dict(_SHARED_ROOTS)
        roots[_SHARED_MULTIAGENCY] = paths.multiagency or _SHARED_MULTIAGENCY

        artifacts: list[RenderedArtifact] = []
        for node in self.catalog.scope(SCOPE_SHARED):
            head, _, rest = node.output_relpath.partition("/")
            if rest and head in roots:
                out = PurePosixPath(roots[head], rest).as_posix()
            else:
                out = node.output_relpath
            artifacts.append(self._artifact(node, context, out))
        return artifacts

    # ── Node rendering ───────────────────────────────────────────

    def _single_node(self, scope: str) -> TemplateNode | None:
        nodes = self.catalog.scope(scope)
        if len(nodes) > 1:
            raise RenderError(
                f"scope '{scope}' maps to a single file but holds {len(nodes)} nodes",
                nodes[0].path,
            )
        return nodes[0] if nodes else None

    def _artifact(
        self,
        node: TemplateNode,
        context: dict[str, Any],
        out_path: str,
        *,
        location: str = "project",
    ) -> RenderedArtifact:
        return RenderedArtifact(
            location=location,
            path=out_path,
            content=self.render_node(node, context),
            source=node.path,
        )

    def render_node(self, node: TemplateNode, context: dict[str, Any]) -> bytes:
        """Render one node: Jinja for ``render`` nodes, verbatim for ``copy``."""
        if node.kind == "copy":
            return node.payload

        try:
            source = node.payload.decode("utf-8")
            template = self._env.from_string(source)
            return template.render(context).encode("utf-8")
        except UnicodeDecodeError as e:
            raise RenderError(f"template is not valid UTF-8: {e}", node.path) from e
        except TemplateError as e:
            raise RenderError(f"template error: {e}", node.path) from e

    def _home(self, home: Path | None) -> Path:
        if home is not None:
            return Path(home)
        if self.home is not None:
            return Path(self.home)
        return Path.home()


def write_file(path: Path, content: bytes) -> None:
    """Create parent directories and overwrite ``path`` with ``content``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
