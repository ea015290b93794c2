"""
Template catalog — the read-only corpus the renderer draws from.

The corpus ships as package data under ``aiops/templates/``.  The first
path segment of every node is its scope:

    global/        → each target's global rules file (under $HOME)
    rules/         → each target's repo rules file
    workflows/     → each target's workflows directory
    orchestrator/  → each target's orchestrator state directory
    skills/        → each target's skills directory
    shared/        → written once per run, independent of targets

Nodes ending in ``.tmpl`` are Jinja templates; everything else is copied
verbatim (a ``.raw`` guard suffix is stripped on output).

The catalog is an explicit, immutable value handed to the Renderer, so
tests can substitute a synthetic corpus with ``from_mapping``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from aiops.core.models.template import TemplateNode

logger = logging.getLogger(__name__)

SCOPE_GLOBAL = "global"
SCOPE_RULES = "rules"
SCOPE_WORKFLOWS = "workflows"
SCOPE_ORCHESTRATOR = "orchestrator"
SCOPE_SKILLS = "skills"
SCOPE_SHARED = "shared"

TARGET_SCOPES = (
    SCOPE_GLOBAL,
    SCOPE_RULES,
    SCOPE_WORKFLOWS,
    SCOPE_ORCHESTRATOR,
    SCOPE_SKILLS,
)
ALL_SCOPES = (*TARGET_SCOPES, SCOPE_SHARED)

_SKIP_NAMES = frozenset({"__pycache__", "__init__.py"})


class CatalogError(Exception):
    """Raised when a template corpus is malformed."""


class TemplateCatalog:
    """An immutable, ordered set of template nodes."""

    def __init__(self, nodes: Iterable[TemplateNode]) -> None:
        ordered = sorted(nodes, key=lambda n: n.path)
        seen: set[str] = set()
        for node in ordered:
            if node.path in seen:
                raise CatalogError(f"Duplicate template node: {node.path}")
            if node.scope not in ALL_SCOPES or not node.relpath:
                raise CatalogError(
                    f"Template node '{node.path}' is outside the known scopes "
                    f"({', '.join(ALL_SCOPES)})"
                )
            seen.add(node.path)
        self._nodes: tuple[TemplateNode, ...] = tuple(ordered)

    # ── Construction ─────────────────────────────────────────────

    @classmethod
    def from_package(cls) -> TemplateCatalog:
        """Load the corpus bundled with the aiops package."""
        root = resources.files("aiops").joinpath("templates")
        nodes = [
            TemplateNode.from_payload(path, entry.read_bytes())
            for path, entry in _walk_traversable(root, "")
        ]
        logger.debug("Loaded %d template nodes from package data", len(nodes))
        return cls(nodes)

    @classmethod
    def from_directory(cls, directory: Path) -> TemplateCatalog:
        """Load a corpus from a plain directory on disk."""
        nodes = [
            TemplateNode.from_payload(
                path.relative_to(directory).as_posix(), path.read_bytes()
            )
            for path in sorted(directory.rglob("*"))
            if path.is_file() and not _SKIP_NAMES.intersection(path.parts)
        ]
        return cls(nodes)

    @classmethod
    def from_mapping(cls, files: Mapping[str, str | bytes]) -> TemplateCatalog:
        """Build a corpus from ``{virtual path: content}``."""
        nodes = []
        for path, content in files.items():
            payload = content.encode("utf-8") if isinstance(content, str) else content
            nodes.append(TemplateNode.from_payload(path, payload))
        return cls(nodes)

    # ── Access ───────────────────────────────────────────────────

    def __iter__(self) -> Iterator[TemplateNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def paths(self) -> list[str]:
        return [n.path for n in self._nodes]

    def scope(self, name: str) -> list[TemplateNode]:
        """All nodes in a scope, in path order."""
        return [n for n in self._nodes if n.scope == name]

    def get(self, path: str) -> TemplateNode | None:
        for node in self._nodes:
            if node.path == path:
                return node
        return None


def _walk_traversable(entry: Traversable, prefix: str) -> Iterator[tuple[str, Traversable]]:
    for child in sorted(entry.iterdir(), key=lambda c: c.name):
        if child.name in _SKIP_NAMES:
            continue
        path = f"{prefix}{child.name}"
        if child.is_dir():
            yield from _walk_traversable(child, f"{path}/")
        elif child.is_file():
            yield path, child
