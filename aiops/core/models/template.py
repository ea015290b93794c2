"""
Template models — catalog nodes and rendered artifacts.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

# Parametrized nodes carry this suffix; it is stripped from the output name.
RENDER_SUFFIX = ".tmpl"

# Opaque nodes whose real extension would be picked up by build or test
# tooling carry this guard suffix; it is stripped from the output name.
GUARD_SUFFIX = ".raw"


class TemplateNode(BaseModel):
    """One file in the template corpus.

    Attributes:
        path:    Virtual path inside the corpus, e.g. ``workflows/orchestrator.md.tmpl``.
        payload: Raw file bytes.
        kind:    ``render`` for Jinja templates, ``copy`` for verbatim payloads.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    payload: bytes
    kind: Literal["render", "copy"] = "copy"

    @property
    def scope(self) -> str:
        """First path segment — decides where the node lands."""
        return self.path.split("/", 1)[0]

    @property
    def relpath(self) -> str:
        """Path below the scope segment, with markers still attached."""
        parts = self.path.split("/", 1)
        return parts[1] if len(parts) > 1 else ""

    @property
    def output_relpath(self) -> str:
        """Path below the scope segment with the marker suffix stripped."""
        rel = self.relpath
        for suffix in (RENDER_SUFFIX, GUARD_SUFFIX):
            if rel.endswith(suffix):
                return rel[: -len(suffix)]
        return rel

    @classmethod
    def from_payload(cls, path: str, payload: bytes) -> TemplateNode:
        """Build a node, inferring its kind from the file suffix."""
        kind = "render" if path.endswith(RENDER_SUFFIX) else "copy"
        return cls(path=path, payload=payload, kind=kind)


class RenderedArtifact(BaseModel):
    """A rendered output file, held in memory until written.

    Attributes:
        location: ``project`` (relative to the project root) or ``home``
                  (relative to the user's home directory).
        path:     Posix path relative to ``location``.
        content:  Final file bytes.
        source:   Virtual path of the node that produced it.
    """

    location: Literal["project", "home"] = "project"
    path: str
    content: bytes
    source: str = ""

    @property
    def display_path(self) -> str:
        """Project-relative path, or ``~/…`` for home outputs."""
        if self.location == "home":
            return f"~/{self.path}"
        return self.path
