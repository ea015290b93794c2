"""
Project model — the persisted identity of an aiops-managed repository.

Loaded from .aiops.yaml.  The ``detected`` block mirrors the last scan
so later runs can report stack drift.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from aiops import __version__
from aiops.core.models.stack import DetectedStack

MATURITY_BOOTSTRAP = "bootstrap"
MATURITY_ACTIVE = "active"
MATURITY_MATURE = "mature"

Maturity = Literal["bootstrap", "active", "mature"]


class ProjectInfo(BaseModel):
    """Project name and lifecycle stage."""

    name: str
    maturity: Maturity = MATURITY_ACTIVE


class PathsConfig(BaseModel):
    """Where artifacts live.

    ``targets`` lists active integration names.  ``windsurf`` and
    ``memories`` are recorded for compatibility with existing installs;
    ``multiagency`` decides where the shared multiagency module lands.
    """

    targets: list[str] = Field(default_factory=list)
    windsurf: str = ".windsurf"
    multiagency: str = "multiagency"
    memories: str = ""

    @property
    def generated_dirs(self) -> list[str]:
        """Project directories filled by aiops itself; detection skips them."""
        return [self.multiagency or "multiagency"]


class AiopsConfig(BaseModel):
    """Root config model — serialized to .aiops.yaml."""

    version: str = __version__
    project: ProjectInfo
    paths: PathsConfig = Field(default_factory=PathsConfig)
    detected: DetectedStack = Field(default_factory=DetectedStack)
