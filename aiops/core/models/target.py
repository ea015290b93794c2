"""
Target model — an editor/agent integration and its artifact layout.

Targets are plain data records.  Every path mapping is optional: an
empty string means the integration has no such concept and the
renderer skips that category for it.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Target(BaseModel):
    """An integration target (Windsurf, Cursor, Continue, Copilot, …).

    Attributes:
        name:             Stable identifier persisted in .aiops.yaml.
        display_name:     Human-readable label.
        global_rules:     Global rules file, relative to the user's home.
        repo_rules_path:  Repo rules file, relative to the project root.
        workflows_dir:    Workflow/prompt directory, project-relative.
        orchestrator_dir: Orchestrator state directory, project-relative.
        skills_dir:       Skill scaffold directory, project-relative.
        rules_format:     "markdown" or "mdc".
        project_probes:   Project-relative directories that signal presence.
        home_probes:      Home-relative directories that signal presence.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    global_rules: str = ""
    repo_rules_path: str = ""
    workflows_dir: str = ""
    orchestrator_dir: str = ""
    skills_dir: str = ""
    rules_format: str = "markdown"
    project_probes: tuple[str, ...] = Field(default_factory=tuple)
    home_probes: tuple[str, ...] = Field(default_factory=tuple)

    def resolve_global_rules_path(self, home: Path) -> Path | None:
        """Absolute global rules path, or None if the target has none."""
        if not self.global_rules:
            return None
        return home / self.global_rules

    def resolve_repo_rules_path(self, project_root: Path) -> Path | None:
        if not self.repo_rules_path:
            return None
        return project_root / self.repo_rules_path

    def resolve_workflows_dir(self, project_root: Path) -> Path | None:
        if not self.workflows_dir:
            return None
        return project_root / self.workflows_dir

    def resolve_orchestrator_dir(self, project_root: Path) -> Path | None:
        if not self.orchestrator_dir:
            return None
        return project_root / self.orchestrator_dir

    def resolve_skills_dir(self, project_root: Path) -> Path | None:
        if not self.skills_dir:
            return None
        return project_root / self.skills_dir
