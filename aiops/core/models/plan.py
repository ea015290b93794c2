"""
Update plan model — per-file drift between disk and a fresh render.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DiffStatus = Literal["new", "modified", "unchanged"]


class Diff(BaseModel):
    """One output file and how it compares to what is on disk."""

    path: str
    status: DiffStatus
    current_hash: str = ""
    new_hash: str = ""


class Plan(BaseModel):
    """The full update plan.  Computed fresh each time, never persisted."""

    diffs: list[Diff] = Field(default_factory=list)
    new_files: int = 0
    modified: int = 0
    unchanged: int = 0

    def add(self, diff: Diff) -> None:
        """Append a diff and bump the matching counter."""
        self.diffs.append(diff)
        if diff.status == "new":
            self.new_files += 1
        elif diff.status == "modified":
            self.modified += 1
        else:
            self.unchanged += 1

    @property
    def has_changes(self) -> bool:
        return self.new_files > 0 or self.modified > 0

    def changed_paths(self, include_unchanged: bool = False) -> list[str]:
        return [
            d.path for d in self.diffs
            if include_unchanged or d.status != "unchanged"
        ]

    def to_dict(self) -> dict:
        return {
            "new": self.new_files,
            "modified": self.modified,
            "unchanged": self.unchanged,
            "diffs": [d.model_dump() for d in self.diffs],
        }
