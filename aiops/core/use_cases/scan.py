"""
Scan use case — read-only detection report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from aiops.core.models.project import PathsConfig
from aiops.core.models.stack import DetectedStack
from aiops.core.models.target import Target
from aiops.core.services.detection import DetectionError, detect_maturity, scan
from aiops.core.services.targets import detect_targets, target_names


@dataclass
class ScanResult:
    """What a scan found.  Nothing is written."""

    project_root: Path | None = None
    stack: DetectedStack | None = None
    maturity: str = ""
    targets: list[Target] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "project_root": str(self.project_root),
            "maturity": self.maturity,
            "targets": target_names(self.targets),
            "detected": self.stack.model_dump(mode="json", by_alias=True) if self.stack else {},
        }


def run_scan(project_root: Path, *, home: Path | None = None) -> ScanResult:
    """Detect the stack, maturity and active targets of a project."""
    result = ScanResult(project_root=Path(project_root).resolve())

    generated = PathsConfig().generated_dirs
    try:
        result.stack = scan(result.project_root, home=home, exclude=generated)
        result.maturity = detect_maturity(result.project_root, exclude=generated)
    except DetectionError as e:
        result.error = str(e)
        return result

    result.targets = detect_targets(result.project_root, home=home)
    return result
