"""
Evolve use case — report recurring directive overrides.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from aiops.core.config.loader import ConfigError, load_config
from aiops.core.services.evolve import (
    DirectivePattern,
    EvolveError,
    find_patterns,
    generate_report,
    load_directive_log,
    state_path,
)
from aiops.core.services.targets import resolve_targets

logger = logging.getLogger(__name__)

REPORT_FILE = "evolution_report.md"

# Orchestrator dir used when no configured target has one.
DEFAULT_ORCHESTRATOR_SUBDIR = "orchestrator"


@dataclass
class EvolveResult:
    """Patterns found in the directive log, plus the markdown report."""

    state_path: Path | None = None
    patterns: list[DirectivePattern] = field(default_factory=list)
    total: int = 0
    report: str = ""
    report_path: Path | None = None
    no_log: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "state_path": str(self.state_path) if self.state_path else None,
            "total": self.total,
            "patterns": [p.model_dump() for p in self.patterns],
            "report_path": str(self.report_path) if self.report_path else None,
            "no_log": self.no_log,
        }


def run_evolve(project_root: Path) -> EvolveResult:
    """Analyze the orchestrator directive log and save a report.

    A missing session state is not an error: it only means no
    ``@directive`` overrides have been logged yet (``no_log`` is set).
    """
    project_root = Path(project_root).resolve()
    result = EvolveResult()

    try:
        cfg = load_config(project_root)
    except ConfigError as e:
        result.error = str(e)
        return result

    orchestrator_dir = next(
        (t.orchestrator_dir for t in resolve_targets(cfg.paths.targets) if t.orchestrator_dir),
        f"{cfg.paths.windsurf or '.windsurf'}/{DEFAULT_ORCHESTRATOR_SUBDIR}",
    )
    path = state_path(project_root, orchestrator_dir)
    result.state_path = path

    if not path.is_file():
        result.no_log = True
        return result

    try:
        entries = load_directive_log(path)
    except EvolveError as e:
        result.error = str(e)
        return result

    result.total = len(entries)
    result.patterns = find_patterns(entries)
    result.report = generate_report(result.patterns, result.total)

    if result.patterns:
        report_path = path.parent / REPORT_FILE
        try:
            report_path.write_text(result.report, encoding="utf-8")
            result.report_path = report_path
        except OSError as e:
            logger.warning("Cannot save evolution report to %s: %s", report_path, e)

    return result
