"""
Directive evolution — mine the orchestrator's override log for patterns.

The orchestrator records every ``@directive`` override in
``session_state.yaml`` under ``directive_log``.  Rules that keep getting
overridden are probably miscalibrated; this module groups the log by
rule and proposes a change for each recurring one.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

STATE_FILE = "session_state.yaml"

# A rule must be overridden at least this often to count as a pattern.
PATTERN_THRESHOLD = 2

UNKNOWN_RULE = "unknown"

_PROPOSALS = {
    "escalation": (
        "Consider raising the escalation threshold or increasing the escalation "
        "budget from 2 to 3 per session. Users are frequently overriding "
        "escalation decisions, suggesting the current threshold is too conservative."
    ),
    "tier_classification": (
        "Consider adjusting tier classification criteria. Users are frequently "
        "overriding tier decisions, suggesting some task types are being "
        "classified at a higher tier than needed."
    ),
    "intent_scope": (
        "Consider relaxing the intent guardrail for the patterns seen in these "
        "overrides. The current scope may be too narrow for common workflows."
    ),
}


class EvolveError(Exception):
    """Raised when the session state cannot be read."""


class DirectiveEntry(BaseModel):
    """One logged override."""

    session: str = ""
    directive: str = ""
    reason: str = ""
    timestamp: str = ""
    rule_overridden: str = ""


class DirectivePattern(BaseModel):
    """A rule overridden often enough to propose a change."""

    rule: str
    count: int
    directives: list[DirectiveEntry] = Field(default_factory=list)
    proposal: str = ""


def state_path(project_root: Path, orchestrator_dir: str) -> Path:
    """Location of session_state.yaml for a target's orchestrator dir."""
    return Path(project_root) / orchestrator_dir / STATE_FILE


def load_directive_log(path: Path) -> list[DirectiveEntry]:
    """Read ``directive_log`` from a session state file.

    Raises:
        EvolveError: If the file is missing or is not valid YAML.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise EvolveError(f"No {STATE_FILE} found at {path}: {e}") from e

    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as e:
        raise EvolveError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise EvolveError(f"Expected a YAML mapping in {path}")

    entries = []
    for item in data.get("directive_log") or []:
        if not isinstance(item, dict):
            logger.debug("Skipping non-mapping directive entry: %r", item)
            continue
        try:
            entries.append(DirectiveEntry.model_validate(
                {k: "" if v is None else str(v) for k, v in item.items()}
            ))
        except ValidationError as e:
            logger.debug("Skipping malformed directive entry: %s", e)
    return entries


def find_patterns(entries: list[DirectiveEntry]) -> list[DirectivePattern]:
    """Group entries by overridden rule and keep the recurring ones.

    Patterns come out in the order their rule first appears in the log.
    """
    groups: dict[str, list[DirectiveEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.rule_overridden or UNKNOWN_RULE, []).append(entry)

    return [
        DirectivePattern(
            rule=rule,
            count=len(directives),
            directives=directives,
            proposal=propose(rule, directives),
        )
        for rule, directives in groups.items()
        if len(directives) >= PATTERN_THRESHOLD
    ]


def analyze_directives(path: Path) -> list[DirectivePattern]:
    """Load a session state file and return its recurring override patterns."""
    entries = load_directive_log(path)
    patterns = find_patterns(entries)
    logger.info("Analyzed %d directives: %d patterns", len(entries), len(patterns))
    return patterns


def propose(rule: str, directives: list[DirectiveEntry]) -> str:
    """Proposed rule change for a recurring override."""
    if rule in _PROPOSALS:
        return _PROPOSALS[rule]

    reasons = [d.reason for d in directives if d.reason]
    if reasons:
        return (
            f"Rule `{rule}` was overridden {len(directives)} times. "
            f"Common reasons: {'; '.join(reasons)}. "
            "Consider adjusting the default to accommodate these cases."
        )
    return (
        f"Rule `{rule}` was overridden {len(directives)} times. "
        "Review whether the default is too restrictive."
    )


def generate_report(patterns: list[DirectivePattern], total: int) -> str:
    """Render the evolution report as markdown."""
    lines = [
        "# Evolution Analysis Report",
        "",
        f"Total directives logged: {total}",
        f"Patterns detected: {len(patterns)}",
        "",
    ]

    if not patterns:
        lines.append("No recurring patterns found. Default rules appear well-calibrated.")
        return "\n".join(lines) + "\n"

    lines += ["## Detected Patterns", ""]
    for i, p in enumerate(patterns, 1):
        lines += [f"### Pattern {i}: `{p.rule}` overridden {p.count} times", ""]
        lines.append("**Occurrences:**")
        for d in p.directives:
            lines.append(f'- [{d.timestamp}] Session `{d.session}`: "{d.directive}"')
            if d.reason:
                lines.append(f"  Reason: {d.reason}")
        lines += ["", "**Proposed Rule Change:**", p.proposal, "", "---", ""]

    lines += [
        "## Next Steps",
        "",
        "1. Review each proposed rule change",
        "2. If approved, update `global_rules.md` accordingly",
        "3. Clear the `directive_log` in `session_state.yaml`",
    ]
    return "\n".join(lines) + "\n"
