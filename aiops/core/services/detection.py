"""
Detection service — infer a project's technology stack.

Looks at a project's filesystem and manifest files and determines which
languages, frameworks, structural patterns, build hints and MCP servers
are present.  Every policy table lives in ``aiops/core/data/catalogs``;
this module only walks the tree and applies them in order.

Pure logic — reads only, never writes.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from aiops.core.data import get_registry
from aiops.core.models.project import (
    MATURITY_ACTIVE,
    MATURITY_BOOTSTRAP,
    MATURITY_MATURE,
)
from aiops.core.models.stack import (
    BuildInfo,
    DetectedStack,
    Framework,
    Language,
    MCPServer,
)
from aiops.core.models.target import Target

logger = logging.getLogger(__name__)

# ── Walk boundaries ─────────────────────────────────────────────

DEPENDENCY_DIRS = frozenset({
    "node_modules", "vendor", "venv", ".venv", "__pycache__", ".tox",
})
VCS_DIRS = frozenset({".git", ".hg", ".svn"})
BUILD_DIRS = frozenset({"dist", "build", "target"})

MANIFEST_DEPTH = 2
SOURCE_DEPTH = 5
MATURITY_DIR_DEPTH = 2

# ── Maturity thresholds ─────────────────────────────────────────

BOOTSTRAP_SOURCE_THRESHOLD = 10
MATURE_DIR_THRESHOLD = 5

SOURCE_EXTENSIONS = frozenset({
    ".go", ".ts", ".tsx", ".js", ".jsx", ".py", ".rs", ".java", ".rb", ".ex",
})
TEST_FILE_SUFFIXES = (
    "_test.go", ".test.ts", ".test.tsx", ".test.js", "_test.py",
    ".spec.ts", ".spec.js",
)
CI_MARKERS = (".github/workflows", ".gitlab-ci.yml")

# Command recorded for MCP entries that only declare a remote URL.
REMOTE_MCP_COMMAND = "http"

# ── Build hints ─────────────────────────────────────────────────

_LANGUAGE_BUILD: dict[str, dict[str, list[str]]] = {
    "go": {
        "commands": ["go build ./..."],
        "test_commands": ["go test ./..."],
        "generated_file_markers": [
            "// Code generated",
            "// THIS FILE WAS GENERATED; DO NOT EDIT!",
        ],
    },
    "typescript": {
        "commands": ["npx tsc --noEmit"],
        "test_commands": ["npm test"],
    },
    "python": {
        "commands": ["python -m py_compile"],
        "test_commands": ["pytest"],
    },
    "rust": {
        "commands": ["cargo build"],
        "test_commands": ["cargo test"],
    },
    "java-maven": {
        "commands": ["mvn compile"],
        "test_commands": ["mvn test"],
    },
    "java-gradle": {
        "commands": ["gradle build"],
        "test_commands": ["gradle test"],
    },
}

_FRAMEWORK_BUILD: dict[str, dict[str, list[str]]] = {
    "eventsrc": {"generate_commands": ["go run main.go generate-dsl [domain]"]},
    "nextjs": {"commands": ["npm run build"]},
}


class DetectionError(Exception):
    """Raised when the project root cannot be scanned at all."""


# ── Entry points ────────────────────────────────────────────────


def scan(
    root: Path,
    *,
    home: Path | None = None,
    exclude: Iterable[str] = (),
) -> DetectedStack:
    """Analyze a project directory and return its detected stack.

    Args:
        root: Project root directory.
        home: User home directory for global MCP configs (default: ``Path.home()``).
        exclude: Project-relative directories to leave out of the walk
            (aiops' own generated output).

    Returns:
        A frozen DetectedStack.

    Raises:
        DetectionError: If the root is missing or unreadable.
    """
    root = Path(root).resolve()
    _check_root(root)
    home = home if home is not None else Path.home()
    skip = _exclusions(exclude)

    languages = detect_languages(root, exclude=skip)
    frameworks = detect_frameworks(root, exclude=skip)
    stack = DetectedStack(
        languages=languages,
        frameworks=frameworks,
        build=detect_build(root, languages, frameworks),
        patterns=detect_patterns(root, exclude=skip),
        go_module=detect_go_module(root, exclude=skip),
        mcp_servers=detect_mcp_servers(root, home=home),
    )

    logger.info(
        "Scanned %s: languages=%s frameworks=%s patterns=%s",
        root, stack.language_names, stack.framework_names, stack.patterns,
    )
    return stack


def detect_maturity(root: Path, *, exclude: Iterable[str] = ()) -> str:
    """Classify project maturity from repository signals.

    bootstrap: few source files, no CI, no tests
    mature:    CI, tests and a meaningful directory structure
    active:    everything in between
    """
    root = Path(root).resolve()
    _check_root(root)
    skip = _exclusions(exclude)

    source_files = count_source_files(root, exclude=skip)
    has_ci = has_ci_config(root)
    has_tests = has_test_files(root, exclude=skip)

    if source_files < BOOTSTRAP_SOURCE_THRESHOLD and not has_ci and not has_tests:
        maturity = MATURITY_BOOTSTRAP
    elif (
        has_ci and has_tests
        and count_dirs(root, MATURITY_DIR_DEPTH, exclude=skip) > MATURE_DIR_THRESHOLD
    ):
        maturity = MATURITY_MATURE
    else:
        maturity = MATURITY_ACTIVE

    logger.debug(
        "Maturity for %s: %s (sources=%d ci=%s tests=%s)",
        root, maturity, source_files, has_ci, has_tests,
    )
    return maturity


# ── Languages ───────────────────────────────────────────────────


def detect_languages(root: Path, *, exclude: frozenset[str] = frozenset()) -> list[Language]:
    """Probe language marker files at the root, then one level down.

    A language is recorded once; a subdirectory hit records which
    subdirectory holds the entry point.
    """
    markers = get_registry().language_markers
    found: dict[str, Language] = {}

    for marker in markers:
        name = marker["language"]
        if name not in found and os.path.isfile(root / marker["marker"]):
            found[name] = Language(name=name, confidence=marker["confidence"])

    for sub in _subdirs(root, exclude):
        for marker in markers:
            name = marker["language"]
            if name not in found and os.path.isfile(sub / marker["marker"]):
                found[name] = Language(
                    name=name,
                    confidence=marker["confidence"],
                    entry_dir=sub.name,
                )

    return list(found.values())


# ── Frameworks ──────────────────────────────────────────────────


def detect_frameworks(root: Path, *, exclude: frozenset[str] = frozenset()) -> list[Framework]:
    """Match manifest contents against the framework signal table.

    Dedup is per (framework, manifest directory), so a multi-module
    layout may legitimately report the same framework once per module.
    """
    registry = get_registry()
    manifest_names = set(registry.manifest_names)
    found: dict[tuple[str, str], Framework] = {}

    for dirpath, _dirnames, filenames, _depth in _walk(
        root, MANIFEST_DEPTH, DEPENDENCY_DIRS | VCS_DIRS, skip_hidden=True, exclude=exclude,
    ):
        contents: dict[str, str] = {}
        for name in filenames:
            if name in manifest_names:
                text = _read_text(dirpath / name)
                if text is not None:
                    contents[name] = text
        if not contents:
            continue

        rel_dir = dirpath.relative_to(root).as_posix()
        for signal in registry.framework_signals:
            text = contents.get(signal["manifest"])
            if text is None or signal["signal"] not in text:
                continue
            unless = signal.get("unless")
            if unless and unless in text:
                continue
            key = (signal["framework"], rel_dir)
            if key in found:
                continue
            found[key] = Framework(
                name=signal["framework"],
                language=signal["language"],
                confidence=signal.get("confidence", "high"),
                dir=rel_dir,
            )

    return list(found.values())


# ── Build hints ─────────────────────────────────────────────────


def detect_build(
    root: Path,
    languages: list[Language],
    frameworks: list[Framework],
) -> BuildInfo:
    """Synthesize build/test/generate command hints."""
    merged: dict[str, list[str]] = {
        "commands": [],
        "test_commands": [],
        "generate_commands": [],
        "generated_file_markers": [],
    }

    for lang in languages:
        key = lang.name
        if key == "java":
            base = root / lang.entry_dir if lang.entry_dir else root
            key = "java-maven" if os.path.isfile(base / "pom.xml") else "java-gradle"
        for field_name, values in _LANGUAGE_BUILD.get(key, {}).items():
            for value in values:
                _append_unique(merged[field_name], value)

    for fw in frameworks:
        for field_name, values in _FRAMEWORK_BUILD.get(fw.name, {}).items():
            for value in values:
                _append_unique(merged[field_name], value)

    return BuildInfo(**merged)


# ── Patterns ────────────────────────────────────────────────────


def detect_patterns(root: Path, *, exclude: frozenset[str] = frozenset()) -> list[str]:
    """Detect structural patterns (DDD, event sourcing, CI, containers, …)."""
    rules = get_registry().pattern_rules
    patterns: list[str] = []
    subdirs = _subdirs(root, exclude)

    for rule in rules["directories"]:
        paths = rule["paths"]
        if _any_dir(root, paths) or any(_any_dir(sub, paths) for sub in subdirs):
            _append_unique(patterns, rule["tag"])

    for rule in rules["markers"]:
        hit = any(os.path.exists(root / p) for p in rule["paths"])
        if not hit and rule.get("search"):
            hit = bool(find_files(root, rule["search"], MANIFEST_DEPTH, exclude=exclude))
        if hit:
            _append_unique(patterns, rule["tag"])

    return patterns


# ── Go module ───────────────────────────────────────────────────


def detect_go_module(root: Path, *, exclude: frozenset[str] = frozenset()) -> str:
    """Module path from the shallowest go.mod, or "" if none."""
    for mod_path in find_files(root, "go.mod", MANIFEST_DEPTH, exclude=exclude):
        text = _read_text(mod_path)
        if text is None:
            continue
        for line in text.splitlines():
            line = line.strip()
            if line.startswith("module "):
                return line[len("module "):].strip().strip('"')
    return ""


# ── MCP servers ─────────────────────────────────────────────────


def detect_mcp_servers(root: Path, *, home: Path) -> list[MCPServer]:
    """Collect MCP servers from every known config location.

    Locations are visited in catalog order (home before project); the
    first location declaring a server name wins.
    """
    servers: list[MCPServer] = []
    seen: set[str] = set()

    for location in get_registry().mcp_locations:
        base = home if location["base"] == "home" else root
        for name, command in _parse_mcp_config(base / location["path"]):
            if name in seen:
                continue
            seen.add(name)
            servers.append(
                MCPServer(name=name, command=command, source=location["source"])
            )

    return servers


def _parse_mcp_config(path: Path) -> list[tuple[str, str]]:
    """Read ``{"mcpServers": {name: {command|url}}}``; [] if absent or malformed."""
    if not os.path.isfile(path):
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("Skipping unreadable MCP config %s: %s", path, e)
        return []

    if not isinstance(data, dict) or not isinstance(data.get("mcpServers"), dict):
        return []

    entries: list[tuple[str, str]] = []
    for name, entry in data["mcpServers"].items():
        if not isinstance(entry, dict):
            continue
        command = entry.get("command") or ""
        if not command and entry.get("url"):
            command = REMOTE_MCP_COMMAND
        entries.append((str(name), str(command)))
    return entries


# ── Existing artifacts ──────────────────────────────────────────


def detect_skills(project_root: Path, targets: list[Target]) -> list[str]:
    """Skill scaffolds already present (``<skills_dir>/<name>/SKILL.md``)."""
    names: list[str] = []
    for target in targets:
        skills_dir = target.resolve_skills_dir(project_root)
        if skills_dir is None or not skills_dir.is_dir():
            continue
        for child in sorted(skills_dir.iterdir()):
            if (child / "SKILL.md").is_file():
                _append_unique(names, child.name)
    return names


def detect_specs(project_root: Path, targets: list[Target]) -> list[str]:
    """Workflow files already present in any target's workflow directory."""
    names: list[str] = []
    for target in targets:
        workflows_dir = target.resolve_workflows_dir(project_root)
        if workflows_dir is None or not workflows_dir.is_dir():
            continue
        for path in sorted(workflows_dir.glob("*.md")):
            _append_unique(names, path.stem)
    return names


# ── Maturity signals ────────────────────────────────────────────


def count_source_files(root: Path, *, exclude: frozenset[str] = frozenset()) -> int:
    count = 0
    for _dirpath, _dirnames, filenames, _depth in _walk(
        root, SOURCE_DEPTH, DEPENDENCY_DIRS | VCS_DIRS | BUILD_DIRS, exclude=exclude,
    ):
        count += sum(1 for name in filenames if Path(name).suffix in SOURCE_EXTENSIONS)
    return count


def has_test_files(root: Path, *, exclude: frozenset[str] = frozenset()) -> bool:
    for _dirpath, _dirnames, filenames, _depth in _walk(
        root, SOURCE_DEPTH, DEPENDENCY_DIRS | VCS_DIRS | BUILD_DIRS, exclude=exclude,
    ):
        if any(_is_test_file(name) for name in filenames):
            return True
    return False


def has_ci_config(root: Path) -> bool:
    return any(os.path.exists(root / marker) for marker in CI_MARKERS)


def count_dirs(root: Path, max_depth: int, *, exclude: frozenset[str] = frozenset()) -> int:
    """Count directories at depth 1..max_depth below the root."""
    count = 0
    for _dirpath, dirnames, _filenames, depth in _walk(
        root, max_depth, DEPENDENCY_DIRS | VCS_DIRS | BUILD_DIRS, exclude=exclude,
    ):
        if depth < max_depth:
            count += len(dirnames)
    return count


def _is_test_file(name: str) -> bool:
    if name.endswith(TEST_FILE_SUFFIXES):
        return True
    return name.startswith("test_") and name.endswith(".py")


# ── Filesystem helpers ──────────────────────────────────────────


def find_files(
    root: Path,
    name: str,
    max_depth: int,
    *,
    exclude: frozenset[str] = frozenset(),
) -> list[Path]:
    """Find files called ``name`` in directories up to ``max_depth``.

    Results are ordered shallowest first, then by path.
    """
    hits: list[tuple[int, str, Path]] = []
    for dirpath, _dirnames, filenames, depth in _walk(
        root, max_depth, DEPENDENCY_DIRS | VCS_DIRS, exclude=exclude,
    ):
        if name in filenames:
            path = dirpath / name
            hits.append((depth, path.as_posix(), path))
    return [path for _depth, _key, path in sorted(hits)]


def _walk(
    root: Path,
    max_depth: int,
    skip: frozenset[str],
    *,
    skip_hidden: bool = False,
    exclude: frozenset[str] = frozenset(),
) -> Iterator[tuple[Path, list[str], list[str], int]]:
    """Depth-bounded, sorted ``os.walk``.

    Yields (dirpath, dirnames, filenames, depth) where the root has depth 0.
    Directories named in ``skip`` are pruned, as are directories whose
    root-relative path is in ``exclude``; nothing below ``max_depth``
    is visited (dot-directories too, with ``skip_hidden``).  Unreadable
    directories are silently skipped.
    """
    root = Path(root)
    base_depth = len(root.parts)
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        depth = len(current.parts) - base_depth
        if depth >= max_depth:
            dirnames[:] = []
        else:
            rel = current.relative_to(root).as_posix() if depth else ""
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in skip
                and not (skip_hidden and d.startswith("."))
                and (f"{rel}/{d}" if rel else d) not in exclude
            )
        yield current, dirnames, sorted(filenames), depth


def _subdirs(root: Path, exclude: frozenset[str] = frozenset()) -> list[Path]:
    """Immediate subdirectories that are neither hidden nor dependency caches."""
    try:
        entries = sorted(os.scandir(root), key=lambda e: e.name)
    except OSError as e:
        logger.debug("Cannot list %s: %s", root, e)
        return []
    return [
        Path(entry.path)
        for entry in entries
        if entry.is_dir()
        and not entry.name.startswith(".")
        and entry.name not in DEPENDENCY_DIRS
        and entry.name not in exclude
    ]


def _exclusions(paths: Iterable[str]) -> frozenset[str]:
    """Normalize project-relative directory paths to bare posix form."""
    normalized = (p.strip().removeprefix("./").strip("/") for p in paths)
    return frozenset(p for p in normalized if p)


def _any_dir(base: Path, paths: list[str]) -> bool:
    return any(os.path.isdir(base / p) for p in paths)


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        logger.debug("Skipping unreadable file %s: %s", path, e)
        return None


def _append_unique(items: list[str], item: str) -> None:
    if item not in items:
        items.append(item)


def _check_root(root: Path) -> None:
    if not os.path.isdir(root):
        raise DetectionError(f"Project directory not found: {root}")
    try:
        os.listdir(root)
    except OSError as e:
        raise DetectionError(f"Cannot read project directory {root}: {e}") from e
