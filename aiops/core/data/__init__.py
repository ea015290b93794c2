"""
Central data registry for the static detection catalogs.

Loads catalogs from ``aiops/core/data/catalogs/`` once at first access
and caches them for the process lifetime.  The detection service reads
every table from here, so the detection policy can be audited by
reading JSON rather than code.

Usage::

    from aiops.core.data import get_registry

    registry = get_registry()
    markers = registry.language_markers     # list[dict]
    signals = registry.framework_signals    # list[dict]
"""

from __future__ import annotations

import json
import logging
from functools import cached_property
from pathlib import Path

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent


def _load_json(relative_path: str) -> list | dict:
    """Load a JSON file relative to the data directory."""
    path = _DATA_DIR / relative_path
    if not path.exists():
        logger.warning("Data file not found: %s", path)
        return [] if relative_path.endswith("s.json") else {}
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class DataRegistry:
    """Registry for the detection catalogs.

    Each property lazily loads its JSON file on first access and caches
    the result for the lifetime of the instance.  Table order matters:
    detection walks every table top to bottom.
    """

    # ── Languages ────────────────────────────────────────────────

    @cached_property
    def language_markers(self) -> list[dict]:
        """Marker filename → language, confidence."""
        data = _load_json("catalogs/languages.json")
        logger.debug("Loaded %d language markers", len(data))
        return data

    # ── Frameworks ───────────────────────────────────────────────

    @cached_property
    def framework_signals(self) -> list[dict]:
        """Manifest substring → framework, language (optional ``unless``)."""
        data = _load_json("catalogs/frameworks.json")
        logger.debug("Loaded %d framework signals", len(data))
        return data

    @cached_property
    def manifest_names(self) -> tuple[str, ...]:
        """Every manifest filename referenced by a framework signal."""
        return tuple(dict.fromkeys(s["manifest"] for s in self.framework_signals))

    # ── Patterns ─────────────────────────────────────────────────

    @cached_property
    def pattern_rules(self) -> dict[str, list[dict]]:
        """Structural pattern rules: ``directories`` and ``markers``."""
        data = _load_json("catalogs/patterns.json")
        if not isinstance(data, dict):
            data = {}
        data.setdefault("directories", [])
        data.setdefault("markers", [])
        logger.debug(
            "Loaded %d directory and %d marker pattern rules",
            len(data["directories"]), len(data["markers"]),
        )
        return data

    # ── MCP ──────────────────────────────────────────────────────

    @cached_property
    def mcp_locations(self) -> list[dict]:
        """Ordered MCP config locations.  Earlier entries take precedence."""
        data = _load_json("catalogs/mcp_locations.json")
        logger.debug("Loaded %d MCP config locations", len(data))
        return data


# ── Module-level singleton ───────────────────────────────────────

_registry: DataRegistry | None = None


def get_registry() -> DataRegistry:
    """Return the process-level DataRegistry singleton."""
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = DataRegistry()
    return _registry
