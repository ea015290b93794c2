"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from aiops.core.services.catalog import TemplateCatalog


@pytest.fixture
def home(tmp_path: Path, monkeypatch) -> Path:
    """An empty, isolated home directory (also exported as $HOME)."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))
    return home_dir


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project directory."""
    root = tmp_path / "demo"
    root.mkdir()
    return root


@pytest.fixture
def small_catalog() -> TemplateCatalog:
    """A synthetic corpus touching every scope and node kind."""
    return TemplateCatalog.from_mapping({
        "global/global_rules.md.tmpl": "global for {{ target.name }}\n",
        "rules/aiops.md.tmpl": "rules {{ project.name }} ({{ target.rules_format }})\n",
        "workflows/default-mode.md.tmpl": "workflow {{ target.display_name }}\n",
        "orchestrator/session_state.yaml": "directive_log: []\n",
        "skills/review/SKILL.md": "skill\n",
        "shared/aiops/soul.md": "soul\n",
        "shared/decisions/0001.md.tmpl": "module {{ multiagency_module }}\n",
        "shared/multiagency/main.go.raw": "package main {{ not rendered }}\n",
    })


@pytest.fixture
def make_file():
    """Return a helper that creates a file (and its parents) below a root."""

    def _make(root: Path, relpath: str, content: str = "") -> Path:
        path = root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _make
