"""
Configuration loader — reads and writes .aiops.yaml.

The file records the project identity, the active targets and the last
detected stack.  It is read with PyYAML, validated against the pydantic
models and written back atomically (temp file, then rename).
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import yaml
from pydantic import ValidationError

from aiops.core.models.project import AiopsConfig

logger = logging.getLogger(__name__)

# Config filename at the project root
CONFIG_FILE = ".aiops.yaml"


class ConfigError(Exception):
    """Raised when .aiops.yaml is missing, unreadable or invalid."""


def config_path(project_root: Path) -> Path:
    """Path of the config file for a project."""
    return Path(project_root) / CONFIG_FILE


def config_exists(project_root: Path) -> bool:
    return config_path(project_root).is_file()


def load_config(project_root: Path) -> AiopsConfig:
    """Load and validate .aiops.yaml.

    Args:
        project_root: Directory that holds the config file.

    Returns:
        Validated AiopsConfig.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    path = config_path(project_root)

    if not path.is_file():
        raise ConfigError(
            f"No {CONFIG_FILE} found in {project_root}. Run 'aiops init' first."
        )

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        cfg = AiopsConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded config for '%s' (targets=%s)", cfg.project.name, cfg.paths.targets)
    return cfg


def save_config(project_root: Path, cfg: AiopsConfig) -> Path:
    """Write .aiops.yaml atomically.

    Returns:
        Path of the written file.

    Raises:
        ConfigError: If the file cannot be written.
    """
    path = config_path(project_root)
    data = cfg.model_dump(mode="json", by_alias=True)
    content = yaml.safe_dump(data, sort_keys=False, default_flow_style=False)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".aiops_", suffix=".tmp")
        tmp = Path(tmp_path)
        try:
            with open(_fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        raise ConfigError(f"Cannot write {path}: {e}") from e

    logger.debug("Config saved to %s", path)
    return path
