"""
Configuration loader — reads .gobuilder.yml into the build model.

It reads YAML, validates against the Pydantic schema and returns a
BuildConfig. Placeholder expansion is NOT done here; the build use
case expands exactly once, against the startup environment snapshot.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from gobuilder.core.errors import ConfigError
from gobuilder.core.models.config import BuildConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = ".gobuilder.yml"


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for .gobuilder.yml starting from the given directory, walking up.

    Lets the builder run from a subdirectory of the Go module.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_config(raw: str, source: str = "<string>") -> BuildConfig:
    """Parse YAML text into a BuildConfig.

    An empty document is a valid config: every field has a default.
    """
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {source}, got {type(data).__name__}")

    try:
        return BuildConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {source}: {_format_validation_error(e)}"
        ) from e


def load_config(path: Path | None = None) -> BuildConfig:
    """Load and validate the build configuration.

    Args:
        path: Explicit path to the config file. If None, searches upward.

    Returns:
        Validated BuildConfig.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {CONFIG_FILE} found. "
            "Run 'go-builder init' to create one, or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    config = parse_config(raw, source=str(path))
    logger.info("Loaded %s with %d target(s)", path.name, len(config.targets))
    return config


def project_root(config_path: Path) -> Path:
    """Get the project root directory from a config file path."""
    return config_path.parent.resolve()
