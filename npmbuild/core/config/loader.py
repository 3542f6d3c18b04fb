"""
Configuration loader — reads npmbuild.yml into a BuildConfig.

The file is optional.  When present it is read as YAML, validated
against the Pydantic schema, and merged over the defaults.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from npmbuild.core.errors import ConfigError
from npmbuild.core.models.config import BuildConfig

logger = logging.getLogger(__name__)

# Default config filename, looked up in the application working directory
BUILD_CONFIG_FILE = "npmbuild.yml"


def find_config_file(working_dir: Path) -> Path | None:
    """Return ``<working_dir>/npmbuild.yml`` if it exists."""
    candidate = working_dir / BUILD_CONFIG_FILE
    if candidate.is_file():
        return candidate
    return None


def load_build_config(path: Path | None = None, working_dir: Path | None = None) -> BuildConfig:
    """Load and validate build configuration.

    Args:
        path: Explicit path to a config file. Must exist if given.
        working_dir: Directory to search for npmbuild.yml when ``path``
            is None.

    Returns:
        Validated BuildConfig (defaults when no file is found).

    Raises:
        ConfigError: If the file is missing (explicit path) or invalid.
    """
    if path is None and working_dir is not None:
        path = find_config_file(working_dir)

    if path is None:
        logger.debug("No %s found, using defaults", BUILD_CONFIG_FILE)
        return BuildConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return BuildConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = BuildConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid build configuration in {path}: {e}") from e

    logger.info("Loaded build config from %s", path)
    return config
