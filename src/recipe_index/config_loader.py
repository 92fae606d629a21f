"""
Configuration file loader for recipe-index.

Supports loading configuration from the recipes root:
- recipe-index.toml / .recipe-index.toml
- recipe-index.yml / .recipe-index.yml / recipe-index.yaml / .recipe-index.yaml

CLI flags override config file values.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .config import (
    DEFAULT_CORE_NAMESPACE,
    DEFAULT_MAKEFILE_FILE,
    DEFAULT_META_PACKAGE_SUFFIX,
    DEFAULT_POST_INSTALL_FILE,
)

logger = logging.getLogger(__name__)

# Config file search order (first found wins)
CONFIG_FILE_NAMES = [
    "recipe-index.toml",
    ".recipe-index.toml",
    "recipe-index.yml",
    ".recipe-index.yml",
    "recipe-index.yaml",
    ".recipe-index.yaml",
]

CONFIG_SECTION = "recipe-index"


class ConfigError(Exception):
    """Error while loading an explicitly requested config file."""

    pass


@dataclass
class ProjectConfig:
    """
    Project-level configuration loaded from config files.

    All fields are optional - CLI flags will override any values set here.
    """

    # Alias derivation
    core_namespace: str | None = None
    meta_package_suffix: str | None = None

    # Special recipe files
    post_install_file: str | None = None
    makefile_file: str | None = None

    # Index flags
    contrib: bool | None = None

    # Source file path (for debugging)
    _config_file: Path | None = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary with only the values that are set."""
        result: dict[str, Any] = {}

        if self.core_namespace is not None:
            result["core_namespace"] = self.core_namespace
        if self.meta_package_suffix is not None:
            result["meta_package_suffix"] = self.meta_package_suffix
        if self.post_install_file is not None:
            result["post_install_file"] = self.post_install_file
        if self.makefile_file is not None:
            result["makefile_file"] = self.makefile_file
        if self.contrib is not None:
            result["contrib"] = self.contrib

        if self._config_file is not None:
            result["_loaded_from"] = str(self._config_file)

        return dict(sorted(result.items()))


def find_config_file(root: Path) -> Path | None:
    """
    Find a configuration file in the recipes root.

    Args:
        root: Directory holding the recipes

    Returns:
        Path to the config file, or None if not found
    """
    for name in CONFIG_FILE_NAMES:
        config_path = root / name
        if config_path.exists() and config_path.is_file():
            return config_path
    return None


def _section(data: dict[str, Any]) -> dict[str, Any]:
    # Support both flat and nested [recipe-index] section
    if CONFIG_SECTION in data and isinstance(data[CONFIG_SECTION], dict):
        return dict(data[CONFIG_SECTION])
    return data


def _parse_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML config file into a dict."""
    with open(path, "rb") as f:
        data: dict[str, Any] = tomllib.load(f)
    return _section(data)


def _parse_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML config file into a dict."""
    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    if not isinstance(raw_data, dict):
        return {}

    return _section(dict(raw_data))


def _parse_file(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    if suffix == ".toml":
        return _parse_toml(path)
    if suffix in (".yml", ".yaml"):
        return _parse_yaml(path)
    raise ValueError(f"Unsupported config file type: {path.name}")


def load_config(root: Path, config_path: Path | None = None) -> ProjectConfig:
    """
    Load configuration from a config file.

    A discovered file that cannot be parsed is ignored with a warning. An
    explicit `config_path` must exist and parse.

    Args:
        root: Directory holding the recipes
        config_path: Explicit path to config file (optional)

    Returns:
        ProjectConfig with loaded values (unset values remain None).

    Raises:
        ConfigError: If an explicit config file is missing, invalid, or sets a
            non-boolean `contrib`.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = find_config_file(root)

    if config_path is None:
        return ProjectConfig()

    if not config_path.exists():
        raise ConfigError(f"Config file does not exist: {config_path}")

    try:
        data = _parse_file(config_path)
    except (OSError, ValueError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        if explicit:
            raise ConfigError(f"Cannot load config file {config_path}: {e}") from e
        logger.warning("Ignoring config file %s: %s", config_path, e)
        return ProjectConfig()

    config = ProjectConfig(_config_file=config_path)

    if "core_namespace" in data:
        config.core_namespace = str(data["core_namespace"])
    if "meta_package_suffix" in data:
        config.meta_package_suffix = str(data["meta_package_suffix"])
    if "post_install_file" in data:
        config.post_install_file = str(data["post_install_file"])
    if "makefile_file" in data:
        config.makefile_file = str(data["makefile_file"])
    if "contrib" in data:
        contrib = data["contrib"]
        if isinstance(contrib, bool):
            config.contrib = contrib
        elif explicit:
            raise ConfigError(f"'contrib' in {config_path} must be true or false, got {contrib!r}")
        else:
            logger.warning("Ignoring non-boolean 'contrib' in %s: %r", config_path, contrib)

    logger.debug("Loaded config from %s: %s", config_path, config.to_dict())
    return config


def merge_cli_with_config(
    config: ProjectConfig,
    *,
    # CLI arguments (None means not specified on CLI)
    core_namespace: str | None = None,
    meta_package_suffix: str | None = None,
    post_install_file: str | None = None,
    makefile_file: str | None = None,
    contrib: bool = False,
) -> dict[str, Any]:
    """Merge CLI arguments with config file values (CLI wins).

    Args:
        config: Config loaded from file (may have unset values).
        core_namespace: CLI override for the core package prefix (optional).
        meta_package_suffix: CLI override for the meta-package suffix (optional).
        post_install_file: CLI override for the transcript file name (optional).
        makefile_file: CLI override for the Makefile name (optional).
        contrib: CLI `--contrib` flag.

    Returns:
        Dictionary of merged configuration values used by the build.
    """
    result: dict[str, Any] = {}

    if core_namespace is not None:
        result["core_namespace"] = core_namespace
    elif config.core_namespace is not None:
        result["core_namespace"] = config.core_namespace
    else:
        result["core_namespace"] = DEFAULT_CORE_NAMESPACE

    if meta_package_suffix is not None:
        result["meta_package_suffix"] = meta_package_suffix
    elif config.meta_package_suffix is not None:
        result["meta_package_suffix"] = config.meta_package_suffix
    else:
        result["meta_package_suffix"] = DEFAULT_META_PACKAGE_SUFFIX

    if post_install_file is not None:
        result["post_install_file"] = post_install_file
    elif config.post_install_file is not None:
        result["post_install_file"] = config.post_install_file
    else:
        result["post_install_file"] = DEFAULT_POST_INSTALL_FILE

    if makefile_file is not None:
        result["makefile_file"] = makefile_file
    elif config.makefile_file is not None:
        result["makefile_file"] = config.makefile_file
    else:
        result["makefile_file"] = DEFAULT_MAKEFILE_FILE

    # Contrib (CLI --contrib sets True)
    if contrib:
        result["contrib"] = True
    elif config.contrib is not None:
        result["contrib"] = config.contrib
    else:
        result["contrib"] = False

    return result
