#!/usr/bin/env python3
"""
Configuration loader for the dkk command line.

Reads an optional YAML file (``--config`` or ``dkk.yaml`` in the project
root), substitutes ``${VAR_NAME}`` environment references and merges the
result over built-in defaults.
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "dkk.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    'root': None,
    'logging': {
        'level': 'WARNING',
        'file': None
    },
    'validation': {
        'warn_missing_fields': False
    },
    'related': {
        'depth': 1
    }
}

_ENV_PATTERN = re.compile(r'\$\{([^}]+)\}')


def substitute_env_vars(value: Any) -> Any:
    """
    Recursively substitute environment variables in configuration values.

    Supports ${VAR_NAME} syntax; unset variables become empty strings.
    """
    if isinstance(value, str):
        for var_name in _ENV_PATTERN.findall(value):
            env_value = os.getenv(var_name)
            if env_value is None:
                logger.warning(f"Environment variable {var_name} not set")
                env_value = ""
            value = value.replace(f"${{{var_name}}}", env_value)
        return value

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(item) for item in value]

    else:
        return value


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate_config(config: Dict[str, Any], source: Optional[str] = None):
    """
    Check types of the recognized keys.

    Raises:
        ConfigError: If a recognized key has the wrong type or value
    """
    for key in config:
        if key not in DEFAULT_CONFIG:
            logger.warning(f"Unknown configuration section: {key}")

    for section in ('logging', 'validation', 'related'):
        if not isinstance(config.get(section), dict):
            raise ConfigError(f"Configuration section '{section}' must be a mapping", source)

    level = config['logging'].get('level')
    if not isinstance(level, str) or not isinstance(getattr(logging, level.upper(), None), int):
        raise ConfigError(f"Invalid log level: {level}", source)

    if not isinstance(config['validation'].get('warn_missing_fields'), bool):
        raise ConfigError("validation.warn_missing_fields must be a boolean", source)

    depth = config['related'].get('depth')
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
        raise ConfigError(f"related.depth must be a non-negative integer, got: {depth}", source)

    root = config.get('root')
    if root is not None and not isinstance(root, str):
        raise ConfigError("root must be a string path", source)


def find_config_file(root: Optional[str] = None) -> Optional[Path]:
    """Return ``dkk.yaml`` in the project root if it exists."""
    candidate = Path(root or Path.cwd()) / DEFAULT_CONFIG_NAME
    return candidate if candidate.is_file() else None


def load_config(config_path: Optional[str] = None, root: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration and merge it over the defaults.

    Args:
        config_path: Explicit configuration file; if None, ``dkk.yaml`` in
            ``root`` (or the current directory) is used when present
        root: Project root used to look up the default file

    Returns:
        Configuration dictionary with every recognized key present

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values
    """
    path = Path(config_path) if config_path else find_config_file(root)
    if path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in config file: {e}", path) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Error reading config file: {e}", path) from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Configuration file must contain a mapping at root level", path)

    config = _merge(DEFAULT_CONFIG, substitute_env_vars(raw_config))
    validate_config(config, str(path))

    # A relative root is taken relative to the config file
    if config.get('root'):
        config['root'] = str((path.parent / config['root']).resolve())

    logger.debug(f"Loaded configuration from {path}")
    return config
