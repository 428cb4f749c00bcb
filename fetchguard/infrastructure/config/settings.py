"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.fetchguard/config.yaml). Keys use dotted names
("logging.level"); the matching environment variable is the upper-cased
name with dots replaced by underscores and a FETCHGUARD_ prefix
(FETCHGUARD_LOGGING_LEVEL).
"""

import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from fetchguard.domain.errors import ConfigurationError
from fetchguard.domain.models.config import FetchConfig

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".fetchguard"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "FETCHGUARD_"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


def load_configuration(config_file: Optional[Path] = None, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values

    Args:
        config_file: Path to the YAML configuration file (default ~/.fetchguard/config.yaml).
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}
    config_file = config_file or DEFAULT_CONFIG_FILE

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: ENV VARS take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
        else:
            logger.debug(f".env file at {dotenv_path} was empty.")
    else:
        logger.debug(".env file not found at or above current directory.")

    # 3. Environment Variables (Highest priority) are handled in get_config
    _loaded = True
    logger.debug("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets everything loaded so far so the next lookup reloads."""
    global _config, _loaded
    _config = {}
    _loaded = False


def env_var_name(key: str) -> str:
    """FETCHGUARD_ environment variable name for a dotted key."""
    return f"{ENV_PREFIX}{key.upper().replace('.', '_').replace('-', '_')}"


def _convert_env_value(value: str) -> Any:
    if value.lower() == 'true':
        return True
    elif value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def _lookup_yaml(key: str) -> Any:
    """Finds ``key`` as a flat key or as a path through nested sections."""
    if key in _config:
        return _config[key]
    node: Any = _config
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable
    3. YAML config
    4. Default value

    Args:
        key: The dotted configuration key (e.g. "logging.level").
        default: Default value if the key is not found.

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    if not _loaded:
        load_configuration()

    env_key = env_var_name(key)
    if env_key in os.environ:
        return _convert_env_value(os.environ[env_key])

    value = _lookup_yaml(key)
    if value is not None:
        return value

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Convenience Functions ---

def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', '1', 'yes', 'on'):
            return True
        if lowered in ('false', '0', 'no', 'off', ''):
            return False
        raise ConfigurationError(f"Config '{key}' must be a boolean, got '{value}'")
    return bool(value)


def _coerce(key: str, value: Any, target: type) -> Any:
    if target is bool:
        return _as_bool(key, value)
    if target is int and isinstance(value, float) and not value.is_integer():
        raise ConfigurationError(f"Config '{key}' must be int, got '{value}'")
    try:
        return target(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Config '{key}' must be {target.__name__}, got '{value}'") from e


def load_fetch_config(**overrides: Any) -> FetchConfig:
    """Builds a FetchConfig from configured values and explicit overrides.

    Each FetchConfig field is read from the key of the same name (e.g.
    "rate_limit" / FETCHGUARD_RATE_LIMIT). Overrides that are None are
    ignored, so unset CLI options fall through to the configuration.

    Raises:
        ConfigurationError: If a value has the wrong type or is out of range.
    """
    defaults = FetchConfig()
    values: Dict[str, Any] = {}
    for f in fields(FetchConfig):
        default = getattr(defaults, f.name)
        value = overrides.get(f.name)
        if value is None:
            value = get_config(f.name, default)
        values[f.name] = _coerce(f.name, value, type(default))
    return FetchConfig(**values)


def get_store_password() -> Optional[str]:
    """Password for the Redis store, if one is configured."""
    password = get_config('store.password')
    return str(password) if password is not None else None


def get_logging_settings() -> Dict[str, Any]:
    """Logging level, format and file from configuration."""
    return {
        'level': get_config('logging.level'),
        'format': get_config('logging.format'),
        'file': get_config('logging.file'),
    }


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Set configuration values for testing purposes.

    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
