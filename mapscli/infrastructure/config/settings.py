"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a YAML
configuration file (~/.mapscli/config.yaml).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

from mapscli.domain.models.common import Api
from mapscli.infrastructure.resilience.backoff import BackoffSchedule

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".mapscli"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
API_KEY_ENV_VAR = "GOOGLE_MAPS_API_KEY"

DEFAULT_HTTP_TIMEOUT = 30.0

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
        else:
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False keeps real environment variables on top
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no .env found).")

    _loaded = True
    logger.info("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets the loaded configuration so the next load_configuration() re-reads it."""
    global _config, _loaded
    _config = {}
    _loaded = False


def _coerce(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def _lookup_yaml(key: str) -> Tuple[bool, Any]:
    if key in _config:
        return True, _config[key]
    node: Any = _config
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return False, None
        node = node[part]
    return True, node


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (key upper-cased, '.' replaced by '_')
    3. YAML config (dotted keys walk nested sections)
    4. Default value

    Args:
        key: The configuration key, e.g. 'retry.base_interval'
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace('.', '_')
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    found, value = _lookup_yaml(key)
    if found:
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

def get_api_key() -> Optional[str]:
    """Gets the Google Maps API key."""
    # Checks ENV GOOGLE_MAPS_API_KEY first, then yaml maps.api_key
    key = get_config(API_KEY_ENV_VAR) or get_config('maps.api_key')
    return str(key) if key is not None else None


def get_rate_limits() -> Dict[Api, Tuple[float, float]]:
    """Reads the ``rate_limits`` section: ``{category: {requests: N, per_seconds: S}}``."""
    section = get_config('rate_limits', {}) or {}
    if not isinstance(section, dict):
        logger.warning(f"Ignoring rate_limits setting of type {type(section).__name__}; expected a mapping.")
        return {}

    limits: Dict[Api, Tuple[float, float]] = {}
    for name, entry in section.items():
        try:
            api = Api.from_name(str(name))
            requests = float(entry['requests'])
            per_seconds = float(entry.get('per_seconds', 1.0))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring invalid rate limit entry '{name}': {e}")
            continue
        limits[api] = (requests, per_seconds)
    return limits


def get_backoff_schedule() -> BackoffSchedule:
    """Builds the backoff schedule from the ``retry.*`` keys."""
    defaults = BackoffSchedule()
    max_attempts = get_config('retry.max_attempts')
    return BackoffSchedule(
        base_interval=float(get_config('retry.base_interval', defaults.base_interval)),
        multiplier=float(get_config('retry.multiplier', defaults.multiplier)),
        max_interval=float(get_config('retry.max_interval', defaults.max_interval)),
        max_elapsed_time=float(get_config('retry.max_elapsed_time', defaults.max_elapsed_time)),
        jitter_factor=float(get_config('retry.jitter_factor', defaults.jitter_factor)),
        max_attempts=int(max_attempts) if max_attempts is not None else None,
    )


def get_request_timeout() -> float:
    """Per-request transport timeout in seconds."""
    return float(get_config('http.timeout', DEFAULT_HTTP_TIMEOUT))


def get_deadline() -> Optional[float]:
    """Optional time limit for a whole retry loop, in seconds."""
    deadline = get_config('retry.deadline')
    return float(deadline) if deadline is not None else None


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
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
