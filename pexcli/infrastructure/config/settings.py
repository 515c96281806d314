"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and the
credential file (`$XDG_CONFIG_HOME/pexels/config.yaml`). Per-invocation
options (host, timeout, retries, locale) are captured once in an immutable
`ClientConfig` and never change during a logical operation.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

from pexcli.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
APP_NAME = "pexels"
CONFIG_FILE_NAME = "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "PEXELS_"
TOKEN_ENV_VARS: Tuple[str, ...] = ("PEXELS_TOKEN", "PEXELS_API_KEY")
PERSISTED_KEYS: Tuple[str, ...] = ("token", "token_source")
CONFIG_FILE_MODE = 0o600

DEFAULT_HOST = "https://api.pexels.com"
DEFAULT_TIMEOUT_SECS = 15.0
DEFAULT_MAX_RETRIES = 3

TOKEN_SOURCE_ENV = "env"
TOKEN_SOURCE_CONFIG = "config"
TOKEN_SOURCE_CLI = "cli"
TOKEN_SOURCE_NONE = "none"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


def config_dir() -> Path:
    """Per-user configuration directory, honoring XDG_CONFIG_HOME."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def config_path() -> Path:
    """Path of the YAML credential/config file."""
    return config_dir() / CONFIG_FILE_NAME


def load_configuration(config_file: Optional[Path] = None, env_file: Optional[Path] = None) -> None:
    """Loads configuration from the YAML file and a .env file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file

    Args:
        config_file: Path to the YAML configuration file (defaults to `config_path()`).
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}
    config_file = config_file or config_path()

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (override=False: real env vars take precedence)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    _loaded = True
    logger.debug("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded configuration so the next load re-reads the sources."""
    global _config, _loaded
    _config = {}
    _loaded = False


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (PEXELS_<KEY>)
    3. YAML config
    4. Default value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = ENV_PREFIX + key.upper().replace('.', '_')
    value = os.environ.get(env_key)
    if value:
        return value

    if key in _config:
        return _config[key]

    return default


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value in memory; see `save_configuration`."""
    logger.debug(f"Setting config key: {key}")
    if value is None:
        _config.pop(key, None)
    else:
        _config[key] = value


def save_configuration(config_file: Optional[Path] = None) -> Path:
    """Writes the persisted keys to the YAML file with owner-only permissions."""
    path = config_file or config_path()
    data = {key: _config[key] for key in PERSISTED_KEYS if _config.get(key) is not None}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False)
        os.chmod(path, CONFIG_FILE_MODE)
    except OSError as e:
        logger.error(f"Failed to write config file {path}: {e}")
        raise ConfigurationError(f"cannot write config file {path}: {e}") from e
    logger.info(f"Saved configuration to {path}")
    return path


@dataclass(frozen=True)
class TokenInfo:
    """Where the API token came from."""
    token: Optional[str]
    source: str
    env_var: Optional[str] = None

    @property
    def present(self) -> bool:
        return bool(self.token)


def resolve_token() -> TokenInfo:
    """Resolves the API token: env vars first, then the config file."""
    if "token" in _test_config:
        token = _test_config["token"]
        return TokenInfo(token=token, source=_test_config.get("token_source", TOKEN_SOURCE_CONFIG))
    for var in TOKEN_ENV_VARS:
        value = os.environ.get(var)
        if value:
            return TokenInfo(token=value, source=TOKEN_SOURCE_ENV, env_var=var)
    token = _config.get("token")
    if token:
        return TokenInfo(token=str(token), source=str(_config.get("token_source") or TOKEN_SOURCE_CONFIG))
    return TokenInfo(token=None, source=TOKEN_SOURCE_NONE)


@dataclass(frozen=True)
class ClientConfig:
    """Immutable options captured at the start of a logical operation."""
    token: Optional[str] = None
    token_source: str = TOKEN_SOURCE_NONE
    host: str = DEFAULT_HOST
    timeout_secs: float = DEFAULT_TIMEOUT_SECS
    locale: Optional[str] = None
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_after: Optional[float] = None


def build_client_config(
    host: Optional[str] = None,
    timeout_secs: Optional[float] = None,
    locale: Optional[str] = None,
    max_retries: Optional[int] = None,
    retry_after: Optional[float] = None,
) -> ClientConfig:
    """Combines resolved credentials with per-invocation options."""
    token_info = resolve_token()
    return ClientConfig(
        token=token_info.token,
        token_source=token_info.source,
        host=(host or get_config('host') or DEFAULT_HOST).rstrip('/'),
        timeout_secs=DEFAULT_TIMEOUT_SECS if timeout_secs is None else float(timeout_secs),
        locale=locale or get_config('locale'),
        max_retries=DEFAULT_MAX_RETRIES if max_retries is None else int(max_retries),
        retry_after=retry_after,
    )


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration keys: {sorted(config_dict)}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
