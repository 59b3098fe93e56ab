"""
Dispatcher settings loader.

Reads channel descriptors and dispatcher options from a YAML file,
with ``${VAR}`` references resolved from the environment (and .env).
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from multialert.config.resolver import DEFAULT_ENVIRONMENT, DEFAULT_SERVICE
from multialert.errors import ConfigurationError

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_PATH = "configs/alerts.yaml"

_ENV_REFERENCE = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}')
_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


class ChannelSettings(BaseModel):
    """One channel entry of the configuration file."""
    type: str
    config: Dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True


class DispatcherSettings(BaseModel):
    """Dispatcher configuration."""
    channels: List[ChannelSettings] = Field(default_factory=list)
    service: str = DEFAULT_SERVICE
    environment: str = DEFAULT_ENVIRONMENT
    fail_silently: bool = True
    beauty: bool = True
    specific: List[Any] = Field(default_factory=list)
    strict_mode: bool = False
    health_check: bool = False

    def to_descriptors(self) -> List[Dict[str, Any]]:
        """Channel descriptors for the enabled channels, in file order."""
        return [
            {'type': channel.type, 'config': dict(channel.config)}
            for channel in self.channels
            if channel.enabled
        ]


def expand_env_vars(value: Any) -> Any:
    """
    Recursively replace ``${VAR}`` and ``${VAR:-default}`` in string values.

    Unset variables without a default become empty strings.
    """
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(
            lambda match: os.getenv(match.group(1), match.group(2) or ''),
            value
        )
    if isinstance(value, dict):
        return {key: expand_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def _parse_bool(name: str, value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean value for {name}: {value}")


def _apply_env_overrides(settings_data: Dict[str, Any]) -> None:
    service = os.getenv("MULTIALERT_SERVICE")
    if service:
        settings_data['service'] = service

    environment = os.getenv("MULTIALERT_ENVIRONMENT")
    if environment:
        settings_data['environment'] = environment

    for key, env_name in (('fail_silently', "MULTIALERT_FAIL_SILENTLY"),
                          ('strict_mode', "MULTIALERT_STRICT_MODE")):
        value = os.getenv(env_name)
        if value:
            settings_data[key] = _parse_bool(env_name, value)


def load_dispatcher_config(config_path: Optional[Union[str, Path]] = None) -> DispatcherSettings:
    """
    Load dispatcher settings from a YAML file and the environment.

    Args:
        config_path: Path to the YAML file. Defaults to $MULTIALERT_CONFIG
            or configs/alerts.yaml

    Returns:
        DispatcherSettings instance

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigurationError: If the file content is invalid
    """

    # Load .env file if it exists
    load_dotenv()

    if config_path is None:
        config_path = os.getenv("MULTIALERT_CONFIG", DEFAULT_CONFIG_PATH)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, 'r') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration in {config_path} must be a mapping")

    # Settings may sit at the top level or under an 'alerts' section
    settings_data = expand_env_vars(raw.get('alerts', raw))
    if not isinstance(settings_data, dict):
        raise ConfigurationError(f"'alerts' section in {config_path} must be a mapping")

    _apply_env_overrides(settings_data)

    try:
        settings = DispatcherSettings(**settings_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid dispatcher configuration: {e}") from e

    logger.info("Dispatcher configuration loaded",
                config_path=str(config_file),
                channels=len(settings.to_descriptors()))
    return settings
