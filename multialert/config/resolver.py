"""
Layered configuration resolution for alert channels.

Effective channel configuration is built from three layers, highest
precedence first:

    1. The channel's own config
    2. Global defaults passed to the dispatcher
    3. Hard-coded defaults (DEFAULT_GLOBALS)
"""

import re
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

DEFAULT_SERVICE = "hotel"
DEFAULT_ENVIRONMENT = "STAGING"

DEFAULT_GLOBALS: Dict[str, Any] = {
    'service': DEFAULT_SERVICE,
    'environment': DEFAULT_ENVIRONMENT,
    'beauty': True,
    'specific': [],
    'strict_mode': False,
}

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')


def normalize_key(key: str) -> str:
    """Convert a camelCase key to snake_case (``webhookUrl`` -> ``webhook_url``)."""
    if not isinstance(key, str):
        return key
    return _CAMEL_BOUNDARY.sub('_', key).lower()


def normalize_keys(config: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return a new dict with top-level keys normalized. Values are left untouched."""
    if not config:
        return {}
    return {normalize_key(key): value for key, value in config.items()}


def build_global_defaults(service: Optional[str] = None,
                          environment: Optional[str] = None,
                          beauty: Optional[bool] = None,
                          specific: Optional[List[Any]] = None,
                          strict_mode: Optional[bool] = None) -> Mapping[str, Any]:
    """
    Build the global defaults layer, falling back to DEFAULT_GLOBALS
    for anything not provided.

    Returns:
        Read-only mapping of global defaults
    """
    overrides = {
        'service': service,
        'environment': environment,
        'beauty': beauty,
        'specific': list(specific) if specific is not None else None,
        'strict_mode': strict_mode,
    }
    merged = dict(DEFAULT_GLOBALS)
    merged['specific'] = []
    merged.update({key: value for key, value in overrides.items() if value is not None})
    return MappingProxyType(merged)


def resolve_channel_config(global_defaults: Optional[Mapping[str, Any]],
                           channel_config: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """
    Merge a channel's config over the global defaults.

    Channel keys win on conflict; every other channel-specific key
    (webhook URL, bot token, ...) passes through untouched. Neither
    input is mutated.

    Args:
        global_defaults: Dispatcher-wide defaults
        channel_config: Adapter-specific configuration

    Returns:
        Read-only effective configuration
    """
    merged = normalize_keys(global_defaults)
    merged.update(normalize_keys(channel_config))
    return MappingProxyType(merged)
