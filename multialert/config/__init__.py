"""
Configuration for multialert: layered channel config resolution and
the YAML/environment settings loader.
"""

from .resolver import (
    DEFAULT_ENVIRONMENT, DEFAULT_GLOBALS, DEFAULT_SERVICE,
    build_global_defaults, normalize_key, normalize_keys, resolve_channel_config
)
from .settings import ChannelSettings, DispatcherSettings, load_dispatcher_config

__all__ = [
    'DEFAULT_ENVIRONMENT',
    'DEFAULT_GLOBALS',
    'DEFAULT_SERVICE',
    'ChannelSettings',
    'DispatcherSettings',
    'build_global_defaults',
    'load_dispatcher_config',
    'normalize_key',
    'normalize_keys',
    'resolve_channel_config'
]
