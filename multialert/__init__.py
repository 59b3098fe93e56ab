"""
multialert - Multi-channel alert dispatch.

This package formats structured alert events and delivers them to Slack,
Discord, Telegram, Mattermost, n8n, Rocket.Chat and email concurrently,
reporting which channels succeeded.
"""

from multialert.dispatch.dispatcher import AlertDispatcher
from multialert.dispatch.models import AggregateReport, AlertKind, DispatchResult
from multialert.errors import (
    AggregateDispatchError, ConfigurationError, DeliveryError, MultiAlertError, UnknownChannelTypeError
)

__version__ = "0.1.0"
__author__ = "Taamir Ransome"
__email__ = "taamir@example.com"

__all__ = [
    'AlertDispatcher',
    'AggregateReport',
    'AlertKind',
    'DispatchResult',
    'AggregateDispatchError',
    'ConfigurationError',
    'DeliveryError',
    'MultiAlertError',
    'UnknownChannelTypeError'
]
