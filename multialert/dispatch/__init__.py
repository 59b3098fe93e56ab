"""
Fan-out dispatch of alerts to many notification channels.

The engine itself lives in ``multialert.dispatch.dispatcher``; it is not
imported here because the channel adapters depend on the filtering and
model modules of this package.
"""

from .filtering import filter_data_by_specific, get_field_names, validate_specific_config
from .models import AggregateReport, AlertKind, DispatchResult, DispatchSummary

__all__ = [
    'AggregateReport',
    'AlertKind',
    'DispatchResult',
    'DispatchSummary',
    'filter_data_by_specific',
    'get_field_names',
    'validate_specific_config'
]
