"""
Exception hierarchy for the multialert package.

All errors raised by the library derive from MultiAlertError so callers
can catch them with a single except clause.
"""

from typing import Any, Optional


class MultiAlertError(Exception):
    """Base class for all multialert errors."""


class ConfigurationError(MultiAlertError, ValueError):
    """A channel or dispatcher is missing a required setting or has an invalid one."""


class UnknownChannelTypeError(ConfigurationError):
    """A channel descriptor names a type that no adapter is registered for."""

    def __init__(self, channel_type: str, available: Optional[list] = None):
        self.channel_type = channel_type
        self.available = list(available or [])
        message = f"Unknown channel type: {channel_type}"
        if self.available:
            message += f". Available: {', '.join(self.available)}"
        super().__init__(message)


class DeliveryError(MultiAlertError):
    """
    An adapter failed to deliver a message.

    Attributes:
        channel: Type tag of the channel that failed
        status_code: HTTP status returned by the service, if any
        response: Parsed response body, if any
    """

    def __init__(self,
                 message: str,
                 channel: Optional[str] = None,
                 status_code: Optional[int] = None,
                 response: Any = None):
        super().__init__(message)
        self.channel = channel
        self.status_code = status_code
        self.response = response


class AggregateDispatchError(MultiAlertError):
    """
    Raised after a fan-out when at least one channel failed and
    fail-silently is disabled. The full report is attached.
    """

    def __init__(self, message: str, report: Any):
        super().__init__(message)
        self.report = report
