"""
Multi-channel alert dispatcher.

Fans one alert out to every configured notification channel at once:
- Channel configs inherit from dispatcher-wide defaults
- Optional strict-mode filtering of the alert fields per channel
- Every channel settles before a report is built; one failure never
  cancels the others
- Optional health check message after initialization
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import structlog
from prometheus_client import CollectorRegistry, Counter, Histogram

from multialert.config.resolver import (
    DEFAULT_ENVIRONMENT, DEFAULT_SERVICE, build_global_defaults, resolve_channel_config
)
from multialert.config.settings import DispatcherSettings, load_dispatcher_config
from multialert.dispatch.filtering import filter_data_by_specific
from multialert.dispatch.models import AggregateReport, AlertKind, DispatchResult
from multialert.errors import AggregateDispatchError, ConfigurationError
from multialert.notifications.factory import NotificationChannelFactory

logger = structlog.get_logger(__name__)

HEALTH_CHECK_MESSAGE = "✅ Alert dispatcher health check"


@dataclass(frozen=True)
class RegisteredChannel:
    """A constructed channel together with the effective config it was built from."""
    type: str
    instance: Any
    config: Mapping[str, Any]


class AlertDispatcher:
    """
    Sends alerts to multiple channels simultaneously.

    Example:
        dispatcher = AlertDispatcher(
            channels=[
                {'type': 'telegram', 'config': {'bot_token': '...', 'chat_id': '...'}},
                {'type': 'slack', 'config': {'webhookUrl': 'https://hooks.slack.com/...'}}
            ],
            service='hotel',
            environment='PRODUCTION'
        )

        report = await dispatcher.error({'error_code': 'PAYMENT_FAILED', 'message': 'Payment failed'})
        print(report.summary.successful, report.summary.failed)
    """

    def __init__(self,
                 channels: Optional[List[Mapping[str, Any]]] = None,
                 service: str = DEFAULT_SERVICE,
                 environment: str = DEFAULT_ENVIRONMENT,
                 fail_silently: bool = True,
                 beauty: bool = True,
                 specific: Optional[List[Any]] = None,
                 strict_mode: bool = False,
                 health_check: bool = False,
                 registry: Optional[CollectorRegistry] = None):
        """
        Initialize the dispatcher.

        Args:
            channels: Channel descriptors, each ``{'type': ..., 'config': {...}}``
            service: Service name passed down to every channel
            environment: Environment name passed down to every channel
            fail_silently: Capture channel failures in the report instead of raising
            beauty: Default rich formatting setting for every channel
            specific: Default field allow-list for every channel
            strict_mode: Only deliver allow-listed fields
            health_check: Send a health check message after initialization
            registry: Prometheus registry for dispatch metrics

        Raises:
            Exception: A channel constructor error, when fail_silently is False
        """
        self.service = service
        self.environment = environment
        self.fail_silently = fail_silently
        self.strict_mode = strict_mode
        self.specific: List[Any] = list(specific or [])
        self.global_defaults = build_global_defaults(
            service=service,
            environment=environment,
            beauty=beauty,
            specific=self.specific,
            strict_mode=strict_mode
        )

        self.registry = registry if registry is not None else CollectorRegistry()
        self._initialize_metrics()

        self._channels: List[RegisteredChannel] = []
        for index, descriptor in enumerate(channels or []):
            self._add_descriptor(descriptor, index)

        logger.info("Alert dispatcher initialized",
                    service=service,
                    environment=environment,
                    channels=len(self._channels))

        self.health_check_task: Optional[asyncio.Task] = None
        if health_check:
            self._schedule_health_check()

    def _initialize_metrics(self) -> None:
        """Initialize Prometheus metrics for dispatching."""

        self.dispatch_total = Counter(
            'alert_dispatch_total',
            'Total number of fan-out dispatches',
            ['kind'],
            registry=self.registry
        )

        self.channel_deliveries = Counter(
            'alert_channel_deliveries_total',
            'Total channel deliveries',
            ['channel', 'kind', 'status'],
            registry=self.registry
        )

        self.channel_delivery_duration = Histogram(
            'alert_channel_delivery_duration_seconds',
            'Time spent delivering to a channel',
            ['channel', 'kind'],
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
            registry=self.registry
        )

        self.channel_errors = Counter(
            'alert_channel_errors_total',
            'Total channel delivery errors',
            ['channel', 'error_type'],
            registry=self.registry
        )

    def _add_descriptor(self, descriptor: Mapping[str, Any], index: Optional[int] = None) -> bool:
        """
        Build and register the channel for one descriptor.

        Returns:
            True if the channel was registered, False if it was skipped
        """
        channel_type = descriptor.get('type') if isinstance(descriptor, Mapping) else None
        if not channel_type:
            logger.warning("Channel descriptor missing type, skipping", index=index)
            return False

        channel_class = NotificationChannelFactory.get_channel_class(channel_type)
        if channel_class is None:
            logger.warning("Unknown channel type, skipping",
                           channel=channel_type,
                           index=index,
                           available=NotificationChannelFactory.get_available_channels())
            return False

        try:
            channel_config = descriptor.get('config')
            if channel_config is not None and not isinstance(channel_config, Mapping):
                raise ConfigurationError(f"Channel config must be a mapping, got {type(channel_config).__name__}")
            config = resolve_channel_config(self.global_defaults, channel_config or {})
            instance = channel_class(config)
        except Exception as e:
            if not self.fail_silently:
                raise
            logger.error("Failed to initialize channel",
                         channel=channel_type,
                         index=index,
                         error=str(e))
            return False

        # The list is replaced, never mutated; dispatches iterate a snapshot
        self._channels = self._channels + [
            RegisteredChannel(type=channel_type.strip().lower(), instance=instance, config=config)
        ]
        return True

    def _schedule_health_check(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, health check skipped")
            return

        self.health_check_task = loop.create_task(self.run_health_check())
        self.health_check_task.add_done_callback(self._on_health_check_done)

    @staticmethod
    def _on_health_check_done(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("Health check cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error("Health check failed", error=str(error))
            return
        summary = task.result().summary
        logger.info("Health check completed",
                    successful=summary.successful,
                    total=summary.total)

    def _channel_specific(self, channel: RegisteredChannel) -> List[Any]:
        specific = channel.config.get('specific')
        return specific if specific is not None else self.specific

    async def _send_to_channel(self, channel: RegisteredChannel, kind: AlertKind, data: Mapping[str, Any]) -> Any:
        filtered = filter_data_by_specific(data, self._channel_specific(channel), self.strict_mode)
        start_time = time.time()

        try:
            result = await getattr(channel.instance, kind.value)(filtered)
        except Exception as e:
            self.channel_deliveries.labels(channel=channel.type, kind=kind.value, status='failed').inc()
            self.channel_errors.labels(channel=channel.type, error_type=type(e).__name__).inc()
            logger.error("Failed to send alert to channel",
                         channel=channel.type,
                         kind=kind.value,
                         error=str(e))
            raise
        finally:
            duration = time.time() - start_time
            self.channel_delivery_duration.labels(channel=channel.type, kind=kind.value).observe(duration)

        self.channel_deliveries.labels(channel=channel.type, kind=kind.value, status='success').inc()
        return result

    async def dispatch(self, kind: Union[AlertKind, str], data: Mapping[str, Any]) -> AggregateReport:
        """
        Send one alert to every registered channel concurrently.

        Args:
            kind: Alert kind (``error``, ``info``, ``warn`` or ``success``)
            data: Alert fields; never mutated

        Returns:
            AggregateReport with one result per channel, in channel order

        Raises:
            ValueError: If data is None or kind is unknown
            AggregateDispatchError: If a channel failed and fail_silently is False
        """
        if data is None:
            raise ValueError("Alert data is required")

        kind = AlertKind.parse(kind)
        channels = self._channels
        self.dispatch_total.labels(kind=kind.value).inc()

        outcomes = await asyncio.gather(
            *(self._send_to_channel(channel, kind, data) for channel in channels),
            return_exceptions=True
        )

        report = AggregateReport(kind=kind)
        for channel, outcome in zip(channels, outcomes):
            if isinstance(outcome, BaseException):
                report.results.append(DispatchResult(
                    type=channel.type,
                    success=False,
                    error=str(outcome) or type(outcome).__name__
                ))
            else:
                report.results.append(DispatchResult(type=channel.type, success=True, result=outcome))

        summary = report.summary
        logger.info("Alert dispatched",
                    kind=kind.value,
                    successful=summary.successful,
                    failed=summary.failed)

        if summary.failed and not self.fail_silently:
            raise AggregateDispatchError(
                f"{summary.failed} of {summary.total} channels failed to send {kind.value}",
                report
            )

        return report

    async def error(self, data: Mapping[str, Any]) -> AggregateReport:
        return await self.dispatch(AlertKind.ERROR, data)

    async def info(self, data: Mapping[str, Any]) -> AggregateReport:
        return await self.dispatch(AlertKind.INFO, data)

    async def warn(self, data: Mapping[str, Any]) -> AggregateReport:
        return await self.dispatch(AlertKind.WARN, data)

    async def success(self, data: Mapping[str, Any]) -> AggregateReport:
        return await self.dispatch(AlertKind.SUCCESS, data)

    async def run_health_check(self) -> AggregateReport:
        """Send a health check message to every channel as an info alert."""
        health_data = {
            'message': HEALTH_CHECK_MESSAGE,
            'status': 'HEALTHY',
            'service': self.service,
            'environment': self.environment,
            'channels_count': len(self._channels),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'health_check': True,
        }
        return await self.dispatch(AlertKind.INFO, health_data)

    def get_channels(self) -> List[Dict[str, Any]]:
        """Describe the registered channels without exposing their secrets."""
        return [
            {
                'type': channel.type,
                'service': channel.config.get('service'),
                'environment': channel.config.get('environment'),
            }
            for channel in self._channels
        ]

    def get_channel_count(self) -> int:
        return len(self._channels)

    def has_channel(self, channel_type: str) -> bool:
        wanted = channel_type.strip().lower()
        return any(channel.type == wanted for channel in self._channels)

    def add_channel(self, descriptor: Mapping[str, Any]) -> int:
        """
        Register one more channel.

        Returns:
            Channel count after the addition
        """
        self._add_descriptor(descriptor)
        return len(self._channels)

    def remove_channel(self, channel_type: str) -> int:
        """
        Remove every channel of a type.

        Returns:
            Number of channels removed
        """
        wanted = channel_type.strip().lower()
        remaining = [channel for channel in self._channels if channel.type != wanted]
        removed = len(self._channels) - len(remaining)
        self._channels = remaining

        if removed:
            logger.info("Channels removed", channel=wanted, removed=removed)
        return removed

    @classmethod
    def from_settings(cls,
                      settings: DispatcherSettings,
                      registry: Optional[CollectorRegistry] = None) -> 'AlertDispatcher':
        """Create a dispatcher from a DispatcherSettings model."""
        return cls(
            channels=settings.to_descriptors(),
            service=settings.service,
            environment=settings.environment,
            fail_silently=settings.fail_silently,
            beauty=settings.beauty,
            specific=settings.specific,
            strict_mode=settings.strict_mode,
            health_check=settings.health_check,
            registry=registry
        )

    @classmethod
    def from_config_file(cls,
                         config_path: Optional[Union[str, Path]] = None,
                         registry: Optional[CollectorRegistry] = None) -> 'AlertDispatcher':
        """
        Create a dispatcher from a YAML configuration file.

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ConfigurationError: If the file content is invalid
        """
        return cls.from_settings(load_dispatcher_config(config_path), registry=registry)
