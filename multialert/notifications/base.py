"""
Abstract base class for notification channels.

Every channel adapter turns an alert event into its service's wire
format (build_payload) and delivers it with one HTTP call (deliver).
The dispatcher only relies on the send/error/info/warn/success methods
defined here.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

import aiohttp
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from multialert.config.resolver import DEFAULT_ENVIRONMENT, DEFAULT_SERVICE, normalize_keys
from multialert.dispatch.filtering import filter_data_by_specific
from multialert.dispatch.models import AlertKind
from multialert.errors import ConfigurationError, DeliveryError

logger = structlog.get_logger(__name__)


class ChannelConfig(BaseModel):
    """Settings shared by every channel. Adapters extend this with their own fields."""
    model_config = ConfigDict(extra='ignore', frozen=True)

    service: str = DEFAULT_SERVICE
    environment: str = DEFAULT_ENVIRONMENT
    beauty: bool = True
    specific: List[Any] = Field(default_factory=list)
    strict_mode: bool = False
    action: str = 'all'
    timeout: float = 10.0  # seconds


class NotificationChannel(ABC):
    """
    Base class for all notification channels.

    Subclasses set ``channel_type``, ``config_model`` and
    ``required_fields``, and implement build_payload() and deliver().

    Usage:
        channel = SlackNotificationChannel({'webhook_url': 'https://hooks.slack.com/...'})
        await channel.error({'message': 'Payment failed'})
    """

    channel_type: str = ""
    display_name: str = "Notification"
    config_model: Type[ChannelConfig] = ChannelConfig
    required_fields: Tuple[str, ...] = ()

    def __init__(self, config: Optional[Mapping[str, Any]] = None):
        """
        Initialize the channel.

        Args:
            config: Effective channel configuration (camelCase or snake_case keys)

        Raises:
            ConfigurationError: If the config is missing or lacks a required field
        """
        if config is None:
            raise ConfigurationError(f"{self.display_name} configuration is required")

        self.config = self._build_config(normalize_keys(config))

        logger.debug("Notification channel initialized",
                     channel=self.channel_type,
                     service=self.config.service,
                     environment=self.config.environment)

    def _build_config(self, values: Dict[str, Any]) -> ChannelConfig:
        try:
            config = self.config_model(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {self.display_name} configuration: {e}") from e

        self._validate_config(config)
        return config

    def _validate_config(self, config: ChannelConfig) -> None:
        """Check required fields. Subclasses with either/or requirements override this."""
        for name in self.required_fields:
            if not getattr(config, name, None):
                raise ConfigurationError(f"{self.display_name} {name} is required")

    def update_config(self, **changes: Any) -> None:
        """
        Replace the channel configuration with a copy carrying ``changes``.

        The new config is validated first and swapped in as a whole, so
        in-flight sends keep the snapshot they started with.
        """
        values = self.config.model_dump()
        values.update(normalize_keys(changes))
        self.config = self._build_config(values)

    def get_config(self) -> Dict[str, Any]:
        """Return a copy of the current configuration."""
        return self.config.model_dump()

    @abstractmethod
    def build_payload(self, kind: AlertKind, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Format an event into the service's wire message.

        Args:
            kind: Alert kind
            data: Event payload, already filtered

        Returns:
            JSON-serializable wire message
        """
        pass

    @abstractmethod
    async def deliver(self, payload: Dict[str, Any], kind: AlertKind) -> Any:
        """
        Deliver a wire message.

        Returns:
            Service response on success

        Raises:
            DeliveryError: If delivery fails
        """
        pass

    async def send(self, kind: Any, data: Mapping[str, Any]) -> Any:
        """
        Format and deliver an alert.

        Args:
            kind: AlertKind or its string name
            data: Event payload

        Returns:
            Service response on success

        Raises:
            DeliveryError: If delivery fails
        """
        if data is None:
            raise DeliveryError("data is required", channel=self.channel_type)

        kind = AlertKind.parse(kind)
        config = self.config
        filtered = filter_data_by_specific(data, config.specific, config.strict_mode)
        payload = self.build_payload(kind, filtered)
        return await self.deliver(payload, kind)

    async def error(self, data: Mapping[str, Any]) -> Any:
        return await self.send(AlertKind.ERROR, data)

    async def info(self, data: Mapping[str, Any]) -> Any:
        return await self.send(AlertKind.INFO, data)

    async def warn(self, data: Mapping[str, Any]) -> Any:
        return await self.send(AlertKind.WARN, data)

    async def success(self, data: Mapping[str, Any]) -> Any:
        return await self.send(AlertKind.SUCCESS, data)

    async def _post_json(self,
                         url: str,
                         payload: Any,
                         headers: Optional[Dict[str, str]] = None) -> Any:
        """
        POST a JSON body and return the parsed response.

        Raises:
            DeliveryError: On transport errors, timeouts and HTTP status >= 400
        """
        request_headers = {'Content-Type': 'application/json'}
        request_headers.update(headers or {})
        timeout = self.config.timeout

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    url,
                    json=payload,
                    headers=request_headers,
                    timeout=aiohttp.ClientTimeout(total=timeout)
                ) as response:
                    body = await self._read_body(response)
                    if response.status >= 400:
                        reason = self._describe_error(body) or f"Request failed with status {response.status}"
                        raise DeliveryError(
                            f"Failed to send {self.display_name} message: {reason}",
                            channel=self.channel_type,
                            status_code=response.status,
                            response=body
                        )
                    return body

        except asyncio.TimeoutError as e:
            raise DeliveryError(
                f"Failed to send {self.display_name} message: request timeout after {timeout}s",
                channel=self.channel_type
            ) from e
        except aiohttp.ClientError as e:
            raise DeliveryError(
                f"Failed to send {self.display_name} message: {e}",
                channel=self.channel_type
            ) from e

    @staticmethod
    async def _read_body(response: Any) -> Any:
        text = await response.text()
        if not isinstance(text, str) or not text:
            return text
        try:
            return json.loads(text)
        except ValueError:
            return text

    @staticmethod
    def _describe_error(body: Any) -> Optional[str]:
        """Pull the most useful error text out of a service response."""
        if isinstance(body, dict):
            for key in ('description', 'error', 'message'):
                if body.get(key):
                    return str(body[key])
            return None
        if isinstance(body, str) and body.strip():
            return body.strip()
        return None
