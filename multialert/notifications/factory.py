"""
Notification channel factory.

This module maps channel type tags to adapter classes. Lookups are
case-insensitive, and applications can register their own adapters at
startup.
"""

from typing import Any, Dict, List, Mapping, Optional, Type

import structlog

from multialert.errors import UnknownChannelTypeError
from multialert.notifications.base import NotificationChannel
from multialert.notifications.discord_notification import DiscordNotificationChannel
from multialert.notifications.email_notification import EmailNotificationChannel
from multialert.notifications.mattermost_notification import MattermostNotificationChannel
from multialert.notifications.n8n_notification import N8nNotificationChannel
from multialert.notifications.rocketchat_notification import RocketChatNotificationChannel
from multialert.notifications.slack_notification import SlackNotificationChannel
from multialert.notifications.telegram_notification import TelegramNotificationChannel

logger = structlog.get_logger(__name__)


class NotificationChannelFactory:
    """Factory for creating notification channels."""

    _channels: Dict[str, Type[NotificationChannel]] = {
        "slack": SlackNotificationChannel,
        "discord": DiscordNotificationChannel,
        "telegram": TelegramNotificationChannel,
        "mattermost": MattermostNotificationChannel,
        "n8n": N8nNotificationChannel,
        "rocketchat": RocketChatNotificationChannel,
        "email": EmailNotificationChannel,
    }

    @classmethod
    def get_channel_class(cls, channel_type: str) -> Optional[Type[NotificationChannel]]:
        """Look up the adapter class for a type tag, or None if it is unknown."""
        if not isinstance(channel_type, str):
            return None
        return cls._channels.get(channel_type.strip().lower())

    @classmethod
    def create_channel(cls, channel_type: str, config: Mapping[str, Any]) -> NotificationChannel:
        """
        Create a notification channel instance.

        Args:
            channel_type: Type of channel to create (e.g., 'slack', 'telegram')
            config: Effective configuration for the channel

        Returns:
            NotificationChannel instance

        Raises:
            UnknownChannelTypeError: If channel_type is not registered
            ConfigurationError: If the adapter rejects the config
        """
        channel_class = cls.get_channel_class(channel_type)
        if channel_class is None:
            raise UnknownChannelTypeError(channel_type, cls.get_available_channels())

        return channel_class(config)

    @classmethod
    def get_available_channels(cls) -> List[str]:
        """Get list of available channel types."""
        return list(cls._channels.keys())

    @classmethod
    def register_channel(cls, name: str, channel_class: Type[Any]) -> None:
        """
        Register a new channel type.

        Args:
            name: Type tag of the channel (stored lowercase)
            channel_class: Class taking a config mapping and exposing
                error/info/warn/success coroutines
        """
        cls._channels[name.strip().lower()] = channel_class
        logger.debug("Notification channel registered", channel=name.lower())

    @classmethod
    def unregister_channel(cls, name: str) -> bool:
        """Remove a registered channel type. Returns True if it was registered."""
        return cls._channels.pop(name.strip().lower(), None) is not None
