"""
Notification channels for the multialert dispatcher.

Provides notification delivery via multiple channels:
- Slack, Discord and Rocket.Chat incoming webhooks
- Telegram bot notifications
- Mattermost posts through the REST API
- n8n workflow webhooks
- Email notifications via an HTTP mail API
"""

from .base import ChannelConfig, NotificationChannel
from .discord_notification import DiscordNotificationChannel
from .email_notification import EmailNotificationChannel
from .factory import NotificationChannelFactory
from .mattermost_notification import MattermostNotificationChannel
from .n8n_notification import N8nNotificationChannel
from .rocketchat_notification import RocketChatNotificationChannel
from .slack_notification import SlackNotificationChannel
from .telegram_notification import TelegramNotificationChannel

__all__ = [
    'ChannelConfig',
    'NotificationChannel',
    'NotificationChannelFactory',
    'DiscordNotificationChannel',
    'EmailNotificationChannel',
    'MattermostNotificationChannel',
    'N8nNotificationChannel',
    'RocketChatNotificationChannel',
    'SlackNotificationChannel',
    'TelegramNotificationChannel'
]
