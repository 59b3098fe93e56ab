"""
Discord notification channel.

Posts to a Discord webhook: an embed colored by alert kind in rich
mode, a plain ``content`` message otherwise.
"""

from typing import Any, Dict, Mapping

from multialert.dispatch.models import AlertKind
from multialert.notifications.base import ChannelConfig, NotificationChannel
from multialert.notifications.formatting import (
    DEFAULT_COLOR, KIND_COLORS, compact_value, iter_fields, kind_emoji, utc_timestamp
)

# Discord caps embeds at 25 fields
MAX_EMBED_FIELDS = 25


class DiscordConfig(ChannelConfig):
    webhook_url: str = ""
    username: str = ""
    timeout: float = 5.0


class DiscordNotificationChannel(NotificationChannel):
    """Discord webhook channel."""

    channel_type = "discord"
    display_name = "Discord"
    config_model = DiscordConfig
    required_fields = ('webhook_url',)

    def build_payload(self, kind: AlertKind, data: Mapping[str, Any]) -> Dict[str, Any]:
        environment = self.config.environment
        specific = self.config.specific

        if not self.config.beauty:
            lines = [f"{kind_emoji(kind)} Environment: {environment}"]
            lines.extend(f"{key}: {compact_value(value)}"
                         for key, _, value, _ in iter_fields(data, specific, include_rest=True))
            payload: Dict[str, Any] = {'content': '\n'.join(lines)}
        else:
            embed: Dict[str, Any] = {
                'title': f"{kind_emoji(kind)} {environment} Environment Alert",
                'color': KIND_COLORS.get(kind, DEFAULT_COLOR),
                'timestamp': utc_timestamp(),
                'fields': [
                    {'name': title, 'value': f"`{compact_value(value)}`", 'inline': True}
                    for _, title, value, _ in iter_fields(data, specific, include_rest=True)
                ][:MAX_EMBED_FIELDS],
            }
            description = data.get('message') or data.get('error_message')
            if description:
                embed['description'] = f"📝 **Message:**\n```{description}```"
            payload = {'embeds': [embed]}

        if self.config.username:
            payload['username'] = self.config.username
        return payload

    async def deliver(self, payload: Dict[str, Any], kind: AlertKind) -> Any:
        await self._post_json(self.config.webhook_url, payload)
        return {'success': True}
