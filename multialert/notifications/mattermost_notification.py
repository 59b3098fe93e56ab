"""
Mattermost notification channel.

Creates posts through the Mattermost REST API using a bot access token.
"""

from typing import Any, Dict, List, Mapping

from multialert.dispatch.models import AlertKind
from multialert.notifications.base import ChannelConfig, NotificationChannel
from multialert.notifications.formatting import compact_value, iter_fields, kind_emoji

SEPARATOR = '------------------------'


class MattermostConfig(ChannelConfig):
    api_url: str = ""
    token: str = ""
    channel_id: str = ""


class MattermostNotificationChannel(NotificationChannel):
    """Mattermost REST API channel (POST /api/v4/posts)."""

    channel_type = "mattermost"
    display_name = "Mattermost"
    config_model = MattermostConfig
    required_fields = ('api_url', 'token', 'channel_id')

    def _format_message(self, kind: AlertKind, data: Mapping[str, Any]) -> str:
        environment = self.config.environment
        fields = list(iter_fields(data, self.config.specific, include_rest=True))

        if not self.config.beauty:
            lines = [f"{kind_emoji(kind)} Environment: {environment}"]
            lines.extend(f"{key}: `{compact_value(value)}`" for key, _, value, _ in fields)
            return '\n'.join(lines)

        lines: List[str] = [
            SEPARATOR,
            "**[Alert]**",
            f"{kind_emoji(kind)} **Environment:** `{environment}`",
        ]
        lines.extend(f"**{title}:** `{compact_value(value)}`" for _, title, value, _ in fields)

        curl_command = data.get('curl') or data.get('curl_command')
        if curl_command:
            lines.extend(['', '**Curl Command:**', '```bash', str(curl_command), '```'])

        lines.append(SEPARATOR)
        return '\n'.join(lines)

    def build_payload(self, kind: AlertKind, data: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            'channel_id': self.config.channel_id,
            'message': self._format_message(kind, data),
        }

    async def deliver(self, payload: Dict[str, Any], kind: AlertKind) -> Any:
        await self._post_json(
            self.config.api_url,
            payload,
            headers={'Authorization': f'Bearer {self.config.token}'}
        )
        return {'success': True}
