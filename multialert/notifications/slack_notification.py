"""
Slack notification channel.

Posts to a Slack incoming webhook. Rich messages use Block Kit (a header
block plus field sections); plain messages are ``Title: value`` lines.
"""

from typing import Any, Dict, List, Mapping, Optional

import structlog
from pydantic import Field

from multialert.dispatch.models import AlertKind
from multialert.notifications.base import ChannelConfig, NotificationChannel
from multialert.notifications.formatting import (
    detect_nested_target, iter_fields, kind_emoji, plain_lines, print_json
)

logger = structlog.get_logger(__name__)

# Slack rejects section blocks with more than 10 fields
MAX_FIELDS_PER_SECTION = 10


class SlackConfig(ChannelConfig):
    """Slack webhook settings."""
    webhook_url: str = ""
    channel: Optional[str] = None
    channels: Dict[str, Any] = Field(default_factory=dict)
    timeout: float = 5.0


class SlackNotificationChannel(NotificationChannel):
    """
    Slack notification channel.

    Example:
        channel = SlackNotificationChannel({
            'webhook_url': 'https://hooks.slack.com/services/...',
            'channel': '#alerts',
            'environment': 'PRODUCTION'
        })
    """

    channel_type = "slack"
    display_name = "Slack"
    config_model = SlackConfig
    required_fields = ('webhook_url',)

    def _build_blocks(self, kind: AlertKind, data: Mapping[str, Any]) -> List[Dict[str, Any]]:
        environment = data.get('environment') or self.config.environment
        blocks: List[Dict[str, Any]] = [{
            'type': 'header',
            'text': {
                'type': 'plain_text',
                'text': f"{kind_emoji(kind)} {environment} Environment Alert"
            }
        }]

        fields = []
        for _, title, value, hints in iter_fields(data, self.config.specific):
            emoji = hints.get('emoji', '🔹')
            if isinstance(value, (dict, list)):
                blocks.append({
                    'type': 'section',
                    'text': {'type': 'mrkdwn', 'text': f"{emoji} *{title}:*\n```{print_json(value)}```"}
                })
            else:
                markdown = hints.get('markdown', self.config.beauty)
                rendered = f"`{value}`" if markdown else str(value)
                fields.append({'type': 'mrkdwn', 'text': f"{emoji} *{title}:*\n{rendered}"})

        for start in range(0, len(fields), MAX_FIELDS_PER_SECTION):
            blocks.append({'type': 'section', 'fields': fields[start:start + MAX_FIELDS_PER_SECTION]})

        return blocks

    def build_payload(self, kind: AlertKind, data: Mapping[str, Any]) -> Dict[str, Any]:
        if self.config.beauty:
            payload: Dict[str, Any] = {'blocks': self._build_blocks(kind, data)}
        else:
            payload = {'text': '\n'.join(plain_lines(data, self.config.specific))}

        target = self.config.channel or detect_nested_target(
            self.config.channels, self.config.service, kind, self.config.action
        )
        if target:
            payload['channel'] = target

        return payload

    async def deliver(self, payload: Dict[str, Any], kind: AlertKind) -> Any:
        await self._post_json(self.config.webhook_url, payload)
        logger.debug("Slack alert sent", kind=kind.value, channel=payload.get('channel'))
        return {'success': True}
