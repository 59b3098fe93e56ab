"""
Rocket.Chat notification channel (incoming webhook integration).
"""

import json
from typing import Any, Dict, List, Mapping, Optional

from multialert.dispatch.models import AlertKind
from multialert.notifications.base import ChannelConfig, NotificationChannel
from multialert.notifications.formatting import compact_value, kind_emoji

REFERENCE_KEYS = (('booking_id', 'Booking'), ('search_id', 'Search'), ('trace_id', 'Trace'))
SECTION_KEYS = {
    'message', 'error_message', 'error_code', 'user_id', 'user_email',
    'booking_id', 'search_id', 'trace_id', 'supplier', 'error_stack',
}
MAX_ADDITIONAL_FIELDS = 5
MAX_VALUE_LENGTH = 50


class RocketChatConfig(ChannelConfig):
    webhook_url: str = ""
    username: str = "AlertBot"
    channel: Optional[str] = None


class RocketChatNotificationChannel(NotificationChannel):
    """Rocket.Chat channel. Rich messages are grouped into Markdown sections."""

    channel_type = "rocketchat"
    display_name = "Rocket.Chat"
    config_model = RocketChatConfig
    required_fields = ('webhook_url',)

    def _format_message(self, kind: AlertKind, data: Mapping[str, Any]) -> str:
        if not self.config.beauty:
            return json.dumps(dict(data), indent=2, ensure_ascii=False, default=str)

        sections: List[str] = [
            f"{kind_emoji(kind)} **{self.config.environment} Alert** - {self.config.service.upper()}"
        ]

        message = data.get('message') or data.get('error_message')
        if message:
            sections.append(f"**📝 Message:**\n{message}")

        if data.get('error_code'):
            sections.append(f"**❌ Error Code:** `{data['error_code']}`")

        if data.get('user_id') or data.get('user_email'):
            lines = ["**👤 User Information:**"]
            if data.get('user_id'):
                lines.append(f"• ID: `{data['user_id']}`")
            if data.get('user_email'):
                lines.append(f"• Email: {data['user_email']}")
            sections.append('\n'.join(lines))

        references = [(label, data[key]) for key, label in REFERENCE_KEYS if data.get(key)]
        if references:
            sections.append('\n'.join(
                ["**🔍 Reference IDs:**"] + [f"• {label}: `{value}`" for label, value in references]
            ))

        supplier = data.get('supplier')
        if isinstance(supplier, Mapping) and (supplier.get('code') or supplier.get('id')):
            lines = ["**🏢 Supplier:**"]
            if supplier.get('code'):
                lines.append(f"• Code: `{supplier['code']}`")
            if supplier.get('id'):
                lines.append(f"• ID: `{supplier['id']}`")
            sections.append('\n'.join(lines))

        additional = [
            (key, value) for key, value in data.items()
            if key not in SECTION_KEYS and value is not None
        ][:MAX_ADDITIONAL_FIELDS]
        if additional:
            lines = ["**📋 Additional Information:**"]
            for key, value in additional:
                rendered = compact_value(value)
                if len(rendered) > MAX_VALUE_LENGTH:
                    rendered = rendered[:MAX_VALUE_LENGTH] + '...'
                lines.append(f"• {key}: `{rendered}`")
            sections.append('\n'.join(lines))

        if isinstance(data.get('error_stack'), str):
            first_line = data['error_stack'].split('\n')[0]
            sections.append(f"**🐛 Error Stack:**\n```\n{first_line}\n```")

        return '\n\n'.join(sections)

    def build_payload(self, kind: AlertKind, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'text': self._format_message(kind, data),
            'username': self.config.username,
        }
        if self.config.channel:
            payload['channel'] = self.config.channel
        return payload

    async def deliver(self, payload: Dict[str, Any], kind: AlertKind) -> Any:
        response = await self._post_json(self.config.webhook_url, payload)
        return {'success': True, 'response': response}
