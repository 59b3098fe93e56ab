"""
Telegram notification channel.

Sends alerts through the Telegram Bot API with:
- Markdown formatting with emojis in rich mode
- Forum topic routing via nested message thread IDs
- Silent delivery support
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Union

import aiohttp
import structlog
from pydantic import Field

from multialert.dispatch.models import AlertKind
from multialert.errors import DeliveryError
from multialert.notifications.base import ChannelConfig, NotificationChannel
from multialert.notifications.formatting import (
    detect_nested_target, display_value, escape_markdown, iter_fields, plain_lines
)

logger = structlog.get_logger(__name__)

TELEGRAM_API_BASE_URL = "https://api.telegram.org/bot"


class TelegramConfig(ChannelConfig):
    """Telegram bot settings."""
    bot_token: str = ""
    chat_id: Union[str, int] = ""
    message_thread_ids: Dict[str, Any] = Field(default_factory=dict)
    disable_notification: bool = False
    api_base_url: str = TELEGRAM_API_BASE_URL


class TelegramNotificationChannel(NotificationChannel):
    """
    Telegram notification channel.

    Example:
        channel = TelegramNotificationChannel({
            'bot_token': '123456:ABC-DEF...',
            'chat_id': '-100123456789',
            'message_thread_ids': {'hotel': {'error': {'all': 12}}, 'general': 1}
        })
    """

    channel_type = "telegram"
    display_name = "Telegram"
    config_model = TelegramConfig
    required_fields = ('bot_token', 'chat_id')

    @property
    def api_url(self) -> str:
        return f"{self.config.api_base_url}{self.config.bot_token}/sendMessage"

    def _format_rich_message(self, data: Mapping[str, Any]) -> str:
        specific = self.config.specific
        lines: List[str] = []

        for key, title, value, hints in iter_fields(data, specific):
            rendered = display_value(key, value)

            if specific:
                # Configured fields: bold title over a code block, or plain text
                if hints.get('markdown', True):
                    lines.extend([f"*{escape_markdown(title)}:*", "```", rendered, "```"])
                else:
                    lines.append(f"{title}: {rendered}")
            elif isinstance(value, (dict, list)):
                lines.extend([f"📋 *{escape_markdown(title)}*:", "```json", rendered, "```"])
            else:
                lines.append(f"📝 *{escape_markdown(title)}*: `{escape_markdown(rendered)}`")

        return '\n'.join(lines)

    def build_payload(self, kind: AlertKind, data: Mapping[str, Any]) -> Dict[str, Any]:
        if self.config.beauty:
            text = self._format_rich_message(data)
        else:
            text = '\n'.join(plain_lines(data, self.config.specific))

        payload: Dict[str, Any] = {
            'chat_id': self.config.chat_id,
            'text': text,
            'disable_notification': self.config.disable_notification,
        }

        thread_id = detect_nested_target(
            self.config.message_thread_ids, self.config.service, kind, self.config.action
        )
        if thread_id is not None:
            payload['message_thread_id'] = thread_id

        if self.config.beauty:
            payload['parse_mode'] = 'Markdown'

        return payload

    async def deliver(self, payload: Dict[str, Any], kind: AlertKind) -> Any:
        response_data = await self._post_json(self.api_url, payload)

        if isinstance(response_data, dict) and response_data.get('ok') is False:
            raise DeliveryError(
                f"Failed to send Telegram message: {response_data.get('description', 'unknown error')}",
                channel=self.channel_type,
                response=response_data
            )

        logger.debug("Telegram alert sent",
                     kind=kind.value,
                     thread_id=payload.get('message_thread_id'))
        return response_data

    async def get_bot_info(self) -> Optional[Dict[str, Any]]:
        """
        Get bot information to verify the token.

        Returns:
            Bot information dictionary or None if the lookup failed
        """
        info_url = f"{self.config.api_base_url}{self.config.bot_token}/getMe"

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    info_url,
                    timeout=aiohttp.ClientTimeout(total=self.config.timeout)
                ) as response:
                    if response.status != 200:
                        logger.error("Failed to get bot info", status_code=response.status)
                        return None

                    data = await response.json()
                    if data.get('ok'):
                        return data.get('result')

                    logger.error("Telegram API returned error", error=data.get('description'))
                    return None

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Error getting bot info", error=str(e))
            return None
