"""
Email notification channel using an HTTP mail API.

Provides email alerts with:
- Per-kind subject lines and accent colors
- HTML and plain-text bodies built from the alert fields
- API key authentication
"""

import html
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Union

import structlog

from multialert.dispatch.models import AlertKind
from multialert.notifications.base import ChannelConfig, NotificationChannel
from multialert.notifications.formatting import display_value, iter_fields, kind_emoji, utc_timestamp

logger = structlog.get_logger(__name__)

DEFAULT_MAIL_API_URL = "https://api.maildiver.com/v1/messages"


@dataclass(frozen=True)
class EmailTemplate:
    """Email template configuration."""
    subject: str
    accent_color: str


EMAIL_TEMPLATES: Dict[AlertKind, EmailTemplate] = {
    AlertKind.ERROR: EmailTemplate("{emoji} [{environment}] {service} Error Alert", "#dc3545"),
    AlertKind.WARN: EmailTemplate("{emoji} [{environment}] {service} Warning", "#fd7e14"),
    AlertKind.INFO: EmailTemplate("{emoji} [{environment}] {service} Notification", "#0d6efd"),
    AlertKind.SUCCESS: EmailTemplate("{emoji} [{environment}] {service} Success", "#198754"),
}

HTML_TEMPLATE = """
<html>
<body style="font-family: Arial, sans-serif; margin: 0; padding: 20px; background-color: #f5f5f5;">
    <div style="max-width: 600px; margin: 0 auto; background-color: white; border-radius: 8px;">
        <div style="background-color: {color}; color: white; padding: 20px; border-radius: 8px 8px 0 0;">
            <h1 style="margin: 0; font-size: 22px;">{title}</h1>
        </div>
        <div style="padding: 20px;">
            {rows}
            <p style="margin-top: 30px; font-size: 12px; color: #666;">Sent at {timestamp}</p>
        </div>
    </div>
</body>
</html>
"""


class EmailConfig(ChannelConfig):
    """Mail API settings."""
    api_key: str = ""
    api_url: str = DEFAULT_MAIL_API_URL
    from_email: str = ""
    from_name: str = "Alert System"
    to: Union[str, List[str]] = ""
    subject_prefix: str = ""
    timeout: float = 30.0


class EmailNotificationChannel(NotificationChannel):
    """
    Email notification channel.

    Example:
        channel = EmailNotificationChannel({
            'api_key': 'mail-api-key',
            'from_email': 'alerts@example.com',
            'to': ['oncall@example.com', 'team@example.com']
        })
    """

    channel_type = "email"
    display_name = "Email"
    config_model = EmailConfig
    required_fields = ('api_key', 'from_email', 'to')

    @property
    def recipients(self) -> List[str]:
        to = self.config.to
        if isinstance(to, str):
            return [address.strip() for address in to.split(',') if address.strip()]
        return list(to)

    def _subject(self, kind: AlertKind) -> str:
        subject = EMAIL_TEMPLATES[kind].subject.format(
            emoji=kind_emoji(kind),
            environment=self.config.environment,
            service=self.config.service.upper()
        )
        if self.config.subject_prefix:
            subject = f"{self.config.subject_prefix} {subject}"
        return subject

    def _render_bodies(self, kind: AlertKind, data: Mapping[str, Any]) -> Dict[str, str]:
        title = self._subject(kind)
        timestamp = utc_timestamp()
        rows: List[str] = []
        text_lines: List[str] = [title, '']

        for key, field_title, value, hints in iter_fields(data, self.config.specific):
            rendered = display_value(key, value)
            label = f"{hints.get('emoji', '')} {field_title}".strip()
            text_lines.append(f"{label}: {rendered}")

            if not self.config.beauty:
                continue
            if isinstance(value, (dict, list)) or '\n' in rendered:
                rows.append(f"<p><strong>{html.escape(label)}:</strong></p>"
                            f"<pre style=\"background-color: #f8f9fa; padding: 10px;\">{html.escape(rendered)}</pre>")
            else:
                rows.append(f"<p><strong>{html.escape(label)}:</strong> {html.escape(rendered)}</p>")

        text_lines.extend(['', f"Sent at {timestamp}"])
        bodies = {'text': '\n'.join(text_lines)}

        if self.config.beauty:
            bodies['html'] = HTML_TEMPLATE.format(
                color=EMAIL_TEMPLATES[kind].accent_color,
                title=html.escape(title),
                rows='\n            '.join(rows),
                timestamp=timestamp
            )
        return bodies

    def build_payload(self, kind: AlertKind, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'from': {
                'email': self.config.from_email,
                'name': self.config.from_name
            },
            'to': [{'email': address} for address in self.recipients],
            'subject': self._subject(kind),
        }
        payload.update(self._render_bodies(kind, data))
        return payload

    async def deliver(self, payload: Dict[str, Any], kind: AlertKind) -> Any:
        response = await self._post_json(
            self.config.api_url,
            payload,
            headers={'Authorization': f'Bearer {self.config.api_key}'}
        )
        logger.debug("Email alert sent", kind=kind.value, recipients=len(payload['to']))
        return response if response else {'success': True}
