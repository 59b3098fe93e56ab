"""
n8n notification channel.

Feeds alerts into n8n workflows, either through a webhook trigger node
or through the workflow execution API of an n8n instance.
"""

from typing import Any, Dict, Mapping, Optional

import aiohttp
from pydantic import Field

from multialert.dispatch.models import AlertKind
from multialert.errors import ConfigurationError
from multialert.notifications.base import ChannelConfig, NotificationChannel
from multialert.notifications.formatting import KIND_SEVERITIES, iter_fields, utc_timestamp


class N8nConfig(ChannelConfig):
    webhook_url: str = ""
    n8n_url: str = ""
    workflow_id: str = ""
    api_key: str = ""
    basic_auth: Optional[Dict[str, str]] = None
    headers: Dict[str, str] = Field(default_factory=dict)


class N8nNotificationChannel(NotificationChannel):
    """
    n8n channel.

    Either ``webhook_url`` or ``n8n_url`` + ``workflow_id`` must be set.
    The webhook is preferred when both are configured.
    """

    channel_type = "n8n"
    display_name = "n8n"
    config_model = N8nConfig

    def _validate_config(self, config: N8nConfig) -> None:
        if not config.webhook_url and not config.n8n_url:
            raise ConfigurationError("n8n requires either webhook_url or n8n_url")
        if config.n8n_url and not config.webhook_url and not config.workflow_id:
            raise ConfigurationError("n8n workflow_id is required when using n8n_url")
        if config.basic_auth is not None and not config.basic_auth.get('username'):
            raise ConfigurationError("n8n basic_auth requires a username")

    def build_payload(self, kind: AlertKind, data: Mapping[str, Any]) -> Dict[str, Any]:
        environment = self.config.environment
        fields = iter_fields(data, self.config.specific, include_rest=True)

        if not self.config.beauty:
            flat: Dict[str, Any] = {
                'timestamp': utc_timestamp(),
                'environment': environment,
                'type': kind.value,
            }
            flat.update({key: value for key, _, value, _ in fields})
            return flat

        alert: Dict[str, Any] = {
            'timestamp': utc_timestamp(),
            'environment': environment,
            'service': self.config.service,
            'severity': KIND_SEVERITIES[kind],
            'type': kind.value,
            'status': 'active',
        }
        message = data.get('message') or data.get('error_message')
        if message:
            alert['message'] = message
        if data.get('error_code'):
            alert['error_code'] = data['error_code']

        payload_data: Dict[str, Any] = {}
        for key, _, value, hints in fields:
            payload_data[hints.get('label') or hints.get('title') or key] = value

        return {'alert': alert, 'data': payload_data}

    def _auth_headers(self) -> Dict[str, str]:
        headers = dict(self.config.headers)
        if self.config.api_key:
            headers['Authorization'] = f'Bearer {self.config.api_key}'
        if self.config.basic_auth:
            headers['Authorization'] = aiohttp.encode_basic_auth(
                self.config.basic_auth['username'],
                self.config.basic_auth.get('password', '')
            )
        return headers

    async def deliver(self, payload: Dict[str, Any], kind: AlertKind) -> Any:
        if not self.config.webhook_url:
            return await self._execute_workflow(payload)
        return await self._post_json(self.config.webhook_url, payload, headers=self._auth_headers())

    async def _execute_workflow(self, payload: Dict[str, Any]) -> Any:
        url = f"{self.config.n8n_url.rstrip('/')}/api/v1/workflows/{self.config.workflow_id}/execute"
        return await self._post_json(url, {'data': payload}, headers=self._auth_headers())

    async def trigger_workflow(self, kind: Any, data: Mapping[str, Any]) -> Any:
        """
        Run the configured workflow through the n8n API, bypassing the webhook.

        Raises:
            ConfigurationError: If n8n_url or workflow_id is not configured
        """
        if not self.config.n8n_url or not self.config.workflow_id:
            raise ConfigurationError("n8n_url and workflow_id are required for workflow execution")
        kind = AlertKind.parse(kind)
        return await self._execute_workflow(self.build_payload(kind, data))
