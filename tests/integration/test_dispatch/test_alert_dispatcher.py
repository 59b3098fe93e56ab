"""
Integration tests for AlertDispatcher.

Covers construction with config inheritance, concurrent fan-out with
partial failures, strict-mode filtering, registry management, the
health check and dispatch metrics.
"""

import asyncio
import json
import os
from unittest.mock import AsyncMock, Mock, patch

import pytest
from prometheus_client import CollectorRegistry

from multialert.config.settings import ChannelSettings, DispatcherSettings
from multialert.dispatch.dispatcher import HEALTH_CHECK_MESSAGE, AlertDispatcher
from multialert.dispatch.models import AlertKind
from multialert.errors import AggregateDispatchError, ConfigurationError
from multialert.notifications.factory import NotificationChannelFactory
from multialert.notifications.slack_notification import SlackNotificationChannel

SECRET_MARKERS = ('secret', 'token', 'password', 'key')


def make_channel(result=None, error=None):
    """Mock adapter whose error/info/warn/success coroutines share one behavior."""
    channel = Mock()
    for method in ('error', 'info', 'warn', 'success'):
        if error is not None:
            setattr(channel, method, AsyncMock(side_effect=error))
        else:
            setattr(channel, method, AsyncMock(return_value=result if result is not None else {'ok': True}))
    return channel


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def mock_types():
    """Register mockA/mockB/mockC adapter types; each factory returns a fresh mock."""
    factories = {}
    for name in ('mockA', 'mockB', 'mockC'):
        factory = Mock(return_value=make_channel())
        factories[name] = factory
        NotificationChannelFactory.register_channel(name, factory)

    yield factories

    for name in factories:
        NotificationChannelFactory.unregister_channel(name)


def descriptors(*types, config=None):
    return [{'type': channel_type, 'config': dict(config or {})} for channel_type in types]


class TestDispatcherConstruction:
    """Test suite for channel construction."""

    def test_channels_built_in_order(self, mock_types, registry):
        """Test channels are built in descriptor order."""
        dispatcher = AlertDispatcher(channels=descriptors('mockA', 'mockB'), registry=registry)

        assert dispatcher.get_channel_count() == 2
        assert [channel['type'] for channel in dispatcher.get_channels()] == ['mocka', 'mockb']

    def test_config_inheritance(self, mock_types, registry):
        """Test channel config inherits dispatcher defaults."""
        AlertDispatcher(
            channels=[{'type': 'mockA', 'config': {'beauty': False, 'webhookUrl': 'x'}}],
            service='hotel',
            beauty=True,
            registry=registry
        )

        effective = mock_types['mockA'].call_args[0][0]
        assert effective['beauty'] is False
        assert effective['service'] == 'hotel'
        assert effective['environment'] == 'STAGING'
        assert effective['webhook_url'] == 'x'

    def test_config_inheritance_reaches_real_adapter(self, registry):
        """Test inherited defaults reach a real adapter's config."""
        dispatcher = AlertDispatcher(
            channels=[{'type': 'slack', 'config': {'beauty': False, 'webhookUrl': 'https://hooks.slack.com/x'}}],
            service='hotel',
            environment='PRODUCTION',
            registry=registry
        )

        slack = dispatcher._channels[0].instance
        assert isinstance(slack, SlackNotificationChannel)
        assert slack.config.beauty is False
        assert slack.config.service == 'hotel'
        assert slack.config.environment == 'PRODUCTION'

    def test_unknown_type_is_skipped(self, mock_types, registry):
        """Test unknown channel types are skipped."""
        dispatcher = AlertDispatcher(
            channels=[{'type': 'bogus', 'config': {}}, {'type': 'mockA', 'config': {}}],
            registry=registry
        )

        assert dispatcher.get_channel_count() == 1
        assert dispatcher.has_channel('mockA')

    def test_unknown_type_is_skipped_without_fail_silently(self, mock_types, registry):
        """Test unknown channel types are skipped even with fail_silently off."""
        dispatcher = AlertDispatcher(
            channels=[{'type': 'bogus'}, {'type': 'mockA'}],
            fail_silently=False,
            registry=registry
        )

        assert dispatcher.get_channel_count() == 1

    @pytest.mark.parametrize('channel_type', [
        'messenger', 'zalo', 'whatsapp', 'line', 'viber', 'skype', 'wechat', 'firebase'
    ])
    def test_unsupported_channel_types_are_skipped(self, channel_type, registry):
        """Test channel types without an adapter are skipped."""
        dispatcher = AlertDispatcher(
            channels=[{'type': channel_type, 'config': {'token': 't'}},
                      {'type': 'discord', 'config': {'webhook_url': 'https://discord.com/x'}}],
            fail_silently=False,
            registry=registry
        )

        assert dispatcher.get_channel_count() == 1
        assert not dispatcher.has_channel(channel_type)

    def test_missing_type_is_skipped(self, mock_types, registry):
        """Test descriptors without a type are skipped."""
        dispatcher = AlertDispatcher(channels=[{'config': {}}, {'type': 'mockB'}], registry=registry)

        assert dispatcher.get_channel_count() == 1
        assert dispatcher.has_channel('mockb')

    def test_constructor_failure_skipped_when_failing_silently(self, registry):
        """Test a failing channel constructor is skipped when failing silently."""
        dispatcher = AlertDispatcher(
            channels=[{'type': 'slack', 'config': {}},
                      {'type': 'discord', 'config': {'webhook_url': 'https://discord.com/x'}}],
            registry=registry
        )

        assert dispatcher.get_channel_count() == 1
        assert dispatcher.has_channel('discord')

    def test_constructor_failure_raised_without_fail_silently(self, registry):
        """Test a failing channel constructor raises with fail_silently off."""
        with pytest.raises(ConfigurationError, match="Slack webhook_url is required"):
            AlertDispatcher(channels=[{'type': 'slack', 'config': {}}], fail_silently=False, registry=registry)

    def test_non_mapping_config_skipped_when_failing_silently(self, registry):
        """Test a non-mapping channel config is skipped when failing silently."""
        dispatcher = AlertDispatcher(
            channels=[{'type': 'slack', 'config': 'oops'},
                      {'type': 'discord', 'config': {'webhook_url': 'https://discord.com/x'}}],
            registry=registry
        )

        assert dispatcher.get_channel_count() == 1
        assert dispatcher.has_channel('discord')

    def test_non_mapping_config_raised_without_fail_silently(self, registry):
        """Test a non-mapping channel config raises with fail_silently off."""
        with pytest.raises(ConfigurationError, match="Channel config must be a mapping, got str"):
            AlertDispatcher(channels=[{'type': 'slack', 'config': 'oops'}], fail_silently=False, registry=registry)

    def test_no_channels(self, registry):
        """Test dispatcher with no channels."""
        dispatcher = AlertDispatcher(registry=registry)

        assert dispatcher.get_channel_count() == 0
        assert dispatcher.get_channels() == []


class TestFanOutDispatch:
    """Test suite for concurrent dispatch and aggregation."""

    @pytest.mark.asyncio
    async def test_one_success_one_timeout(self, mock_types, registry):
        """Test aggregation with one delivered and one failed channel."""
        channel_a = make_channel(result={'ok': True})
        channel_b = make_channel(error=Exception('timeout'))
        mock_types['mockA'].return_value = channel_a
        mock_types['mockB'].return_value = channel_b

        dispatcher = AlertDispatcher(
            channels=[{'type': 'mockA', 'config': {}}, {'type': 'mockB', 'config': {}}],
            health_check=False,
            registry=registry
        )
        report = await dispatcher.error({'message': 'boom'})

        assert report.summary.total == 2
        assert report.summary.successful == 1
        assert report.summary.failed == 1
        assert report.errors[0].error == 'timeout'
        assert report.success is True
        assert report.kind is AlertKind.ERROR
        channel_a.error.assert_awaited_once_with({'message': 'boom'})

    @pytest.mark.asyncio
    async def test_exhaustive_settlement(self, mock_types, registry):
        """Test every channel settles before the report is built."""
        mock_types['mockA'].return_value = make_channel(error=RuntimeError('down'))
        mock_types['mockB'].return_value = make_channel()
        mock_types['mockC'].return_value = make_channel(error=ValueError('bad'))

        dispatcher = AlertDispatcher(channels=descriptors('mockA', 'mockB', 'mockC'), registry=registry)
        report = await dispatcher.warn({'message': 'careful'})

        assert len(report.results) == 3
        assert [result.type for result in report.results] == ['mocka', 'mockb', 'mockc']
        assert [result.success for result in report.results] == [False, True, False]
        assert [error.error for error in report.errors] == ['down', 'bad']

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_slow_channel(self, mock_types, registry):
        """Test a fast failure does not cancel a slower channel."""
        async def slow_success(data):
            await asyncio.sleep(0.05)
            return {'ok': 'slow'}

        channel_b = make_channel()
        channel_b.info = AsyncMock(side_effect=slow_success)
        mock_types['mockA'].return_value = make_channel(error=RuntimeError('immediate'))
        mock_types['mockB'].return_value = channel_b

        dispatcher = AlertDispatcher(channels=descriptors('mockA', 'mockB'), registry=registry)
        report = await dispatcher.info({'message': 'hello'})

        assert report.results[1].success is True
        assert report.results[1].result == {'ok': 'slow'}

    @pytest.mark.asyncio
    async def test_all_failing_resolves_when_failing_silently(self, mock_types, registry):
        """Test an all-failed dispatch still returns a report when failing silently."""
        mock_types['mockA'].return_value = make_channel(error=RuntimeError('a'))
        mock_types['mockB'].return_value = make_channel(error=RuntimeError('b'))

        dispatcher = AlertDispatcher(channels=descriptors('mockA', 'mockB'), registry=registry)
        report = await dispatcher.error({'message': 'boom'})

        assert report.success is False
        assert report.summary.failed == 2

    @pytest.mark.asyncio
    async def test_escalation_after_all_channels_invoked(self, mock_types, registry):
        """Test the aggregate error is raised only after every channel ran."""
        async def slow_success(data):
            await asyncio.sleep(0.05)
            return {'ok': True}

        channel_a = make_channel(error=RuntimeError('down'))
        channel_b = make_channel()
        channel_b.error = AsyncMock(side_effect=slow_success)
        mock_types['mockA'].return_value = channel_a
        mock_types['mockB'].return_value = channel_b

        dispatcher = AlertDispatcher(channels=descriptors('mockA', 'mockB'), fail_silently=False, registry=registry)

        with pytest.raises(AggregateDispatchError, match="1 of 2 channels failed") as exc_info:
            await dispatcher.error({'message': 'boom'})

        assert channel_a.error.await_count == 1
        assert channel_b.error.await_count == 1
        assert exc_info.value.report.summary.successful == 1
        assert exc_info.value.report.errors[0].error == 'down'

    @pytest.mark.asyncio
    async def test_no_escalation_when_all_succeed(self, mock_types, registry):
        """Test no aggregate error when every channel succeeds."""
        dispatcher = AlertDispatcher(channels=descriptors('mockA', 'mockB'), fail_silently=False, registry=registry)

        report = await dispatcher.success({'message': 'done'})

        assert report.summary.successful == 2

    @pytest.mark.asyncio
    async def test_dispatch_by_kind_name(self, mock_types, registry):
        """Test dispatching by kind name."""
        channel_a = make_channel()
        mock_types['mockA'].return_value = channel_a
        dispatcher = AlertDispatcher(channels=descriptors('mockA'), registry=registry)

        report = await dispatcher.dispatch('warning', {'message': 'careful'})

        assert report.kind is AlertKind.WARN
        channel_a.warn.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, mock_types, registry):
        """Test dispatch argument validation."""
        dispatcher = AlertDispatcher(channels=descriptors('mockA'), registry=registry)

        with pytest.raises(ValueError):
            await dispatcher.dispatch('critical', {'message': 'boom'})
        with pytest.raises(ValueError, match="Alert data is required"):
            await dispatcher.error(None)

    @pytest.mark.asyncio
    async def test_empty_dispatcher(self, registry):
        """Test dispatching with no channels registered."""
        dispatcher = AlertDispatcher(registry=registry)

        report = await dispatcher.error({'message': 'boom'})

        assert report.summary.total == 0
        assert report.success is False


class TestStrictModeFiltering:
    """Test suite for per-channel field filtering."""

    @pytest.mark.asyncio
    async def test_strict_mode_drops_unlisted_fields(self, mock_types, registry):
        """Test strict mode drops fields outside the allow-list."""
        channel_a = make_channel()
        mock_types['mockA'].return_value = channel_a
        dispatcher = AlertDispatcher(
            channels=descriptors('mockA'),
            strict_mode=True,
            specific=[{'key': 'error_code'}],
            registry=registry
        )

        await dispatcher.error({'error_code': 'E1', 'user_id': 'U1'})

        channel_a.error.assert_awaited_once_with({'error_code': 'E1'})

    @pytest.mark.asyncio
    async def test_channel_allow_list_overrides_global(self, mock_types, registry):
        """Test a channel allow-list replaces the global one."""
        channel_a = make_channel()
        channel_b = make_channel()
        mock_types['mockA'].return_value = channel_a
        mock_types['mockB'].return_value = channel_b
        dispatcher = AlertDispatcher(
            channels=[{'type': 'mockA', 'config': {'specific': ['user_id']}}, {'type': 'mockB', 'config': {}}],
            strict_mode=True,
            specific=['error_code'],
            registry=registry
        )

        await dispatcher.error({'error_code': 'E1', 'user_id': 'U1'})

        channel_a.error.assert_awaited_once_with({'user_id': 'U1'})
        channel_b.error.assert_awaited_once_with({'error_code': 'E1'})

    @pytest.mark.asyncio
    async def test_empty_channel_allow_list_overrides_global(self, mock_types, registry):
        """Test an empty channel allow-list replaces the global one."""
        channel_a = make_channel()
        mock_types['mockA'].return_value = channel_a
        dispatcher = AlertDispatcher(
            channels=[{'type': 'mockA', 'config': {'specific': []}}],
            strict_mode=True,
            specific=['error_code'],
            registry=registry
        )

        await dispatcher.error({'error_code': 'E1', 'user_id': 'U1'})

        channel_a.error.assert_awaited_once_with({'error_code': 'E1', 'user_id': 'U1'})

    @pytest.mark.asyncio
    async def test_non_strict_passes_all_fields(self, mock_types, registry):
        """Test all fields pass through with strict mode off."""
        channel_a = make_channel()
        mock_types['mockA'].return_value = channel_a
        dispatcher = AlertDispatcher(channels=descriptors('mockA'), specific=['error_code'], registry=registry)

        await dispatcher.error({'error_code': 'E1', 'user_id': 'U1'})

        channel_a.error.assert_awaited_once_with({'error_code': 'E1', 'user_id': 'U1'})

    @pytest.mark.asyncio
    async def test_caller_data_not_mutated(self, mock_types, registry):
        """Test the caller's event is never mutated."""
        dispatcher = AlertDispatcher(
            channels=descriptors('mockA', 'mockB'),
            strict_mode=True,
            specific=['error_code'],
            registry=registry
        )
        data = {'error_code': 'E1', 'user_id': 'U1'}

        await dispatcher.error(data)

        assert data == {'error_code': 'E1', 'user_id': 'U1'}


class TestRegistryManagement:
    """Test suite for channel registry accessors and mutation."""

    def test_get_channels_is_idempotent_and_secret_free(self, registry):
        """Test channel listing is stable and hides secrets."""
        dispatcher = AlertDispatcher(
            channels=[
                {'type': 'telegram', 'config': {'botToken': '123:ABC', 'chatId': '-1'}},
                {'type': 'email', 'config': {'api_key': 'k', 'from_email': 'a@example.com', 'to': 'b@example.com'}},
            ],
            environment='PRODUCTION',
            registry=registry
        )

        first = dispatcher.get_channels()
        second = dispatcher.get_channels()

        assert first == second
        assert first == [
            {'type': 'telegram', 'service': 'hotel', 'environment': 'PRODUCTION'},
            {'type': 'email', 'service': 'hotel', 'environment': 'PRODUCTION'},
        ]
        for channel in first:
            for field in channel:
                assert not any(marker in field.lower() for marker in SECRET_MARKERS)

    def test_add_channel(self, mock_types, registry):
        """Test adding a channel at runtime."""
        dispatcher = AlertDispatcher(channels=descriptors('mockA'), registry=registry)

        assert dispatcher.add_channel({'type': 'mockB', 'config': {}}) == 2
        assert dispatcher.add_channel({'type': 'bogus', 'config': {}}) == 2
        assert dispatcher.has_channel('MOCKB')

    def test_add_channel_uses_dispatcher_defaults(self, mock_types, registry):
        """Test runtime channels inherit dispatcher defaults."""
        dispatcher = AlertDispatcher(service='flight', registry=registry)

        dispatcher.add_channel({'type': 'mockA', 'config': {'environment': 'DEV'}})

        assert dispatcher.get_channels() == [{'type': 'mocka', 'service': 'flight', 'environment': 'DEV'}]

    def test_remove_channel(self, mock_types, registry):
        """Test removing channels by type."""
        dispatcher = AlertDispatcher(channels=descriptors('mockA', 'mockB', 'mockA'), registry=registry)

        assert dispatcher.remove_channel('MockA') == 2
        assert dispatcher.get_channel_count() == 1
        assert not dispatcher.has_channel('mockA')
        assert dispatcher.remove_channel('mockA') == 0

    @pytest.mark.asyncio
    async def test_remove_during_dispatch_keeps_snapshot(self, mock_types, registry):
        """Test removal during a dispatch leaves the in-flight snapshot intact."""
        dispatcher = AlertDispatcher(channels=descriptors('mockA', 'mockB'), registry=registry)

        async def remove_other(data):
            dispatcher.remove_channel('mockB')
            return {'ok': True}

        dispatcher._channels[0].instance.error = AsyncMock(side_effect=remove_other)

        report = await dispatcher.error({'message': 'boom'})

        assert report.summary.total == 2
        assert dispatcher.get_channel_count() == 1


class TestHealthCheck:
    """Test suite for the health check trigger."""

    @pytest.mark.asyncio
    async def test_run_health_check(self, mock_types, registry):
        """Test health check report."""
        channel_a = make_channel()
        mock_types['mockA'].return_value = channel_a
        dispatcher = AlertDispatcher(
            channels=descriptors('mockA'),
            service='flight',
            environment='PRODUCTION',
            registry=registry
        )

        report = await dispatcher.run_health_check()

        assert report.kind is AlertKind.INFO
        assert report.summary.successful == 1
        data = channel_a.info.call_args[0][0]
        assert data['message'] == HEALTH_CHECK_MESSAGE
        assert data['status'] == 'HEALTHY'
        assert data['service'] == 'flight'
        assert data['environment'] == 'PRODUCTION'
        assert data['channels_count'] == 1
        assert data['health_check'] is True
        assert data['timestamp'].endswith('+00:00')

    @pytest.mark.asyncio
    async def test_health_check_scheduled_after_construction(self, mock_types, registry):
        """Test the startup health check is scheduled on construction."""
        channel_a = make_channel()
        mock_types['mockA'].return_value = channel_a

        dispatcher = AlertDispatcher(channels=descriptors('mockA'), health_check=True, registry=registry)

        assert dispatcher.health_check_task is not None
        report = await dispatcher.health_check_task
        assert report.summary.successful == 1
        channel_a.info.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_health_check_failure_does_not_escape_constructor(self, mock_types, registry):
        """Test startup health check failures stay inside the task."""
        mock_types['mockA'].return_value = make_channel(error=RuntimeError('unreachable'))

        dispatcher = AlertDispatcher(
            channels=descriptors('mockA'),
            fail_silently=False,
            health_check=True,
            registry=registry
        )

        with pytest.raises(AggregateDispatchError):
            await dispatcher.health_check_task

    def test_health_check_without_running_loop(self, mock_types, registry):
        """Test construction outside an event loop skips the health check."""
        dispatcher = AlertDispatcher(channels=descriptors('mockA'), health_check=True, registry=registry)

        assert dispatcher.health_check_task is None

    def test_health_check_disabled(self, mock_types, registry):
        """Test the startup health check can be disabled."""
        dispatcher = AlertDispatcher(channels=descriptors('mockA'), registry=registry)

        assert dispatcher.health_check_task is None


class TestDispatchMetrics:
    """Test suite for Prometheus dispatch metrics."""

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, mock_types, registry):
        """Test dispatch metrics are recorded per channel."""
        mock_types['mockB'].return_value = make_channel(error=RuntimeError('down'))
        dispatcher = AlertDispatcher(channels=descriptors('mockA', 'mockB'), registry=registry)

        await dispatcher.error({'message': 'boom'})
        await dispatcher.error({'message': 'boom again'})

        assert registry.get_sample_value('alert_dispatch_total', {'kind': 'error'}) == 2.0
        assert registry.get_sample_value(
            'alert_channel_deliveries_total', {'channel': 'mocka', 'kind': 'error', 'status': 'success'}
        ) == 2.0
        assert registry.get_sample_value(
            'alert_channel_deliveries_total', {'channel': 'mockb', 'kind': 'error', 'status': 'failed'}
        ) == 2.0
        assert registry.get_sample_value(
            'alert_channel_errors_total', {'channel': 'mockb', 'error_type': 'RuntimeError'}
        ) == 2.0
        assert registry.get_sample_value(
            'alert_channel_delivery_duration_seconds_count', {'channel': 'mocka', 'kind': 'error'}
        ) == 2.0

    def test_separate_registries(self, mock_types):
        """Test dispatchers keep separate metric registries."""
        first = AlertDispatcher(channels=descriptors('mockA'))
        second = AlertDispatcher(channels=descriptors('mockA'))

        assert first.registry is not second.registry


class TestDispatcherFromSettings:
    """Test suite for building a dispatcher from settings."""

    def test_from_settings(self, mock_types, registry):
        """Test building a dispatcher from settings."""
        settings = DispatcherSettings(
            service='flight',
            environment='PRODUCTION',
            fail_silently=False,
            strict_mode=True,
            specific=['error_code'],
            channels=[
                ChannelSettings(type='mockA'),
                ChannelSettings(type='mockB', enabled=False),
            ]
        )

        dispatcher = AlertDispatcher.from_settings(settings, registry=registry)

        assert dispatcher.get_channels() == [{'type': 'mocka', 'service': 'flight', 'environment': 'PRODUCTION'}]
        assert dispatcher.fail_silently is False
        assert dispatcher.strict_mode is True
        assert dispatcher.specific == ['error_code']

    def test_from_config_file(self, tmp_path, registry):
        """Test building a dispatcher from a YAML file."""
        path = tmp_path / "alerts.yaml"
        path.write_text(
            "alerts:\n"
            "  environment: PRODUCTION\n"
            "  channels:\n"
            "    - type: telegram\n"
            "      config:\n"
            "        botToken: ${TEST_BOT_TOKEN}\n"
            "        chatId: '-100123'\n"
        )

        with patch('multialert.config.settings.load_dotenv'), \
                patch.dict(os.environ, {'TEST_BOT_TOKEN': '123:ABC'}, clear=True):
            dispatcher = AlertDispatcher.from_config_file(path, registry=registry)

        assert dispatcher.get_channels() == [{'type': 'telegram', 'service': 'hotel', 'environment': 'PRODUCTION'}]
        assert dispatcher._channels[0].instance.config.bot_token == '123:ABC'


class TestDispatchWithRealAdapters:
    """Fan-out through real adapters with HTTP mocked."""

    @pytest.mark.asyncio
    async def test_slack_and_telegram(self, registry):
        """Test dispatch through real Slack and Telegram adapters."""
        dispatcher = AlertDispatcher(
            channels=[
                {'type': 'slack', 'config': {'webhookUrl': 'https://hooks.slack.com/services/T/B/X'}},
                {'type': 'telegram', 'config': {'botToken': '123:ABC', 'chatId': '-100123'}},
            ],
            environment='PRODUCTION',
            registry=registry
        )

        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_response = AsyncMock()
            mock_response.status = 200
            mock_response.text = AsyncMock(return_value=json.dumps({'ok': True, 'result': {'message_id': 1}}))
            mock_post.return_value.__aenter__.return_value = mock_response

            report = await dispatcher.error({'error_code': 'PAYMENT_FAILED', 'message': 'Payment failed'})

        assert report.summary.successful == 2
        assert mock_post.call_count == 2
        urls = sorted(call.args[0] for call in mock_post.call_args_list)
        assert urls == ['https://api.telegram.org/bot123:ABC/sendMessage',
                        'https://hooks.slack.com/services/T/B/X']

    @pytest.mark.asyncio
    async def test_http_failure_is_reported(self, registry):
        """Test an HTTP failure shows up in the report."""
        dispatcher = AlertDispatcher(
            channels=[{'type': 'discord', 'config': {'webhookUrl': 'https://discord.com/api/webhooks/1/a'}}],
            registry=registry
        )

        with patch('aiohttp.ClientSession.post') as mock_post:
            mock_response = AsyncMock()
            mock_response.status = 429
            mock_response.text = AsyncMock(return_value=json.dumps({'message': 'You are being rate limited.'}))
            mock_post.return_value.__aenter__.return_value = mock_response

            report = await dispatcher.error({'message': 'boom'})

        assert report.success is False
        assert report.errors[0].type == 'discord'
        assert report.errors[0].error == 'Failed to send Discord message: You are being rate limited.'
