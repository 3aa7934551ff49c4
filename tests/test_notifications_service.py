"""Unit tests for the email dispatcher.

Tests the NotificationEmailDispatcher for:
- Single-recipient delivery and message contents
- Fan-out to several recipients
- Partial failure isolation
- Empty recipient sets
- Notification filter
- Token provider handling
- Template rendering failures
- Construction from configuration
"""

import logging
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
from pydantic import ValidationError

from notifications_email.config import ConfigurationError, EmailProcessorConfig
from notifications_email.domain.models import MailMessage, NotificationEvent, ProcessOptions
from notifications_email.logging.context import get_log_context
from notifications_email.notifications import (
    NotificationEmailDispatcher,
    NotificationTemplateError,
    TemplateRenderer,
)
from notifications_email.transports import (
    SendResult,
    SMTPDeliveryError,
    SMTPTransport,
)

from tests.helpers import FakeDirectory

CREATED = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def _event(**payload):
    return {
        "origin": "plugin:scaffolder",
        "id": "n-1",
        "created": CREATED,
        "payload": {"title": "hi", **payload},
    }


def _options(recipients, **payload):
    return {"recipients": recipients, "payload": {"title": "hi", **payload}}


def _config(**overrides):
    return EmailProcessorConfig.model_validate(
        {
            "transport": {"transport": "smtp", "hostname": "localhost", "port": 465, "secure": True},
            "sender": "b@b.io",
            **overrides,
        }
    )


@pytest.fixture
def dispatcher(smtp_processor_config, mock_transport, fake_directory):
    return NotificationEmailDispatcher(smtp_processor_config, mock_transport, fake_directory)


class TestSingleRecipient:
    def test_sends_one_message_to_user(self, dispatcher, mock_transport):
        report = dispatcher.post_process(
            _event(), _options({"type": "entity", "entityRef": "user:default/mock"})
        )

        mock_transport.send.assert_called_once_with(
            MailMessage(
                sender="b@b.io",
                to="mock@b.io",
                subject="hi",
                text="",
                html="<p></p>",
                reply_to=None,
            )
        )
        assert report.status == "sent"
        assert report.notification_id == "n-1"
        assert report.recipients == ["mock@b.io"]
        assert report.sent_count == 1
        assert report.results[0].message_id == "<mock@b.io>"

    def test_reply_to_and_body(self, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            _config(replyTo="support@b.io"), mock_transport, fake_directory
        )

        dispatcher.post_process(
            _event(),
            _options(
                {"type": "entity", "entityRef": "user:default/mock"},
                description="Task finished",
                link="https://b.io/tasks/1",
            ),
        )

        message = mock_transport.send.call_args[0][0]
        assert message.reply_to == "support@b.io"
        assert message.text == "Task finished\n\nhttps://b.io/tasks/1"
        assert message.html == "<p>Task finished<br/>https://b.io/tasks/1</p>"

    def test_accepts_models(self, dispatcher, mock_transport):
        dispatcher.post_process(
            NotificationEvent.model_validate(_event()),
            ProcessOptions.model_validate(_options({"type": "entity", "entityRef": "user:default/mock"})),
        )

        mock_transport.send.assert_called_once()

    def test_malformed_input_raises(self, dispatcher):
        with pytest.raises(ValidationError):
            dispatcher.post_process(_event(), {"recipients": {"type": "entity"}})


class TestFanOut:
    def test_one_message_per_distinct_address(self, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            _config(concurrencyLimit=1), mock_transport, fake_directory
        )

        report = dispatcher.post_process(
            _event(),
            _options(
                {
                    "type": "entity_refs",
                    "entityRefs": [
                        "user:default/mock",
                        "user:default/jdoe",
                        "user:other/duplicate",
                        "group:default/team-a",
                    ],
                }
            ),
        )

        sent_to = [call[0][0].to for call in mock_transport.send.call_args_list]
        assert sent_to == ["Jane.Doe@corp.io", "mock@b.io"]
        assert report.recipients == ["Jane.Doe@corp.io", "mock@b.io"]

    def test_broadcast_to_configured_addresses(self, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            _config(broadcastConfig={"receiver": "config", "receiverEmails": ["ops@b.io", "dev@b.io"]}),
            mock_transport,
            fake_directory,
        )

        report = dispatcher.post_process(_event(), _options({"type": "broadcast"}))

        assert sorted(call[0][0].to for call in mock_transport.send.call_args_list) == [
            "dev@b.io",
            "ops@b.io",
        ]
        assert report.sent_count == 2
        assert fake_directory.query_calls == []

    def test_broadcast_to_all_users(self, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            _config(broadcastConfig={"receiver": "users"}), mock_transport, fake_directory
        )

        report = dispatcher.post_process(_event(), _options({"type": "broadcast"}))

        assert fake_directory.query_calls == [{"kind": "User"}]
        assert report.recipients == ["Jane.Doe@corp.io", "lower@b.io", "mock@b.io"]

    def test_concurrent_sends(self, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            _config(concurrencyLimit=5), mock_transport, fake_directory
        )

        report = dispatcher.post_process(
            _event(),
            _options(
                {
                    "type": "entity_refs",
                    "entityRefs": ["user:default/mock", "user:default/jdoe", "user:default/lowercase-kind"],
                }
            ),
        )

        assert mock_transport.send.call_count == 3
        assert report.status == "sent"
        assert [result.recipient for result in report.results] == sorted(report.recipients)


class TestFailures:
    def test_first_failure_does_not_stop_second_send(self, mock_transport, fake_directory, caplog):
        def send(message):
            if message.to == "Jane.Doe@corp.io":
                raise SMTPDeliveryError("550 mailbox unavailable", recipient=message.to)
            return SendResult(message_id="<ok>", accepted=[message.to])

        mock_transport.send.side_effect = send
        dispatcher = NotificationEmailDispatcher(
            _config(concurrencyLimit=1), mock_transport, fake_directory
        )

        with caplog.at_level(logging.ERROR):
            report = dispatcher.post_process(
                _event(),
                _options(
                    {"type": "entity_refs", "entityRefs": ["user:default/mock", "user:default/jdoe"]}
                ),
            )

        assert mock_transport.send.call_count == 2
        assert report.status == "partial"
        assert report.sent_count == 1
        assert report.failed_count == 1
        failure = report.failures[0]
        assert failure.recipient == "Jane.Doe@corp.io"
        assert failure.error_type == "SMTPDeliveryError"
        assert "550 mailbox unavailable" in caplog.text

    def test_completion_log_lists_failed_recipients(self, mock_transport, fake_directory, caplog):
        def send(message):
            if message.to == "mock@b.io":
                raise SMTPDeliveryError("421 service not available", recipient=message.to)
            return SendResult(message_id="<ok>", accepted=[message.to])

        mock_transport.send.side_effect = send
        dispatcher = NotificationEmailDispatcher(
            _config(concurrencyLimit=1), mock_transport, fake_directory
        )

        with caplog.at_level(logging.INFO):
            dispatcher.post_process(
                _event(),
                _options(
                    {"type": "entity_refs", "entityRefs": ["user:default/mock", "user:default/jdoe"]}
                ),
            )

        complete = [r for r in caplog.records if getattr(r, "event", None) == "dispatch.complete"]
        assert len(complete) == 1
        assert complete[0].failed_recipients == ["mock@b.io"]
        assert complete[0].failed == 1

    def test_unexpected_error_is_recorded(self, dispatcher, mock_transport):
        mock_transport.send.side_effect = RuntimeError("socket closed unexpectedly")

        report = dispatcher.post_process(
            _event(), _options({"type": "entity", "entityRef": "user:default/mock"})
        )

        assert report.status == "failed"
        assert report.results[0].error == "socket closed unexpectedly"

    def test_directory_failure_sends_nothing(self, smtp_processor_config, mock_transport):
        directory = FakeDirectory(failing_refs={"user:default/mock": RuntimeError("catalog down")})
        dispatcher = NotificationEmailDispatcher(smtp_processor_config, mock_transport, directory)

        report = dispatcher.post_process(
            _event(), _options({"type": "entity", "entityRef": "user:default/mock"})
        )

        assert report.status == "no_recipients"
        mock_transport.send.assert_not_called()

    def test_template_failure(self, smtp_processor_config, mock_transport, fake_directory):
        renderer = Mock(spec=TemplateRenderer)
        renderer.render.side_effect = NotificationTemplateError("Template rendering failed: boom")
        dispatcher = NotificationEmailDispatcher(
            smtp_processor_config, mock_transport, fake_directory, template_renderer=renderer
        )

        report = dispatcher.post_process(
            _event(), _options({"type": "entity", "entityRef": "user:default/mock"})
        )

        assert report.status == "failed"
        assert report.reason == "render_failed"
        mock_transport.send.assert_not_called()


class TestNoRecipients:
    @pytest.mark.parametrize(
        "recipients",
        [
            {"type": "entity", "entityRef": "user:default/ghost"},
            {"type": "entity", "entityRef": "user:default/no-email"},
            {"type": "entity_refs", "entityRefs": []},
            {"type": "broadcast"},
        ],
    )
    def test_no_transport_call(self, dispatcher, mock_transport, recipients):
        report = dispatcher.post_process(_event(), _options(recipients))

        assert report.status == "no_recipients"
        assert report.results == []
        mock_transport.send.assert_not_called()


class TestFilter:
    def test_severity_below_minimum(self, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            _config(filter={"minSeverity": "high"}), mock_transport, fake_directory
        )

        report = dispatcher.post_process(
            _event(), _options({"type": "entity", "entityRef": "user:default/mock"}, severity="normal")
        )

        assert report.status == "skipped"
        assert report.reason == "severity_below_minimum"
        assert fake_directory.entity_calls == []
        mock_transport.send.assert_not_called()

    def test_severity_above_maximum(self, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            _config(filter={"maxSeverity": "normal"}), mock_transport, fake_directory
        )

        report = dispatcher.post_process(
            _event(), _options({"type": "entity", "entityRef": "user:default/mock"}, severity="critical")
        )

        assert report.reason == "severity_above_maximum"

    def test_excluded_topic(self, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            _config(filter={"excludedTopics": ["digest"]}), mock_transport, fake_directory
        )

        report = dispatcher.post_process(
            _event(), _options({"type": "entity", "entityRef": "user:default/mock"}, topic="digest")
        )

        assert report.reason == "topic_excluded"

    def test_severity_within_range_is_sent(self, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            _config(filter={"minSeverity": "normal", "maxSeverity": "high"}),
            mock_transport,
            fake_directory,
        )

        report = dispatcher.post_process(
            _event(), _options({"type": "entity", "entityRef": "user:default/mock"}, severity="high")
        )

        assert report.status == "sent"


class TestTokenProvider:
    def test_token_is_passed_to_directory(self, smtp_processor_config, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            smtp_processor_config,
            mock_transport,
            fake_directory,
            token_provider=lambda: "t0k3n",
        )

        dispatcher.post_process(_event(), _options({"type": "entity", "entityRef": "user:default/mock"}))

        assert fake_directory.tokens == ["t0k3n"]

    def test_token_failure_sends_nothing(self, smtp_processor_config, mock_transport, fake_directory):
        dispatcher = NotificationEmailDispatcher(
            smtp_processor_config,
            mock_transport,
            fake_directory,
            token_provider=Mock(side_effect=RuntimeError("auth service down")),
        )

        report = dispatcher.post_process(
            _event(), _options({"type": "entity", "entityRef": "user:default/mock"})
        )

        assert report.status == "failed"
        assert report.reason == "token_unavailable"
        assert fake_directory.entity_calls == []
        mock_transport.send.assert_not_called()


class TestFromConfig:
    def test_builds_transport_from_config_tree(self, fake_directory):
        tree = {
            "notifications": {
                "processors": {
                    "email": {
                        "transport": {"transport": "sendmail"},
                        "sender": "b@b.io",
                        "cache": {"ttl": "5m"},
                    }
                }
            }
        }

        dispatcher = NotificationEmailDispatcher.from_config(tree, fake_directory)

        assert dispatcher.transport.name == "sendmail"
        assert dispatcher.config.sender == "b@b.io"
        assert dispatcher.resolver.cache.ttl_seconds == 300

    def test_accepts_validated_config(self, smtp_processor_config, fake_directory):
        dispatcher = NotificationEmailDispatcher.from_config(smtp_processor_config, fake_directory)

        assert isinstance(dispatcher.transport, SMTPTransport)
        assert dispatcher.transport.secure is True
        assert dispatcher.resolver.cache is None
        assert dispatcher.resolver.max_workers == 2

    def test_prebuilt_transport(self, smtp_processor_config, mock_transport, fake_directory):
        with patch("notifications_email.notifications.service.build_transport") as build:
            dispatcher = NotificationEmailDispatcher.from_config(
                smtp_processor_config, fake_directory, transport=mock_transport
            )

        build.assert_not_called()
        assert dispatcher.transport is mock_transport

    def test_invalid_config(self, fake_directory):
        tree = {"notifications": {"processors": {"email": {"transport": {"transport": "fax"}}}}}

        with pytest.raises(ConfigurationError):
            NotificationEmailDispatcher.from_config(tree, fake_directory)


class TestLogContext:
    def test_log_context_is_scoped_to_dispatch(self, dispatcher, mock_transport):
        seen = []
        mock_transport.send.side_effect = lambda message: seen.append(get_log_context()) or SendResult()

        dispatcher.post_process(_event(), _options({"type": "entity", "entityRef": "user:default/mock"}))

        assert seen == [{"notification_id": "n-1", "origin": "plugin:scaffolder"}]
        assert get_log_context() == {}
