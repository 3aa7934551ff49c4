"""Integration tests for the email processor.

Each scenario builds the dispatcher from a configuration tree, exactly as
the notification host does, and runs a notification through recipient
resolution, rendering and the real transport classes. Only the outermost
I/O (smtplib, boto3, subprocess, HTTP session) is mocked.
"""

import subprocess
from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from notifications_email.catalog import CatalogClient
from notifications_email.config import load_config
from notifications_email.notifications import NotificationEmailDispatcher
from notifications_email.transports import SMTPTransport

from tests.helpers import FIXTURES_DIR, FakeDirectory

MOCK_USER = {
    "kind": "User",
    "metadata": {"name": "mock", "namespace": "default"},
    "spec": {"profile": {"email": "mock@b.io"}},
}


def _tree(transport, **extra):
    return {
        "notifications": {
            "processors": {"email": {"transport": transport, "sender": "b@b.io", **extra}}
        }
    }


def _event():
    return {
        "origin": "plugin:test",
        "id": "1234",
        "user": "user:default/mock",
        "created": datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
        "payload": {"title": "hi"},
    }


def _entity_options():
    return {
        "recipients": {"type": "entity", "entityRef": "user:default/mock"},
        "payload": {"title": "hi"},
    }


@pytest.fixture
def directory():
    return FakeDirectory([MOCK_USER])


def test_send_email_with_smtp(directory):
    connection = MagicMock()
    with patch("smtplib.SMTP_SSL", return_value=connection) as smtp_ssl, patch(
        "notifications_email.transports.factory.SMTPTransport", wraps=SMTPTransport
    ) as smtp_transport:
        dispatcher = NotificationEmailDispatcher.from_config(
            _tree(
                {
                    "transport": "smtp",
                    "hostname": "localhost",
                    "port": 465,
                    "secure": True,
                    "requireTLS": False,
                }
            ),
            directory,
        )
        report = dispatcher.post_process(_event(), _entity_options())

    smtp_transport.assert_called_once_with(
        host="localhost", port=465, secure=True, require_tls=False, timeout=30.0
    )
    assert smtp_ssl.call_args[0] == ("localhost", 465)
    connection.send_message.assert_called_once()

    mime = connection.send_message.call_args[0][0]
    assert mime["From"] == "b@b.io"
    assert mime["To"] == "mock@b.io"
    assert mime["Subject"] == "hi"
    assert mime["Reply-To"] is None
    assert mime.get_body(preferencelist=("html",)).get_content().strip() == "<p></p>"
    assert report.status == "sent"


def test_send_email_with_ses(directory):
    ses_client = Mock()
    ses_client.send_email.return_value = {"MessageId": "ses-1"}

    with patch("notifications_email.transports.factory.boto3") as boto3:
        boto3.client.return_value = ses_client
        dispatcher = NotificationEmailDispatcher.from_config(
            _tree({"transport": "ses", "region": "us-west-2"}), directory
        )

    report = dispatcher.post_process(_event(), _entity_options())

    boto3.client.assert_called_once_with("ses", region_name="us-west-2")
    ses_client.send_email.assert_called_once_with(
        Source="b@b.io",
        Destination={"ToAddresses": ["mock@b.io"]},
        Message={
            "Subject": {"Data": "hi", "Charset": "UTF-8"},
            "Body": {"Html": {"Data": "<p></p>", "Charset": "UTF-8"}},
        },
    )
    assert report.results[0].message_id == "ses-1"


def test_send_email_with_sendmail(directory):
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"", stderr=b"")

    with patch("subprocess.run", return_value=completed) as run:
        dispatcher = NotificationEmailDispatcher.from_config(
            _tree({"transport": "sendmail", "path": "/usr/bin/sendmail"}), directory
        )
        report = dispatcher.post_process(_event(), _entity_options())

    assert dispatcher.transport.newline == "unix"
    command = run.call_args[0][0]
    assert command == ["/usr/bin/sendmail", "-i", "-f", "b@b.io", "mock@b.io"]
    assert b"Subject: hi\n" in run.call_args[1]["input"]
    assert report.status == "sent"


def test_broadcast_to_users_through_catalog_http_client():
    """Broadcast with receiver users queries the catalog and mails every user."""
    session = Mock(spec=requests.Session)
    session.headers = {}
    response = Mock(status_code=200)
    response.json.return_value = {
        "items": [
            MOCK_USER,
            {"kind": "User", "metadata": {"name": "other"}, "spec": {"profile": {"email": "other@b.io"}}},
            {"kind": "User", "metadata": {"name": "no-email"}, "spec": {}},
        ]
    }
    session.get.return_value = response
    catalog = CatalogClient(base_url="https://backstage.b.io/api/catalog", session=session)

    transport = Mock()
    transport.name = "mock"
    dispatcher = NotificationEmailDispatcher.from_config(
        _tree({"transport": "sendmail"}, broadcastConfig={"receiver": "users"}),
        catalog,
        token_provider=lambda: "plugin-token",
        transport=transport,
    )

    report = dispatcher.post_process(
        {**_event(), "user": None},
        {"recipients": {"type": "broadcast"}, "payload": {"title": "hi"}},
    )

    assert session.get.call_args[0][0] == "https://backstage.b.io/api/catalog/entities/by-query"
    assert session.get.call_args[1]["params"]["filter"] == "kind=User"
    assert session.get.call_args[1]["headers"] == {"Authorization": "Bearer plugin-token"}
    assert sorted(call[0][0].to for call in transport.send.call_args_list) == [
        "mock@b.io",
        "other@b.io",
    ]
    assert report.sent_count == 2


def test_broadcast_to_configured_receivers(directory):
    transport = Mock()
    transport.name = "mock"
    dispatcher = NotificationEmailDispatcher.from_config(
        _tree(
            {"transport": "sendmail"},
            broadcastConfig={"receiver": "config", "receiverEmails": ["ops@b.io"]},
        ),
        directory,
        transport=transport,
    )

    dispatcher.post_process(
        {**_event(), "user": None},
        {"recipients": {"type": "broadcast"}, "payload": {"title": "hi"}},
    )

    transport.send.assert_called_once()
    assert transport.send.call_args[0][0].to == "ops@b.io"
    assert directory.query_calls == []


def test_dispatcher_from_loaded_config_file(mock_env_vars):
    """load_config output feeds straight into the dispatcher."""
    app_config, _ = load_config(FIXTURES_DIR / "config" / "valid_config.yaml")
    transport = Mock()
    transport.name = "mock"

    dispatcher = NotificationEmailDispatcher.from_config(
        app_config.email, FakeDirectory([MOCK_USER]), transport=transport
    )
    report = dispatcher.post_process(
        {**_event(), "payload": {"title": "hi", "severity": "high"}},
        {"recipients": {"type": "broadcast"}, "payload": {"title": "hi", "severity": "high"}},
    )

    assert sorted(result.recipient for result in report.results) == ["ops@b.io", "platform@b.io"]
    message = transport.send.call_args[0][0]
    assert message.sender == "notifications@b.io"
    assert message.reply_to == "support@b.io"
