"""Unit tests for the AWS SES transport."""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from notifications_email.domain.models import MailMessage
from notifications_email.transports import SESDeliveryError, SESTransport


@pytest.fixture
def ses_client():
    client = Mock()
    client.send_email.return_value = {"MessageId": "0100018c-abc"}
    return client


@pytest.fixture
def message():
    return MailMessage(
        sender="b@b.io",
        to="mock@b.io",
        subject="hi",
        text="Details",
        html="<p>Details</p>",
    )


def test_send_builds_send_email_request(ses_client, message):
    transport = SESTransport(client=ses_client)

    result = transport.send(message)

    ses_client.send_email.assert_called_once_with(
        Source="b@b.io",
        Destination={"ToAddresses": ["mock@b.io"]},
        Message={
            "Subject": {"Data": "hi", "Charset": "UTF-8"},
            "Body": {
                "Html": {"Data": "<p>Details</p>", "Charset": "UTF-8"},
                "Text": {"Data": "Details", "Charset": "UTF-8"},
            },
        },
    )
    assert result.message_id == "0100018c-abc"
    assert result.accepted == ["mock@b.io"]


def test_empty_text_body_is_omitted(ses_client):
    transport = SESTransport(client=ses_client)

    request = transport.build_request(
        MailMessage(sender="b@b.io", to="mock@b.io", subject="hi", text="", html="<p></p>")
    )

    assert request["Message"]["Body"] == {"Html": {"Data": "<p></p>", "Charset": "UTF-8"}}


def test_optional_request_fields(ses_client):
    transport = SESTransport(
        client=ses_client,
        source_arn="arn:aws:ses:eu-west-1:123456789012:identity/b.io",
        configuration_set_name="notifications",
    )

    request = transport.build_request(
        MailMessage(
            sender="b@b.io",
            to="mock@b.io",
            subject="hi",
            text="",
            html="<p></p>",
            reply_to="support@b.io",
        )
    )

    assert request["ReplyToAddresses"] == ["support@b.io"]
    assert request["SourceArn"] == "arn:aws:ses:eu-west-1:123456789012:identity/b.io"
    assert request["ConfigurationSetName"] == "notifications"


def test_client_error_is_wrapped(ses_client, message):
    ses_client.send_email.side_effect = ClientError(
        {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
        "SendEmail",
    )
    transport = SESTransport(client=ses_client)

    with pytest.raises(SESDeliveryError) as exc_info:
        transport.send(message)

    assert "MessageRejected" in str(exc_info.value)
    assert exc_info.value.recipient == "mock@b.io"


def test_botocore_error_is_wrapped(ses_client, message):
    ses_client.send_email.side_effect = EndpointConnectionError(
        endpoint_url="https://email.eu-west-1.amazonaws.com"
    )
    transport = SESTransport(client=ses_client)

    with pytest.raises(SESDeliveryError, match="AWS SES error"):
        transport.send(message)
