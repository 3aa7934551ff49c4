"""AWS SES transport.

Sending is delegated to the SES ``SendEmail`` API through a boto3 client,
which is thread-safe and shared by all dispatches.
"""

from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from notifications_email.domain.models import MailMessage
from notifications_email.logging import get_logger

from .base import SendResult, Transport
from .exceptions import SESDeliveryError

logger = get_logger(__name__, component="transport")

CHARSET = "UTF-8"


class SESTransport(Transport):
    """Send messages with the AWS SES API."""

    name = "ses"

    def __init__(
        self,
        client: Any,
        source_arn: Optional[str] = None,
        configuration_set_name: Optional[str] = None,
    ):
        """Initialize SES transport.

        Args:
            client: boto3 SES client
            source_arn: Optional sending authorization ARN
            configuration_set_name: Optional SES configuration set
        """
        self.client = client
        self.source_arn = source_arn
        self.configuration_set_name = configuration_set_name

    def build_request(self, message: MailMessage) -> Dict[str, Any]:
        """Build keyword arguments for ``client.send_email``."""
        body: Dict[str, Any] = {"Html": {"Data": message.html, "Charset": CHARSET}}
        if message.text:
            body["Text"] = {"Data": message.text, "Charset": CHARSET}

        request: Dict[str, Any] = {
            "Source": message.sender,
            "Destination": {"ToAddresses": [message.to]},
            "Message": {
                "Subject": {"Data": message.subject, "Charset": CHARSET},
                "Body": body,
            },
        }
        if message.reply_to:
            request["ReplyToAddresses"] = [message.reply_to]
        if self.source_arn:
            request["SourceArn"] = self.source_arn
        if self.configuration_set_name:
            request["ConfigurationSetName"] = self.configuration_set_name
        return request

    def send(self, message: MailMessage) -> SendResult:
        """Send a message via SES.

        Raises:
            SESDeliveryError: If the API call fails
        """
        try:
            response = self.client.send_email(**self.build_request(message))
        except (BotoCoreError, ClientError) as e:
            raise SESDeliveryError(f"AWS SES error: {e}", recipient=message.to) from e

        message_id = response.get("MessageId") if isinstance(response, dict) else None
        logger.debug(f"SES accepted message {message_id} for {message.to}")
        return SendResult(message_id=message_id, accepted=[message.to])
