"""Mail transports (SMTP, AWS SES, sendmail) and the factory that builds them."""

from .base import SendResult, Transport, build_mime_message
from .exceptions import (
    SendmailDeliveryError,
    SESDeliveryError,
    SMTPDeliveryError,
    TransportError,
)
from .factory import build_transport, parse_transport_config
from .sendmail import SendmailTransport
from .ses import SESTransport
from .smtp import SMTPTransport

__all__ = [
    # Factory
    "build_transport",
    "parse_transport_config",
    # Transports
    "Transport",
    "SendResult",
    "SMTPTransport",
    "SESTransport",
    "SendmailTransport",
    "build_mime_message",
    # Exceptions
    "TransportError",
    "SMTPDeliveryError",
    "SESDeliveryError",
    "SendmailDeliveryError",
]
