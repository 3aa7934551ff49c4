"""Exceptions raised by mail transports."""

from typing import Optional


class TransportError(Exception):
    """A send attempt failed (connection, authentication or protocol error).

    Attributes:
        recipient: Address the failed message was addressed to, if known
    """

    def __init__(self, message: str, recipient: Optional[str] = None) -> None:
        super().__init__(message)
        self.recipient = recipient


class SMTPDeliveryError(TransportError):
    """Raised when SMTP delivery fails."""

    pass


class SESDeliveryError(TransportError):
    """Raised when the SES API rejects or fails a send."""

    pass


class SendmailDeliveryError(TransportError):
    """Raised when the sendmail binary cannot be run or exits non-zero."""

    pass
