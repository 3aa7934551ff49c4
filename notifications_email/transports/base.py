"""Transport interface and MIME construction shared by transports."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email import policy
from email.message import EmailMessage
from email.utils import formatdate, make_msgid, parseaddr
from typing import List, Optional

from notifications_email.domain.models import MailMessage


@dataclass(frozen=True)
class SendResult:
    """Outcome of a message accepted for delivery.

    Attributes:
        message_id: Message-ID assigned locally or by the provider
        accepted: Recipient addresses accepted for delivery
    """

    message_id: Optional[str] = None
    accepted: List[str] = field(default_factory=list)


class Transport(ABC):
    """A configured mail-sending mechanism.

    Instances are built once per processor and shared by every dispatch, so
    implementations must not keep per-message state.
    """

    name: str = "transport"

    @abstractmethod
    def send(self, message: MailMessage) -> SendResult:
        """Send one message.

        Args:
            message: Message to deliver

        Returns:
            SendResult once the message is accepted for delivery

        Raises:
            TransportError: If the message could not be handed over
        """
        pass


def envelope_address(address: str) -> str:
    """Extract the bare address from a header value like ``Name <a@b.io>``."""
    return parseaddr(address)[1]


def build_mime_message(message: MailMessage, linesep: str = "\n") -> EmailMessage:
    """Build a multipart/alternative MIME message (plain text plus HTML).

    Args:
        message: Message to convert
        linesep: Line separator used when the message is serialized

    Returns:
        EmailMessage with Subject, From, To, Date, Message-ID and optional Reply-To
    """
    mime = EmailMessage(policy=policy.default.clone(linesep=linesep))
    mime["Subject"] = message.subject
    mime["From"] = message.sender
    mime["To"] = message.to
    if message.reply_to:
        mime["Reply-To"] = message.reply_to
    mime["Date"] = formatdate(localtime=False, usegmt=True)

    sender_domain = envelope_address(message.sender).rpartition("@")[2]
    mime["Message-ID"] = make_msgid(domain=sender_domain or "localhost")

    mime.set_content(message.text)
    mime.add_alternative(message.html, subtype="html")
    return mime
