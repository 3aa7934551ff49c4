"""SMTP transport.

A new connection is opened for every message, so a single SMTPTransport can
be shared across concurrent dispatches.
"""

import smtplib
import ssl
from typing import Any, Callable, Dict, Optional

from notifications_email.domain.models import MailMessage
from notifications_email.logging import get_logger

from .base import SendResult, Transport, build_mime_message
from .exceptions import SMTPDeliveryError

logger = get_logger(__name__, component="transport")


class SMTPTransport(Transport):
    """Send messages through an SMTP server.

    ``secure=True`` connects with implicit TLS (SMTPS, usually port 465).
    Otherwise the connection starts in plain text and is upgraded with
    STARTTLS when the server advertises it; ``require_tls=True`` makes the
    upgrade mandatory, failing the send if the server does not offer it.
    """

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        secure: bool = False,
        require_tls: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize SMTP transport. No connection is opened here.

        Args:
            host: SMTP server hostname
            port: SMTP server port
            secure: Use implicit TLS
            require_tls: Require STARTTLS on plain connections
            username: Optional authentication username
            password: Optional authentication password
            timeout: Socket timeout in seconds
            smtp_factory: Factory for SMTP instances (for mocking)
            smtp_ssl_factory: Factory for SMTP_SSL instances (for mocking)
        """
        self.host = host
        self.port = port
        self.secure = secure
        self.require_tls = require_tls
        self.username = username
        self.password = password
        self.timeout = timeout
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    @property
    def options(self) -> Dict[str, Any]:
        """Connection options, without the password."""
        options: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "secure": self.secure,
            "require_tls": self.require_tls,
        }
        if self.username:
            options["username"] = self.username
        return options

    def send(self, message: MailMessage) -> SendResult:
        """Send a message via SMTP.

        Handles connection, TLS negotiation, authentication, and always
        closes the connection.

        Raises:
            SMTPDeliveryError: If message delivery fails
        """
        mime = build_mime_message(message, linesep="\r\n")
        smtp = None
        try:
            if self.secure:
                logger.debug(f"Connecting to {self.host}:{self.port} with implicit TLS")
                smtp = self.smtp_ssl_factory(
                    self.host,
                    self.port,
                    timeout=self.timeout,
                    context=ssl.create_default_context(),
                )
            else:
                logger.debug(f"Connecting to {self.host}:{self.port}")
                smtp = self.smtp_factory(self.host, self.port, timeout=self.timeout)
                smtp.ehlo()
                if self.require_tls or smtp.has_extn("starttls"):
                    logger.debug("Upgrading connection with STARTTLS")
                    smtp.starttls(context=ssl.create_default_context())
                    smtp.ehlo()

            if self.username and self.password:
                logger.debug(f"Authenticating as {self.username}")
                smtp.login(self.username, self.password)

            smtp.send_message(mime)
            logger.debug(f"Message sent successfully to {message.to}")

        except smtplib.SMTPException as e:
            raise SMTPDeliveryError(
                f"SMTP error during message delivery: {e}", recipient=message.to
            ) from e
        except OSError as e:
            raise SMTPDeliveryError(
                f"Network error during SMTP connection: {e}", recipient=message.to
            ) from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")

        return SendResult(message_id=mime["Message-ID"], accepted=[message.to])
