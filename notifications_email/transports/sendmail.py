"""Local sendmail transport: pipes each message to a sendmail-compatible binary."""

import subprocess
from typing import Callable, Optional

from notifications_email.domain.models import MailMessage
from notifications_email.logging import get_logger

from .base import SendResult, Transport, build_mime_message, envelope_address
from .exceptions import SendmailDeliveryError

logger = get_logger(__name__, component="transport")

NEWLINES = {"unix": "\n", "windows": "\r\n"}


class SendmailTransport(Transport):
    """Send messages by invoking ``<path> -i [-f sender] <recipient>``."""

    name = "sendmail"

    def __init__(
        self,
        path: str = "/usr/sbin/sendmail",
        newline: str = "unix",
        timeout: Optional[float] = 60.0,
        runner: Optional[Callable] = None,
    ):
        """Initialize sendmail transport.

        Args:
            path: Path to the sendmail binary
            newline: Line endings of the piped message, 'unix' or 'windows'
            timeout: Seconds to wait for the binary to exit
            runner: Replacement for subprocess.run (for mocking)
        """
        if newline not in NEWLINES:
            raise ValueError(f"newline must be one of {sorted(NEWLINES)}, got: {newline!r}")
        self.path = path
        self.newline = newline
        self.timeout = timeout
        self.runner = runner or subprocess.run

    def build_command(self, message: MailMessage) -> list:
        """Command line for one message."""
        command = [self.path, "-i"]
        envelope_from = envelope_address(message.sender)
        if envelope_from:
            command.extend(["-f", envelope_from])
        command.append(message.to)
        return command

    def send(self, message: MailMessage) -> SendResult:
        """Pipe a message to sendmail.

        Raises:
            SendmailDeliveryError: If the binary fails or exits non-zero
        """
        # A leading dash would be parsed as a sendmail option
        if message.to.startswith("-"):
            raise SendmailDeliveryError(
                f"Refusing recipient address starting with '-': {message.to}",
                recipient=message.to,
            )

        mime = build_mime_message(message, linesep=NEWLINES[self.newline])
        command = self.build_command(message)

        try:
            completed = self.runner(
                command,
                input=mime.as_bytes(),
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise SendmailDeliveryError(
                f"Failed to run {self.path}: {e}", recipient=message.to
            ) from e

        if completed.returncode != 0:
            stderr = (completed.stderr or b"").decode("utf-8", errors="replace").strip()
            raise SendmailDeliveryError(
                f"{self.path} exited with status {completed.returncode}: {stderr or 'no output'}",
                recipient=message.to,
            )

        logger.debug(f"sendmail accepted message for {message.to}")
        return SendResult(message_id=mime["Message-ID"], accepted=[message.to])
