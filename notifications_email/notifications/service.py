"""Email dispatcher for platform notifications.

This module provides NotificationEmailDispatcher, the email channel of the
notification bus. For every dispatched notification it resolves the
recipients, renders one message and delivers it to each address through
the configured transport.
"""

import logging
from typing import Any, Callable, List, Mapping, Optional, Union

from notifications_email.catalog.client import DirectoryClient
from notifications_email.config.loader import load_processor_config
from notifications_email.config.models import EmailProcessorConfig
from notifications_email.domain.models import (
    MailMessage,
    NotificationEvent,
    NotificationPayload,
    ProcessOptions,
)
from notifications_email.logging import get_logger
from notifications_email.logging.context import log_context
from notifications_email.recipients import BroadcastAddressCache, RecipientResolver
from notifications_email.transports import Transport, TransportError, build_transport
from notifications_email.utils.concurrency import run_concurrently

from .models import DeliveryResult, DispatchReport, NotificationTemplateError
from .payloads import build_message_context
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")

TokenProvider = Callable[[], Optional[str]]


class NotificationEmailDispatcher:
    """Delivers notifications by email.

    Coordinates the dispatch flow for one notification:
    1. Apply the notification filter
    2. Obtain a directory token
    3. Resolve recipients to distinct addresses
    4. Render subject and bodies once
    5. Send one message per address, bounded by concurrency_limit

    Per-recipient failures are logged and reported, never raised, so one
    bad address does not block delivery to the others.
    """

    def __init__(
        self,
        config: EmailProcessorConfig,
        transport: Transport,
        directory: DirectoryClient,
        token_provider: Optional[TokenProvider] = None,
        resolver: Optional[RecipientResolver] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the dispatcher.

        Args:
            config: Validated processor configuration
            transport: Transport shared by every send
            directory: Directory used to resolve recipients
            token_provider: Callable returning a directory token (no token if None)
            resolver: Recipient resolver (built from config if None)
            template_renderer: Template renderer (creates default if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.config = config
        self.transport = transport
        self.directory = directory
        self.token_provider = token_provider
        self.logger = logger_instance or logger

        if resolver is None:
            cache = BroadcastAddressCache(config.cache.ttl_seconds) if config.cache else None
            resolver = RecipientResolver(
                max_workers=config.concurrency_limit,
                cache=cache,
                logger_instance=logger_instance,
            )
        self.resolver = resolver
        self.template_renderer = template_renderer or TemplateRenderer()

    @classmethod
    def from_config(
        cls,
        config: Union[EmailProcessorConfig, Mapping[str, Any]],
        directory: DirectoryClient,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[Transport] = None,
        **kwargs: Any,
    ) -> "NotificationEmailDispatcher":
        """Build a dispatcher from configuration.

        Args:
            config: Validated EmailProcessorConfig, or a host configuration
                tree containing ``notifications.processors.email``
            directory: Directory used to resolve recipients
            token_provider: Callable returning a directory token
            transport: Prebuilt transport (built from config if None)
            **kwargs: Passed through to the constructor

        Returns:
            Configured dispatcher

        Raises:
            ConfigurationError: If the configuration is missing or invalid
        """
        if not isinstance(config, EmailProcessorConfig):
            config = load_processor_config(config)

        if transport is None:
            transport = build_transport(config.transport)

        return cls(config, transport, directory, token_provider=token_provider, **kwargs)

    def post_process(
        self,
        event: Union[NotificationEvent, Mapping[str, Any]],
        options: Union[ProcessOptions, Mapping[str, Any]],
    ) -> DispatchReport:
        """Deliver one dispatched notification by email.

        Args:
            event: The notification as stored by the bus
            options: Recipients and payload of the notification

        Returns:
            DispatchReport describing what was sent

        Raises:
            pydantic.ValidationError: If event or options are malformed
        """
        if not isinstance(event, NotificationEvent):
            event = NotificationEvent.model_validate(event)
        if not isinstance(options, ProcessOptions):
            options = ProcessOptions.model_validate(options)

        with log_context(notification_id=event.id, origin=event.origin):
            return self._dispatch(event, options)

    def filter_reason(self, payload: NotificationPayload) -> Optional[str]:
        """Return why the filter rejects ``payload``, or None to deliver it."""
        notification_filter = self.config.filter
        rank = payload.severity.rank

        if notification_filter.min_severity is not None and rank < notification_filter.min_severity.rank:
            return "severity_below_minimum"
        if notification_filter.max_severity is not None and rank > notification_filter.max_severity.rank:
            return "severity_above_maximum"
        if payload.topic and payload.topic in notification_filter.excluded_topics:
            return "topic_excluded"
        return None

    def _dispatch(self, event: NotificationEvent, options: ProcessOptions) -> DispatchReport:
        payload = options.payload

        reason = self.filter_reason(payload)
        if reason:
            self.logger.debug(
                f"Skipping email for notification {event.id}: {reason}",
                extra={"event": "dispatch.skip", "reason": reason},
            )
            return DispatchReport(notification_id=event.id, status="skipped", reason=reason)

        try:
            token = self.token_provider() if self.token_provider else None
        except Exception as e:
            self.logger.error(
                f"Failed to obtain directory token for notification {event.id}: {e}",
                exc_info=True,
                extra={"event": "dispatch.token.failure", "error_type": type(e).__name__},
            )
            return DispatchReport(notification_id=event.id, status="failed", reason="token_unavailable")

        addresses = self.resolver.resolve(
            options.recipients,
            self.directory,
            broadcast_config=self.config.broadcast_config,
            token=token,
        )
        if not addresses:
            self.logger.debug(
                f"No email recipients for notification {event.id}",
                extra={"event": "dispatch.no_recipients", "recipient_type": options.recipients.type},
            )
            return DispatchReport(notification_id=event.id, status="no_recipients", reason="no_recipients")

        try:
            rendered = self.template_renderer.render(build_message_context(payload, event))
        except NotificationTemplateError as e:
            self.logger.error(
                f"Template rendering failed for notification {event.id}: {e}",
                extra={"event": "dispatch.render.failure"},
            )
            return DispatchReport(
                notification_id=event.id,
                status="failed",
                recipients=sorted(addresses),
                reason="render_failed",
            )

        messages = [
            MailMessage(
                sender=self.config.sender,
                to=address,
                subject=rendered["subject"],
                text=rendered["text_body"],
                html=rendered["html_body"],
                reply_to=self.config.reply_to,
            )
            for address in sorted(addresses)
        ]

        results: List[DeliveryResult] = run_concurrently(
            self._send_one, messages, self.config.concurrency_limit
        )
        report = DispatchReport.from_results(event.id, results)

        self.logger.info(
            f"Email dispatch complete for notification {event.id}: "
            f"{report.sent_count} sent, {report.failed_count} failed "
            f"(total: {len(results)})",
            extra={
                "event": "dispatch.complete",
                "status": report.status,
                "sent": report.sent_count,
                "failed": report.failed_count,
                "failed_recipients": [failure.recipient for failure in report.failures],
                "transport": self.transport.name,
            },
        )
        return report

    def _send_one(self, message: MailMessage) -> DeliveryResult:
        """Send one message, converting failures into a DeliveryResult."""
        try:
            result = self.transport.send(message)
        except TransportError as e:
            self.logger.error(
                f"Failed to send email to {message.to}: {e}",
                extra={
                    "event": "dispatch.send.failure",
                    "recipient": message.to,
                    "error_type": type(e).__name__,
                },
            )
            return DeliveryResult(
                recipient=message.to, status="failed", error=str(e), error_type=type(e).__name__
            )
        except Exception as e:
            self.logger.error(
                f"Unexpected error sending email to {message.to}: {e}",
                exc_info=True,
                extra={
                    "event": "dispatch.send.failure",
                    "recipient": message.to,
                    "error_type": type(e).__name__,
                },
            )
            return DeliveryResult(
                recipient=message.to, status="failed", error=str(e), error_type=type(e).__name__
            )

        self.logger.debug(
            f"Sent email to {message.to}",
            extra={"event": "dispatch.send.success", "recipient": message.to},
        )
        return DeliveryResult(recipient=message.to, status="sent", message_id=result.message_id)
