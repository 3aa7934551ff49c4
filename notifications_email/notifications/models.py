"""Result types and exceptions for email dispatch."""

from dataclasses import dataclass, field
from typing import List, Optional


class NotificationError(Exception):
    """Base exception for notification dispatch errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


@dataclass
class DeliveryResult:
    """Outcome of sending the notification to one recipient.

    Attributes:
        recipient: Address the message was sent to
        status: "sent" or "failed"
        message_id: Message-ID reported by the transport on success
        error: Error message on failure
        error_type: Exception class name on failure
    """

    recipient: str
    status: str  # "sent", "failed"
    message_id: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    def is_success(self) -> bool:
        return self.status == "sent"


@dataclass
class DispatchReport:
    """Aggregated outcome of one post_process call.

    Attributes:
        notification_id: Identifier of the dispatched notification
        status: Overall outcome (sent, partial, failed, no_recipients, skipped)
        recipients: Resolved addresses, sorted
        results: One DeliveryResult per attempted recipient
        reason: Why nothing was sent, for skipped/failed/no_recipients
    """

    notification_id: str
    status: str  # "sent", "partial", "failed", "no_recipients", "skipped"
    recipients: List[str] = field(default_factory=list)
    results: List[DeliveryResult] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def sent_count(self) -> int:
        return sum(1 for result in self.results if result.is_success())

    @property
    def failed_count(self) -> int:
        return sum(1 for result in self.results if not result.is_success())

    @property
    def failures(self) -> List[DeliveryResult]:
        return [result for result in self.results if not result.is_success()]

    @classmethod
    def from_results(cls, notification_id: str, results: List[DeliveryResult]) -> "DispatchReport":
        """Summarize per-recipient results into an overall status."""
        sent = sum(1 for result in results if result.is_success())
        if sent == len(results):
            status = "sent"
        elif sent == 0:
            status = "failed"
        else:
            status = "partial"
        return cls(
            notification_id=notification_id,
            status=status,
            recipients=[result.recipient for result in results],
            results=results,
        )
