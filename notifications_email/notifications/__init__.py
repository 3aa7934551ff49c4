"""Notification dispatch: rendering and per-recipient delivery."""

from .models import (
    DeliveryResult,
    DispatchReport,
    NotificationError,
    NotificationTemplateError,
)
from .payloads import build_message_context
from .service import NotificationEmailDispatcher
from .templates import TemplateRenderer

__all__ = [
    "DeliveryResult",
    "DispatchReport",
    "NotificationEmailDispatcher",
    "NotificationError",
    "NotificationTemplateError",
    "TemplateRenderer",
    "build_message_context",
]
