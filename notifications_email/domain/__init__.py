"""Domain models for notification email dispatch."""

from .models import (
    BroadcastRecipients,
    Entity,
    EntityProfile,
    EntityRecipients,
    EntityRefsRecipients,
    EntitySpec,
    MailMessage,
    NotificationEvent,
    NotificationPayload,
    NotificationSeverity,
    ProcessOptions,
    RecipientSpec,
)

__all__ = [
    "BroadcastRecipients",
    "Entity",
    "EntityProfile",
    "EntityRecipients",
    "EntityRefsRecipients",
    "EntitySpec",
    "MailMessage",
    "NotificationEvent",
    "NotificationPayload",
    "NotificationSeverity",
    "ProcessOptions",
    "RecipientSpec",
]
