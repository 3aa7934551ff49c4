"""Template context for notification emails."""

from typing import Any, Dict

from notifications_email.domain.models import NotificationEvent, NotificationPayload


def build_message_context(payload: NotificationPayload, event: NotificationEvent = None) -> Dict[str, Any]:
    """Build the template context for a notification payload.

    Empty description or link values are passed as None so templates can
    test them directly.

    Args:
        payload: Notification content
        event: Optional originating event, for origin/created metadata

    Returns:
        Dictionary with template context keys:
        - title: Email subject
        - description, link: Body parts (None when absent)
        - severity, topic: Notification classification
        - origin, created_at: Event metadata (None without an event)
    """
    description = (payload.description or "").strip() or None
    link = (payload.link or "").strip() or None

    return {
        "title": payload.title,
        "description": description,
        "link": link,
        "severity": payload.severity.value,
        "topic": payload.topic,
        "origin": event.origin if event is not None else None,
        "created_at": event.created.isoformat() if event is not None else None,
    }
