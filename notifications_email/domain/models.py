"""Core domain models for notification events, recipients and messages.

This module defines the data structures used throughout the application:
- NotificationEvent: one dispatched notification instance from the bus
- RecipientSpec: tagged union describing whom to notify
- ProcessOptions: recipients plus payload handed to the email processor
- Entity: directory record with an optional profile email
- MailMessage: one outgoing email, addressed to a single recipient
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

USER_KIND = "user"


class NotificationSeverity(str, Enum):
    """Notification severity, from least to most urgent."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position of the severity in ascending order of urgency."""
        return list(NotificationSeverity).index(self)


class _WireModel(BaseModel):
    """Base for models received from the notification bus (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class NotificationPayload(_WireModel):
    """Human-readable content of a notification."""

    model_config = ConfigDict(extra="allow")

    title: str = Field(..., description="Notification title, used as the email subject")
    description: Optional[str] = Field(None, description="Longer body text")
    link: Optional[str] = Field(None, description="Link to the notification target")
    severity: NotificationSeverity = Field(
        NotificationSeverity.NORMAL, description="Notification severity"
    )
    topic: Optional[str] = Field(None, description="Optional grouping topic")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Strip whitespace from the title and reject empty titles."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Notification title cannot be empty or whitespace-only")
        return stripped


class NotificationEvent(_WireModel):
    """One notification instance as emitted by the bus."""

    origin: str = Field(..., description="Subsystem that emitted the notification")
    id: str = Field(..., description="Unique notification identifier")
    user: Optional[str] = Field(None, description="Targeted user ref, None for broadcasts")
    created: datetime = Field(..., description="When the notification was created (UTC)")
    payload: NotificationPayload

    @field_validator("created")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Ensure datetime is timezone-aware and in UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class EntityRecipients(_WireModel):
    """A single directory entity."""

    type: Literal["entity"] = "entity"
    entity_ref: str = Field(..., min_length=1)


class EntityRefsRecipients(_WireModel):
    """Several directory entities; the union of their emails is notified."""

    type: Literal["entity_refs"] = "entity_refs"
    entity_refs: List[str] = Field(default_factory=list)


class BroadcastRecipients(_WireModel):
    """Everyone selected by the configured broadcast policy."""

    type: Literal["broadcast"] = "broadcast"


RecipientSpec = Annotated[
    Union[EntityRecipients, EntityRefsRecipients, BroadcastRecipients],
    Field(discriminator="type"),
]


class ProcessOptions(_WireModel):
    """Recipients and payload handed to the processor together with the event."""

    recipients: RecipientSpec
    payload: NotificationPayload

    @model_validator(mode="before")
    @classmethod
    def coerce_entity_ref_list(cls, data: Any) -> Any:
        """Accept ``{"type": "entity", "entityRef": [...]}`` as an entity_refs target."""
        if not isinstance(data, dict):
            return data
        recipients = data.get("recipients")
        if not isinstance(recipients, dict) or recipients.get("type") != "entity":
            return data

        refs = recipients.get("entityRef", recipients.get("entity_ref"))
        if isinstance(refs, (list, tuple)):
            data = {
                **data,
                "recipients": {"type": "entity_refs", "entity_refs": list(refs)},
            }
        return data


class EntityProfile(BaseModel):
    """Profile block of a directory entity."""

    model_config = ConfigDict(extra="allow")

    email: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")


class EntitySpec(BaseModel):
    """Spec block of a directory entity."""

    model_config = ConfigDict(extra="allow")

    profile: Optional[EntityProfile] = None


class Entity(BaseModel):
    """Directory record. Only the fields needed for email extraction are typed."""

    model_config = ConfigDict(extra="allow")

    kind: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    spec: Optional[EntitySpec] = None

    @property
    def is_user(self) -> bool:
        """Whether the entity is of kind User (case-insensitive)."""
        return self.kind.lower() == USER_KIND

    @property
    def email(self) -> Optional[str]:
        """Profile email, if the entity has one."""
        if self.spec is None or self.spec.profile is None:
            return None
        return self.spec.profile.email


@dataclass(frozen=True)
class MailMessage:
    """One outgoing email addressed to a single recipient.

    Attributes:
        sender: Configured sender address (the ``From`` header)
        to: Single recipient address
        subject: Notification title
        text: Plain text body
        html: HTML body
        reply_to: Optional ``Reply-To`` address
    """

    sender: str
    to: str
    subject: str
    text: str
    html: str
    reply_to: Optional[str] = None
