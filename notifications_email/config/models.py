"""Configuration schema models using Pydantic.

Keys are accepted in snake_case (YAML style) and camelCase (as emitted by
the notification host), e.g. ``require_tls`` or ``requireTls``.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from notifications_email.domain.models import NotificationSeverity
from notifications_email.utils.addresses import InvalidAddressError, normalize_address

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class BroadcastReceiver(str, Enum):
    """Who receives broadcast notifications."""

    NONE = "none"
    USERS = "users"
    CONFIG = "config"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class SmtpTransportConfig(_ConfigModel):
    """SMTP server connection settings."""

    transport: Literal["smtp"]
    hostname: str = Field(..., min_length=1, description="SMTP server hostname")
    port: int = Field(..., ge=1, le=65535, description="SMTP server port")
    secure: bool = Field(False, description="Connect with implicit TLS (SMTPS)")
    require_tls: bool = Field(
        False,
        validation_alias=AliasChoices("requireTLS", "requireTls", "require_tls"),
        description="Fail unless STARTTLS can be negotiated",
    )
    username: Optional[str] = Field(None, description="SMTP authentication username")
    password: Optional[str] = Field(None, description="SMTP authentication password")
    timeout: float = Field(30.0, gt=0, le=300, description="Socket timeout in seconds")

    @field_validator("hostname")
    @classmethod
    def strip_hostname(cls, v: str) -> str:
        """Strip whitespace from the hostname."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("hostname cannot be empty or whitespace-only")
        return stripped

    @model_validator(mode="after")
    def validate_credentials(self):
        """Username and password must be set together."""
        if bool(self.username) != bool(self.password):
            raise ValueError(
                "SMTP username and password must both be set for authentication"
            )
        return self


class SesCredentials(_ConfigModel):
    """Static AWS credentials for the SES client."""

    access_key_id: str = Field(..., min_length=1)
    secret_access_key: str = Field(..., min_length=1)
    session_token: Optional[str] = None


class SesTransportConfig(_ConfigModel):
    """AWS SES settings."""

    transport: Literal["ses"]
    region: str = Field(..., min_length=1, description="AWS region of the SES endpoint")
    credentials: Optional[SesCredentials] = Field(
        None, description="Static credentials (default credential chain when omitted)"
    )
    source_arn: Optional[str] = Field(None, description="Sending authorization ARN")
    configuration_set_name: Optional[str] = Field(None, description="SES configuration set")


class SendmailTransportConfig(_ConfigModel):
    """Local sendmail binary settings."""

    transport: Literal["sendmail"]
    path: str = Field("/usr/sbin/sendmail", min_length=1, description="Path to sendmail")
    newline: Literal["unix", "windows"] = Field(
        "unix", description="Line endings used when piping the message"
    )


TransportConfig = Annotated[
    Union[SmtpTransportConfig, SesTransportConfig, SendmailTransportConfig],
    Field(discriminator="transport"),
]


class BroadcastConfig(_ConfigModel):
    """Recipients of broadcast notifications."""

    receiver: BroadcastReceiver = Field(
        BroadcastReceiver.NONE, description="none, users (all directory users) or config"
    )
    receiver_emails: List[str] = Field(
        default_factory=list, description="Addresses used when receiver is 'config'"
    )

    @field_validator("receiver_emails")
    @classmethod
    def normalize_receiver_emails(cls, v: List[str]) -> List[str]:
        """Validate addresses and drop duplicates, keeping first-seen order."""
        normalized = []
        for address in v:
            try:
                candidate = normalize_address(address)
            except InvalidAddressError as e:
                raise ValueError(str(e)) from e
            if candidate not in normalized:
                normalized.append(candidate)
        return normalized

    @model_validator(mode="after")
    def validate_receiver_emails(self):
        """Configured broadcasts need at least one address."""
        if self.receiver == BroadcastReceiver.CONFIG and not self.receiver_emails:
            raise ValueError(
                "broadcast_config.receiver_emails must be non-empty when receiver is 'config'"
            )
        return self


class NotificationFilterConfig(_ConfigModel):
    """Which notifications are delivered by email."""

    min_severity: Optional[NotificationSeverity] = Field(
        None, description="Skip notifications less severe than this"
    )
    max_severity: Optional[NotificationSeverity] = Field(
        None, description="Skip notifications more severe than this"
    )
    excluded_topics: List[str] = Field(
        default_factory=list, description="Skip notifications with these topics"
    )

    @field_validator("excluded_topics")
    @classmethod
    def strip_topics(cls, v: List[str]) -> List[str]:
        """Strip whitespace from topics and remove empty strings."""
        return [topic.strip() for topic in v if topic.strip()]

    @model_validator(mode="after")
    def validate_severity_range(self):
        """min_severity must not be above max_severity."""
        if (
            self.min_severity is not None
            and self.max_severity is not None
            and self.min_severity.rank > self.max_severity.rank
        ):
            raise ValueError(
                f"min_severity ({self.min_severity.value}) is above "
                f"max_severity ({self.max_severity.value})"
            )
        return self


class CacheConfig(_ConfigModel):
    """In-memory cache for broadcast address lists."""

    ttl: str = Field("1h", description="Time to live, e.g. '30s', '15m', '1h' or 'PT1H'")

    @field_validator("ttl")
    @classmethod
    def validate_ttl(cls, v: str) -> str:
        """Validate the TTL parses and lies between 1 second and 1 day."""
        try:
            validate_duration_range(parse_duration(v), min_seconds=1, max_seconds=86400)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @property
    def ttl_seconds(self) -> int:
        """TTL converted to seconds."""
        return parse_duration(self.ttl)


class EmailProcessorConfig(_ConfigModel):
    """Configuration of the email notification processor."""

    transport: TransportConfig = Field(..., description="Mail transport settings")
    sender: str = Field(..., min_length=1, description="From address of every email")
    reply_to: Optional[str] = Field(None, description="Optional Reply-To address")
    broadcast_config: Optional[BroadcastConfig] = Field(
        None, description="Broadcast recipient policy"
    )
    filter: NotificationFilterConfig = Field(
        default_factory=NotificationFilterConfig, description="Notification filter"
    )
    cache: Optional[CacheConfig] = Field(None, description="Broadcast address cache")
    concurrency_limit: int = Field(
        2, ge=1, le=20, description="Parallel directory lookups and sends per notification"
    )

    @field_validator("sender")
    @classmethod
    def strip_sender(cls, v: str) -> str:
        """Strip whitespace from the sender."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("sender cannot be empty or whitespace-only")
        return stripped

    @field_validator("reply_to")
    @classmethod
    def strip_reply_to(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace from reply_to, treating empty values as unset."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None


class LoggingConfig(_ConfigModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )


class CatalogConfig(_ConfigModel):
    """Directory (catalog) service connection settings."""

    base_url: Optional[str] = Field(None, description="Catalog API base URL")
    request_timeout: int = Field(
        30, ge=1, le=300, description="Request timeout for catalog calls (seconds)"
    )
    user_agent: str = Field(
        "NotificationsEmailProcessor/1.0",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Require an http(s) URL and strip the trailing slash."""
        if v is None:
            return None
        stripped = v.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got: {v!r}")
        return stripped


class AppConfig(_ConfigModel):
    """Root configuration object."""

    email: EmailProcessorConfig = Field(..., description="Email processor settings")
    catalog: CatalogConfig = Field(
        default_factory=CatalogConfig, description="Catalog connection settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
