"""Configuration management for the email notification processor."""

from .duration import DurationParseError, parse_duration, validate_duration_range
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import (
    extract_processor_section,
    load_config,
    load_processor_config,
    validate_config_file,
)
from .models import (
    AppConfig,
    BroadcastConfig,
    BroadcastReceiver,
    CacheConfig,
    CatalogConfig,
    EmailProcessorConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    NotificationFilterConfig,
    SendmailTransportConfig,
    SesCredentials,
    SesTransportConfig,
    SmtpTransportConfig,
    TransportConfig,
)

__all__ = [
    # Main loader functions
    "load_config",
    "load_processor_config",
    "extract_processor_section",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "EmailProcessorConfig",
    "TransportConfig",
    "SmtpTransportConfig",
    "SesTransportConfig",
    "SesCredentials",
    "SendmailTransportConfig",
    "BroadcastConfig",
    "NotificationFilterConfig",
    "CacheConfig",
    "CatalogConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "BroadcastReceiver",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
    "DurationParseError",
    # Duration helpers
    "parse_duration",
    "validate_duration_range",
]
