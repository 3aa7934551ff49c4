"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        catalog_base_url: Optional[str] = None,
        catalog_token: Optional[str] = None,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.catalog_base_url = catalog_base_url
        self.catalog_token = catalog_token
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.log_level = log_level
        self.environment = environment or "local"

    @property
    def has_smtp_credentials(self) -> bool:
        """Whether both SMTP credentials are provided."""
        return bool(self.smtp_username and self.smtp_password)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - CATALOG_BASE_URL: Catalog API base URL (overrides catalog.base_url)
    - CATALOG_TOKEN: Bearer token for catalog requests
    - SMTP_USERNAME / SMTP_PASSWORD: SMTP credentials, used when the
      configuration file does not set them
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Environment label for logs (default: local)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If any variable is invalid
    """
    errors = []

    catalog_base_url = os.getenv("CATALOG_BASE_URL")
    catalog_token = os.getenv("CATALOG_TOKEN")
    smtp_username = os.getenv("SMTP_USERNAME")
    smtp_password = os.getenv("SMTP_PASSWORD")
    log_level = os.getenv("LOG_LEVEL")
    environment = os.getenv("ENVIRONMENT")

    if catalog_base_url and not catalog_base_url.startswith(("http://", "https://")):
        errors.append(
            f"Invalid CATALOG_BASE_URL: '{catalog_base_url}'. Must start with http:// or https://."
        )

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if smtp_username and not smtp_password:
        errors.append(
            "SMTP_USERNAME is set but SMTP_PASSWORD is not. Both must be set for authentication."
        )
    elif smtp_password and not smtp_username:
        errors.append(
            "SMTP_PASSWORD is set but SMTP_USERNAME is not. Both must be set for authentication."
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Check that CATALOG_BASE_URL is a full http(s) URL",
            ],
        )

    return EnvironmentConfig(
        catalog_base_url=catalog_base_url.rstrip("/") if catalog_base_url else None,
        catalog_token=catalog_token,
        smtp_username=smtp_username,
        smtp_password=smtp_password,
        log_level=log_level.upper() if log_level else None,
        environment=environment,
    )
