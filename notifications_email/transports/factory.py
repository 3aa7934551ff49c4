"""Factory for building mail transports from tagged configuration."""

from typing import Any, Dict, Mapping, Union

import boto3
from botocore.exceptions import BotoCoreError
from pydantic import TypeAdapter, ValidationError

from notifications_email.config.exceptions import ConfigurationError
from notifications_email.config.models import (
    SendmailTransportConfig,
    SesTransportConfig,
    SmtpTransportConfig,
    TransportConfig,
)
from notifications_email.logging import get_logger

from .base import Transport
from .sendmail import SendmailTransport
from .ses import SESTransport
from .smtp import SMTPTransport

logger = get_logger(__name__, component="transport")

_transport_config_adapter = TypeAdapter(TransportConfig)


def parse_transport_config(
    config: Union[SmtpTransportConfig, SesTransportConfig, SendmailTransportConfig, Mapping[str, Any]],
) -> Union[SmtpTransportConfig, SesTransportConfig, SendmailTransportConfig]:
    """Validate a raw transport mapping into its tagged config model.

    Raises:
        ConfigurationError: If the tag is missing or unknown, or required
            fields for the tag are absent
    """
    if isinstance(config, (SmtpTransportConfig, SesTransportConfig, SendmailTransportConfig)):
        return config

    if not isinstance(config, Mapping):
        raise ConfigurationError(
            f"Transport configuration must be a mapping, got {type(config).__name__}"
        )

    try:
        return _transport_config_adapter.validate_python(dict(config))
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(
            "Invalid transport configuration",
            e,
            suggestions=[
                "Set transport.transport to one of: smtp, ses, sendmail",
                "smtp requires hostname and port; ses requires region",
            ],
        ) from e


def build_transport(
    config: Union[SmtpTransportConfig, SesTransportConfig, SendmailTransportConfig, Mapping[str, Any]],
) -> Transport:
    """Build the transport selected by the configuration's ``transport`` tag.

    No network I/O happens here: SMTP connects per message, the sendmail
    binary is only run on send, and the SES client resolves credentials
    lazily.

    Args:
        config: Transport config model or raw mapping

    Returns:
        Constructed transport

    Raises:
        ConfigurationError: If the configuration is invalid

    Example:
        >>> transport = build_transport({"transport": "sendmail", "path": "/usr/sbin/sendmail"})
        >>> transport.newline
        'unix'
    """
    transport_config = parse_transport_config(config)

    if isinstance(transport_config, SmtpTransportConfig):
        kwargs: Dict[str, Any] = {
            "host": transport_config.hostname,
            "port": transport_config.port,
            "secure": transport_config.secure,
            "require_tls": transport_config.require_tls,
            "timeout": transport_config.timeout,
        }
        if transport_config.username:
            kwargs["username"] = transport_config.username
        if transport_config.password:
            kwargs["password"] = transport_config.password
        transport: Transport = SMTPTransport(**kwargs)

    elif isinstance(transport_config, SesTransportConfig):
        client_kwargs: Dict[str, Any] = {"region_name": transport_config.region}
        credentials = transport_config.credentials
        if credentials is not None:
            client_kwargs["aws_access_key_id"] = credentials.access_key_id
            client_kwargs["aws_secret_access_key"] = credentials.secret_access_key
            if credentials.session_token:
                client_kwargs["aws_session_token"] = credentials.session_token
        try:
            client = boto3.client("ses", **client_kwargs)
        except (BotoCoreError, ValueError) as e:
            raise ConfigurationError(f"Failed to create SES client: {e}") from e
        transport = SESTransport(
            client=client,
            source_arn=transport_config.source_arn,
            configuration_set_name=transport_config.configuration_set_name,
        )

    elif isinstance(transport_config, SendmailTransportConfig):
        transport = SendmailTransport(
            path=transport_config.path,
            newline=transport_config.newline,
        )

    else:
        raise ConfigurationError(
            f"Unsupported transport configuration: {type(transport_config).__name__}"
        )

    logger.debug(
        "Created mail transport",
        extra={"event": "transport.built", "transport": transport.name},
    )
    return transport
