"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

KNOWN_PROCESSOR_KEYS = {
    "transport",
    "sender",
    "reply_to",
    "replyTo",
    "broadcast_config",
    "broadcastConfig",
    "filter",
    "cache",
    "concurrency_limit",
    "concurrencyLimit",
}


def check_for_warnings(section: Dict[str, Any]) -> List[str]:
    """
    Check the email processor section for potential issues and return warnings.

    Args:
        section: Raw ``notifications.processors.email`` dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    unknown_keys = sorted(str(key) for key in section if key not in KNOWN_PROCESSOR_KEYS)
    if unknown_keys:
        warning_messages.append(
            f"Unknown email processor settings will be ignored: {', '.join(unknown_keys)}"
        )

    transport = section.get("transport")
    if isinstance(transport, dict) and transport.get("transport") == "smtp":
        port = transport.get("port")
        secure = bool(transport.get("secure", False))
        if port == 465 and not secure:
            warning_messages.append(
                "SMTP port 465 normally expects implicit TLS; consider setting secure: true"
            )
        elif port in (25, 587) and secure:
            warning_messages.append(
                f"SMTP port {port} normally uses STARTTLS; secure: true expects implicit TLS"
            )
        if transport.get("password"):
            warning_messages.append(
                "SMTP password is stored in the configuration file; "
                "prefer the SMTP_PASSWORD environment variable"
            )

    broadcast = section.get("broadcast_config", section.get("broadcastConfig"))
    if isinstance(broadcast, dict):
        receiver = broadcast.get("receiver", "none")
        emails = broadcast.get("receiver_emails", broadcast.get("receiverEmails"))
        if emails and receiver != "config":
            warning_messages.append(
                f"receiver_emails is ignored because broadcast receiver is '{receiver}'"
            )
        if receiver == "users" and not section.get("cache"):
            warning_messages.append(
                "Broadcasts to all users query the catalog on every notification; "
                "consider enabling cache.ttl"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
