"""Email address normalization.

Addresses are normalized with email-validator: the domain part is lowercased
and IDNA-normalized, the local part is kept as written. Two addresses are the
same recipient when their normalized forms are equal.
"""

from email_validator import EmailNotValidError, validate_email


class InvalidAddressError(ValueError):
    """Raised when an email address is syntactically invalid."""

    pass


def normalize_address(address: str) -> str:
    """Validate and normalize a single email address.

    Args:
        address: Raw email address (surrounding whitespace is ignored)

    Returns:
        Normalized address suitable for deduplication

    Raises:
        InvalidAddressError: If the address is empty or invalid
    """
    candidate = (address or "").strip()
    if not candidate:
        raise InvalidAddressError("Email address cannot be empty")

    try:
        validated = validate_email(candidate, check_deliverability=False)
    except EmailNotValidError as e:
        raise InvalidAddressError(f"Invalid email address '{candidate}': {e}") from e

    return validated.normalized
