"""Recipient resolution against the directory service."""

from .cache import BroadcastAddressCache
from .resolver import RecipientResolver, extract_email

__all__ = ["BroadcastAddressCache", "RecipientResolver", "extract_email"]
