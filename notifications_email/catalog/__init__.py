"""Directory (catalog) access used for recipient resolution."""

from .client import CatalogClient, DirectoryClient
from .exceptions import (
    DirectoryHTTPError,
    DirectoryLookupError,
    DirectoryResponseError,
    DirectoryTimeoutError,
    InvalidEntityRefError,
)
from .refs import EntityRef, parse_entity_ref

__all__ = [
    "CatalogClient",
    "DirectoryClient",
    "EntityRef",
    "parse_entity_ref",
    # Exceptions
    "DirectoryLookupError",
    "DirectoryHTTPError",
    "DirectoryTimeoutError",
    "DirectoryResponseError",
    "InvalidEntityRefError",
]
