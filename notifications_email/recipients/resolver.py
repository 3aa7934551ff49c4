"""Recipient resolution: target specification to a set of email addresses.

Resolution never raises for lookup problems. A failed lookup is logged as
a warning and contributes no addresses; the caller decides what an empty
result means.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Set, Union

from pydantic import ValidationError

from notifications_email.catalog.client import DirectoryClient
from notifications_email.config.models import BroadcastConfig, BroadcastReceiver
from notifications_email.domain.models import (
    BroadcastRecipients,
    Entity,
    EntityRecipients,
    EntityRefsRecipients,
    RecipientSpec,
)
from notifications_email.logging import get_logger
from notifications_email.utils.addresses import InvalidAddressError, normalize_address
from notifications_email.utils.concurrency import run_concurrently

from .cache import BroadcastAddressCache

logger = get_logger(__name__, component="recipients")

USER_FILTER = {"kind": "User"}


def extract_email(entity: Union[Entity, Mapping[str, Any], None]) -> Optional[str]:
    """Return the profile email of a User entity.

    Total function: entities that are missing, malformed, not of kind User
    or without ``spec.profile.email`` yield None.

    Args:
        entity: Entity model or raw directory record

    Returns:
        The email as stored in the directory, or None
    """
    if entity is None:
        return None

    if not isinstance(entity, Entity):
        try:
            entity = Entity.model_validate(entity)
        except ValidationError:
            return None

    if not entity.is_user:
        return None

    email = entity.email
    if not email or not email.strip():
        return None
    return email.strip()


class RecipientResolver:
    """Resolves a RecipientSpec against a directory.

    Attributes:
        max_workers: Concurrent lookups for multi-entity targets
        cache: Optional cache for the "all users" broadcast set
    """

    def __init__(
        self,
        max_workers: int = 1,
        cache: Optional[BroadcastAddressCache] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the resolver.

        Args:
            max_workers: Upper bound on concurrent entity lookups
            cache: Broadcast address cache (no caching when None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.max_workers = max(1, max_workers)
        self.cache = cache
        self.logger = logger_instance or logger

    def resolve(
        self,
        spec: RecipientSpec,
        directory: DirectoryClient,
        broadcast_config: Optional[BroadcastConfig] = None,
        token: Optional[str] = None,
    ) -> Set[str]:
        """Resolve a recipient specification into distinct email addresses.

        Args:
            spec: Entity, entity list or broadcast target
            directory: Directory query capability
            broadcast_config: Broadcast policy (broadcasts reach nobody when None)
            token: Optional directory auth token

        Returns:
            Set of normalized email addresses (possibly empty)
        """
        if isinstance(spec, EntityRecipients):
            return self._resolve_entity_ref(spec.entity_ref, directory, token)

        if isinstance(spec, EntityRefsRecipients):
            return self._resolve_entity_refs(spec.entity_refs, directory, token)

        if isinstance(spec, BroadcastRecipients):
            return self._resolve_broadcast(directory, broadcast_config, token)

        raise TypeError(f"Unsupported recipient specification: {type(spec).__name__}")

    def _resolve_entity_ref(
        self, ref: str, directory: DirectoryClient, token: Optional[str]
    ) -> Set[str]:
        try:
            entity = directory.get_entity_by_ref(ref, token=token)
        except Exception as e:
            self.logger.warning(
                f"Failed to look up entity {ref}: {e}",
                extra={
                    "event": "recipients.lookup.failure",
                    "entity_ref": ref,
                    "error_type": type(e).__name__,
                },
            )
            return set()

        if entity is None:
            self.logger.debug(
                f"Entity {ref} not found in directory",
                extra={"event": "recipients.entity.not_found", "entity_ref": ref},
            )
            return set()

        email = extract_email(entity)
        if email is None:
            self.logger.debug(
                f"Entity {ref} has no user email",
                extra={"event": "recipients.entity.no_email", "entity_ref": ref},
            )
            return set()

        return self._normalize([email], source=ref)

    def _resolve_entity_refs(
        self, refs: Iterable[str], directory: DirectoryClient, token: Optional[str]
    ) -> Set[str]:
        unique_refs = sorted(set(refs))
        per_ref = run_concurrently(
            lambda ref: self._resolve_entity_ref(ref, directory, token),
            unique_refs,
            self.max_workers,
        )
        return set().union(*per_ref)

    def _resolve_broadcast(
        self,
        directory: DirectoryClient,
        broadcast_config: Optional[BroadcastConfig],
        token: Optional[str],
    ) -> Set[str]:
        receiver = broadcast_config.receiver if broadcast_config else BroadcastReceiver.NONE

        if receiver == BroadcastReceiver.CONFIG:
            return set(broadcast_config.receiver_emails)

        if receiver == BroadcastReceiver.USERS:
            return self._resolve_all_users(directory, token)

        self.logger.debug(
            "Broadcast email delivery is disabled",
            extra={"event": "recipients.broadcast.disabled"},
        )
        return set()

    def _resolve_all_users(self, directory: DirectoryClient, token: Optional[str]) -> Set[str]:
        if self.cache is not None:
            cached = self.cache.get()
            if cached is not None:
                self.logger.debug(
                    f"Using {len(cached)} cached broadcast addresses",
                    extra={"event": "recipients.broadcast.cache_hit"},
                )
                return set(cached)

        try:
            response = directory.get_entities(filter=USER_FILTER, token=token)
        except Exception as e:
            self.logger.warning(
                f"Failed to list users for broadcast: {e}",
                extra={"event": "recipients.lookup.failure", "error_type": type(e).__name__},
            )
            return set()

        items = response.get("items", []) if isinstance(response, Mapping) else []
        emails = [email for email in (extract_email(item) for item in items) if email]
        addresses = self._normalize(emails, source="broadcast")

        if self.cache is not None:
            self.cache.set(addresses)
        return addresses

    def _normalize(self, emails: Iterable[str], source: str) -> Set[str]:
        addresses = set()
        for email in emails:
            try:
                addresses.add(normalize_address(email))
            except InvalidAddressError as e:
                self.logger.warning(
                    f"Skipping invalid address from {source}: {e}",
                    extra={"event": "recipients.invalid_address", "source": source},
                )
        return addresses
