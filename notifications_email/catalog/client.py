"""Read-only client for the directory (catalog) service.

The recipient resolver only depends on the DirectoryClient protocol; the
CatalogClient below implements it over the catalog's HTTP API.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol
from urllib.parse import quote

import requests

from notifications_email.logging import get_logger

from .exceptions import (
    DirectoryHTTPError,
    DirectoryResponseError,
    DirectoryTimeoutError,
)
from .refs import parse_entity_ref

logger = get_logger(__name__, component="catalog")


class DirectoryClient(Protocol):
    """Read-only directory query capability."""

    def get_entity_by_ref(
        self, ref: str, token: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Return the raw entity for ``ref``, or None if it does not exist."""
        ...

    def get_entities(
        self, filter: Mapping[str, str], token: Optional[str] = None
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Return ``{"items": [...]}`` with every entity matching ``filter``."""
        ...


class CatalogClient:
    """HTTP implementation of DirectoryClient.

    Attributes:
        base_url: Catalog API base URL, without trailing slash
        timeout: HTTP request timeout in seconds
        page_size: Page size for entity queries
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        user_agent: str = "NotificationsEmailProcessor/1.0",
        page_size: int = 500,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Catalog API base URL (e.g. https://backstage.example.com/api/catalog)
            timeout: HTTP request timeout in seconds
            user_agent: User-Agent header for requests
            page_size: Number of entities requested per page
            session: Optional requests session (for connection reuse or tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_size = page_size

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})

    def get_entity_by_ref(
        self, ref: str, token: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Fetch a single entity by reference.

        Args:
            ref: Entity reference (``kind:namespace/name``)
            token: Optional bearer token

        Returns:
            Raw entity dictionary, or None when the catalog returns 404

        Raises:
            DirectoryLookupError: On malformed refs, HTTP failures or bad responses
        """
        entity_ref = parse_entity_ref(ref)
        url = (
            f"{self.base_url}/entities/by-name/"
            f"{quote(entity_ref.kind, safe='')}/"
            f"{quote(entity_ref.namespace, safe='')}/"
            f"{quote(entity_ref.name, safe='')}"
        )

        try:
            data = self._make_request(url, token=token)
        except DirectoryHTTPError as e:
            if e.status_code == 404:
                logger.debug(
                    f"Entity {entity_ref} not found",
                    extra={"event": "catalog.entity.not_found", "entity_ref": str(entity_ref)},
                )
                return None
            raise

        if not isinstance(data, dict):
            raise DirectoryResponseError(
                f"Expected an entity object from {url}, got {type(data).__name__}"
            )
        return data

    def get_entities(
        self, filter: Mapping[str, str], token: Optional[str] = None
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Fetch every entity matching ``filter``, following pagination cursors.

        Args:
            filter: Field filters, e.g. ``{"kind": "User"}``
            token: Optional bearer token

        Returns:
            Dictionary with an ``items`` list of raw entities

        Raises:
            DirectoryLookupError: On HTTP failures or bad responses
        """
        url = f"{self.base_url}/entities/by-query"
        filter_expr = ",".join(f"{key}={value}" for key, value in filter.items())
        params: Dict[str, Any] = {"filter": filter_expr, "limit": self.page_size}

        items: List[Dict[str, Any]] = []
        while True:
            data = self._make_request(url, token=token, params=params)
            if not isinstance(data, dict) or not isinstance(data.get("items"), list):
                raise DirectoryResponseError(
                    f"Expected an object with an 'items' list from {url}"
                )
            items.extend(item for item in data["items"] if isinstance(item, dict))

            next_cursor = (data.get("pageInfo") or {}).get("nextCursor")
            if not next_cursor:
                break
            # The cursor encodes the original query
            params = {"cursor": next_cursor, "limit": self.page_size}

        logger.debug(
            f"Fetched {len(items)} entities matching {filter_expr}",
            extra={"event": "catalog.query.succeeded", "filter": filter_expr, "count": len(items)},
        )
        return {"items": items}

    def _make_request(
        self,
        url: str,
        token: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make a GET request with error handling.

        Args:
            url: URL to request
            token: Optional bearer token
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            DirectoryHTTPError: On 4xx or 5xx HTTP status or connection failure
            DirectoryTimeoutError: On request timeout
            DirectoryResponseError: On invalid JSON
        """
        headers = {"Authorization": f"Bearer {token}"} if token else {}

        try:
            logger.debug(
                f"HTTP GET request to {url}",
                extra={"event": "catalog.request", "url": url, "timeout": self.timeout},
            )

            response = self._session.get(
                url,
                headers=headers,
                params=params,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "catalog.request.timeout", "url": url},
            )
            raise DirectoryTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds",
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={"event": "catalog.request.error", "error_type": type(e).__name__, "url": url},
            )
            raise DirectoryHTTPError(
                f"Request to {url} failed: {e}",
                status_code=0,
                url=url,
            ) from e

        if response.status_code >= 400:
            # 404 is a regular "not found" answer for by-name lookups
            log_level = logging.DEBUG if response.status_code == 404 else logging.WARNING
            logger.log(
                log_level,
                f"HTTP {response.status_code} error from {url}",
                extra={"event": "catalog.request.error", "status_code": response.status_code, "url": url},
            )
            raise DirectoryHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={"event": "catalog.request.error", "error_type": "JSONDecodeError", "url": url},
            )
            raise DirectoryResponseError(
                f"Failed to parse JSON response from {url}: {e}"
            ) from e
